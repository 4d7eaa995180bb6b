"""Tic-Tac-Toe against a computer opponent: board rules, engine players, and the web application."""

from .ai import CasualAI, MinimaxAI, StrategicAI, select_move
from .game import Difficulty, InvalidBoard, Mark, NoMoveAvailable, TicTacToeGame
from .ui import app

__all__ = [
    "CasualAI",
    "Difficulty",
    "InvalidBoard",
    "Mark",
    "MinimaxAI",
    "NoMoveAvailable",
    "StrategicAI",
    "TicTacToeGame",
    "app",
    "select_move",
]
