"""Engine players for Tic-Tac-Toe: weighted random, rule cascade, and alpha-beta minimax."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

from .game import (
    BOARD_SIZE,
    CENTER,
    CORNERS,
    EDGES,
    WINNING_LINES,
    Board,
    Cell,
    Difficulty,
    Mark,
    NoMoveAvailable,
    count_open_lines,
    empty_cells,
    has_won,
    parse_board,
    parse_mark,
)

logger = logging.getLogger(__name__)

# Chance that the casual player restricts itself to the center and corners
CASUAL_PREFERENCE_RATE = 0.3

WIN_SCORE = 10

# Opponent corner -> corner to answer with
OPPOSITE_CORNERS: Tuple[Tuple[int, int], ...] = ((0, 8), (2, 6), (6, 2), (8, 0))


def _default_rng() -> random.Random:
    return random.Random()


def _check_marks(player: Mark, opponent: Mark) -> None:
    if player == opponent:
        raise ValueError("Engine and human marks must differ")


# ---------- Casual ----------


@dataclass
class CasualAI:
    """Beatable player: mostly random, sometimes drawn to the center or a corner.

    It never looks for wins or blocks.
    """

    player: Mark
    opponent: Mark
    rng: random.Random = field(default_factory=_default_rng, repr=False)

    def __post_init__(self) -> None:
        _check_marks(self.player, self.opponent)

    def choose(self, board: Sequence[Cell]) -> int:
        empty = empty_cells(board)
        if not empty:
            raise NoMoveAvailable("No valid moves available")
        if self.rng.random() < CASUAL_PREFERENCE_RATE:
            preferred = [i for i in empty if i == CENTER or i in CORNERS]
            if preferred:
                return self.rng.choice(preferred)
        return self.rng.choice(empty)


# ---------- Strategic ----------


@dataclass
class StrategicAI:
    """Rule cascade: win, block, fork, block fork, center, opposite corner, corner, edge.

    Each rule is tried in order and the first one that yields a cell wins.
    Lookahead rules place marks on a private copy of the board and undo
    them before returning.
    """

    player: Mark
    opponent: Mark
    rng: random.Random = field(default_factory=_default_rng, repr=False)

    def __post_init__(self) -> None:
        _check_marks(self.player, self.opponent)

    def choose(self, board: Sequence[Cell]) -> int:
        work = list(board)
        empty = empty_cells(work)
        if not empty:
            raise NoMoveAvailable("No valid moves available")

        move = self.find_winning_move(work, self.player)
        if move is not None:
            return move

        move = self.find_winning_move(work, self.opponent)
        if move is not None:
            return move

        move = self.find_fork_move(work, self.player)
        if move is not None:
            return move

        move = self.find_block_fork_move(work)
        if move is not None:
            return move

        if work[CENTER] is None:
            return CENTER

        move = self.find_opposite_corner(work)
        if move is not None:
            return move

        corners = [i for i in CORNERS if work[i] is None]
        if corners:
            return self.rng.choice(corners)

        edges = [i for i in EDGES if work[i] is None]
        if edges:
            return self.rng.choice(edges)

        return self.rng.choice(empty)

    @staticmethod
    def find_winning_move(board: Sequence[Cell], player: Mark) -> Optional[int]:
        """Empty cell of the first line holding two of ``player`` and one gap."""
        for line in WINNING_LINES:
            trio = [board[i] for i in line]
            if trio.count(player) == 2 and trio.count(None) == 1:
                return line[trio.index(None)]
        return None

    @staticmethod
    def find_fork_move(board: Board, player: Mark) -> Optional[int]:
        """First empty cell that would give ``player`` two open lines at once."""
        for index in empty_cells(board):
            board[index] = player
            threats = count_open_lines(board, player)
            board[index] = None
            if threats >= 2:
                return index
        return None

    def find_block_fork_move(self, board: Board) -> Optional[int]:
        fork = self.find_fork_move(board, self.opponent)
        if fork is not None:
            return fork

        # Otherwise force the opponent to block somewhere that leaves them no fork
        for index in empty_cells(board):
            board[index] = self.player
            forced = self.find_winning_move(board, self.player)
            if forced is not None:
                board[forced] = self.opponent
                remaining = self.find_fork_move(board, self.opponent)
                board[forced] = None
                if remaining is None:
                    board[index] = None
                    return index
            board[index] = None
        return None

    def find_opposite_corner(self, board: Sequence[Cell]) -> Optional[int]:
        for corner, opposite in OPPOSITE_CORNERS:
            if board[corner] == self.opponent and board[opposite] is None:
                return opposite
        return None


# ---------- Expert ----------


@dataclass
class MinimaxAI:
    """Full-depth minimax with alpha-beta pruning.

    Wins are scored ``10 - depth`` and losses ``-10 + depth`` so the
    engine takes the quickest win and delays a loss as long as it can.
    Ties go to the lowest cell index.
    """

    player: Mark
    opponent: Mark
    max_depth: int = BOARD_SIZE
    nodes: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        _check_marks(self.player, self.opponent)

    # ---- public API ----

    def choose(self, board: Sequence[Cell]) -> int:
        score, move = self.search(board)
        if move is None:
            raise NoMoveAvailable("No valid moves available")
        logger.debug(
            "Minimax evaluated %d positions; best move %d (score %s)",
            self.nodes,
            move,
            score,
        )
        return move

    def search(self, board: Sequence[Cell]) -> Tuple[float, Optional[int]]:
        """Root score from the engine's side and the best cell (None at a leaf)."""
        self.nodes = 0
        work = list(board)
        return self._minimax(work, True, 0, -math.inf, math.inf)

    # ---- core search ----

    def _evaluate(self, board: Sequence[Cell]) -> int:
        if has_won(board, self.player):
            return WIN_SCORE
        if has_won(board, self.opponent):
            return -WIN_SCORE
        return 0

    def _minimax(
        self,
        board: Board,
        maximizing: bool,
        depth: int,
        alpha: float,
        beta: float,
    ) -> Tuple[float, Optional[int]]:
        self.nodes += 1

        score = self._evaluate(board)
        if score == WIN_SCORE:
            return score - depth, None
        if score == -WIN_SCORE:
            return score + depth, None

        moves = empty_cells(board)
        if not moves or depth >= self.max_depth:
            return 0, None

        mover = self.player if maximizing else self.opponent
        best_move: Optional[int] = moves[0]
        value = -math.inf if maximizing else math.inf

        for move in moves:
            board[move] = mover
            child, _ = self._minimax(board, not maximizing, depth + 1, alpha, beta)
            board[move] = None

            if maximizing:
                if child > value:
                    value, best_move = child, move
                alpha = max(alpha, child)
            else:
                if child < value:
                    value, best_move = child, move
                beta = min(beta, child)
            if beta <= alpha:
                break

        return value, best_move


# ---------- Move selection ----------


Policy = Union[CasualAI, StrategicAI, MinimaxAI]


def policy_for(
    difficulty: Difficulty,
    engine_mark: Mark,
    human_mark: Mark,
    rng: Optional[random.Random] = None,
) -> Policy:
    """Build the player object backing a difficulty tier."""
    difficulty = Difficulty(difficulty)
    if difficulty is Difficulty.EXPERT:
        return MinimaxAI(player=engine_mark, opponent=human_mark)
    if rng is None:
        rng = _default_rng()
    if difficulty is Difficulty.STRATEGIC:
        return StrategicAI(player=engine_mark, opponent=human_mark, rng=rng)
    return CasualAI(player=engine_mark, opponent=human_mark, rng=rng)


def select_move(
    board: Sequence[object],
    difficulty: Difficulty,
    engine_mark: Mark,
    human_mark: Mark,
    rng: Optional[random.Random] = None,
) -> int:
    """Pick the engine's next cell for ``board``.

    Raises ``InvalidBoard`` for a malformed board and ``NoMoveAvailable``
    when the board is full or the round is already won. The caller's
    board is never modified.
    """

    engine_mark, human_mark = parse_mark(engine_mark), parse_mark(human_mark)
    work = parse_board(board)
    if has_won(work, engine_mark) or has_won(work, human_mark):
        raise NoMoveAvailable("Round is already decided")
    if not empty_cells(work):
        raise NoMoveAvailable("Board is full")

    policy = policy_for(difficulty, engine_mark, human_mark, rng)
    move = policy.choose(work)
    logger.debug(
        "%s engine (%s) chose cell %d",
        Difficulty(difficulty).label,
        engine_mark.value,
        move,
    )
    return move
