"""Board model, win/draw evaluation, and the round state for 3x3 Tic-Tac-Toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple


class Mark(str, Enum):
    """The two symbols a player can place."""

    X = "X"
    O = "O"

    def opponent(self) -> "Mark":
        return Mark.O if self is Mark.X else Mark.X


class Difficulty(str, Enum):
    """Engine strength tiers; values match the labels the web client sends."""

    CASUAL = "easy"
    STRATEGIC = "medium"
    EXPERT = "hard"

    @property
    def label(self) -> str:
        return _DIFFICULTY_LABELS[self]


_DIFFICULTY_LABELS = {
    Difficulty.CASUAL: "Casual",
    Difficulty.STRATEGIC: "Strategic",
    Difficulty.EXPERT: "Expert (Unbeatable)",
}


Cell = Optional[Mark]  # None is an empty cell
Board = List[Cell]

BOARD_SIZE = 9
CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)
EDGES: Tuple[int, ...] = (1, 3, 5, 7)

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class InvalidBoard(ValueError):
    """Board has the wrong length or holds a value that is not a mark."""


class NoMoveAvailable(RuntimeError):
    """A move was requested on a board that is full or already won."""


_EMPTY_TOKENS = (None, "", " ")


def parse_mark(value: object) -> Mark:
    """Accept a ``Mark`` or "X"/"O" in either case."""
    if isinstance(value, Mark):
        return value
    if isinstance(value, str) and value.upper() in ("X", "O"):
        return Mark(value.upper())
    raise ValueError(f"Not a player mark: {value!r}")


def _parse_cell(value: object, index: int) -> Cell:
    if not isinstance(value, Mark) and value in _EMPTY_TOKENS:
        return None
    try:
        return parse_mark(value)
    except ValueError as exc:
        raise InvalidBoard(f"Cell {index} holds an invalid value: {value!r}") from exc


def parse_board(cells: Iterable[object]) -> Board:
    """Validate ``cells`` and return a fresh working copy.

    Accepts ``Mark`` members, ``"X"``/``"O"`` in either case, and
    ``None``, ``""`` or ``" "`` for empty cells. The returned list never
    aliases the input, so callers may place and revert marks on it freely.
    """

    if isinstance(cells, (str, bytes)):
        raise InvalidBoard("Board must be a sequence of cells, not a string")
    try:
        raw = list(cells)
    except TypeError as exc:
        raise InvalidBoard("Board must be a sequence of cells") from exc
    if len(raw) != BOARD_SIZE:
        raise InvalidBoard(f"Board must have {BOARD_SIZE} cells, got {len(raw)}")
    return [_parse_cell(value, i) for i, value in enumerate(raw)]


# ---------- Evaluator ----------


def has_won(board: Sequence[Cell], mark: Mark) -> bool:
    return any(all(board[i] == mark for i in line) for line in WINNING_LINES)


def winning_line(board: Sequence[Cell]) -> Optional[Tuple[int, int, int]]:
    """First line in table order held entirely by one mark, if any."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return (a, b, c)
    return None


def winner(board: Sequence[Cell]) -> Optional[Mark]:
    line = winning_line(board)
    return board[line[0]] if line else None


def empty_cells(board: Sequence[Cell]) -> List[int]:
    """Indices of empty cells in ascending order."""
    return [i for i, c in enumerate(board) if c is None]


def is_draw(board: Sequence[Cell]) -> bool:
    # A full board with a completed line is a win, never a draw
    if any(c is None for c in board):
        return False
    return not has_won(board, Mark.X) and not has_won(board, Mark.O)


def count_open_lines(board: Sequence[Cell], mark: Mark) -> int:
    """Number of lines holding two of ``mark`` and one empty cell."""
    cnt = 0
    for a, b, c in WINNING_LINES:
        trio = [board[a], board[b], board[c]]
        if trio.count(mark) == 2 and trio.count(None) == 1:
            cnt += 1
    return cnt


# ---------- Round ----------


class GameStatus(str, Enum):
    PLAYING = "PLAYING"
    X_WINS = "X_WINS"
    O_WINS = "O_WINS"
    DRAW = "DRAW"


@dataclass
class TicTacToeGame:
    """A single round as seen by the web layer: board, turn, and result.

    The decision engine never touches this object; it only receives
    ``board`` snapshots.
    """

    board: Board = field(default_factory=lambda: [None] * BOARD_SIZE)
    current_player: Mark = Mark.X
    winner: Optional[Mark] = None
    drawn: bool = False
    winning_line: Optional[Tuple[int, int, int]] = None
    moves: List[Tuple[Mark, int]] = field(default_factory=list)

    @property
    def move_count(self) -> int:
        return len(self.moves)

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn

    @property
    def status(self) -> GameStatus:
        if self.winner is Mark.X:
            return GameStatus.X_WINS
        if self.winner is Mark.O:
            return GameStatus.O_WINS
        if self.drawn:
            return GameStatus.DRAW
        return GameStatus.PLAYING

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return empty_cells(self.board)

    def play_move(self, index: int) -> None:
        """Place the current player's mark, update the result, and pass the turn."""
        if self.finished:
            raise ValueError("Game already finished")
        if not 0 <= index < BOARD_SIZE:
            raise ValueError(f"Cell index {index} is off the board")
        if self.board[index] is not None:
            raise ValueError("Cell already occupied")

        player = self.current_player
        self.board[index] = player
        self.moves.append((player, index))

        if has_won(self.board, player):
            self.winner = player
            self.winning_line = winning_line(self.board)
            return
        if is_draw(self.board):
            self.drawn = True
            return
        self.current_player = player.opponent()

    def reset(self) -> None:
        self.board = [None] * BOARD_SIZE
        self.current_player = Mark.X
        self.winner = None
        self.drawn = False
        self.winning_line = None
        self.moves = []
