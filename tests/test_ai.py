"""Tests for the Tic-Tac-Toe engine players and move selection."""

import random

import pytest

from tictactoe.ai import CasualAI, MinimaxAI, StrategicAI, select_move
from tictactoe.game import (
    Difficulty,
    InvalidBoard,
    Mark,
    NoMoveAvailable,
    empty_cells,
    has_won,
    is_draw,
    winner,
)

X, O = Mark.X, Mark.O


class ScriptedRandom:
    """Stand-in random source: fixed roll, picks a fixed position, records pools."""

    def __init__(self, roll: float, pick: int = 0) -> None:
        self.roll = roll
        self.pick = pick
        self.pools = []

    def random(self) -> float:
        return self.roll

    def choice(self, seq):
        self.pools.append(list(seq))
        return seq[self.pick]


def _reachable_open_boards():
    """Every non-terminal board reachable from an empty board with X moving first."""
    seen = set()
    frontier = [((None,) * 9, X)]
    while frontier:
        board, to_move = frontier.pop()
        if board in seen or winner(board) is not None or is_draw(board):
            continue
        seen.add(board)
        for move in empty_cells(board):
            child = list(board)
            child[move] = to_move
            frontier.append((tuple(child), to_move.opponent()))
    return sorted(seen, key=lambda b: [c.value if c else "" for c in b])


def _plain_minimax(board, player, opponent):
    """Unpruned minimax with the same scoring and ascending tie-break."""
    root_filled = 9 - board.count(None)
    memo = {}

    def value(cells, maximizing):
        key = tuple(cells)
        if key in memo:
            return memo[key]
        depth = 9 - cells.count(None) - root_filled
        if has_won(cells, player):
            result = (10 - depth, None)
        elif has_won(cells, opponent):
            result = (-10 + depth, None)
        elif not empty_cells(cells):
            result = (0, None)
        else:
            mover = player if maximizing else opponent
            best, best_move = None, None
            for move in empty_cells(cells):
                cells[move] = mover
                score, _ = value(cells, not maximizing)
                cells[move] = None
                if best is None or (score > best if maximizing else score < best):
                    best, best_move = score, move
            result = (best, best_move)
        memo[key] = result
        return result

    return value(list(board), True)


def _outcomes(board, to_move, engine):
    """Every finished board reachable when the engine answers all human replies."""
    if winner(board) is not None or is_draw(board):
        yield board
        return
    if to_move == engine.player:
        moves = [engine.choose(board)]
    else:
        moves = empty_cells(board)
    for move in moves:
        child = list(board)
        child[move] = to_move
        yield from _outcomes(child, to_move.opponent(), engine)


# ---------- Casual ----------


def test_casual_prefers_center_and_corners_on_low_roll():
    rng = ScriptedRandom(roll=0.1)
    ai = CasualAI(player=O, opponent=X, rng=rng)
    board = [None, X, None, None, None, None, None, None, None]
    assert ai.choose(board) == 0
    assert rng.pools == [[0, 2, 4, 6, 8]]


def test_casual_falls_back_when_preferred_cells_taken():
    rng = ScriptedRandom(roll=0.1)
    ai = CasualAI(player=O, opponent=X, rng=rng)
    board = [X, None, O, None, X, None, O, None, X]
    ai.choose(board)
    assert rng.pools == [[1, 3, 5, 7]]


def test_casual_picks_from_all_cells_on_high_roll():
    rng = ScriptedRandom(roll=0.7, pick=-1)
    ai = CasualAI(player=O, opponent=X, rng=rng)
    board = [X, X, None, None, None, None, None, None, None]
    # No block awareness: takes whatever the random source hands it
    assert ai.choose(board) == 8
    assert rng.pools == [[2, 3, 4, 5, 6, 7, 8]]


# ---------- Strategic ----------


def test_strategic_takes_win_before_block():
    board = [X, X, None, O, O, None, None, None, None]
    ai = StrategicAI(player=O, opponent=X)
    assert ai.choose(board) == 5


def test_strategic_blocks():
    board = [X, X, None, None, O, None, None, None, None]
    ai = StrategicAI(player=O, opponent=X)
    assert ai.choose(board) == 2


def test_strategic_creates_fork():
    board = [X, None, None, None, O, None, None, None, X]
    ai = StrategicAI(player=X, opponent=O)
    assert ai.choose(board) == 2


def test_strategic_occupies_opponent_fork_cell():
    board = [X, None, None, None, O, None, None, None, X]
    ai = StrategicAI(player=O, opponent=X)
    assert ai.choose(board) == 2


def test_strategic_forces_block_that_leaves_no_fork():
    board = [None, O, None, None, X, None, None, None, None]
    ai = StrategicAI(player=X, opponent=O)
    assert ai.choose(board) == 0


def test_strategic_takes_center_when_nothing_forcing():
    ai = StrategicAI(player=X, opponent=O)
    assert ai.choose([None] * 9) == 4


def test_strategic_answers_opposite_corner():
    board = [O, None, None, None, X, None, None, None, None]
    ai = StrategicAI(player=X, opponent=O)
    assert ai.choose(board) == 8


def test_strategic_answers_center_with_random_corner():
    board = [None, None, None, None, X, None, None, None, None]
    for seed in range(20):
        ai = StrategicAI(player=O, opponent=X, rng=random.Random(seed))
        assert ai.choose(board) in (0, 2, 6, 8)


def test_strategic_leaves_board_untouched():
    board = [None, O, None, None, X, None, None, None, None]
    snapshot = list(board)
    StrategicAI(player=X, opponent=O).choose(board)
    assert board == snapshot


@pytest.mark.parametrize("seed", range(25))
def test_strategic_opening_center_never_loses(seed):
    ai = StrategicAI(player=X, opponent=O, rng=random.Random(seed))
    for final in _outcomes([None] * 9, X, ai):
        assert not has_won(final, O)


# ---------- Expert ----------


def test_minimax_blocks():
    board = [X, X, None, None, O, None, None, None, None]
    assert MinimaxAI(player=O, opponent=X).choose(board) == 2


def test_minimax_prefers_quickest_win():
    # Cell 2 forks and wins in three plies, cell 5 wins at once
    board = [O, O, None, X, X, None, None, None, None]
    ai = MinimaxAI(player=X, opponent=O)
    score, move = ai.search(board)
    assert move == 5
    assert score == 9


def test_minimax_empty_board_is_a_draw():
    score, move = MinimaxAI(player=X, opponent=O).search([None] * 9)
    assert score == 0
    assert move == 0


def test_minimax_full_board_scores_zero():
    board = [X, O, X, X, O, O, O, X, X]
    assert MinimaxAI(player=O, opponent=X).search(board) == (0, None)
    with pytest.raises(NoMoveAvailable):
        MinimaxAI(player=O, opponent=X).choose(board)


def test_minimax_leaves_board_untouched():
    board = [X, None, None, None, O, None, None, None, None]
    snapshot = list(board)
    MinimaxAI(player=O, opponent=X).choose(board)
    assert board == snapshot


@pytest.mark.parametrize("engine", [X, O])
def test_minimax_pruning_matches_plain_minimax(engine):
    ai = MinimaxAI(player=engine, opponent=engine.opponent())
    for board in _reachable_open_boards():
        expected = _plain_minimax(board, engine, engine.opponent())
        assert ai.search(board) == expected, board


@pytest.mark.parametrize("engine_first", [True, False])
def test_minimax_never_loses(engine_first):
    ai = MinimaxAI(player=X if engine_first else O, opponent=O if engine_first else X)
    for final in _outcomes([None] * 9, X, ai):
        assert not has_won(final, ai.opponent)


def test_minimax_draws_itself():
    board = [None] * 9
    player = X
    engines = {X: MinimaxAI(player=X, opponent=O), O: MinimaxAI(player=O, opponent=X)}
    while winner(board) is None and not is_draw(board):
        board[engines[player].choose(board)] = player
        player = player.opponent()
    assert is_draw(board)


# ---------- Move selection ----------


def test_select_move_dispatches_by_difficulty():
    board = ["X", "X", None, "O", "O", None, None, None, None]
    assert select_move(board, Difficulty.STRATEGIC, O, X) == 5
    assert select_move(board, Difficulty.EXPERT, O, X) == 5
    casual = select_move(board, Difficulty.CASUAL, O, X, rng=ScriptedRandom(0.9))
    assert casual == 2


def test_select_move_accepts_string_settings():
    board = [None] * 9
    assert select_move(board, "medium", "X", "O") == 4


def test_select_move_is_reproducible_with_seeded_source():
    board = [None, None, None, None, "X", None, None, None, None]
    picks = {
        select_move(board, Difficulty.CASUAL, O, X, rng=random.Random(42))
        for _ in range(5)
    }
    assert len(picks) == 1


def test_select_move_rejects_full_board():
    board = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]
    with pytest.raises(NoMoveAvailable):
        select_move(board, Difficulty.EXPERT, O, X)


def test_select_move_rejects_decided_board():
    board = ["X", "X", "X", "O", "O", None, None, None, None]
    with pytest.raises(NoMoveAvailable):
        select_move(board, Difficulty.STRATEGIC, O, X)


def test_select_move_rejects_malformed_board():
    with pytest.raises(InvalidBoard):
        select_move(["X", None], Difficulty.EXPERT, O, X)
    with pytest.raises(InvalidBoard):
        select_move(["?"] + [None] * 8, Difficulty.EXPERT, O, X)


def test_select_move_rejects_matching_marks():
    with pytest.raises(ValueError):
        select_move([None] * 9, Difficulty.CASUAL, X, X)


def test_select_move_does_not_mutate_input():
    board = ["X", None, None, None, "O", None, None, None, None]
    snapshot = list(board)
    for difficulty in Difficulty:
        select_move(board, difficulty, X, O, rng=random.Random(0))
    assert board == snapshot


def test_select_move_accepts_lowercase_marks():
    board = ["x", "x", None, None, "o", None, None, None, None]
    assert select_move(board, Difficulty.STRATEGIC, "o", "x") == 2


def test_select_move_rejects_unknown_mark():
    with pytest.raises(ValueError):
        select_move([None] * 9, Difficulty.CASUAL, "Z", X)


def test_random_policies_default_to_own_random_source():
    casual = CasualAI(player=X, opponent=O)
    strategic = StrategicAI(player=X, opponent=O)
    assert isinstance(casual.rng, random.Random)
    assert isinstance(strategic.rng, random.Random)
    assert casual.rng is not strategic.rng
