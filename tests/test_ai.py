"""Tests for the XO Arena AI opponent."""

import random

import pytest

from xoarena.ai import (
    THINK_DELAY,
    TicTacToeAI,
    best_move,
    choose_move,
    find_winning_move,
    think_delay,
)
from xoarena.game import AIUnavailable, Board, Cell, Difficulty


def test_medium_blocks_opponent_line():
    board = Board.from_cells(["X", "X", "", "", "", "", "", "", ""])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.MEDIUM)
    assert ai.choose(board) == 2


def test_medium_prefers_winning_over_blocking():
    board = Board.from_cells(["X", "X", "", "", "O", "O", "", "", ""])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.MEDIUM)
    assert ai.choose(board) == 3


def test_medium_completes_its_own_line():
    board = Board.from_cells(["", "", "", "", "O", "O", "", "", ""])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.MEDIUM)
    assert ai.choose(board) == 3


def test_medium_takes_lowest_winning_cell():
    # O can win at 2 (top row) or at 6 (left column).
    board = Board.from_cells(["O", "O", "", "O", "X", "X", "", "X", ""])
    assert find_winning_move(board, Cell.O) == 2
    assert choose_move(board, Difficulty.MEDIUM, Cell.O) == 2


def test_medium_falls_back_to_empty_cell():
    board = Board.from_cells(["X", "", "", "", "O", "", "", "", ""])
    rng = random.Random(3)
    for _ in range(20):
        move = choose_move(board, Difficulty.MEDIUM, Cell.O, rng)
        assert board.is_empty(move)


def test_easy_only_picks_empty_cells():
    board = Board.from_cells(["X", "O", "X", "", "O", "", "", "X", ""])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.EASY, rng=random.Random(7))
    seen = {ai.choose(board) for _ in range(50)}
    assert seen <= set(board.empty_cells())
    assert len(seen) > 1


def test_hard_takes_immediate_win():
    board = Board.from_cells(["O", "O", "", "X", "X", "", "X", "", ""])
    assert best_move(board, Cell.O) == 2


def test_hard_blocks_forced_loss():
    board = Board.from_cells(["X", "", "", "", "X", "", "", "", "O"])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.HARD)
    # Both remaining corners stop a fork; 2 comes first in index order.
    assert ai.choose(board) == 2


def test_hard_answers_center_with_corner():
    board = Board.from_cells(["", "", "", "", "X", "", "", "", ""])
    assert best_move(board, Cell.O) in (0, 2, 6, 8)


def test_hard_vs_hard_is_a_draw():
    board = Board()
    players = {
        Cell.X: TicTacToeAI(symbol=Cell.X, difficulty=Difficulty.HARD),
        Cell.O: TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.HARD),
    }
    to_move = Cell.X
    while not board.is_finished():
        board.place(players[to_move].select(board), to_move)
        to_move = to_move.opponent

    assert board.winner() is None
    assert board.is_draw()


@pytest.mark.parametrize("seed", range(5))
def test_hard_never_loses_to_random_play(seed):
    rng = random.Random(seed)
    board = Board()
    to_move = Cell.X
    while not board.is_finished():
        if to_move is Cell.X:
            move = choose_move(board, Difficulty.EASY, Cell.X, rng)
        else:
            move = best_move(board, Cell.O)
        board.place(move, to_move)
        to_move = to_move.opponent

    assert board.winner() is not Cell.X


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_finished_board_has_no_move(difficulty):
    won = Board.from_cells(["X", "X", "X", "O", "O", "", "", "", ""])
    full = Board.from_cells(["X", "O", "X", "X", "O", "O", "O", "X", "X"])
    ai = TicTacToeAI(symbol=Cell.O, difficulty=difficulty)

    assert ai.choose(won) is None
    assert ai.choose(full) is None
    with pytest.raises(AIUnavailable):
        ai.select(full)


def test_search_leaves_board_untouched():
    board = Board.from_cells(["X", "", "", "", "O", "", "", "", ""])
    before = board.cells.copy()
    best_move(board, Cell.X)
    find_winning_move(board, Cell.O)
    assert board.cells == before


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_think_delay_within_range(difficulty):
    low, high = THINK_DELAY[difficulty]
    rng = random.Random(1)
    for _ in range(10):
        assert low <= think_delay(difficulty, rng) <= high


def test_ai_rejects_empty_symbol():
    with pytest.raises(ValueError):
        TicTacToeAI(symbol=Cell.EMPTY)
