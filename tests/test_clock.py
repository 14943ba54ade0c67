"""Tests for the match clock."""

import pytest

from xoarena.clock import BONUS_TIME, DRAW_PENALTY_TIME, PENALTY_TIME, MatchClock
from xoarena.game import Cell, GameMode, Outcome, Tournament

X_FIRST_WIN = (0, 4, 1, 5, 2)
X_FIRST_DRAW = (0, 1, 2, 4, 3, 5, 7, 6, 8)


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def timed(initial_time=180, shared=False):
    fake = FakeTime()
    tournament = Tournament(mode=GameMode.PLAYER_VS_PLAYER, time_source=fake)
    clock = MatchClock(tournament, initial_time=initial_time, shared=shared, time_source=fake)
    return tournament, clock, fake


def play(tournament, cells):
    for cell in cells:
        assert tournament.apply_move(tournament.current_board_index, cell)


def test_only_player_to_move_is_charged():
    tournament, clock, fake = timed()
    fake.now = 4.0
    clock.sync()
    assert clock.remaining[Cell.X] == pytest.approx(176.0)
    assert clock.remaining[Cell.O] == pytest.approx(180.0)

    play(tournament, (4,))
    fake.now = 10.0
    clock.sync()
    assert clock.remaining[Cell.X] == pytest.approx(176.0)
    assert clock.remaining[Cell.O] == pytest.approx(174.0)


def test_move_charges_the_mover_before_turn_passes():
    tournament, clock, fake = timed()
    fake.now = 3.0
    play(tournament, (4,))
    assert clock.remaining[Cell.X] == pytest.approx(177.0)
    assert clock.remaining[Cell.O] == pytest.approx(180.0)


def test_board_win_awards_bonus_and_penalty():
    tournament, clock, _ = timed()
    play(tournament, X_FIRST_WIN)
    assert clock.remaining[Cell.X] == pytest.approx(180 + BONUS_TIME)
    assert clock.remaining[Cell.O] == pytest.approx(180 - PENALTY_TIME)


def test_drawn_board_penalises_both():
    tournament, clock, _ = timed()
    play(tournament, X_FIRST_DRAW)
    assert clock.remaining[Cell.X] == pytest.approx(180 - DRAW_PENALTY_TIME)
    assert clock.remaining[Cell.O] == pytest.approx(180 - DRAW_PENALTY_TIME)


def test_penalty_never_goes_below_zero():
    tournament, clock, _ = timed(initial_time=3)
    clock.apply_penalty(Cell.O)
    assert clock.remaining[Cell.O] == 0.0


def test_timeout_forfeits_to_opponent():
    tournament, clock, _ = timed(initial_time=30)
    clock.tick(30)
    assert tournament.game_over
    assert tournament.winner is Outcome.O
    assert tournament.end_reason == "timeout"
    assert clock.expired_player is Cell.X
    assert not tournament.apply_move(0, 0)


def test_running_out_during_a_move_ends_tournament():
    tournament, clock, fake = timed(initial_time=5)
    fake.now = 6.0
    result = tournament.apply_move(0, 4)
    assert result
    assert tournament.game_over
    assert tournament.winner is Outcome.O


def test_clock_stops_after_tournament_over():
    tournament, clock, _ = timed()
    tournament.forfeit(Cell.X)
    clock.tick(50)
    assert clock.remaining[Cell.O] == pytest.approx(180.0)


def test_shared_budget_decides_by_score():
    tournament, clock, _ = timed(initial_time=60, shared=True)
    play(tournament, X_FIRST_WIN)
    assert clock.remaining[Cell.X] == pytest.approx(60.0)

    clock.tick(60)

    assert tournament.game_over
    assert tournament.winner is Outcome.X
    assert tournament.end_reason == "time_up"


def test_shared_budget_tie_is_a_draw():
    tournament, clock, _ = timed(initial_time=60, shared=True)
    clock.tick(61)
    assert tournament.winner is Outcome.DRAW


def test_tournament_reset_restores_time():
    tournament, clock, _ = timed()
    play(tournament, X_FIRST_WIN)
    clock.tick(20)
    tournament.reset()
    assert clock.remaining == {Cell.X: 180.0, Cell.O: 180.0}
    assert clock.to_dict() == {"mode": "perPlayer", "x": 180.0, "o": 180.0, "expired": None}
