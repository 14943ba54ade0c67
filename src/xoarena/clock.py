"""Tournament clocks: per-player countdown with bonuses, or one shared budget."""

from __future__ import annotations

from typing import Callable, Dict, Optional
import logging
import time

from .game import BoardCompleted, Cell, Event, MoveApplied, Tournament, TournamentReset

logger = logging.getLogger(__name__)

INITIAL_TIME = 180
BONUS_TIME = 15
PENALTY_TIME = 10
DRAW_PENALTY_TIME = 5


class MatchClock:
    """Countdown that observes a tournament and ends it when time runs out.

    In per-player mode only the player to move is charged; winning a board
    adds ``bonus_time`` to the winner and takes ``penalty_time`` from the
    loser, while a drawn board takes ``draw_penalty_time`` from both. A player
    at zero forfeits. In shared mode a single budget runs for the whole match
    and the tournament is decided by score when it is spent.
    """

    def __init__(
        self,
        tournament: Tournament,
        initial_time: float = INITIAL_TIME,
        bonus_time: float = BONUS_TIME,
        penalty_time: float = PENALTY_TIME,
        draw_penalty_time: float = DRAW_PENALTY_TIME,
        shared: bool = False,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self.tournament = tournament
        self.initial_time = float(initial_time)
        self.bonus_time = float(bonus_time)
        self.penalty_time = float(penalty_time)
        self.draw_penalty_time = float(draw_penalty_time)
        self.shared = shared
        self._time_source = time_source
        self.remaining: Dict[Cell, float] = {}
        self.expired_player: Optional[Cell] = None
        self.reset()
        tournament.subscribe(self)

    def reset(self) -> None:
        self.remaining = {Cell.X: self.initial_time, Cell.O: self.initial_time}
        self.expired_player = None
        self._last_sync = self._time_source()

    @property
    def running(self) -> bool:
        return not self.tournament.game_over

    # ---- time accounting ----

    def sync(self) -> None:
        """Charge the wall time elapsed since the previous sync."""
        now = self._time_source()
        elapsed = now - self._last_sync
        self._last_sync = now
        self.tick(elapsed)

    def tick(self, seconds: float) -> None:
        if seconds <= 0 or not self.running:
            return
        if self.shared:
            for player in self.remaining:
                self.remaining[player] = max(0.0, self.remaining[player] - seconds)
            if self.remaining[Cell.X] <= 0:
                logger.info("Match time used up")
                self.tournament.expire()
            return
        player = self.tournament.current_player
        self.remaining[player] = max(0.0, self.remaining[player] - seconds)
        if self.remaining[player] <= 0:
            self.expired_player = player
            logger.info("%s ran out of time", player.value)
            self.tournament.forfeit(player)

    def award_bonus(self, player: Cell) -> None:
        self.remaining[player] += self.bonus_time

    def apply_penalty(self, player: Cell, seconds: Optional[float] = None) -> None:
        amount = self.penalty_time if seconds is None else seconds
        self.remaining[player] = max(0.0, self.remaining[player] - amount)

    # ---- tournament listener ----

    def __call__(self, event: Event) -> None:
        if isinstance(event, MoveApplied):
            # Charge the mover up to this move before the turn passes.
            self.sync()
        elif isinstance(event, BoardCompleted) and not self.shared:
            if event.winner is None:
                for player in (Cell.X, Cell.O):
                    self.apply_penalty(player, self.draw_penalty_time)
            else:
                self.award_bonus(event.winner)
                self.apply_penalty(event.winner.opponent)
        elif isinstance(event, TournamentReset):
            self.reset()

    def to_dict(self) -> Dict[str, object]:
        return {
            "mode": "shared" if self.shared else "perPlayer",
            "x": round(self.remaining[Cell.X], 3),
            "o": round(self.remaining[Cell.O], 3),
            "expired": self.expired_player.value if self.expired_player else None,
        }
