"""Per-player statistics derived from tournament events."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional
import logging

from .game import (
    BoardCompleted,
    Cell,
    Event,
    GameMode,
    MoveApplied,
    Outcome,
    TournamentOver,
)

logger = logging.getLogger(__name__)

CENTER = 4
CORNERS = (0, 2, 6, 8)

WIN, LOSS, DRAW = "win", "loss", "draw"


def position_category(cell_index: int) -> str:
    if cell_index == CENTER:
        return "center"
    if cell_index in CORNERS:
        return "corner"
    return "edge"


@dataclass
class PlayerStats:
    total_games: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    vs_ai_games: int = 0
    vs_ai_wins: int = 0
    vs_ai_losses: int = 0
    vs_ai_draws: int = 0
    vs_player_games: int = 0
    vs_player_wins: int = 0
    vs_player_losses: int = 0
    vs_player_draws: int = 0
    timeout_losses: int = 0

    total_moves: int = 0
    total_move_time: float = 0.0
    fastest_move: Optional[float] = None
    center_moves: int = 0
    corner_moves: int = 0
    edge_moves: int = 0

    boards_played: int = 0
    boards_won: int = 0
    bonus_points: int = 0
    penalty_points: int = 0

    current_win_streak: int = 0
    longest_win_streak: int = 0
    comeback_wins: int = 0
    last_result: Optional[str] = None

    @property
    def average_move_time(self) -> float:
        return self.total_move_time / self.total_moves if self.total_moves else 0.0

    @property
    def win_rate(self) -> float:
        return self.wins / self.total_games * 100 if self.total_games else 0.0

    @property
    def draw_rate(self) -> float:
        return self.draws / self.total_games * 100 if self.total_games else 0.0

    @property
    def board_win_rate(self) -> float:
        return self.boards_won / self.boards_played * 100 if self.boards_played else 0.0

    def most_common_move(self) -> str:
        counts = {
            "center": self.center_moves,
            "corner": self.corner_moves,
            "edge": self.edge_moves,
        }
        return max(counts, key=counts.__getitem__)

    # ---- updates ----

    def record_move(self, cell_index: int, move_time: float) -> None:
        self.total_moves += 1
        self.total_move_time += move_time
        if self.fastest_move is None or move_time < self.fastest_move:
            self.fastest_move = move_time
        category = position_category(cell_index)
        setattr(self, f"{category}_moves", getattr(self, f"{category}_moves") + 1)

    def record_result(self, result: str, vs_ai: bool) -> None:
        prefix = "vs_ai" if vs_ai else "vs_player"
        plural = {WIN: "wins", LOSS: "losses", DRAW: "draws"}[result]
        self.total_games += 1
        setattr(self, plural, getattr(self, plural) + 1)
        setattr(self, f"{prefix}_games", getattr(self, f"{prefix}_games") + 1)
        setattr(self, f"{prefix}_{plural}", getattr(self, f"{prefix}_{plural}") + 1)

        if result == WIN:
            if self.last_result == LOSS:
                self.comeback_wins += 1
            self.current_win_streak += 1
            self.longest_win_streak = max(self.longest_win_streak, self.current_win_streak)
        else:
            self.current_win_streak = 0
        self.last_result = result


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class StatisticsAggregator:
    """Tournament listener keeping one ``PlayerStats`` record per symbol.

    Subscribe it with ``tournament.subscribe(aggregator)``. It only reads
    events and never touches the tournament, and resetting a tournament does
    not clear it; call ``reset_statistics`` for that.
    """

    def __init__(self) -> None:
        self.players: Dict[Cell, PlayerStats] = {}
        self.reset_statistics()

    def reset_statistics(self) -> None:
        self.players = {Cell.X: PlayerStats(), Cell.O: PlayerStats()}

    def __getitem__(self, player: Cell) -> PlayerStats:
        return self.players[Cell(player)]

    def __call__(self, event: Event) -> None:
        if isinstance(event, MoveApplied):
            self.players[event.player].record_move(event.cell_index, event.move_time)
        elif isinstance(event, BoardCompleted):
            self._on_board_completed(event)
        elif isinstance(event, TournamentOver):
            self._on_tournament_over(event)

    def _on_board_completed(self, event: BoardCompleted) -> None:
        for stats in self.players.values():
            stats.boards_played += 1
        if event.winner is None:
            for stats in self.players.values():
                stats.penalty_points += 1
            return
        self.players[event.winner].boards_won += 1
        self.players[event.winner].bonus_points += 1
        self.players[event.winner.opponent].penalty_points += 1

    def _on_tournament_over(self, event: TournamentOver) -> None:
        vs_ai = event.mode is GameMode.AI_OPPONENT
        for player, stats in self.players.items():
            if event.winner is Outcome.DRAW:
                result = DRAW
            elif event.winner.value == player.value:
                result = WIN
            else:
                result = LOSS
                if event.reason == "timeout":
                    stats.timeout_losses += 1
            stats.record_result(result, vs_ai)
        logger.debug("Recorded tournament result %s", event.winner.value)

    # ---- views ----

    def summary(self, player: Cell) -> Dict[str, object]:
        stats = self[player]
        data: Dict[str, object] = {
            _camel(k): v for k, v in asdict(stats).items() if k != "last_result"
        }
        data.update(
            averageMoveTime=stats.average_move_time,
            winRate=stats.win_rate,
            drawRate=stats.draw_rate,
            boardWinRate=stats.board_win_rate,
            mostCommonMove=stats.most_common_move(),
        )
        return data

    def export(self) -> Dict[str, object]:
        return {
            "version": 1,
            "stats": {p.value: asdict(s) for p, s in self.players.items()},
        }

    def load(self, data: Dict[str, object]) -> None:
        """Restore counters saved by ``export``; unknown keys are ignored."""
        stats = data.get("stats")
        if not isinstance(stats, dict):
            raise ValueError("Statistics payload has no 'stats' mapping")
        known = {f.name for f in fields(PlayerStats)}
        players = {}
        for player in (Cell.X, Cell.O):
            raw = stats.get(player.value) or {}
            players[player] = PlayerStats(**{k: v for k, v in raw.items() if k in known})
        self.players = players
