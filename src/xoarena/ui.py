"""FastAPI JSON interface driving XO Arena tournaments."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .clock import MatchClock
from .config import Settings
from .game import Cell, Difficulty, Event, GameMode, Tournament
from .stats import StatisticsAggregator

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active tournament and its optional clock."""

    tournament: Tournament
    clock: Optional[MatchClock] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SETTINGS = Settings.from_env()
SESSIONS: Dict[str, GameSession] = {}
STATISTICS = StatisticsAggregator()
STATS_LOCK = threading.Lock()
# Scales the AI's artificial thinking pause; tests set it to 0.
AI_THINK_SCALE: float = SETTINGS.think_delay_scale

app = FastAPI(title="XO Arena", description="Eight-board tic-tac-toe tournaments")


def _record_statistics(event: Event) -> None:
    with STATS_LOCK:
        STATISTICS(event)


class NewGameRequest(BaseModel):
    """Request payload for starting a new tournament."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = GameMode.AI_OPPONENT
    difficulty: Optional[Difficulty] = Field(
        default=None, description="AI strength; defaults to the configured preference"
    )
    human_symbol: Literal["X", "O"] = Field(default="X", alias="humanSymbol")
    timed: bool = Field(default=True, description="Run a countdown for each player")
    shared_clock: bool = Field(
        default=False,
        alias="sharedClock",
        description="Use one match-wide countdown decided by score",
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing tournament."""

    model_config = ConfigDict(populate_by_name=True)

    board_index: int = Field(alias="boardIndex", ge=0, le=7)
    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class ModeRequest(BaseModel):
    """Request payload for switching game mode (restarts the tournament)."""

    mode: GameMode
    difficulty: Optional[Difficulty] = None


def _ensure_mode_allowed(mode: GameMode) -> None:
    if mode is GameMode.PLAYER_VS_PLAYER and not SETTINGS.pvp_unlocked:
        raise HTTPException(status_code=403, detail="Player vs player is locked")


def _create_session(request: NewGameRequest) -> Tuple[str, GameSession]:
    """Create a new tournament session and register it for later access."""

    tournament = Tournament(
        mode=request.mode,
        difficulty=request.difficulty or SETTINGS.difficulty,
        human_symbol=Cell(request.human_symbol),
        win_threshold=SETTINGS.win_threshold,
    )
    tournament.subscribe(_record_statistics)
    clock = None
    if request.timed:
        clock = MatchClock(
            tournament,
            initial_time=int(SETTINGS.game_duration),
            shared=request.shared_clock,
        )
    session = GameSession(tournament=tournament, clock=clock)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Started tournament %s (%s, %s)",
        session_id,
        tournament.mode.value,
        tournament.difficulty.value,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(game_id: str, delay: float) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, delay))

    with session.lock:
        if session.clock:
            session.clock.sync()
        result = session.tournament.play_ai_turn()
        if not result:
            logger.debug("Skipped AI turn for %s: %s", game_id, result.reason)


def _schedule_ai_turn(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    # Caller holds the session lock.
    if background_tasks is None or not session.tournament.begin_ai_turn():
        return
    delay = session.tournament.ai.think_delay() * AI_THINK_SCALE
    background_tasks.add_task(_run_ai_turn, game_id, delay)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        if session.clock:
            session.clock.sync()
        state: Dict[str, object] = {"id": game_id}
        state.update(session.tournament.snapshot())
        state["clock"] = session.clock.to_dict() if session.clock else None
        if state["moveLog"]:
            state["lastMove"] = state["moveLog"][-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    board_index: int,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        tournament = session.tournament
        if session.clock:
            session.clock.sync()
        result = tournament.apply_move(board_index, cell_index)
        if not result:
            raise HTTPException(status_code=400, detail=result.reason)
        _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    _ensure_mode_allowed(request.mode)
    game_id, session = _create_session(request)
    with session.lock:
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(
        game_id, session, request.board_index, request.cell_index, background_tasks
    )
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.tournament.reset()
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/mode")
def set_mode(
    game_id: str, request: ModeRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    _ensure_mode_allowed(request.mode)
    session = _get_session(game_id)
    with session.lock:
        session.tournament.set_mode(request.mode, request.difficulty)
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


def _serialize_statistics() -> Dict[str, object]:
    with STATS_LOCK:
        return {p.value: STATISTICS.summary(p) for p in (Cell.X, Cell.O)}


@app.get("/api/stats")
def get_statistics() -> Dict[str, object]:
    return _serialize_statistics()


@app.delete("/api/stats")
def reset_statistics() -> Dict[str, object]:
    with STATS_LOCK:
        STATISTICS.reset_statistics()
    return _serialize_statistics()
