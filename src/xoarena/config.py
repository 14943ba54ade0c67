"""Runtime settings for the XO Arena server, read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Mapping, Optional, TypeVar
import logging
import os

from .game import WIN_THRESHOLD, Difficulty

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}

T = TypeVar("T")


class GameDuration(IntEnum):
    ONE_MINUTE = 60
    THREE_MINUTES = 180
    FIVE_MINUTES = 300


def _parse(
    env: Mapping[str, str], name: str, convert: Callable[[str], T], default: T
) -> T:
    """Convert ``env[name]``, falling back to ``default`` when unset or invalid."""
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %r", name, raw, default)
        return default


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError(f"{value} is not positive")
    return value


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    pvp_unlocked: bool = False
    difficulty: Difficulty = Difficulty.MEDIUM
    game_duration: GameDuration = GameDuration.ONE_MINUTE
    win_threshold: int = WIN_THRESHOLD
    # Multiplier on the AI's artificial thinking pause; 0 disables it.
    think_delay_scale: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read ``XOARENA_*`` variables; invalid values fall back to the defaults."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("XOARENA_HOST", cls.host),
            port=_parse(env, "XOARENA_PORT", _positive_int, cls.port),
            pvp_unlocked=env.get("XOARENA_PVP_UNLOCKED", "").strip().lower() in _TRUE,
            difficulty=_parse(
                env,
                "XOARENA_DIFFICULTY",
                lambda raw: Difficulty(raw.lower()),
                cls.difficulty,
            ),
            game_duration=_parse(
                env,
                "XOARENA_GAME_DURATION",
                lambda raw: GameDuration(int(raw)),
                cls.game_duration,
            ),
            win_threshold=_parse(
                env, "XOARENA_WIN_THRESHOLD", _positive_int, cls.win_threshold
            ),
            think_delay_scale=_parse(
                env,
                "XOARENA_THINK_DELAY_SCALE",
                lambda raw: max(0.0, float(raw)),
                cls.think_delay_scale,
            ),
            log_level=env.get("XOARENA_LOG_LEVEL", cls.log_level).upper(),
        )
