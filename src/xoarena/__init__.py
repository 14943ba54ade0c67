"""XO Arena package exposing tournament rules, the AI opponent, and the web API."""

from .ai import TicTacToeAI
from .game import Board, Cell, Difficulty, GameMode, Tournament
from .stats import StatisticsAggregator
from .ui import app

__all__ = [
    "Board",
    "Cell",
    "Difficulty",
    "GameMode",
    "StatisticsAggregator",
    "TicTacToeAI",
    "Tournament",
    "app",
]
