"""Move selection for the XO Arena AI: random, one-ply tactics, or full minimax."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import logging
import math
import random

from .game import AIUnavailable, Board, Cell, Difficulty

logger = logging.getLogger(__name__)

# Seconds the AI pretends to think before its move is applied.
THINK_DELAY: Dict[Difficulty, Tuple[float, float]] = {
    Difficulty.EASY: (0.5, 1.5),
    Difficulty.MEDIUM: (0.3, 1.1),
    Difficulty.HARD: (0.2, 0.8),
}

WIN_SCORE = 10


def think_delay(difficulty: Difficulty, rng: Optional[random.Random] = None) -> float:
    low, high = THINK_DELAY[Difficulty(difficulty)]
    return (rng or random).uniform(low, high)


# ---- tiers ----


def random_move(board: Board, rng: Optional[random.Random] = None) -> Optional[int]:
    moves = board.empty_cells()
    if not moves or board.winner() is not None:
        return None
    return (rng or random).choice(moves)


def find_winning_move(board: Board, player: Cell) -> Optional[int]:
    """Lowest empty cell that would complete a line for ``player``."""
    if board.is_finished():
        return None
    probe = board.copy()
    for idx in probe.empty_cells():
        probe.place(idx, player)
        won = probe.winner() is player
        probe.clear(idx)
        if won:
            return idx
    return None


def tactical_move(board: Board, player: Cell, rng: Optional[random.Random] = None) -> Optional[int]:
    """Win if possible, else block the opponent, else play anywhere."""
    for candidate in (player, player.opponent):
        idx = find_winning_move(board, candidate)
        if idx is not None:
            return idx
    return random_move(board, rng)


def best_move(board: Board, player: Cell) -> Optional[int]:
    """Exhaustive alpha-beta search; the first cell reaching the best score wins."""
    if board.is_finished():
        return None
    probe = board.copy()
    alpha, beta = -math.inf, math.inf
    best_score = -math.inf
    best: Optional[int] = None
    for idx in probe.empty_cells():
        probe.place(idx, player)
        score = _minimax(probe, player, player.opponent, 1, alpha, beta)
        probe.clear(idx)
        if score > best_score:
            best_score, best = score, idx
        alpha = max(alpha, best_score)
    logger.debug("Minimax picked cell %s with score %s", best, best_score)
    return best


def _minimax(
    board: Board,
    me: Cell,
    to_move: Cell,
    depth: int,
    alpha: float,
    beta: float,
) -> float:
    # Faster wins and slower losses score better.
    winner = board.winner()
    if winner is me:
        return WIN_SCORE - depth
    if winner is not None:
        return depth - WIN_SCORE
    moves = board.empty_cells()
    if not moves:
        return 0

    if to_move is me:
        value = -math.inf
        for idx in moves:
            board.place(idx, to_move)
            value = max(value, _minimax(board, me, to_move.opponent, depth + 1, alpha, beta))
            board.clear(idx)
            alpha = max(alpha, value)
            if beta <= alpha:
                break
    else:
        value = math.inf
        for idx in moves:
            board.place(idx, to_move)
            value = min(value, _minimax(board, me, to_move.opponent, depth + 1, alpha, beta))
            board.clear(idx)
            beta = min(beta, value)
            if beta <= alpha:
                break
    return value


def choose_move(
    board: Board,
    difficulty: Difficulty,
    player: Cell,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Return the cell ``player`` should take, or None on a finished board."""
    if board.is_finished():
        return None
    difficulty = Difficulty(difficulty)
    if difficulty is Difficulty.EASY:
        return random_move(board, rng)
    if difficulty is Difficulty.MEDIUM:
        return tactical_move(board, player, rng)
    return best_move(board, player)


@dataclass
class TicTacToeAI:
    """AI opponent bound to one symbol and difficulty.

    Public surface used by the tournament:
      - TicTacToeAI(symbol=Cell.O, difficulty=Difficulty.HARD)
      - choose(board) -> cell index or None
      - select(board) -> cell index, raising AIUnavailable on a finished board
    """

    symbol: Cell = Cell.O
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        self.symbol = Cell(self.symbol)
        self.difficulty = Difficulty(self.difficulty)
        if self.symbol is Cell.EMPTY:
            raise ValueError("AI symbol must be X or O")

    def choose(self, board: Board) -> Optional[int]:
        return choose_move(board, self.difficulty, self.symbol, self.rng)

    def select(self, board: Board) -> int:
        move = self.choose(board)
        if move is None:
            raise AIUnavailable("No valid moves available")
        return move

    def think_delay(self) -> float:
        return think_delay(self.difficulty, self.rng)
