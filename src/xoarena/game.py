"""Core rules for XO Arena: single boards and the eight-board tournament."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Union
import logging
import time

logger = logging.getLogger(__name__)

BOARD_COUNT = 8
CELL_COUNT = 9
# Board wins needed to take the tournament.
WIN_THRESHOLD = 3

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


class Cell(str, Enum):
    EMPTY = ""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Cell":
        if self is Cell.X:
            return Cell.O
        if self is Cell.O:
            return Cell.X
        raise ValueError("Empty cell has no opponent")


class Outcome(str, Enum):
    X = "X"
    O = "O"
    DRAW = "Draw"

    @classmethod
    def for_player(cls, player: Cell) -> "Outcome":
        return cls(player.value)


class GameMode(str, Enum):
    AI_OPPONENT = "aiOpponent"
    PLAYER_VS_PLAYER = "playerVsPlayer"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Rotation(str, Enum):
    """When the active board moves on to the next one."""

    ON_COMPLETION = "onCompletion"
    EVERY_ROUND = "everyRound"
    EVERY_MOVE = "everyMove"


class InvalidMove(ValueError):
    """Raised when a placement would break the rules of a board."""


class AIUnavailable(RuntimeError):
    """Raised when the AI is asked to move on a board with no empty cell."""


# ---------- Board ----------


@dataclass
class Board:
    cells: List[Cell] = field(default_factory=lambda: [Cell.EMPTY] * CELL_COUNT)

    @classmethod
    def from_cells(cls, cells: Iterable[Union[Cell, str]]) -> "Board":
        """Build a board from ``Cell`` values or their ``"X"/"O"/""`` strings."""
        values = [Cell(c) for c in cells]
        if len(values) != CELL_COUNT:
            raise ValueError(f"A board has {CELL_COUNT} cells, got {len(values)}")
        return cls(cells=values)

    def copy(self) -> "Board":
        return Board(cells=self.cells.copy())

    def is_empty(self, idx: int) -> bool:
        return self.cells[idx] is Cell.EMPTY

    def empty_cells(self) -> List[int]:
        return [i for i, c in enumerate(self.cells) if c is Cell.EMPTY]

    def is_full(self) -> bool:
        return all(c is not Cell.EMPTY for c in self.cells)

    def winning_line(self) -> Optional[Tuple[int, int, int]]:
        for line in WINNING_LINES:
            a, b, c = line
            v = self.cells[a]
            if v is not Cell.EMPTY and v == self.cells[b] == self.cells[c]:
                return line
        return None

    def winner(self) -> Optional[Cell]:
        line = self.winning_line()
        return self.cells[line[0]] if line else None

    def is_draw(self) -> bool:
        return self.winner() is None and self.is_full()

    def is_finished(self) -> bool:
        return self.winner() is not None or self.is_full()

    def place(self, idx: int, player: Cell) -> None:
        if player is Cell.EMPTY:
            raise InvalidMove("Only X or O can be placed")
        if not 0 <= idx < CELL_COUNT:
            raise InvalidMove(f"Cell index {idx} is outside the board")
        if self.is_finished():
            raise InvalidMove("Board already resolved")
        if self.cells[idx] is not Cell.EMPTY:
            raise InvalidMove("Cell already occupied")
        self.cells[idx] = player

    def clear(self, idx: int) -> None:
        # Undo for hypothetical placements made during search.
        self.cells[idx] = Cell.EMPTY

    def reset(self) -> None:
        self.cells = [Cell.EMPTY] * CELL_COUNT


# ---------- Events ----------


@dataclass(frozen=True)
class MoveApplied:
    player: Cell
    board_index: int
    cell_index: int
    move_time: float
    by_ai: bool
    mode: GameMode


@dataclass(frozen=True)
class BoardCompleted:
    board_index: int
    # None means the board was drawn
    winner: Optional[Cell]
    mode: GameMode


@dataclass(frozen=True)
class TournamentOver:
    winner: Outcome
    reason: str
    score: "Score"
    mode: GameMode


@dataclass(frozen=True)
class TournamentReset:
    mode: GameMode


Event = Union[MoveApplied, BoardCompleted, TournamentOver, TournamentReset]
Listener = Callable[[Event], None]


# ---------- Tournament ----------


@dataclass
class Score:
    x: int = 0
    o: int = 0

    def credit(self, player: Cell) -> None:
        if player is Cell.X:
            self.x += 1
        elif player is Cell.O:
            self.o += 1

    def of(self, player: Cell) -> int:
        return self.x if player is Cell.X else self.o

    def to_dict(self) -> dict:
        return {"x": self.x, "o": self.o}


@dataclass(frozen=True)
class MoveResult:
    accepted: bool
    reason: Optional[str] = None
    # Set when the move finished its board: the winner, or None for a draw.
    completed: bool = False
    board_winner: Optional[Cell] = None

    def __bool__(self) -> bool:
        return self.accepted


def _rejected(reason: str) -> MoveResult:
    logger.debug("Move rejected: %s", reason)
    return MoveResult(accepted=False, reason=reason)


class Tournament:
    """Eight boards played in rotation; the sole entry point for moves.

    Only the active board accepts moves. A board that is won scores a point
    for its winner and is cleared immediately, as is a drawn board, and play
    moves on to the next board. With ``Rotation.EVERY_ROUND`` play also moves
    on after each X/O pair of moves, and with ``Rotation.EVERY_MOVE`` after
    every accepted move. The first player to reach ``win_threshold`` board
    wins takes the tournament. A ``difficulty`` given alongside an injected
    ``ai`` is applied to it.
    """

    def __init__(
        self,
        mode: GameMode = GameMode.AI_OPPONENT,
        difficulty: Optional[Difficulty] = None,
        human_symbol: Cell = Cell.X,
        win_threshold: int = WIN_THRESHOLD,
        rotation: Rotation = Rotation.ON_COMPLETION,
        ai=None,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        if human_symbol is Cell.EMPTY:
            raise ValueError("Human symbol must be X or O")
        if win_threshold < 1:
            raise ValueError("Win threshold must be positive")
        self.mode = GameMode(mode)
        self.human_symbol = human_symbol
        self.win_threshold = win_threshold
        self.rotation = Rotation(rotation)
        self._time_source = time_source
        self._listeners: List[Listener] = []
        if ai is None:
            from .ai import TicTacToeAI

            ai = TicTacToeAI(
                symbol=human_symbol.opponent,
                difficulty=difficulty or Difficulty.MEDIUM,
            )
        elif difficulty is not None:
            ai.difficulty = Difficulty(difficulty)
        self.ai = ai
        self._reset_state()

    # ---- state ----

    def _reset_state(self) -> None:
        self.boards: List[Board] = [Board() for _ in range(BOARD_COUNT)]
        self.board_scores: List[Score] = [Score() for _ in range(BOARD_COUNT)]
        self.total_score = Score()
        self.current_board_index = 0
        self.current_player = Cell.X
        self.game_over = False
        self.winner: Optional[Outcome] = None
        self.end_reason: Optional[str] = None
        self.ai_thinking = False
        self.move_log: List[Tuple[Cell, int, int]] = []
        self._last_move_at = self._time_source()

    @property
    def difficulty(self) -> Difficulty:
        return self.ai.difficulty

    @property
    def ai_symbol(self) -> Cell:
        return self.human_symbol.opponent

    @property
    def current_board(self) -> Board:
        return self.boards[self.current_board_index]

    @property
    def is_ai_turn(self) -> bool:
        return (
            self.mode is GameMode.AI_OPPONENT
            and not self.game_over
            and self.current_player is self.ai_symbol
        )

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ---- moves ----

    def apply_move(self, board_index: int, cell_index: int) -> MoveResult:
        """Apply a move for the player to move on the active board."""
        if self.ai_thinking:
            return _rejected("AI is completing its move")
        if self.is_ai_turn:
            return _rejected("It is the AI's turn")
        return self._apply(board_index, cell_index, by_ai=False)

    def _apply(self, board_index: int, cell_index: int, by_ai: bool) -> MoveResult:
        if self.game_over:
            return _rejected("Tournament already finished")
        if not 0 <= board_index < BOARD_COUNT:
            return _rejected(f"Board index {board_index} is outside the tournament")
        if board_index != self.current_board_index:
            return _rejected(f"Board {self.current_board_index} is the active board")

        board = self.boards[board_index]
        player = self.current_player
        try:
            board.place(cell_index, player)
        except InvalidMove as exc:
            return _rejected(str(exc))

        now = self._time_source()
        move_time = max(0.0, now - self._last_move_at)
        self._last_move_at = now
        self.move_log.append((player, board_index, cell_index))
        logger.debug("%s played cell %d on board %d", player.value, cell_index, board_index)
        self._emit(
            MoveApplied(
                player=player,
                board_index=board_index,
                cell_index=cell_index,
                move_time=move_time,
                by_ai=by_ai,
                mode=self.mode,
            )
        )
        if self.game_over:
            # A listener ended the tournament (the mover's clock ran out).
            return MoveResult(accepted=True)

        board_winner = board.winner()
        completed = board_winner is not None or board.is_draw()
        if board_winner is not None:
            self.board_scores[board_index].credit(board_winner)
            self.total_score.credit(board_winner)
            logger.info(
                "%s won board %d (score %d:%d)",
                board_winner.value,
                board_index,
                self.total_score.x,
                self.total_score.o,
            )
        elif completed:
            logger.info("Board %d drawn", board_index)
        if completed:
            self._emit(BoardCompleted(board_index, board_winner, self.mode))
            board.reset()

        if board_winner is not None and self.total_score.of(board_winner) >= self.win_threshold:
            self._finish(Outcome.for_player(board_winner), "victory")
        else:
            self._advance(board_index, completed)

        return MoveResult(accepted=True, completed=completed, board_winner=board_winner)

    def _advance(self, board_index: int, completed: bool) -> None:
        mover = self.current_player
        self.current_player = mover.opponent
        if (
            completed
            or self.rotation is Rotation.EVERY_MOVE
            or (self.rotation is Rotation.EVERY_ROUND and mover is Cell.O)
        ):
            self.current_board_index = (board_index + 1) % BOARD_COUNT

    def _finish(self, winner: Outcome, reason: str) -> None:
        self.game_over = True
        self.winner = winner
        self.end_reason = reason
        self.ai_thinking = False
        logger.info("Tournament over: %s (%s)", winner.value, reason)
        self._emit(
            TournamentOver(
                winner=winner,
                reason=reason,
                score=Score(self.total_score.x, self.total_score.o),
                mode=self.mode,
            )
        )

    # ---- AI orchestration ----

    def begin_ai_turn(self) -> bool:
        """Mark the AI as thinking if it is due to move; return whether it is."""
        if not self.is_ai_turn or self.ai_thinking:
            return False
        self.ai_thinking = True
        return True

    def play_ai_turn(self) -> MoveResult:
        """Let the AI pick a cell on the active board and apply it."""
        self.ai_thinking = False
        if not self.is_ai_turn:
            return _rejected("It is not the AI's turn")
        board_index = self.current_board_index
        try:
            cell = self.ai.select(self.current_board)
        except AIUnavailable:
            logger.warning("AI had no move on board %d; treating it as drawn", board_index)
            return self._complete_unplayable(board_index)
        return self._apply(board_index, cell, by_ai=True)

    def _complete_unplayable(self, board_index: int) -> MoveResult:
        self._emit(BoardCompleted(board_index, None, self.mode))
        self.boards[board_index].reset()
        self._advance(board_index, True)
        return MoveResult(accepted=True, completed=True)

    # ---- lifecycle ----

    def reset(self) -> None:
        self._reset_state()
        self._emit(TournamentReset(self.mode))

    def set_mode(self, mode: GameMode, difficulty: Optional[Difficulty] = None) -> None:
        self.mode = GameMode(mode)
        if difficulty is not None:
            self.ai.difficulty = Difficulty(difficulty)
        self.reset()

    def forfeit(self, player: Cell) -> None:
        """End the tournament because ``player`` ran out of time."""
        if self.game_over:
            return
        self._finish(Outcome.for_player(player.opponent), "timeout")

    def expire(self) -> None:
        """End the tournament on a shared time budget, decided by score."""
        if self.game_over:
            return
        x, o = self.total_score.x, self.total_score.o
        if x == o:
            winner = Outcome.DRAW
        else:
            winner = Outcome.X if x > o else Outcome.O
        self._finish(winner, "time_up")

    # ---- views ----

    def snapshot(self) -> dict:
        return {
            "boards": [[c.value for c in b.cells] for b in self.boards],
            "currentBoardIndex": self.current_board_index,
            "currentPlayer": self.current_player.value,
            "totalScore": self.total_score.to_dict(),
            "boardScores": [s.to_dict() for s in self.board_scores],
            "gameOver": self.game_over,
            "winner": self.winner.value if self.winner else None,
            "endReason": self.end_reason,
            "mode": self.mode.value,
            "difficulty": self.difficulty.value,
            "humanSymbol": self.human_symbol.value,
            "isAIThinking": self.ai_thinking,
            "moveLog": [
                {"player": p.value, "boardIndex": b, "cellIndex": c}
                for p, b, c in self.move_log
            ],
        }
