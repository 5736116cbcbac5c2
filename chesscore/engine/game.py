from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .board import PIECE_POINTS, Board, Color, PieceType
from .errors import GameOverError, IllegalMove, NothingToUndo
from .executor import MoveRecord, make_move, unmake_move
from .move import Move, Square
from .rules import generate_legal_moves, is_legal_move, legal_moves_from
from .status import GameStatus, compute_status

logger = logging.getLogger(__name__)


class GameMode(Enum):
    TWO_PLAYER = "two_player"
    AI = "ai"


@dataclass
class Score:
    """Captured-material points per side (P1 N3 B3 R5 Q9)."""

    white: int = 0
    black: int = 0

    def add(self, capturer: Color, points: int) -> None:
        if capturer is Color.WHITE:
            self.white += points
        else:
            self.black += points

    def credit(self, record: MoveRecord) -> None:
        if record.captured is not None:
            self.add(record.captured.color.opponent, PIECE_POINTS[record.captured.kind])

    def debit(self, record: MoveRecord) -> None:
        if record.captured is not None:
            self.add(record.captured.color.opponent, -PIECE_POINTS[record.captured.kind])

    @classmethod
    def from_history(cls, records: Iterable[MoveRecord]) -> "Score":
        score = cls()
        for rec in records:
            score.credit(rec)
        return score


@dataclass(frozen=True)
class MoveApplied:
    """Side effects of an applied move, for the UI to render."""

    move: Move
    record: MoveRecord
    captured: Optional[PieceType]
    castled: bool
    promoted: bool
    en_passant: bool
    status: GameStatus


@dataclass(frozen=True)
class Reverted:
    record: MoveRecord
    status: GameStatus


@dataclass
class Game:
    """Authoritative game: board, move history, scores and status.

    Responsibility: validate and apply moves, undo them, and track the
    terminal result. All mutations go through this class and bump
    ``board_generation`` so that stale search results can be discarded.
    """

    board: Board
    mode: GameMode = GameMode.TWO_PLAYER
    ai_color: Color = Color.BLACK
    history: List[MoveRecord] = field(default_factory=list)
    score: Score = field(default_factory=Score)
    status: GameStatus = field(default_factory=GameStatus)
    board_generation: int = 0
    last_ai_move: Optional[Move] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @classmethod
    def new(cls, mode: GameMode = GameMode.TWO_PLAYER, ai_color: Color = Color.BLACK) -> "Game":
        return cls(board=Board.startpos(), mode=mode, ai_color=ai_color)

    @classmethod
    def from_fen(
        cls, fen: str, mode: GameMode = GameMode.TWO_PLAYER, ai_color: Color = Color.BLACK
    ) -> "Game":
        game = cls(board=Board.from_fen(fen), mode=mode, ai_color=ai_color)
        game.status = compute_status(game.board)
        return game

    def to_fen(self) -> str:
        return self.board.to_fen()

    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    @property
    def is_over(self) -> bool:
        return self.status.is_terminal

    def new_game(self) -> None:
        """Reset to the starting position, keeping mode and AI color."""
        with self.lock:
            self.board = Board.startpos()
            self.history.clear()
            self.score = Score()
            self.status = GameStatus()
            self.last_ai_move = None
            self.board_generation += 1
        logger.info("new game", extra={"mode": self.mode.value})

    def snapshot(self) -> tuple[Board, int]:
        """Return a private board copy and the generation it was taken at."""
        with self.lock:
            return self.board.copy(), self.board_generation

    # --- Queries ---
    def is_legal_move(self, frm: Square, to: Square) -> bool:
        with self.lock:
            return not self.is_over and is_legal_move(self.board, frm, to)

    def legal_moves(self) -> List[Move]:
        with self.lock:
            if self.is_over:
                return []
            return generate_legal_moves(self.board)

    def legal_moves_from(self, sq: Square) -> List[Move]:
        with self.lock:
            piece = self.board.piece_at(sq)
            if self.is_over or piece is None or piece.color is not self.board.side_to_move:
                return []
            return legal_moves_from(self.board, sq)

    def is_ai_turn(self) -> bool:
        return self.mode is GameMode.AI and self.board.side_to_move is self.ai_color

    def move_history_uci(self) -> List[str]:
        return [rec.move.to_uci() for rec in self.history]

    # --- Mutations ---
    def apply_move(self, move: Move, *, by_ai: bool = False) -> MoveApplied:
        """Validate and apply ``move`` for the side to move.

        Raises:
            GameOverError: If checkmate or stalemate has already been reached.
            IllegalMove: If the move is not legal. The game is unchanged.
        """
        with self.lock:
            if self.is_over:
                raise GameOverError()
            if not is_legal_move(self.board, move.from_sq, move.to_sq):
                logger.debug("rejected illegal move %s", move.to_uci())
                raise IllegalMove(f"illegal move: {move.to_uci()}")
            record = make_move(self.board, move)
            self.history.append(record)
            self.score.credit(record)
            self.board_generation += 1
            if by_ai:
                self.last_ai_move = move
            self.status = compute_status(self.board)

        logger.info("move %s", move.to_uci(), extra={"by_ai": by_ai})
        if self.status.checkmate:
            winner = self.status.winner.name.lower() if self.status.winner else "none"
            logger.info("checkmate, %s wins", winner)
        elif self.status.stalemate:
            logger.info("stalemate")
        return MoveApplied(
            move=move,
            record=record,
            captured=record.captured.kind if record.captured else None,
            castled=record.castling is not None,
            promoted=record.promoted,
            en_passant=record.en_passant,
            status=self.status,
        )

    def undo_last_move(self) -> Reverted:
        """Revert the most recent move, including a game-ending one.

        Raises:
            NothingToUndo: If the history is empty.
        """
        with self.lock:
            if not self.history:
                raise NothingToUndo()
            record = self.history.pop()
            unmake_move(self.board, record)
            self.score.debit(record)
            self.board_generation += 1
            if self.last_ai_move == record.move:
                self.last_ai_move = None
            self.status = compute_status(self.board)
        logger.info("undo %s", record.move.to_uci())
        return Reverted(record=record, status=self.status)

    def undo_turn(self) -> List[Reverted]:
        """Undo one ply, or two in AI mode so the human is to move again."""
        with self.lock:
            reverted = [self.undo_last_move()]
            if self.mode is GameMode.AI and self.history and self.is_ai_turn():
                reverted.append(self.undo_last_move())
            return reverted
