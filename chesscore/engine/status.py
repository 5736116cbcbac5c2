from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attacks import is_king_in_check
from .board import Board, Color
from .rules import has_any_legal_move


@dataclass(frozen=True)
class GameStatus:
    in_check: bool = False
    checkmate: bool = False
    stalemate: bool = False
    winner: Optional[Color] = None

    @property
    def is_terminal(self) -> bool:
        return self.checkmate or self.stalemate


def compute_status(board: Board) -> GameStatus:
    """Return check/checkmate/stalemate for the side to move on ``board``."""
    side = board.side_to_move
    in_check = is_king_in_check(board, side)
    if has_any_legal_move(board, side):
        return GameStatus(in_check=in_check)
    if in_check:
        return GameStatus(in_check=True, checkmate=True, winner=side.opponent)
    return GameStatus(stalemate=True)
