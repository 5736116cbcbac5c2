"""Attack and check detection.

Attack detection uses basic movement only: a piece attacks a square if it
could move there ignoring whether that would expose its own king.
"""

from __future__ import annotations

import logging
from typing import Optional

from .board import Board, Color, PieceType
from .move import Square

logger = logging.getLogger(__name__)


KNIGHT_OFFSETS = ((-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
DIAGONALS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONALS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def is_square_attacked(board: Board, sq: Square, by_color: Color) -> bool:
    """Return True if any piece of ``by_color`` attacks ``sq`` on ``board``."""
    grid = board.grid
    r, c = sq.row, sq.col

    # Pawns capture one row forward; look one row "behind" sq from the attacker's view
    pr = r - by_color.forward
    if 0 <= pr < 8:
        for pc in (c - 1, c + 1):
            if 0 <= pc < 8:
                p = grid[pr][pc]
                if p is not None and p.color is by_color and p.kind is PieceType.PAWN:
                    return True

    for dr, dc in KNIGHT_OFFSETS:
        tr, tc = r + dr, c + dc
        if 0 <= tr < 8 and 0 <= tc < 8:
            p = grid[tr][tc]
            if p is not None and p.color is by_color and p.kind is PieceType.KNIGHT:
                return True

    for dr, dc in KING_OFFSETS:
        tr, tc = r + dr, c + dc
        if 0 <= tr < 8 and 0 <= tc < 8:
            p = grid[tr][tc]
            if p is not None and p.color is by_color and p.kind is PieceType.KING:
                return True

    # Sliders: the first occupied square along each ray decides
    for dirs, kinds in (
        (DIAGONALS, (PieceType.BISHOP, PieceType.QUEEN)),
        (ORTHOGONALS, (PieceType.ROOK, PieceType.QUEEN)),
    ):
        for dr, dc in dirs:
            tr, tc = r + dr, c + dc
            while 0 <= tr < 8 and 0 <= tc < 8:
                p = grid[tr][tc]
                if p is not None:
                    if p.color is by_color and p.kind in kinds:
                        return True
                    break
                tr += dr
                tc += dc

    return False


def find_king(board: Board, color: Color) -> Optional[Square]:
    for sq, p in board.pieces(color):
        if p.kind is PieceType.KING:
            return sq
    return None


def is_king_in_check(board: Board, color: Color) -> bool:
    """Return True if ``color``'s king is attacked.

    A board without that king counts as in check so that terminal-state
    detection stays total on anomalous positions.
    """
    ksq = find_king(board, color)
    if ksq is None:
        logger.debug("no %s king on board; treating as in check", color.name.lower())
        return True
    return is_square_attacked(board, ksq, color.opponent)
