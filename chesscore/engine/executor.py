from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .board import Board, Color, Piece, PieceType
from .move import BOARD_SIZE, Move, Square


@dataclass(frozen=True)
class PieceSnapshot:
    kind: PieceType
    has_moved: bool


@dataclass(frozen=True)
class CapturedSnapshot:
    kind: PieceType
    color: Color
    has_moved: bool
    square: Square

    def restore(self) -> Piece:
        return Piece(self.kind, self.color, self.has_moved)


@dataclass(frozen=True)
class CastlingSnapshot:
    rook_from: Square
    rook_to: Square
    old_has_moved: bool


@dataclass(frozen=True)
class MoveRecord:
    """Everything needed to reverse one applied move exactly.

    Attributes:
        move (Move): The move as played.
        moved (PieceSnapshot): Moving piece's kind and flag before the move.
        prior_ep_target (Optional[Square]): En-passant target before the move.
        captured (Optional[CapturedSnapshot]): Removed piece, if any. Its
            square differs from ``move.to_sq`` for en passant.
        castling (Optional[CastlingSnapshot]): Rook relocation, if castling.
        promoted (bool): True if a pawn became a queen.
    """

    move: Move
    moved: PieceSnapshot
    prior_ep_target: Optional[Square]
    captured: Optional[CapturedSnapshot] = None
    castling: Optional[CastlingSnapshot] = None
    promoted: bool = False

    @property
    def en_passant(self) -> bool:
        return self.captured is not None and self.captured.square != self.move.to_sq


def make_move(board: Board, move: Move) -> MoveRecord:
    """Apply ``move`` to ``board`` in place and return its undo record.

    The move must already be known to be legal; nothing is validated beyond
    the presence of a piece on the origin square.

    Raises:
        ValueError: If ``move.from_sq`` is empty.
    """
    frm, to = move.from_sq, move.to_sq
    piece = board.piece_at(frm)
    if piece is None:
        raise ValueError("no piece to move from from_sq")

    prior_ep = board.ep_target
    captured: Optional[CapturedSnapshot] = None
    castling: Optional[CastlingSnapshot] = None
    is_pawn = piece.kind is PieceType.PAWN
    dest = board.piece_at(to)

    # En passant: diagonal pawn step onto the empty target square
    if is_pawn and frm.col != to.col and dest is None and prior_ep == to:
        cap_sq = Square(frm.row, to.col)
        cap = board.piece_at(cap_sq)
        if cap is not None:
            captured = CapturedSnapshot(cap.kind, cap.color, cap.has_moved, cap_sq)
            board.set_piece(cap_sq, None)

    if dest is not None:
        captured = CapturedSnapshot(dest.kind, dest.color, dest.has_moved, to)

    if piece.kind is PieceType.KING and frm.row == to.row and abs(to.col - frm.col) == 2:
        if to.col > frm.col:
            rook_from = Square(frm.row, BOARD_SIZE - 1)
            rook_to = Square(frm.row, frm.col + 1)
        else:
            rook_from = Square(frm.row, 0)
            rook_to = Square(frm.row, frm.col - 1)
        rook = board.piece_at(rook_from)
        if rook is not None:
            castling = CastlingSnapshot(rook_from, rook_to, rook.has_moved)
            board.set_piece(rook_from, None)
            board.set_piece(rook_to, rook.moved())

    placed = piece.moved()
    promoted = is_pawn and to.row == piece.color.promotion_row
    if promoted:
        placed = placed.promoted()
    board.set_piece(to, placed)
    board.set_piece(frm, None)

    if is_pawn and abs(to.row - frm.row) == 2:
        board.ep_target = Square((frm.row + to.row) // 2, frm.col)
    else:
        board.ep_target = None

    board.swap_turn()
    return MoveRecord(
        move=move,
        moved=PieceSnapshot(piece.kind, piece.has_moved),
        prior_ep_target=prior_ep,
        captured=captured,
        castling=castling,
        promoted=promoted,
    )


def unmake_move(board: Board, record: MoveRecord) -> None:
    """Reverse ``record`` on ``board``, restoring the exact prior state.

    Raises:
        ValueError: If the destination square no longer holds the moved piece.
    """
    frm, to = record.move.from_sq, record.move.to_sq
    mover = board.piece_at(to)
    if mover is None:
        raise ValueError("no piece on destination to unmake")

    board.set_piece(to, None)
    board.set_piece(frm, Piece(record.moved.kind, mover.color, record.moved.has_moved))

    if record.captured is not None:
        board.set_piece(record.captured.square, record.captured.restore())

    if record.castling is not None:
        cast = record.castling
        rook = board.piece_at(cast.rook_to)
        if rook is not None:
            board.set_piece(cast.rook_to, None)
            board.set_piece(cast.rook_from, Piece(rook.kind, rook.color, cast.old_has_moved))

    board.ep_target = record.prior_ep_target
    board.swap_turn()


def simulate_move(board: Board, move: Move) -> Board:
    """Return a copy of ``board`` with ``move`` applied; ``board`` is untouched."""
    child = board.copy()
    make_move(child, move)
    return child
