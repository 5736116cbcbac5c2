"""Move legality.

``is_basic_legal`` checks a piece's movement pattern and path only. Full
legality additionally plays the move on a copy of the board and rejects it if
the mover's king would be left in check.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from .attacks import (
    DIAGONALS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    ORTHOGONALS,
    is_king_in_check,
    is_square_attacked,
)
from .board import Board, Color, Piece, PieceType
from .executor import simulate_move
from .move import BOARD_SIZE, Move, Square


def _path_clear(board: Board, frm: Square, to: Square, dr: int, dc: int) -> bool:
    r, c = frm.row + dr, frm.col + dc
    while (r, c) != (to.row, to.col):
        if board.grid[r][c] is not None:
            return False
        r += dr
        c += dc
    return True


def _is_legal_pawn(board: Board, frm: Square, to: Square, piece: Piece) -> bool:
    fwd = piece.color.forward
    dr = to.row - frm.row
    dc = to.col - frm.col
    dest = board.piece_at(to)
    if dc == 0:
        if dr == fwd:
            return dest is None
        if dr == 2 * fwd and not piece.has_moved:
            return dest is None and board.grid[frm.row + fwd][frm.col] is None
        return False
    if abs(dc) == 1 and dr == fwd:
        if dest is not None:
            return dest.color is not piece.color
        # En passant: only onto the current target, and only for the side to move
        return board.ep_target == to and piece.color is board.side_to_move
    return False


def _is_legal_rook(board: Board, frm: Square, to: Square) -> bool:
    if frm.row != to.row and frm.col != to.col:
        return False
    dr = (to.row > frm.row) - (to.row < frm.row)
    dc = (to.col > frm.col) - (to.col < frm.col)
    return _path_clear(board, frm, to, dr, dc)


def _is_legal_bishop(board: Board, frm: Square, to: Square) -> bool:
    if abs(to.row - frm.row) != abs(to.col - frm.col):
        return False
    dr = 1 if to.row > frm.row else -1
    dc = 1 if to.col > frm.col else -1
    return _path_clear(board, frm, to, dr, dc)


def _is_legal_knight(frm: Square, to: Square) -> bool:
    dr = abs(to.row - frm.row)
    dc = abs(to.col - frm.col)
    return (dr == 2 and dc == 1) or (dr == 1 and dc == 2)


def _is_legal_castle(board: Board, frm: Square, to: Square, piece: Piece) -> bool:
    # The king's own has_moved flag is deliberately not consulted here; only the
    # rook's flag gates castling.
    color = piece.color
    enemy = color.opponent
    if is_king_in_check(board, color):
        return False
    step = 1 if to.col > frm.col else -1
    if is_square_attacked(board, Square(frm.row, frm.col + step), enemy):
        return False
    if is_square_attacked(board, to, enemy):
        return False
    rook_col = BOARD_SIZE - 1 if step > 0 else 0
    lo, hi = sorted((frm.col, rook_col))
    for c in range(lo + 1, hi):
        if board.grid[frm.row][c] is not None:
            return False
    rook = board.grid[frm.row][rook_col]
    return (
        rook is not None
        and rook.kind is PieceType.ROOK
        and rook.color is color
        and not rook.has_moved
    )


def is_castling_move(piece: Piece, frm: Square, to: Square) -> bool:
    return piece.kind is PieceType.KING and frm.row == to.row and abs(to.col - frm.col) == 2


def is_basic_legal(board: Board, frm: Square, to: Square) -> bool:
    """Return True if the piece on ``frm`` may move to ``to`` by its pattern.

    Ignores whether the move exposes the mover's own king, except for the
    castling preconditions, which look at attacked squares directly.
    """
    piece = board.piece_at(frm)
    if piece is None or frm == to:
        return False
    kind = piece.kind
    if kind is PieceType.PAWN:
        return _is_legal_pawn(board, frm, to, piece)
    if kind is PieceType.ROOK:
        return _is_legal_rook(board, frm, to)
    if kind is PieceType.KNIGHT:
        return _is_legal_knight(frm, to)
    if kind is PieceType.BISHOP:
        return _is_legal_bishop(board, frm, to)
    if kind is PieceType.QUEEN:
        return _is_legal_rook(board, frm, to) or _is_legal_bishop(board, frm, to)
    if is_castling_move(piece, frm, to):
        return _is_legal_castle(board, frm, to, piece)
    return abs(to.row - frm.row) <= 1 and abs(to.col - frm.col) <= 1


def _is_legal_for_piece(board: Board, frm: Square, to: Square, piece: Piece) -> bool:
    dest = board.piece_at(to)
    if dest is not None and dest.color is piece.color:
        return False
    if not is_basic_legal(board, frm, to):
        return False
    after = simulate_move(board, Move(frm, to))
    return not is_king_in_check(after, piece.color)


def is_legal_move(board: Board, frm: Square, to: Square) -> bool:
    """Return True if the side to move may play ``frm`` -> ``to``.

    Rejects an empty origin, a piece of the wrong color, self-capture, an
    illegal movement pattern, and any move leaving the mover's king in check.
    """
    piece = board.piece_at(frm)
    if piece is None or piece.color is not board.side_to_move:
        return False
    return _is_legal_for_piece(board, frm, to, piece)


def is_legal_coords(board: Board, from_row: int, from_col: int, to_row: int, to_col: int) -> bool:
    """Coordinate form of ``is_legal_move``; off-board coordinates are illegal."""
    if not (Square.on_board(from_row, from_col) and Square.on_board(to_row, to_col)):
        return False
    return is_legal_move(board, Square(from_row, from_col), Square(to_row, to_col))


def _candidate_targets(board: Board, frm: Square, piece: Piece) -> Iterator[Square]:
    kind = piece.kind
    if kind is PieceType.PAWN:
        fwd = piece.color.forward
        for dr, dc in ((fwd, 0), (2 * fwd, 0), (fwd, -1), (fwd, 1)):
            sq = frm.offset(dr, dc)
            if sq is not None:
                yield sq
        return
    if kind is PieceType.KNIGHT:
        offsets = KNIGHT_OFFSETS
    elif kind is PieceType.KING:
        offsets = KING_OFFSETS + ((0, -2), (0, 2))
    else:
        offsets = ()
    for dr, dc in offsets:
        sq = frm.offset(dr, dc)
        if sq is not None:
            yield sq
    if kind in (PieceType.ROOK, PieceType.BISHOP, PieceType.QUEEN):
        dirs = ()
        if kind is not PieceType.BISHOP:
            dirs += ORTHOGONALS
        if kind is not PieceType.ROOK:
            dirs += DIAGONALS
        for dr, dc in dirs:
            r, c = frm.row + dr, frm.col + dc
            while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
                yield Square(r, c)
                if board.grid[r][c] is not None:
                    break
                r += dr
                c += dc


def legal_moves_from(board: Board, frm: Square) -> List[Move]:
    """Return all legal moves for the piece on ``frm`` (any color)."""
    piece = board.piece_at(frm)
    if piece is None:
        return []
    return [
        Move(frm, to)
        for to in _candidate_targets(board, frm, piece)
        if _is_legal_for_piece(board, frm, to, piece)
    ]


def iter_legal_moves(board: Board, color: Optional[Color] = None) -> Iterator[Move]:
    side = board.side_to_move if color is None else color
    for frm, piece in list(board.pieces(side)):
        for to in _candidate_targets(board, frm, piece):
            if _is_legal_for_piece(board, frm, to, piece):
                yield Move(frm, to)


def generate_legal_moves(board: Board, color: Optional[Color] = None) -> List[Move]:
    """Return every legal move for ``color`` (default: side to move).

    Moves are ordered by origin square (row-major), then by destination
    pattern.
    """
    return list(iter_legal_moves(board, color))


def has_any_legal_move(board: Board, color: Optional[Color] = None) -> bool:
    return next(iter_legal_moves(board, color), None) is not None


def is_en_passant(board: Board, move: Move) -> bool:
    piece = board.piece_at(move.from_sq)
    return (
        piece is not None
        and piece.kind is PieceType.PAWN
        and move.from_sq.col != move.to_sq.col
        and board.piece_at(move.to_sq) is None
        and board.ep_target == move.to_sq
    )


def captured_piece(board: Board, move: Move) -> Optional[Piece]:
    """Return the piece ``move`` would capture, including en passant."""
    dest = board.piece_at(move.to_sq)
    if dest is not None:
        return dest
    if is_en_passant(board, move):
        return board.grid[move.from_sq.row][move.to_sq.col]
    return None
