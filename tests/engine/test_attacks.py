from __future__ import annotations

from chesscore.engine.attacks import find_king, is_king_in_check, is_square_attacked
from chesscore.engine.board import Board, Color
from chesscore.engine.move import str_to_square as sq


def test_pawn_attacks_forward_diagonals_only() -> None:
    b = Board.from_fen("4k3/8/8/8/4P3/8/8/4K3 w - - 0 1")
    assert is_square_attacked(b, sq("d5"), Color.WHITE)
    assert is_square_attacked(b, sq("f5"), Color.WHITE)
    assert not is_square_attacked(b, sq("e5"), Color.WHITE)
    assert not is_square_attacked(b, sq("d3"), Color.WHITE)

    b = Board.from_fen("4k3/8/8/4p3/8/8/8/4K3 w - - 0 1")
    assert is_square_attacked(b, sq("d4"), Color.BLACK)
    assert not is_square_attacked(b, sq("d6"), Color.BLACK)


def test_slider_rays_stop_at_first_piece() -> None:
    b = Board.from_fen("4k3/8/8/8/r2P3K/8/8/8 w - - 0 1")
    assert is_square_attacked(b, sq("c4"), Color.BLACK)
    assert is_square_attacked(b, sq("d4"), Color.BLACK)
    assert not is_square_attacked(b, sq("e4"), Color.BLACK)
    assert not is_king_in_check(b, Color.WHITE)


def test_knight_and_king_attacks() -> None:
    b = Board.from_fen("4k3/8/8/8/8/5n2/8/4K3 w - - 0 1")
    assert is_king_in_check(b, Color.WHITE)
    assert is_square_attacked(b, sq("d7"), Color.BLACK)
    assert not is_square_attacked(b, sq("e6"), Color.BLACK)


def test_missing_king_counts_as_in_check() -> None:
    b = Board.from_fen("8/8/8/8/8/8/8/4K3 w - - 0 1")
    assert find_king(b, Color.BLACK) is None
    assert is_king_in_check(b, Color.BLACK)
    assert not is_king_in_check(b, Color.WHITE)
