from __future__ import annotations

from chesscore.engine.board import Color, PieceType
from chesscore.engine.game import Game
from chesscore.engine.move import parse_uci
from chesscore.engine.move import str_to_square as sq


def test_pawn_reaching_last_rank_becomes_queen() -> None:
    game = Game.from_fen("8/P6k/8/8/8/8/8/K7 w - - 0 1")
    applied = game.apply_move(parse_uci("a7a8"))
    assert applied.promoted
    q = game.board.piece_at(sq("a8"))
    assert q is not None and q.kind is PieceType.QUEEN and q.color is Color.WHITE


def test_black_promotion_with_capture_scores_captured_piece() -> None:
    game = Game.from_fen("7k/8/8/8/8/8/1p6/R6K b - - 0 1")
    applied = game.apply_move(parse_uci("b2a1q"))
    assert applied.promoted and applied.captured is PieceType.ROOK
    assert game.board.piece_at(sq("a1")).kind is PieceType.QUEEN
    assert game.score.black == 5


def test_undo_promotion_restores_pawn_and_captured_piece() -> None:
    fen = "1r5k/P7/8/8/8/8/8/K7 w - - 0 1"
    game = Game.from_fen(fen)
    game.apply_move(parse_uci("a7b8"))
    assert game.score.white == 5
    game.undo_last_move()
    assert game.to_fen() == fen
    assert game.board.piece_at(sq("a7")).kind is PieceType.PAWN
    assert game.board.piece_at(sq("b8")).kind is PieceType.ROOK
    assert game.score.white == 0
