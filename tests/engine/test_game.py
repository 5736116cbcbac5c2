from __future__ import annotations

import pytest

from chesscore.engine.board import STARTPOS_FEN, Color
from chesscore.engine.errors import GameOverError, IllegalMove, NothingToUndo
from chesscore.engine.game import Game, GameMode, Score
from chesscore.engine.move import parse_uci
from chesscore.engine.move import str_to_square as sq


def _play(game: Game, *ucis: str) -> None:
    for uci in ucis:
        game.apply_move(parse_uci(uci))


def test_fools_mate_is_checkmate_for_black() -> None:
    game = Game.new()
    _play(game, "f2f3", "e7e5", "g2g4", "d8h4")
    st = game.status
    assert st.in_check and st.checkmate and not st.stalemate
    assert st.winner is Color.BLACK
    assert game.is_over
    assert game.legal_moves() == []
    with pytest.raises(GameOverError):
        game.apply_move(parse_uci("a2a3"))


def test_stalemate_detected_from_position() -> None:
    game = Game.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert game.status.stalemate
    assert not game.status.in_check
    assert game.status.winner is None


def test_illegal_move_leaves_state_unchanged() -> None:
    game = Game.new()
    gen = game.board_generation
    with pytest.raises(IllegalMove):
        game.apply_move(parse_uci("e2e5"))
    with pytest.raises(IllegalMove):
        game.apply_move(parse_uci("e7e5"))
    assert game.to_fen() == STARTPOS_FEN
    assert game.history == []
    assert game.board_generation == gen


def test_apply_move_switches_turn_and_bumps_generation() -> None:
    game = Game.new()
    gen = game.board_generation
    applied = game.apply_move(parse_uci("g1f3"))
    assert game.side_to_move is Color.BLACK
    assert game.board_generation == gen + 1
    assert applied.captured is None and not applied.castled
    assert game.move_history_uci() == ["g1f3"]


def test_capture_scoring_and_undo_debits() -> None:
    game = Game.new()
    _play(game, "e2e4", "d7d5", "e4d5", "d8d5")
    assert game.score.white == 1
    assert game.score.black == 1
    game.undo_last_move()
    assert game.score.black == 0
    assert game.score.white == 1


def test_undo_round_trip_restores_exact_state() -> None:
    game = Game.new()
    fens = [game.to_fen()]
    for uci in ("e2e4", "c7c5", "g1f3", "d7d6", "f1b5", "c8d7"):
        _play(game, uci)
        fens.append(game.to_fen())
    while game.history:
        fens.pop()
        game.undo_last_move()
        assert game.to_fen() == fens[-1]
    with pytest.raises(NothingToUndo):
        game.undo_last_move()


def test_undo_after_checkmate_resumes_play() -> None:
    game = Game.new()
    _play(game, "f2f3", "e7e5", "g2g4", "d8h4")
    reverted = game.undo_last_move()
    assert reverted.record.move.to_uci() == "d8h4"
    assert not game.is_over
    assert game.side_to_move is Color.BLACK
    _play(game, "d8e7")


def test_undo_turn_in_ai_mode_reverts_both_plies() -> None:
    game = Game.new(GameMode.AI, Color.BLACK)
    game.apply_move(parse_uci("e2e4"))
    game.apply_move(parse_uci("e7e5"), by_ai=True)
    assert game.last_ai_move == parse_uci("e7e5")
    reverted = game.undo_turn()
    assert len(reverted) == 2
    assert game.to_fen() == STARTPOS_FEN
    assert game.last_ai_move is None


def test_undo_turn_single_ply_when_ai_has_not_replied() -> None:
    game = Game.new(GameMode.AI, Color.BLACK)
    game.apply_move(parse_uci("e2e4"))
    assert game.is_ai_turn()
    assert len(game.undo_turn()) == 1
    assert game.history == []


def test_undo_turn_two_player_mode_is_one_ply() -> None:
    game = Game.new()
    _play(game, "e2e4", "e7e5")
    assert len(game.undo_turn()) == 1
    assert game.move_history_uci() == ["e2e4"]


def test_new_game_resets_but_keeps_mode() -> None:
    game = Game.new(GameMode.AI, Color.WHITE)
    _play(game, "e2e4")
    gen = game.board_generation
    game.new_game()
    assert game.to_fen() == STARTPOS_FEN
    assert game.history == [] and game.score.white == 0
    assert game.mode is GameMode.AI and game.ai_color is Color.WHITE
    assert game.board_generation > gen


def test_legal_moves_from_only_for_side_to_move() -> None:
    game = Game.new()
    assert {m.to_uci() for m in game.legal_moves_from(sq("e2"))} == {"e2e3", "e2e4"}
    assert game.legal_moves_from(sq("e7")) == []
    assert game.legal_moves_from(sq("e4")) == []


def test_snapshot_is_private_copy() -> None:
    game = Game.new()
    board, gen = game.snapshot()
    board.set_piece(sq("e2"), None)
    assert game.board.piece_at(sq("e2")) is not None
    assert gen == game.board_generation


def test_score_matches_replayed_history() -> None:
    game = Game.new()
    steps = ["e2e4", "d7d5", "e4d5", "c7c5", "d5c6", "b7c6", "undo", "undo", "d5c6", "d8d2"]
    for step in steps:
        if step == "undo":
            game.undo_last_move()
        else:
            game.apply_move(parse_uci(step))
        assert game.score == Score.from_history(game.history)
    # exd5 and the en-passant dxc6 for White, Qxd2+ for Black
    assert game.score == Score(white=2, black=1)
