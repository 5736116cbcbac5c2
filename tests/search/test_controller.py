from __future__ import annotations

import threading

import pytest

from chesscore.config import SearchConfig
from chesscore.engine.errors import SearchAlreadyRunning
from chesscore.engine.game import Game
from chesscore.engine.move import parse_uci
from chesscore.search.controller import SearchController, SearchState
from chesscore.search.service import SearchOutcome, SearchService


def _blocking_controller() -> tuple[SearchController, threading.Event, threading.Event]:
    started = threading.Event()
    release = threading.Event()

    def pause() -> None:
        started.set()
        release.wait(5)

    svc = SearchService(SearchConfig(yield_every=1))
    return SearchController(svc, pause=pause), started, release


def test_request_applies_chosen_move() -> None:
    game = Game.new()
    done = []
    ctl = SearchController(SearchService(SearchConfig()))
    ctl.request(game, depth=1, on_done=lambda res, applied: done.append((res, applied)))
    res = ctl.wait(10)
    assert res is not None and res.best_move is not None
    assert ctl.state is SearchState.MOVE_CHOSEN
    assert game.move_history_uci() == [res.best_move.to_uci()]
    assert game.last_ai_move == res.best_move
    assert ctl.applied is not None and ctl.applied.move == res.best_move
    assert done and done[0][0] is res


def test_second_request_while_searching_is_rejected() -> None:
    game = Game.new()
    ctl, started, release = _blocking_controller()
    ctl.request(game, depth=1)
    assert started.wait(5)
    assert ctl.busy
    with pytest.raises(SearchAlreadyRunning):
        ctl.request(game, depth=1)
    release.set()
    assert ctl.wait(10) is not None
    assert len(game.history) == 1


def test_stale_result_is_discarded_after_game_changes() -> None:
    game = Game.new()
    ctl, started, release = _blocking_controller()
    ctl.request(game, depth=1)
    assert started.wait(5)
    game.apply_move(parse_uci("e2e4"))
    release.set()
    res = ctl.wait(10)
    assert res is not None and res.best_move is not None
    assert ctl.applied is None
    assert game.move_history_uci() == ["e2e4"]


def test_cancel_stops_search_without_applying() -> None:
    game = Game.new()
    ctl, started, release = _blocking_controller()
    ctl.request(game, depth=3)
    assert started.wait(5)
    ctl.cancel()
    release.set()
    res = ctl.wait(10)
    assert res is not None and res.cancelled
    assert ctl.state is SearchState.CANCELLED
    assert game.history == []


def test_no_move_found_when_side_is_mated() -> None:
    game = Game.from_fen("7k/6Q1/6K1/8/8/8/8/8 b - - 0 1")
    ctl = SearchController(SearchService())
    ctl.request(game, depth=2)
    res = ctl.wait(10)
    assert res is not None and res.outcome is SearchOutcome.NO_LEGAL_MOVE
    assert res.in_check
    assert ctl.state is SearchState.NO_MOVE_FOUND


def test_controller_is_reusable_after_finish() -> None:
    game = Game.new()
    ctl = SearchController(SearchService())
    ctl.request(game, depth=1)
    ctl.wait(10)
    ctl.request(game, depth=1)
    ctl.wait(10)
    assert len(game.history) == 2
