from __future__ import annotations

from fastapi.testclient import TestClient

from chesscore.protocol.http.app import create_app


def _ai_game(client: TestClient, **extra) -> str:
    body = {"mode": "ai", "ai_color": "b", "depth": 1}
    body.update(extra)
    return client.post("/api/games", json=body).json()["game_id"]


def test_ai_replies_after_human_move() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})

    r = client.post(f"/api/games/{game_id}/ai-move", json={})
    assert r.status_code == 200
    body = r.json()
    assert body["outcome"] == "move_chosen"
    assert body["search_state"] == "move_chosen"
    assert body["applied"]["move"] == body["move"]
    assert body["depth"] == 1
    state = body["state"]
    assert state["side_to_move"] == "w"
    assert state["move_history"][0] == "e2e4"
    assert len(state["move_history"]) == 2


def test_human_cannot_move_for_the_ai() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e7e5"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"


def test_undo_in_ai_mode_reverts_full_turn() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "d2d4"})
    client.post(f"/api/games/{game_id}/ai-move")
    r = client.post(f"/api/games/{game_id}/undo")
    assert r.status_code == 200
    assert r.json()["move_history"] == []
    assert r.json()["side_to_move"] == "w"


def test_ai_move_on_finished_game_is_conflict() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client, fen="7k/6Q1/6K1/8/8/8/8/8 b - - 0 1")
    r = client.post(f"/api/games/{game_id}/ai-move")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "game_over"


def test_ai_move_validation() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client)
    r = client.post(f"/api/games/{game_id}/ai-move", json={"depth": 0})
    assert r.status_code == 422


def test_search_status_when_idle() -> None:
    client = TestClient(create_app())
    game_id = _ai_game(client)
    r = client.get(f"/api/games/{game_id}/search")
    assert r.status_code == 200
    assert r.json()["search_state"] == "idle"
    assert r.json()["outcome"] is None
