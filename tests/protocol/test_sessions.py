from __future__ import annotations

from fastapi.testclient import TestClient

from chesscore.engine.board import STARTPOS_FEN
from chesscore.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_health() -> None:
    r = _client().get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    game_id = body["game_id"]
    assert game_id
    assert body["fen"] == STARTPOS_FEN
    assert body["mode"] == "two_player"
    assert body["side_to_move"] == "w"
    assert len(body["legal_moves"]) == 20
    assert body["board"][7][4] == "K"
    assert body["board"][0][3] == "q"
    assert body["board"][4][4] is None

    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    assert r2.json()["game_id"] == game_id


def test_create_ai_game_from_fen_with_depth() -> None:
    client = _client()
    r = client.post(
        "/api/games",
        json={"mode": "ai", "ai_color": "w", "depth": 2, "fen": "4k3/8/8/8/8/8/8/4K3 w - - 0 1"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["mode"] == "ai" and body["ai_color"] == "w"
    assert body["depth"] == 2
    assert body["fen"] == "4k3/8/8/8/8/8/8/4K3 w - - 0 1"


def test_get_state_unknown_id_404() -> None:
    r = _client().get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_set_position_validation_and_success() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]

    bad = client.post(f"/api/games/{game_id}/position", json={"fen": "not a fen"})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "bad_request"

    missing = client.post(f"/api/games/{game_id}/position", json={})
    assert missing.status_code == 422
    assert missing.json()["error"]["field_errors"]

    fen = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
    ok = client.post(f"/api/games/{game_id}/position", json={"fen": fen})
    assert ok.status_code == 200
    state = ok.json()
    assert state["stalemate"] is True
    assert state["legal_moves"] == []


def test_new_game_resets_position() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    r = client.post(f"/api/games/{game_id}/new")
    assert r.status_code == 200
    assert r.json()["fen"] == STARTPOS_FEN
    assert r.json()["move_history"] == []


def test_delete_game() -> None:
    app = create_app()
    client = TestClient(app)
    game_id = client.post("/api/games").json()["game_id"]
    assert len(app.state.sessions) == 1
    assert client.delete(f"/api/games/{game_id}").status_code == 200
    assert len(app.state.sessions) == 0
    assert client.get(f"/api/games/{game_id}/state").status_code == 404
    assert client.delete(f"/api/games/{game_id}").status_code == 404


def test_depth_cycles_and_can_be_set() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    depths = [client.post(f"/api/games/{game_id}/depth").json()["depth"] for _ in range(4)]
    assert depths == [4, 5, 2, 3]
    r = client.post(f"/api/games/{game_id}/depth", json={"depth": 1})
    assert r.json() == {"depth": 1}
    assert client.get(f"/api/games/{game_id}/state").json()["depth"] == 1


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json()["nodes"] == 400
    assert client.post("/api/perft", json={"fen": "bad", "depth": 1}).status_code == 400
    assert client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 9}).status_code == 422
