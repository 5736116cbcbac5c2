from __future__ import annotations

import sys

from fastapi.testclient import TestClient

from chesscore.cli import main as cli_main
from chesscore.protocol.http.app import create_app


def test_config_flag_reaches_app_factory(tmp_path, monkeypatch) -> None:
    path = tmp_path / "chesscore.toml"
    path.write_text("[search]\ndepth = 5\n\n[server]\nport = 9100\n")
    # Registered so the variable set by main() is restored after the test
    monkeypatch.setenv("CHESSCORE_CONFIG", "")
    monkeypatch.setattr(sys, "argv", ["chesscore-server", "--config", str(path)])

    seen = {}

    def fake_run(target, **kwargs) -> None:
        seen["target"] = target
        seen.update(kwargs)

    monkeypatch.setattr(cli_main.uvicorn, "run", fake_run)
    cli_main.main()

    assert seen["target"] == "chesscore.protocol.http.app:create_app"
    assert seen["factory"] is True
    assert seen["port"] == 9100

    client = TestClient(create_app())
    state = client.post("/api/games").json()
    assert state["depth"] == 5


def test_host_and_port_flags_override_config(monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["chesscore-server", "--host", "127.0.0.1", "--port", "8123"])
    seen = {}
    monkeypatch.setattr(cli_main.uvicorn, "run", lambda target, **kw: seen.update(kw))
    cli_main.main()
    assert seen["host"] == "127.0.0.1"
    assert seen["port"] == 8123
