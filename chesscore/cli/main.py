from __future__ import annotations

import argparse
import os

import uvicorn

from chesscore.config import ENV_PREFIX, EngineConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the chesscore HTTP server")
    parser.add_argument("--config", default=None, help="Path to a TOML config file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    cfg = EngineConfig.load(args.config)
    if args.config:
        # The app factory reloads its config in the server process
        os.environ[ENV_PREFIX + "CONFIG"] = os.path.abspath(args.config)
    uvicorn.run(
        "chesscore.protocol.http.app:create_app",
        factory=True,
        host=args.host or cfg.server.host,
        port=args.port or cfg.server.port,
        log_level=cfg.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
