from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHESSCORE_"


@dataclass
class SearchConfig:
    depth: int = 3
    min_depth: int = 2
    max_depth: int = 5
    yield_every: int = 10  # nodes between cooperative yields
    repetition_penalty: int = 20  # centipawns; 0 disables
    quiescence_max_ply: int = 8

    def next_depth(self) -> int:
        """Cycle the configured depth through min..max, wrapping around."""
        self.depth = self.depth + 1 if self.depth < self.max_depth else self.min_depth
        return self.depth


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"


@dataclass
class EngineConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @staticmethod
    def load(path: Optional[str] = None) -> "EngineConfig":
        """Build a config from defaults, an optional TOML file and the environment.

        Environment variables override the file and are named
        ``CHESSCORE_<SECTION>_<FIELD>``, e.g. ``CHESSCORE_SEARCH_DEPTH=4``.
        """
        cfg = EngineConfig()
        path = path or os.environ.get(ENV_PREFIX + "CONFIG")
        if path and os.path.exists(path):
            with open(path, "rb") as f:
                data = tomllib.load(f)
            _apply(cfg.search, data.get("search", {}))
            _apply(cfg.server, data.get("server", {}))
        _apply_env(cfg.search, "SEARCH")
        _apply_env(cfg.server, "SERVER")
        return cfg


def _apply(section: Any, values: Dict[str, Any]) -> None:
    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            logger.warning("ignoring unknown config key %r", key)
            continue
        current = getattr(section, key)
        try:
            setattr(section, key, type(current)(value))
        except (TypeError, ValueError):
            logger.warning("invalid value for %s: %r", key, value)


def _apply_env(section: Any, name: str) -> None:
    values = {}
    for f in fields(section):
        raw = os.environ.get(f"{ENV_PREFIX}{name}_{f.name.upper()}")
        if raw is not None:
            values[f.name] = raw
    _apply(section, values)
