from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...config import SearchConfig
from ...engine.game import Game
from ...search.controller import SearchController
from ...search.service import SearchService


@dataclass
class GameSession:
    """One hosted game with its own AI search controller and settings."""

    game: Game
    search: SearchConfig = field(default_factory=SearchConfig)
    controller: SearchController = field(init=False)

    def __post_init__(self) -> None:
        self.controller = SearchController(SearchService(self.search))


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Sessions are keyed by a random ``game_id``. Each session carries a copy of
    the default search settings so that per-game depth changes stay local.
    """

    def __init__(self, search_defaults: Optional[SearchConfig] = None) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}
        self._defaults = search_defaults or SearchConfig()

    def create(self, game: Optional[Game] = None, depth: Optional[int] = None) -> str:
        """Create a new game session and return its ``game_id``."""
        gid = str(uuid.uuid4())
        cfg = SearchConfig(**vars(self._defaults))
        if depth is not None:
            cfg.depth = depth
        session = GameSession(game=game if game is not None else Game.new(), search=cfg)
        with self._lock:
            self._sessions[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is None:
            return False
        session.controller.cancel()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
