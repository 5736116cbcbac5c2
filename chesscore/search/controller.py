from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from chesscore.engine.board import Color
from chesscore.engine.errors import ChessError, SearchAlreadyRunning
from chesscore.engine.game import Game, MoveApplied
from chesscore.search.service import SearchOutcome, SearchResult, SearchService

logger = logging.getLogger(__name__)


class SearchState(Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    MOVE_CHOSEN = "move_chosen"
    NO_MOVE_FOUND = "no_move_found"
    CANCELLED = "cancelled"
    FAILED = "failed"


DoneCallback = Callable[[SearchResult, Optional[MoveApplied]], None]


def _yield_thread() -> None:
    time.sleep(0)


class SearchController:
    """Runs at most one AI search at a time on a background thread.

    The search works on a private board snapshot. When it finishes, the chosen
    move is applied to the game only if the game has not changed since the
    snapshot was taken (``Game.board_generation``); otherwise the result is
    discarded.
    """

    def __init__(
        self,
        service: Optional[SearchService] = None,
        *,
        pause: Optional[Callable[[], None]] = _yield_thread,
    ) -> None:
        self.service = service or SearchService()
        self._pause = pause
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._done.set()
        self.state = SearchState.IDLE
        self.nodes = 0
        self.result: Optional[SearchResult] = None
        self.applied: Optional[MoveApplied] = None

    @property
    def busy(self) -> bool:
        return self.state is SearchState.SEARCHING

    def request(
        self,
        game: Game,
        color: Optional[Color] = None,
        depth: Optional[int] = None,
        *,
        apply: bool = True,
        on_done: Optional[DoneCallback] = None,
    ) -> None:
        """Start a search for ``color`` (default: side to move) on ``game``.

        Raises:
            SearchAlreadyRunning: If a previous request has not finished.
        """
        with self._lock:
            if self.state is SearchState.SEARCHING:
                logger.info("search request rejected, one is already running")
                raise SearchAlreadyRunning()
            board, gen = game.snapshot()
            last_move = game.last_ai_move
            cancel = threading.Event()
            self._cancel = cancel
            self._done.clear()
            self.state = SearchState.SEARCHING
            self.nodes = 0
            self.result = None
            self.applied = None
        logger.info("search started", extra={"depth": depth, "generation": gen})

        def on_progress(nodes: int) -> None:
            self.nodes = nodes

        def worker() -> None:
            applied: Optional[MoveApplied] = None
            try:
                res = self.service.search(
                    board,
                    color,
                    depth,
                    last_move=last_move,
                    cancel=cancel,
                    pause=self._pause,
                    on_progress=on_progress,
                )
                if apply and res.best_move is not None and not cancel.is_set():
                    applied = self._apply(game, gen, res)
                state = self._final_state(res, cancel)
            except ChessError as e:
                logger.warning("search result rejected: %s", e)
                res = None
                state = SearchState.FAILED
            except Exception:
                logger.exception("search worker failed")
                res = None
                state = SearchState.FAILED
            with self._lock:
                self.result = res
                self.applied = applied
                self.state = state
            try:
                if on_done is not None and res is not None:
                    on_done(res, applied)
            finally:
                self._done.set()

        t = threading.Thread(target=worker, name="chesscore-search", daemon=True)
        self._thread = t
        t.start()

    def cancel(self) -> None:
        """Ask the running search to stop at its next yield point."""
        if self.busy:
            logger.info("search cancel requested")
        self._cancel.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[SearchResult]:
        """Block until the current search finishes; return its result."""
        if not self._done.wait(timeout):
            return None
        return self.result

    @staticmethod
    def _apply(game: Game, gen: int, res: SearchResult) -> Optional[MoveApplied]:
        if res.best_move is None:
            return None
        with game.lock:
            if game.board_generation != gen:
                logger.info(
                    "discarding stale search result %s (generation %d != %d)",
                    res.best_move.to_uci(),
                    gen,
                    game.board_generation,
                )
                return None
            return game.apply_move(res.best_move, by_ai=True)

    @staticmethod
    def _final_state(res: SearchResult, cancel: threading.Event) -> SearchState:
        if res.outcome is SearchOutcome.NO_LEGAL_MOVE:
            return SearchState.NO_MOVE_FOUND
        if cancel.is_set() or res.outcome is SearchOutcome.CANCELLED:
            return SearchState.CANCELLED
        return SearchState.MOVE_CHOSEN
