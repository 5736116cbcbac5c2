from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...config import EngineConfig
from ...engine.board import Board, Color
from ...engine.errors import ChessError, GameOverError
from ...engine.game import Game, GameMode, MoveApplied
from ...engine.move import Square, parse_uci, str_to_square
from ...engine.perft import perft as perft_nodes
from ...search.controller import SearchState
from ...search.service import SearchResult
from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameSession, InMemorySessionStore

logger = logging.getLogger(__name__)

MAX_DEPTH = 8
MAX_PERFT_DEPTH = 5


class CreateGameRequest(BaseModel):
    mode: Literal["two_player", "ai"] = "two_player"
    ai_color: Literal["w", "b"] = "b"
    depth: Optional[int] = Field(default=None, ge=1, le=MAX_DEPTH)
    fen: Optional[str] = Field(default=None, description="Optional starting FEN")


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Long algebraic move, e.g. e2e4")


class LegalityRequest(BaseModel):
    from_: str = Field(..., alias="from", description="Origin square, e.g. e2")
    to: str = Field(..., description="Destination square, e.g. e4")


class AiMoveRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=MAX_DEPTH)
    wait: bool = True
    timeout_s: float = Field(default=60.0, gt=0)


class DepthRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=MAX_DEPTH)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=MAX_PERFT_DEPTH)


class ScoreModel(BaseModel):
    white: int
    black: int


class GameState(BaseModel):
    game_id: str
    fen: str
    mode: str
    ai_color: str
    side_to_move: str
    board: List[List[Optional[str]]]
    legal_moves: List[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    winner: Optional[str]
    score: ScoreModel
    captured: Dict[str, List[str]]
    last_move: Optional[str]
    move_history: List[str]
    depth: int
    search_state: str


class MoveEvent(BaseModel):
    move: str
    captured: Optional[str]
    castled: bool
    promoted: bool
    en_passant: bool


class MoveResponse(BaseModel):
    applied: MoveEvent
    state: GameState


class AiMoveResponse(BaseModel):
    search_state: str
    outcome: Optional[str] = None
    move: Optional[str] = None
    score: Optional[int] = None
    depth: int = 0
    nodes: int = 0
    in_check: bool = False
    applied: Optional[MoveEvent] = None
    state: GameState


def create_app(config: Optional[EngineConfig] = None) -> FastAPI:
    config = config or EngineConfig.load()
    app = FastAPI(title="chesscore", version="0.1.0")

    logging.basicConfig(level=config.server.log_level.upper())

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore(config.search)
    app.state.sessions = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=GameState)
    def create_game(req: Optional[CreateGameRequest] = None) -> GameState:
        req = req or CreateGameRequest()
        mode, ai_color = GameMode(req.mode), Color(req.ai_color)
        if req.fen:
            try:
                game = Game.from_fen(req.fen, mode, ai_color)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        else:
            game = Game.new(mode, ai_color)
        game_id = store.create(game, depth=req.depth)
        logger.info("created game %s", game_id, extra={"mode": mode.value})
        return _state(game_id, _require_session(store, game_id))

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, bool]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return {"deleted": True}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_session(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        session = _require_session(store, game_id)
        old = session.game
        try:
            game = Game.from_fen(req.fen, old.mode, old.ai_color)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        session.controller.cancel()
        session.game = game
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/new", response_model=GameState)
    def new_game(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        session.controller.cancel()
        session.game.new_game()
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/legal")
    def check_legal(game_id: str, req: LegalityRequest) -> Dict[str, Any]:
        session = _require_session(store, game_id)
        frm, to = _parse_square(req.from_), _parse_square(req.to)
        return {"from": req.from_, "to": req.to, "legal": session.game.is_legal_move(frm, to)}

    @app.get("/api/games/{game_id}/moves")
    def list_moves(game_id: str, square: Optional[str] = Query(default=None)) -> Dict[str, Any]:
        session = _require_session(store, game_id)
        if square is None:
            moves = session.game.legal_moves()
        else:
            moves = session.game.legal_moves_from(_parse_square(square))
        return {"square": square, "moves": [m.to_uci() for m in moves]}

    @app.post("/api/games/{game_id}/move", response_model=MoveResponse)
    def make_move(game_id: str, req: MoveRequest) -> MoveResponse:
        session = _require_session(store, game_id)
        game = session.game
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if game.is_ai_turn() and not game.is_over:
            raise HTTPException(status_code=409, detail="it is the AI's turn")
        applied = game.apply_move(move)
        return MoveResponse(applied=_event(applied), state=_state(game_id, session))

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        session.controller.cancel()
        session.game.undo_turn()
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/ai-move", response_model=AiMoveResponse)
    def ai_move(game_id: str, req: Optional[AiMoveRequest] = None) -> AiMoveResponse:
        req = req or AiMoveRequest()
        session = _require_session(store, game_id)
        game = session.game
        if game.is_over:
            raise GameOverError()
        session.controller.request(game, depth=req.depth or session.search.depth)
        if not req.wait:
            return AiMoveResponse(
                search_state=session.controller.state.value, state=_state(game_id, session)
            )
        res = session.controller.wait(req.timeout_s)
        if res is None and session.controller.busy:
            session.controller.cancel()
            session.controller.wait(req.timeout_s)
            raise HTTPException(status_code=503, detail="search timed out")
        return _ai_response(game_id, session, res)

    @app.get("/api/games/{game_id}/search", response_model=AiMoveResponse)
    def search_status(game_id: str) -> AiMoveResponse:
        session = _require_session(store, game_id)
        return _ai_response(game_id, session, session.controller.result)

    @app.post("/api/games/{game_id}/search/cancel", response_model=AiMoveResponse)
    def cancel_search(game_id: str) -> AiMoveResponse:
        session = _require_session(store, game_id)
        session.controller.cancel()
        res = session.controller.wait(5.0)
        return _ai_response(game_id, session, res)

    @app.post("/api/games/{game_id}/depth")
    def set_depth(game_id: str, req: Optional[DepthRequest] = None) -> Dict[str, int]:
        session = _require_session(store, game_id)
        if req is not None and req.depth is not None:
            session.search.depth = req.depth
        else:
            session.search.next_depth()
        return {"depth": session.search.depth}

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            board = Board.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        return {"depth": req.depth, "nodes": perft_nodes(board, req.depth)}

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _parse_square(name: str) -> Square:
    try:
        return str_to_square(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _event(applied: MoveApplied) -> MoveEvent:
    return MoveEvent(
        move=applied.move.to_uci(),
        captured=applied.captured.value if applied.captured else None,
        castled=applied.castled,
        promoted=applied.promoted,
        en_passant=applied.en_passant,
    )


def _ai_response(game_id: str, session: GameSession, res: Optional[SearchResult]) -> AiMoveResponse:
    controller = session.controller
    applied = controller.applied if controller.state is not SearchState.SEARCHING else None
    if res is None or controller.state is SearchState.SEARCHING:
        return AiMoveResponse(
            search_state=controller.state.value,
            nodes=controller.nodes,
            state=_state(game_id, session),
        )
    return AiMoveResponse(
        search_state=controller.state.value,
        outcome=res.outcome.value,
        move=res.best_move.to_uci() if res.best_move else None,
        score=res.score,
        depth=res.depth,
        nodes=res.nodes,
        in_check=res.in_check,
        applied=_event(applied) if applied else None,
        state=_state(game_id, session),
    )


def _state(game_id: str, session: GameSession) -> GameState:
    game = session.game
    with game.lock:
        status = game.status
        history = game.move_history_uci()
        captured: Dict[str, List[str]] = {"w": [], "b": []}
        for rec in game.history:
            if rec.captured is not None:
                captured[rec.captured.color.opponent.value].append(rec.captured.kind.value)
        return GameState(
            game_id=game_id,
            fen=game.to_fen(),
            mode=game.mode.value,
            ai_color=game.ai_color.value,
            side_to_move=game.side_to_move.value,
            board=[[p.symbol if p else None for p in row] for row in game.board.grid],
            legal_moves=[m.to_uci() for m in game.legal_moves()],
            in_check=status.in_check,
            checkmate=status.checkmate,
            stalemate=status.stalemate,
            winner=status.winner.value if status.winner else None,
            score=ScoreModel(white=game.score.white, black=game.score.black),
            captured=captured,
            last_move=history[-1] if history else None,
            move_history=history,
            depth=session.search.depth,
            search_state=session.controller.state.value,
        )


# Default app for non-factory servers
app = create_app()
