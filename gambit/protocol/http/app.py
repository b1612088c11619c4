from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, model_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...config import Settings
from ...engine.errors import ChessError, IllegalMoveError
from ...engine.game import Game, GameStatus
from ...engine.move import Move, parse_promotion, parse_uci, square_to_str, str_to_square
from ...search.service import SearchService
from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead of the initial position")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    """Either coordinate fields or a single ``move`` string."""

    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(default=None, alias="from", description="Origin square, e.g. e2")
    to: Optional[str] = Field(default=None, description="Destination square, e.g. e4")
    promotion: Optional[str] = Field(default=None, description="q, r, b, n or the piece name")
    move: Optional[str] = Field(default=None, description="UCI move string, e.g. e2e4 or e2-e4")

    @model_validator(mode="after")
    def _one_form(self) -> "MoveRequest":
        if self.move is None and (self.from_ is None or self.to is None):
            raise ValueError("provide either 'move' or both 'from' and 'to'")
        return self

    def to_move(self) -> Move:
        try:
            if self.move is not None:
                return parse_uci(self.move)
            return Move(
                str_to_square((self.from_ or "").strip()),
                str_to_square((self.to or "").strip()),
                parse_promotion(self.promotion),
            )
        except ValueError as e:
            raise IllegalMoveError(str(e)) from e


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1)


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: str
    status: str
    legal_moves: List[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    draw: bool
    last_move: Optional[str]
    move_history: List[str]
    board: List[str]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    cfg = settings or Settings.from_env()
    app = FastAPI(title="gambit", version="0.1.0")
    app.state.settings = cfg

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    service = SearchService()
    app.state.store = store

    @app.get("/healthz")
    @app.get("/api/health")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse, status_code=201)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        game = Game.from_fen(req.fen) if req is not None and req.fen else Game.new()
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    @app.get("/api/games/{game_id}", response_model=GameState)
    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        with store.lock(game_id) as game:
            return _state(game_id, _require(game))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        with store.lock(game_id) as game:
            _require(game)
            new_game = Game.from_fen(req.fen)
            store.set(game_id, new_game)
            return _state(game_id, new_game)

    @app.post("/api/games/{game_id}/moves", response_model=GameState)
    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        move = req.to_move()
        with store.lock(game_id) as game:
            game = _require(game)
            game.apply_move(move)
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        with store.lock(game_id) as game:
            game = _require(game)
            game.undo_move()
            return _state(game_id, game)

    # Searches are CPU bound: plain ``def`` so they run in the threadpool
    @app.get("/api/games/{game_id}/best-move")
    def best_move(
        game_id: str,
        depth: Optional[int] = Query(default=None, ge=1, le=cfg.max_depth),
    ) -> Dict[str, Any]:
        return _search(game_id, depth or cfg.default_depth)

    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: Optional[SearchRequest] = None) -> Dict[str, Any]:
        depth = req.depth if req is not None and req.depth else cfg.default_depth
        if depth > cfg.max_depth:
            raise HTTPException(status_code=422, detail=f"depth must be <= {cfg.max_depth}")
        return _search(game_id, depth)

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> Response:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return Response(status_code=204)

    def _search(game_id: str, depth: int) -> Dict[str, Any]:
        # Search a private copy so moves on the same game are not blocked
        with store.lock(game_id) as game:
            snapshot = _require(game).copy()
        res = service.best_move(snapshot, depth)
        best = res.best_move
        return {
            "from": square_to_str(best.from_sq),
            "to": square_to_str(best.to_sq),
            "promotion": best.promotion,
            "move": best.to_uci(),
            "evaluation": res.score,
            "mate_in": res.mate_in,
            "pv": [m.to_uci() for m in res.pv],
            "nodes_searched": res.nodes,
            "depth": res.depth,
            "time_ms": res.time_ms,
        }

    return app


def _require(game: Optional[Game]) -> Game:
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _state(game_id: str, game: Game) -> GameState:
    board = game.board
    history = game.move_history_uci()
    status = game.status()
    rows = []
    for rank in range(7, -1, -1):
        rows.append(
            "".join(
                p.symbol if p is not None else "." for p in board.squares[rank * 8 : rank * 8 + 8]
            )
        )
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        side_to_move=board.side_to_move,
        status=status.value,
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=board.in_check(),
        checkmate=status is GameStatus.CHECKMATE,
        stalemate=status is GameStatus.STALEMATE,
        draw=game.is_draw(),
        last_move=history[-1] if history else None,
        move_history=history,
        board=rows,
    )
