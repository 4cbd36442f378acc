from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from .error import register_error_handlers
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameSession, InMemorySessionStore
from ...config import Settings
from ...engine.board import STARTPOS_FEN, Board, GameStatus
from ...engine.game import Game, GameMode, GameOverError
from ...engine.move import parse_uci
from ...engine.perft import perft as perft_nodes
from ...search.service import Difficulty, SearchAgent, score_to_cp


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    mode: Optional[GameMode] = None
    difficulty: Optional[Difficulty] = None


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str
    mode: GameMode
    difficulty: Difficulty


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4 or e7e8q")


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class SearchRequest(BaseModel):
    depth: int = Field(default=2, ge=1, le=4)


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score_cp: Optional[int]
    nodes: int
    depth: int
    time_ms: int


class PerftRequest(BaseModel):
    fen: str = Field(default=STARTPOS_FEN)
    depth: int = Field(default=1, ge=0, le=4)


class PerftResponse(BaseModel):
    nodes: int
    depth: int


class GameStateResponse(BaseModel):
    game_id: str
    fen: str
    turn: str
    status: GameStatus
    winner: Optional[str]
    in_check: bool
    legal_moves: List[str]
    board: List[List[Optional[str]]]
    move_log: List[str]
    last_move: Optional[str]
    mode: GameMode
    difficulty: Difficulty


class AIMoveResponse(BaseModel):
    move: str
    state: GameStateResponse


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings if settings is not None else Settings.from_env()
    app = FastAPI(title="chessplay API", version="0.1.0")

    logging.basicConfig(level=settings.log_level)

    app.add_middleware(RequestIDLoggingMiddleware)
    register_error_handlers(app)

    store = InMemorySessionStore()
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        req = req or CreateGameRequest()
        mode = req.mode or settings.mode
        difficulty = req.difficulty or settings.difficulty
        session = GameSession(game=Game.new(mode), agent=SearchAgent(difficulty))
        game_id = store.create(session)
        logger.info(
            "game created",
            extra={"game_id": game_id, "mode": mode.value, "difficulty": difficulty.value},
        )
        return CreateGameResponse(
            game_id=game_id, fen=session.game.to_fen(), mode=mode, difficulty=difficulty
        )

    @app.delete("/api/games/{game_id}", status_code=204)
    def delete_game(game_id: str) -> Response:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return Response(status_code=204)

    @app.get("/api/games/{game_id}/state", response_model=GameStateResponse)
    def get_state(game_id: str) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.lock:
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/position", response_model=GameStateResponse)
    def set_position(game_id: str, req: SetPositionRequest) -> GameStateResponse:
        session = _require_session(store, game_id)
        game = Game.from_fen(req.fen)
        with session.lock:
            game.mode = session.game.mode
            session.game = game
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/reset", response_model=GameStateResponse)
    def reset(game_id: str) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.lock:
            session.game.reset()
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/move", response_model=GameStateResponse)
    def make_move(game_id: str, req: MoveRequest) -> GameStateResponse:
        session = _require_session(store, game_id)
        from_sq, to_sq, promotion = parse_uci(req.move)
        with session.lock:
            game = session.game
            if not game.is_over() and game.is_ai_turn():
                raise HTTPException(status_code=409, detail="waiting for the ai move")
            game.apply_move(from_sq, to_sq, promotion)
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/undo", response_model=GameStateResponse)
    def undo(game_id: str) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.lock:
            session.game.undo()
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/ai-move", response_model=AIMoveResponse)
    def ai_move(game_id: str) -> AIMoveResponse:
        session = _require_session(store, game_id)
        with session.lock:
            game = session.game
            if game.is_over():
                raise GameOverError("game is over")
            move = session.agent.choose_move(game.board)
            if move is None:
                raise HTTPException(status_code=409, detail="no move available")
            game.play(move, actor="ai")
            return AIMoveResponse(move=move.to_uci(), state=_state_response(game_id, session))

    @app.put("/api/games/{game_id}/difficulty", response_model=GameStateResponse)
    def set_difficulty(game_id: str, req: DifficultyRequest) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.lock:
            session.agent.set_difficulty(req.difficulty)
            return _state_response(game_id, session)

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    def search(game_id: str, req: Optional[SearchRequest] = None) -> SearchResponse:
        session = _require_session(store, game_id)
        req = req or SearchRequest()
        with session.lock:
            res = session.agent.search(session.game.board, req.depth)
        return SearchResponse(
            best_move=res.best_move.to_uci() if res.best_move else None,
            score_cp=score_to_cp(res.score) if res.score is not None else None,
            nodes=res.nodes,
            depth=res.depth,
            time_ms=res.time_ms,
        )

    @app.post("/api/perft", response_model=PerftResponse)
    def perft(req: PerftRequest) -> PerftResponse:
        board = Board.from_fen(req.fen)
        return PerftResponse(nodes=perft_nodes(board, req.depth), depth=req.depth)

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _state_response(game_id: str, session: GameSession) -> GameStateResponse:
    game = session.game
    board = game.board
    state = game.state()
    return GameStateResponse(
        game_id=game_id,
        fen=board.to_fen(),
        turn=board.side_to_move.value,
        status=state.status,
        winner=state.winner.value if state.winner is not None else None,
        in_check=state.in_check,
        legal_moves=[m.to_uci() for m in state.legal_moves],
        board=[[p.symbol if p else None for p in row] for row in board.get_board_snapshot()],
        move_log=list(game.move_log),
        last_move=game.last_move(),
        mode=game.mode,
        difficulty=session.agent.difficulty,
    )


# Default app for non-factory servers
app = create_app()
