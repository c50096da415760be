"""FastAPI REST interface for the bot."""

import threading

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from chessbot.config import CONFIG
from chessbot.core.board import is_game_over
from chessbot.core.errors import ChessBotError
from chessbot.core.evaluator import build_evaluator
from chessbot.main import Bot

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# One bot per process. Board edits hold _board_lock; searches run on a board
# copy and hold _search_lock for the shared engine.
bot = Bot(build_evaluator())
engine = bot.search
board = bot.board
_board_lock = threading.Lock()
_search_lock = threading.Lock()


class FenRequest(BaseModel):
    fen: str


class MoveRequest(BaseModel):
    move: str  # UCI format e.g. "e2e4"


class SearchRequest(BaseModel):
    depth: Optional[int] = None
    breadth: Optional[int] = None


class EvaluateRequest(BaseModel):
    fen: Optional[str] = None


class ScoredMove(BaseModel):
    move: str
    score: float


class EvaluateResponse(BaseModel):
    fen: str
    score: float
    moves: List[ScoredMove]


def _snapshot() -> dict:
    """Public view of the bot's board; caller holds _board_lock."""
    over = is_game_over(bot.board)
    return {
        "fen": bot.board.fen(),
        "turn": chess.COLOR_NAMES[bot.board.turn],
        "legal_moves": [m.uci() for m in bot.board.legal_moves],
        "is_game_over": over,
        "result": bot.board.result(claim_draw=True) if over else None,
    }


@app.get("/board")
def get_board():
    with _board_lock:
        return _snapshot()


@app.post("/position")
def set_position(req: FenRequest):
    with _board_lock:
        try:
            bot.reset(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid FEN: {e}")
        return _snapshot()


@app.post("/move")
def make_move(req: MoveRequest):
    with _board_lock:
        if not bot.make_move(req.move):
            raise HTTPException(status_code=400, detail=f"Illegal or malformed move: {req.move}")
        return {"move": req.move, **_snapshot()}


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    with _board_lock:
        if is_game_over(bot.board):
            raise HTTPException(status_code=400, detail="Game is already over")
        search_board = bot.board.copy()

    try:
        with _search_lock:
            result = engine.best_move(search_board, depth=req.depth, breadth=req.breadth)
    except ChessBotError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "best_move": result.move.uci(),
        "score": result.score,
        "nodes": result.nodes,
        "fen": search_board.fen(),
    }


@app.post("/evaluate", response_model=EvaluateResponse)
def evaluate(req: EvaluateRequest = EvaluateRequest()):
    """Static score of a position plus the one-ply score of each legal move."""
    if req.fen:
        try:
            target = chess.Board(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid FEN: {e}")
    else:
        with _board_lock:
            target = bot.board.copy()

    scored = engine.orderer.scored_moves(target)
    return EvaluateResponse(
        fen=target.fen(),
        score=engine.evaluator.evaluate(target),
        moves=[ScoredMove(move=m.uci(), score=s) for m, s in scored],
    )


@app.post("/reset")
def reset_board():
    with _board_lock:
        bot.reset()
        return _snapshot()
