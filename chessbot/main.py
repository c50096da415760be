from typing import Optional

import chess

from chessbot.config import CONFIG
from chessbot.core.board import is_game_over
from chessbot.core.evaluator import Evaluator
from chessbot.core.search import SearchEngine, SearchResult


class Bot:
    """Owns a game board and answers with the search engine's move."""

    def __init__(self, evaluator: Optional[Evaluator] = None, depth: Optional[int] = None,
                 breadth: Optional[int] = None, fen: Optional[str] = None):
        self.board = chess.Board(fen) if fen else chess.Board()
        self.search = SearchEngine(evaluator, depth=depth, breadth=breadth)
        self.last_result: Optional[SearchResult] = None

    def reset(self, fen: Optional[str] = None):
        """Reset to the initial position or to ``fen``."""
        if fen:
            self.board.set_fen(fen)
        else:
            self.board.reset()
        self.last_result = None

    def depth_for_clock(self, remaining_ms: Optional[int]) -> int:
        """Search depth to use with ``remaining_ms`` left on our clock."""
        cfg = CONFIG.search
        if remaining_ms is not None and remaining_ms < cfg.low_clock_ms:
            return min(self.search.depth, cfg.low_clock_depth) if self.search.depth >= 0 else cfg.low_clock_depth
        return self.search.depth

    def think(self, board: Optional[chess.Board] = None, remaining_ms: Optional[int] = None) -> Optional[chess.Move]:
        """Best move for ``board`` (default: the bot's own board), None if the game is over."""
        board = self.board if board is None else board
        if is_game_over(board) or not any(board.legal_moves):
            self.last_result = None
            return None
        self.last_result = self.search.best_move(board, depth=self.depth_for_clock(remaining_ms))
        return self.last_result.move

    def make_move(self, move_uci: str) -> bool:
        """Push a UCI move (e.g. 'e2e4'). Returns True if legal."""
        try:
            move = chess.Move.from_uci(move_uci)
        except ValueError:
            return False
        if move not in self.board.legal_moves:
            return False
        self.board.push(move)
        return True
