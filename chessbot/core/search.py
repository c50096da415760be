import logging
from dataclasses import dataclass
from typing import List, Optional

import chess

from chessbot.config import CONFIG
from chessbot.core.board import applied, is_game_over
from chessbot.core.errors import ConfigurationError, NoLegalMovesError
from chessbot.core.evaluator import Evaluator, build_evaluator
from chessbot.core.ordering import MoveOrderer, orientation

log = logging.getLogger(__name__)

INF = float("inf")


@dataclass(frozen=True)
class SearchResult:
    move: chess.Move
    score: float
    nodes: int = 0


def _check_limits(depth, breadth):
    for name, value in (("depth", depth), ("breadth", breadth)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{name} must be an int, got {value!r}")
    if depth < 0 and breadth < 1:
        raise ConfigurationError("depth and breadth cannot both be unbounded")


class SearchEngine:
    """Depth and breadth bounded minimax with alpha-beta pruning.

    depth:   plies searched below each root move; negative means unbounded.
    breadth: only the first ``breadth`` ordered moves are searched at every
             node; values below 1 mean every legal move is searched.

    The board handed to best_move/minimax is mutated in place during the
    search and is always restored before the call returns.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, depth: Optional[int] = None,
                 breadth: Optional[int] = None, mate_score: Optional[float] = None,
                 alpha_beta: Optional[bool] = None, order_moves: Optional[bool] = None):
        cfg = CONFIG.search
        if evaluator is None:
            evaluator = build_evaluator(mate_score=cfg.mate_score if mate_score is None else mate_score)
        elif mate_score is not None and mate_score != evaluator.mate_score:
            # An injected evaluator owns the mate score.
            raise ConfigurationError(
                f"mate_score {mate_score} conflicts with evaluator mate score {evaluator.mate_score}")
        self.evaluator = evaluator
        self.depth = cfg.depth if depth is None else depth
        self.breadth = cfg.breadth if breadth is None else breadth
        self.alpha_beta = cfg.alpha_beta if alpha_beta is None else alpha_beta
        self.order_moves = cfg.order_moves if order_moves is None else order_moves
        _check_limits(self.depth, self.breadth)
        self.orderer = MoveOrderer(self.evaluator)
        self.nodes = 0

    @property
    def mate_score(self) -> float:
        return self.evaluator.mate_score

    def best_move(self, board: chess.Board, depth: Optional[int] = None,
                  breadth: Optional[int] = None) -> SearchResult:
        depth = self.depth if depth is None else depth
        breadth = self.breadth if breadth is None else breadth
        _check_limits(depth, breadth)
        if not any(board.legal_moves):
            raise NoLegalMovesError(f"no legal moves in {board.fen()}")

        self.nodes = 0
        sign = orientation(board)
        alpha, beta = -INF, INF
        moves = self._candidate_moves(board, breadth)
        best_move, best_score = moves[0], -sign * INF

        for move in moves:
            with applied(board, move):
                score = self._minimax(board, alpha, beta, depth, breadth)
            if sign * score > sign * best_score:
                best_move, best_score = move, score
                if self.alpha_beta:
                    if sign > 0:
                        alpha = max(alpha, score)
                    else:
                        beta = min(beta, score)

        log.debug("best move %s score %.2f (%d nodes, depth %d, breadth %d)",
                  best_move.uci(), best_score, self.nodes, depth, breadth)
        return SearchResult(best_move, best_score, self.nodes)

    def minimax(self, board: chess.Board, alpha: float = -INF, beta: float = INF,
                depth: Optional[int] = None, breadth: Optional[int] = None) -> float:
        """Minimax value of ``board`` without choosing a move."""
        depth = self.depth if depth is None else depth
        breadth = self.breadth if breadth is None else breadth
        _check_limits(depth, breadth)
        self.nodes = 0
        return self._minimax(board, alpha, beta, depth, breadth)

    def _minimax(self, board: chess.Board, alpha: float, beta: float, depth: int, breadth: int) -> float:
        self.nodes += 1
        # Mate and draw scores come from the evaluator.
        if depth == 0 or is_game_over(board):
            return self.evaluator.evaluate(board)
        if depth > 0:
            depth -= 1

        sign = orientation(board)
        best = -sign * INF
        for move in self._candidate_moves(board, breadth):
            with applied(board, move):
                score = self._minimax(board, alpha, beta, depth, breadth)
            if sign * score > sign * best:
                best = score
                if self.alpha_beta:
                    if sign > 0:
                        alpha = max(alpha, best)
                    else:
                        beta = min(beta, best)
            if alpha > beta:
                break
        return best

    def _candidate_moves(self, board: chess.Board, breadth: int) -> List[chess.Move]:
        """Ordered moves cut to the breadth limit."""
        if self.order_moves or breadth >= 1:
            moves = self.orderer.get_sorted_moves(board)
        else:
            moves = list(board.legal_moves)
        if breadth >= 1:
            moves = moves[:breadth]
        return moves
