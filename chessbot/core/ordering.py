"""One-ply lookahead move ordering."""

from typing import List, Tuple

import chess

from chessbot.core.board import applied
from chessbot.core.evaluator import Evaluator


def orientation(board: chess.Board) -> int:
    """+1 when White is to move (maximizing), -1 when Black is (minimizing)."""
    return 1 if board.turn == chess.WHITE else -1


class MoveOrderer:
    def __init__(self, evaluator: Evaluator):
        self.evaluator = evaluator

    def scored_moves(self, board: chess.Board) -> List[Tuple[chess.Move, float]]:
        """Legal moves paired with the evaluation of the position each one leads to."""
        scored = []
        for move in list(board.legal_moves):
            with applied(board, move):
                scored.append((move, self.evaluator.evaluate(board)))
        return scored

    def get_sorted_moves(self, board: chess.Board) -> List[chess.Move]:
        """Legal moves, best first for the side to move.

        The sort is stable, so moves with equal scores keep python-chess's
        legal move generation order.
        """
        sign = orientation(board)
        scored = self.scored_moves(board)
        scored.sort(key=lambda item: -sign * item[1])
        return [move for move, _ in scored]
