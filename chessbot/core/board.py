"""Board helpers over python-chess: terminal queries and scoped move application."""

from contextlib import contextmanager
from typing import Iterator

import chess


def is_draw(board: chess.Board) -> bool:
    """Stalemate, insufficient material, fifty-move rule or threefold repetition."""
    return (board.is_stalemate()
            or board.is_insufficient_material()
            or board.is_fifty_moves()
            or board.is_repetition(3))


def is_game_over(board: chess.Board) -> bool:
    return board.is_checkmate() or is_draw(board)


@contextmanager
def applied(board: chess.Board, move: chess.Move) -> Iterator[chess.Board]:
    """Push ``move`` for the duration of the block and always pop it on exit.

    Usage:

        with applied(board, move):
            score = evaluator.evaluate(board)
    """
    board.push(move)
    try:
        yield board
    finally:
        board.pop()
