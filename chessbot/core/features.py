"""Board to feature-vector encoding for the neural network evaluator.

The encoder walks the piece-placement field of a FEN string, so squares are
visited rank 8 to rank 1 and file a to h within each rank. Every square owns a
block of twelve inputs, one per piece class in ``PIECE_SYMBOLS`` order (White
pieces first, then Black, by absolute colour). An occupied square sets the
single input of its piece class; an empty square leaves its block all zero.

    >>> features = encode_board(chess.Board())
    >>> features.shape
    (768,)
"""

from typing import List

import chess
import numpy as np

from chessbot.core.errors import InvalidEncodingError

PIECE_SYMBOLS = "PNBRQKpnbrqk"
PIECE_INDEX = {symbol: i for i, symbol in enumerate(PIECE_SYMBOLS)}
NUM_PIECE_CLASSES = len(PIECE_SYMBOLS)
NUM_SQUARES = 64
FEATURE_SIZE = NUM_SQUARES * NUM_PIECE_CLASSES


def active_feature_indices(board_fen: str) -> List[int]:
    """Return the indices set to 1 for a FEN piece-placement field, ascending."""
    # A full FEN is accepted; only the placement field matters.
    placement = board_fen.split(" ", 1)[0]
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise InvalidEncodingError(f"expected 8 ranks, got {len(ranks)} in {board_fen!r}")

    indices = []
    square = 0
    for rank in ranks:
        files = 0
        for ch in rank:
            if ch in PIECE_INDEX:
                indices.append((square + files) * NUM_PIECE_CLASSES + PIECE_INDEX[ch])
                files += 1
            elif ch in "12345678":
                files += int(ch)
            else:
                raise InvalidEncodingError(f"unrecognized symbol {ch!r} in {board_fen!r}")
        if files != 8:
            raise InvalidEncodingError(f"rank {rank!r} covers {files} squares, expected 8")
        square += 8
    return indices


def encode_board_fen(board_fen: str) -> np.ndarray:
    features = np.zeros(FEATURE_SIZE, dtype=np.float32)
    features[active_feature_indices(board_fen)] = 1.0
    return features


def encode_board(board: chess.Board) -> np.ndarray:
    return encode_board_fen(board.board_fen())
