"""Position evaluators.

Every evaluator scores from White's point of view: positive favors White
whatever side is to move. Checkmate scores ``mate_score`` against the side to
move (that side has just been mated) and any detected draw scores exactly 0.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

import chess

from chessbot.config import CONFIG, EvalConfig, PIECE_VALUES
from chessbot.core.board import is_draw
from chessbot.core.errors import ConfigurationError
from chessbot.core.features import encode_board
from chessbot.core.network import NeuralNet

MATE_SCORE = 100.0
DRAW_SCORE = 0.0

_PIECE_TYPES = {
    "PAWN": chess.PAWN,
    "KNIGHT": chess.KNIGHT,
    "BISHOP": chess.BISHOP,
    "ROOK": chess.ROOK,
    "QUEEN": chess.QUEEN,
}


def terminal_score(board: chess.Board, mate_score: float = MATE_SCORE) -> Optional[float]:
    """Mate or draw score for a finished game, None while play continues."""
    if board.is_checkmate():
        return -mate_score if board.turn == chess.WHITE else mate_score
    if is_draw(board):
        return DRAW_SCORE
    return None


class Evaluator(ABC):
    def __init__(self, mate_score: float = MATE_SCORE):
        if mate_score <= 0:
            raise ConfigurationError(f"mate score must be positive, got {mate_score}")
        self.mate_score = mate_score

    def evaluate(self, board: chess.Board) -> float:
        score = terminal_score(board, self.mate_score)
        if score is not None:
            return score
        return self.evaluate_position(board)

    @abstractmethod
    def evaluate_position(self, board: chess.Board) -> float:
        """Score an ongoing (non-terminal) position."""


class MaterialHeuristic(Evaluator):
    """Weighted material balance, White minus Black. Kings are not counted."""

    def __init__(self, piece_values: Optional[Dict[str, float]] = None, mate_score: float = MATE_SCORE):
        super().__init__(mate_score)
        values = piece_values or PIECE_VALUES
        unknown = set(values) - set(_PIECE_TYPES)
        if unknown:
            raise ConfigurationError(f"unknown piece names: {sorted(unknown)}")
        self.weights = {_PIECE_TYPES[name]: float(v) for name, v in values.items()}

    def evaluate_position(self, board: chess.Board) -> float:
        score = 0.0
        for pt, weight in self.weights.items():
            score += weight * (len(board.pieces(pt, chess.WHITE)) - len(board.pieces(pt, chess.BLACK)))
        return score


class NeuralNetEvaluator(Evaluator):
    """Feeds the one-hot board encoding through a loaded NeuralNet."""

    def __init__(self, network: NeuralNet, mate_score: float = MATE_SCORE):
        super().__init__(mate_score)
        if network.output_size != 1:
            raise ConfigurationError(f"network must have a single output, has {network.output_size}")
        self.network = network

    def evaluate_position(self, board: chess.Board) -> float:
        return float(self.network.get_outputs(encode_board(board))[0])


def build_evaluator(cfg: Optional[EvalConfig] = None, mate_score: Optional[float] = None) -> Evaluator:
    """Create the evaluator named by ``cfg.evaluator``."""
    cfg = cfg or CONFIG.eval
    if mate_score is None:
        mate_score = CONFIG.search.mate_score

    if cfg.evaluator == "material":
        return MaterialHeuristic(cfg.piece_values, mate_score=mate_score)
    if cfg.evaluator == "network":
        if not cfg.network_path:
            raise ConfigurationError("network evaluator selected but eval.network_path is not set")
        network = NeuralNet(cfg.layer_sizes, relu_output=cfg.relu_output)
        network.load_parameters_file(cfg.network_path)
        return NeuralNetEvaluator(network, mate_score=mate_score)
    raise ConfigurationError(f"unknown evaluator: {cfg.evaluator!r}")
