"""chessbot: minimax chess move selection with material and neural network evaluators."""

from chessbot.core.evaluator import MaterialHeuristic, NeuralNetEvaluator
from chessbot.core.network import NeuralNet
from chessbot.core.search import SearchEngine, SearchResult
from chessbot.main import Bot

__all__ = ["Bot", "SearchEngine", "SearchResult", "MaterialHeuristic", "NeuralNetEvaluator", "NeuralNet"]
__version__ = "1.0.0"
