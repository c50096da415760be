"""Core search components: board helpers, evaluators, network, ordering and search."""

from .board import applied, is_draw, is_game_over
from .evaluator import Evaluator, MaterialHeuristic, NeuralNetEvaluator, build_evaluator
from .features import FEATURE_SIZE, encode_board, encode_board_fen
from .network import NeuralNet
from .ordering import MoveOrderer
from .search import SearchEngine, SearchResult
