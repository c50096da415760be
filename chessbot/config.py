# chessbot/config.py
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import os
import tomllib  # python >=3.11

# Defaults (pawn units)
PIECE_VALUES = {
    "PAWN": 1,
    "KNIGHT": 3,
    "BISHOP": 3,
    "ROOK": 5,
    "QUEEN": 9,
}

@dataclass
class SearchConfig:
    depth: int = 3            # negative means unbounded
    breadth: int = -1         # values < 1 mean unbounded
    mate_score: float = 100.0
    alpha_beta: bool = True
    order_moves: bool = True
    low_clock_ms: int = 2000  # below this remaining time the bot searches one ply
    low_clock_depth: int = 1

@dataclass
class EvalConfig:
    evaluator: str = "material"  # "material" or "network"
    piece_values: Dict[str, float] = field(default_factory=lambda: PIECE_VALUES.copy())
    network_path: Optional[str] = None
    layer_sizes: Tuple[int, ...] = (768, 32, 1)
    relu_output: bool = False

@dataclass
class TrainingConfig:
    depth: int = 5
    breadth: int = 12
    workers: int = 0  # 0 means cpu_count - 1
    fens_path: str = "data/fens.txt"
    output_path: str = "data/training.txt"

@dataclass
class UIConfig:
    engine_name: str = "ChessBot"
    engine_author: str = "ChessBot developers"
    api_port: int = 8000

@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "training", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    if k == "layer_sizes":
                        v = tuple(v)
                    setattr(target, k, v)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg

# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("CHESSBOT_CONFIG_TOML", "config.toml"))
# allow env override of depth for quick debugging
override_depth = os.environ.get("CHESSBOT_SEARCH_DEPTH")
if override_depth:
    try:
        CONFIG.search.depth = int(override_depth)
    except ValueError:
        pass
