"""
Training data collection for the neural network evaluator.

Reads FEN strings (one per line), scores each position with a material-only
minimax search and writes one record per line:

    <active feature indices, comma separated>;<score>

e.g. ``5,17,29;1.0000``. The indices are the 1s of the one-hot encoding in
chessbot.core.features; every other input is 0. Material is used on purpose:
scoring with the network itself would train it on its own output.

Positions are independent, so they are spread over a process pool. Each
worker builds its own SearchEngine once and every task parses its own board.
"""
from __future__ import annotations

import argparse
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import chess
import numpy as np
from tqdm import tqdm

from chessbot.config import CONFIG
from chessbot.core.errors import ConfigurationError, InvalidEncodingError
from chessbot.core.evaluator import MaterialHeuristic
from chessbot.core.features import FEATURE_SIZE, active_feature_indices
from chessbot.core.search import INF, SearchEngine

log = logging.getLogger(__name__)

SCORE_FORMAT = "%.4f"


@dataclass
class TrainingRecord:
    features: List[int]
    score: float

    def to_line(self) -> str:
        return ",".join(str(i) for i in self.features) + ";" + SCORE_FORMAT % self.score

    @classmethod
    def from_line(cls, line: str) -> "TrainingRecord":
        indices, _, score = line.strip().partition(";")
        if not score:
            raise InvalidEncodingError(f"missing score in record {line!r}")
        features = [int(i) for i in indices.split(",") if i]
        return cls(features, float(score))


# =============================
# Worker side
# =============================

_worker_engine: Optional[SearchEngine] = None


def _init_worker(depth: int, breadth: int, mate_score: float):
    global _worker_engine
    evaluator = MaterialHeuristic(CONFIG.eval.piece_values, mate_score=mate_score)
    _worker_engine = SearchEngine(evaluator, depth=depth, breadth=breadth)


def _parse_fen(lineno: int, fen: str) -> chess.Board:
    try:
        return chess.Board(fen)
    except ValueError as e:
        raise InvalidEncodingError(f"line {lineno}: invalid FEN {fen!r}: {e}") from e


def _score_fen(item: Tuple[int, str]) -> TrainingRecord:
    lineno, fen = item
    board = _parse_fen(lineno, fen)
    features = active_feature_indices(board.board_fen())
    score = _worker_engine.minimax(board, -INF, INF)
    return TrainingRecord(features, score)


# =============================
# Batch side
# =============================

def read_fens(path: str) -> List[Tuple[int, str]]:
    """(line number, FEN) pairs; blank lines are skipped."""
    with open(path, "r", encoding="utf-8") as f:
        return [(n, line.strip()) for n, line in enumerate(f, start=1) if line.strip()]


def default_workers() -> int:
    cores = os.cpu_count() or 2
    return max(1, cores - 1)


def collect_training_data(
    fens: Sequence[str] | Sequence[Tuple[int, str]],
    depth: Optional[int] = None,
    breadth: Optional[int] = None,
    workers: Optional[int] = None,
    mate_score: Optional[float] = None,
    progress: bool = True,
) -> List[TrainingRecord]:
    """Score every FEN; records come back in input order."""
    cfg = CONFIG.training
    depth = cfg.depth if depth is None else depth
    breadth = cfg.breadth if breadth is None else breadth
    workers = workers or cfg.workers or default_workers()
    mate_score = CONFIG.search.mate_score if mate_score is None else mate_score
    if mate_score <= 0:
        raise ConfigurationError(f"mate score must be positive, got {mate_score}")

    items = [fen if isinstance(fen, tuple) else (n, fen) for n, fen in enumerate(fens, start=1)]
    log.info("Scoring %d positions at depth %d breadth %d with %d worker(s)",
             len(items), depth, breadth, workers)

    if workers == 1:
        _init_worker(depth, breadth, mate_score)
        results: Iterable[TrainingRecord] = map(_score_fen, items)
        return list(tqdm(results, total=len(items), disable=not progress, desc="positions"))

    with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker,
                             initargs=(depth, breadth, mate_score)) as pool:
        results = pool.map(_score_fen, items, chunksize=max(1, len(items) // (workers * 4)))
        return list(tqdm(results, total=len(items), disable=not progress, desc="positions"))


def write_records(records: Iterable[TrainingRecord], path: str) -> int:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(record.to_line() + "\n")
            count += 1
    log.info("Wrote %d records to %s", count, path)
    return count


def load_dataset(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """Expand a record file into dense inputs X (n, 768) and targets y (n,)."""
    with open(path, "r", encoding="utf-8") as f:
        records = [TrainingRecord.from_line(line) for line in f if line.strip()]
    X = np.zeros((len(records), FEATURE_SIZE), dtype=np.float32)
    y = np.zeros(len(records), dtype=np.float32)
    for row, record in enumerate(records):
        X[row, record.features] = 1.0
        y[row] = record.score
    return X, y


def main(argv: Optional[Sequence[str]] = None) -> int:
    cfg = CONFIG.training
    parser = argparse.ArgumentParser(description="Score FEN positions with material minimax for network training.")
    parser.add_argument("--fens", default=cfg.fens_path, help="input file, one FEN per line")
    parser.add_argument("--output", default=cfg.output_path, help="record file to write")
    parser.add_argument("--depth", type=int, default=cfg.depth)
    parser.add_argument("--breadth", type=int, default=cfg.breadth)
    parser.add_argument("--workers", type=int, default=cfg.workers, help="0 = cpu_count - 1")
    parser.add_argument("--no-progress", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=CONFIG.log_level)
    fens = read_fens(args.fens)
    records = collect_training_data(fens, depth=args.depth, breadth=args.breadth,
                                    workers=args.workers, progress=not args.no_progress)
    write_records(records, args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
