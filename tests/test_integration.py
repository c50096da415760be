"""
Integration tests for chessbot.

Tests end-to-end flows:
- Bot vs bot games
- Training data collection (serial and process pool), record files, dataset loading
- UCI protocol handling
- REST API endpoints
"""

import io
from concurrent.futures import ThreadPoolExecutor

import chess
import numpy as np
import pytest

from chessbot.core.errors import ConfigurationError, InvalidEncodingError
from chessbot.core.evaluator import MATE_SCORE, MaterialHeuristic, NeuralNetEvaluator
from chessbot.core.features import FEATURE_SIZE, active_feature_indices, encode_board
from chessbot.core.network import NeuralNet
from chessbot.core.search import INF, SearchEngine
from chessbot.main import Bot
from chessbot.training import (
    TrainingRecord,
    collect_training_data,
    load_dataset,
    main as collect_main,
    read_fens,
    write_records,
)

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 0 1"
HANGING_QUEEN = "4k3/8/8/3q4/4P3/8/8/4K3 w - - 0 1"
SAMPLE_FENS = [
    chess.STARTING_FEN,
    HANGING_QUEEN,
    "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 2 3",
    "6k1/5ppp/8/8/8/8/8/R3K3 w - - 0 1",
]


# ════════════════════════════════════════════════════════════════════════════
#  FULL GAME SIMULATION
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    """Play moves through the bot and check the game stays consistent."""

    def test_bot_vs_bot_plies(self):
        white = Bot(MaterialHeuristic(), depth=1, breadth=4)
        black = Bot(MaterialHeuristic(), depth=1, breadth=4)
        board = chess.Board()
        for ply in range(8):
            bot = white if board.turn == chess.WHITE else black
            move = bot.think(board)
            assert move in board.legal_moves, f"illegal move at ply {ply}"
            board.push(move)
        assert len(board.move_stack) == 8

    def test_bot_converts_back_rank_mate(self):
        bot = Bot(MaterialHeuristic(), depth=1, fen="6k1/5ppp/8/8/8/8/8/R3K3 w - - 0 1")
        bot.board.push(bot.think())
        assert bot.board.is_checkmate()
        assert bot.think() is None

    def test_network_evaluator_drives_search(self):
        # Network that only sees white queens and black rooks.
        weights = np.zeros(FEATURE_SIZE)
        for square in range(64):
            weights[square * 12 + 4] = 9.0
            weights[square * 12 + 9] = -5.0
        net = NeuralNet((FEATURE_SIZE, 1))
        net.load_parameters(np.append(weights, 0.0))
        engine = SearchEngine(NeuralNetEvaluator(net), depth=1)

        board = chess.Board("4k3/8/8/8/3r4/8/3Q4/4K3 w - - 0 1")
        result = engine.best_move(board)
        assert result.move == chess.Move.from_uci("d2d4")
        assert result.score == pytest.approx(9.0)


# ════════════════════════════════════════════════════════════════════════════
#  TRAINING DATA COLLECTION
# ════════════════════════════════════════════════════════════════════════════


class TestTrainingData:
    def test_records_match_direct_search(self):
        records = collect_training_data(SAMPLE_FENS, depth=1, breadth=3, workers=1, progress=False)
        engine = SearchEngine(MaterialHeuristic(), depth=1, breadth=3)
        assert len(records) == len(SAMPLE_FENS)
        for fen, record in zip(SAMPLE_FENS, records):
            board = chess.Board(fen)
            assert record.features == active_feature_indices(board.board_fen())
            assert record.score == engine.minimax(board, -INF, INF, 1, 3)

    def test_process_pool_matches_serial(self):
        serial = collect_training_data(SAMPLE_FENS, depth=1, breadth=2, workers=1, progress=False)
        pooled = collect_training_data(SAMPLE_FENS, depth=1, breadth=2, workers=2, progress=False)
        assert [r.to_line() for r in pooled] == [r.to_line() for r in serial]

    def test_terminal_position_scored_directly(self):
        [record] = collect_training_data([FOOLS_MATE], depth=3, breadth=2, workers=1, progress=False)
        assert record.score == -MATE_SCORE

    def test_custom_mate_score(self):
        [record] = collect_training_data([FOOLS_MATE], depth=1, breadth=2, workers=1,
                                         mate_score=500, progress=False)
        assert record.score == -500

    @pytest.mark.parametrize("workers", [1, 2])
    def test_zero_mate_score_rejected(self, workers):
        with pytest.raises(ConfigurationError):
            collect_training_data([FOOLS_MATE], depth=1, breadth=2, workers=workers,
                                  mate_score=0, progress=False)

    def test_invalid_fen_names_line(self):
        with pytest.raises(InvalidEncodingError, match="line 2"):
            collect_training_data([chess.STARTING_FEN, "not a fen"], depth=0, breadth=1,
                                  workers=1, progress=False)

    def test_record_line_format(self):
        record = TrainingRecord([5, 17, 29], 1.0)
        assert record.to_line() == "5,17,29;1.0000"
        parsed = TrainingRecord.from_line("5,17,29;-2.5000\n")
        assert parsed.features == [5, 17, 29]
        assert parsed.score == -2.5

    def test_record_without_score_rejected(self):
        with pytest.raises(InvalidEncodingError):
            TrainingRecord.from_line("1,2,3")

    def test_write_and_load_dataset(self, tmp_path):
        records = collect_training_data(SAMPLE_FENS[:2], depth=0, breadth=1, workers=1, progress=False)
        path = tmp_path / "out" / "train.txt"
        assert write_records(records, str(path)) == 2

        X, y = load_dataset(str(path))
        assert X.shape == (2, FEATURE_SIZE)
        np.testing.assert_array_equal(X[0], encode_board(chess.Board(SAMPLE_FENS[0])))
        np.testing.assert_allclose(y, [r.score for r in records])

    def test_read_fens_skips_blank_lines(self, tmp_path):
        path = tmp_path / "fens.txt"
        path.write_text(f"{chess.STARTING_FEN}\n\n{HANGING_QUEEN}\n")
        assert read_fens(str(path)) == [(1, chess.STARTING_FEN), (3, HANGING_QUEEN)]

    def test_cli_writes_records(self, tmp_path):
        fens = tmp_path / "fens.txt"
        fens.write_text("\n".join(SAMPLE_FENS[:2]) + "\n")
        out = tmp_path / "train.txt"
        code = collect_main(["--fens", str(fens), "--output", str(out), "--depth", "1",
                             "--breadth", "2", "--workers", "1", "--no-progress"])
        assert code == 0
        lines = out.read_text().splitlines()
        assert len(lines) == 2
        assert lines[1].endswith(";1.0000")  # exd5 wins the queen


# ════════════════════════════════════════════════════════════════════════════
#  UCI PROTOCOL INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestUCIIntegration:
    """Tests UCI protocol parsing and state management."""

    def _make_uci(self):
        from interface.uci import UCI

        self.out = io.StringIO()
        return UCI(Bot(MaterialHeuristic(), depth=1, breadth=4), out=self.out)

    def test_handshake(self):
        uci = self._make_uci()
        uci.handle("uci")
        uci.handle("isready")
        lines = self.out.getvalue().splitlines()
        assert lines[0].startswith("id name")
        assert "uciok" in lines
        assert lines[-1] == "readyok"

    def test_position_startpos_moves(self):
        uci = self._make_uci()
        uci._parse_position(["startpos", "moves", "e2e4", "e7e5"])
        expected = chess.Board()
        expected.push(chess.Move.from_uci("e2e4"))
        expected.push(chess.Move.from_uci("e7e5"))
        assert uci.board.fen() == expected.fen()

    def test_position_fen_with_moves(self):
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        uci = self._make_uci()
        uci._parse_position(["fen"] + fen.split() + ["moves", "e7e5"])
        expected = chess.Board(fen)
        expected.push(chess.Move.from_uci("e7e5"))
        assert uci.board.fen() == expected.fen()

    def test_position_invalid_fen_no_crash(self):
        uci = self._make_uci()
        old_fen = uci.board.fen()
        uci._parse_position(["fen", "invalid", "fen", "string"])
        assert uci.board.fen() == old_fen

    def test_position_illegal_moves_stop(self):
        uci = self._make_uci()
        uci._parse_position(["startpos", "moves", "e2e4", "e2e5"])
        expected = chess.Board()
        expected.push(chess.Move.from_uci("e2e4"))
        assert uci.board.fen() == expected.fen()

    def test_position_empty_tokens(self):
        uci = self._make_uci()
        old_fen = uci.board.fen()
        uci._parse_position([])
        assert uci.board.fen() == old_fen

    def test_go_returns_legal_bestmove(self):
        uci = self._make_uci()
        uci.handle("position fen " + HANGING_QUEEN)
        uci.handle("go depth 1")
        lines = self.out.getvalue().splitlines()
        assert lines[-2].startswith("info depth 1 score cp 100")
        assert lines[-1] == "bestmove e4d5"

    @pytest.mark.parametrize("fen, bestmove", [
        ("6k1/5ppp/8/8/8/8/8/R3K3 w - - 0 1", "a1a8"),
        ("r3k3/8/8/8/8/8/5PPP/6K1 b - - 0 1", "a8a1"),
    ])
    def test_go_reports_mate_as_centipawns(self, fen, bestmove):
        uci = self._make_uci()
        uci.handle("position fen " + fen)
        uci.handle("go depth 1")
        lines = self.out.getvalue().splitlines()
        assert lines[-2].startswith("info depth 1 score cp 10000 ")
        assert " mate " not in lines[-2]
        assert lines[-1] == f"bestmove {bestmove}"

    def test_go_on_finished_game(self):
        uci = self._make_uci()
        uci.handle("position fen " + FOOLS_MATE)
        uci.handle("go")
        assert self.out.getvalue().splitlines()[-1] == "bestmove 0000"

    def test_go_low_clock_uses_shallow_depth(self):
        uci = self._make_uci()
        uci.bot.search.depth = 3
        uci.handle("go wtime 500 btime 60000")
        assert "info depth 1 " in self.out.getvalue()

    def test_setoption_depth_and_breadth(self):
        uci = self._make_uci()
        uci._parse_setoption(["name", "Depth", "value", "2"])
        uci._parse_setoption(["name", "Breadth", "value", "6"])
        uci._parse_setoption(["name", "Hash", "value", "128"])
        uci._parse_setoption([])
        uci._parse_setoption(["name"])
        assert uci.bot.search.depth == 2
        assert uci.bot.search.breadth == 6

    def test_vacuous_options_answer_nullmove(self):
        uci = self._make_uci()
        uci._parse_setoption(["name", "Depth", "value", "-1"])
        uci._parse_setoption(["name", "Breadth", "value", "0"])
        uci.handle("go")
        assert self.out.getvalue().splitlines()[-1] == "bestmove 0000"

    def test_run_until_quit(self):
        uci = self._make_uci()
        uci.run(io.StringIO("isready\nquit\nisready\n"))
        assert self.out.getvalue().splitlines() == ["readyok"]


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, board, engine

        self.client = TestClient(app)
        # Reset state before each test
        board.reset()
        engine.depth, engine.breadth = 1, -1

    def test_get_board_initial(self):
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert data["fen"] == chess.STARTING_FEN
        assert data["turn"] == "white"
        assert data["is_game_over"] is False
        assert len(data["legal_moves"]) == 20

    def test_post_move_valid(self):
        response = self.client.post("/move", json={"move": "e2e4"})
        assert response.status_code == 200
        assert response.json()["move"] == "e2e4"
        assert response.json()["turn"] == "black"
        assert self.client.get("/board").json()["fen"] == response.json()["fen"]

    def test_post_move_illegal(self):
        response = self.client.post("/move", json={"move": "e2e5"})
        assert response.status_code == 400

    def test_post_move_invalid_format(self):
        response = self.client.post("/move", json={"move": "zzzz"})
        assert response.status_code == 400

    def test_set_position_invalid(self):
        response = self.client.post("/position", json={"fen": "invalid"})
        assert response.status_code == 400
        assert self.client.get("/board").json()["fen"] == chess.STARTING_FEN

    def test_search_finds_capture(self):
        self.client.post("/position", json={"fen": HANGING_QUEEN})
        response = self.client.post("/search", json={"depth": 1})
        assert response.status_code == 200
        data = response.json()
        assert data["best_move"] == "e4d5"
        assert data["score"] == 1
        assert data["fen"] == HANGING_QUEEN

    def test_concurrent_searches_report_own_nodes(self):
        from interface.api import SearchRequest, search_move

        expected = SearchEngine(MaterialHeuristic(), depth=1, breadth=-1).best_move(chess.Board()).nodes
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: search_move(SearchRequest(depth=1)), range(4)))
        assert [r["nodes"] for r in results] == [expected] * 4

    def test_search_default_depth(self):
        response = self.client.post("/search")
        assert response.status_code == 200
        move = chess.Move.from_uci(response.json()["best_move"])
        assert move in chess.Board().legal_moves

    def test_search_game_over_returns_400(self):
        self.client.post("/position", json={"fen": FOOLS_MATE})
        response = self.client.post("/search")
        assert response.status_code == 400

    def test_search_vacuous_limits_returns_400(self):
        response = self.client.post("/search", json={"depth": -1, "breadth": 0})
        assert response.status_code == 400

    def test_evaluate_current_board(self):
        response = self.client.post("/evaluate", json={})
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 0
        assert len(data["moves"]) == 20

    def test_evaluate_fen(self):
        response = self.client.post("/evaluate", json={"fen": HANGING_QUEEN})
        data = response.json()
        assert data["score"] == -8
        scores = {m["move"]: m["score"] for m in data["moves"]}
        assert scores["e4d5"] == 1

    def test_reset_board(self):
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/reset")
        assert response.status_code == 200
        assert response.json()["fen"] == chess.STARTING_FEN
