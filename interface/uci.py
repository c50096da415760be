"""Minimal UCI front end for the bot.

Searches run synchronously on the command thread: there is no clock inside the
search, so ``go`` answers once the depth/breadth bounded search finishes. The
remaining clock time from ``wtime``/``btime`` only picks the depth used for
the next search.
"""

import logging
import sys
import time
from typing import List, Optional, TextIO

import chess

from chessbot.config import CONFIG
from chessbot.core.errors import ChessBotError
from chessbot.core.utils import print_info
from chessbot.main import Bot

log = logging.getLogger(__name__)


class UCI:
    def __init__(self, bot: Optional[Bot] = None, out: Optional[TextIO] = None):
        self.bot = bot or Bot()
        self.out = out or sys.stdout

    @property
    def board(self) -> chess.Board:
        return self.bot.board

    @board.setter
    def board(self, value: chess.Board):
        self.bot.board = value

    def send(self, line: str):
        print(line, file=self.out, flush=True)

    def run(self, stream: Optional[TextIO] = None):
        stream = stream or sys.stdin
        for line in stream:
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """Process one command line; False means quit."""
        tokens = line.split()
        if not tokens:
            return True
        command, args = tokens[0], tokens[1:]
        if command == "uci":
            self.send(f"id name {CONFIG.ui.engine_name}")
            self.send(f"id author {CONFIG.ui.engine_author}")
            self.send("option name Depth type spin default %d min -1 max 16" % self.bot.search.depth)
            self.send("option name Breadth type spin default %d min -1 max 256" % self.bot.search.breadth)
            self.send("uciok")
        elif command == "isready":
            self.send("readyok")
        elif command == "ucinewgame":
            self.bot.reset()
        elif command == "position":
            self._parse_position(args)
        elif command == "setoption":
            self._parse_setoption(args)
        elif command == "go":
            self._parse_go(args)
        elif command == "quit":
            return False
        else:
            log.debug("ignoring unknown command %r", command)
        return True

    def _parse_position(self, args: List[str]):
        if not args:
            return
        if args[0] == "startpos":
            board = chess.Board()
            rest = args[1:]
        elif args[0] == "fen":
            fen_tokens = args[1:7]
            try:
                board = chess.Board(" ".join(fen_tokens))
            except ValueError as e:
                log.warning("invalid FEN in position command: %s", e)
                return
            rest = args[7:]
        else:
            return

        if rest and rest[0] == "moves":
            for uci in rest[1:]:
                try:
                    move = chess.Move.from_uci(uci)
                except ValueError:
                    log.warning("malformed move %r in position command", uci)
                    break
                if move not in board.legal_moves:
                    log.warning("illegal move %r in position command", uci)
                    break
                board.push(move)
        self.board = board

    def _parse_setoption(self, args: List[str]):
        if "name" not in args or "value" not in args:
            return
        name = " ".join(args[args.index("name") + 1:args.index("value")]).lower()
        value = " ".join(args[args.index("value") + 1:])
        try:
            if name == "depth":
                self.bot.search.depth = int(value)
            elif name == "breadth":
                self.bot.search.breadth = int(value)
        except ValueError:
            log.warning("bad value %r for option %r", value, name)

    def _parse_go(self, args: List[str]):
        params = {}
        for key in ("depth", "wtime", "btime"):
            if key in args:
                i = args.index(key)
                try:
                    params[key] = int(args[i + 1])
                except (IndexError, ValueError):
                    log.warning("bad value for go %s", key)

        remaining = params.get("wtime" if self.board.turn == chess.WHITE else "btime")
        depth = params.get("depth", self.bot.depth_for_clock(remaining))

        if not any(self.board.legal_moves):
            self.send("bestmove 0000")
            return

        start = time.time()
        try:
            result = self.bot.search.best_move(self.board, depth=depth)
        except ChessBotError as e:
            log.error("search failed: %s", e)
            self.send("bestmove 0000")
            return
        self.bot.last_result = result
        print_info(depth, result.score, result.nodes, time.time() - start, result.move,
                   self.board.turn == chess.WHITE, out=self.out)
        self.send(f"bestmove {result.move.uci()}")


def main():
    logging.basicConfig(level=CONFIG.log_level, stream=sys.stderr)
    UCI().run()


if __name__ == "__main__":
    main()
