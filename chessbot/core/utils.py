def print_info(depth, score, nodes, elapsed, move, white_to_move, out=None):
        nps = int(nodes / elapsed) if elapsed > 0 else 0

        # Scores are pawns from White's view; UCI reports centipawns for the side to move.
        # Mate scores carry no distance, so they are reported as plain centipawns too.
        pov = score if white_to_move else -score
        cp = int(round(pov * 100))

        print(f"info depth {depth} score cp {cp} nodes {nodes} nps {nps} time {int(elapsed * 1000)} pv {move.uci()}", file=out, flush=True)
