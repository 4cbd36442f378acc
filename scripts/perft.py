#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# without installing the package.
SRC_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chessplay.engine.board import STARTPOS_FEN, Board
from chessplay.engine.perft import divide, perft


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a given FEN and depth")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide", action="store_true", help="Print the node count below each root move"
    )
    args = parser.parse_args()

    try:
        board = Board.from_fen(args.fen)
    except ValueError as e:
        parser.error(f"invalid FEN: {e}")

    start = time.perf_counter()
    if args.divide:
        counts = divide(board, max(1, args.depth))
        for uci in sorted(counts):
            print(f"{uci}: {counts[uci]}")
        nodes = sum(counts.values())
    else:
        nodes = perft(board, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
