from __future__ import annotations

import logging
import sys
from typing import Callable, List, Optional, TextIO

from ...engine.game import Game, GameMode
from ...engine.move import parse_uci
from ...search.service import (
    SEARCH_DEPTH,
    Difficulty,
    SearchAgent,
    SearchResult,
    score_to_cp,
)


logger = logging.getLogger(__name__)

Writer = Callable[[str], None]

ENGINE_NAME = "chessplay"


class UCIEngine:
    """UCI protocol adapter around the game and the search agent.

    Search runs synchronously inside ``go``, so ``stop`` has nothing to
    interrupt. The game is kept in ``pvp`` mode: the GUI decides who moves.
    """

    def __init__(self, difficulty: Difficulty = Difficulty.MEDIUM) -> None:
        self.game: Game = Game.new(GameMode.PVP)
        self.agent = SearchAgent(difficulty)

    # ---- Command handlers ----
    def cmd_uci(self, write: Writer) -> None:
        write(f"id name {ENGINE_NAME}")
        write(f"id author {ENGINE_NAME} developers")
        choices = " ".join(f"var {d.value}" for d in Difficulty)
        write(
            f"option name Difficulty type combo default {self.agent.difficulty.value} {choices}"
        )
        write("uciok")

    def cmd_isready(self, write: Writer) -> None:
        write("readyok")

    def cmd_ucinewgame(self) -> None:
        self.game = Game.new(GameMode.PVP)

    def cmd_position(self, args: List[str]) -> None:
        # position [startpos | fen <FEN>] [moves m1 m2 ...]
        if not args:
            return
        idx = 0
        if args[0] == "startpos":
            self.game = Game.new(GameMode.PVP)
            idx = 1
        elif args[0] == "fen":
            idx = 1
            fen_tokens: List[str] = []
            while idx < len(args) and args[idx] != "moves":
                fen_tokens.append(args[idx])
                idx += 1
            try:
                self.game = Game.from_fen(" ".join(fen_tokens), GameMode.PVP)
            except ValueError as e:
                logger.warning("ignoring invalid position", extra={"error": str(e)})
                return
        else:
            return

        if idx < len(args) and args[idx] == "moves":
            for token in args[idx + 1 :]:
                try:
                    from_sq, to_sq, promotion = parse_uci(token)
                    self.game.apply_move(from_sq, to_sq, promotion)
                except ValueError as e:
                    logger.warning(
                        "ignoring moves from invalid move",
                        extra={"move": token, "error": str(e)},
                    )
                    break

    def cmd_setoption(self, args: List[str]) -> None:
        # setoption name <name> [value <value>]
        name_tokens: List[str] = []
        value_tokens: List[str] = []
        target = name_tokens
        for tok in args:
            if tok == "name" and target is name_tokens and not name_tokens:
                continue
            if tok == "value" and target is name_tokens:
                target = value_tokens
                continue
            target.append(tok)
        name = " ".join(name_tokens).strip().lower()
        value = " ".join(value_tokens).strip()
        if name == "difficulty":
            try:
                self.agent.set_difficulty(value)
            except ValueError:
                logger.warning("ignoring invalid difficulty", extra={"value": value})

    def cmd_go(self, args: List[str], write: Writer) -> None:
        depth = self._parse_depth(args)
        board = self.game.board
        if not board.has_legal_moves():
            write("bestmove (none)")
            return

        if depth is None and self.agent.difficulty is Difficulty.EASY:
            move = self.agent.choose_move(board)
            write(f"bestmove {move.to_uci() if move else '(none)'}")
            return

        if depth is None:
            depth = SEARCH_DEPTH[self.agent.difficulty]
        res = self.agent.search(
            board, depth, narrow_root=self.agent.difficulty is not Difficulty.MEDIUM
        )
        self._emit_info(res, write)
        write(f"bestmove {res.best_move.to_uci() if res.best_move else '(none)'}")

    def cmd_stop(self) -> None:
        # Search is synchronous: nothing is running when stop arrives.
        return None

    # ---- Utilities ----
    @staticmethod
    def _parse_depth(args: List[str]) -> Optional[int]:
        for i, tok in enumerate(args[:-1]):
            if tok == "depth":
                try:
                    return max(1, int(args[i + 1]))
                except ValueError:
                    return None
        return None

    @staticmethod
    def _emit_info(res: SearchResult, write: Writer) -> None:
        cp = score_to_cp(res.score) if res.score is not None else 0
        pv = f" pv {res.best_move.to_uci()}" if res.best_move else ""
        write(f"info depth {res.depth} nodes {res.nodes} time {res.time_ms} score cp {cp}{pv}")


def _default_writer(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def run_uci(
    stdin: Optional[TextIO] = None,
    write: Writer = _default_writer,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> None:
    eng = UCIEngine(difficulty)
    for raw in stdin if stdin is not None else sys.stdin:
        parts = raw.split()
        if not parts:
            continue
        cmd, args = parts[0], parts[1:]

        if cmd == "uci":
            eng.cmd_uci(write)
        elif cmd == "isready":
            eng.cmd_isready(write)
        elif cmd == "setoption":
            eng.cmd_setoption(args)
        elif cmd == "ucinewgame":
            eng.cmd_ucinewgame()
        elif cmd == "position":
            eng.cmd_position(args)
        elif cmd == "go":
            eng.cmd_go(args, write)
        elif cmd == "stop":
            eng.cmd_stop()
        elif cmd == "quit":
            break
        # Ignore unknown commands per UCI convention
