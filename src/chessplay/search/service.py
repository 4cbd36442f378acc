from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from chessplay.engine.board import Board
from chessplay.engine.move import Move
from chessplay.engine.piece import Color
from chessplay.eval import evaluate_board


logger = logging.getLogger(__name__)

INF = float("inf")
# Centipawn stand-in for a forced mate (+/-INF) in reports.
MATE_SCORE_CP = 100000


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def tier(self) -> int:
        return _TIERS[self]

    @classmethod
    def parse(cls, level: Union["Difficulty", str, int]) -> "Difficulty":
        """Accept a Difficulty, its name/value, or a tier number 1..3.

        Raises:
            ValueError: If ``level`` names no difficulty.
        """
        if isinstance(level, cls):
            return level
        if isinstance(level, bool):
            raise ValueError(f"invalid difficulty: {level!r}")
        if isinstance(level, int):
            for d, tier in _TIERS.items():
                if tier == level:
                    return d
            raise ValueError(f"invalid difficulty tier: {level}")
        if isinstance(level, str):
            key = level.strip().lower()
            if key.isdigit():
                return cls.parse(int(key))
            try:
                return cls(key)
            except ValueError:
                pass
        raise ValueError(f"invalid difficulty: {level!r}")


_TIERS = {Difficulty.EASY: 1, Difficulty.MEDIUM: 2, Difficulty.HARD: 3}

# Fixed search depth per tier; EASY does not search.
SEARCH_DEPTH = {Difficulty.MEDIUM: 2, Difficulty.HARD: 3}


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: Optional[float]
    nodes: int
    depth: int
    time_ms: int


class SearchAgent:
    """Computer opponent choosing moves by difficulty tier.

    Responsibility: pick one move for the side to move. The agent explores
    the caller's board in place with apply/undo and never holds a copy, so a
    board must not be searched by two agents at once.
    """

    def __init__(
        self,
        difficulty: Union[Difficulty, str, int] = Difficulty.EASY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.difficulty = Difficulty.parse(difficulty)
        self.rng = rng if rng is not None else random.Random()
        self.nodes = 0

    def set_difficulty(self, level: Union[Difficulty, str, int]) -> None:
        self.difficulty = Difficulty.parse(level)

    def choose_move(self, board: Board) -> Optional[Move]:
        """Return the agent's move for the side to move, or None if it has none."""
        legal = board.generate_legal_moves(board.side_to_move)
        if not legal:
            return None

        if self.difficulty is Difficulty.EASY:
            return self.rng.choice(legal)

        depth = SEARCH_DEPTH[self.difficulty]
        # MEDIUM searches every root move with a full window.
        res = self.search(board, depth, narrow_root=self.difficulty is Difficulty.HARD)
        logger.debug(
            "search done",
            extra={
                "difficulty": self.difficulty.value,
                "move": res.best_move.to_uci() if res.best_move else None,
                "score": res.score,
                "nodes": res.nodes,
                "time_ms": res.time_ms,
            },
        )
        return res.best_move

    def search(
        self,
        board: Board,
        depth: int,
        alpha: float = -INF,
        beta: float = INF,
        *,
        narrow_root: bool = True,
    ) -> SearchResult:
        """Negamax root search to a fixed ``depth``.

        With ``narrow_root`` the root alpha rises with the best score found so
        far (alpha-beta at the root); without it each root move is searched
        with the initial window. Ties keep the first move in generation order.
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")
        start = time.perf_counter()
        self.nodes = 0
        side = board.side_to_move
        best_move: Optional[Move] = None
        best_score = -INF

        for m in board.generate_legal_moves(side):
            board.apply_move(m)
            score = -self.minimax(board, depth - 1, -beta, -alpha, board.side_to_move)
            board.undo()
            if best_move is None or score > best_score:
                best_score = score
                best_move = m
            if narrow_root and best_score > alpha:
                alpha = best_score

        return SearchResult(
            best_move=best_move,
            score=best_score if best_move is not None else None,
            nodes=self.nodes,
            depth=depth,
            time_ms=int((time.perf_counter() - start) * 1000),
        )

    def minimax(self, board: Board, depth: int, alpha: float, beta: float, side: Color) -> float:
        """Negamax value of the position for ``side``, the side to move.

        Terminal positions are scored before the depth check: being mated is
        -inf, stalemate is 0.
        """
        self.nodes += 1
        moves = board.generate_legal_moves(side)
        if not moves:
            return -INF if board.is_in_check(side) else 0.0

        if depth == 0:
            return evaluate_board(board, side)

        best = -INF
        for m in moves:
            board.apply_move(m)
            score = -self.minimax(board, depth - 1, -beta, -alpha, board.side_to_move)
            board.undo()
            if score > best:
                best = score
            if best > alpha:
                alpha = best
            if best >= beta:
                break
        return best


def score_to_cp(score: float) -> int:
    """Integer centipawns for display; mate scores clamp to +/-MATE_SCORE_CP."""
    if score == INF:
        return MATE_SCORE_CP
    if score == -INF:
        return -MATE_SCORE_CP
    return int(round(score))
