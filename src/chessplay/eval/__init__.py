"""Evaluation heuristics and related utilities.

Scores are from the point of view of ``perspective``: positive is good for
that side. Evaluation never leaves the board modified.
"""

from __future__ import annotations

from typing import Dict, Final

from chessplay.engine.board import Board
from chessplay.engine.piece import Color, PieceType


# Material values in centipawns
P_VAL: Final = 100
N_VAL: Final = 320
B_VAL: Final = 330
R_VAL: Final = 500
Q_VAL: Final = 900
K_VAL: Final = 20000

PIECE_VALUES: Final[Dict[PieceType, int]] = {
    PieceType.PAWN: P_VAL,
    PieceType.KNIGHT: N_VAL,
    PieceType.BISHOP: B_VAL,
    PieceType.ROOK: R_VAL,
    PieceType.QUEEN: Q_VAL,
    PieceType.KING: K_VAL,
}

# Heuristic weights
MOBILITY_WEIGHT: Final = 1.5
KING_ATTACKED_PENALTY: Final = -50
KING_SAFE_BONUS: Final = 10


def material(board: Board, perspective: Color) -> int:
    score = 0
    for _, piece in board.pieces():
        value = PIECE_VALUES[piece.type]
        score += value if piece.color is perspective else -value
    return score


def mobility(board: Board, perspective: Color) -> float:
    """Weighted legal move count difference.

    The opponent's count is floored at 1 so a nearly immobile opponent does
    not dominate the score.
    """
    own = len(board.generate_legal_moves(perspective))
    opp = len(board.generate_legal_moves(perspective.opponent)) or 1
    return (own - opp) * MOBILITY_WEIGHT


def king_safety(board: Board, perspective: Color) -> int:
    king_sq = board.find_king(perspective)
    if king_sq is None:
        return 0
    if board.is_square_attacked(king_sq, perspective.opponent):
        return KING_ATTACKED_PENALTY
    return KING_SAFE_BONUS


def evaluate_board(board: Board, perspective: Color) -> float:
    """Static evaluation: material + mobility + king safety."""
    return material(board, perspective) + mobility(board, perspective) + king_safety(
        board, perspective
    )
