from __future__ import annotations

from chessplay.engine.board import Board
from chessplay.engine.piece import Color
from chessplay.eval import (
    KING_ATTACKED_PENALTY,
    KING_SAFE_BONUS,
    MOBILITY_WEIGHT,
    Q_VAL,
    evaluate_board,
    king_safety,
    material,
    mobility,
)


def test_startpos_is_balanced() -> None:
    b = Board.startpos()
    assert material(b, Color.WHITE) == 0
    assert mobility(b, Color.WHITE) == 0
    assert evaluate_board(b, Color.WHITE) == KING_SAFE_BONUS
    assert evaluate_board(b, Color.BLACK) == KING_SAFE_BONUS


def test_material_is_from_perspective() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/3QK3 w - - 0 1")
    assert material(b, Color.WHITE) == Q_VAL
    assert material(b, Color.BLACK) == -Q_VAL


def test_king_safety_penalizes_attacked_king() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/4K2r w - - 0 1")
    assert king_safety(b, Color.WHITE) == KING_ATTACKED_PENALTY
    assert king_safety(b, Color.BLACK) == KING_SAFE_BONUS


def test_mobility_floors_opponent_count_at_one() -> None:
    b = Board.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    own = len(b.generate_legal_moves(Color.WHITE))
    assert mobility(b, Color.WHITE) == (own - 1) * MOBILITY_WEIGHT


def test_evaluation_leaves_board_untouched() -> None:
    fen = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
    b = Board.from_fen(fen)
    evaluate_board(b, Color.BLACK)
    assert b.to_fen() == fen
    assert b.history == []
