from __future__ import annotations

from chessplay.engine.board import Board
from chessplay.engine.move import MoveKind, str_to_square
from chessplay.engine.piece import Color, PieceType


def moves_set(b: Board) -> set[str]:
    return {m.to_uci() for m in b.generate_legal_moves()}


def play(b: Board, uci: str) -> None:
    mv = next(m for m in b.generate_legal_moves() if m.to_uci() == uci)
    b.apply_move(mv)


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    ms = moves_set(b)
    assert "e1g1" in ms
    assert "e1c1" in ms


def test_black_castling_available() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    ms = moves_set(b)
    assert "e8g8" in ms
    assert "e8c8" in ms


def test_castling_blocked_when_in_check() -> None:
    b = Board.from_fen("4r2k/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    ms = moves_set(b)
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castling_blocked_through_attacked_square() -> None:
    # f1 is covered by the rook on f8; the queen side stays open
    b = Board.from_fen("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    ms = moves_set(b)
    assert "e1g1" not in ms
    assert "e1c1" in ms


def test_queenside_needs_b_file_empty_but_not_safe() -> None:
    occupied = Board.from_fen("r3k2r/8/8/8/8/8/8/RN2K2R w KQkq - 0 1")
    assert "e1c1" not in moves_set(occupied)
    assert "e1g1" in moves_set(occupied)
    # b1 attacked by the rook on b8 does not matter
    attacked = Board.from_fen("1r2k3/8/8/8/8/8/8/R3K3 w Q - 0 1")
    assert "e1c1" in moves_set(attacked)


def test_castling_moves_rook_and_marks_pieces_moved() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    mv = b.find_move(str_to_square("e1"), str_to_square("g1"))
    assert mv is not None and mv.kind is MoveKind.CASTLE_KINGSIDE
    b.apply_move(mv)
    king = b.get_piece(str_to_square("g1"))
    rook = b.get_piece(str_to_square("f1"))
    assert king is not None and king.type is PieceType.KING and king.has_moved
    assert rook is not None and rook.type is PieceType.ROOK and rook.color is Color.WHITE
    assert rook.has_moved
    assert b.get_piece(str_to_square("h1")) is None
    assert b.get_piece(str_to_square("e1")) is None
    assert b.to_fen().split()[2] == "kq"


def test_queenside_castle_relocates_rook_to_d_file() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    play(b, "e8c8")
    assert b.get_piece(str_to_square("c8")).type is PieceType.KING
    assert b.get_piece(str_to_square("d8")).type is PieceType.ROOK
    assert b.get_piece(str_to_square("a8")) is None
    assert b.to_fen().split()[2] == "KQ"


def test_king_move_loses_both_rights() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    play(b, "e1f1")
    play(b, "a8b8")
    play(b, "f1e1")
    assert b.to_fen().split()[2] == "k"
    ms = moves_set(b)
    assert "e1g1" not in ms and "e1c1" not in ms


def test_rook_move_loses_one_right() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    play(b, "h1h2")
    assert b.to_fen().split()[2] == "Qkq"
    assert "e1c1" in moves_set(Board.from_fen(b.to_fen().replace(" b ", " w ")))


def test_castling_undo_restores_rights() -> None:
    fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
    b = Board.from_fen(fen)
    play(b, "e1c1")
    b.undo()
    assert b.to_fen() == fen
    assert "e1g1" in moves_set(b)
