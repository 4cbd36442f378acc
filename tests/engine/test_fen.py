from __future__ import annotations

import pytest

from chessplay.engine.board import STARTPOS_FEN, Board
from chessplay.engine.piece import Color, Piece, PieceType


KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


@pytest.mark.parametrize(
    "fen",
    [
        STARTPOS_FEN,
        KIWIPETE,
        "r3k2r/8/8/8/8/8/8/R3K2R w Kq - 0 1",
        "4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1",
        "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 12 40",
    ],
)
def test_fen_round_trip(fen: str) -> None:
    assert Board.from_fen(fen).to_fen() == fen


def test_startpos_matches_default_board() -> None:
    assert Board().to_fen() == STARTPOS_FEN
    assert Board.startpos().get_board_snapshot() == Board.from_fen(STARTPOS_FEN).get_board_snapshot()


def test_starting_layout() -> None:
    b = Board.startpos()
    assert b.get_piece((7, 4)) == Piece(PieceType.KING, Color.WHITE)
    assert b.get_piece((0, 3)) == Piece(PieceType.QUEEN, Color.BLACK)
    assert b.get_piece((6, 0)) == Piece(PieceType.PAWN, Color.WHITE)
    assert all(b.get_piece((r, c)) is None for r in range(2, 6) for c in range(8))
    assert b.side_to_move is Color.WHITE
    assert b.ep_square is None


@pytest.mark.parametrize(
    "fen",
    [
        "",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQxq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e5 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq z9 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - -1 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 0",
        "rnbqkbnr/pppppppp/9/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "rnbqkbnr/ppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNRR w KQkq - 0 1",
        "rnbqkbnr/ppppxppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "8/8/8/8/8/8/8/8 w - - 0 1",
        "4k3/8/8/8/8/8/8/4KK2 w - - 0 1",
        "P3k3/8/8/8/8/8/8/4K3 w - - 0 1",
        "4k3/8/8/8/8/8/3Pp3/4K3 w - e3 0 1",
        "4k3/8/8/3Pp3/8/8/8/4K3 b - e6 0 1",
        "4k3/8/8/8/8/8/8/p3K3 w - - 0 1",
    ],
)
def test_invalid_fen_raises(fen: str) -> None:
    with pytest.raises(ValueError):
        Board.from_fen(fen)


def test_castling_rights_load_into_has_moved() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w Kq - 0 1")
    assert not b.get_piece((7, 4)).has_moved  # e1, white keeps K
    assert not b.get_piece((7, 7)).has_moved  # h1
    assert b.get_piece((7, 0)).has_moved  # a1, no Q
    assert not b.get_piece((0, 0)).has_moved  # a8
    assert b.get_piece((0, 7)).has_moved  # h8, no k


def test_no_castling_rights_marks_kings_moved() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w - - 0 1")
    assert b.get_piece((7, 4)).has_moved
    assert b.get_piece((0, 4)).has_moved
    moves = {m.to_uci() for m in b.generate_legal_moves()}
    assert "e1g1" not in moves and "e1c1" not in moves


def test_pawn_off_start_rank_cannot_double_push() -> None:
    b = Board.from_fen("4k3/8/8/8/8/4P3/8/4K3 w - - 0 1")
    moves = {m.to_uci() for m in b.generate_legal_moves()}
    assert "e3e4" in moves
    assert "e3e5" not in moves


def test_snapshot_does_not_alias_board() -> None:
    b = Board.startpos()
    snap = b.get_board_snapshot()
    snap[6][4] = None
    assert b.get_piece((6, 4)) is not None
