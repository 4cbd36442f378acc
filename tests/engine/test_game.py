from __future__ import annotations

import logging

import pytest

from chessplay.engine.board import STARTPOS_FEN, GameStatus
from chessplay.engine.game import Game, GameMode, GameOverError
from chessplay.engine.move import parse_uci
from chessplay.engine.piece import Color


def move(game: Game, uci: str, actor: str = "human") -> None:
    from_sq, to_sq, promotion = parse_uci(uci)
    game.apply_move(from_sq, to_sq, promotion, actor=actor)


def test_new_game_defaults_to_ai_mode_with_black_agent() -> None:
    game = Game.new()
    assert game.mode is GameMode.AI
    assert game.ai_color is Color.BLACK
    assert game.to_fen() == STARTPOS_FEN
    assert not game.is_ai_turn()


def test_move_log_labels() -> None:
    game = Game.new(GameMode.PVP)
    move(game, "e2e4")
    move(game, "e7e5", actor="ai")
    move(game, "g1f3")
    assert game.move_log == ["e2-e4", "e7-e5 (AI)", "g1-f3"]
    assert game.last_move() == "g1f3"
    assert game.move_history_uci() == ["e2e4", "e7e5", "g1f3"]


def test_castle_and_promotion_labels() -> None:
    game = Game.from_fen("4k3/P7/8/8/8/8/8/4K2R w K - 0 1", GameMode.PVP)
    move(game, "e1g1")
    move(game, "e8d7")
    move(game, "a7a8")
    assert game.move_log == ["O-O", "e8-d7", "a7-a8=Q"]


def test_illegal_move_raises() -> None:
    game = Game.new()
    with pytest.raises(ValueError, match="illegal move"):
        move(game, "e2e5")
    assert game.move_log == []


def test_undo_in_ai_mode_returns_to_human_turn() -> None:
    game = Game.new(GameMode.AI)
    move(game, "e2e4")
    move(game, "e7e5", actor="ai")
    assert game.undo() == 2
    assert game.to_fen() == STARTPOS_FEN
    assert game.move_log == []


def test_undo_in_ai_mode_single_ply_when_human_moved_last() -> None:
    game = Game.new(GameMode.AI)
    move(game, "e2e4")
    assert game.is_ai_turn()
    assert game.undo() == 1
    assert game.to_fen() == STARTPOS_FEN


def test_undo_in_pvp_mode_is_one_ply() -> None:
    game = Game.new(GameMode.PVP)
    move(game, "e2e4")
    move(game, "e7e5")
    assert game.undo() == 1
    assert game.move_history_uci() == ["e2e4"]


def test_undo_without_moves_raises() -> None:
    with pytest.raises(ValueError, match="no moves to undo"):
        Game.new().undo()


def test_finished_game_refuses_moves_and_undo(caplog: pytest.LogCaptureFixture) -> None:
    game = Game.new(GameMode.PVP)
    with caplog.at_level(logging.INFO, logger="chessplay.engine.game"):
        for uci in ("f2f3", "e7e5", "g2g4", "d8h4"):
            move(game, uci)
    assert game.is_over()
    assert game.state().status is GameStatus.CHECKMATE
    assert any(r.getMessage() == "checkmate" for r in caplog.records)
    with pytest.raises(GameOverError):
        move(game, "a2a3")
    with pytest.raises(GameOverError):
        game.undo()


def test_game_over_error_is_a_value_error() -> None:
    assert issubclass(GameOverError, ValueError)


def test_reset_clears_log_and_board() -> None:
    game = Game.new(GameMode.PVP)
    move(game, "d2d4")
    game.reset()
    assert game.to_fen() == STARTPOS_FEN
    assert game.move_log == []
    assert game.last_move() is None
