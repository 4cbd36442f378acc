from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .board import Board, GameState, GameStatus
from .move import Move, describe_move
from .piece import Color, PieceType


logger = logging.getLogger(__name__)


class GameOverError(ValueError):
    """Raised when a move or undo is attempted on a finished game."""


class GameMode(str, Enum):
    AI = "ai"
    PVP = "pvp"


@dataclass
class Game:
    """Game wrapper around a board with session policy.

    Responsibility: validate and apply moves, keep the move list, and handle
    undo for the chosen mode. In ``ai`` mode the agent plays ``ai_color``.
    Chess rules stay in ``Board``.
    """

    board: Board = field(default_factory=Board)
    mode: GameMode = GameMode.AI
    ai_color: Color = Color.BLACK
    move_log: List[str] = field(default_factory=list)

    @classmethod
    def new(cls, mode: GameMode = GameMode.AI) -> "Game":
        return cls(board=Board.startpos(), mode=mode)

    @classmethod
    def from_fen(cls, fen: str, mode: GameMode = GameMode.AI) -> "Game":
        return cls(board=Board.from_fen(fen), mode=mode)

    def to_fen(self) -> str:
        return self.board.to_fen()

    def reset(self) -> None:
        self.board.reset()
        self.move_log.clear()

    def legal_moves(self) -> List[Move]:
        return self.board.generate_legal_moves()

    def state(self) -> GameState:
        return self.board.get_game_state()

    def is_over(self) -> bool:
        return self.state().status is not GameStatus.ONGOING

    def is_ai_turn(self) -> bool:
        return self.mode is GameMode.AI and self.board.side_to_move is self.ai_color

    def apply_move(
        self,
        from_sq: Tuple[int, int],
        to_sq: Tuple[int, int],
        promotion: Optional[PieceType] = None,
        actor: str = "human",
    ) -> Move:
        """Validate and play a move given by its squares.

        Raises:
            GameOverError: If the game has already ended.
            ValueError: If no legal move matches.
        """
        if self.is_over():
            raise GameOverError("game is over")
        move = self.board.find_move(from_sq, to_sq, promotion)
        if move is None:
            raise ValueError("illegal move")
        self.play(move, actor)
        return move

    def play(self, move: Move, actor: str = "human") -> None:
        """Play a move taken from this board's own legal move list."""
        self.board.apply_move(move)
        self.move_log.append(describe_move(move, actor))
        state = self.state()
        if state.status is GameStatus.CHECKMATE:
            winner = state.winner.value if state.winner is not None else None
            logger.info("checkmate", extra={"winner": winner, "move": move.to_uci()})
        elif state.status is GameStatus.STALEMATE:
            logger.info("stalemate", extra={"move": move.to_uci()})

    def undo(self) -> int:
        """Take back the last move; in ai mode, back to the human's turn.

        Returns:
            int: Number of plies undone.

        Raises:
            ValueError: If there is no move to undo.
            GameOverError: If the game has already ended.
        """
        if not self.board.history:
            raise ValueError("no moves to undo")
        if self.is_over():
            raise GameOverError("game is over")
        self._undo_one()
        undone = 1
        if self.is_ai_turn() and self.board.history:
            self._undo_one()
            undone += 1
        return undone

    def _undo_one(self) -> None:
        self.board.undo()
        if self.move_log:
            self.move_log.pop()

    def last_move(self) -> Optional[str]:
        if not self.board.history:
            return None
        return self.board.history[-1].move.to_uci()

    def move_history_uci(self) -> List[str]:
        return [r.move.to_uci() for r in self.board.history]
