from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Color(str, Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def pawn_direction(self) -> int:
        # Row delta of a pawn step; row 0 is rank 8.
        return -1 if self is Color.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        return 6 if self is Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceType(str, Enum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


@dataclass(frozen=True)
class Piece:
    """Immutable piece value.

    Attributes:
        type (PieceType): Kind of piece.
        color (Color): Owner.
        has_moved (bool): Set once the piece has been moved; gates castling.
    """

    type: PieceType
    color: Color
    has_moved: bool = False

    @property
    def symbol(self) -> str:
        """FEN letter, uppercase for white."""
        ch = self.type.value
        return ch.upper() if self.color is Color.WHITE else ch

    def moved(self) -> "Piece":
        if self.has_moved:
            return self
        return replace(self, has_moved=True)

    @classmethod
    def from_symbol(cls, ch: str, has_moved: bool = False) -> "Piece":
        """Build a piece from a FEN letter.

        Raises:
            ValueError: If ``ch`` is not one of ``PNBRQKpnbrqk``.
        """
        try:
            ptype = PieceType(ch.lower())
        except ValueError as e:
            raise ValueError(f"invalid piece in FEN: {ch!r}") from e
        color = Color.WHITE if ch.isupper() else Color.BLACK
        return cls(ptype, color, has_moved)
