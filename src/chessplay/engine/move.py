from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .piece import PieceType


class Square(NamedTuple):
    """Board coordinate. Row 0 is rank 8, column 0 is file a."""

    row: int
    col: int

    def to_algebraic(self) -> str:
        return square_to_str(self)


class CastleSide(str, Enum):
    KINGSIDE = "kingside"
    QUEENSIDE = "queenside"


class MoveKind(str, Enum):
    QUIET = "quiet"
    CAPTURE = "capture"
    DOUBLE_PUSH = "double_push"
    EN_PASSANT = "en_passant"
    CASTLE_KINGSIDE = "castle_kingside"
    CASTLE_QUEENSIDE = "castle_queenside"


# Queen is the only promotion the engine generates.
PROMOTION_PIECES = {"q": PieceType.QUEEN}


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        kind (MoveKind): What the move does besides relocating the piece.
        promotion (Optional[PieceType]): Promotion piece, only on quiet or
            capture moves landing on the far rank.
    """

    from_sq: Square
    to_sq: Square
    kind: MoveKind = MoveKind.QUIET
    promotion: Optional[PieceType] = None

    def __post_init__(self) -> None:
        if self.promotion is not None:
            if self.promotion is not PieceType.QUEEN:
                raise ValueError(f"unsupported promotion piece: {self.promotion.value!r}")
            if self.kind not in (MoveKind.QUIET, MoveKind.CAPTURE):
                raise ValueError(f"promotion not allowed on {self.kind.value} move")

    @property
    def castle(self) -> Optional[CastleSide]:
        if self.kind is MoveKind.CASTLE_KINGSIDE:
            return CastleSide.KINGSIDE
        if self.kind is MoveKind.CASTLE_QUEENSIDE:
            return CastleSide.QUEENSIDE
        return None

    @property
    def is_en_passant(self) -> bool:
        return self.kind is MoveKind.EN_PASSANT

    @property
    def is_capture(self) -> bool:
        return self.kind in (MoveKind.CAPTURE, MoveKind.EN_PASSANT)

    @property
    def en_passant_target(self) -> Optional[Square]:
        """Square skipped by a double pawn push, else ``None``."""
        if self.kind is not MoveKind.DOUBLE_PUSH:
            return None
        return Square((self.from_sq.row + self.to_sq.row) // 2, self.from_sq.col)

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = self.promotion.value if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo


def parse_uci(uci: str) -> Tuple[Square, Square, Optional[PieceType]]:
    """Parse a UCI move string.

    A move string carries no kind, so the result is the raw squares and
    promotion; resolve it against a position with ``Board.find_move``.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Tuple[Square, Square, Optional[PieceType]]: Origin, destination and
            promotion piece.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceType] = None
    if len(uci) == 5:
        ch = uci[4].lower()
        if ch not in PROMOTION_PIECES:
            raise ValueError(f"unsupported promotion piece: {ch!r}")
        promo = PROMOTION_PIECES[ch]
    return from_sq, to_sq, promo


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a board coordinate.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: Coordinate with ``row = 8 - rank``.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = 8 - int(s[1])
    return Square(row, col)


def square_to_str(sq: Tuple[int, int]) -> str:
    """Convert a board coordinate into algebraic notation.

    Raises:
        ValueError: If the coordinate is off the board.
    """
    row, col = sq
    if not (0 <= row < 8 and 0 <= col < 8):
        raise ValueError(f"invalid square coordinates: {(row, col)}")
    return chr(ord("a") + col) + str(8 - row)


def describe_move(move: Move, actor: Optional[str] = None) -> str:
    """Return the move-list label for ``move``.

    Castling is written ``O-O`` / ``O-O-O``, other moves as ``e2-e4``; a
    promotion appends ``=Q`` and moves played by the agent append ``(AI)``.
    """
    if move.kind is MoveKind.CASTLE_KINGSIDE:
        label = "O-O"
    elif move.kind is MoveKind.CASTLE_QUEENSIDE:
        label = "O-O-O"
    else:
        label = f"{square_to_str(move.from_sq)}-{square_to_str(move.to_sq)}"
    if move.promotion is not None:
        label += "=" + move.promotion.value.upper()
    if actor == "ai":
        label += " (AI)"
    return label
