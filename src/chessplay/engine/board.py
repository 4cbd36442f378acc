from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .move import Move, MoveKind, Square, square_to_str, str_to_square
from .piece import Color, Piece, PieceType


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

Grid = List[List[Optional[Piece]]]

KNIGHT_OFFSETS = ((-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
BISHOP_DIRS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ROOK_DIRS = ((-1, 0), (1, 0), (0, -1), (0, 1))
QUEEN_DIRS = BISHOP_DIRS + ROOK_DIRS
SLIDER_DIRS = {
    PieceType.BISHOP: BISHOP_DIRS,
    PieceType.ROOK: ROOK_DIRS,
    PieceType.QUEEN: QUEEN_DIRS,
}

BACK_RANK = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)
KING_HOME_COL = 4


class CastleRule(NamedTuple):
    rook_from: int
    rook_to: int
    king_to: int
    between: Tuple[int, ...]  # must be empty
    king_path: Tuple[int, ...]  # must not be attacked


CASTLING = {
    MoveKind.CASTLE_KINGSIDE: CastleRule(7, 5, 6, (5, 6), (5, 6)),
    MoveKind.CASTLE_QUEENSIDE: CastleRule(0, 3, 2, (1, 2, 3), (2, 3)),
}


class GameStatus(str, Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


@dataclass
class GameState:
    status: GameStatus
    winner: Optional[Color] = None
    in_check: bool = False
    legal_moves: List[Move] = field(default_factory=list)


@dataclass(frozen=True)
class MoveRecord:
    """Everything needed to reverse one applied move.

    The en-passant victim is kept apart from ``captured_piece`` because it
    stands beside the destination square, not on it.
    """

    move: Move
    moving_piece: Piece
    captured_piece: Optional[Piece]
    en_passant_captured: Optional[Piece]
    rook_from: Optional[Square]
    rook_to: Optional[Square]
    rook_piece: Optional[Piece]
    prev_side_to_move: Color
    prev_ep_square: Optional[Square]
    prev_halfmove_clock: int
    prev_fullmove_number: int


def _starting_grid() -> Grid:
    grid: Grid = [[None] * 8 for _ in range(8)]
    for color in (Color.BLACK, Color.WHITE):
        for col, ptype in enumerate(BACK_RANK):
            grid[color.home_row][col] = Piece(ptype, color)
            grid[color.pawn_row][col] = Piece(PieceType.PAWN, color)
    return grid


@dataclass
class Board:
    """Position engine: board state, move generation and reversible moves.

    Notes:
    - Squares are ``(row, col)`` with row 0 = rank 8 and col 0 = file a.
    - The board is mutated only through ``apply_move`` / ``undo``; search
      walks a single instance with strict apply/undo nesting.
    """

    grid: Grid = field(default_factory=_starting_grid)
    side_to_move: Color = Color.WHITE
    ep_square: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    history: List[MoveRecord] = field(default_factory=list, repr=False)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        return cls()

    def reset(self) -> None:
        """Restore the starting position and drop the move history."""
        self.grid = _starting_grid()
        self.side_to_move = Color.WHITE
        self.ep_square = None
        self.halfmove_clock = 0
        self.fullmove_number = 1
        self.history = []

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, move counters, or not exactly one king per side.

        Notes:
            Castling rights have no field of their own on the board; they are
            folded into ``has_moved`` of the kings and rooks on their home
            squares.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")
        if castling != "-":
            for ch in castling:
                if ch not in "KQkq":
                    raise ValueError("invalid castling rights")
        else:
            castling = ""

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        grid: Grid = [[None] * 8 for _ in range(8)]
        kings = {Color.WHITE: 0, Color.BLACK: 0}
        for row, rank in enumerate(ranks):  # first rank field is rank 8 (row 0)
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    col += n
                    continue
                if col >= 8:
                    raise ValueError("too many squares in FEN rank")
                piece = Piece.from_symbol(ch)
                if piece.type is PieceType.PAWN and row in (0, 7):
                    raise ValueError("pawn on first or last rank in FEN")
                if piece.type is PieceType.KING:
                    kings[piece.color] += 1
                grid[row][col] = Piece(
                    piece.type, piece.color, _loaded_has_moved(piece, row, col, castling)
                )
                col += 1
            if col != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")
        if kings[Color.WHITE] != 1 or kings[Color.BLACK] != 1:
            raise ValueError("FEN must contain exactly one king per side")

        ep_square: Optional[Square]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # ep target sits behind the pawn that just double-pushed
            if ep_square.row != (2 if stm == "w" else 5):
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        return cls(
            grid=grid,
            side_to_move=Color(stm),
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for row in self.grid:
            run = 0
            out = []
            for piece in row:
                if piece is None:
                    run += 1
                    continue
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(piece.symbol)
            if run > 0:
                out.append(str(run))
            ranks_str.append("".join(out))
        placement = "/".join(ranks_str)

        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move.value} {self._castling_rights() or '-'} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    def _castling_rights(self) -> str:
        rights = ""
        for color, letters in ((Color.WHITE, "KQ"), (Color.BLACK, "kq")):
            row = color.home_row
            king = self.grid[row][KING_HOME_COL]
            if not _is_unmoved(king, PieceType.KING, color):
                continue
            for letter, rook_col in zip(letters, (7, 0)):
                if _is_unmoved(self.grid[row][rook_col], PieceType.ROOK, color):
                    rights += letter
        return rights

    # --- Queries ---
    def get_piece(self, square: Tuple[int, int]) -> Optional[Piece]:
        row, col = square
        return self.grid[row][col]

    def get_board_snapshot(self) -> Grid:
        """Return a copy of the grid that does not alias the live board.

        Pieces are immutable, so copying the rows is enough.
        """
        return [list(row) for row in self.grid]

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` pairs in row-major order."""
        for row in range(8):
            for col in range(8):
                piece = self.grid[row][col]
                if piece is not None and (color is None or piece.color is color):
                    yield Square(row, col), piece

    def find_king(self, color: Color) -> Optional[Square]:
        for row in range(8):
            for col in range(8):
                piece = self.grid[row][col]
                if piece is not None and piece.type is PieceType.KING and piece.color is color:
                    return Square(row, col)
        return None

    def is_in_check(self, color: Color) -> bool:
        """Return True if ``color``'s king is attacked.

        A board without that king reports False.
        """
        king_sq = self.find_king(color)
        if king_sq is None:
            return False
        return self.is_square_attacked(king_sq, color.opponent)

    def is_square_attacked(self, square: Tuple[int, int], by_color: Color) -> bool:
        """Return True if ``square`` is attacked by any piece of ``by_color``.

        Covers: pawns, knights, rook/queen rays, bishop/queen rays, king.
        """
        grid = self.grid
        row, col = square

        # Pawn attacks: an attacking pawn stands one step behind the square
        # from its own point of view.
        pr = row - by_color.pawn_direction
        if 0 <= pr < 8:
            for pc in (col - 1, col + 1):
                if 0 <= pc < 8:
                    p = grid[pr][pc]
                    if p is not None and p.color is by_color and p.type is PieceType.PAWN:
                        return True

        for dr, dc in KNIGHT_OFFSETS:
            r, c = row + dr, col + dc
            if 0 <= r < 8 and 0 <= c < 8:
                p = grid[r][c]
                if p is not None and p.color is by_color and p.type is PieceType.KNIGHT:
                    return True

        if self._ray_attacked(row, col, by_color, ROOK_DIRS, PieceType.ROOK):
            return True
        if self._ray_attacked(row, col, by_color, BISHOP_DIRS, PieceType.BISHOP):
            return True

        for dr, dc in KING_OFFSETS:
            r, c = row + dr, col + dc
            if 0 <= r < 8 and 0 <= c < 8:
                p = grid[r][c]
                if p is not None and p.color is by_color and p.type is PieceType.KING:
                    return True

        return False

    def _ray_attacked(
        self,
        row: int,
        col: int,
        by_color: Color,
        dirs: Sequence[Tuple[int, int]],
        slider: PieceType,
    ) -> bool:
        grid = self.grid
        for dr, dc in dirs:
            r, c = row + dr, col + dc
            while 0 <= r < 8 and 0 <= c < 8:
                p = grid[r][c]
                if p is not None:
                    if p.color is by_color and (p.type is slider or p.type is PieceType.QUEEN):
                        return True
                    break
                r += dr
                c += dc
        return False

    # --- Move generation ---
    def generate_pseudo_moves(self, square: Tuple[int, int], piece: Piece) -> List[Move]:
        """Return moves reachable by ``piece``'s movement rules alone.

        Moves are not checked for leaving the mover's own king attacked; see
        ``generate_legal_moves``.
        """
        row, col = square
        ptype = piece.type
        if ptype is PieceType.PAWN:
            return self._pawn_moves(row, col, piece.color)
        if ptype is PieceType.KNIGHT:
            return self._step_moves(row, col, piece.color, KNIGHT_OFFSETS)
        if ptype is PieceType.KING:
            moves = self._step_moves(row, col, piece.color, KING_OFFSETS)
            if (
                not piece.has_moved
                and (row, col) == (piece.color.home_row, KING_HOME_COL)
                and not self.is_in_check(piece.color)
            ):
                for kind in (MoveKind.CASTLE_KINGSIDE, MoveKind.CASTLE_QUEENSIDE):
                    if self._can_castle(piece.color, kind):
                        moves.append(
                            Move(Square(row, col), Square(row, CASTLING[kind].king_to), kind)
                        )
            return moves
        return self._slide_moves(row, col, piece.color, SLIDER_DIRS[ptype])

    def _pawn_moves(self, row: int, col: int, color: Color) -> List[Move]:
        grid = self.grid
        moves: List[Move] = []
        origin = Square(row, col)
        step = color.pawn_direction
        r1 = row + step
        if not 0 <= r1 < 8:
            return moves
        promo = PieceType.QUEEN if r1 == color.promotion_row else None

        if grid[r1][col] is None:
            moves.append(Move(origin, Square(r1, col), MoveKind.QUIET, promo))
            r2 = row + 2 * step
            if row == color.pawn_row and grid[r2][col] is None:
                moves.append(Move(origin, Square(r2, col), MoveKind.DOUBLE_PUSH))

        for c in (col - 1, col + 1):
            if not 0 <= c < 8:
                continue
            target = grid[r1][c]
            if target is not None:
                if target.color is not color:
                    moves.append(Move(origin, Square(r1, c), MoveKind.CAPTURE, promo))
            elif self.ep_square == (r1, c):
                victim = grid[row][c]
                if (
                    victim is not None
                    and victim.type is PieceType.PAWN
                    and victim.color is not color
                ):
                    moves.append(Move(origin, Square(r1, c), MoveKind.EN_PASSANT))
        return moves

    def _step_moves(
        self, row: int, col: int, color: Color, offsets: Sequence[Tuple[int, int]]
    ) -> List[Move]:
        grid = self.grid
        origin = Square(row, col)
        moves: List[Move] = []
        for dr, dc in offsets:
            r, c = row + dr, col + dc
            if 0 <= r < 8 and 0 <= c < 8:
                target = grid[r][c]
                if target is None:
                    moves.append(Move(origin, Square(r, c)))
                elif target.color is not color:
                    moves.append(Move(origin, Square(r, c), MoveKind.CAPTURE))
        return moves

    def _slide_moves(
        self, row: int, col: int, color: Color, dirs: Sequence[Tuple[int, int]]
    ) -> List[Move]:
        grid = self.grid
        origin = Square(row, col)
        moves: List[Move] = []
        for dr, dc in dirs:
            r, c = row + dr, col + dc
            while 0 <= r < 8 and 0 <= c < 8:
                target = grid[r][c]
                if target is None:
                    moves.append(Move(origin, Square(r, c)))
                else:
                    if target.color is not color:
                        moves.append(Move(origin, Square(r, c), MoveKind.CAPTURE))
                    break
                r += dr
                c += dc
        return moves

    def _can_castle(self, color: Color, kind: MoveKind) -> bool:
        rule = CASTLING[kind]
        row = color.home_row
        if not _is_unmoved(self.grid[row][KING_HOME_COL], PieceType.KING, color):
            return False
        if not _is_unmoved(self.grid[row][rule.rook_from], PieceType.ROOK, color):
            return False
        if any(self.grid[row][c] is not None for c in rule.between):
            return False
        enemy = color.opponent
        return not any(self.is_square_attacked((row, c), enemy) for c in rule.king_path)

    def generate_legal_moves(self, color: Optional[Color] = None) -> List[Move]:
        """Return the legal moves of ``color`` (default: side to move).

        Every pseudo-legal candidate is dry-run applied, kept if the mover's
        king is not attacked afterwards, and undone. Order is row-major over
        the board, then the piece's own move order.
        """
        if color is None:
            color = self.side_to_move
        enemy = color.opponent
        king_sq = self.find_king(color)
        legal: List[Move] = []
        for row in range(8):
            for col in range(8):
                piece = self.grid[row][col]
                if piece is None or piece.color is not color:
                    continue
                is_king = piece.type is PieceType.KING
                for move in self.generate_pseudo_moves((row, col), piece):
                    record = self.apply_move(move, dry_run=True)
                    target = move.to_sq if is_king else king_sq
                    if target is None or not self.is_square_attacked(target, enemy):
                        legal.append(move)
                    self.undo_move(record)
        return legal

    def has_legal_moves(self, color: Optional[Color] = None) -> bool:
        return bool(self.generate_legal_moves(color))

    def find_move(
        self,
        from_sq: Tuple[int, int],
        to_sq: Tuple[int, int],
        promotion: Optional[PieceType] = None,
    ) -> Optional[Move]:
        """Return the legal move of the side to move matching the squares.

        A missing ``promotion`` matches the (queen) promotion move, since no
        other promotion is generated.
        """
        for move in self.generate_legal_moves():
            if move.from_sq != from_sq or move.to_sq != to_sq:
                continue
            if promotion is None or promotion is move.promotion:
                return move
        return None

    # --- Move application ---
    def apply_move(self, move: Move, dry_run: bool = False) -> MoveRecord:
        """Apply ``move`` in-place and return the record that reverses it.

        A dry run only touches the pieces and the en-passant target; turn,
        counters and history are left alone so that the record can be undone
        immediately with ``undo_move``.

        Raises:
            ValueError: If the origin square is empty.
        """
        grid = self.grid
        fr, fc = move.from_sq
        tr, tc = move.to_sq
        moving = grid[fr][fc]
        if moving is None:
            raise ValueError(f"no piece to move from {square_to_str(move.from_sq)}")
        captured = grid[tr][tc]
        ep_captured: Optional[Piece] = None
        rook_from: Optional[Square] = None
        rook_to: Optional[Square] = None
        rook_piece: Optional[Piece] = None

        if move.kind is MoveKind.EN_PASSANT:
            # Victim stands beside the origin, on the destination file.
            ep_captured = grid[fr][tc]
            grid[fr][tc] = None
        elif move.kind in CASTLING:
            rule = CASTLING[move.kind]
            rook_from = Square(fr, rule.rook_from)
            rook_to = Square(fr, rule.rook_to)
            rook_piece = grid[fr][rule.rook_from]
            if rook_piece is None:
                raise ValueError("no rook to castle with")
            grid[fr][rule.rook_from] = None
            grid[fr][rule.rook_to] = rook_piece.moved()

        grid[fr][fc] = None
        if move.promotion is not None:
            grid[tr][tc] = Piece(move.promotion, moving.color, True)
        else:
            grid[tr][tc] = moving.moved()

        record = MoveRecord(
            move=move,
            moving_piece=moving,
            captured_piece=captured,
            en_passant_captured=ep_captured,
            rook_from=rook_from,
            rook_to=rook_to,
            rook_piece=rook_piece,
            prev_side_to_move=self.side_to_move,
            prev_ep_square=self.ep_square,
            prev_halfmove_clock=self.halfmove_clock,
            prev_fullmove_number=self.fullmove_number,
        )

        self.ep_square = move.en_passant_target

        if not dry_run:
            if moving.type is PieceType.PAWN or captured is not None or ep_captured is not None:
                self.halfmove_clock = 0
            else:
                self.halfmove_clock += 1
            if moving.color is Color.BLACK:
                self.fullmove_number += 1
            self.side_to_move = self.side_to_move.opponent
            self.history.append(record)
        return record

    def undo_move(self, record: MoveRecord) -> None:
        """Reverse ``record`` in-place. Does not touch the history."""
        self.side_to_move = record.prev_side_to_move
        self.ep_square = record.prev_ep_square
        self.halfmove_clock = record.prev_halfmove_clock
        self.fullmove_number = record.prev_fullmove_number

        grid = self.grid
        fr, fc = record.move.from_sq
        tr, tc = record.move.to_sq
        grid[tr][tc] = None
        grid[fr][fc] = record.moving_piece

        if record.en_passant_captured is not None:
            grid[fr][tc] = record.en_passant_captured
        elif record.captured_piece is not None:
            grid[tr][tc] = record.captured_piece

        if record.rook_from is not None and record.rook_to is not None:
            grid[record.rook_to.row][record.rook_to.col] = None
            grid[record.rook_from.row][record.rook_from.col] = record.rook_piece

    def undo(self) -> MoveRecord:
        """Pop the most recent committed move and reverse it.

        Raises:
            ValueError: If there is no move to undo.
        """
        if not self.history:
            raise ValueError("no moves to undo")
        record = self.history.pop()
        self.undo_move(record)
        return record

    # --- Status helpers ---
    def get_game_state(self) -> GameState:
        """Classify the position for the side to move."""
        color = self.side_to_move
        legal = self.generate_legal_moves(color)
        in_check = self.is_in_check(color)
        if not legal:
            if in_check:
                return GameState(GameStatus.CHECKMATE, winner=color.opponent, in_check=True)
            return GameState(GameStatus.STALEMATE)
        return GameState(GameStatus.ONGOING, in_check=in_check, legal_moves=legal)


def _is_unmoved(piece: Optional[Piece], ptype: PieceType, color: Color) -> bool:
    return piece is not None and piece.type is ptype and piece.color is color and not piece.has_moved


def _loaded_has_moved(piece: Piece, row: int, col: int, castling: str) -> bool:
    color = piece.color
    home = color.home_row
    if piece.type is PieceType.PAWN:
        return row != color.pawn_row
    kingside, queenside = ("K", "Q") if color is Color.WHITE else ("k", "q")
    if piece.type is PieceType.KING:
        unmoved = (row, col) == (home, KING_HOME_COL) and (
            kingside in castling or queenside in castling
        )
        return not unmoved
    if piece.type is PieceType.ROOK:
        if (row, col) == (home, 7) and kingside in castling:
            return False
        if (row, col) == (home, 0) and queenside in castling:
            return False
        return True
    return False
