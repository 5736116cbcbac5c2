from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from .move import BOARD_SIZE, Square, square_to_str, str_to_square


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class Color(Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        # White starts on rows 6-7 and advances toward row 0
        return -1 if self is Color.WHITE else 1

    @property
    def pawn_row(self) -> int:
        return 6 if self is Color.WHITE else 1

    @property
    def back_row(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceType(Enum):
    PAWN = "p"
    ROOK = "r"
    KNIGHT = "n"
    BISHOP = "b"
    QUEEN = "q"
    KING = "k"


# Captured-material points credited to the capturing side
PIECE_POINTS = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
    PieceType.KING: 0,
}

BACK_RANK_ORDER = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


@dataclass(frozen=True)
class Piece:
    """Immutable piece value owned by exactly one board cell.

    Moving or promoting a piece replaces the cell's value instead of mutating
    it, so board copies never alias each other.
    """

    kind: PieceType
    color: Color
    has_moved: bool = False

    def moved(self) -> "Piece":
        return self if self.has_moved else replace(self, has_moved=True)

    def promoted(self) -> "Piece":
        return replace(self, kind=PieceType.QUEEN)

    @property
    def symbol(self) -> str:
        ch = self.kind.value
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_symbol(cls, ch: str, has_moved: bool = False) -> "Piece":
        try:
            kind = PieceType(ch.lower())
        except ValueError as e:
            raise ValueError(f"invalid piece in FEN: {ch!r}") from e
        color = Color.WHITE if ch.isupper() else Color.BLACK
        return cls(kind, color, has_moved)


Grid = List[List[Optional[Piece]]]


def _empty_grid() -> Grid:
    return [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]


@dataclass
class Board:
    """8x8 piece placement plus turn and en-passant state.

    Notes:
    - ``grid[row][col]``; row 0 is rank 8 and col 0 is file a.
    - ``ep_target`` is the square skipped by the previous ply's pawn double
      step, or None.
    """

    grid: Grid = field(default_factory=_empty_grid)
    side_to_move: Color = Color.WHITE
    ep_target: Optional[Square] = None

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        board = cls()
        for col in range(BOARD_SIZE):
            board.grid[1][col] = Piece(PieceType.PAWN, Color.BLACK)
            board.grid[6][col] = Piece(PieceType.PAWN, Color.WHITE)
            board.grid[0][col] = Piece(BACK_RANK_ORDER[col], Color.BLACK)
            board.grid[7][col] = Piece(BACK_RANK_ORDER[col], Color.WHITE)
        return board

    def copy(self) -> "Board":
        """Return an independent copy of this board.

        Pieces are immutable values, so duplicating the rows is a full copy.
        """
        return Board(
            grid=[row[:] for row in self.grid],
            side_to_move=self.side_to_move,
            ep_target=self.ep_target,
        )

    def piece_at(self, sq: Square) -> Optional[Piece]:
        return self.grid[sq.row][sq.col]

    def set_piece(self, sq: Square, piece: Optional[Piece]) -> None:
        self.grid[sq.row][sq.col] = piece

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` pairs in row-major order."""
        for r in range(BOARD_SIZE):
            row = self.grid[r]
            for c in range(BOARD_SIZE):
                p = row[c]
                if p is not None and (color is None or p.color is color):
                    yield Square(r, c), p

    def swap_turn(self) -> None:
        self.side_to_move = self.side_to_move.opponent

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth-Edwards Notation (FEN) string.

        FEN is used only to set up positions. Move counters are accepted but
        not tracked, and ``has_moved`` flags are derived from the placement:
        pawns on their starting row and kings on their home square count as
        unmoved, corner rooks count as unmoved only when the matching castling
        letter is present.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, or en
                passant square.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) not in (4, 6):
            raise ValueError("FEN must have 4 or 6 fields")
        placement, stm, castling, ep = parts[:4]

        ranks = placement.split("/")
        if len(ranks) != BOARD_SIZE:
            raise ValueError("FEN board must have 8 ranks")
        board = cls()
        for row, rank in enumerate(ranks):
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    col += n
                else:
                    if col >= BOARD_SIZE:
                        raise ValueError("too many squares in FEN rank")
                    board.grid[row][col] = Piece.from_symbol(ch, has_moved=True)
                    col += 1
            if col != BOARD_SIZE:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")
        board.side_to_move = Color(stm)

        if castling != "-":
            for ch in castling:
                if ch not in "KQkq":
                    raise ValueError("invalid castling rights")
        rights = "" if castling == "-" else castling
        board._derive_has_moved(rights)

        if ep != "-":
            try:
                target = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # Target lies on rank 3 or rank 6
            if target.row not in (2, 5):
                raise ValueError("invalid en passant square rank")
            board.ep_target = target
        return board

    def _derive_has_moved(self, rights: str) -> None:
        for sq, p in list(self.pieces()):
            unmoved = False
            if p.kind is PieceType.PAWN:
                unmoved = sq.row == p.color.pawn_row
            elif p.kind is PieceType.KING:
                unmoved = sq == Square(p.color.back_row, 4)
            elif p.kind is PieceType.ROOK and sq.row == p.color.back_row:
                if sq.col == 7:
                    unmoved = ("K" if p.color is Color.WHITE else "k") in rights
                elif sq.col == 0:
                    unmoved = ("Q" if p.color is Color.WHITE else "q") in rights
            elif p.kind in (PieceType.KNIGHT, PieceType.BISHOP, PieceType.QUEEN):
                unmoved = True
            if not unmoved:
                continue
            self.set_piece(sq, replace(p, has_moved=False))

    def castling_rights(self) -> str:
        """Return castling letters for rooks that are still unmoved on a corner."""
        out = []
        for color, letters in ((Color.WHITE, "KQ"), (Color.BLACK, "kq")):
            king = self.grid[color.back_row][4]
            if king is None or king.kind is not PieceType.KING or king.color is not color:
                continue
            for letter, col in zip(letters, (7, 0)):
                rook = self.grid[color.back_row][col]
                if (
                    rook is not None
                    and rook.kind is PieceType.ROOK
                    and rook.color is color
                    and not rook.has_moved
                ):
                    out.append(letter)
        return "".join(out)

    def to_fen(self) -> str:
        """Serialize the current position into a FEN string.

        Returns:
            str: FEN string; move counters are always ``0 1``.
        """
        ranks_str: List[str] = []
        for row in self.grid:
            run = 0
            out = []
            for p in row:
                if p is None:
                    run += 1
                    continue
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(p.symbol)
            if run > 0:
                out.append(str(run))
            ranks_str.append("".join(out))
        placement = "/".join(ranks_str)
        castling = self.castling_rights() or "-"
        ep = square_to_str(self.ep_target) if self.ep_target is not None else "-"
        return f"{placement} {self.side_to_move.value} {castling} {ep} 0 1"
