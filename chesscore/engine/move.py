from __future__ import annotations

from dataclasses import dataclass

BOARD_SIZE = 8
FILES = "abcdefgh"


@dataclass(frozen=True)
class Square:
    """A board coordinate.

    Attributes:
        row (int): 0..7, where row 0 is rank 8 (Black's back rank).
        col (int): 0..7, where col 0 is file a.
    """

    row: int
    col: int

    def __post_init__(self) -> None:
        if not (0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE):
            raise ValueError(f"square out of board: ({self.row}, {self.col})")

    @staticmethod
    def on_board(row: int, col: int) -> bool:
        return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE

    def offset(self, drow: int, dcol: int) -> "Square | None":
        r, c = self.row + drow, self.col + dcol
        if not Square.on_board(r, c):
            return None
        return Square(r, c)

    def __str__(self) -> str:
        return square_to_str(self)


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Promotion is implicit: a pawn reaching the far rank always becomes a queen.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
    """

    from_sq: Square
    to_sq: Square

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form.

        Returns:
            str: Move encoded like ``"e2e4"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq)

    def reverses(self, other: "Move | None") -> bool:
        """Return True if this move exactly undoes ``other``'s displacement."""
        return (
            other is not None
            and self.from_sq == other.to_sq
            and self.to_sq == other.from_sq
        )


def parse_uci(uci: str) -> Move:
    """Parse a long algebraic move string.

    Args:
        uci (str): Move such as ``"e2e4"``. A trailing ``"q"`` is accepted for
            promotions; other promotion pieces are rejected because promotion
            is always to a queen.

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid move length: {uci!r}")
    if len(uci) == 5 and uci[4].lower() != "q":
        raise ValueError(f"unsupported promotion piece: {uci[4]!r}")
    return Move(str_to_square(uci[0:2]), str_to_square(uci[2:4]))


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a Square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: ``"a8"`` is ``Square(0, 0)`` and ``"h1"`` is ``Square(7, 7)``.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = BOARD_SIZE - int(s[1])
    return Square(row, col)


def square_to_str(sq: Square) -> str:
    """Convert a Square into algebraic notation."""
    return FILES[sq.col] + str(BOARD_SIZE - sq.row)
