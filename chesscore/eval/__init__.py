"""Static evaluation.

Pure, deterministic, and side-effect free. Scores are in centipawns and
positive values favour Black.
"""

from __future__ import annotations

from typing import Dict, Final, List

from chesscore.engine.attacks import find_king, is_king_in_check
from chesscore.engine.board import Board, Color, PieceType


# Material values in centipawns; the king is excluded from the material balance
P_VAL: Final = 100
N_VAL: Final = 300
B_VAL: Final = 300
R_VAL: Final = 500
Q_VAL: Final = 900
K_VAL: Final = 0

PIECE_VALUES: Final[Dict[PieceType, int]] = {
    PieceType.PAWN: P_VAL,
    PieceType.KNIGHT: N_VAL,
    PieceType.BISHOP: B_VAL,
    PieceType.ROOK: R_VAL,
    PieceType.QUEEN: Q_VAL,
    PieceType.KING: K_VAL,
}

BISHOP_PAIR_BONUS: Final = 50
CHECK_BONUS: Final = 50
KING_SHIELD_BONUS: Final = 6  # per pawn in the two rows in front of the king


# Piece-square tables from White's point of view, row 0 = rank 8.
# Every row is left-right symmetric.
PSQT_P: Final = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [50, 50, 50, 50, 50, 50, 50, 50],
    [10, 10, 20, 30, 30, 20, 10, 10],
    [5, 5, 10, 25, 25, 10, 5, 5],
    [0, 0, 0, 20, 20, 0, 0, 0],
    [5, -5, -10, 0, 0, -10, -5, 5],
    [5, 10, 10, -20, -20, 10, 10, 5],
    [0, 0, 0, 0, 0, 0, 0, 0],
]

PSQT_N: Final = [
    [-50, -40, -30, -30, -30, -30, -40, -50],
    [-40, -20, 0, 0, 0, 0, -20, -40],
    [-30, 0, 10, 15, 15, 10, 0, -30],
    [-30, 5, 15, 20, 20, 15, 5, -30],
    [-30, 0, 15, 20, 20, 15, 0, -30],
    [-30, 5, 10, 15, 15, 10, 5, -30],
    [-40, -20, 0, 5, 5, 0, -20, -40],
    [-50, -40, -30, -30, -30, -30, -40, -50],
]

PSQT_B: Final = [
    [-20, -10, -10, -10, -10, -10, -10, -20],
    [-10, 0, 0, 0, 0, 0, 0, -10],
    [-10, 0, 5, 10, 10, 5, 0, -10],
    [-10, 5, 5, 10, 10, 5, 5, -10],
    [-10, 0, 10, 10, 10, 10, 0, -10],
    [-10, 10, 10, 10, 10, 10, 10, -10],
    [-10, 5, 0, 0, 0, 0, 5, -10],
    [-20, -10, -10, -10, -10, -10, -10, -20],
]

PSQT_R: Final = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [5, 10, 10, 10, 10, 10, 10, 5],
    [-5, 0, 0, 0, 0, 0, 0, -5],
    [-5, 0, 0, 0, 0, 0, 0, -5],
    [-5, 0, 0, 0, 0, 0, 0, -5],
    [-5, 0, 0, 0, 0, 0, 0, -5],
    [-5, 0, 0, 0, 0, 0, 0, -5],
    [0, 0, 0, 5, 5, 0, 0, 0],
]

PSQT_Q: Final = [
    [-20, -10, -10, -5, -5, -10, -10, -20],
    [-10, 0, 0, 0, 0, 0, 0, -10],
    [-10, 0, 5, 5, 5, 5, 0, -10],
    [-5, 0, 5, 5, 5, 5, 0, -5],
    [-5, 0, 5, 5, 5, 5, 0, -5],
    [-10, 0, 5, 5, 5, 5, 0, -10],
    [-10, 0, 0, 0, 0, 0, 0, -10],
    [-20, -10, -10, -5, -5, -10, -10, -20],
]

PSQT_K: Final = [
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-20, -30, -30, -40, -40, -30, -30, -20],
    [-10, -20, -20, -20, -20, -20, -20, -10],
    [20, 20, 0, 0, 0, 0, 20, 20],
    [20, 30, 10, 0, 0, 10, 30, 20],
]

PSQT: Final[Dict[PieceType, List[List[int]]]] = {
    PieceType.PAWN: PSQT_P,
    PieceType.KNIGHT: PSQT_N,
    PieceType.BISHOP: PSQT_B,
    PieceType.ROOK: PSQT_R,
    PieceType.QUEEN: PSQT_Q,
    PieceType.KING: PSQT_K,
}


def piece_square_bonus(kind: PieceType, color: Color, row: int, col: int) -> int:
    """Positional bonus for ``kind`` on (row, col) from its owner's view.

    Black reads the table with both rank and file flipped.
    """
    table = PSQT[kind]
    if color is Color.WHITE:
        return table[row][col]
    return table[7 - row][7 - col]


def _king_shield_pawns(board: Board, color: Color) -> int:
    ksq = find_king(board, color)
    if ksq is None:
        return 0
    total = 0
    for dist in (1, 2):
        r = ksq.row + dist * color.forward
        if not 0 <= r < 8:
            continue
        for c in (ksq.col - 1, ksq.col, ksq.col + 1):
            if 0 <= c < 8:
                p = board.grid[r][c]
                if p is not None and p.color is color and p.kind is PieceType.PAWN:
                    total += 1
    return total


def static_evaluation(board: Board) -> int:
    """Return a material + PSQT + king-safety score in centipawns.

    Positive means advantage for Black. The minimax search maximises for
    Black and minimises for White, so this function is side-agnostic.
    """
    score = 0
    bishops = {Color.WHITE: 0, Color.BLACK: 0}
    for sq, p in board.pieces():
        term = PIECE_VALUES[p.kind] + piece_square_bonus(p.kind, p.color, sq.row, sq.col)
        if p.kind is PieceType.BISHOP:
            bishops[p.color] += 1
        score += term if p.color is Color.BLACK else -term

    # Bishop pair
    if bishops[Color.BLACK] >= 2:
        score += BISHOP_PAIR_BONUS
    if bishops[Color.WHITE] >= 2:
        score -= BISHOP_PAIR_BONUS

    # King safety: checks and pawn shield
    if is_king_in_check(board, Color.WHITE):
        score += CHECK_BONUS
    if is_king_in_check(board, Color.BLACK):
        score -= CHECK_BONUS
    score += _king_shield_pawns(board, Color.BLACK) * KING_SHIELD_BONUS
    score -= _king_shield_pawns(board, Color.WHITE) * KING_SHIELD_BONUS

    return score
