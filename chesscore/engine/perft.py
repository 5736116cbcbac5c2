from __future__ import annotations

from typing import Dict

from .board import Board
from .executor import make_move, unmake_move
from .rules import generate_legal_moves


def perft(board: Board, depth: int) -> int:
    """Count leaf nodes of the legal move tree rooted at ``board``.

    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal children of perft(depth-1).

    Moves are applied in place with make/unmake, so ``board`` is restored
    on return. Promotions always produce a queen, so counts differ from
    standard tables in positions where underpromotion is possible.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = generate_legal_moves(board)
    if depth == 1:
        return len(moves)

    nodes = 0
    for m in moves:
        record = make_move(board, m)
        nodes += perft(board, depth - 1)
        unmake_move(board, record)
    return nodes


def divide(board: Board, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts, keyed by UCI move."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in generate_legal_moves(board):
        record = make_move(board, m)
        out[m.to_uci()] = perft(board, depth - 1)
        unmake_move(board, record)
    return out
