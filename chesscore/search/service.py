from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from chesscore.config import SearchConfig
from chesscore.engine.attacks import is_king_in_check
from chesscore.engine.board import Board, Color
from chesscore.engine.executor import simulate_move
from chesscore.engine.move import Move
from chesscore.engine.rules import captured_piece, generate_legal_moves
from chesscore.eval import PIECE_VALUES, static_evaluation

logger = logging.getLogger(__name__)


INF = 10_000_000
MATE_SCORE = 1_000_000  # mate scores are within +/- MATE_SCORE window


class SearchOutcome(Enum):
    MOVE_CHOSEN = "move_chosen"
    NO_LEGAL_MOVE = "no_legal_move"
    CANCELLED = "cancelled"


@dataclass
class SearchResult:
    """Outcome of one ``SearchService.search`` call.

    ``score`` follows the evaluation convention: positive favours Black.
    ``depth`` is the deepest fully completed iteration.
    """

    outcome: SearchOutcome
    best_move: Optional[Move]
    score: Optional[int]
    depth: int
    nodes: int
    qnodes: int
    in_check: bool
    cancelled: bool
    time_ms: int
    iters: List[Dict[str, int]] = field(default_factory=list)


class SearchCancelled(Exception):
    """Raised inside the search when the cancel token is set."""


def order_moves(board: Board, moves: List[Move]) -> List[Move]:
    """Captures first by descending victim value; otherwise generation order."""

    def key(m: Move) -> int:
        victim = captured_piece(board, m)
        return PIECE_VALUES[victim.kind] if victim is not None else -1

    return sorted(moves, key=key, reverse=True)


class SearchService:
    """Iterative-deepening minimax with alpha-beta pruning and quiescence.

    Black maximises and White minimises, matching ``static_evaluation``.
    All search state lives in the ``search`` call, so a service instance can
    be shared between callers.
    """

    def __init__(self, config: Optional[SearchConfig] = None) -> None:
        self.config = config or SearchConfig()

    def search(
        self,
        board: Board,
        color: Optional[Color] = None,
        depth: Optional[int] = None,
        *,
        last_move: Optional[Move] = None,
        cancel: Optional[threading.Event] = None,
        pause: Optional[Callable[[], None]] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        on_iter: Optional[Callable[[int, int, int, Optional[Move]], None]] = None,
    ) -> SearchResult:
        """Pick a move for ``color`` (default: side to move) on ``board``.

        Args:
            board: Position to search. It is copied and never mutated.
            color: Side to search for.
            depth: Nominal depth in plies; defaults to the configured depth.
            last_move: The side's own previous move. Reversing it is
                penalised by ``repetition_penalty`` at the root.
            cancel: Token polled at every yield point.
            pause: Called every ``yield_every`` nodes to let the host run.
            on_progress: Receives the cumulative node count at yield points.
            on_iter: Called with (depth, nodes, score, best_move) after every
                completed iteration.
        """
        cfg = self.config
        max_depth = max(1, depth if depth is not None else cfg.depth)
        yield_every = max(1, cfg.yield_every)
        penalty = max(0, cfg.repetition_penalty)

        root = board.copy()
        side = root.side_to_move if color is None else color
        root.side_to_move = side
        maximizing_root = side is Color.BLACK

        start = time.perf_counter()
        nodes = 0
        qnodes = 0

        def tick() -> None:
            nonlocal nodes
            nodes += 1
            if nodes % yield_every == 0:
                if on_progress is not None:
                    on_progress(nodes)
                if pause is not None:
                    pause()
                if cancel is not None and cancel.is_set():
                    raise SearchCancelled()

        def terminal_score(b: Board, ply: int) -> int:
            if is_king_in_check(b, b.side_to_move):
                # Quicker mates score higher for the winner
                mate = MATE_SCORE - ply
                return mate if b.side_to_move is Color.WHITE else -mate
            return 0

        def quiesce(
            b: Board,
            alpha: int,
            beta: int,
            maximizing: bool,
            ply: int,
            qply: int,
            legal: Optional[List[Move]] = None,
        ) -> int:
            nonlocal qnodes
            if legal is None:
                tick()
                legal = generate_legal_moves(b)
            qnodes += 1
            if not legal:
                return terminal_score(b, ply)

            stand_pat = static_evaluation(b)
            if qply >= cfg.quiescence_max_ply:
                return stand_pat

            captures = order_moves(b, [m for m in legal if captured_piece(b, m) is not None])
            best = stand_pat
            if maximizing:
                if stand_pat >= beta:
                    return stand_pat
                alpha = max(alpha, stand_pat)
                for m in captures:
                    score = quiesce(simulate_move(b, m), alpha, beta, False, ply + 1, qply + 1)
                    if score > best:
                        best = score
                    if score > alpha:
                        alpha = score
                    if beta <= alpha:
                        break
            else:
                if stand_pat <= alpha:
                    return stand_pat
                beta = min(beta, stand_pat)
                for m in captures:
                    score = quiesce(simulate_move(b, m), alpha, beta, True, ply + 1, qply + 1)
                    if score < best:
                        best = score
                    if score < beta:
                        beta = score
                    if beta <= alpha:
                        break
            return best

        def minimax(b: Board, d: int, alpha: int, beta: int, maximizing: bool, ply: int) -> int:
            tick()
            legal = generate_legal_moves(b)
            if d <= 0 or not legal:
                return quiesce(b, alpha, beta, maximizing, ply, 0, legal)

            if maximizing:
                best = -INF
                for m in order_moves(b, legal):
                    score = minimax(simulate_move(b, m), d - 1, alpha, beta, False, ply + 1)
                    best = max(best, score)
                    alpha = max(alpha, score)
                    if beta <= alpha:
                        break
                return best

            best = INF
            for m in order_moves(b, legal):
                score = minimax(simulate_move(b, m), d - 1, alpha, beta, True, ply + 1)
                best = min(best, score)
                beta = min(beta, score)
                if beta <= alpha:
                    break
            return best

        def search_root(d: int, moves: List[Move]) -> Tuple[Optional[Move], int]:
            tick()
            alpha, beta = -INF, INF
            best_move: Optional[Move] = None
            best_score = -INF if maximizing_root else INF
            for m in moves:
                score = minimax(simulate_move(root, m), d - 1, alpha, beta, not maximizing_root, 1)
                if penalty and m.reverses(last_move):
                    score = score - penalty if maximizing_root else score + penalty
                if maximizing_root:
                    if score > best_score:
                        best_score, best_move = score, m
                    alpha = max(alpha, score)
                else:
                    if score < best_score:
                        best_score, best_move = score, m
                    beta = min(beta, score)
            return best_move, best_score

        root_moves = generate_legal_moves(root)
        root_in_check = is_king_in_check(root, side)
        if not root_moves:
            logger.info(
                "no legal move for %s (%s)",
                side.name.lower(),
                "checkmate" if root_in_check else "stalemate",
            )
            return SearchResult(
                outcome=SearchOutcome.NO_LEGAL_MOVE,
                best_move=None,
                score=None,
                depth=0,
                nodes=0,
                qnodes=0,
                in_check=root_in_check,
                cancelled=False,
                time_ms=int((time.perf_counter() - start) * 1000),
            )

        ordered = order_moves(root, root_moves)
        best_move: Optional[Move] = None
        best_score: Optional[int] = None
        completed_depth = 0
        cancelled = False
        iters: List[Dict[str, int]] = []

        for d in range(1, max_depth + 1):
            iter_start = time.perf_counter()
            prev_nodes = nodes
            if best_move is not None:
                # Previous iteration's choice is searched first
                ordered = [best_move] + [m for m in ordered if m != best_move]
            try:
                mv, sc = search_root(d, ordered)
            except SearchCancelled:
                cancelled = True
                logger.info("search cancelled during depth %d", d)
                break
            best_move, best_score, completed_depth = mv, sc, d
            iters.append(
                {
                    "depth": d,
                    "time_ms": int((time.perf_counter() - iter_start) * 1000),
                    "nodes": nodes - prev_nodes,
                    "score": sc,
                }
            )
            logger.debug(
                "depth %d best %s score %d nodes %d",
                d,
                mv.to_uci() if mv else "-",
                sc,
                nodes,
            )
            if on_iter is not None:
                on_iter(d, nodes, sc, mv)

        if on_progress is not None:
            on_progress(nodes)

        outcome = SearchOutcome.MOVE_CHOSEN if best_move is not None else SearchOutcome.CANCELLED
        result = SearchResult(
            outcome=outcome,
            best_move=best_move,
            score=best_score,
            depth=completed_depth,
            nodes=nodes,
            qnodes=qnodes,
            in_check=root_in_check,
            cancelled=cancelled,
            time_ms=int((time.perf_counter() - start) * 1000),
            iters=iters,
        )
        logger.info(
            "search %s depth %d move %s score %s nodes %d",
            side.name.lower(),
            completed_depth,
            best_move.to_uci() if best_move else "-",
            best_score,
            nodes,
        )
        return result
