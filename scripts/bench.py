#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import os
import platform
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Ensure repo root is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from chesscore.config import SearchConfig
from chesscore.engine.board import STARTPOS_FEN, Board
from chesscore.search.service import SearchResult, SearchService


@dataclass
class BenchItem:
    id: str
    fen: str
    depth: Optional[int] = None


BUILTIN_POSITIONS = [
    BenchItem("startpos", STARTPOS_FEN),
    BenchItem(
        "kiwipete",
        "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
        depth=2,
    ),
    BenchItem("italian", "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"),
    BenchItem("rook-endgame", "8/2k5/8/3r4/8/4K3/8/4R3 b - - 0 1"),
]


def load_positions(path: Optional[str]) -> List[BenchItem]:
    if path is None:
        return list(BUILTIN_POSITIONS)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    items: List[BenchItem] = []
    for obj in data.get("positions", []):
        items.append(
            BenchItem(
                id=str(obj.get("id", "pos")),
                fen=str(obj["fen"]),
                depth=(int(obj["depth"]) if obj.get("depth") is not None else None),
            )
        )
    return items


def bench_position(
    svc: SearchService, item: BenchItem, *, depth: int, iterations: int
) -> Dict[str, Any]:
    board = Board.from_fen(item.fen)
    eff_depth = item.depth if item.depth is not None else depth

    total_time = 0
    total_nodes = 0
    total_qnodes = 0
    last: Optional[SearchResult] = None
    for _ in range(max(1, iterations)):
        res = svc.search(board, depth=eff_depth)
        total_time += res.time_ms
        total_nodes += res.nodes
        total_qnodes += res.qnodes
        last = res
    assert last is not None

    n = max(1, iterations)
    avg_time = total_time // n
    avg_nodes = total_nodes // n
    return {
        "id": item.id,
        "fen": item.fen,
        "depth": last.depth,
        "best_move": last.best_move.to_uci() if last.best_move else None,
        "score": last.score,
        "time_ms": avg_time,
        "nodes": avg_nodes,
        "qnodes": total_qnodes // n,
        "nps": int(avg_nodes * 1000 / avg_time) if avg_time > 0 else 0,
        "iters": last.iters,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Run search benchmarks over a positions suite")
    parser.add_argument("--positions", default=None, help="Path to positions.json")
    parser.add_argument("--depth", type=int, default=3, help="Search depth per position")
    parser.add_argument("--iterations", type=int, default=1, help="Repeat runs and average")
    parser.add_argument("--out", type=str, default=None, help="Write JSON results to file path")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    args = parser.parse_args()

    items = load_positions(args.positions)
    if not items:
        raise SystemExit("No positions found in positions file")

    svc = SearchService(SearchConfig(depth=args.depth))
    t0 = time.perf_counter()
    results = [
        bench_position(svc, it, depth=args.depth, iterations=args.iterations) for it in items
    ]
    dt_ms = int((time.perf_counter() - t0) * 1000)
    total_nodes = sum(r["nodes"] for r in results)

    payload = {
        "meta": {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "python": sys.version.split()[0],
            "platform": platform.platform(),
            "depth": args.depth,
            "iterations": max(1, args.iterations),
        },
        "results": results,
        "summary": {
            "positions": len(results),
            "total_time_ms": dt_ms,
            "total_nodes": total_nodes,
            "overall_nps": int(total_nodes * 1000 / dt_ms) if dt_ms > 0 else 0,
        },
    }
    text = json.dumps(payload, indent=2 if args.pretty else None)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text)
        print(args.out)
    else:
        print(text)


if __name__ == "__main__":
    main()
