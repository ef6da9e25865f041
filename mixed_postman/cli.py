import argparse
import csv
import json
import logging
import sys
import time
from typing import Dict, List, Optional

from .exceptions import PostmanError
from .exhaustive import DEFAULT_MAX_DEPTH
from .graph import Graph, Path
from .matching import DEFAULT_MAX_DP_K, MATCHING_METHODS
from .randomized import DEFAULT_ITERATIONS, DEFAULT_WORKERS
from .solver import METHODS, solve
from .synthesis import DEFAULT_MAX_ORIENT_K

# ============================================================
# CLI & Logging
# ============================================================
def build_argparser():
    p = argparse.ArgumentParser(description="Mixed Chinese Postman solver (start -> end covering walk)")
    p.add_argument("-i", "--input", required=True, help="Path to the JSON graph snapshot")
    p.add_argument("--start", type=int, required=True, help="Start vertex id")
    p.add_argument("--end", type=int, help="End vertex id (default: same as start)")

    # Method & algorithm parameters
    p.add_argument("--method", choices=METHODS, default="exact")
    # exact    = balance with shadow edges, then Eulerian trail
    # bounded  = iterative deepening branch-and-bound (small graphs)
    # random   = best of many random covering walks, in parallel
    # shortest = plain shortest path start -> end
    p.add_argument("--matching", choices=MATCHING_METHODS, default="auto")
    p.add_argument("--max-dp-k", type=int, default=DEFAULT_MAX_DP_K)
    # If k <= max-dp-k, pair vertices with the exact DP, otherwise Blossom
    p.add_argument("--max-orient-k", type=int, default=DEFAULT_MAX_ORIENT_K)
    # Up to this many undirected edges every orientation is tried, otherwise min cost flow
    p.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH)
    p.add_argument("--iterations", type=int, default=DEFAULT_ITERATIONS)
    p.add_argument("--workers", type=int, default=DEFAULT_WORKERS)
    p.add_argument("--max-steps", type=int, help="Step cap of one random trial")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--progress", action="store_true", help="Show per-worker progress bars")

    # Export & logs
    p.add_argument("--export", help="Output path for the route (JSON/CSV)")
    p.add_argument("--export-format", choices=["json", "csv"], default="json")
    p.add_argument("-v", "--verbose", action="count", default=1)
    p.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    # verbosity: 0=warning (-q), 1=info (default), 2=debug (-v)

    # Print route options
    p.add_argument("--print-route", action="store_true", help="Print the computed route")
    p.add_argument("--print-full-route", action="store_true", help="Print the full route (can be huge!)")
    p.add_argument("--print-limit", type=int, default=100)
    p.add_argument("--print-edges", action="store_true", help="Print edge ids instead of vertices")
    return p


def configure_logging(verbosity: int):
    """Configure logging level based on verbosity.
    Parameters
    ----------
    verbosity : int
        0 = warning, 1 = info, 2 = debug
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )

# ============================================================
# Route & printing utils
# ============================================================
def _truncate(seq: List, limit: int, full: bool, filler) -> List:
    if full or len(seq) <= limit:
        return seq
    return seq[: limit // 2] + [filler] + seq[-(limit - limit // 2):]


def print_route_to_console(path: Path, print_edges: bool = False,
                           limit: int = 100, full: bool = False):
    '''
    Print route to console, either as edge ids or as visited vertices.
    If full is False and route is longer than limit, print head and tail with ellipsis.
    '''
    if not path.edges:
        print("Route: <empty>"); return
    if print_edges:
        ids = path.edge_ids
        print(f"Route (edges) count = {len(ids)}")
        print(_truncate(ids, limit, full, "..."))
    else:
        vertices = path.vertices
        print(f"Route (vertices) length = {len(vertices)}")
        print(_truncate(vertices, limit, full, "..."))


def print_summary(meta: Dict, graph: Graph, path: Path):
    '''
    Print solution summary to the console.
    '''
    print("\n=== Solution Summary ===")
    print(f"Resolution mode        : {meta.get('mode')}")
    print(f"Total vertices         : {len(graph.vertices)}")
    print(f"Total edges            : {len(graph.edges)}")
    print(f"Working edges          : {meta.get('edges', '-')}")
    print(f"Matched pairs          : {meta.get('pairs', '-')}")
    print(f"Shadow edges           : {meta.get('shadow_edges', path.shadow_count)}")
    print(f"Added length           : {meta.get('added_length', '-')}")
    print(f"Route edges            : {len(path)}")
    print(f"Route weight           : {round(path.weight, 3)}")
    print(f"Lower bound            : {meta.get('lower_bound', '-')}")
    print(f"Total time             : {meta.get('total_time_sec')} s")
    print("========================\n")

# ============================================================
# Export
# ============================================================
def export_route(path_out: Optional[str], path: Path, meta: Dict, fmt: str = "json"):
    '''
    Export route and meta to file in JSON or CSV format.
    '''
    if not path_out: return
    if fmt == "json":
        with open(path_out, "w", encoding="utf-8") as f:
            json.dump({
                "path": path.edge_ids,
                "vertices": path.vertices,
                "weight": path.weight,
                "meta": meta,
            }, f, ensure_ascii=False, indent=2)
    else:
        with open(path_out, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["step", "edge_id", "from", "to", "weight", "shadow"])
            for step, (e, tail, head) in enumerate(path.traversals(), start=1):
                writer.writerow([step, e.original_id, tail, head, e.weight, int(e.is_shadow)])

# ============================================================
# Main
# ============================================================
def main(argv: Optional[List[str]] = None) -> int:
    args = build_argparser().parse_args(argv)
    configure_logging(0 if args.quiet else args.verbose)
    end = args.start if args.end is None else args.end

    try:
        graph = Graph.load(args.input)
        t0 = time.time()
        path, meta = solve(
            graph, args.start, end, method=args.method,
            matching=args.matching, max_dp_k=args.max_dp_k, max_orient_k=args.max_orient_k,
            max_depth=args.max_depth,
            iterations=args.iterations, workers=args.workers,
            seed=args.seed, max_steps=args.max_steps, show_progress=args.progress,
        )
        meta["total_time_sec"] = round(time.time() - t0, 3)
    except (PostmanError, ValueError, OSError) as exc:
        logging.error(f"{type(exc).__name__}: {exc}")
        return 1

    print_summary(meta, graph, path)

    if args.print_route:
        print_route_to_console(path, print_edges=args.print_edges,
                               limit=args.print_limit, full=args.print_full_route)

    if args.export:
        export_route(args.export, path, meta, fmt=args.export_format)
    return 0


if __name__ == "__main__":
    sys.exit(main())
