'''
Public entry points: filter the graph to the part a walk from start to
end can use, then solve with one of the strategies.

    exact    : balancing + Eulerian trail (solve_cpp_exact)
    bounded  : iterative deepening branch-and-bound (solve_cpp_bounded)
    random   : parallel random walks (solve_cpp_random)
    shortest : plain shortest path, no covering requirement
'''
import logging
import threading
import time
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

from .balance import check_degrees, degree_table
from .dijkstra import shortest_path as _shortest_path
from .eulerian import extract_trail
from .exceptions import GraphError, NotConnected, UnreachableVertex
from .exhaustive import DEFAULT_MAX_DEPTH, BoundedSolver
from .graph import Edge, Graph, Path
from .matching import DEFAULT_MAX_DP_K
from .randomized import DEFAULT_ITERATIONS, DEFAULT_WORKERS, ProgressCallback, RandomizedSolver
from .reachability import check_single_pass, flood_fill, reachable
from .synthesis import DEFAULT_MAX_ORIENT_K, synthesize

log = logging.getLogger(__name__)

METHODS = ("exact", "bounded", "random", "shortest")


def lower_bound(edges: Sequence[Edge]) -> float:
    '''Any covering walk weighs at least the sum of the edge weights.'''
    return sum(e.weight for e in edges)


def working_edges(graph: Graph, start: int, end: int) -> Tuple[FrozenSet[int], Tuple[Edge, ...]]:
    '''
    The sub-graph a covering walk from start to end has to deal with.
    Raises NotConnected if end cannot be reached, UnreachableVertex if some
    edge of the sub-graph touches a vertex the walk cannot pass through or
    if no single walk can take every edge leaving a strongly connected part.
    '''
    vertices, edges = reachable(graph, start, end)
    check_degrees(degree_table(edges), start, end)
    backward = flood_fill(edges, end, reverse=True)
    endpoints = sorted({v for e in edges for v in (e.v1, e.v2)})
    for vid in endpoints:
        if vid not in vertices:
            raise UnreachableVertex(vid, f"not reachable from start vertex {start}")
        if vid not in backward:
            raise UnreachableVertex(vid, f"end vertex {end} cannot be reached from it")
    check_single_pass(edges)
    return vertices, edges


def shortest_path(graph: Graph, start: int, end: int, reverse: bool = False) -> Optional[Path]:
    for vid in (start, end):
        if not graph.has_vertex(vid):
            raise GraphError(f"unknown vertex {vid}")
    return _shortest_path(graph, start, end, reverse=reverse)


# ============================================================
# Strategies
# ============================================================
def solve_cpp_exact(graph: Graph, start: int, end: int, matching: str = "auto",
                    max_dp_k: int = DEFAULT_MAX_DP_K, max_orient_k: int = DEFAULT_MAX_ORIENT_K) -> Path:
    '''
    Balance the reachable sub-graph with shadow edges and walk it with
    Hierholzer's algorithm.
    '''
    path, _ = solve(graph, start, end, method="exact", matching=matching, max_dp_k=max_dp_k,
                    max_orient_k=max_orient_k)
    return path


def solve_cpp_bounded(graph: Graph, start: int, end: int, max_depth: int = DEFAULT_MAX_DEPTH,
                      stop_event: Optional[threading.Event] = None) -> Path:
    path, _ = solve(graph, start, end, method="bounded", max_depth=max_depth, stop_event=stop_event)
    return path


def solve_cpp_random(graph: Graph, start: int, end: int, total_iterations: int = DEFAULT_ITERATIONS,
                     worker_count: int = DEFAULT_WORKERS, on_progress: Optional[ProgressCallback] = None,
                     seed: Optional[int] = None, max_steps: Optional[int] = None,
                     stop_event: Optional[threading.Event] = None, show_progress: bool = False) -> Path:
    '''
    Best of total_iterations random covering walks. A weight far above
    lower_bound() means more iterations are needed.
    '''
    path, _ = solve(graph, start, end, method="random", iterations=total_iterations, workers=worker_count,
                    on_progress=on_progress, seed=seed, max_steps=max_steps, stop_event=stop_event,
                    show_progress=show_progress)
    return path


# ============================================================
# Orchestration
# ============================================================
def solve(graph: Graph, start: int, end: int, method: str = "exact", *,
          matching: str = "auto", max_dp_k: int = DEFAULT_MAX_DP_K,
          max_orient_k: int = DEFAULT_MAX_ORIENT_K,
          max_depth: int = DEFAULT_MAX_DEPTH,
          iterations: int = DEFAULT_ITERATIONS, workers: int = DEFAULT_WORKERS,
          seed: Optional[int] = None, max_steps: Optional[int] = None,
          on_progress: Optional[ProgressCallback] = None, show_progress: bool = False,
          stop_event: Optional[threading.Event] = None) -> Tuple[Path, Dict]:
    '''
    Solve with the chosen method. Returns the path and a meta dict
    (mode, counts, added length, lower bound, timings).
    '''
    if method not in METHODS:
        raise ValueError(f"unknown method {method!r}, expected one of {METHODS}")
    timings: Dict[str, float] = {}
    meta: Dict = {"method": method, "start": start, "end": end}

    if method == "shortest":
        t0 = time.time()
        path = shortest_path(graph, start, end)
        timings["dijkstra_sec"] = round(time.time() - t0, 3)
        if path is None:
            raise NotConnected(start, end)
        meta.update(mode="shortest_path", weight=path.weight, path_edges=len(path), timings_sec=timings)
        return path, meta

    t0 = time.time()
    vertices, edges = working_edges(graph, start, end)
    timings["reachability_sec"] = round(time.time() - t0, 3)
    meta.update(vertices=len(vertices), edges=len(edges))
    log.info(f"Working sub-graph: {len(vertices)} vertices, {len(edges)} edges")

    if method == "exact":
        t1 = time.time()
        balancing = synthesize(edges, start, end, matching=matching, max_dp_k=max_dp_k,
                               max_orient_k=max_orient_k)
        timings["balancing_sec"] = round(time.time() - t1, 3)
        t2 = time.time()
        path = extract_trail(start, end, list(edges) + balancing.shadow_edges, balancing.orientation)
        timings["hierholzer_sec"] = round(time.time() - t2, 3)
        meta.update(mode=f"exact_{balancing.mode}", pairs=len(balancing.pairs), flips=balancing.flips,
                    shadow_edges=len(balancing.shadow_edges),
                    added_length=round(balancing.added_length, 3))
    elif method == "bounded":
        t1 = time.time()
        solver = BoundedSolver(start, end, edges, stop_event=stop_event)
        solutions = solver.solve_iterative(max_depth)
        timings["search_sec"] = round(time.time() - t1, 3)
        path = solutions[0]
        meta.update(mode="bounded", solutions=len(solutions), cancelled=solver.cancelled)
    else:
        t1 = time.time()
        solver = RandomizedSolver(start, end, edges, max_steps=max_steps, seed=seed, stop_event=stop_event)
        candidates = solver.solve(iterations, workers, on_progress=on_progress, show_progress=show_progress)
        timings["search_sec"] = round(time.time() - t1, 3)
        path = candidates[0]
        meta.update(mode="random", candidates=len(candidates), discarded=solver.discarded,
                    workers=workers, iterations=iterations)

    bound = lower_bound(edges)
    meta.update(
        weight=path.weight,
        path_edges=len(path),
        lower_bound=round(bound, 3),
        ratio_to_lower_bound=round(path.weight / bound, 3) if bound > 0 else None,
        timings_sec=timings,
    )
    return path, meta
