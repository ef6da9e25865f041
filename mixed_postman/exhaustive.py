'''
Bounded exhaustive search: iterative deepening DFS with branch-and-bound.
Meant for small graphs, where it gives provably minimal covering walks.
'''
import logging
import math
import threading
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import SolveCancelled, SolveExhausted
from .graph import Edge, Path, travel_options

log = logging.getLogger(__name__)

INF = float('inf')
DEFAULT_MAX_DEPTH = 256  # deepest walk (in edges) tried by iterative deepening


class BoundedSolver:
    ''' Covering-walk search from start to end over a fixed edge set.

    Each instance owns its best-weight bound and its solutions, so
    several solvers may run side by side.

    Attributes
    ----------
    best_weight : float
        Weight of the best complete walk found so far (inf if none).
    solutions : list of Path
        Every complete walk accepted, in discovery order (each one
        strictly lighter than the previous).
    cancelled : bool
        True once the stop event interrupted a search.
    '''

    def __init__(self, start: int, end: int, edges: Sequence[Edge],
                 stop_event: Optional[threading.Event] = None):
        self.start, self.end = start, end
        self.edges = list(edges)
        self.stop_event = stop_event
        # lighter edges first to tighten the bound early
        self._options: Dict[int, List[Tuple[Edge, int]]] = {
            v: sorted(moves, key=lambda m: (m[0].weight, m[0].id))
            for v, moves in travel_options(self.edges).items()
        }
        self._total_weight = sum(e.weight for e in self.edges)
        self._min_weight = min((e.weight for e in self.edges if e.weight > 0), default=0.0)
        self._has_free_edges = any(e.weight == 0 for e in self.edges)
        self.best_weight = INF
        self.solutions: List[Path] = []
        self.cancelled = False

    def _stopped(self) -> bool:
        if self.stop_event is not None and self.stop_event.is_set():
            self.cancelled = True
        return self.cancelled

    def _record(self, edges: List[Edge], weight: float):
        self.solutions.append(Path(self.start, tuple(edges)))
        self.best_weight = weight
        log.debug(f"Covering walk found: {len(edges)} edges, weight {round(weight, 3)}")

    def search(self, max_depth: int):
        '''
        One depth-limited DFS pass. A branch is cut when it cannot fit
        the still uncovered edges within max_depth, or when its weight plus
        the weight of the uncovered edges reaches the best weight found.
        '''
        counts: Dict[int, int] = defaultdict(int)
        uncovered, uncovered_weight = len(self.edges), self._total_weight
        path: List[Edge] = []
        weights = [0.0]
        if uncovered == 0:
            if self.start == self.end and self.best_weight > 0.0:
                self._record([], 0.0)
            return

        stack = [iter(self._options.get(self.start, ()))]
        while stack:
            if self._stopped():
                return
            move = next(stack[-1], None)
            if move is None:
                stack.pop()
                if path:
                    e = path.pop()
                    weights.pop()
                    counts[e.id] -= 1
                    if counts[e.id] == 0:
                        uncovered += 1
                        uncovered_weight += e.weight
                continue

            e, nxt = move
            fresh = counts[e.id] == 0
            left = uncovered - 1 if fresh else uncovered
            if len(path) + 1 + left > max_depth:
                continue
            new_weight = weights[-1] + e.weight
            left_weight = uncovered_weight - e.weight if fresh else uncovered_weight
            if new_weight + left_weight >= self.best_weight:
                continue
            if left == 0 and nxt == self.end:
                self._record(path + [e], new_weight)
                continue

            path.append(e)
            weights.append(new_weight)
            counts[e.id] += 1
            if fresh:
                uncovered -= 1
                uncovered_weight -= e.weight
            stack.append(iter(self._options.get(nxt, ())))

    def solve(self, max_depth: int) -> List[Path]:
        '''Single pass at max_depth; solutions sorted by weight (may be empty).'''
        self.search(max_depth)
        return sorted(self.solutions, key=lambda p: p.weight)

    def proof_depth(self, max_depth_limit: int) -> int:
        '''
        Deepest walk that could still beat best_weight: a covering walk of
        L edges weighs at least total + (L - m) * min_weight, min_weight
        being the lightest positive weight. Repeats of zero-weight edges
        are free, so with such edges the horizon is not a proof.
        '''
        if self.best_weight == INF:
            return max_depth_limit
        if self._min_weight <= 0:
            return len(self.edges)
        slack = (self.best_weight - self._total_weight) / self._min_weight
        horizon = min(max_depth_limit, len(self.edges) + int(math.floor(slack + 1e-9)))
        if self._has_free_edges:
            log.info(f"Zero-weight edges present: minimality checked up to {horizon} edges only")
        return horizon

    def solve_iterative(self, max_depth_limit: int = DEFAULT_MAX_DEPTH) -> List[Path]:
        '''
        Iterative deepening over depth m..max_depth_limit (no covering walk
        is shorter than its m edges), stopping at the first depth with a
        solution, then one last pass at proof_depth().
        Returns all solutions sorted by weight.
        Raises SolveExhausted when no walk fits the limit, SolveCancelled
        when stopped before any solution.
        '''
        depth = 0
        if not self.edges:
            self.search(0)
        else:
            for depth in range(max(1, len(self.edges)), max_depth_limit + 1):
                self.search(depth)
                if self.solutions or self.cancelled:
                    break
            log.debug(f"Iterative deepening stopped at depth {depth}")
            if self.solutions and not self.cancelled:
                horizon = self.proof_depth(max_depth_limit)
                if horizon > depth:
                    log.debug(f"Extending search to depth {horizon} to prove minimality")
                    self.search(horizon)

        if not self.solutions:
            if self.cancelled:
                raise SolveCancelled("bounded search stopped before finding a covering walk")
            raise SolveExhausted(f"no covering walk within {max_depth_limit} edges")
        return sorted(self.solutions, key=lambda p: p.weight)


def solve_bounded(start: int, end: int, edges: Sequence[Edge], max_depth: int,
                  stop_event: Optional[threading.Event] = None) -> List[Path]:
    '''
    Covering walks found by iterative deepening up to max_depth, lightest
    first.
    '''
    return BoundedSolver(start, end, edges, stop_event).solve_iterative(max_depth)
