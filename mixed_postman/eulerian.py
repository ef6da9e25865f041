'''
Eulerian trail extraction (Hierholzer) over a balanced mixed multiset.
'''
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .balance import Orientation, analyze, leaves, odd_vertices
from .exceptions import NoEulerianTrail
from .graph import Edge, Path

log = logging.getLogger(__name__)


def check_balanced(edges: Sequence[Edge], start: int, end: int, orientation: Optional[Orientation] = None):
    '''
    Raise NoEulerianTrail if the multiset breaks the trail degree rule.
    Only fully oriented or fully undirected multisets can be checked up
    front; a mixed unoriented multiset is checked by the walk itself.
    '''
    orientation = orientation or {}
    oriented = [e.is_directed or e.id in orientation for e in edges]
    if all(oriented):
        balance = analyze(edges, start, end, orientation)
        if not balance.balanced:
            bad = {v: b for v, b in balance.imbalance.items() if b}
            raise NoEulerianTrail(f"edge multiset is not balanced: {bad}")
    elif not any(oriented):
        odds = odd_vertices(edges, start, end)
        if odds:
            raise NoEulerianTrail(f"vertices with wrong degree parity: {odds}")


def extract_trail(start: int, end: int, edges: Sequence[Edge],
                  orientation: Optional[Orientation] = None) -> Path:
    '''
    Find a trail from start to end using every edge of the multiset exactly
    once, with Hierholzer's algorithm.

    The stack holds (vertex, edge used to reach it). While the top vertex
    has an unused edge it may leave by, the edge is consumed and its far
    end pushed; otherwise the top is popped and its arriving edge recorded.
    Recorded edges, reversed, form the trail.
    '''
    edges = list(edges)
    if not edges:
        if start != end:
            raise NoEulerianTrail(f"no edges to walk from {start} to {end}")
        return Path(start, ())
    check_balanced(edges, start, end, orientation)

    adj: Dict[int, List[Tuple[int, Edge]]] = {}
    for idx, e in enumerate(edges):
        adj.setdefault(e.v1, []).append((idx, e))
        if e.v2 != e.v1:
            adj.setdefault(e.v2, []).append((idx, e))
    used = [False] * len(edges)
    pointer: Dict[int, int] = {}

    stack: List[Tuple[int, Optional[Edge]]] = [(start, None)]
    trail: List[Edge] = []
    while stack:
        u, arrived = stack[-1]
        moves = adj.get(u, [])
        i = pointer.get(u, 0)
        # skip consumed edges and edges that cannot be left from u
        while i < len(moves) and (used[moves[i][0]] or not leaves(moves[i][1], u, orientation)):
            i += 1
        pointer[u] = i
        if i < len(moves):
            idx, e = moves[i]
            used[idx] = True
            stack.append((e.other(u), e))
        else:
            stack.pop()
            if arrived is not None:
                trail.append(arrived)
    trail.reverse()

    if len(trail) != len(edges):
        raise NoEulerianTrail(f"trail used {len(trail)} of {len(edges)} edges; multiset is not connected")
    path = Path(start, tuple(trail))
    if path.end != end:
        raise NoEulerianTrail(f"trail ends at {path.end} instead of {end}")
    log.debug(f"Eulerian trail of {len(trail)} edges from {start} to {end}")
    return path
