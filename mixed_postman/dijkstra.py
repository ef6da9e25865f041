'''
Dijkstra over mixed edges, with path reconstruction.
'''
import heapq
from itertools import count
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .graph import Edge, Graph, Path, travel_options

Options = Dict[int, List[Tuple[Edge, int]]]
Parents = Dict[int, Optional[Tuple[int, Edge]]]


def dijkstra(options: Options, source: int, target: Optional[int] = None) -> Tuple[Parents, Dict[int, float]]:
    '''
    Dijkstra from source on a move table (see graph.travel_options).
    Returns parent map (vertex -> (previous vertex, edge)) and distance map.
    Stops early once target is settled. Ties keep the first relaxation:
    the heap is ordered by (distance, discovery order) and a distance is
    only replaced by a strictly smaller one.
    '''
    dist, parent = {source: 0.0}, {source: None}
    seq = count(1)
    pq, visited = [(0.0, 0, source)], set()
    while pq:
        d, _, u = heapq.heappop(pq)
        if u in visited: continue
        visited.add(u)
        if u == target:
            break
        for e, v in options.get(u, ()):
            nd = d + e.weight
            if v not in dist or nd < dist[v]:
                dist[v], parent[v] = nd, (u, e)
                heapq.heappush(pq, (nd, next(seq), v))
    return parent, dist


def path_edges(parent: Parents, source: int, target: int) -> Optional[List[Edge]]:
    '''
    Reconstruct the edges leading from source to target using parent map.
    If target was never reached, return None.
    '''
    if target not in parent: return None
    edges, cur = [], target
    while cur != source:
        step = parent[cur]
        if step is None:
            return None
        cur, e = step
        edges.append(e)
    edges.reverse()
    return edges


def shortest_path(source: Union[Graph, Iterable[Edge]], start: int, end: int,
                  reverse: bool = False) -> Optional[Path]:
    '''
    Minimum-weight path from start to end respecting edge directions,
    or None when no such path exists.

    With reverse=True the direction test is inverted: the path walks
    edges against their direction, so ``path.reversed()`` is the
    shortest forward path end -> start.
    '''
    edges = source.edges if isinstance(source, Graph) else tuple(source)
    options = travel_options(edges, reverse=reverse)
    parent, _ = dijkstra(options, start, target=end)
    found = path_edges(parent, start, end)
    if found is None:
        return None
    return Path(start, tuple(found))
