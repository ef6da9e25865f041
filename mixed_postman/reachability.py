'''
Flood fill restricted to travelable edges.
'''
import logging
from collections import defaultdict, deque
from typing import FrozenSet, Iterable, Set, Tuple, Union

import networkx as nx

from .exceptions import GraphError, NotConnected, UnreachableVertex
from .graph import Edge, Graph, incidence, can_travel, travel_options

log = logging.getLogger(__name__)


def flood_fill(source: Union[Graph, Iterable[Edge]], start: int, reverse: bool = False) -> Set[int]:
    '''
    Breadth-first search from start following only edges that can be
    left from the current vertex (or entered into it when reverse=True).
    Returns the set of visited vertex ids (start included).
    '''
    edges = source.edges if isinstance(source, Graph) else source
    adj = incidence(edges)
    visited, queue = {start}, deque([start])
    while queue:
        u = queue.popleft()
        for e in adj.get(u, ()):
            if not can_travel(e, u, reverse):
                continue
            v = e.other(u)
            if v not in visited:
                visited.add(v)
                queue.append(v)
    return visited


def reachable(graph: Graph, start: int, end: int) -> Tuple[FrozenSet[int], Tuple[Edge, ...]]:
    '''
    Sub-graph reachable from start: the visited vertices and every edge
    incident to one of them (in graph order).
    Raises NotConnected if end is not visited.
    '''
    for vid in (start, end):
        if not graph.has_vertex(vid):
            raise GraphError(f"unknown vertex {vid}")
    visited = flood_fill(graph, start)
    if end not in visited:
        raise NotConnected(start, end)
    edges = tuple(e for e in graph.edges if e.v1 in visited or e.v2 in visited)
    log.debug(f"Reachable from {start}: {len(visited)} vertices, {len(edges)} edges")
    return frozenset(visited), edges


def check_single_pass(edges: Iterable[Edge]):
    '''
    A walk never returns to a strongly connected part it has left, so
    each part may have at most one edge leading out of it. Raises
    UnreachableVertex for the tail of the first extra leaving edge.
    '''
    edges = list(edges)
    G = nx.DiGraph()
    for vid, moves in travel_options(edges).items():
        G.add_node(vid)
        G.add_edges_from((vid, nxt) for _, nxt in moves)
    C = nx.condensation(G)
    part = C.graph["mapping"]

    leaving = defaultdict(list)
    for e in edges:
        tail = e.v1 if can_travel(e, e.v1) else e.v2
        head = e.other(tail)
        if part[tail] != part[head]:
            leaving[part[tail]].append((e, tail))
    for comp in nx.topological_sort(C):
        if len(leaving[comp]) > 1:
            (first, _), (extra, tail) = leaving[comp][:2]
            raise UnreachableVertex(
                tail, f"edges {first.id} and {extra.id} both leave its strongly connected part, "
                      f"a walk can take only one of them")
