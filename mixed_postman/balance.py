'''
Degree analysis for open (start != end) and closed (start == end) trails.

An Eulerian trail from start to end exists in a connected directed
multigraph when every vertex has in == out, except the start of an open
trail (out == in + 1) and its end (in == out + 1). Those offsets are the
"reserved" part of the imbalance: the trail's own first departure and
last arrival.
'''
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .exceptions import UnreachableVertex
from .graph import Edge, can_travel

Orientation = Mapping[int, int]  # edge id -> tail vertex


@dataclass
class Degree:
    in_degree: int = 0
    out_degree: int = 0


@dataclass
class Balance:
    ''' Result of analyze().

    imbalance : out - in - reserved, per vertex
    surplus : vertices with imbalance > 0, each repeated imbalance times
    deficit : vertices with imbalance < 0, each repeated -imbalance times
    '''
    degrees: Dict[int, Degree]
    imbalance: Dict[int, int]
    surplus: List[int] = field(default_factory=list)
    deficit: List[int] = field(default_factory=list)

    @property
    def balanced(self) -> bool:
        return not self.surplus and not self.deficit


def leaves(edge: Edge, vertex_id: int, orientation: Optional[Orientation] = None) -> bool:
    tail = orientation.get(edge.id) if orientation else None
    if tail is not None:
        return vertex_id == tail
    return can_travel(edge, vertex_id)


def enters(edge: Edge, vertex_id: int, orientation: Optional[Orientation] = None) -> bool:
    tail = orientation.get(edge.id) if orientation else None
    if tail is not None:
        return vertex_id == edge.other(tail)
    return can_travel(edge, vertex_id, reverse=True)


def degree_table(edges: Iterable[Edge], orientation: Optional[Orientation] = None) -> Dict[int, Degree]:
    '''
    In/out degree per vertex. An undirected edge (without orientation)
    counts as both leaving and entering at each of its endpoints.
    '''
    table: Dict[int, Degree] = defaultdict(Degree)
    for e in edges:
        for vid in {e.v1, e.v2}:
            d = table[vid]
            if leaves(e, vid, orientation):
                d.out_degree += 1
            if enters(e, vid, orientation):
                d.in_degree += 1
    return dict(table)


def reserved(vertex_id: int, start: int, end: int) -> int:
    if start == end:
        return 0
    if vertex_id == start:
        return 1
    if vertex_id == end:
        return -1
    return 0


def check_degrees(table: Mapping[int, Degree], start: int, end: int):
    '''
    Raise UnreachableVertex for a vertex no walk can enter or leave.
    The start of an open trail may have no way in, but then it is left
    only once; likewise its end may have no way out if entered only once.
    '''
    is_open = start != end
    for vid in sorted(table):
        d = table[vid]
        if d.in_degree == 0 and not (is_open and vid == start):
            raise UnreachableVertex(vid, "no edge can enter it")
        if d.out_degree == 0 and not (is_open and vid == end):
            raise UnreachableVertex(vid, "no edge can leave it")
        if is_open and vid == start and d.in_degree == 0 and d.out_degree > 1:
            raise UnreachableVertex(vid, f"the walk cannot come back to leave it by all {d.out_degree} edges")
        if is_open and vid == end and d.out_degree == 0 and d.in_degree > 1:
            raise UnreachableVertex(vid, f"the walk cannot leave it to arrive by all {d.in_degree} edges")


def analyze(edges: Iterable[Edge], start: int, end: int,
            orientation: Optional[Orientation] = None) -> Balance:
    '''
    Compute per-vertex imbalance against the open/closed trail rule and
    split it into surplus and deficit multisets (sorted by vertex id).
    '''
    edges = list(edges)
    table = degree_table(edges, orientation)
    imbalance: Dict[int, int] = {}
    vertex_ids = set(table)
    if edges:
        vertex_ids.update((start, end))
    for vid in sorted(vertex_ids):
        d = table.get(vid, Degree())
        imbalance[vid] = d.out_degree - d.in_degree - reserved(vid, start, end)
    surplus, deficit = [], []
    for vid, b in imbalance.items():
        if b > 0:
            surplus.extend([vid] * b)
        elif b < 0:
            deficit.extend([vid] * -b)
    return Balance(table, imbalance, surplus, deficit)


def odd_vertices(edges: Iterable[Edge], start: int, end: int) -> List[int]:
    '''
    Vertices whose undirected degree has the wrong parity for a trail
    from start to end: odd-degree vertices, with start and end toggled
    for an open trail. A self loop adds 2 to the degree.
    '''
    degree: Dict[int, int] = defaultdict(int)
    for e in edges:
        degree[e.v1] += 1
        degree[e.v2] += 1
    odd = {v for v, d in degree.items() if d % 2 == 1}
    if start != end and degree:
        odd ^= {start, end}
    return sorted(odd)
