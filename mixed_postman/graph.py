'''
Graph snapshot: vertices, mixed edges and walked paths.

A snapshot is built once (by hand, with ``add_vertex``/``add_edge``, or
from a JSON document) and then handed to the solvers, which only read it.
'''
import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import GraphError


# ============================================================
# Records
# ============================================================
class Direction(str, Enum):
    ''' Travel permission of an edge.

    ANY  : both ways
    FROM : v1 -> v2 only
    TO   : v2 -> v1 only
    '''
    ANY = "any"
    FROM = "from"
    TO = "to"

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise GraphError(f"unknown edge direction {value!r}") from None


@dataclass(frozen=True)
class Vertex:
    id: int
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Edge:
    ''' Edge between vertex ids v1 and v2.

    A shadow edge is a synthetic duplicate created while balancing;
    ``shadow_id`` then holds the id of the edge it mirrors.
    '''
    id: int
    v1: int
    v2: int
    direction: Direction = Direction.ANY
    weight: float = 1.0
    shadow_id: Optional[int] = None

    @property
    def is_directed(self) -> bool:
        return self.direction is not Direction.ANY

    @property
    def is_shadow(self) -> bool:
        return self.shadow_id is not None

    @property
    def original_id(self) -> int:
        return self.id if self.shadow_id is None else self.shadow_id

    def other(self, vertex_id: int) -> int:
        '''Endpoint opposite to vertex_id.'''
        if vertex_id == self.v1:
            return self.v2
        if vertex_id == self.v2:
            return self.v1
        raise ValueError(f"vertex {vertex_id} is not an endpoint of edge {self.id}")


def can_travel(edge: Edge, vertex_id: int, reverse: bool = False) -> bool:
    '''
    True when the edge may be left from vertex_id.
    With reverse=True the permission is inverted (FROM allows v2 -> v1).
    '''
    direction = edge.direction
    if direction is Direction.ANY:
        return vertex_id == edge.v1 or vertex_id == edge.v2
    if direction is Direction.FROM:
        return vertex_id == (edge.v2 if reverse else edge.v1)
    if direction is Direction.TO:
        return vertex_id == (edge.v1 if reverse else edge.v2)
    raise GraphError(f"unknown edge direction {direction!r}")


def euclidean(a: Vertex, b: Vertex) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def incidence(edges: Iterable[Edge]) -> Dict[int, List[Edge]]:
    '''
    Incident edge lists keyed by vertex id, in edge order.
    A self loop is listed once.
    '''
    adj: Dict[int, List[Edge]] = {}
    for e in edges:
        adj.setdefault(e.v1, []).append(e)
        if e.v2 != e.v1:
            adj.setdefault(e.v2, []).append(e)
    return adj


def travel_options(edges: Iterable[Edge], reverse: bool = False) -> Dict[int, List[Tuple[Edge, int]]]:
    '''
    For every vertex, the (edge, next_vertex) moves allowed from it.
    '''
    options: Dict[int, List[Tuple[Edge, int]]] = {}
    for vid, incident in incidence(edges).items():
        options[vid] = [(e, e.other(vid)) for e in incident if can_travel(e, vid, reverse)]
    return options


# ============================================================
# Graph
# ============================================================
class Graph:
    ''' Weighted mixed multigraph snapshot.

    Attributes
    ----------
    vertices : tuple of Vertex, in insertion order
    edges : tuple of Edge, in insertion order
    '''

    def __init__(self, vertices: Iterable[Vertex] = (), edges: Iterable[Edge] = ()):
        self._vertices: Dict[int, Vertex] = {}
        self._edges: Dict[int, Edge] = {}
        self._incident: Dict[int, List[Edge]] = {}
        for v in vertices:
            self._insert_vertex(v)
        for e in edges:
            self._insert_edge(e)

    def __repr__(self):
        return f"Graph(vertices={len(self._vertices)}, edges={len(self._edges)})"

    # ---- building -------------------------------------------------
    def add_vertex(self, x: float = 0.0, y: float = 0.0, vertex_id: Optional[int] = None) -> Vertex:
        if vertex_id is None:
            vertex_id = max(self._vertices, default=0) + 1
        vertex = Vertex(int(vertex_id), float(x), float(y))
        self._insert_vertex(vertex)
        return vertex

    def add_edge(self, v1: int, v2: int, direction=Direction.ANY,
                 weight: Optional[float] = None, edge_id: Optional[int] = None) -> Edge:
        '''
        Adds an edge between two existing vertices.
        Without an explicit weight, the Euclidean distance between the
        endpoints is used; it is fixed from then on.
        '''
        for vid in (v1, v2):
            if vid not in self._vertices:
                raise GraphError(f"edge endpoint {vid} is not a vertex of the graph")
        if weight is None:
            weight = euclidean(self._vertices[v1], self._vertices[v2])
        if edge_id is None:
            edge_id = max(self._edges, default=0) + 1
        edge = Edge(int(edge_id), int(v1), int(v2), Direction.parse(direction), float(weight))
        self._insert_edge(edge)
        return edge

    def _insert_vertex(self, vertex: Vertex):
        if vertex.id in self._vertices:
            raise GraphError(f"duplicate vertex id {vertex.id}")
        self._vertices[vertex.id] = vertex
        self._incident[vertex.id] = []

    def _insert_edge(self, edge: Edge):
        if edge.id in self._edges:
            raise GraphError(f"duplicate edge id {edge.id}")
        for vid in (edge.v1, edge.v2):
            if vid not in self._vertices:
                raise GraphError(f"edge {edge.id} references unknown vertex {vid}")
        if not math.isfinite(edge.weight) or edge.weight < 0:
            raise GraphError(f"edge {edge.id} has invalid weight {edge.weight}")
        if not isinstance(edge.direction, Direction):
            edge = Edge(edge.id, edge.v1, edge.v2, Direction.parse(edge.direction),
                        edge.weight, edge.shadow_id)
        self._edges[edge.id] = edge
        self._incident[edge.v1].append(edge)
        if edge.v2 != edge.v1:
            self._incident[edge.v2].append(edge)

    # ---- access ---------------------------------------------------
    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        return tuple(self._vertices.values())

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return tuple(self._edges.values())

    def vertex(self, vertex_id: int) -> Vertex:
        try:
            return self._vertices[vertex_id]
        except KeyError:
            raise GraphError(f"unknown vertex {vertex_id}") from None

    def edge(self, edge_id: int) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise GraphError(f"unknown edge {edge_id}") from None

    def has_vertex(self, vertex_id: int) -> bool:
        return vertex_id in self._vertices

    def incident(self, vertex_id: int) -> Tuple[Edge, ...]:
        self.vertex(vertex_id)
        return tuple(self._incident[vertex_id])

    # ---- (de)serialization ----------------------------------------
    @classmethod
    def from_dict(cls, data: Dict) -> "Graph":
        '''
        Build a graph from {"vertices": [...], "edges": [...]}.
        Edge ids default to the 1-based position, directions to "any"
        and weights to the Euclidean length.
        '''
        if not isinstance(data, dict):
            raise GraphError("graph document must be an object")
        graph = cls()
        try:
            for raw in data.get("vertices", []):
                graph.add_vertex(raw.get("x", 0.0), raw.get("y", 0.0), vertex_id=raw["id"])
            for pos, raw in enumerate(data.get("edges", []), start=1):
                graph.add_edge(
                    raw["v1"], raw["v2"],
                    direction=raw.get("direction", Direction.ANY),
                    weight=raw.get("weight"),
                    edge_id=raw.get("id", pos),
                )
        except (KeyError, TypeError) as exc:
            raise GraphError(f"malformed graph document: {exc}") from exc
        return graph

    def to_dict(self) -> Dict:
        return {
            "vertices": [{"id": v.id, "x": v.x, "y": v.y} for v in self.vertices],
            "edges": [
                {"id": e.id, "v1": e.v1, "v2": e.v2,
                 "direction": e.direction.value, "weight": e.weight}
                for e in self.edges
            ],
        }

    @classmethod
    def load(cls, path: str) -> "Graph":
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise GraphError(f"{path}: invalid JSON ({exc})") from exc
        return cls.from_dict(data)

    def dump(self, path: str):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)


# ============================================================
# Path
# ============================================================
@dataclass(frozen=True)
class Path:
    ''' Edges walked one after the other, starting at ``start``. '''
    start: int
    edges: Tuple[Edge, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.edges, tuple):
            object.__setattr__(self, "edges", tuple(self.edges))

    def __len__(self) -> int:
        return len(self.edges)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self.edges)

    @property
    def weight(self) -> float:
        return sum(e.weight for e in self.edges)

    def traversals(self) -> List[Tuple[Edge, int, int]]:
        '''
        (edge, from_vertex, to_vertex) for each step.
        Raises ValueError if consecutive edges do not touch.
        '''
        out, cur = [], self.start
        for e in self.edges:
            nxt = e.other(cur)
            out.append((e, cur, nxt))
            cur = nxt
        return out

    @property
    def vertices(self) -> List[int]:
        return [self.start] + [head for _, _, head in self.traversals()]

    @property
    def end(self) -> int:
        return self.vertices[-1]

    @property
    def edge_ids(self) -> List[int]:
        '''Ids of the walked edges; a shadow edge reports its original.'''
        return [e.original_id for e in self.edges]

    @property
    def shadow_count(self) -> int:
        return sum(1 for e in self.edges if e.is_shadow)

    def reversed(self) -> "Path":
        return Path(self.end, tuple(reversed(self.edges)))
