from typing import Callable, Sequence

import pytest

from mixed_postman import Graph


def build_graph(edges: Sequence[tuple], vertices: Sequence[int] = ()) -> Graph:
    """Graph from (v1, v2[, direction[, weight]]) tuples; edge ids are 1-based positions."""
    graph = Graph()
    ids = set(vertices)
    for item in edges:
        ids.update(item[:2])
    for vid in sorted(ids):
        graph.add_vertex(vertex_id=vid)
    for eid, item in enumerate(edges, start=1):
        v1, v2, *rest = item
        direction = rest[0] if rest else "any"
        weight = rest[1] if len(rest) > 1 else 1.0
        graph.add_edge(v1, v2, direction=direction, weight=weight, edge_id=eid)
    return graph


@pytest.fixture
def make_graph() -> Callable[..., Graph]:
    return build_graph


@pytest.fixture
def square() -> Graph:
    """A-B-C-D-A with A..D = 1..4, undirected, unit weights."""
    return build_graph([(1, 2), (2, 3), (3, 4), (4, 1)])


@pytest.fixture
def square_with_diagonal() -> Graph:
    """The square plus the undirected unit edge A-C (edge 5)."""
    return build_graph([(1, 2), (2, 3), (3, 4), (4, 1), (1, 3)])


@pytest.fixture
def directed_triangle() -> Graph:
    """1 -> 2 -> 3 -> 1, unit weights."""
    return build_graph([(1, 2, "from"), (2, 3, "from"), (3, 1, "from")])


@pytest.fixture
def mixed_triangle() -> Graph:
    """1 - 2 undirected, 2 -> 3 one-way, 1 - 3 undirected."""
    return build_graph([(1, 2), (2, 3, "from"), (1, 3)])


@pytest.fixture
def kite() -> Graph:
    """Undirected weighted graph with a pendant edge 3 - 5."""
    return build_graph([
        (1, 2, "any", 2.0),
        (2, 3, "any", 3.0),
        (3, 4, "any", 1.0),
        (4, 1, "any", 2.0),
        (2, 4, "any", 2.5),
        (3, 5, "any", 1.0),
    ])


@pytest.fixture
def directed_bowtie() -> Graph:
    """Strongly connected directed graph with unbalanced vertices 2 and 3."""
    return build_graph([
        (1, 2, "from", 1.0),
        (2, 3, "from", 2.0),
        (3, 1, "from", 1.0),
        (3, 4, "from", 1.0),
        (4, 2, "from", 3.0),
    ])


@pytest.fixture
def mixed_lollipop() -> Graph:
    """1 - 2 undirected (3) beside the one-way 2 -> 1 (1), and the stick 1 - 3 (4)."""
    return build_graph([(1, 2, "any", 3.0), (2, 1, "from", 1.0), (3, 1, "any", 4.0)])
