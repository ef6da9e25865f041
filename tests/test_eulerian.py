import random

import pytest

from mixed_postman import Direction, Edge, NoEulerianTrail
from mixed_postman.eulerian import check_balanced, extract_trail


def _walk_multiset(seed, directed):
    '''Edges of a random walk on 6 vertices: always balanced for that walk's ends.'''
    rng = random.Random(seed)
    direction = Direction.FROM if directed else Direction.ANY
    cur, edges = 1, []
    for eid in range(1, 16):
        nxt = rng.randint(1, 6)
        edges.append(Edge(eid, cur, nxt, direction, float(rng.randint(1, 5))))
        cur = nxt
    rng.shuffle(edges)
    return edges, cur


def _assert_trail(path, start, end, edges):
    assert path.vertices[0] == start
    assert path.end == end
    assert sorted(e.id for e in path.edges) == sorted(e.id for e in edges)
    for e, tail, head in path.traversals():
        if e.direction is Direction.FROM:
            assert (tail, head) == (e.v1, e.v2)
        elif e.direction is Direction.TO:
            assert (tail, head) == (e.v2, e.v1)


@pytest.mark.parametrize("directed", [False, True])
@pytest.mark.parametrize("seed", range(6))
def test_random_balanced_multisets(seed, directed) -> None:
    edges, end = _walk_multiset(seed, directed)
    path = extract_trail(1, end, edges)
    _assert_trail(path, 1, end, edges)


def test_closed_square(square) -> None:
    path = extract_trail(1, 1, square.edges)
    assert len(path) == 4
    assert path.weight == 4
    assert path.vertices[0] == path.end == 1


def test_orientation_is_followed(square) -> None:
    # walk the square counter-clockwise: 1 -> 4 -> 3 -> 2 -> 1
    orientation = {1: 2, 2: 3, 3: 4, 4: 1}
    path = extract_trail(1, 1, square.edges, orientation)
    assert path.vertices == [1, 4, 3, 2, 1]


def test_to_edges_are_walked_backwards(make_graph) -> None:
    graph = make_graph([(2, 1, "to"), (3, 2, "to"), (1, 3, "to")])
    path = extract_trail(1, 1, graph.edges)
    assert path.vertices == [1, 2, 3, 1]


def test_self_loop_is_used_once(make_graph) -> None:
    graph = make_graph([(1, 2), (2, 2), (2, 1)])
    path = extract_trail(1, 1, graph.edges)
    assert sorted(path.edge_ids) == [1, 2, 3]


def test_empty_multiset() -> None:
    assert len(extract_trail(3, 3, [])) == 0
    with pytest.raises(NoEulerianTrail):
        extract_trail(3, 4, [])


def test_unbalanced_multiset_is_rejected(directed_triangle, square_with_diagonal) -> None:
    with pytest.raises(NoEulerianTrail, match="not balanced"):
        extract_trail(1, 3, directed_triangle.edges)
    with pytest.raises(NoEulerianTrail, match="parity"):
        check_balanced(square_with_diagonal.edges, 1, 1)


def test_disconnected_multiset_is_rejected(make_graph) -> None:
    graph = make_graph([(1, 2), (2, 1), (3, 4), (4, 3)])
    with pytest.raises(NoEulerianTrail, match="not connected"):
        extract_trail(1, 1, graph.edges)


def test_mixed_multiset_dead_end(make_graph) -> None:
    # two one-way edges leave 1 and only one edge leads back
    graph = make_graph([(1, 2, "from"), (1, 2, "from"), (1, 2)])
    with pytest.raises(NoEulerianTrail, match="instead of 1"):
        extract_trail(1, 1, graph.edges)
