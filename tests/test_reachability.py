import pytest

from mixed_postman import GraphError, NotConnected, UnreachableVertex, reachable
from mixed_postman.reachability import check_single_pass, flood_fill


def test_flood_fill_follows_directions(make_graph) -> None:
    graph = make_graph([(1, 2, "from"), (2, 3, "from")])
    assert flood_fill(graph, 1) == {1, 2, 3}
    assert flood_fill(graph, 3) == {3}
    assert flood_fill(graph, 3, reverse=True) == {1, 2, 3}


def test_to_edges_are_walked_from_their_second_vertex(make_graph) -> None:
    graph = make_graph([(1, 2, "to")])
    assert flood_fill(graph, 2) == {1, 2}
    assert flood_fill(graph, 1) == {1}


def test_flood_fill_accepts_edge_lists(square) -> None:
    assert flood_fill(square.edges[:2], 1) == {1, 2, 3}


def test_reachable_returns_incident_edges(make_graph) -> None:
    # 4 -> 1 points into the reachable part from a vertex that is not
    graph = make_graph([(1, 2), (2, 3), (4, 1, "from"), (5, 6)])
    vertices, edges = reachable(graph, 1, 3)
    assert vertices == frozenset({1, 2, 3})
    assert [e.id for e in edges] == [1, 2, 3]


def test_disconnected_start_and_end(make_graph) -> None:
    graph = make_graph([(1, 2), (3, 4)])
    with pytest.raises(NotConnected) as excinfo:
        reachable(graph, 1, 4)
    assert (excinfo.value.start, excinfo.value.end) == (1, 4)


def test_one_way_edge_blocks_the_return(make_graph) -> None:
    graph = make_graph([(1, 2, "from")])
    reachable(graph, 1, 2)
    with pytest.raises(NotConnected):
        reachable(graph, 2, 1)


def test_reachable_is_idempotent(kite) -> None:
    assert reachable(kite, 1, 5) == reachable(kite, 1, 5)


def test_unknown_vertex(square) -> None:
    with pytest.raises(GraphError, match="unknown vertex 9"):
        reachable(square, 1, 9)


def test_single_pass_accepts_a_chain_of_parts(make_graph) -> None:
    # {1, 2} -> {3, 4} -> {5}
    graph = make_graph([(1, 2), (2, 3, "from"), (3, 4), (5, 4, "to")])
    check_single_pass(graph.edges)


def test_single_pass_rejects_a_fork(make_graph) -> None:
    graph = make_graph([(1, 2, "from"), (2, 3, "from"), (2, 4, "from"), (3, 5, "from"), (4, 5, "from")])
    with pytest.raises(UnreachableVertex, match="edges 2 and 3") as excinfo:
        check_single_pass(graph.edges)
    assert excinfo.value.vertex_id == 2


def test_single_pass_rejects_parallel_bridges(make_graph) -> None:
    graph = make_graph([(1, 2), (2, 3, "from"), (2, 3, "from")])
    with pytest.raises(UnreachableVertex):
        check_single_pass(graph.edges)
