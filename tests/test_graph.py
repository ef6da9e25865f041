import json

import pytest

from mixed_postman import Direction, Edge, Graph, GraphError, Path, can_travel


def test_edge_weight_defaults_to_euclidean_distance() -> None:
    graph = Graph()
    a = graph.add_vertex(0, 0)
    b = graph.add_vertex(3, 4)
    edge = graph.add_edge(a.id, b.id)
    assert edge.weight == pytest.approx(5.0)
    assert edge.direction is Direction.ANY


def test_explicit_weight_is_kept() -> None:
    graph = Graph()
    graph.add_vertex(0, 0, vertex_id=1)
    graph.add_vertex(10, 0, vertex_id=2)
    assert graph.add_edge(1, 2, weight=1.5).weight == 1.5


def test_edge_is_listed_once_per_endpoint(square) -> None:
    edge = square.edge(1)
    assert edge in square.incident(1)
    assert edge in square.incident(2)
    assert edge not in square.incident(3)
    assert len(square.incident(1)) == 2


def test_self_loop_is_listed_once() -> None:
    graph = Graph()
    graph.add_vertex(vertex_id=1)
    graph.add_edge(1, 1, weight=1.0)
    assert len(graph.incident(1)) == 1


@pytest.mark.parametrize(
    "direction, vertex, reverse, expected",
    [
        ("any", 1, False, True),
        ("any", 2, False, True),
        ("any", 3, False, False),
        ("from", 1, False, True),
        ("from", 2, False, False),
        ("to", 1, False, False),
        ("to", 2, False, True),
        ("from", 2, True, True),
        ("from", 1, True, False),
        ("to", 1, True, True),
    ],
)
def test_can_travel(direction, vertex, reverse, expected) -> None:
    edge = Edge(1, 1, 2, Direction(direction), 1.0)
    assert can_travel(edge, vertex, reverse) is expected


def test_rejects_unknown_endpoint() -> None:
    graph = Graph()
    graph.add_vertex(vertex_id=1)
    with pytest.raises(GraphError, match="not a vertex"):
        graph.add_edge(1, 2)


def test_rejects_duplicate_ids() -> None:
    graph = Graph()
    graph.add_vertex(vertex_id=1)
    with pytest.raises(GraphError, match="duplicate vertex"):
        graph.add_vertex(vertex_id=1)
    graph.add_vertex(vertex_id=2)
    graph.add_edge(1, 2, edge_id=7)
    with pytest.raises(GraphError, match="duplicate edge"):
        graph.add_edge(2, 1, edge_id=7)


def test_rejects_negative_weight_and_bad_direction() -> None:
    graph = Graph()
    graph.add_vertex(vertex_id=1)
    graph.add_vertex(vertex_id=2)
    with pytest.raises(GraphError, match="invalid weight"):
        graph.add_edge(1, 2, weight=-1.0)
    with pytest.raises(GraphError, match="unknown edge direction"):
        graph.add_edge(1, 2, direction="sideways")


def test_graph_error_is_a_value_error() -> None:
    assert issubclass(GraphError, ValueError)


def test_from_dict_applies_defaults() -> None:
    graph = Graph.from_dict({
        "vertices": [{"id": 1, "x": 0, "y": 0}, {"id": 2, "x": 0, "y": 2}],
        "edges": [{"v1": 1, "v2": 2}, {"v1": 2, "v2": 1, "direction": "FROM", "weight": 4}],
    })
    first, second = graph.edges
    assert (first.id, first.weight, first.direction) == (1, 2.0, Direction.ANY)
    assert (second.id, second.weight, second.direction) == (2, 4.0, Direction.FROM)


def test_from_dict_reports_missing_fields() -> None:
    with pytest.raises(GraphError, match="malformed"):
        Graph.from_dict({"vertices": [{"x": 1}]})


def test_load_and_dump(tmp_path, kite) -> None:
    target = tmp_path / "kite.json"
    kite.dump(str(target))
    assert json.loads(target.read_text())["edges"][4]["weight"] == 2.5
    loaded = Graph.load(str(target))
    assert loaded.edges == kite.edges
    assert loaded.vertices == kite.vertices


def test_load_rejects_invalid_json(tmp_path) -> None:
    target = tmp_path / "broken.json"
    target.write_text("{not json")
    with pytest.raises(GraphError, match="invalid JSON"):
        Graph.load(str(target))


def test_path_walks_edges(square) -> None:
    path = Path(1, [square.edge(1), square.edge(2), square.edge(3)])
    assert path.vertices == [1, 2, 3, 4]
    assert path.end == 4
    assert path.weight == 3.0
    assert path.edge_ids == [1, 2, 3]
    assert path.reversed().vertices == [4, 3, 2, 1]


def test_path_reports_shadow_edges_by_original_id(square) -> None:
    shadow = Edge(9, 2, 1, Direction.FROM, 1.0, shadow_id=1)
    path = Path(1, (square.edge(1), shadow))
    assert path.edge_ids == [1, 1]
    assert path.shadow_count == 1
    assert path.end == 1


def test_non_contiguous_path_raises(square) -> None:
    path = Path(1, (square.edge(1), square.edge(3)))
    with pytest.raises(ValueError, match="not an endpoint"):
        path.vertices
