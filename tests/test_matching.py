import math
import random
from collections import defaultdict

import pytest

from mixed_postman.matching import (
    INF,
    greedy_matching,
    min_perfect_matching_cost_dp,
    min_weight_matching_blossom,
    pair_cost,
    perfect_matching,
)


def _euclidean_matrix(points):
    matrix = defaultdict(dict)
    for a, pa in points.items():
        for b, pb in points.items():
            matrix[a][b] = math.dist(pa, pb)
    return matrix


def _line_matrix(ids, positions=None):
    # points on a line, by default at 0, 1, 2, ... in ids order
    positions = positions or list(range(len(ids)))
    return {a: {b: float(abs(pa - pb)) for b, pb in zip(ids, positions)} for a, pa in zip(ids, positions)}


@pytest.mark.parametrize("seed", range(4))
def test_dp_and_blossom_agree(seed) -> None:
    rng = random.Random(seed)
    points = {i: (rng.uniform(0, 10), rng.uniform(0, 10)) for i in range(8)}
    matrix = _euclidean_matrix(points)
    ids = sorted(points)
    cost, pairs = min_perfect_matching_cost_dp(ids, matrix)
    blossom = min_weight_matching_blossom(ids, matrix)
    assert len(pairs) == len(blossom) == 4
    assert pair_cost(pairs, matrix) == pytest.approx(cost)
    assert pair_cost(blossom, matrix) == pytest.approx(cost)


def test_dp_without_perfect_matching() -> None:
    assert min_perfect_matching_cost_dp([1, 2, 3], _line_matrix([1, 2, 3]))[0] == INF
    sparse = {1: {2: 1.0}, 2: {1: 1.0}, 3: {}, 4: {}}
    assert min_perfect_matching_cost_dp([1, 2, 3, 4], sparse)[0] == INF


def test_greedy_can_miss_the_optimum() -> None:
    ids = ["a", "b", "c", "d"]
    matrix = _line_matrix(ids, positions=[0, 2, 3, 5])
    greedy = greedy_matching(ids, matrix)
    assert greedy == [("b", "c"), ("a", "d")]
    assert pair_cost(greedy, matrix) == 6.0
    assert pair_cost(perfect_matching(ids, matrix, method="dp"), matrix) == 4.0


def test_auto_uses_blossom_above_dp_limit() -> None:
    ids = list(range(6))
    matrix = _line_matrix(ids)
    pairs = perfect_matching(ids, matrix, method="auto", max_dp_k=4)
    assert sorted(pairs) == [(0, 1), (2, 3), (4, 5)]


def test_empty_and_unknown_method() -> None:
    assert perfect_matching([], {}) == []
    with pytest.raises(ValueError, match="unknown matching method"):
        perfect_matching([1, 2], _line_matrix([1, 2]), method="hungarian")
