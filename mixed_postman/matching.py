'''
Minimum weight perfect matching over a distance matrix.

dist_matrix is a dict of dicts; a missing entry (or inf) means the pair
cannot be matched.
'''
import logging
from functools import lru_cache
from typing import Dict, Hashable, List, Sequence, Tuple

import networkx as nx

log = logging.getLogger(__name__)

INF = float('inf')
DEFAULT_MAX_DP_K = 14  # max number of vertices for the exact bitmask DP
MATCHING_METHODS = ("auto", "dp", "blossom", "greedy")

DistMatrix = Dict[Hashable, Dict[Hashable, float]]
Pairs = List[Tuple[Hashable, Hashable]]


def pair_cost(pairs: Pairs, dist_matrix: DistMatrix) -> float:
    return sum(dist_matrix[a].get(b, INF) for a, b in pairs)


# ============================================================
# Exact matching (DP bitmask) for small k
# ============================================================
def min_perfect_matching_cost_dp(ids: Sequence, dist_matrix: DistMatrix) -> Tuple[float, Pairs]:
    '''
    Exact minimum weight perfect matching using DP over a bitmask of the
    indices of ids. Returns total cost (inf if no perfect matching exists)
    and the matched pairs.
    '''
    m = len(ids)
    if m % 2 == 1:
        return INF, []
    full_mask = (1 << m) - 1

    @lru_cache(None)
    def dp(mask: int) -> Tuple[float, Tuple]:
        # mask = vertices still unmatched
        if mask == 0:
            return 0.0, ()
        # lowest unmatched index i must be paired with some j > i
        i = (mask & -mask).bit_length() - 1
        rem = mask ^ (1 << i)
        best_cost, best_pairs = INF, ()
        for j in range(i + 1, m):
            if not (rem >> j) & 1:
                continue
            c = dist_matrix[ids[i]].get(ids[j], INF)
            if c == INF:
                continue
            sub_cost, sub_pairs = dp(rem ^ (1 << j))
            tot = c + sub_cost
            if tot < best_cost:
                best_cost = tot
                best_pairs = ((ids[i], ids[j]),) + sub_pairs
        return best_cost, best_pairs

    cost, pairs = dp(full_mask)
    dp.cache_clear()
    return cost, list(pairs)


# ============================================================
# Blossom (networkx) and greedy
# ============================================================
def min_weight_matching_blossom(ids: Sequence, dist_matrix: DistMatrix) -> Pairs:
    '''
    Minimum weight maximum cardinality matching with networkx's Blossom
    implementation. Pairs come back ordered by position in ids.
    '''
    position = {x: i for i, x in enumerate(ids)}
    G = nx.Graph()
    G.add_nodes_from(ids)
    for i, a in enumerate(ids):
        for b in ids[i + 1:]:
            w = dist_matrix[a].get(b, INF)
            if w != INF:
                G.add_edge(a, b, weight=w)
    M = nx.min_weight_matching(G, weight="weight")
    pairs = [(a, b) if position[a] < position[b] else (b, a) for a, b in M]
    pairs.sort(key=lambda p: position[p[0]])
    return pairs


def greedy_matching(ids: Sequence, dist_matrix: DistMatrix) -> Pairs:
    '''
    Cheapest-pair-first matching. An approximation, kept as a fallback.
    '''
    candidates = []
    for i, a in enumerate(ids):
        for j in range(i + 1, len(ids)):
            w = dist_matrix[a].get(ids[j], INF)
            if w != INF:
                candidates.append((w, i, j))
    candidates.sort()
    used, pairs = set(), []
    for w, i, j in candidates:
        if i not in used and j not in used:
            used.add(i); used.add(j)
            pairs.append((ids[i], ids[j]))
    return pairs


def perfect_matching(ids: Sequence, dist_matrix: DistMatrix, method: str = "auto",
                     max_dp_k: int = DEFAULT_MAX_DP_K) -> Pairs:
    '''
    Dispatch to the DP (exact, small k), Blossom (exact, any k) or greedy
    matcher. "auto" picks DP when len(ids) <= max_dp_k, Blossom otherwise.
    The caller checks that the result is perfect.
    '''
    if method not in MATCHING_METHODS:
        raise ValueError(f"unknown matching method {method!r}")
    if not ids:
        return []
    if method == "auto":
        method = "dp" if len(ids) <= max_dp_k else "blossom"
    log.debug(f"Matching {len(ids)} vertices with {method}")
    if method == "dp":
        cost, pairs = min_perfect_matching_cost_dp(ids, dist_matrix)
        return pairs if cost != INF else []
    if method == "blossom":
        return min_weight_matching_blossom(ids, dist_matrix)
    return greedy_matching(ids, dist_matrix)
