'''
Balancing edge synthesis: duplicate shortest paths so that the edge
multiset admits an Eulerian trail from start to end.

Two regimes:
- undirected: pair the wrong-parity vertices by a minimum weight perfect
  matching over shortest distances (optimal);
- directed / mixed: fix a travel direction for every undirected edge, then
  pair deficit and surplus copies by a minimum weight bipartite matching
  over shortest distances on the mixed edges. Every orientation is tried
  when there are at most max_orient_k undirected edges (optimal); above
  that, a single min cost flow picks orientations and duplicates together.
'''
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

from .balance import analyze, odd_vertices
from .dijkstra import dijkstra, path_edges
from .exceptions import NoEulerianTrail, UnreachableVertex
from .graph import Direction, Edge, travel_options
from .matching import DEFAULT_MAX_DP_K, INF, perfect_matching

log = logging.getLogger(__name__)

DEFAULT_MAX_ORIENT_K = 8  # max undirected edges for trying every orientation
COST_SCALE = 1000  # edge weights are scaled to integers for the min cost flow

Orientation = Dict[int, int]
Pairs = List[Tuple[int, int]]


@dataclass
class Balancing:
    ''' Shadow edges and orientation produced for one solve.

    orientation maps the id of each original undirected edge to the
    vertex it must be left from (empty in the undirected regime).
    pairs are (from_vertex, to_vertex) of each duplicated path.
    '''
    mode: str
    shadow_edges: List[Edge] = field(default_factory=list)
    orientation: Orientation = field(default_factory=dict)
    pairs: Pairs = field(default_factory=list)
    flips: int = 0

    @property
    def added_length(self) -> float:
        return sum(e.weight for e in self.shadow_edges)


class ShadowFactory:
    ''' Creates shadow edges with ids unused by the working edge set. '''

    def __init__(self, edges: Sequence[Edge]):
        self._next_id = max((e.id for e in edges), default=0) + 1

    def duplicate(self, edge: Edge, tail: Optional[int] = None) -> Edge:
        '''
        Copy of edge tagged with its original id. With a tail, the copy
        is a one-way edge leaving tail; otherwise it stays undirected.
        '''
        eid, self._next_id = self._next_id, self._next_id + 1
        if tail is None:
            return Edge(eid, edge.v1, edge.v2, Direction.ANY, edge.weight, shadow_id=edge.original_id)
        return Edge(eid, tail, edge.other(tail), Direction.FROM, edge.weight, shadow_id=edge.original_id)

    def chain(self, edges: Sequence[Edge], tail: int, directed: bool = True) -> List[Edge]:
        '''Duplicate a path walked from tail.'''
        out, cur = [], tail
        for e in edges:
            out.append(self.duplicate(e, cur if directed else None))
            cur = e.other(cur)
        return out


# ============================================================
# Undirected regime
# ============================================================
def balance_undirected(edges: Sequence[Edge], start: int, end: int, matching: str = "auto",
                       max_dp_k: int = DEFAULT_MAX_DP_K, factory: Optional[ShadowFactory] = None) -> Balancing:
    factory = factory or ShadowFactory(edges)
    odds = odd_vertices(edges, start, end)
    log.info(f"Odd-degree vertices: k={len(odds)}")
    result = Balancing(mode="undirected")
    if not odds:
        return result

    options = travel_options(edges)
    parents, dist_matrix = {}, defaultdict(dict)
    for u in odds:
        parent, dist = dijkstra(options, u)
        parents[u] = parent
        for v in odds:
            dist_matrix[u][v] = 0.0 if u == v else dist.get(v, INF)

    pairs = perfect_matching(odds, dist_matrix, method=matching, max_dp_k=max_dp_k)
    if len(pairs) * 2 != len(odds):
        raise NoEulerianTrail(f"could not pair {len(odds)} odd-degree vertices")
    for u, v in pairs:
        chain = path_edges(parents[u], u, v)
        if chain is None:
            raise NoEulerianTrail(f"no path between odd vertices {u} and {v}")
        result.shadow_edges.extend(factory.chain(chain, u, directed=False))
        result.pairs.append((u, v))
    log.info(f"Matched {len(pairs)} pairs, added length {round(result.added_length, 3)}")
    return result


# ============================================================
# Directed / mixed regime
# ============================================================
class Routes:
    ''' Shortest paths over the working edges, one Dijkstra per source,
    run the first time that source is asked for. '''

    def __init__(self, edges: Sequence[Edge]):
        self._options = travel_options(edges)
        self._parents: Dict[int, Dict] = {}
        self._dist: Dict[int, Dict[int, float]] = {}

    def _search(self, source: int):
        if source not in self._dist:
            self._parents[source], self._dist[source] = dijkstra(self._options, source)

    def distance(self, u: int, v: int) -> Optional[float]:
        self._search(u)
        return self._dist[u].get(v)

    def route(self, u: int, v: int) -> Optional[List[Edge]]:
        self._search(u)
        return path_edges(self._parents[u], u, v)


def _pair_greedy(deficit: List[int], surplus: List[int], routes: Routes) -> Optional[Pairs]:
    # send each deficit vertex to the nearest remaining surplus vertex
    remaining, pairs = list(surplus), []
    for u in deficit:
        reachable = [(routes.distance(u, v), i) for i, v in enumerate(remaining)
                     if routes.distance(u, v) is not None]
        if not reachable:
            return None
        _, i = min(reachable)
        pairs.append((u, remaining.pop(i)))
    return pairs


def _pair_optimal(deficit: List[int], surplus: List[int], routes: Routes,
                  matching: str, max_dp_k: int) -> Optional[Pairs]:
    d_tokens = [("deficit", i, u) for i, u in enumerate(deficit)]
    s_tokens = [("surplus", j, v) for j, v in enumerate(surplus)]
    dist_matrix = defaultdict(dict)
    for d in d_tokens:
        for s in s_tokens:
            w = routes.distance(d[2], s[2])
            if w is not None:
                dist_matrix[d][s] = dist_matrix[s][d] = w
    ids = d_tokens + s_tokens
    pairs = perfect_matching(ids, dist_matrix, method=matching, max_dp_k=max_dp_k)
    if len(pairs) * 2 != len(ids):
        return None
    out = []
    for a, b in pairs:
        d, s = (a, b) if a[0] == "deficit" else (b, a)
        out.append((d[2], s[2]))
    return out


def pair_imbalance(deficit: List[int], surplus: List[int], routes: Routes,
                   matching: str = "auto", max_dp_k: int = DEFAULT_MAX_DP_K) -> Optional[Pairs]:
    '''
    Pair every deficit copy with a surplus copy it can reach. None when
    no complete pairing exists. Greedy pairing falls back to the optimal
    one when it paints itself into a corner.
    '''
    if not deficit and not surplus:
        return []
    if len(deficit) != len(surplus):
        return None
    if matching == "greedy":
        pairs = _pair_greedy(deficit, surplus, routes)
        if pairs is not None:
            return pairs
        log.debug("Greedy pairing got stuck, pairing optimally")
        matching = "auto"
    return _pair_optimal(deficit, surplus, routes, matching, max_dp_k)


def _unpairable(deficit: List[int], surplus: List[int], routes: Routes) -> Exception:
    '''The error explaining why deficit and surplus cannot be paired.'''
    targets = sorted(set(surplus))
    for u in sorted(set(deficit)):
        if all(routes.distance(u, v) is None for v in targets):
            return UnreachableVertex(u, "no path leads from it to a vertex that lacks arrivals")
    sources = sorted(set(deficit))
    for v in targets:
        if all(routes.distance(u, v) is None for u in sources):
            return UnreachableVertex(v, "no path leads to it from a vertex that lacks departures")
    return NoEulerianTrail(f"could not pair {len(deficit)} deficit with {len(surplus)} surplus vertices")


def _pairs_weight(pairs: Pairs, routes: Routes) -> float:
    return sum(routes.distance(u, v) for u, v in pairs)


def best_orientation(edges: Sequence[Edge], start: int, end: int, routes: Optional[Routes] = None,
                     matching: str = "auto", max_dp_k: int = DEFAULT_MAX_DP_K) -> Tuple[Orientation, Pairs]:
    '''
    Try every travel direction of the undirected edges and keep the one
    whose imbalance is cheapest to pair (ties keep the first, where v1 is
    the tail). Duplicated paths may walk undirected edges either way, so
    the lightest orientation gives a minimum covering walk.
    Returns the orientation and its pairs.
    '''
    routes = routes or Routes(edges)
    orientation = {e.id: e.v1 for e in edges if not e.is_directed}
    free = [e for e in edges if not e.is_directed and e.v1 != e.v2]

    best: Optional[Tuple[float, Orientation, Pairs]] = None
    first_balance = None
    for tails in itertools.product(*[(e.v1, e.v2) for e in free]):
        orientation.update(zip((e.id for e in free), tails))
        balance = analyze(edges, start, end, orientation)
        first_balance = first_balance or balance
        pairs = pair_imbalance(balance.deficit, balance.surplus, routes, matching, max_dp_k)
        if pairs is None:
            continue
        weight = _pairs_weight(pairs, routes)
        if best is None or weight < best[0]:
            best = (weight, dict(orientation), pairs)
            if weight == 0:
                break
    if best is None:
        raise _unpairable(first_balance.deficit, first_balance.surplus, routes)
    log.debug(f"Tried {2 ** len(free)} orientations, cheapest pairing adds {round(best[0], 3)}")
    return best[1], best[2]


def balance_by_flow(edges: Sequence[Edge], start: int, end: int,
                    factory: Optional[ShadowFactory] = None) -> Balancing:
    '''
    Orientation and duplicates from one min cost flow.

    Undirected edges start out v1 -> v2. Flow runs from vertices short of
    departures to vertices short of arrivals; one unit on an arc is one
    duplicated traversal and costs the edge weight. Flipping an undirected
    edge moves two units for free, so each one gets a zero cost arc of
    capacity 2. An odd unit left on such an arc becomes a duplicate.
    '''
    factory = factory or ShadowFactory(edges)
    orientation = {e.id: e.v1 for e in edges if not e.is_directed}
    balance = analyze(edges, start, end, orientation)

    G = nx.DiGraph()
    for vid, b in balance.imbalance.items():
        G.add_node(vid, demand=b)
    cheapest: Dict[Tuple[int, int], Edge] = {}
    for vid, moves in travel_options(edges).items():
        for e, nxt in moves:
            key = (vid, nxt)
            if vid != nxt and (key not in cheapest or (e.weight, e.id) < (cheapest[key].weight, cheapest[key].id)):
                cheapest[key] = e
    for (a, b), e in cheapest.items():
        G.add_edge(a, b, weight=int(round(e.weight * COST_SCALE)))
    flippable: Dict[Tuple[int, int], List[Edge]] = defaultdict(list)
    for e in edges:
        if e.id in orientation and e.v1 != e.v2:
            # currently v1 -> v2; flipping sends two units v2 -> v1
            flippable[(e.v2, e.v1)].append(e)
    for (a, b), group in flippable.items():
        hub = ("flip", a, b)
        G.add_edge(a, hub, capacity=2 * len(group), weight=0)
        G.add_edge(hub, b, weight=0)

    try:
        flow = nx.min_cost_flow(G)
    except nx.NetworkXUnfeasible as exc:
        raise NoEulerianTrail(f"balancing flow is infeasible: {exc}") from exc

    result = Balancing(mode="directed", orientation=orientation)
    for (a, b), group in flippable.items():
        units = flow[a][("flip", a, b)]
        for e in group[:units // 2]:
            orientation[e.id] = a
            result.flips += 1
        if units % 2:
            result.shadow_edges.append(factory.duplicate(group[0], tail=a))
    for (a, b), e in cheapest.items():
        for _ in range(flow[a][b]):
            result.shadow_edges.append(factory.duplicate(e, tail=a))
    log.info(f"Min cost flow flipped {result.flips} undirected edges, "
             f"added length {round(result.added_length, 3)}")
    return result


def balance_directed(edges: Sequence[Edge], start: int, end: int, matching: str = "auto",
                     max_dp_k: int = DEFAULT_MAX_DP_K, max_orient_k: int = DEFAULT_MAX_ORIENT_K,
                     factory: Optional[ShadowFactory] = None) -> Balancing:
    factory = factory or ShadowFactory(edges)
    free = sum(1 for e in edges if not e.is_directed and e.v1 != e.v2)
    if free > max_orient_k:
        log.info(f"{free} undirected edges (> {max_orient_k}), balancing with a min cost flow")
        return balance_by_flow(edges, start, end, factory)

    routes = Routes(edges)
    orientation, pairs = best_orientation(edges, start, end, routes, matching, max_dp_k)
    flips = sum(1 for e in edges if e.id in orientation and orientation[e.id] != e.v1)
    log.info(f"Imbalance after orientation: {len(pairs)} pairs ({flips} undirected edges flipped)")
    result = Balancing(mode="directed", orientation=orientation, flips=flips)
    for u, v in pairs:
        chain = routes.route(u, v)
        if chain is None:
            raise NoEulerianTrail(f"no path from {u} to {v}")
        result.shadow_edges.extend(factory.chain(chain, u, directed=True))
        result.pairs.append((u, v))
    log.info(f"Matched {len(pairs)} pairs, added length {round(result.added_length, 3)}")
    return result


def synthesize(edges: Sequence[Edge], start: int, end: int, matching: str = "auto",
               max_dp_k: int = DEFAULT_MAX_DP_K, max_orient_k: int = DEFAULT_MAX_ORIENT_K) -> Balancing:
    '''
    Balancing shadow edges for the working edge set. The working set itself
    is left untouched; callers append result.shadow_edges to a private copy.
    '''
    edges = list(edges)
    if any(e.is_directed for e in edges):
        return balance_directed(edges, start, end, matching=matching, max_dp_k=max_dp_k,
                                max_orient_k=max_orient_k)
    return balance_undirected(edges, start, end, matching=matching, max_dp_k=max_dp_k)
