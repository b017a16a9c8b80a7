import random
import logging
from time import time

from gmstinstance import InvalidGraphError

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.5


class UnionFind:
    """
    Disjoint sets over cluster ids 0..n-1 with path compression and union by rank.
    """
    __slots__ = ['parent', 'rank']
    def __init__(self, n):
        self.parent = list(range(n))
        self.rank = [0] * n

    def find(self, u):
        root = u
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[u] != root:
            self.parent[u], u = root, self.parent[u]
        return root

    def union(self, u, v):
        pu, pv = self.find(u), self.find(v)
        if pu == pv:
            return False
        if self.rank[pu] < self.rank[pv]:
            pu, pv = pv, pu
        self.parent[pv] = pu
        if self.rank[pu] == self.rank[pv]:
            self.rank[pu] += 1
        return True

    def connected(self, u, v):
        return self.find(u) == self.find(v)

    def count_components(self):
        return len(set(self.find(i) for i in range(len(self.parent))))


class GMSTSolution:
    """
    The edges selected by a GMST construction, in selection order.
    Each edge is a tuple (origin, destination, weight).
    An empty solution means no cluster-connecting edge was found, not a zero-cost success.
    """
    __slots__ = ['edges', 'num_clusters']
    def __init__(self, edges=None, num_clusters=0):
        self.edges = list(edges or [])
        self.num_clusters = num_clusters

    @property
    def cost(self):
        return sum(w for _, _, w in self.edges)

    @property
    def num_edges(self):
        return len(self.edges)

    def is_empty(self):
        return not self.edges

    def is_spanning(self):
        """True when every cluster ended up in a single component."""
        return self.num_edges == max(0, self.num_clusters - 1)

    def to_dict(self):
        return {
            "num_edges": self.num_edges,
            "num_clusters": self.num_clusters,
            "cost": self.cost,
            "spanning": self.is_spanning(),
            "edges": list(self.edges),
        }

    def __iter__(self):
        return iter(self.edges)

    def __len__(self):
        return len(self.edges)

    def __eq__(self, other):
        if not isinstance(other, GMSTSolution):
            return NotImplemented
        return self.edges == other.edges and self.num_clusters == other.num_clusters

    def __repr__(self):
        return f"GMSTSolution(edges={self.edges}, cost={self.cost})"


def vertex_weights(graph):
    """
    Reads the weight of every vertex 1..n. Index 0 is unused.
    """
    n = graph.order()
    weights = [None] * (n + 1)
    for i in range(1, n + 1):
        try:
            weights[i] = graph.vertex_weight(i)
        except (KeyError, IndexError) as e:
            raise InvalidGraphError(f"Vertex {i} has no weight") from e
    return weights


def collect_edges(graph):
    """
    Materialises the edge set of the graph as (origin, destination, weight) triples,
    scanning vertices in increasing order. For undirected graphs only the direction
    with origin <= destination is kept. Parallel edges are kept as separate entries.
    """
    vertex_weights(graph)
    return _scan_edges(graph)


def _scan_edges(graph):
    edges = []
    directed = graph.is_directed()
    for u in range(1, graph.order() + 1):
        for v, w in graph.neighbors(u):
            if not directed and u > v:
                continue
            edges.append((u, v, w))
    return edges


def partition_clusters(weights):
    """
    Assigns a cluster id to every vertex 1..n such that two vertices share an id
    iff their weights are equal. Ids are handed out in order of first occurrence.

    Returns:
        (cluster_of, num_clusters) where cluster_of[v] is the id of vertex v (index 0 unused).
    """
    ids = {}
    cluster_of = [None] * len(weights)
    for i in range(1, len(weights)):
        if weights[i] not in ids:
            ids[weights[i]] = len(ids)
        cluster_of[i] = ids[weights[i]]
    return cluster_of, len(ids)


def cluster_sweep(edges, cluster_of, num_clusters):
    """
    Walks the edges in the given order and keeps every edge that joins two clusters
    not yet connected, stopping once num_clusters - 1 edges have been kept.
    """
    selected = []
    target = num_clusters - 1
    if target <= 0:
        return selected
    uf = UnionFind(num_clusters)
    for u, v, w in edges:
        if uf.union(cluster_of[u], cluster_of[v]):
            selected.append((u, v, w))
            if len(selected) == target:
                break
    return selected


def _prepare(graph):
    weights = vertex_weights(graph)
    edges = _scan_edges(graph)
    cluster_of, num_clusters = partition_clusters(weights)
    return edges, cluster_of, num_clusters


def solve_greedy(graph):
    """
    Kruskal over clusters: sorts edges by weight (stable, so ties keep scan order)
    and keeps the cheapest edge that connects two still-separate clusters.
    """
    start_time = time()
    edges, cluster_of, num_clusters = _prepare(graph)
    edges.sort(key=lambda e: e[2])
    solution = GMSTSolution(cluster_sweep(edges, cluster_of, num_clusters), num_clusters)
    logger.debug(f"Greedy GMST: {solution.num_edges}/{max(0, num_clusters - 1)} edges, "
                 f"cost {solution.cost}, {time() - start_time:.4f}s")
    return solution


def shuffle_prefix(edges, alpha, rng):
    """
    Partial Fisher-Yates: positions 0..k-1 receive a uniformly drawn edge from the
    remaining tail, with k = max(1, int(alpha * len(edges))). alpha == 0 leaves the list as is.
    """
    if not 0 <= alpha <= 1:
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")
    n = len(edges)
    if n == 0 or alpha == 0:
        return edges
    k = min(n, max(1, int(n * alpha)))
    for i in range(k):
        r = rng.randrange(i, n)
        edges[i], edges[r] = edges[r], edges[i]
    return edges


def solve_randomized(graph, alpha=DEFAULT_ALPHA, rng=None):
    """
    Same cluster sweep as solve_greedy, but over the unsorted scan order with a
    random prefix shuffled in. The result is usually more expensive than the greedy
    one and varies from call to call.

    Args:
        graph: The GMSTInstance to solve.
        alpha: Fraction of the edge list (from the front) that gets shuffled, in [0, 1].
        rng: A random.Random instance; a fresh unseeded one is used when omitted.
    """
    if not 0 <= alpha <= 1:
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")
    rng = rng if rng is not None else random.Random()
    edges, cluster_of, num_clusters = _prepare(graph)
    shuffle_prefix(edges, alpha, rng)
    solution = GMSTSolution(cluster_sweep(edges, cluster_of, num_clusters), num_clusters)
    logger.debug(f"Randomized GMST (alpha={alpha}): {solution.num_edges} edges, cost {solution.cost}")
    return solution
