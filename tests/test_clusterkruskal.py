"""Tests for the cluster-level Kruskal engine (clusterkruskal)."""

import random

import networkx as nx
import pytest

from clusterkruskal import (
    GMSTSolution,
    UnionFind,
    collect_edges,
    partition_clusters,
    shuffle_prefix,
    solve_greedy,
    solve_randomized,
    vertex_weights,
)
from gmstinstance import InvalidGraphError, ListGraph, generate_instance
from conftest import build_graph


def contracted_mst_cost(graph):
    """MST cost of the graph obtained by merging every cluster into one node."""
    cluster_of, num_clusters = partition_clusters(vertex_weights(graph))
    H = nx.Graph()
    H.add_nodes_from(range(num_clusters))
    for u, v, w in collect_edges(graph):
        cu, cv = cluster_of[u], cluster_of[v]
        if cu == cv:
            continue
        if not H.has_edge(cu, cv) or H[cu][cv]["weight"] > w:
            H.add_edge(cu, cv, weight=w)
    mst = nx.minimum_spanning_tree(H)
    return sum(d["weight"] for _, _, d in mst.edges(data=True))


def crosses_clusters(graph, solution):
    cluster_of, _ = partition_clusters(vertex_weights(graph))
    uf = UnionFind(max(cluster_of[1:], default=-1) + 1)
    return all(uf.union(cluster_of[u], cluster_of[v]) for u, v, _ in solution)


@pytest.fixture
def random_instance():
    return generate_instance(30, 0.2, 6, rng=random.Random(7))


# ── Edge collector ──────────────────────────────────────────────

class TestCollectEdges:

    def test_undirected_keeps_one_direction(self, storage):
        graph = build_graph([1, 2, 3], [(1, 2, 4), (3, 1, 2)], storage=storage)
        assert collect_edges(graph) == [(1, 2, 4), (1, 3, 2)]

    def test_directed_keeps_every_arc(self, storage):
        graph = build_graph([1, 2], [(1, 2, 4), (2, 1, 3)], directed=True, storage=storage)
        assert collect_edges(graph) == [(1, 2, 4), (2, 1, 3)]

    def test_parallel_edges_are_not_merged(self):
        graph = build_graph([1, 2], [(1, 2, 5), (1, 2, 5)])
        assert collect_edges(graph) == [(1, 2, 5), (1, 2, 5)]

    def test_missing_vertex_weight_aborts(self):
        graph = ListGraph(3, vertex_weighted=True, edge_weighted=True)
        graph.add_node(1, 1)
        graph.add_node(2, 2)
        graph.add_edge(1, 2, 1)
        with pytest.raises(InvalidGraphError):
            collect_edges(graph)
        with pytest.raises(InvalidGraphError):
            solve_greedy(graph)


# ── Cluster partitioner ─────────────────────────────────────────

class TestPartitionClusters:

    def test_ids_follow_first_occurrence(self):
        cluster_of, num_clusters = partition_clusters([None, 5, 3, 5, 7, 3])
        assert cluster_of[1:] == [0, 1, 0, 2, 1]
        assert num_clusters == 3

    def test_no_vertices(self):
        cluster_of, num_clusters = partition_clusters([None])
        assert num_clusters == 0

    def test_exact_equality(self):
        _, num_clusters = partition_clusters([None, 1.0, 1.0000001, 1])
        assert num_clusters == 2


# ── Disjoint sets ───────────────────────────────────────────────

class TestUnionFind:

    def test_union_reports_merge(self):
        uf = UnionFind(3)
        assert uf.union(0, 1) is True
        assert uf.union(1, 0) is False
        assert uf.connected(0, 1)
        assert not uf.connected(0, 2)
        assert uf.count_components() == 2

    def test_union_by_rank(self):
        uf = UnionFind(3)
        uf.union(0, 1)
        assert uf.rank[0] == 1
        uf.union(2, 0)
        # the lower-rank root goes under the higher-rank one
        assert uf.find(2) == 0
        assert uf.rank[0] == 1

    def test_full_path_compression(self):
        uf = UnionFind(4)
        uf.parent = [0, 0, 1, 2]
        assert uf.find(3) == 0
        assert uf.parent == [0, 0, 0, 0]


# ── Solution ────────────────────────────────────────────────────

class TestGMSTSolution:

    def test_cost_and_count(self):
        solution = GMSTSolution([(1, 2, 4), (2, 3, 6)], num_clusters=3)
        assert solution.cost == 10
        assert solution.num_edges == 2
        assert solution.is_spanning()
        assert list(solution) == [(1, 2, 4), (2, 3, 6)]

    def test_empty(self):
        solution = GMSTSolution([], num_clusters=3)
        assert solution.cost == 0
        assert solution.is_empty()
        assert not solution.is_spanning()


# ── Greedy ──────────────────────────────────────────────────────

class TestGreedy:

    def test_three_clusters_triangle(self, triangle):
        solution = solve_greedy(triangle)
        assert solution.edges == [(1, 2, 1), (2, 3, 2)]
        assert solution.cost == 3

    def test_two_clusters_single_edge(self, two_clusters):
        solution = solve_greedy(two_clusters)
        assert solution.edges == [(2, 3, 5)]

    def test_no_edges(self, edgeless):
        solution = solve_greedy(edgeless)
        assert solution.is_empty()
        assert solution.cost == 0
        assert not solution.is_spanning()

    def test_no_vertices(self):
        solution = solve_greedy(ListGraph(0))
        assert solution.is_empty()
        assert solution.is_spanning()

    def test_single_cluster_needs_no_edge(self):
        graph = build_graph([4, 4, 4], [(1, 2, 1), (2, 3, 1)])
        assert solve_greedy(graph).is_empty()

    def test_disconnected_clusters_give_partial_result(self):
        graph = build_graph([1, 2, 3, 4], [(1, 2, 3), (3, 4, 1)])
        solution = solve_greedy(graph)
        assert solution.edges == [(3, 4, 1), (1, 2, 3)]
        assert not solution.is_spanning()

    def test_ties_keep_scan_order(self):
        graph = build_graph([1, 2, 3], [(1, 2, 5), (1, 3, 5), (2, 3, 5)])
        assert solve_greedy(graph).edges == [(1, 2, 5), (1, 3, 5)]

    def test_directed_arcs_connect_clusters(self):
        graph = build_graph([1, 2, 3], [(2, 1, 4), (3, 2, 1)], directed=True)
        assert solve_greedy(graph).edges == [(3, 2, 1), (2, 1, 4)]

    def test_matches_contracted_mst(self, random_instance):
        solution = solve_greedy(random_instance)
        assert solution.num_edges == 5
        assert solution.is_spanning()
        assert crosses_clusters(random_instance, solution)
        assert solution.cost == contracted_mst_cost(random_instance)

    def test_deterministic(self, random_instance):
        assert solve_greedy(random_instance) == solve_greedy(random_instance)


# ── Randomized ──────────────────────────────────────────────────

class TestRandomized:

    def test_alpha_zero_sweeps_scan_order(self, triangle):
        solution = solve_randomized(triangle, alpha=0, rng=random.Random(1))
        assert solution.edges == [(1, 2, 1), (1, 3, 3)]
        assert solution.cost == 4

    def test_alpha_zero_two_clusters(self, two_clusters):
        assert solve_randomized(two_clusters, alpha=0).edges == [(1, 4, 7)]

    def test_no_edges(self, edgeless):
        assert solve_randomized(edgeless, rng=random.Random(0)).is_empty()

    def test_same_seed_same_solution(self, random_instance):
        first = solve_randomized(random_instance, 0.5, random.Random(3))
        second = solve_randomized(random_instance, 0.5, random.Random(3))
        assert first == second

    def test_respects_cluster_rule(self, random_instance):
        greedy_cost = solve_greedy(random_instance).cost
        for seed in range(5):
            solution = solve_randomized(random_instance, 1.0, random.Random(seed))
            assert solution.num_edges == 5
            assert crosses_clusters(random_instance, solution)
            assert solution.cost >= greedy_cost

    @pytest.mark.parametrize("alpha", [-0.1, 1.5])
    def test_alpha_out_of_range(self, triangle, alpha):
        with pytest.raises(ValueError):
            solve_randomized(triangle, alpha)


class TestShufflePrefix:

    class CountingRandom:
        def __init__(self):
            self.calls = []

        def randrange(self, start, stop):
            self.calls.append((start, stop))
            return start

    @pytest.mark.parametrize("alpha, expected", [(0.25, 2), (0.01, 1), (1.0, 10)])
    def test_prefix_length(self, alpha, expected):
        rng = self.CountingRandom()
        shuffle_prefix(list(range(10)), alpha, rng)
        assert rng.calls == [(i, 10) for i in range(expected)]

    def test_alpha_zero_leaves_order(self):
        rng = self.CountingRandom()
        assert shuffle_prefix([3, 1, 2], 0, rng) == [3, 1, 2]
        assert rng.calls == []

    def test_full_shuffle_is_permutation(self):
        edges = [(i, i + 1, i) for i in range(1, 8)]
        shuffled = shuffle_prefix(list(edges), 1.0, random.Random(4))
        assert sorted(shuffled) == edges

    def test_empty(self):
        assert shuffle_prefix([], 0.5, random.Random(0)) == []
