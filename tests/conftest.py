"""Shared fixtures for the GMST test suite."""

import random

import matplotlib
import pytest

matplotlib.use("Agg")

from gmstinstance import STORAGE_TYPES


def build_graph(weights, edges, directed=False, storage="list"):
    """Graph with vertices 1..len(weights) and (u, v, w) edges."""
    graph = STORAGE_TYPES[storage](len(weights), directed, True, True)
    for v, weight in enumerate(weights, start=1):
        graph.add_node(v, weight)
    for u, v, w in edges:
        graph.add_edge(u, v, w)
    return graph


class ScriptedRandom:
    """Coin flips come from a fixed script, shuffles from a seeded generator."""

    def __init__(self, draws, seed=0):
        self.draws = list(draws)
        self.inner = random.Random(seed)

    def random(self):
        return self.draws.pop(0) if self.draws else 0.0

    def randrange(self, *args):
        return self.inner.randrange(*args)


@pytest.fixture(params=["list", "matrix"])
def storage(request):
    return request.param


@pytest.fixture
def triangle(storage):
    """Three clusters, edges of weight 1, 2, 3."""
    return build_graph([1, 2, 3], [(1, 2, 1), (2, 3, 2), (1, 3, 3)], storage=storage)


@pytest.fixture
def two_clusters(storage):
    """Vertices {1, 2} weigh 10 and {3, 4} weigh 20."""
    return build_graph([10, 10, 20, 20], [(1, 2, 1), (3, 4, 2), (2, 3, 5), (1, 4, 7)], storage=storage)


@pytest.fixture
def edgeless(storage):
    return build_graph([1, 2, 3], [], storage=storage)


@pytest.fixture
def triangle_file(tmp_path):
    path = tmp_path / "triangle.txt"
    path.write_text("3 0 1 1\n1 2 3\n1 2 1\n2 3 2\n1 3 3\n")
    return path
