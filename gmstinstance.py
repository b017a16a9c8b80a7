import abc
import random
import logging
import networkx as nx
import numpy as np
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

MAX_EDGE_WEIGHT = 100
MAX_VERTEX_WEIGHT = 1000


class InvalidGraphError(ValueError):
    """
    Raised when a graph description is malformed or a vertex is missing.
    """
    pass


class GMSTInstance(abc.ABC):
    """
    A vertex-weighted graph whose vertices are numbered 1..n.
    Vertices that carry the same weight belong to the same cluster.
    Each edge is reported as (destination, weight) from the point of view of its origin.
    For undirected graphs both directions of an edge are visible through neighbors().
    """
    def __init__(self, num_nodes=0, directed=False, vertex_weighted=False, edge_weighted=False):
        self.num_nodes = num_nodes
        self.directed = bool(directed)
        self.weighted_vertices = bool(vertex_weighted)
        self.weighted_edges = bool(edge_weighted)

    def order(self):
        return self.num_nodes

    def is_directed(self):
        return self.directed

    def vertex_weighted(self):
        return self.weighted_vertices

    def edge_weighted(self):
        return self.weighted_edges

    def _check_vertex(self, v):
        if not (1 <= v <= self.num_nodes):
            raise InvalidGraphError(f"Vertex {v} is outside the range 1..{self.num_nodes}")

    @abc.abstractmethod
    def add_node(self, v, weight=0):
        """
        Sets the weight of vertex v.
        """
        pass

    @abc.abstractmethod
    def add_edge(self, u, v, weight=0):
        """
        Stores the edge (u, v). Undirected graphs make it visible from both endpoints.
        """
        pass

    @abc.abstractmethod
    def vertex_weight(self, v):
        """
        Returns the weight of vertex v, raising InvalidGraphError if v is absent.
        """
        pass

    @abc.abstractmethod
    def neighbors(self, v):
        """
        Returns a list of (destination, weight) pairs for the edges leaving v.
        """
        pass

    @abc.abstractmethod
    def edge_exists(self, u, v):
        pass

    def edges(self):
        """All stored arcs as (u, v, w), undirected pairs listed once with u <= v."""
        result = []
        for u in range(1, self.num_nodes + 1):
            for v, w in self.neighbors(u):
                if not self.directed and u > v:
                    continue
                result.append((u, v, w))
        return result

    def degree(self):
        max_degree = 0
        n = self.order()
        for i in range(1, n + 1):
            current = len(self.neighbors(i))
            if self.directed:
                current += sum(1 for j in range(1, n + 1) if self.edge_exists(j, i))
            max_degree = max(max_degree, current)
        return max_degree

    def is_complete(self):
        n = self.order()
        for i in range(1, n + 1):
            for j in range(1, n + 1):
                if i != j and not self.edge_exists(i, j):
                    if self.directed:
                        return False
                    if not self.edge_exists(j, i):
                        return False
        return True

    def describe(self):
        return {
            "degree": self.degree(),
            "order": self.order(),
            "directed": self.is_directed(),
            "vertex_weighted": self.vertex_weighted(),
            "edge_weighted": self.edge_weighted(),
            "complete": self.is_complete(),
        }

    def print_description(self):
        def yes_no(flag):
            return "Yes" if flag else "No"

        description = self.describe()
        print(f"Degree: {description['degree']}")
        print(f"Order: {description['order']}")
        print(f"Directed: {yes_no(description['directed'])}")
        print(f"Weighted vertices: {yes_no(description['vertex_weighted'])}")
        print(f"Weighted edges: {yes_no(description['edge_weighted'])}")
        print(f"Complete: {yes_no(description['complete'])}")

    def plot(self, path=None, highlight=None):
        """
        Draws the graph with one colour per cluster. Edges in `highlight`
        (for instance a GMST solution) are drawn thicker.
        """
        # parallel edges are collapsed for display
        G = nx.DiGraph() if self.directed else nx.Graph()
        G.add_nodes_from(range(1, self.num_nodes + 1))
        G.add_weighted_edges_from(self.edges())
        weights = [self.vertex_weight(v) for v in G.nodes]
        palette = {w: idx for idx, w in enumerate(dict.fromkeys(weights))}
        node_colors = [palette[w] for w in weights]
        chosen = {(u, v) for u, v, _ in (highlight or [])}
        widths = [3.0 if (u, v) in chosen or (v, u) in chosen else 1.0 for u, v in G.edges()]
        pos = nx.spring_layout(G, seed=0)
        nx.draw(G, pos, with_labels=True, node_size=700, node_color=node_colors, cmap=plt.cm.tab20,
                width=widths, font_size=10, font_weight="bold")
        edge_labels = {(u, v): f"{w}" for u, v, w in self.edges()}
        nx.draw_networkx_edge_labels(G, pos, edge_labels=edge_labels)
        plt.axis("off")
        if path:
            plt.savefig(path, format="PNG")
        else:
            plt.show()
        plt.close()


class ListGraph(GMSTInstance):
    """
    Adjacency-list storage on top of a networkx multigraph, so parallel edges are kept.
    """
    def __init__(self, num_nodes=0, directed=False, vertex_weighted=False, edge_weighted=False):
        super().__init__(num_nodes, directed, vertex_weighted, edge_weighted)
        self.graph = nx.MultiDiGraph() if self.directed else nx.MultiGraph()

    def add_node(self, v, weight=0):
        self._check_vertex(v)
        self.graph.add_node(v, weight=weight)

    def add_edge(self, u, v, weight=0):
        self._check_vertex(u)
        self._check_vertex(v)
        self.graph.add_edge(u, v, weight=weight)

    def vertex_weight(self, v):
        if v not in self.graph.nodes or "weight" not in self.graph.nodes[v]:
            raise InvalidGraphError(f"Vertex {v} not found")
        return self.graph.nodes[v]["weight"]

    def neighbors(self, v):
        if v not in self.graph:
            return []
        return [(nbr, data["weight"])
                for nbr, keydict in self.graph.adj[v].items()
                for data in keydict.values()]

    def edge_exists(self, u, v):
        return self.graph.has_edge(u, v)


class MatrixGraph(GMSTInstance):
    """
    Adjacency-matrix storage. Row/column 0 is unused so vertex ids index directly.
    Storing the same pair twice overwrites the earlier weight.
    """
    def __init__(self, num_nodes=0, directed=False, vertex_weighted=False, edge_weighted=False):
        super().__init__(num_nodes, directed, vertex_weighted, edge_weighted)
        size = num_nodes + 1
        self.present = np.zeros((size, size), dtype=bool)
        # object arrays keep weights as the exact Python numbers they were given
        self.weights = np.zeros((size, size), dtype=object)
        self.node_weights = np.zeros(size, dtype=object)
        self.node_present = np.zeros(size, dtype=bool)

    def add_node(self, v, weight=0):
        self._check_vertex(v)
        self.node_weights[v] = weight
        self.node_present[v] = True

    def add_edge(self, u, v, weight=0):
        self._check_vertex(u)
        self._check_vertex(v)
        self.present[u, v] = True
        self.weights[u, v] = weight
        if not self.directed:
            self.present[v, u] = True
            self.weights[v, u] = weight

    def vertex_weight(self, v):
        if not (1 <= v <= self.num_nodes) or not self.node_present[v]:
            raise InvalidGraphError(f"Vertex {v} not found")
        return self.node_weights[v]

    def neighbors(self, v):
        if not (1 <= v <= self.num_nodes):
            return []
        return [(int(j), self.weights[v, j]) for j in np.flatnonzero(self.present[v])]

    def edge_exists(self, u, v):
        if not (1 <= u <= self.num_nodes and 1 <= v <= self.num_nodes):
            return False
        return bool(self.present[u, v])


STORAGE_TYPES = {
    "list": ListGraph,
    "matrix": MatrixGraph,
}


def _parse_number(token):
    try:
        return int(token)
    except ValueError:
        try:
            return float(token)
        except ValueError:
            raise InvalidGraphError(f"Expected a number, got {token!r}") from None


def load_graph(path, storage="list"):
    """
    Reads a graph description:
        n directed vertex_weighted edge_weighted
        [w_1 ... w_n]            (only if vertex_weighted)
        u v [w]                  (one record per edge, until end of file)
    """
    if storage not in STORAGE_TYPES:
        raise ValueError(f"Unknown storage {storage!r}, expected one of {sorted(STORAGE_TYPES)}")
    try:
        with open(path) as f:
            tokens = f.read().split()
    except FileNotFoundError:
        raise FileNotFoundError(f"Graph file not found: {path}") from None

    if len(tokens) < 4:
        raise InvalidGraphError("Header must contain: order directed vertex_weighted edge_weighted")
    num_nodes, directed, vertex_weighted, edge_weighted = (_parse_number(t) for t in tokens[:4])
    if not isinstance(num_nodes, int) or num_nodes < 0:
        raise InvalidGraphError(f"Invalid order {num_nodes}")
    for name, flag in (("directed", directed), ("vertex_weighted", vertex_weighted),
                       ("edge_weighted", edge_weighted)):
        if flag not in (0, 1):
            raise InvalidGraphError(f"Header flag {name} must be 0 or 1, got {flag}")

    graph = STORAGE_TYPES[storage](num_nodes, directed, vertex_weighted, edge_weighted)
    pos = 4
    if graph.vertex_weighted():
        if len(tokens) < pos + num_nodes:
            raise InvalidGraphError(f"Expected {num_nodes} vertex weights, got {len(tokens) - pos}")
        for i in range(1, num_nodes + 1):
            graph.add_node(i, _parse_number(tokens[pos]))
            pos += 1
    else:
        for i in range(1, num_nodes + 1):
            graph.add_node(i, 0)

    record = 3 if graph.edge_weighted() else 2
    rest = tokens[pos:]
    if len(rest) % record:
        raise InvalidGraphError(f"Incomplete edge record at end of {path}")
    for idx in range(0, len(rest), record):
        u, v = _parse_number(rest[idx]), _parse_number(rest[idx + 1])
        if not isinstance(u, int) or not isinstance(v, int):
            raise InvalidGraphError(f"Edge endpoints must be integers, got ({u}, {v})")
        weight = _parse_number(rest[idx + 2]) if graph.edge_weighted() else 0
        graph.add_edge(u, v, weight)

    logger.debug(f"Loaded {storage} graph from {path}: {num_nodes} vertices, {len(rest) // record} edge records")
    return graph


def save_graph(graph, path):
    with open(path, "w") as f:
        f.write(f"{graph.order()} {int(graph.is_directed())} "
                f"{int(graph.vertex_weighted())} {int(graph.edge_weighted())}\n")
        if graph.vertex_weighted():
            f.write(" ".join(str(graph.vertex_weight(v)) for v in range(1, graph.order() + 1)) + "\n")
        for u, v, w in graph.edges():
            if graph.edge_weighted():
                f.write(f"{u} {v} {w}\n")
            else:
                f.write(f"{u} {v}\n")


def generate_instance(num_nodes, density, num_clusters, directed=False, storage="list", rng=None):
    """
    Builds a random GMST instance.
    A random spanning path is laid down first so the graph is connected, then extra
    edges are added until the requested density is reached. Vertex weights are drawn
    from `num_clusters` distinct values, each value used at least once when possible.
    """
    rng = rng if rng is not None else random.Random()
    if num_clusters < 1 and num_nodes > 0:
        raise ValueError("num_clusters must be at least 1")
    graph = STORAGE_TYPES[storage](num_nodes, directed, True, True)

    palette = rng.sample(range(1, MAX_VERTEX_WEIGHT + 1), min(num_clusters, MAX_VERTEX_WEIGHT))
    assignment = [palette[i % len(palette)] for i in range(num_nodes)] if palette else []
    rng.shuffle(assignment)
    for v, weight in enumerate(assignment, start=1):
        graph.add_node(v, weight)

    nodes = list(range(1, num_nodes + 1))
    rng.shuffle(nodes)
    edges_added = set()
    for i in range(num_nodes - 1):
        u, v = nodes[i], nodes[i + 1]
        graph.add_edge(u, v, rng.randint(1, MAX_EDGE_WEIGHT))
        edges_added.add((min(u, v), max(u, v)))

    total_possible_edges = (num_nodes * (num_nodes - 1)) // 2
    target_edges = min(total_possible_edges, max(num_nodes - 1, round(density * total_possible_edges)))
    while len(edges_added) < target_edges:
        u, v = rng.sample(nodes, 2)
        if (min(u, v), max(u, v)) not in edges_added:
            graph.add_edge(u, v, rng.randint(1, MAX_EDGE_WEIGHT))
            edges_added.add((min(u, v), max(u, v)))

    return graph
