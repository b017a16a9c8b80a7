import abc
import csv
import random
import logging
from datetime import datetime

from clusterkruskal import (GMSTSolution, partition_clusters, solve_greedy, solve_randomized,
                            vertex_weights, DEFAULT_ALPHA)

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 50
DEFAULT_INITIAL_PROBABILITY = 0.5


class ConstructionRule(abc.ABC):
    """
    A way of building one GMST solution for a graph.
    """
    name = None

    @abc.abstractmethod
    def construct(self, graph, rng):
        """
        Builds and returns a GMSTSolution for the graph.
        """
        pass


class GreedyRule(ConstructionRule):
    """
    Deterministic Kruskal over clusters. The generator is ignored.
    """
    name = "greedy"

    def construct(self, graph, rng):
        return solve_greedy(graph)


class RandomizedRule(ConstructionRule):
    """
    Cluster sweep over a partially shuffled edge order.
    """
    name = "randomized"

    def __init__(self, alpha=DEFAULT_ALPHA):
        if not 0 <= alpha <= 1:
            raise ValueError(f"alpha must be in [0, 1], got {alpha}")
        self.alpha = alpha

    def construct(self, graph, rng):
        return solve_randomized(graph, self.alpha, rng)


class ReactiveSearch:
    """
    A reactive GRASP with two arms. Every round flips a coin weighted by the current
    greedy probability p and runs either the greedy or the randomized construction.
    A round that does not strictly improve the best cost counts as a failure for the
    rule that ran, and once any failure exists p is reset to
    1 - failures_greedy / (failures_greedy + failures_random).
    """
    __slots__ = ['rounds', 'initial_probability', 'greedy_rule', 'randomized_rule', 'rng', 'verbose',
                 'round_log_file', 'probability', 'failures_greedy', 'failures_random', 'greedy_rounds',
                 'random_rounds', 'best_solution', 'best_cost', 'history']

    def __init__(self, rounds=DEFAULT_ROUNDS, initial_probability=DEFAULT_INITIAL_PROBABILITY,
                 alpha=DEFAULT_ALPHA, rng=None, verbose=False, round_log_file=None):
        """
        Args:
            rounds: Number of constructions to run.
            initial_probability: Starting probability of picking the greedy rule.
            alpha: Shuffle fraction handed to the randomized rule.
            rng: random.Random used for the coin flips and the shuffles.
            verbose: Print one line per round.
            round_log_file: Optional CSV path receiving one row per round.
        """
        if rounds < 0:
            raise ValueError(f"rounds must be non-negative, got {rounds}")
        if not 0 <= initial_probability <= 1:
            raise ValueError(f"initial_probability must be in [0, 1], got {initial_probability}")
        self.rounds = rounds
        self.initial_probability = initial_probability
        self.greedy_rule = GreedyRule()
        self.randomized_rule = RandomizedRule(alpha)
        self.rng = rng if rng is not None else random.Random()
        self.verbose = verbose
        self.round_log_file = round_log_file
        self._reset()

    def _reset(self):
        self.probability = self.initial_probability
        self.failures_greedy = 0
        self.failures_random = 0
        self.greedy_rounds = 0
        self.random_rounds = 0
        self.best_solution = None
        self.best_cost = float("inf")
        self.history = []

    def _init_round_logger(self):
        headers = ["Round", "Rule", "Cost", "NumEdges", "Improved", "BestCost", "GreedyProbability", "Timestamp"]
        with open(self.round_log_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(headers)

    def _log_round(self, record):
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        with open(self.round_log_file, 'a', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([record["round"], record["rule"], record["cost"], record["num_edges"],
                             record["improved"], record["best_cost"], record["probability"], timestamp])

    def solve(self, graph):
        """
        Runs the fixed number of rounds and returns the best solution found.
        The result is empty when no round produced any edge.
        """
        self._reset()
        if self.round_log_file:
            self._init_round_logger()

        _, num_clusters = partition_clusters(vertex_weights(graph))
        for round_idx in range(self.rounds):
            use_greedy = self.rng.random() < self.probability
            rule = self.greedy_rule if use_greedy else self.randomized_rule
            solution = rule.construct(graph, self.rng)
            cost = solution.cost
            if use_greedy:
                self.greedy_rounds += 1
            else:
                self.random_rounds += 1

            improved = not solution.is_empty() and cost < self.best_cost
            if improved:
                self.best_solution = solution
                self.best_cost = cost
            elif use_greedy:
                self.failures_greedy += 1
            else:
                self.failures_random += 1

            failures = self.failures_greedy + self.failures_random
            if failures > 0:
                self.probability = 1.0 - self.failures_greedy / failures

            record = {
                "round": round_idx + 1,
                "rule": rule.name,
                "cost": cost,
                "num_edges": solution.num_edges,
                "improved": improved,
                "best_cost": self.best_cost,
                "probability": self.probability,
            }
            self.history.append(record)
            if self.round_log_file:
                self._log_round(record)
            if self.verbose:
                print(f"Round {round_idx + 1}: {rule.name}, cost {cost}"
                      f"{' (new best)' if improved else ''}, p(greedy) = {self.probability:.3f}")

        logger.debug(f"Reactive search finished: best cost {self.best_cost}, "
                     f"{self.greedy_rounds} greedy / {self.random_rounds} randomized rounds, "
                     f"failures {self.failures_greedy}/{self.failures_random}")

        if self.best_solution is None:
            return GMSTSolution([], num_clusters)
        return self.best_solution


def solve_reactive(graph, rounds=DEFAULT_ROUNDS, initial_probability=DEFAULT_INITIAL_PROBABILITY,
                   alpha=DEFAULT_ALPHA, rng=None):
    return ReactiveSearch(rounds, initial_probability, alpha, rng).solve(graph)
