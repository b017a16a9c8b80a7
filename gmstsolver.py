import sys
import random
import logging
import argparse
from time import time

from gmstinstance import load_graph
from clusterkruskal import solve_greedy, solve_randomized, DEFAULT_ALPHA
from reactivesearch import ReactiveSearch, DEFAULT_ROUNDS, DEFAULT_INITIAL_PROBABILITY

logger = logging.getLogger(__name__)

ALGORITHMS = ["greedy", "randomized", "reactive"]


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(prog='GMST solver', usage='%(prog)s (-d | -p) (-m | -l) FILE [options]')
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "-d", "--describe",
        action="store_true",
        help="Print the description of the graph (degree, order, flags, completeness)"
    )
    mode.add_argument(
        "-p", "--solve",
        action="store_true",
        help="Solve the generalized minimum spanning tree problem on the graph"
    )
    storage = parser.add_mutually_exclusive_group(required=True)
    storage.add_argument(
        "-m", "--matrix",
        dest="storage",
        action="store_const",
        const="matrix",
        help="Store the graph as an adjacency matrix"
    )
    storage.add_argument(
        "-l", "--list",
        dest="storage",
        action="store_const",
        const="list",
        help="Store the graph as adjacency lists"
    )
    parser.add_argument(
        "file",
        help="Graph description file"
    )
    parser.add_argument(
        "--algorithm",
        choices=ALGORITHMS,
        default=None,
        help="GMST algorithm to run (default: ask interactively)"
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=DEFAULT_ALPHA,
        help=f"Fraction of the edge list shuffled by the randomized algorithm (default: {DEFAULT_ALPHA})"
    )
    parser.add_argument(
        "--rounds",
        type=int,
        default=DEFAULT_ROUNDS,
        help=f"Number of rounds of the reactive algorithm (default: {DEFAULT_ROUNDS})"
    )
    parser.add_argument(
        "--initial-probability",
        type=float,
        default=DEFAULT_INITIAL_PROBABILITY,
        help=f"Initial probability of the greedy rule in the reactive algorithm (default: {DEFAULT_INITIAL_PROBABILITY})"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: unseeded)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output (default: False)"
    )
    return parser.parse_args(argv)


def ask_algorithm():
    print("\nSelect the algorithm:")
    print("1 - Greedy")
    print("2 - Randomized")
    print("3 - Reactive")
    choice = input("Enter your choice (1-3): ").strip()
    if choice not in ("1", "2", "3"):
        return None
    return ALGORITHMS[int(choice) - 1]


def run_gmst(graph, algorithm, args):
    rng = random.Random(args.seed)
    start = time()
    if algorithm == "greedy":
        solution = solve_greedy(graph)
    elif algorithm == "randomized":
        solution = solve_randomized(graph, args.alpha, rng)
    else:
        search = ReactiveSearch(
            rounds=args.rounds,
            initial_probability=args.initial_probability,
            alpha=args.alpha,
            rng=rng,
            verbose=args.verbose
        )
        solution = search.solve(graph)
    elapsed = time() - start

    print(f"\nGMST ({solution.num_edges} edges):")
    for u, v, w in solution:
        print(f"{u}-{v} ({w})")
    print(f"Total cost: {solution.cost}")
    print(f"Execution time: {elapsed:.6f}s\n")
    if not solution.is_spanning():
        print(f"Warning: only {solution.num_edges} of {solution.num_clusters - 1} "
              f"cluster-connecting edges found, the clusters are not all connected.")
    return solution


def main(argv=None):
    args = parse_arguments(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(message)s')
    try:
        graph = load_graph(args.file, storage=args.storage)
        if args.describe:
            graph.print_description()
            return 0

        algorithm = args.algorithm or ask_algorithm()
        if algorithm is None:
            print("Invalid option!")
            return 1
        run_gmst(graph, algorithm, args)
    except Exception as e:
        logger.debug("Solver failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
