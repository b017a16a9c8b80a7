import os
import random
import argparse
import pickle
import logging
from time import time
from datetime import datetime

import pandas as pd
import psutil

from gmstinstance import generate_instance
from clusterkruskal import solve_greedy, solve_randomized
from reactivesearch import ReactiveSearch


# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(prog='GMST Benchmark Comparison', usage='%(prog)s [options]')
    parser.add_argument(
        "--num-instances",
        type=int,
        default=5,
        help="Number of instances to generate (default: 5)"
    )
    parser.add_argument(
        "--num-nodes",
        type=int,
        default=50,
        help="Number of nodes in each graph (default: 50)"
    )
    parser.add_argument(
        "--num-clusters",
        type=int,
        default=10,
        help="Number of distinct vertex weights in each graph (default: 10)"
    )
    parser.add_argument(
        "--density",
        type=float,
        default=0.3,
        help="Edge density of the graph (default: 0.3)"
    )
    parser.add_argument(
        "--storage",
        choices=["list", "matrix"],
        default="list",
        help="Graph storage used for the instances (default: list)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="benchmark_results",
        help="Directory to save results and instances (default: benchmark_results)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output (default: False)"
    )
    return parser.parse_args(argv)


def generate_instances(num_instances, num_nodes, num_clusters, density, seed, storage="list"):
    rng = random.Random(seed)
    instances = []
    for i in range(num_instances):
        instance_seed = rng.randint(0, 1000000)
        instance = generate_instance(num_nodes, density, num_clusters, storage=storage,
                                     rng=random.Random(instance_seed))
        instances.append((instance, instance_seed))
        logger.info(f"Generated instance {i+1}/{num_instances} with seed {instance_seed}")
    return instances


def save_instances(instances, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    instances_path = os.path.join(output_dir, "instances.pkl")
    with open(instances_path, 'wb') as f:
        pickle.dump(instances, f)
    logger.info(f"Saved instances to {instances_path}")
    return instances_path


def load_instances(output_dir):
    instances_path = os.path.join(output_dir, "instances.pkl")
    if not os.path.exists(instances_path):
        raise FileNotFoundError(f"No instances found at {instances_path}")
    with open(instances_path, 'rb') as f:
        instances = pickle.load(f)
    logger.info(f"Loaded {len(instances)} instances from {instances_path}")
    return instances


def run_experiment(instance, seed, config, verbose=False):
    rng = random.Random(seed)
    algorithm = config["algorithm"]
    try:
        process = psutil.Process()
        rss_before = process.memory_info().rss
    except psutil.Error:
        process = None
        rss_before = 0

    start = time()
    greedy_rounds = None
    if algorithm == "greedy":
        solution = solve_greedy(instance)
    elif algorithm == "randomized":
        solution = solve_randomized(instance, config["alpha"], rng)
    elif algorithm == "reactive":
        search = ReactiveSearch(
            rounds=config["rounds"],
            initial_probability=config["initial_probability"],
            alpha=config["alpha"],
            rng=rng,
            verbose=verbose
        )
        solution = search.solve(instance)
        greedy_rounds = search.greedy_rounds
    else:
        raise ValueError(f"Unknown algorithm {algorithm!r}")
    total_time = time() - start

    rss_delta_mb = (process.memory_info().rss - rss_before) / 1024 / 1024 if process else 0.0

    result = {
        "instance_seed": seed,
        "num_nodes": instance.order(),
        "algorithm": algorithm,
        "alpha": config.get("alpha"),
        "rounds": config.get("rounds"),
        "greedy_rounds": greedy_rounds,
        "total_time": total_time,
        "rss_delta_mb": rss_delta_mb,
    }
    result.update(solution.to_dict())
    return result


def analyze_results(results):
    df_all = pd.DataFrame(results).copy()

    # cost relative to the greedy optimum of the same instance
    greedy_cost = (df_all[df_all["algorithm"] == "greedy"]
                   .groupby("instance_seed")["cost"].min())
    df_all["gap_to_greedy"] = df_all["cost"] - df_all["instance_seed"].map(greedy_cost)

    summary = (df_all
        .groupby("algorithm", dropna=False)
        .agg(
            cost_mean=("cost", "mean"),
            cost_std=("cost", "std"),
            gap_mean=("gap_to_greedy", "mean"),
            spanning_rate=("spanning", "mean"),
            time_mean=("total_time", "mean"),
            runs=("cost", "size"),
        ).round(4)
        .reset_index()
    )
    summary["spanning_rate"] = (100 * summary["spanning_rate"]).round(1)
    return summary


CONFIGS = [
    {"algorithm": "greedy"},
    {"algorithm": "randomized", "alpha": 0.5},
    {"algorithm": "reactive", "alpha": 0.5, "rounds": 50, "initial_probability": 0.5},
]


def main(argv=None):
    args = parse_arguments(argv)

    output_dir = os.path.join(args.output_dir, datetime.now().strftime("%Y%m%d_%H%M%S"))
    os.makedirs(output_dir, exist_ok=True)

    instances = generate_instances(args.num_instances, args.num_nodes, args.num_clusters,
                                   args.density, args.seed, args.storage)
    save_instances(instances, output_dir)

    results = []
    for config_idx, config in enumerate(CONFIGS):
        logger.info(f"Running configuration {config_idx+1}/{len(CONFIGS)}: {config}")
        for instance_idx, (instance, instance_seed) in enumerate(instances):
            try:
                result = run_experiment(instance, instance_seed, config, args.verbose)
            except ValueError as e:
                logger.error(f"Error processing instance {instance_idx+1}: {e}")
                continue
            results.append(result)
            logger.info(
                f"Completed instance {instance_idx+1} ({config['algorithm']}): "
                f"Cost={result['cost']}, Edges={result['num_edges']}/{max(0, result['num_clusters'] - 1)}, "
                f"Time={result['total_time']:.4f}s"
            )

    final_path = os.path.join(output_dir, "results.csv")
    pd.DataFrame(results).to_csv(final_path, index=False)
    logger.info(f"Saved final results to {final_path}")

    if results:
        summary = analyze_results(results)
        summary_path = os.path.join(output_dir, "summary.csv")
        summary.to_csv(summary_path, index=False)
        logger.info(f"Saved summary statistics to {summary_path}")
        print("\nSummary Statistics:\n", summary)
    return results


if __name__ == "__main__":
    main()
