"""
Command-line demo: generate gaussian clusters, train K-Means, report NMI/AMI.

Usage:
    parallel-kmeans --samples 1000 --k 5 --threads 4 --init plusplus

    # Defaults for --max-iter, --threads, --seed, --distance, --init and
    # --empty-policy come from KMEANS_* environment variables (.env supported).
    parallel-kmeans --distance cosine --log-level DEBUG
"""

import argparse
import sys
import time
from typing import List, Optional

from .algorithms.distance import Distance
from .algorithms.initialization import Initialisation
from .algorithms.kmeans import KMeansConfig, KMeansTrainer
from .algorithms.lloyd import EmptyClusterPolicy
from .config import config
from .data.generators import gaussian_clusters
from .evaluation.clustering_evaluator import ClusteringEvaluator
from .utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = config.training
    parser = argparse.ArgumentParser(
        prog="parallel-kmeans",
        description="Train K-Means on synthetic gaussian clusters and evaluate it.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--samples", type=int, default=500, help="Number of points to generate")
    parser.add_argument("--k", type=int, default=5, help="Number of centroids")
    parser.add_argument(
        "--data-seed", type=int, default=0, help="Seed for the synthetic data"
    )
    parser.add_argument("--max-iter", type=int, default=defaults.max_iter)
    parser.add_argument("--threads", type=int, default=defaults.num_threads)
    parser.add_argument("--seed", type=int, default=defaults.seed, help="Training seed")
    parser.add_argument(
        "--distance",
        choices=[d.value for d in Distance],
        default=defaults.distance,
    )
    parser.add_argument(
        "--init",
        choices=[i.value for i in Initialisation],
        default=defaults.initialisation,
    )
    parser.add_argument(
        "--empty-policy",
        choices=[p.value for p in EmptyClusterPolicy],
        default=defaults.empty_cluster_policy,
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        setup_logging(args.log_level)
        dataset = gaussian_clusters(args.samples, seed=args.data_seed)
        trainer = KMeansTrainer(
            KMeansConfig(
                k=args.k,
                max_iter=args.max_iter,
                distance=args.distance,
                initialisation=args.init,
                num_threads=args.threads,
                seed=args.seed,
                empty_cluster_policy=args.empty_policy,
            )
        )
        start = time.perf_counter()
        model = trainer.train(dataset)
        elapsed = time.perf_counter() - start
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    evaluation = ClusteringEvaluator().evaluate_model(model, dataset)

    print("=" * 60)
    print(model.summary())
    print(f"Training time: {elapsed:.3f}s")
    print("=" * 60)
    for idx, centroid in enumerate(model.get_centroids()):
        coords = ", ".join(f"{name}={value:.3f}" for name, value in centroid.items())
        print(f"  centroid {idx}: {coords}")
    print("=" * 60)
    print(evaluation.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
