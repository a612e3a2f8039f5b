"""
Algorithm Core Library - K-Means training and partition agreement metrics.

This module provides the numerical core with minimal dependencies (numpy,
scipy), separate from the CLI. Designed for reuse and testing.
"""

from .distance import Distance, distance, pairwise_distances
from .initialization import Initialisation, initialise_centroids, plusplus_init, random_init
from .lloyd import (
    EmptyClusterPolicy,
    EngineState,
    IterationStats,
    LloydEngine,
    LloydResult,
)
from .kmeans import KMeansConfig, KMeansModel, KMeansTrainer
from .mutual_information import (
    adjusted_mutual_information,
    contingency_matrix,
    entropy,
    expected_mutual_information,
    mutual_information,
    normalized_mutual_information,
)

__all__ = [
    # Distances
    "Distance",
    "distance",
    "pairwise_distances",
    # Initialisation
    "Initialisation",
    "initialise_centroids",
    "plusplus_init",
    "random_init",
    # Lloyd engine
    "EmptyClusterPolicy",
    "EngineState",
    "IterationStats",
    "LloydEngine",
    "LloydResult",
    # Trainer / model
    "KMeansConfig",
    "KMeansModel",
    "KMeansTrainer",
    # Mutual information
    "adjusted_mutual_information",
    "contingency_matrix",
    "entropy",
    "expected_mutual_information",
    "mutual_information",
    "normalized_mutual_information",
]
