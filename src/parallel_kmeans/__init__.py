"""
parallel-kmeans - Core Package

K-Means clustering with a multi-threaded Lloyd iteration engine.

This package provides:
- Distance metrics and centroid initialisers (Random, K-Means++)
- A parallel trainer producing immutable models for inference
- Mutual-information evaluation (NMI / AMI) against ground truth
"""

__version__ = "0.1.0"

from .algorithms import (
    Distance,
    EmptyClusterPolicy,
    EngineState,
    Initialisation,
    KMeansConfig,
    KMeansModel,
    KMeansTrainer,
)
from .data import Dataset, Point, gaussian_clusters, two_well_separated_clusters
from .evaluation import ClusteringEvaluation, ClusteringEvaluator
from .exceptions import DimensionMismatch, InsufficientDataError, SizeMismatchError

# Explicitly import subpackages to ensure they're discoverable
from . import algorithms
from . import data
from . import evaluation
from . import utils

__all__ = [
    "Distance",
    "EmptyClusterPolicy",
    "EngineState",
    "Initialisation",
    "KMeansConfig",
    "KMeansModel",
    "KMeansTrainer",
    "Dataset",
    "Point",
    "gaussian_clusters",
    "two_well_separated_clusters",
    "ClusteringEvaluation",
    "ClusteringEvaluator",
    "DimensionMismatch",
    "InsufficientDataError",
    "SizeMismatchError",
    "algorithms",
    "data",
    "evaluation",
    "utils",
]
