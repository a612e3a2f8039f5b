"""
Dataset types and synthetic data generators.
"""

from .dataset import Dataset, Point, vectorize
from .generators import gaussian_clusters, two_well_separated_clusters

__all__ = [
    "Dataset",
    "Point",
    "vectorize",
    "gaussian_clusters",
    "two_well_separated_clusters",
]
