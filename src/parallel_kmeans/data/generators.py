"""
Synthetic labelled clustering datasets.

Used by the CLI demo and by the test-suite to produce data with a known
ground-truth partition.
"""

from __future__ import annotations

from typing import Optional, Sequence
import numpy as np

from .dataset import Dataset

# Five well-spread 2-D centres with differing spreads.
DEFAULT_CENTERS = np.array(
    [
        [0.0, 0.0],
        [5.0, 5.0],
        [2.5, 2.5],
        [10.0, 10.0],
        [-1.0, 0.0],
    ]
)
DEFAULT_STDS = np.array([1.0, 1.0, 0.5, 0.8, 1.2])


def gaussian_clusters(
    n_samples: int,
    centers: Optional[Sequence[Sequence[float]]] = None,
    stds: Optional[Sequence[float]] = None,
    *,
    seed: int = 0,
) -> Dataset:
    """
    Sample isotropic gaussian blobs with ground-truth labels.

    Samples are dealt round-robin across the centres (so cluster sizes differ
    by at most one) and then shuffled with the same seeded generator.

    Args:
        n_samples: Total number of points
        centers: ``(n_clusters, d)`` cluster means (default: five 2-D centres)
        stds: Per-cluster standard deviation (default: one per default centre,
            or 1.0 for custom centres)
        seed: Random seed

    Returns:
        Dataset with features ``f0 .. f{d-1}`` and labels ``0 .. n_clusters-1``

    Raises:
        ValueError: If n_samples < 1 or stds does not match centers
    """
    if n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {n_samples}")

    if centers is None:
        mu = DEFAULT_CENTERS
        sigma = DEFAULT_STDS if stds is None else np.asarray(stds, dtype=np.float64)
    else:
        mu = np.asarray(centers, dtype=np.float64)
        if mu.ndim != 2:
            raise ValueError(f"centers must be 2-D (n_clusters, d); got {mu.shape}")
        sigma = np.ones(mu.shape[0]) if stds is None else np.asarray(stds, dtype=np.float64)
    if sigma.shape != (mu.shape[0],):
        raise ValueError(
            f"stds must have one entry per centre ({mu.shape[0]}), got {sigma.shape}"
        )

    rng = np.random.default_rng(seed)
    labels = np.arange(n_samples) % mu.shape[0]
    rng.shuffle(labels)
    noise = rng.standard_normal((n_samples, mu.shape[1]))
    X = mu[labels] + noise * sigma[labels, None]
    return Dataset.from_array(X, labels=labels)


def two_well_separated_clusters(n_per_cluster: int = 50, *, seed: int = 0) -> Dataset:
    """Two tight 2-D blobs centred on (0, 0) and (10, 10)."""
    return gaussian_clusters(
        2 * n_per_cluster,
        centers=[[0.0, 0.0], [10.0, 10.0]],
        stds=[0.5, 0.5],
        seed=seed,
    )
