"""
Centroid initialisation strategies.

Both strategies draw only from the ``numpy.random.Generator`` they are handed,
so a fixed seed and dataset order always yield the same initial centroids.
"""

from __future__ import annotations

from enum import Enum
import numpy as np

from ..exceptions import InsufficientDataError
from ..utils.logging_config import get_logger
from .distance import Distance, pairwise_distances

logger = get_logger(__name__)

Array2D = np.ndarray


class Initialisation(str, Enum):
    """Supported centroid initialisation strategies."""

    RANDOM = "random"
    PLUSPLUS = "plusplus"

    @classmethod
    def parse(cls, value: "Initialisation | str") -> "Initialisation":
        """Accept an enum member or its string value ("kmeans++" is an alias)."""
        if isinstance(value, cls):
            return value
        key = str(value).lower()
        if key in ("kmeans++", "k-means++", "kmeanspp"):
            return cls.PLUSPLUS
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"initialisation must be one of {valid}; got {value!r}"
            ) from None


def _check_size(n: int, K: int) -> None:
    if K < 1:
        raise ValueError(f"K must be >= 1, got {K}")
    if n < K:
        raise InsufficientDataError(
            f"K ({K}) cannot exceed number of samples ({n})"
        )


def random_init(X: Array2D, K: int, rng: np.random.Generator) -> Array2D:
    """Return (K, d) centroids copied from K distinct rows drawn uniformly."""
    n = X.shape[0]
    _check_size(n, K)
    idx = rng.choice(n, size=K, replace=False)
    return np.array(X[idx], dtype=np.float64, copy=True)


def plusplus_init(
    X: Array2D,
    K: int,
    rng: np.random.Generator,
    metric: Distance | str = Distance.EUCLIDEAN,
) -> Array2D:
    """
    Return (K, d) initial centroids chosen by the k-means++ rule.

    The first centroid is a uniform draw. Each later centroid is drawn with
    probability proportional to a point's squared distance to its nearest
    already-chosen centroid. ``min_sq`` is refreshed against the newest
    centroid only, so choosing all K costs one pass over the data each.

    When every remaining point sits on a chosen centroid (total weight 0) the
    draw falls back to uniform over the rows not yet chosen.
    """
    n, d = X.shape
    _check_size(n, K)
    centroids = np.empty((K, d), dtype=np.float64)
    chosen = np.zeros(n, dtype=bool)

    idx = int(rng.integers(0, n))
    centroids[0] = X[idx]
    chosen[idx] = True
    min_sq = pairwise_distances(X, centroids[0:1], metric)[:, 0] ** 2

    for k in range(1, K):
        weights = np.where(chosen, 0.0, min_sq)
        total = weights.sum()
        if total > 0.0 and np.isfinite(total):
            idx = int(rng.choice(n, p=weights / total))
        else:
            remaining = np.flatnonzero(~chosen)
            idx = int(rng.choice(remaining))
        centroids[k] = X[idx]
        chosen[idx] = True
        new_sq = pairwise_distances(X, centroids[k:k + 1], metric)[:, 0] ** 2
        min_sq = np.minimum(min_sq, new_sq)

    return centroids


def initialise_centroids(
    X: Array2D,
    K: int,
    strategy: Initialisation | str,
    rng: np.random.Generator,
    metric: Distance | str = Distance.EUCLIDEAN,
) -> Array2D:
    """Dispatch to the configured initialisation strategy."""
    strategy = Initialisation.parse(strategy)
    logger.debug("Initialising %d centroids with %s", K, strategy.value)
    if strategy is Initialisation.PLUSPLUS:
        return plusplus_init(X, K, rng, metric)
    return random_init(X, K, rng)
