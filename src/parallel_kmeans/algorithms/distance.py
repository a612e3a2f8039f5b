"""
Distance metrics over dense feature vectors.

Every function here is pure: no module state, no in-place writes to its
inputs, so it is safe to call from many worker threads at once.

Pairwise computations fill the ``(m, k)`` result one centroid column at a
time, so temporaries stay ``(m, d)``. Each entry is reduced over its own point
only (no BLAS matrix products), so a point's distances are bit-identical
however the points are batched across workers.
"""

from __future__ import annotations

from enum import Enum
import numpy as np

from ..exceptions import DimensionMismatch

Array2D = np.ndarray


class Distance(str, Enum):
    """Supported distance metrics."""

    EUCLIDEAN = "euclidean"
    L1 = "l1"
    COSINE = "cosine"
    # Squared L2 through the inner-product expansion |a|^2 + |b|^2 - 2<a,b>.
    INNER_PRODUCT = "inner_product"

    @classmethod
    def parse(cls, value: "Distance | str") -> "Distance":
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"distance must be one of {valid}; got {value!r}") from None


def _check_dims(X: Array2D, C: Array2D) -> None:
    if X.shape[1] != C.shape[1]:
        raise DimensionMismatch(
            f"Feature dimension mismatch: {X.shape[1]} vs {C.shape[1]}"
        )


def pairwise_distances(X: Array2D, C: Array2D, metric: Distance | str) -> Array2D:
    """
    Distances from every row of *X* to every row of *C*.

    Args:
        X: (m, d) points
        C: (k, d) centroids
        metric: Distance metric

    Returns:
        (m, k) array of non-negative distances

    Raises:
        DimensionMismatch: If X and C have different feature dimensions
    """
    metric = Distance.parse(metric)
    X = np.atleast_2d(np.asarray(X, dtype=np.float64))
    C = np.atleast_2d(np.asarray(C, dtype=np.float64))
    _check_dims(X, C)

    m, k = X.shape[0], C.shape[0]
    out = np.empty((m, k), dtype=np.float64)

    if metric in (Distance.EUCLIDEAN, Distance.L1):
        for j in range(k):
            diff = X - C[j]  # (m, d)
            if metric is Distance.L1:
                out[:, j] = np.sum(np.abs(diff), axis=1)
            else:
                out[:, j] = np.sqrt(np.sum(diff * diff, axis=1))
        return out

    cross = out
    for j in range(k):
        cross[:, j] = np.sum(X * C[j], axis=1)
    X_sq = np.sum(X * X, axis=1)[:, None]  # (m, 1)
    C_sq = np.sum(C * C, axis=1)[None, :]  # (1, k)

    if metric is Distance.INNER_PRODUCT:
        return np.maximum(X_sq + C_sq - 2.0 * cross, 0.0)

    # Cosine
    norms = np.sqrt(X_sq) * np.sqrt(C_sq)
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0.0, cross / np.where(norms > 0.0, norms, 1.0), 0.0)
    dists = np.clip(1.0 - sims, 0.0, 2.0)
    # Two zero vectors are the same point.
    both_zero = (X_sq == 0.0) & (C_sq == 0.0)
    return np.where(both_zero, 0.0, dists)


def distance(a: np.ndarray, b: np.ndarray, metric: Distance | str) -> float:
    """
    Distance between two vectors.

    Raises:
        DimensionMismatch: If the vectors have different lengths
    """
    a = np.asarray(a, dtype=np.float64).reshape(-1)
    b = np.asarray(b, dtype=np.float64).reshape(-1)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(
            f"Vector length mismatch: {a.shape[0]} vs {b.shape[0]}"
        )
    return float(pairwise_distances(a[None, :], b[None, :], metric)[0, 0])
