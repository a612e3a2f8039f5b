"""
Parallel Lloyd iteration engine.

One ``LloydEngine`` drives a single training run through

    INITIALIZED -> ITERATING -> {CONVERGED, MAX_ITERS_REACHED}

Each iteration runs an update step (new centroid means) followed by an
assignment step (nearest centroid per point). Both steps are split across a
fixed-size thread pool and joined before the next step starts:

- assignment: points are cut into contiguous slices; each task writes labels
  and distances into its own index range of pre-allocated buffers.
- update: centroid indices are cut into contiguous ranges; each centroid's
  mean is reduced by exactly one task over its members in ascending point
  order, so the result does not depend on thread scheduling.

Centroid arrays are never mutated after they are published. Every update step
builds a fresh read-only ``(K, d)`` array.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple
import numpy as np

from ..utils.logging_config import get_logger
from .distance import Distance, pairwise_distances

logger = get_logger(__name__)

Array2D = np.ndarray


class EngineState(str, Enum):
    """Lifecycle of a training run."""

    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERS_REACHED = "max_iters_reached"

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.CONVERGED, EngineState.MAX_ITERS_REACHED)


_ALLOWED_TRANSITIONS = {
    None: {EngineState.INITIALIZED},
    EngineState.INITIALIZED: {EngineState.ITERATING},
    EngineState.ITERATING: {EngineState.CONVERGED, EngineState.MAX_ITERS_REACHED},
    EngineState.CONVERGED: set(),
    EngineState.MAX_ITERS_REACHED: set(),
}


class EmptyClusterPolicy(str, Enum):
    """What the update step does with a centroid that has no points."""

    RETAIN = "retain"
    RESEED = "reseed"

    @classmethod
    def parse(cls, value: "EmptyClusterPolicy | str") -> "EmptyClusterPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"empty_cluster_policy must be one of {valid}; got {value!r}"
            ) from None


@dataclass
class IterationStats:
    """Per-iteration bookkeeping."""

    iteration: int
    n_changed: int
    n_empty: int
    inertia: float


@dataclass
class LloydResult:
    """Final state of a Lloyd run."""

    centroids: Array2D
    labels: np.ndarray
    distances: np.ndarray
    n_iter: int
    state: EngineState
    history: List[IterationStats] = field(default_factory=list)

    @property
    def cluster_sizes(self) -> np.ndarray:
        return np.bincount(self.labels, minlength=self.centroids.shape[0])

    @property
    def empty_centroids(self) -> int:
        return int(np.count_nonzero(self.cluster_sizes == 0))

    @property
    def inertia(self) -> float:
        return float(np.sum(self.distances))


def contiguous_ranges(n: int, parts: int) -> List[range]:
    """
    Split ``range(n)`` into at most *parts* contiguous, non-empty ranges.

    The first ``n % parts`` ranges hold one extra element.
    """
    if n <= 0:
        return []
    parts = max(1, min(parts, n))
    base, extra = divmod(n, parts)
    ranges = []
    start = 0
    for i in range(parts):
        stop = start + base + (1 if i < extra else 0)
        ranges.append(range(start, stop))
        start = stop
    return ranges


class LloydEngine:
    """
    Runs Lloyd's algorithm from a given set of initial centroids.

    Args:
        X: (n, d) read-only data matrix
        initial_centroids: (K, d) starting centroids (copied)
        metric: Distance used for assignment
        num_threads: Worker pool size; 1 runs every step inline
        max_iter: Iteration budget (update + assignment pairs)
        empty_policy: Handling of centroids that receive no points
    """

    def __init__(
        self,
        X: Array2D,
        initial_centroids: Array2D,
        metric: Distance | str = Distance.EUCLIDEAN,
        *,
        num_threads: int = 1,
        max_iter: int = 100,
        empty_policy: EmptyClusterPolicy | str = EmptyClusterPolicy.RETAIN,
    ):
        if num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")
        if max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {max_iter}")
        self._X = np.asarray(X, dtype=np.float64)
        centroids = np.array(initial_centroids, dtype=np.float64, copy=True)
        if centroids.ndim != 2 or centroids.shape[1] != self._X.shape[1]:
            raise ValueError(
                f"initial_centroids must have shape (K, {self._X.shape[1]}); "
                f"got {centroids.shape}"
            )
        centroids.setflags(write=False)
        self._initial = centroids
        self.metric = Distance.parse(metric)
        self.num_threads = num_threads
        self.max_iter = max_iter
        self.empty_policy = EmptyClusterPolicy.parse(empty_policy)
        self.state: Optional[EngineState] = None

        n, K = self._X.shape[0], centroids.shape[0]
        self._point_ranges = contiguous_ranges(n, num_threads)
        self._centroid_ranges = contiguous_ranges(K, num_threads)
        self._executor: Optional[Executor] = None

    @property
    def n_clusters(self) -> int:
        return self._initial.shape[0]

    def _transition(self, new_state: EngineState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            current = self.state.value if self.state is not None else "none"
            raise RuntimeError(
                f"Invalid engine transition {current} -> {new_state.value}"
            )
        self.state = new_state

    def _run_tasks(
        self, fn: Callable[[range], None], ranges: Sequence[range]
    ) -> None:
        """Run *fn* over every range and wait for all of them (barrier)."""
        if self._executor is None or len(ranges) <= 1:
            for r in ranges:
                fn(r)
            return
        futures = [self._executor.submit(fn, r) for r in ranges]
        # result() re-raises any worker exception in the caller
        for f in futures:
            f.result()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def assign(self, centroids: Array2D) -> Tuple[np.ndarray, np.ndarray]:
        """
        Assign every point to its nearest centroid.

        Returns:
            (labels, distances): int64 labels and each point's distance to its
            assigned centroid. Ties go to the lowest centroid index.
        """
        n = self._X.shape[0]
        labels = np.empty(n, dtype=np.int64)
        dists = np.empty(n, dtype=np.float64)
        X = self._X
        metric = self.metric

        def work(r: range) -> None:
            sl = slice(r.start, r.stop)
            d = pairwise_distances(X[sl], centroids, metric)
            best = np.argmin(d, axis=1)
            labels[sl] = best
            dists[sl] = d[np.arange(best.shape[0]), best]

        self._run_tasks(work, self._point_ranges)
        return labels, dists

    def update(
        self, labels: np.ndarray, centroids: Array2D, distances: np.ndarray
    ) -> Array2D:
        """
        Recompute each centroid as the mean of its assigned points.

        Returns:
            New read-only (K, d) centroid array. Empty centroids follow
            ``empty_policy``.
        """
        K = centroids.shape[0]
        counts = np.bincount(labels, minlength=K)
        # Stable sort keeps point indices ascending inside each cluster
        order = np.argsort(labels, kind="stable")
        offsets = np.concatenate(([0], np.cumsum(counts)))
        new_centroids = np.empty_like(centroids)
        X = self._X

        def work(r: range) -> None:
            for j in r:
                if counts[j] == 0:
                    new_centroids[j] = centroids[j]
                    continue
                members = order[offsets[j]:offsets[j + 1]]
                new_centroids[j] = X[members].mean(axis=0)

        self._run_tasks(work, self._centroid_ranges)

        if self.empty_policy is EmptyClusterPolicy.RESEED and np.any(counts == 0):
            self._reseed(new_centroids, counts, distances)

        new_centroids.setflags(write=False)
        return new_centroids

    def _reseed(
        self, centroids: Array2D, counts: np.ndarray, distances: np.ndarray
    ) -> None:
        """Move each empty centroid onto the farthest not-yet-used point."""
        available = np.ones(distances.shape[0], dtype=bool)
        for j in np.flatnonzero(counts == 0):
            if not available.any():
                break
            # argmax returns the lowest index among ties
            idx = int(np.argmax(np.where(available, distances, -np.inf)))
            centroids[j] = self._X[idx]
            available[idx] = False
            logger.debug("Reseeded empty centroid %d from point %d", j, idx)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> LloydResult:
        """
        Execute the full run and return the terminal state.

        Raises:
            RuntimeError: If the engine has already been run
        """
        self._transition(EngineState.INITIALIZED)
        if self.num_threads > 1:
            with ThreadPoolExecutor(
                max_workers=self.num_threads, thread_name_prefix="kmeans"
            ) as executor:
                self._executor = executor
                try:
                    return self._iterate()
                finally:
                    self._executor = None
        return self._iterate()

    def _iterate(self) -> LloydResult:
        K = self.n_clusters
        centroids = self._initial
        labels, dists = self.assign(centroids)
        history: List[IterationStats] = []

        self._transition(EngineState.ITERATING)
        n_iter = 0
        for t in range(1, self.max_iter + 1):
            n_iter = t
            new_centroids = self.update(labels, centroids, dists)
            new_labels, new_dists = self.assign(new_centroids)
            n_changed = int(np.count_nonzero(new_labels != labels))
            centroids, labels, dists = new_centroids, new_labels, new_dists

            n_empty = int(np.count_nonzero(np.bincount(labels, minlength=K) == 0))
            inertia = float(np.sum(dists))
            history.append(IterationStats(t, n_changed, n_empty, inertia))
            logger.debug(
                "Iteration %d: %d assignments changed, %d empty centroids, inertia=%.6g",
                t, n_changed, n_empty, inertia,
            )
            if n_changed == 0:
                self._transition(EngineState.CONVERGED)
                break
        else:
            self._transition(EngineState.MAX_ITERS_REACHED)

        logger.info(
            "K-Means %s after %d iteration(s) (K=%d, n=%d, threads=%d)",
            self.state.value, n_iter, K, self._X.shape[0], self.num_threads,
        )
        labels.setflags(write=False)
        dists.setflags(write=False)
        return LloydResult(
            centroids=centroids,
            labels=labels,
            distances=dists,
            n_iter=n_iter,
            state=self.state,
            history=history,
        )
