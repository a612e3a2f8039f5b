"""
K-Means trainer and trained model.

Usage:
    from parallel_kmeans import KMeansConfig, KMeansTrainer

    trainer = KMeansTrainer(KMeansConfig(k=3, num_threads=4, seed=7))
    model = trainer.train(dataset)
    cluster = model.predict({"f0": 1.2, "f1": -0.4})
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Union
import numpy as np

from ..config import config
from ..data.dataset import Dataset, Point, PointLike, points_from_array, vectorize
from ..exceptions import InsufficientDataError
from ..utils.logging_config import get_logger
from .distance import Distance, pairwise_distances
from .initialization import Initialisation, initialise_centroids
from .lloyd import EmptyClusterPolicy, EngineState, IterationStats, LloydEngine

logger = get_logger(__name__)

Array2D = np.ndarray


@dataclass
class KMeansConfig:
    """
    Trainer configuration.

    Enum fields accept either the enum member or its string value. Field
    defaults match the documented environment defaults; ``from_env`` applies
    the values actually set in the environment.
    """

    k: int
    max_iter: int = 100
    distance: Union[Distance, str] = Distance.EUCLIDEAN
    initialisation: Union[Initialisation, str] = Initialisation.RANDOM
    num_threads: int = 1
    seed: int = 12345
    empty_cluster_policy: Union[EmptyClusterPolicy, str] = EmptyClusterPolicy.RETAIN

    def __post_init__(self):
        """Validate numeric fields and coerce enum fields."""
        for name in ("k", "max_iter", "num_threads"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
            setattr(self, name, int(value))
        self.seed = int(self.seed)
        self.distance = Distance.parse(self.distance)
        self.initialisation = Initialisation.parse(self.initialisation)
        self.empty_cluster_policy = EmptyClusterPolicy.parse(self.empty_cluster_policy)

    @classmethod
    def from_env(cls, k: int, **overrides: Any) -> "KMeansConfig":
        """Build a config whose unset fields come from ``config.training``."""
        defaults = config.training
        values: Dict[str, Any] = {
            "max_iter": defaults.max_iter,
            "distance": defaults.distance,
            "initialisation": defaults.initialisation,
            "num_threads": defaults.num_threads,
            "seed": defaults.seed,
            "empty_cluster_policy": defaults.empty_cluster_policy,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown KMeansConfig field(s): {sorted(unknown)}")
        values.update(overrides)
        return cls(k=k, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "k": self.k,
            "max_iter": self.max_iter,
            "distance": self.distance.value,
            "initialisation": self.initialisation.value,
            "num_threads": self.num_threads,
            "seed": self.seed,
            "empty_cluster_policy": self.empty_cluster_policy.value,
        }


class KMeansModel:
    """
    Immutable trained K-Means model.

    Holds the final centroids, the distance metric and the feature map of the
    training data, plus metadata about the run that produced it.
    """

    def __init__(
        self,
        centroids: Array2D,
        distance: Distance,
        feature_map: Mapping[str, int],
        *,
        labels: np.ndarray,
        distances: np.ndarray,
        n_iter: int,
        state: EngineState,
        history: Optional[List[IterationStats]] = None,
        config: Optional[KMeansConfig] = None,
    ):
        self._centroids = np.array(centroids, dtype=np.float64, copy=True)
        self._centroids.setflags(write=False)
        self._labels = np.array(labels, dtype=np.int64, copy=True)
        self._labels.setflags(write=False)
        self._distances = np.array(distances, dtype=np.float64, copy=True)
        self._distances.setflags(write=False)
        self._distance = Distance.parse(distance)
        self._feature_map = dict(feature_map)
        self._n_iter = int(n_iter)
        self._state = state
        self._history = tuple(history or ())
        self._config = config

    # Read-only attributes --------------------------------------------------

    @property
    def centroids(self) -> Array2D:
        return self._centroids

    @property
    def distance(self) -> Distance:
        return self._distance

    @property
    def feature_map(self) -> Dict[str, int]:
        return dict(self._feature_map)

    @property
    def labels(self) -> np.ndarray:
        """Cluster assignment of each training point."""
        return self._labels

    @property
    def n_clusters(self) -> int:
        return self._centroids.shape[0]

    @property
    def n_iter(self) -> int:
        return self._n_iter

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def converged(self) -> bool:
        return self._state is EngineState.CONVERGED

    @property
    def history(self) -> tuple:
        return self._history

    @property
    def config(self) -> Optional[KMeansConfig]:
        return self._config

    @property
    def inertia(self) -> float:
        """Sum of each training point's distance to its centroid."""
        return float(np.sum(self._distances))

    @property
    def cluster_sizes(self) -> np.ndarray:
        return np.bincount(self._labels, minlength=self.n_clusters)

    @property
    def empty_centroids(self) -> int:
        """Number of centroids with no training points in the final assignment."""
        return int(np.count_nonzero(self.cluster_sizes == 0))

    # Inference ---------------------------------------------------------------

    def predict(self, point: PointLike) -> int:
        """
        Index of the nearest centroid (lowest index on ties).

        Raises:
            DimensionMismatch: If an array point has the wrong length
        """
        vec = vectorize(point, self._feature_map)
        d = pairwise_distances(vec[None, :], self._centroids, self._distance)
        return int(np.argmin(d[0]))

    def predict_batch(self, data: Union[Dataset, Array2D]) -> np.ndarray:
        """
        Nearest-centroid index for every row of *data*.

        A Dataset is projected through this model's feature map by name, so
        its feature order need not match the training data.
        """
        if isinstance(data, Dataset) and dict(data.feature_map) == self._feature_map:
            X = data.X
        elif isinstance(data, Dataset):
            X = np.stack([vectorize(p, self._feature_map) for p in data])
        else:
            X = np.atleast_2d(np.asarray(data, dtype=np.float64))
        d = pairwise_distances(X, self._centroids, self._distance)
        return np.argmin(d, axis=1).astype(np.int64)

    def get_centroids(self) -> List[Point]:
        """Centroids as named-feature points, in centroid-index order."""
        return points_from_array(self._centroids, self._feature_map)

    # Display -----------------------------------------------------------------

    def summary(self) -> str:
        sizes = ", ".join(str(int(s)) for s in self.cluster_sizes)
        return (
            f"KMeansModel(k={self.n_clusters}, distance={self._distance.value}, "
            f"state={self._state.value}, n_iter={self._n_iter}, "
            f"inertia={self.inertia:.6g}, empty_centroids={self.empty_centroids}, "
            f"cluster_sizes=[{sizes}])"
        )

    def __repr__(self) -> str:
        return (
            f"KMeansModel(k={self.n_clusters}, d={self._centroids.shape[1]}, "
            f"distance={self._distance.value}, state={self._state.value})"
        )


class KMeansTrainer:
    """
    Trains ``KMeansModel`` instances with the parallel Lloyd engine.

    A fresh random generator is created from ``config.seed`` on every call to
    ``train``, so repeated calls on the same dataset return identical models.
    """

    def __init__(self, config: KMeansConfig):
        self.config = config
        self.train_invocations = 0

    def train(self, dataset: Dataset) -> KMeansModel:
        """
        Fit K centroids to *dataset*.

        Raises:
            InsufficientDataError: If the dataset has fewer than K points
        """
        cfg = self.config
        X = dataset.X
        n = X.shape[0]
        if n < cfg.k:
            raise InsufficientDataError(
                f"K ({cfg.k}) cannot exceed number of samples ({n})"
            )
        self.train_invocations += 1

        logger.info(
            "Training K-Means: k=%d n=%d d=%d distance=%s init=%s threads=%d seed=%d",
            cfg.k, n, X.shape[1], cfg.distance.value, cfg.initialisation.value,
            cfg.num_threads, cfg.seed,
        )
        rng = np.random.default_rng(cfg.seed)
        initial = initialise_centroids(
            X, cfg.k, cfg.initialisation, rng, cfg.distance
        )
        engine = LloydEngine(
            X,
            initial,
            cfg.distance,
            num_threads=cfg.num_threads,
            max_iter=cfg.max_iter,
            empty_policy=cfg.empty_cluster_policy,
        )
        result = engine.run()
        if result.empty_centroids:
            logger.debug(
                "%d of %d centroids have no assigned points",
                result.empty_centroids, cfg.k,
            )

        return KMeansModel(
            result.centroids,
            cfg.distance,
            dataset.feature_map,
            labels=result.labels,
            distances=result.distances,
            n_iter=result.n_iter,
            state=result.state,
            history=result.history,
            config=cfg,
        )

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.config.to_dict().items())
        return f"KMeansTrainer({params})"
