"""
In-memory datasets of named-feature points.

A ``Dataset`` is built once from mappings or a dense array and never mutated
afterwards: the feature map, the dense matrix and the optional ground-truth
labels are all frozen at construction.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
import numpy as np

from ..exceptions import DimensionMismatch

Array2D = np.ndarray


class Point(Mapping[str, float]):
    """Immutable sparse vector: feature name -> value. Missing features are 0.0."""

    __slots__ = ("_features",)

    def __init__(self, features: Mapping[str, float]):
        self._features = MappingProxyType(
            {str(name): float(value) for name, value in features.items()}
        )

    def __getitem__(self, name: str) -> float:
        return self._features[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __hash__(self) -> int:
        return hash(frozenset(self._features.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v:g}" for k, v in self._features.items())
        return f"Point({body})"


PointLike = Union[Point, Mapping[str, float], np.ndarray, Sequence[float]]


def _unique_names(feature_names: Sequence[str]) -> List[str]:
    names = [str(n) for n in feature_names]
    if len(set(names)) != len(names):
        raise ValueError("feature_names must be unique")
    return names


class Dataset:
    """
    Ordered, immutable collection of points sharing one feature universe.

    The feature map assigns each feature name a column index in order of first
    appearance across the points. ``X`` is the dense ``(n, d)`` view used by
    the trainer; it is read-only.

    Args:
        points: Points (or plain mappings) in dataset order
        labels: Optional ground-truth cluster id per point
        feature_names: Optional explicit feature order. Features present in
            the points but missing here raise ``ValueError``.

    Raises:
        ValueError: If the dataset is empty, has no features, or labels do not
            line up with the points
    """

    def __init__(
        self,
        points: Iterable[Mapping[str, float]],
        labels: Optional[Sequence[int]] = None,
        feature_names: Optional[Sequence[str]] = None,
    ):
        pts = tuple(p if isinstance(p, Point) else Point(p) for p in points)
        if not pts:
            raise ValueError("Dataset must contain at least one point")

        if feature_names is not None:
            names = _unique_names(feature_names)
        else:
            names = []
            seen = set()
            for p in pts:
                for name in p:
                    if name not in seen:
                        seen.add(name)
                        names.append(name)
        if not names:
            raise ValueError("Dataset must contain at least one feature")

        feature_map = {name: i for i, name in enumerate(names)}
        X = np.zeros((len(pts), len(names)), dtype=np.float64)
        for row, p in enumerate(pts):
            for name, value in p.items():
                col = feature_map.get(name)
                if col is None:
                    raise ValueError(
                        f"Point {row} has feature {name!r} not in feature_names"
                    )
                X[row, col] = value
        self._init_dense(X, feature_map, labels)
        self._points: Optional[Tuple[Point, ...]] = pts

    def _init_dense(
        self,
        X: Array2D,
        feature_map: Dict[str, int],
        labels: Optional[Sequence[int]],
    ) -> None:
        X.setflags(write=False)
        if labels is not None:
            lab = np.array(labels, dtype=np.int64, copy=True).reshape(-1)
            if lab.shape[0] != X.shape[0]:
                raise ValueError(
                    f"labels length ({lab.shape[0]}) must match number of points ({X.shape[0]})"
                )
            lab.setflags(write=False)
        else:
            lab = None
        self._feature_map = MappingProxyType(feature_map)
        self._X = X
        self._labels = lab

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_dicts(
        cls,
        rows: Iterable[Mapping[str, float]],
        labels: Optional[Sequence[int]] = None,
    ) -> "Dataset":
        """Build a dataset from feature-name -> value mappings."""
        return cls(rows, labels=labels)

    @classmethod
    def from_array(
        cls,
        X: Array2D,
        feature_names: Optional[Sequence[str]] = None,
        labels: Optional[Sequence[int]] = None,
    ) -> "Dataset":
        """
        Build a dataset from a dense ``(n, d)`` array.

        Columns are named ``f0 .. f{d-1}`` unless *feature_names* is given.
        Every column appears in the feature map even when it is all zeros.
        The array is copied as-is; per-row Points are only built on first
        access.
        """
        arr = np.array(X, dtype=np.float64, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"X must be 2-D (n_samples, n_features); got {arr.shape}")
        n, d = arr.shape
        if n == 0:
            raise ValueError("Dataset must contain at least one point")
        names = _unique_names(feature_names) if feature_names is not None else [
            f"f{i}" for i in range(d)
        ]
        if len(names) != d:
            raise DimensionMismatch(
                f"{len(names)} feature names given for {d} columns"
            )
        if d == 0:
            raise ValueError("Dataset must contain at least one feature")

        dataset = cls.__new__(cls)
        dataset._init_dense(arr, {name: i for i, name in enumerate(names)}, labels)
        dataset._points = None
        return dataset

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def X(self) -> Array2D:
        """Dense read-only ``(n, d)`` matrix in feature-map column order."""
        return self._X

    @property
    def feature_map(self) -> Mapping[str, int]:
        return self._feature_map

    @property
    def feature_names(self) -> List[str]:
        return list(self._feature_map)

    @property
    def labels(self) -> Optional[np.ndarray]:
        return self._labels

    @property
    def n_features(self) -> int:
        return self._X.shape[1]

    def _rows(self) -> Tuple[Point, ...]:
        if self._points is None:
            self._points = tuple(points_from_array(self._X, self._feature_map))
        return self._points

    def __len__(self) -> int:
        return self._X.shape[0]

    def __getitem__(self, idx: int) -> Point:
        return self._rows()[idx]

    def __iter__(self) -> Iterator[Point]:
        return iter(self._rows())

    def __repr__(self) -> str:
        labelled = "labelled" if self._labels is not None else "unlabelled"
        return f"Dataset(n={len(self)}, d={self.n_features}, {labelled})"

    def vectorize(self, point: PointLike) -> np.ndarray:
        """
        Map a point into this dataset's dense feature space.

        Mappings are projected by name (unknown features are dropped). Arrays
        and sequences must already have length ``n_features``.

        Raises:
            DimensionMismatch: If an array has the wrong length
        """
        return vectorize(point, self._feature_map)


def vectorize(point: PointLike, feature_map: Mapping[str, int]) -> np.ndarray:
    """Project *point* onto *feature_map* as a dense float64 vector."""
    d = len(feature_map)
    if isinstance(point, Mapping):
        vec = np.zeros(d, dtype=np.float64)
        for name, value in point.items():
            col = feature_map.get(name)
            if col is not None:
                vec[col] = float(value)
        return vec
    vec = np.asarray(point, dtype=np.float64).reshape(-1)
    if vec.shape[0] != d:
        raise DimensionMismatch(
            f"Vector has {vec.shape[0]} features, expected {d}"
        )
    return vec


def points_from_array(X: Array2D, feature_map: Mapping[str, int]) -> List[Point]:
    """Wrap each row of *X* as a Point named by *feature_map*."""
    names: Dict[int, str] = {i: name for name, i in feature_map.items()}
    return [
        Point({names[j]: float(v) for j, v in enumerate(row)})
        for row in np.asarray(X, dtype=np.float64)
    ]
