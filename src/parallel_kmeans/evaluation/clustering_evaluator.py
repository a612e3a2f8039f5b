"""
Clustering evaluation against ground-truth labels.

Wraps the mutual-information scores in a small immutable record with a
human-readable summary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence, Union
import numpy as np

from ..algorithms.kmeans import KMeansModel
from ..algorithms.mutual_information import (
    adjusted_mutual_information,
    normalized_mutual_information,
)
from ..data.dataset import Dataset
from ..exceptions import SizeMismatchError
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

LabelsIn = Union[Sequence[int], np.ndarray]


@dataclass(frozen=True)
class ClusteringEvaluation:
    """Agreement between a predicted and a ground-truth partition."""

    nmi: float
    ami: float
    n_samples: int
    n_predicted_clusters: int
    n_true_clusters: int

    def summary(self) -> str:
        return (
            f"Clustering evaluation ({self.n_samples} points, "
            f"{self.n_predicted_clusters} predicted vs {self.n_true_clusters} true clusters)\n"
            f"  Normalized Mutual Information: {self.nmi:.4f}\n"
            f"  Adjusted Mutual Information:   {self.ami:.4f}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return self.summary()


class ClusteringEvaluator:
    """Computes NMI and AMI for a clustering."""

    def evaluate(
        self, predicted: LabelsIn, true: LabelsIn
    ) -> ClusteringEvaluation:
        """
        Compare predicted cluster ids with ground-truth ids.

        Args:
            predicted: Predicted cluster id per point
            true: Ground-truth cluster id per point, same point order

        Returns:
            ClusteringEvaluation

        Raises:
            SizeMismatchError: If the two sequences differ in length
        """
        pred = np.asarray(predicted).reshape(-1)
        gt = np.asarray(true).reshape(-1)
        if pred.shape[0] != gt.shape[0]:
            raise SizeMismatchError(
                f"predicted has {pred.shape[0]} labels but true has {gt.shape[0]}"
            )
        evaluation = ClusteringEvaluation(
            nmi=normalized_mutual_information(pred, gt),
            ami=adjusted_mutual_information(pred, gt),
            n_samples=int(pred.shape[0]),
            n_predicted_clusters=int(np.unique(pred).size),
            n_true_clusters=int(np.unique(gt).size),
        )
        logger.debug("Evaluated clustering: nmi=%.4f ami=%.4f", evaluation.nmi, evaluation.ami)
        return evaluation

    def evaluate_model(self, model: KMeansModel, dataset: Dataset) -> ClusteringEvaluation:
        """
        Predict every point of a labelled dataset and score the result.

        Raises:
            ValueError: If the dataset carries no ground-truth labels
        """
        if dataset.labels is None:
            raise ValueError("Dataset has no ground-truth labels to evaluate against")
        return self.evaluate(model.predict_batch(dataset), dataset.labels)
