"""
Mutual-information agreement scores between two partitions.

All quantities use natural logarithms (the units cancel in NMI and AMI).
Cluster ids may be arbitrary integers; they are remapped with ``np.unique``
so every score is invariant to relabelling either partition.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union
import numpy as np
from scipy.special import gammaln

from ..exceptions import SizeMismatchError

LabelsIn = Union[Sequence[int], np.ndarray]


def _as_labels(labels_a: LabelsIn, labels_b: LabelsIn) -> Tuple[np.ndarray, np.ndarray]:
    a = np.asarray(labels_a).reshape(-1)
    b = np.asarray(labels_b).reshape(-1)
    if a.shape[0] != b.shape[0]:
        raise SizeMismatchError(
            f"Label sequences differ in length: {a.shape[0]} vs {b.shape[0]}"
        )
    return a, b


def contingency_matrix(labels_a: LabelsIn, labels_b: LabelsIn) -> np.ndarray:
    """
    Joint count table of two labelings of the same points.

    Returns:
        int64 array of shape (n_clusters_a, n_clusters_b); rows follow the
        sorted unique ids of *labels_a*, columns those of *labels_b*.

    Raises:
        SizeMismatchError: If the sequences differ in length
    """
    a, b = _as_labels(labels_a, labels_b)
    _, a_idx = np.unique(a, return_inverse=True)
    _, b_idx = np.unique(b, return_inverse=True)
    n_a = int(a_idx.max()) + 1 if a_idx.size else 0
    n_b = int(b_idx.max()) + 1 if b_idx.size else 0
    contingency = np.zeros((n_a, n_b), dtype=np.int64)
    np.add.at(contingency, (a_idx.reshape(-1), b_idx.reshape(-1)), 1)
    return contingency


def entropy(labels: LabelsIn) -> float:
    """Shannon entropy of a labeling (0.0 for an empty or single-cluster one)."""
    lab = np.asarray(labels).reshape(-1)
    if lab.size == 0:
        return 0.0
    _, counts = np.unique(lab, return_counts=True)
    p = counts / float(lab.size)
    return float(max(-np.sum(p * np.log(p)), 0.0))


def mutual_information(contingency: np.ndarray) -> float:
    """Empirical mutual information of a contingency table."""
    c = np.asarray(contingency, dtype=np.float64)
    N = c.sum()
    if N == 0:
        return 0.0
    a = c.sum(axis=1)
    b = c.sum(axis=0)
    rows, cols = np.nonzero(c)
    nij = c[rows, cols]
    mi = np.sum(
        (nij / N) * (np.log(nij) + np.log(N) - np.log(a[rows]) - np.log(b[cols]))
    )
    return float(max(mi, 0.0))


def expected_mutual_information(contingency: np.ndarray) -> float:
    """
    Expected mutual information under the hypergeometric model.

    For fixed marginals ``a`` (rows) and ``b`` (columns) over ``N`` points,
    sums over every cell and every feasible cell count ``n_ij`` in
    ``[max(1, a_i + b_j - N), min(a_i, b_j)]`` the term

        n_ij / N * log(N * n_ij / (a_i * b_j)) * P(n_ij | a_i, b_j, N)

    with the hypergeometric probability evaluated in log space via
    ``gammaln``.
    """
    c = np.asarray(contingency, dtype=np.float64)
    a = c.sum(axis=1)
    b = c.sum(axis=0)
    N = float(c.sum())
    if N == 0:
        return 0.0

    # EMI is symmetric in the two marginals; loop over the shorter one and
    # vectorise each row over every column and every feasible n_ij at once.
    if a.shape[0] > b.shape[0]:
        a, b = b, a

    log_N = np.log(N)
    gln_N = gammaln(N + 1)
    gln_a = gammaln(a + 1)
    gln_Na = gammaln(N - a + 1)
    gln_b = gammaln(b + 1)[:, None]
    gln_Nb = gammaln(N - b + 1)[:, None]
    b_col = b[:, None]

    emi = 0.0
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        log_b = np.log(b_col)
        for i in range(a.shape[0]):
            ai = a[i]
            start = np.maximum(1.0, ai + b - N)
            stop = np.minimum(ai, b)
            width = int(np.max(stop - start)) + 1 if b.size else 0
            if width <= 0:
                continue
            nij = start[:, None] + np.arange(width)[None, :]  # (n_cols, width)
            valid = nij <= stop[:, None]
            nij = np.where(valid, nij, start[:, None])
            log_term = log_N + np.log(nij) - np.log(ai) - log_b
            log_p = (
                gln_a[i] + gln_b + gln_Na[i] + gln_Nb
                - gln_N
                - gammaln(nij + 1)
                - gammaln(ai - nij + 1)
                - gammaln(b_col - nij + 1)
                - gammaln(N - ai - b_col + nij + 1)
            )
            terms = nij / N * log_term * np.exp(log_p)
            emi += float(np.sum(np.where(valid, terms, 0.0)))
    return emi


def _is_same_partition(contingency: np.ndarray) -> bool:
    """True when every row and every column has exactly one non-zero cell."""
    nz = np.asarray(contingency) > 0
    return bool(np.all(nz.sum(axis=0) == 1) and np.all(nz.sum(axis=1) == 1))


def normalized_mutual_information(labels_pred: LabelsIn, labels_true: LabelsIn) -> float:
    """
    NMI = I(pred; true) / mean(H(pred), H(true)), in [0, 1].

    Identical partitions (including two single-cluster labelings, where both
    entropies are zero) score 1.0. When both entropies are zero but the
    partitions differ the score is 0.0. Empty inputs score 1.0.

    Raises:
        SizeMismatchError: If the sequences differ in length
    """
    pred, true = _as_labels(labels_pred, labels_true)
    if pred.size == 0:
        return 1.0
    c = contingency_matrix(pred, true)
    if _is_same_partition(c):
        return 1.0
    h_pred, h_true = entropy(pred), entropy(true)
    if h_pred + h_true == 0.0:
        return 0.0
    mi = mutual_information(c)
    return float(np.clip(mi / ((h_pred + h_true) / 2.0), 0.0, 1.0))


def adjusted_mutual_information(labels_pred: LabelsIn, labels_true: LabelsIn) -> float:
    """
    AMI = (I - E[I]) / (mean(H(pred), H(true)) - E[I]).

    1.0 for identical partitions, about 0.0 for independent random labelings,
    and negative when agreement is worse than chance. A zero denominator is
    replaced by machine epsilon with the denominator's sign.

    Raises:
        SizeMismatchError: If the sequences differ in length
    """
    pred, true = _as_labels(labels_pred, labels_true)
    if pred.size == 0:
        return 1.0
    c = contingency_matrix(pred, true)
    if _is_same_partition(c):
        return 1.0
    mi = mutual_information(c)
    emi = expected_mutual_information(c)
    normalizer = (entropy(pred) + entropy(true)) / 2.0
    denominator = normalizer - emi
    eps = np.finfo(np.float64).eps
    if denominator < 0:
        denominator = min(denominator, -eps)
    else:
        denominator = max(denominator, eps)
    return float(min((mi - emi) / denominator, 1.0))
