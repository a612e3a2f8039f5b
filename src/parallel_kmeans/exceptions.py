"""
Precondition errors raised by the trainer and evaluator.

All of them subclass ``ValueError`` so callers that already guard against bad
input with ``except ValueError`` keep working.
"""


class DimensionMismatch(ValueError):
    """Two vectors (or a vector and the dataset schema) differ in length."""


class InsufficientDataError(ValueError):
    """The dataset has fewer points than the requested number of centroids."""


class SizeMismatchError(ValueError):
    """Two label sequences passed to the evaluator differ in length."""
