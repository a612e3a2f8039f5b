"""Clustering evaluation (mutual-information agreement scores)."""

from .clustering_evaluator import ClusteringEvaluation, ClusteringEvaluator

__all__ = ["ClusteringEvaluation", "ClusteringEvaluator"]
