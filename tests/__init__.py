"""
Test suite for parallel-kmeans.

This package contains all tests organized by component:
- test_algorithms/: distances, initialisers, Lloyd engine, trainer, MI scores
- test_data/: datasets and synthetic generators
- test_evaluation/: clustering evaluator
"""
