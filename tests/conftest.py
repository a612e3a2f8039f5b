"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pytest

from parallel_kmeans.data import Dataset, gaussian_clusters, two_well_separated_clusters


@pytest.fixture
def two_clusters() -> Dataset:
    """
    Two tight 2-D blobs centred on (0, 0) and (10, 10), 50 points each.

    Labels are the generating blob (0 or 1).
    """
    return two_well_separated_clusters(50, seed=3)


@pytest.fixture
def five_clusters() -> Dataset:
    """Default five-centre gaussian mixture, 400 labelled points."""
    return gaussian_clusters(400, seed=11)


@pytest.fixture
def identical_points() -> Dataset:
    """Twenty copies of the same 3-D point."""
    return Dataset.from_array(np.tile([1.5, -2.0, 0.25], (20, 1)))


@pytest.fixture
def small_random() -> Dataset:
    """Unstructured standard-normal data (60 x 4) without labels."""
    rng = np.random.default_rng(42)
    return Dataset.from_array(rng.standard_normal((60, 4)))


@pytest.fixture
def env_defaults(monkeypatch):
    """
    Fixture factory that sets KMEANS_* variables and reloads the global config.

    Usage:
        env_defaults(KMEANS_NUM_THREADS="4")

    The global config is reloaded again after the test so other tests see the
    original environment.
    """
    from parallel_kmeans.config import config

    def _apply(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        config.reload()
        return config

    yield _apply
    monkeypatch.undo()
    config.reload()
