"""
Tests for the K-Means trainer and model.
"""

import numpy as np
import pytest

from parallel_kmeans.algorithms.distance import Distance
from parallel_kmeans.algorithms.initialization import Initialisation
from parallel_kmeans.algorithms.kmeans import KMeansConfig, KMeansModel, KMeansTrainer
from parallel_kmeans.algorithms.lloyd import EmptyClusterPolicy, EngineState
from parallel_kmeans.algorithms.mutual_information import normalized_mutual_information
from parallel_kmeans.data import Dataset, Point
from parallel_kmeans.exceptions import DimensionMismatch, InsufficientDataError


def _train(dataset, **kwargs):
    return KMeansTrainer(KMeansConfig(**kwargs)).train(dataset)


# ------------------------------------------------------------------
# KMeansConfig
# ------------------------------------------------------------------


def test_config_defaults():
    cfg = KMeansConfig(k=3)
    assert cfg.max_iter == 100
    assert cfg.distance is Distance.EUCLIDEAN
    assert cfg.initialisation is Initialisation.RANDOM
    assert cfg.num_threads == 1
    assert cfg.seed == 12345
    assert cfg.empty_cluster_policy is EmptyClusterPolicy.RETAIN


def test_config_coerces_strings():
    cfg = KMeansConfig(k=2, distance="cosine", initialisation="kmeans++",
                       empty_cluster_policy="reseed")
    assert cfg.distance is Distance.COSINE
    assert cfg.initialisation is Initialisation.PLUSPLUS
    assert cfg.empty_cluster_policy is EmptyClusterPolicy.RESEED
    assert cfg.to_dict()["initialisation"] == "plusplus"


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"k": 0}, "k must be >= 1"),
        ({"k": 2, "max_iter": 0}, "max_iter must be >= 1"),
        ({"k": 2, "num_threads": -1}, "num_threads must be >= 1"),
        ({"k": 2.5}, "k must be an integer"),
        ({"k": True}, "k must be an integer"),
        ({"k": 2, "distance": "hamming"}, "distance must be one of"),
    ],
)
def test_config_validation(kwargs, match):
    with pytest.raises(ValueError, match=match):
        KMeansConfig(**kwargs)


def test_config_from_env(env_defaults):
    env_defaults(
        KMEANS_NUM_THREADS="4",
        KMEANS_SEED="99",
        KMEANS_DISTANCE="l1",
        KMEANS_INITIALISATION="plusplus",
    )
    cfg = KMeansConfig.from_env(3, max_iter=7)
    assert cfg.k == 3
    assert cfg.num_threads == 4
    assert cfg.seed == 99
    assert cfg.distance is Distance.L1
    assert cfg.initialisation is Initialisation.PLUSPLUS
    assert cfg.max_iter == 7


def test_config_from_env_rejects_unknown_fields():
    with pytest.raises(ValueError, match="Unknown KMeansConfig field"):
        KMeansConfig.from_env(3, n_clusters=4)


# ------------------------------------------------------------------
# Training scenarios
# ------------------------------------------------------------------


@pytest.mark.parametrize("init", list(Initialisation))
@pytest.mark.parametrize("num_threads", [1, 4])
def test_two_well_separated_clusters(two_clusters, init, num_threads):
    """Centroids land on (0, 0) and (10, 10) in either order."""
    model = _train(two_clusters, k=2, initialisation=init, num_threads=num_threads, seed=1)
    assert model.state is EngineState.CONVERGED
    centroids = sorted(model.centroids.tolist())
    np.testing.assert_allclose(centroids[0], [0.0, 0.0], atol=0.3)
    np.testing.assert_allclose(centroids[1], [10.0, 10.0], atol=0.3)
    assert normalized_mutual_information(model.labels, two_clusters.labels) == 1.0


@pytest.mark.parametrize("init", list(Initialisation))
@pytest.mark.parametrize("metric", list(Distance))
def test_deterministic_across_runs_and_threads(five_clusters, init, metric):
    """Same data, seed and config give bit-identical centroids for 1 and N threads."""
    base = dict(k=5, initialisation=init, distance=metric, seed=21, max_iter=50)
    single_a = _train(five_clusters, num_threads=1, **base)
    single_b = _train(five_clusters, num_threads=1, **base)
    multi = _train(five_clusters, num_threads=3, **base)
    np.testing.assert_array_equal(single_a.centroids, single_b.centroids)
    np.testing.assert_array_equal(single_a.centroids, multi.centroids)
    np.testing.assert_array_equal(single_a.labels, multi.labels)
    assert single_a.n_iter == multi.n_iter


def test_same_trainer_repeated_calls_identical(small_random):
    trainer = KMeansTrainer(KMeansConfig(k=4, seed=5, initialisation="plusplus"))
    a = trainer.train(small_random)
    b = trainer.train(small_random)
    np.testing.assert_array_equal(a.centroids, b.centroids)
    assert trainer.train_invocations == 2


@pytest.mark.parametrize("max_iter", [1, 2, 5, 100])
def test_terminates_within_budget(small_random, max_iter):
    model = _train(small_random, k=6, max_iter=max_iter, seed=0)
    assert 1 <= model.n_iter <= max_iter
    assert model.state.is_terminal
    assert len(model.history) == model.n_iter


def test_fixed_point_after_convergence(five_clusters):
    model = _train(five_clusters, k=5, seed=8, initialisation="plusplus", num_threads=2)
    assert model.converged
    np.testing.assert_array_equal(model.predict_batch(five_clusters.X), model.labels)


@pytest.mark.parametrize("init", list(Initialisation))
def test_k_equals_n(init):
    """Every point becomes its own centroid with zero within-cluster spread."""
    rng = np.random.default_rng(12)
    X = rng.standard_normal((9, 3))
    truth = np.array([0, 0, 0, 1, 1, 1, 2, 2, 2])
    dataset = Dataset.from_array(X, labels=truth)
    model = _train(dataset, k=9, initialisation=init, seed=3)

    assert sorted(model.labels.tolist()) == list(range(9))
    assert model.inertia == 0.0
    assert model.empty_centroids == 0
    np.testing.assert_array_equal(model.centroids[model.labels], X)
    nmi = normalized_mutual_information(model.labels, truth)
    assert 0.0 <= nmi <= 1.0


@pytest.mark.parametrize("init", list(Initialisation))
@pytest.mark.parametrize("policy", list(EmptyClusterPolicy))
def test_identical_points(identical_points, init, policy):
    """All-identical data trains without error and converges in one iteration."""
    model = _train(identical_points, k=3, initialisation=init, empty_cluster_policy=policy)
    assert model.state is EngineState.CONVERGED
    assert model.n_iter == 1
    assert set(model.labels.tolist()) == {0}
    assert model.empty_centroids == 2
    np.testing.assert_allclose(model.centroids[0], [1.5, -2.0, 0.25])


def test_insufficient_data():
    dataset = Dataset.from_array(np.zeros((2, 2)))
    with pytest.raises(InsufficientDataError, match="cannot exceed"):
        _train(dataset, k=3)


def test_insufficient_data_does_not_count_invocation():
    trainer = KMeansTrainer(KMeansConfig(k=5))
    with pytest.raises(InsufficientDataError):
        trainer.train(Dataset.from_array(np.zeros((4, 1))))
    assert trainer.train_invocations == 0


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_empty_centroid_is_reported_not_raised(seed):
    """
    Three identical points and one outlier with k=3: k-means++ must fall back
    to a second copy of the repeated point, which then never wins a tie.
    """
    X = np.array([[0.0], [0.0], [0.0], [5.0]])
    model = _train(Dataset.from_array(X), k=3, seed=seed, initialisation="plusplus")
    assert model.converged
    assert model.empty_centroids == 1
    assert sorted(model.cluster_sizes.tolist()) == [0, 1, 3]


# ------------------------------------------------------------------
# KMeansModel
# ------------------------------------------------------------------


def test_predict_accepts_points_mappings_and_arrays(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    far = model.predict(Point({"f0": 9.8, "f1": 10.3}))
    near = model.predict({"f0": 0.1, "f1": -0.2})
    assert far != near
    assert model.predict(np.array([10.0, 10.0])) == far
    assert model.predict([0.0, 0.0]) == near


def test_predict_ignores_unknown_features(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    assert model.predict({"f0": 10.0, "f1": 10.0, "colour": 3.0}) == model.predict([10.0, 10.0])


def test_predict_dimension_mismatch(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    with pytest.raises(DimensionMismatch):
        model.predict(np.array([1.0, 2.0, 3.0]))


def test_predict_batch_dataset_matches_labels(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    np.testing.assert_array_equal(model.predict_batch(two_clusters), model.labels)


def test_get_centroids_named(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    centroids = model.get_centroids()
    assert len(centroids) == 2
    assert all(isinstance(c, Point) for c in centroids)
    assert set(centroids[0]) == {"f0", "f1"}
    assert centroids[1]["f0"] == model.centroids[1, 0]


def test_model_is_immutable(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    with pytest.raises(ValueError):
        model.centroids[0, 0] = 1.0
    with pytest.raises(ValueError):
        model.labels[0] = 1
    fmap = model.feature_map
    fmap["extra"] = 9
    assert "extra" not in model.feature_map
    with pytest.raises(AttributeError):
        model.centroids = np.zeros((2, 2))


def test_model_summary_and_repr(two_clusters):
    model = _train(two_clusters, k=2, seed=1)
    text = model.summary()
    assert "k=2" in text
    assert "state=converged" in text
    assert "empty_centroids=0" in text
    assert repr(model).startswith("KMeansModel(k=2, d=2")
    assert isinstance(model, KMeansModel)
    assert "KMeansTrainer(k=2" in repr(KMeansTrainer(model.config))
