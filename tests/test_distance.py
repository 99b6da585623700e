"""
Unit tests for distance metrics.

Tests the three built-in metrics, feature-set validation and the
name-keyed factory.
"""

import pytest
import numpy as np
from scipy.spatial import distance as scipy_distance

from knnlab.distance import (
    CosineDistance,
    EuclideanDistance,
    ManhattanDistance,
    available_metrics,
    create_distance,
    resolve_distance
)
from knnlab.errors import FeatureMismatchError, InvalidInputError, UnknownMetricError


ALL_METRICS = [EuclideanDistance(), ManhattanDistance(), CosineDistance()]


@pytest.fixture
def random_pair():
    """Two random 6-dimensional feature mappings over the same keys."""
    rng = np.random.RandomState(7)
    names = [f"x{i}" for i in range(6)]
    a = dict(zip(names, rng.randn(6)))
    b = dict(zip(names, rng.randn(6)))
    return a, b


def test_euclidean_known_value():
    assert EuclideanDistance().calculate({'x': 0, 'y': 0}, {'x': 3, 'y': 4}) == pytest.approx(5.0)


def test_manhattan_known_value():
    assert ManhattanDistance().calculate({'x': 0, 'y': 0}, {'x': 3, 'y': -4}) == pytest.approx(7.0)


@pytest.mark.parametrize("metric", [EuclideanDistance(), ManhattanDistance()])
def test_distance_to_self_is_zero(metric, random_pair):
    a, _ = random_pair
    assert metric.calculate(a, a) == 0.0


def random_vectors(count, dimensions, seed):
    """Seeded random feature mappings over the keys x0..x{dimensions-1}."""
    rng = np.random.RandomState(seed)
    names = [f"x{i}" for i in range(dimensions)]
    return [dict(zip(names, row)) for row in rng.uniform(-100, 100, size=(count, dimensions))]


@pytest.mark.parametrize("dimensions", [1, 3, 8])
def test_cosine_distance_to_self_is_exactly_zero(dimensions):
    cosine = CosineDistance()
    for a in random_vectors(500, dimensions, seed=dimensions):
        assert cosine.calculate(a, a) == 0.0
        assert cosine.calculate(a, dict(a)) == 0.0


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_self_distance_is_never_negative(metric):
    for a in random_vectors(2000, 3, seed=11):
        assert metric.calculate(a, a) >= 0.0


def test_cosine_parallel_vectors_stay_in_range():
    cosine = CosineDistance()
    for a in random_vectors(500, 3, seed=5):
        scaled = {name: value * 3.0 for name, value in a.items()}
        assert 0.0 <= cosine.calculate(a, scaled) < 1e-12


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_distance_is_symmetric(metric, random_pair):
    a, b = random_pair
    assert metric.calculate(a, b) == pytest.approx(metric.calculate(b, a))


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_distance_is_non_negative(metric, random_pair):
    a, b = random_pair
    assert metric.calculate(a, b) >= 0.0
    for first, second in zip(random_vectors(500, 4, seed=2), random_vectors(500, 4, seed=3)):
        assert metric.calculate(first, second) >= 0.0


def test_cosine_zero_vector_is_max_distance():
    zero = {'x': 0.0, 'y': 0.0}
    other = {'x': 1.0, 'y': 2.0}

    assert CosineDistance().calculate(zero, other) == 1.0
    assert CosineDistance().calculate(other, zero) == 1.0
    assert CosineDistance().calculate(zero, zero) == 1.0


def test_cosine_orthogonal_and_opposite():
    cosine = CosineDistance()
    assert cosine.calculate({'x': 1, 'y': 0}, {'x': 0, 'y': 1}) == pytest.approx(1.0)
    assert cosine.calculate({'x': 1, 'y': 1}, {'x': -1, 'y': -1}) == pytest.approx(2.0)


def test_key_order_does_not_matter():
    a = {'x': 1.0, 'y': 2.0}
    b = {'y': 2.0, 'x': 1.0}
    assert EuclideanDistance().calculate(a, b) == 0.0


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_mismatched_keys_with_same_size_raise(metric):
    with pytest.raises(FeatureMismatchError):
        metric.calculate({'x': 1.0, 'y': 2.0}, {'x': 1.0, 'z': 2.0})


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_subset_keys_raise(metric):
    with pytest.raises(FeatureMismatchError):
        metric.calculate({'x': 1.0}, {'x': 1.0, 'y': 2.0})


def test_feature_mismatch_is_invalid_input():
    with pytest.raises(InvalidInputError):
        EuclideanDistance().calculate({'x': 1.0}, {'y': 1.0})


@pytest.mark.parametrize("metric", ALL_METRICS)
def test_none_input_raises(metric):
    with pytest.raises(InvalidInputError):
        metric.calculate(None, {'x': 1.0})
    with pytest.raises(InvalidInputError):
        metric.calculate({'x': 1.0}, None)


def test_matches_scipy(random_pair):
    a, b = random_pair
    u = np.array(list(a.values()))
    v = np.array([b[key] for key in a])

    assert EuclideanDistance().calculate(a, b) == pytest.approx(scipy_distance.euclidean(u, v))
    assert ManhattanDistance().calculate(a, b) == pytest.approx(scipy_distance.cityblock(u, v))
    assert CosineDistance().calculate(a, b) == pytest.approx(scipy_distance.cosine(u, v))


@pytest.mark.parametrize("name, expected", [
    ('euclidean', EuclideanDistance),
    ('  Euclidean ', EuclideanDistance),
    ('MANHATTAN', ManhattanDistance),
    ('Cosine\n', CosineDistance),
])
def test_factory_is_case_insensitive_and_trimmed(name, expected):
    assert isinstance(create_distance(name), expected)


def test_factory_unknown_name():
    with pytest.raises(UnknownMetricError) as exc_info:
        create_distance('chebyshev')
    assert 'chebyshev' in str(exc_info.value)


@pytest.mark.parametrize("name", [None, '', '   '])
def test_factory_blank_name(name):
    with pytest.raises(InvalidInputError):
        create_distance(name)


def test_metric_names():
    assert EuclideanDistance().name == "Euclidean"
    assert ManhattanDistance().name == "Manhattan"
    assert CosineDistance().name == "Cosine"
    assert available_metrics() == ['euclidean', 'manhattan', 'cosine']


def test_resolve_distance_accepts_instance_or_name():
    metric = ManhattanDistance()
    assert resolve_distance(metric) is metric
    assert isinstance(resolve_distance('cosine'), CosineDistance)

    with pytest.raises(InvalidInputError):
        resolve_distance(42)
