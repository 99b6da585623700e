"""
Distance Metrics

This module provides the distance strategies used by the neighbor search.
Each metric compares two feature mappings with an identical key set and
returns a non-negative scalar. Metrics are selected by name through
create_distance().
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Tuple

from knnlab.errors import FeatureMismatchError, InvalidInputError, UnknownMetricError


def _to_vectors(features1: Mapping[str, float], features2: Mapping[str, float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate two feature mappings and read them into aligned numpy arrays.

    Args:
        features1: First feature mapping
        features2: Second feature mapping

    Returns:
        Tuple of (vector1, vector2) ordered by the keys of features1

    Raises:
        InvalidInputError: If either mapping is None
        FeatureMismatchError: If the key sets are not exactly equal
    """
    if features1 is None or features2 is None:
        raise InvalidInputError("Feature vectors cannot be None")

    keys = list(features1.keys())
    if set(keys) != set(features2.keys()):
        missing = sorted(set(keys) ^ set(features2.keys()))
        raise FeatureMismatchError(f"Feature vectors must share the same features, differing: {missing}")

    vector1 = np.array([features1[key] for key in keys], dtype=np.float64)
    vector2 = np.array([features2[key] for key in keys], dtype=np.float64)
    return vector1, vector2


class DistanceMetric(ABC):
    """
    Strategy interface for distance metrics.

    Implementations must accept two feature mappings over the same key set
    and return a distance in [0, inf).
    """

    name: str = ""

    @abstractmethod
    def calculate(self, features1: Mapping[str, float], features2: Mapping[str, float]) -> float:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EuclideanDistance(DistanceMetric):
    """Straight-line distance: sqrt(sum((a_i - b_i)^2))."""

    name = "Euclidean"

    def calculate(self, features1: Mapping[str, float], features2: Mapping[str, float]) -> float:
        vector1, vector2 = _to_vectors(features1, features2)
        diff = vector1 - vector2
        return float(np.sqrt(np.sum(diff * diff)))


class ManhattanDistance(DistanceMetric):
    """City-block distance: sum(|a_i - b_i|)."""

    name = "Manhattan"

    def calculate(self, features1: Mapping[str, float], features2: Mapping[str, float]) -> float:
        vector1, vector2 = _to_vectors(features1, features2)
        return float(np.sum(np.abs(vector1 - vector2)))


class CosineDistance(DistanceMetric):
    """
    Cosine distance: 1 - dot(a, b) / (|a| * |b|).

    Not a true metric (the triangle inequality does not hold), but ranking by
    it is still monotone in angular closeness. A zero-norm vector is treated
    as maximally distant and yields exactly 1.0.
    """

    name = "Cosine"

    def calculate(self, features1: Mapping[str, float], features2: Mapping[str, float]) -> float:
        vector1, vector2 = _to_vectors(features1, features2)

        norm1 = np.sqrt(np.dot(vector1, vector1))
        norm2 = np.sqrt(np.dot(vector2, vector2))

        if norm1 == 0 or norm2 == 0:
            return 1.0
        if np.array_equal(vector1, vector2):
            return 0.0

        # rounding can push the similarity slightly outside [-1, 1]
        cosine_similarity = np.clip(np.dot(vector1, vector2) / (norm1 * norm2), -1.0, 1.0)
        return max(0.0, float(1.0 - cosine_similarity))


_METRICS: Dict[str, type] = {
    'euclidean': EuclideanDistance,
    'manhattan': ManhattanDistance,
    'cosine': CosineDistance,
}


def available_metrics() -> List[str]:
    """Return the metric names accepted by create_distance()."""
    return list(_METRICS.keys())


def create_distance(name: str) -> DistanceMetric:
    """
    Create a distance metric by name.

    Matching is case-insensitive and ignores surrounding whitespace.

    Args:
        name: One of 'euclidean', 'manhattan', 'cosine'

    Returns:
        New DistanceMetric instance

    Raises:
        InvalidInputError: If name is None or blank
        UnknownMetricError: If name is not a registered metric
    """
    if name is None or not str(name).strip():
        raise InvalidInputError("Distance metric name cannot be empty")

    normalized_name = str(name).strip().lower()
    if normalized_name not in _METRICS:
        raise UnknownMetricError(
            f"Unknown distance metric: {name!r} (expected one of {', '.join(available_metrics())})"
        )

    return _METRICS[normalized_name]()


def resolve_distance(metric) -> DistanceMetric:
    """Accept a DistanceMetric instance or a metric name and return an instance."""
    if isinstance(metric, DistanceMetric):
        return metric
    if metric is None or isinstance(metric, str):
        return create_distance(metric)
    raise InvalidInputError(f"Expected a DistanceMetric or a metric name, got {type(metric).__name__}")
