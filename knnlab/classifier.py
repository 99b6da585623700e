"""
KNN Classifier

Facade over NearestNeighborSearch with a two-phase lifecycle. A classifier
starts untrained; train() captures a training Collection and builds the
search engine. Changing k or the distance metric on a trained classifier
rebuilds the engine against the captured collection, so no retraining is
needed.
"""

import logging
from typing import Any, List, Optional, Union

from knnlab.dataset import Collection, KNNResult
from knnlab.distance import DistanceMetric, resolve_distance
from knnlab.errors import InvalidInputError, NotTrainedError
from knnlab.search import NearestNeighborSearch, Query, check_k


logger = logging.getLogger(__name__)


DEFAULT_K = 3
DEFAULT_METRIC = 'euclidean'


class KNNClassifier:
    """
    K-nearest-neighbors classifier.

    Args:
        k: Number of neighbors to vote (default: 3)
        distance_metric: DistanceMetric instance or metric name (default: 'euclidean')

    Raises:
        InvalidInputError: If k is not a positive integer
        UnknownMetricError: If the metric name is not registered
    """

    def __init__(self, k: int = DEFAULT_K, distance_metric: Union[DistanceMetric, str] = DEFAULT_METRIC):
        check_k(k)

        self._k = k
        self._distance_metric = resolve_distance(distance_metric)
        self._training_set: Optional[Collection] = None
        self._engine: Optional[NearestNeighborSearch] = None

    @property
    def k(self) -> int:
        return self._k

    @property
    def distance_metric(self) -> DistanceMetric:
        return self._distance_metric

    @property
    def is_trained(self) -> bool:
        return self._engine is not None

    @property
    def training_set(self) -> Optional[Collection]:
        return self._training_set

    def train(self, training_set: Collection) -> None:
        """
        Capture a training collection and build the search engine.

        Args:
            training_set: Non-empty Collection

        Raises:
            InvalidInputError: If the collection is None or empty, or k exceeds its size
        """
        if training_set is None or training_set.is_empty():
            raise InvalidInputError("Training set cannot be empty")

        engine = NearestNeighborSearch(training_set, self._k, self._distance_metric)

        self._training_set = training_set
        self._engine = engine

        logger.debug(f"Trained on {len(training_set)} examples (k={self._k}, metric={self._distance_metric.name})")

    def _check_trained(self) -> NearestNeighborSearch:
        if self._engine is None:
            raise NotTrainedError("The classifier has not been trained")
        return self._engine

    def predict(self, data: Union[Query, Collection]) -> Union[Any, List[Any]]:
        """
        Predict labels.

        Args:
            data: A feature mapping or Example (returns one label), or a
                  Collection (returns one label per Example, in order)

        Raises:
            NotTrainedError: If train() has not been called
        """
        engine = self._check_trained()

        if isinstance(data, Collection):
            return engine.predict_all(data)
        return engine.predict(data)

    def find_nearest_neighbors(self, data: Query) -> KNNResult:
        """Return the k nearest training Examples for one query."""
        return self._check_trained().find_nearest_neighbors(data)

    def set_k(self, k: int) -> None:
        """
        Change k, rebuilding the engine if the classifier is trained.

        Raises:
            InvalidInputError: If k < 1 or exceeds the training set size
        """
        check_k(k)

        if self._training_set is not None:
            self._engine = NearestNeighborSearch(self._training_set, k, self._distance_metric)
        self._k = k

    def set_distance_metric(self, distance_metric: Union[DistanceMetric, str]) -> None:
        """Change the distance metric, by instance or by name, rebuilding the engine if trained."""
        metric = resolve_distance(distance_metric)

        if self._training_set is not None:
            self._engine = NearestNeighborSearch(self._training_set, self._k, metric)
        self._distance_metric = metric

    def __repr__(self) -> str:
        return f"KNNClassifier(k={self._k}, metric={self._distance_metric.name}, trained={self.is_trained})"
