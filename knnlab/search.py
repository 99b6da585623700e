"""
Neighbor Search Engine

Exhaustive k-nearest-neighbor search over a training Collection. Every query
is compared against every training Example; there is no index structure.
Ties in distance keep the original training order because the ranking uses
a stable sort.
"""

import logging
import numbers
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from knnlab.dataset import Collection, Example, KNNResult, Neighbor
from knnlab.distance import DistanceMetric, EuclideanDistance
from knnlab.errors import InvalidInputError


logger = logging.getLogger(__name__)


Query = Union[Example, Mapping[str, float]]


def as_example(query: Query) -> Example:
    """Wrap a bare feature mapping into an unlabeled Example."""
    if isinstance(query, Example):
        return query
    if query is None:
        raise InvalidInputError("Query cannot be None")
    return Example(query, None)


def check_k(k) -> None:
    """Raise InvalidInputError unless k is a positive integer (bools rejected)."""
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidInputError(f"k must be an integer, got: {type(k).__name__}")
    if k <= 0:
        raise InvalidInputError(f"k must be greater than 0, got {k}")


def majority_vote(neighbors: Sequence[Neighbor]) -> Any:
    """
    Return the most common label among the neighbors.

    Votes are tallied in neighbor order and the leader only changes on a
    strictly greater count, so between tied labels the one seen first (the
    closest) wins.

    Args:
        neighbors: Neighbors in ascending-distance order

    Returns:
        Winning label, or None if there are no neighbors
    """
    vote_counts: Dict[Any, int] = {}
    for neighbor in neighbors:
        vote_counts[neighbor.label] = vote_counts.get(neighbor.label, 0) + 1

    majority_label = None
    max_votes = 0
    for label, votes in vote_counts.items():
        if votes > max_votes:
            max_votes = votes
            majority_label = label

    return majority_label


class NearestNeighborSearch:
    """
    Brute-force k-nearest-neighbor search bound to one training Collection.

    Args:
        training_set: Non-empty Collection to search
        k: Number of neighbors to return, 1 <= k <= len(training_set)
        distance_metric: Metric instance (default: EuclideanDistance)

    Raises:
        InvalidInputError: If the collection is None or empty, or k is out of range
    """

    def __init__(self, training_set: Collection, k: int, distance_metric: Optional[DistanceMetric] = None):
        if training_set is None or training_set.is_empty():
            raise InvalidInputError("Training set cannot be empty")
        check_k(k)
        if k > len(training_set):
            raise InvalidInputError(
                f"k ({k}) cannot be greater than the training set size ({len(training_set)})"
            )

        self._training_set = training_set
        self._k = k
        self._distance_metric = distance_metric if distance_metric is not None else EuclideanDistance()

    @property
    def training_set(self) -> Collection:
        return self._training_set

    @property
    def k(self) -> int:
        return self._k

    @property
    def distance_metric(self) -> DistanceMetric:
        return self._distance_metric

    def find_nearest_neighbors(self, query: Query) -> KNNResult:
        """
        Find the k training Examples closest to the query.

        Args:
            query: Example or feature mapping

        Returns:
            KNNResult with k Neighbors in ascending-distance order

        Raises:
            FeatureMismatchError: If the query's features differ from a training Example's
        """
        query = as_example(query)

        neighbors = [
            Neighbor(example, self._distance_metric.calculate(query.features, example.features))
            for example in self._training_set
        ]
        neighbors.sort(key=lambda neighbor: neighbor.distance)

        return KNNResult(query, neighbors[:self._k])

    def predict(self, query: Query) -> Any:
        """Predict the label of one query by majority vote over its k neighbors."""
        result = self.find_nearest_neighbors(query)
        return majority_vote(result.neighbors)

    def predict_all(self, testing_set: Collection) -> List[Any]:
        """Predict a label for every Example in the collection, in input order."""
        predictions = [self.predict(example) for example in testing_set]
        logger.debug(f"Predicted {len(predictions)} labels (k={self._k}, metric={self._distance_metric.name})")
        return predictions
