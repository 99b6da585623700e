"""
Data Model

This module defines the data structures shared by the classifier, the
evaluation harness and any loader or visualizer built around them:

    - Example: one labeled feature vector with an optional id
    - Collection: an ordered sequence of Examples with optional metadata
    - Neighbor: a training Example paired with its distance to a query
    - KNNResult: a query plus its k nearest Neighbors

Split and fold operations return views: the derived Collections hold the
same Example objects as the source, so a label rewritten through one view is
visible through every other view holding that Example.
"""

import math
import numpy as np
import pandas as pd
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from knnlab.errors import InvalidInputError


DEFAULT_RANDOM_SEED = 42


class Example:
    """
    A labeled feature vector.

    The feature key set is fixed at construction. Feature values and the
    label may be rewritten, but a feature that does not already exist cannot
    be added.
    """

    def __init__(self, features: Mapping[str, float], label: Any = None, example_id: Optional[int] = None):
        if features is None:
            raise InvalidInputError("Example features cannot be None")
        self._features: Dict[str, float] = {name: float(value) for name, value in features.items()}
        self.label = label
        self.id = example_id

    @property
    def features(self) -> Mapping[str, float]:
        """Read-only view of the feature mapping."""
        return MappingProxyType(self._features)

    @property
    def feature_names(self) -> Tuple[str, ...]:
        return tuple(self._features.keys())

    @property
    def feature_count(self) -> int:
        return len(self._features)

    def get_feature(self, name: str) -> float:
        if name not in self._features:
            raise InvalidInputError(f"Unknown feature: {name!r}")
        return self._features[name]

    def set_feature(self, name: str, value: float) -> None:
        """
        Overwrite the value of an existing feature.

        Raises:
            InvalidInputError: If the feature does not exist
        """
        if name not in self._features:
            raise InvalidInputError(f"Cannot set unknown feature {name!r}; the feature set is fixed")
        self._features[name] = float(value)

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value:g}" for name, value in self._features.items())
        return f"Example(id={self.id}, features=[{values}], label={self.label!r})"


class Neighbor(NamedTuple):
    """A training Example and its distance to a query."""

    example: Example
    distance: float

    @property
    def label(self) -> Any:
        return self.example.label


class KNNResult:
    """The outcome of a neighbor query: the query and its k nearest Neighbors."""

    def __init__(self, query: Example, neighbors: Iterable[Neighbor]):
        self._query = query
        self._neighbors = tuple(neighbors)

    @property
    def query(self) -> Example:
        return self._query

    @property
    def neighbors(self) -> Tuple[Neighbor, ...]:
        return self._neighbors

    @property
    def neighbor_count(self) -> int:
        return len(self._neighbors)

    def labels(self) -> List[Any]:
        """Neighbor labels in ascending-distance order."""
        return [neighbor.label for neighbor in self._neighbors]

    def __getitem__(self, index: int) -> Neighbor:
        return self._neighbors[index]

    def __iter__(self) -> Iterator[Neighbor]:
        return iter(self._neighbors)

    def __len__(self) -> int:
        return len(self._neighbors)

    def __repr__(self) -> str:
        return f"KNNResult(query={self._query!r}, neighbor_count={len(self._neighbors)})"


class Collection:
    """
    An ordered sequence of Examples with optional feature and target names.

    No feature-set validation happens on insertion; distance metrics enforce
    matching key sets at comparison time.
    """

    def __init__(
        self,
        examples: Optional[Iterable[Example]] = None,
        feature_names: Optional[Sequence[str]] = None,
        target_name: Optional[str] = None
    ):
        self._examples: List[Example] = list(examples) if examples is not None else []
        self.feature_names = list(feature_names) if feature_names is not None else None
        self.target_name = target_name

    def append(self, example: Example) -> None:
        self._examples.append(example)

    def extend(self, examples: Iterable[Example]) -> None:
        self._examples.extend(examples)

    def remove(self, example: Example) -> bool:
        """Remove an Example by identity. Returns False if it was not present."""
        for index, candidate in enumerate(self._examples):
            if candidate is example:
                del self._examples[index]
                return True
        return False

    @property
    def examples(self) -> Tuple[Example, ...]:
        return tuple(self._examples)

    def labels(self) -> List[Any]:
        return [example.label for example in self._examples]

    def features(self) -> List[Mapping[str, float]]:
        return [example.features for example in self._examples]

    def is_empty(self) -> bool:
        return not self._examples

    def __len__(self) -> int:
        return len(self._examples)

    def __iter__(self) -> Iterator[Example]:
        return iter(self._examples)

    def __getitem__(self, index: int) -> Example:
        return self._examples[index]

    def _derive(self, examples: Iterable[Example]) -> 'Collection':
        return Collection(examples, self.feature_names, self.target_name)

    def _shuffled(self, random_seed: int) -> List[Example]:
        indices = np.random.RandomState(random_seed).permutation(len(self._examples))
        return [self._examples[i] for i in indices]

    def split(self, training_ratio: float, random_seed: int = DEFAULT_RANDOM_SEED) -> Tuple['Collection', 'Collection']:
        """
        Shuffle with a fixed seed and split into training and testing views.

        Args:
            training_ratio: Share of examples that go to training, in (0, 1)
            random_seed: Seed for the shuffle (default: 42)

        Returns:
            Tuple of (training, testing) Collections, a disjoint cover of self

        Raises:
            InvalidInputError: If training_ratio is not strictly between 0 and 1
        """
        if not 0 < training_ratio < 1:
            raise InvalidInputError(f"training_ratio must be between 0 and 1, got {training_ratio}")

        shuffled = self._shuffled(random_seed)
        # round half up
        training_size = int(math.floor(len(shuffled) * training_ratio + 0.5))

        return self._derive(shuffled[:training_size]), self._derive(shuffled[training_size:])

    def create_folds(self, folds: int, random_seed: int = DEFAULT_RANDOM_SEED) -> List['Collection']:
        """
        Shuffle with a fixed seed and cut into contiguous folds.

        Each fold holds len(self) // folds examples; the last fold also takes
        the remainder.

        Args:
            folds: Number of folds, at least 2
            random_seed: Seed for the shuffle (default: 42)

        Returns:
            List of fold Collections in order

        Raises:
            InvalidInputError: If folds < 2
        """
        if folds < 2:
            raise InvalidInputError(f"Number of folds must be greater than 1, got {folds}")

        shuffled = self._shuffled(random_seed)
        fold_size = len(shuffled) // folds

        fold_collections = []
        for i in range(folds):
            start = i * fold_size
            end = len(shuffled) if i == folds - 1 else start + fold_size
            fold_collections.append(self._derive(shuffled[start:end]))

        return fold_collections

    @staticmethod
    def compose_folds(folds: Sequence['Collection'], test_fold_index: int) -> Tuple['Collection', 'Collection']:
        """
        Pair one fold as the test set with the union of the others as training.

        Raises:
            InvalidInputError: If test_fold_index is out of range
        """
        if not 0 <= test_fold_index < len(folds):
            raise InvalidInputError(
                f"test_fold_index must be between 0 and {len(folds) - 1}, got {test_fold_index}"
            )

        test_fold = folds[test_fold_index]
        training = Collection(feature_names=test_fold.feature_names, target_name=test_fold.target_name)
        for i, fold in enumerate(folds):
            if i != test_fold_index:
                training.extend(fold)

        testing = Collection(test_fold, test_fold.feature_names, test_fold.target_name)
        return training, testing

    def cross_validation_sets(
        self,
        folds: int,
        test_fold_index: int,
        random_seed: int = DEFAULT_RANDOM_SEED
    ) -> Tuple['Collection', 'Collection']:
        """Build the folds and return (training, testing) for one test fold."""
        if not 0 <= test_fold_index < folds:
            raise InvalidInputError(
                f"test_fold_index must be between 0 and {folds - 1}, got {test_fold_index}"
            )
        return Collection.compose_folds(self.create_folds(folds, random_seed), test_fold_index)

    def _feature_order(self, feature_order: Optional[Sequence[str]]) -> List[str]:
        if feature_order is not None:
            return list(feature_order)
        if self.feature_names is not None:
            return list(self.feature_names)
        if self._examples:
            return list(self._examples[0].feature_names)
        return []

    def to_arrays(self, feature_order: Optional[Sequence[str]] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Export the collection as a feature matrix and a label array.

        Args:
            feature_order: Column order (default: feature_names, else the
                           first Example's key order)

        Returns:
            Tuple of (X, y) with X of shape (n_samples, n_features)
        """
        columns = self._feature_order(feature_order)
        matrix = np.array(
            [[example.get_feature(name) for name in columns] for example in self._examples],
            dtype=np.float64
        ).reshape(len(self._examples), len(columns))
        labels = np.array(self.labels(), dtype=object)
        return matrix, labels

    def to_frame(self, feature_order: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Export the collection as a DataFrame with one column per feature plus a label column."""
        columns = self._feature_order(feature_order)
        matrix, labels = self.to_arrays(columns)
        frame = pd.DataFrame(matrix, columns=columns)
        frame[self.target_name or 'label'] = labels
        return frame

    def __repr__(self) -> str:
        parts = [f"size={len(self)}"]
        parts.append(f"features={self._examples[0].feature_count if self._examples else 'none'}")
        if self.feature_names is not None:
            parts.append(f"feature_names={self.feature_names}")
        if self.target_name is not None:
            parts.append(f"target_name={self.target_name!r}")
        return f"Collection({', '.join(parts)})"
