"""
Preprocessing Module

Transforms that produce or rewrite Examples ahead of classification:

    - MinMaxNormalizer: rescale every feature into [0, 1]
    - encode_categorical_labels: rewrite labels to integer indices in place
    - collection_from_arrays: build a Collection from parallel features and labels
"""

import numpy as np
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from knnlab.dataset import Collection, Example
from knnlab.errors import InvalidInputError, NotTrainedError


class MinMaxNormalizer:
    """
    Per-feature min-max scaling fitted on a Collection.

    Values map to (value - min) / (max - min). A feature that is constant in
    the fitted data maps to 0.5. Transforms return new Examples and never
    modify the input collection.
    """

    def __init__(self):
        self._min_values: Dict[str, float] = {}
        self._max_values: Dict[str, float] = {}
        self._is_fitted = False

    @property
    def is_fitted(self) -> bool:
        return self._is_fitted

    def _check_fitted(self) -> None:
        if not self._is_fitted:
            raise NotTrainedError("The normalizer must be fitted first with fit()")

    @property
    def min_values(self) -> Dict[str, float]:
        self._check_fitted()
        return dict(self._min_values)

    @property
    def max_values(self) -> Dict[str, float]:
        self._check_fitted()
        return dict(self._max_values)

    def fit(self, dataset: Collection) -> 'MinMaxNormalizer':
        """
        Record the min and max of every feature of the first Example.

        Raises:
            InvalidInputError: If the collection is None or empty
        """
        if dataset is None or dataset.is_empty():
            raise InvalidInputError("Dataset cannot be None or empty")

        feature_names = list(dataset[0].feature_names)
        values = np.array(
            [[example.get_feature(name) for name in feature_names] for example in dataset],
            dtype=np.float64
        )

        mins = values.min(axis=0)
        maxs = values.max(axis=0)
        self._min_values = {name: float(v) for name, v in zip(feature_names, mins)}
        self._max_values = {name: float(v) for name, v in zip(feature_names, maxs)}
        self._is_fitted = True
        return self

    def _scale(self, feature: str, value: float) -> float:
        if feature not in self._min_values:
            raise InvalidInputError(f"Feature {feature!r} was not present in the fitted data")
        low = self._min_values[feature]
        high = self._max_values[feature]
        if high == low:
            return 0.5
        return (value - low) / (high - low)

    def normalize_example(self, example: Example) -> Example:
        """Return a new Example with scaled features, the same label and id."""
        self._check_fitted()
        features = {name: self._scale(name, value) for name, value in example.features.items()}
        return Example(features, example.label, example.id)

    def transform(self, dataset: Collection) -> Collection:
        """Return a new Collection of normalized Examples with the same metadata."""
        self._check_fitted()
        return Collection(
            [self.normalize_example(example) for example in dataset],
            dataset.feature_names,
            dataset.target_name
        )

    def fit_transform(self, dataset: Collection) -> Collection:
        return self.fit(dataset).transform(dataset)

    def denormalize(self, feature: str, normalized_value: float) -> float:
        """Map a scaled value back to the original range of a feature."""
        self._check_fitted()
        if feature not in self._min_values:
            raise InvalidInputError(f"Feature {feature!r} was not present in the fitted data")
        low = self._min_values[feature]
        high = self._max_values[feature]
        return normalized_value * (high - low) + low

    def reset(self) -> None:
        self._min_values.clear()
        self._max_values.clear()
        self._is_fitted = False


def encode_categorical_labels(dataset: Collection) -> Dict[Any, int]:
    """
    Replace every label with an integer index, assigned in first-seen order.

    Labels are rewritten in place on the shared Example objects, so any
    split or fold view holding them sees the encoded labels too.

    Returns:
        Mapping from original label to its index
    """
    label_encoder: Dict[Any, int] = {}
    for example in dataset:
        original_label = example.label
        if original_label not in label_encoder:
            label_encoder[original_label] = len(label_encoder)
        example.label = label_encoder[original_label]
    return label_encoder


def decode_labels(labels: Sequence[int], label_encoder: Mapping[Any, int]) -> List[Any]:
    """Invert encode_categorical_labels() for a sequence of encoded labels."""
    decoder = {index: label for label, index in label_encoder.items()}
    return [decoder[label] for label in labels]


def collection_from_arrays(
    features: Union[Sequence[Mapping[str, float]], np.ndarray],
    labels: Sequence[Any],
    feature_names: Optional[Sequence[str]] = None,
    target_name: Optional[str] = None
) -> Collection:
    """
    Build a Collection from parallel features and labels.

    Args:
        features: Either a sequence of feature mappings or a 2-D numeric
                  array of shape (n_samples, n_features)
        labels: One label per sample
        feature_names: Column names for a 2-D array (default: f0, f1, ...)
        target_name: Optional name of the label column

    Returns:
        Collection whose Examples carry ids 0..n-1

    Raises:
        InvalidInputError: If features and labels differ in length, or the
                           names do not match the array width
    """
    if len(features) != len(labels):
        raise InvalidInputError(
            f"Number of feature rows ({len(features)}) must match number of labels ({len(labels)})"
        )

    if isinstance(features, np.ndarray):
        if features.ndim != 2:
            raise InvalidInputError(f"Feature array must be 2-D, got shape {features.shape}")
        if feature_names is None:
            feature_names = [f"f{i}" for i in range(features.shape[1])]
        if len(feature_names) != features.shape[1]:
            raise InvalidInputError(
                f"Got {len(feature_names)} feature names for {features.shape[1]} columns"
            )
        rows = [dict(zip(feature_names, row)) for row in features]
    else:
        rows = list(features)

    examples = [Example(row, label, i) for i, (row, label) in enumerate(zip(rows, labels))]
    return Collection(examples, feature_names, target_name)
