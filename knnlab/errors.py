"""
Exception types raised by the KNN engine and its evaluation harness.

Every failure is raised at the point of detection. Input problems subclass
ValueError and state problems subclass RuntimeError, so callers that only
care about the broad category can catch the builtin type.
"""


class KNNError(Exception):
    """Base class for all knnlab errors."""


class InvalidInputError(KNNError, ValueError):
    """Null or empty collection, out-of-range ratio, fold count, k or k range."""


class FeatureMismatchError(InvalidInputError):
    """Two feature vectors being compared do not share the same key set."""


class UnknownMetricError(InvalidInputError):
    """A distance metric name is not registered."""


class LengthMismatchError(InvalidInputError):
    """Actual and predicted label sequences have different lengths."""


class NotTrainedError(KNNError, RuntimeError):
    """Prediction was requested before the classifier was trained."""


class UnknownLabelError(KNNError, ValueError):
    """A per-class query names a label that was never seen."""


class NoDetailAvailableError(KNNError, RuntimeError):
    """A per-class query was made on metrics that only hold averages."""
