"""
Confusion Matrix and Performance Metrics

ConfusionMatrix tabulates actual-versus-predicted label counts over the union
of every label seen on either side. All derived scores are pure functions of
that fixed table. A zero denominator yields 0.0 rather than NaN, so classes
that were never predicted or never occurred still score as numbers.

PerformanceMetrics wraps accuracy and the three macro averages, either
derived from a ConfusionMatrix (which it keeps for per-class queries) or
given as bare numbers when averaging across cross-validation folds.
"""

import numpy as np
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from knnlab.errors import InvalidInputError, LengthMismatchError, NoDetailAvailableError, UnknownLabelError


class ConfusionMatrix:
    """
    Actual-versus-predicted count table.

    Labels are ordered by first appearance, scanning the actual sequence and
    then the predicted sequence.

    Args:
        actual_labels: True labels
        predicted_labels: Predicted labels, aligned by index

    Raises:
        LengthMismatchError: If the two sequences differ in length
    """

    def __init__(self, actual_labels: Sequence[Any], predicted_labels: Sequence[Any]):
        actual_labels = list(actual_labels)
        predicted_labels = list(predicted_labels)

        if len(actual_labels) != len(predicted_labels):
            raise LengthMismatchError(
                f"Actual and predicted labels must have the same length "
                f"({len(actual_labels)} != {len(predicted_labels)})"
            )

        self._labels: Tuple[Any, ...] = tuple(dict.fromkeys(actual_labels + predicted_labels))

        self._matrix: Dict[Any, Dict[Any, int]] = {
            actual: {predicted: 0 for predicted in self._labels}
            for actual in self._labels
        }
        for actual, predicted in zip(actual_labels, predicted_labels):
            self._matrix[actual][predicted] += 1

        self._total = len(actual_labels)

    @property
    def labels(self) -> Tuple[Any, ...]:
        return self._labels

    @property
    def total(self) -> int:
        return self._total

    def _check_label(self, label: Any) -> None:
        if label not in self._matrix:
            raise UnknownLabelError(f"Class label not found: {label!r}")

    def count(self, actual: Any, predicted: Any) -> int:
        self._check_label(actual)
        self._check_label(predicted)
        return self._matrix[actual][predicted]

    def true_positives(self, label: Any) -> int:
        self._check_label(label)
        return self._matrix[label][label]

    def false_positives(self, label: Any) -> int:
        """Predicted as label while actually another class (column sum minus diagonal)."""
        self._check_label(label)
        return sum(self._matrix[actual][label] for actual in self._labels if actual != label)

    def false_negatives(self, label: Any) -> int:
        """Actually label but predicted as another class (row sum minus diagonal)."""
        self._check_label(label)
        return sum(self._matrix[label][predicted] for predicted in self._labels if predicted != label)

    def true_negatives(self, label: Any) -> int:
        self._check_label(label)
        return sum(
            self._matrix[actual][predicted]
            for actual in self._labels if actual != label
            for predicted in self._labels if predicted != label
        )

    def precision(self, label: Any) -> float:
        tp = self.true_positives(label)
        fp = self.false_positives(label)
        if tp + fp == 0:
            return 0.0
        return tp / (tp + fp)

    def recall(self, label: Any) -> float:
        tp = self.true_positives(label)
        fn = self.false_negatives(label)
        if tp + fn == 0:
            return 0.0
        return tp / (tp + fn)

    def f1_score(self, label: Any) -> float:
        precision = self.precision(label)
        recall = self.recall(label)
        if precision + recall == 0:
            return 0.0
        return 2 * (precision * recall) / (precision + recall)

    def accuracy(self) -> float:
        if self._total == 0:
            return 0.0
        correct = sum(self._matrix[label][label] for label in self._labels)
        return correct / self._total

    def _macro(self, per_class) -> float:
        if not self._labels:
            return 0.0
        return sum(per_class(label) for label in self._labels) / len(self._labels)

    def macro_precision(self) -> float:
        return self._macro(self.precision)

    def macro_recall(self) -> float:
        return self._macro(self.recall)

    def macro_f1_score(self) -> float:
        return self._macro(self.f1_score)

    def as_dict(self) -> Dict[Any, Dict[Any, int]]:
        """Deep copy of the table as {actual: {predicted: count}}."""
        return {actual: dict(row) for actual, row in self._matrix.items()}

    def to_array(self) -> np.ndarray:
        """Counts as an (n_labels, n_labels) array, rows actual and columns predicted, in labels order."""
        return np.array(
            [[self._matrix[actual][predicted] for predicted in self._labels] for actual in self._labels],
            dtype=np.int64
        ).reshape(len(self._labels), len(self._labels))

    def __str__(self) -> str:
        lines = ["Confusion Matrix:"]
        lines.append(" " * 16 + "".join(f"{'Pred: ' + str(label):<15}" for label in self._labels))
        for actual in self._labels:
            row = "".join(f"{self._matrix[actual][predicted]:<15d}" for predicted in self._labels)
            lines.append(f"{'Actual: ' + str(actual):<16}{row}")

        lines.append("")
        lines.append("Metrics:")
        lines.append(f"Accuracy: {self.accuracy():.4f}")
        lines.append(f"Macro-Average Precision: {self.macro_precision():.4f}")
        lines.append(f"Macro-Average Recall: {self.macro_recall():.4f}")
        lines.append(f"Macro-Average F1-Score: {self.macro_f1_score():.4f}")

        lines.append("")
        lines.append("Per-class metrics:")
        for label in self._labels:
            lines.append(f"Class: {label}")
            lines.append(f"  Precision: {self.precision(label):.4f}")
            lines.append(f"  Recall: {self.recall(label):.4f}")
            lines.append(f"  F1-Score: {self.f1_score(label):.4f}")
            lines.append(
                f"  TP: {self.true_positives(label)}, FP: {self.false_positives(label)}, "
                f"FN: {self.false_negatives(label)}, TN: {self.true_negatives(label)}"
            )

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ConfusionMatrix(labels={list(self._labels)}, total={self._total})"


class PerformanceMetrics:
    """
    Accuracy and macro-averaged precision, recall and F1.

    Instances built with from_confusion_matrix() keep the matrix and answer
    per-class queries. Instances built from bare numbers (fold averages) do
    not, and per-class queries on them raise NoDetailAvailableError.
    """

    def __init__(
        self,
        accuracy: float,
        macro_precision: float,
        macro_recall: float,
        macro_f1_score: float,
        confusion_matrix: Optional[ConfusionMatrix] = None
    ):
        self.accuracy = float(accuracy)
        self.macro_precision = float(macro_precision)
        self.macro_recall = float(macro_recall)
        self.macro_f1_score = float(macro_f1_score)
        self.confusion_matrix = confusion_matrix

    @classmethod
    def from_confusion_matrix(cls, confusion_matrix: ConfusionMatrix) -> 'PerformanceMetrics':
        return cls(
            confusion_matrix.accuracy(),
            confusion_matrix.macro_precision(),
            confusion_matrix.macro_recall(),
            confusion_matrix.macro_f1_score(),
            confusion_matrix
        )

    @classmethod
    def from_labels(cls, actual_labels: Sequence[Any], predicted_labels: Sequence[Any]) -> 'PerformanceMetrics':
        return cls.from_confusion_matrix(ConfusionMatrix(actual_labels, predicted_labels))

    @classmethod
    def average(cls, metrics: Iterable['PerformanceMetrics']) -> 'PerformanceMetrics':
        """
        Arithmetic mean of accuracy and each macro metric.

        The result holds numbers only; no combined confusion matrix is formed.

        Raises:
            InvalidInputError: If metrics is empty
        """
        metrics = list(metrics)
        if not metrics:
            raise InvalidInputError("Cannot average an empty list of metrics")

        count = len(metrics)
        return cls(
            sum(m.accuracy for m in metrics) / count,
            sum(m.macro_precision for m in metrics) / count,
            sum(m.macro_recall for m in metrics) / count,
            sum(m.macro_f1_score for m in metrics) / count
        )

    @property
    def has_detail(self) -> bool:
        return self.confusion_matrix is not None

    def _require_matrix(self) -> ConfusionMatrix:
        if self.confusion_matrix is None:
            raise NoDetailAvailableError("No confusion matrix available for averaged metrics")
        return self.confusion_matrix

    def precision(self, label: Any) -> float:
        return self._require_matrix().precision(label)

    def recall(self, label: Any) -> float:
        return self._require_matrix().recall(label)

    def f1_score(self, label: Any) -> float:
        return self._require_matrix().f1_score(label)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-value view suitable for JSON."""
        result: Dict[str, Any] = {
            'accuracy': self.accuracy,
            'macro_precision': self.macro_precision,
            'macro_recall': self.macro_recall,
            'macro_f1_score': self.macro_f1_score,
        }
        if self.confusion_matrix is not None:
            result['labels'] = [_plain(label) for label in self.confusion_matrix.labels]
            result['confusion_matrix'] = self.confusion_matrix.to_array().tolist()
        return result

    def __str__(self) -> str:
        lines = [
            "Performance Metrics:",
            f"Accuracy: {self.accuracy:.4f}",
            f"Macro-average Precision: {self.macro_precision:.4f}",
            f"Macro-average Recall: {self.macro_recall:.4f}",
            f"Macro-average F1-Score: {self.macro_f1_score:.4f}",
        ]
        if self.confusion_matrix is not None:
            lines.append("")
            lines.append(str(self.confusion_matrix))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PerformanceMetrics(accuracy={self.accuracy:.4f}, macro_precision={self.macro_precision:.4f}, "
            f"macro_recall={self.macro_recall:.4f}, macro_f1_score={self.macro_f1_score:.4f})"
        )


def _plain(label: Any) -> Any:
    # numpy scalars are not JSON serializable
    if isinstance(label, np.generic):
        return label.item()
    return label
