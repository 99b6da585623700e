"""
Model Evaluation Harness

Hold-out evaluation, k-fold cross-validation and brute-force search over k,
all built on KNNClassifier and ConfusionMatrix. Every shuffle uses a fixed
seed so results are reproducible for the same input order.
"""

import logging
from typing import Dict, List

from knnlab.classifier import KNNClassifier
from knnlab.confusion import ConfusionMatrix, PerformanceMetrics
from knnlab.dataset import DEFAULT_RANDOM_SEED, Collection
from knnlab.errors import InvalidInputError


logger = logging.getLogger(__name__)


DEFAULT_FOLDS = 5


def _score(classifier: KNNClassifier, training_set: Collection, testing_set: Collection) -> PerformanceMetrics:
    classifier.train(training_set)
    predicted_labels = classifier.predict(testing_set)
    confusion_matrix = ConfusionMatrix(testing_set.labels(), predicted_labels)
    return PerformanceMetrics.from_confusion_matrix(confusion_matrix)


def _check_inputs(classifier: KNNClassifier, dataset: Collection) -> None:
    if dataset is None or dataset.is_empty():
        raise InvalidInputError("Dataset cannot be None or empty")
    if classifier is None:
        raise InvalidInputError("Classifier cannot be None")


def evaluate_with_holdout(
    classifier: KNNClassifier,
    dataset: Collection,
    training_ratio: float,
    random_seed: int = DEFAULT_RANDOM_SEED
) -> PerformanceMetrics:
    """
    Evaluate a classifier on a single seeded train/test split.

    Args:
        classifier: Classifier to train and evaluate (it is left trained on the training part)
        dataset: Collection to split
        training_ratio: Share of examples used for training, in (0, 1)
        random_seed: Seed for the shuffle (default: 42)

    Returns:
        PerformanceMetrics holding the test-set ConfusionMatrix

    Raises:
        InvalidInputError: If the dataset is empty, the classifier is None
                           or the ratio is out of range
    """
    _check_inputs(classifier, dataset)
    if not 0 < training_ratio < 1:
        raise InvalidInputError(f"training_ratio must be between 0 and 1, got {training_ratio}")

    training_set, testing_set = dataset.split(training_ratio, random_seed)
    logger.info(f"Hold-out split: {len(training_set)} training, {len(testing_set)} testing examples")

    metrics = _score(classifier, training_set, testing_set)
    logger.info(f"Hold-out accuracy={metrics.accuracy:.4f}, macro F1={metrics.macro_f1_score:.4f}")
    return metrics


class CrossValidation:
    """
    K-fold cross-validation of a KNNClassifier.

    Each fold serves as the test set exactly once while the remaining folds
    form the training set.

    Args:
        dataset: Collection to partition
        classifier: Classifier to train and evaluate on each fold
        folds: Number of folds, 2 <= folds <= len(dataset)
        random_seed: Seed for the fold shuffle (default: 42)

    Raises:
        InvalidInputError: If any argument is invalid
    """

    def __init__(
        self,
        dataset: Collection,
        classifier: KNNClassifier,
        folds: int,
        random_seed: int = DEFAULT_RANDOM_SEED
    ):
        _check_inputs(classifier, dataset)
        if folds < 2:
            raise InvalidInputError(f"Number of folds must be at least 2, got {folds}")
        if folds > len(dataset):
            raise InvalidInputError(
                f"Number of folds ({folds}) cannot be greater than the dataset size ({len(dataset)})"
            )

        self.dataset = dataset
        self.classifier = classifier
        self.folds = folds
        self.random_seed = random_seed

    def evaluate(self) -> List[PerformanceMetrics]:
        """Train and score once per fold, returning one PerformanceMetrics per fold."""
        fold_collections = self.dataset.create_folds(self.folds, self.random_seed)

        results = []
        for i in range(self.folds):
            training_set, testing_set = Collection.compose_folds(fold_collections, i)
            metrics = _score(self.classifier, training_set, testing_set)
            logger.debug(
                f"Fold {i + 1}/{self.folds}: accuracy={metrics.accuracy:.4f}, "
                f"macro F1={metrics.macro_f1_score:.4f}"
            )
            results.append(metrics)

        return results

    def average_performance(self) -> PerformanceMetrics:
        """Mean of the per-fold metrics, without a confusion matrix."""
        return PerformanceMetrics.average(self.evaluate())


def evaluate_with_cross_validation(
    classifier: KNNClassifier,
    dataset: Collection,
    folds: int = DEFAULT_FOLDS,
    random_seed: int = DEFAULT_RANDOM_SEED
) -> PerformanceMetrics:
    """Run k-fold cross-validation and return the averaged metrics."""
    return CrossValidation(dataset, classifier, folds, random_seed).average_performance()


def _check_k_range(min_k: int, max_k: int) -> None:
    if min_k < 1 or max_k < min_k:
        raise InvalidInputError(f"Invalid k range: [{min_k}, {max_k}]")


def score_k_range(
    classifier: KNNClassifier,
    dataset: Collection,
    min_k: int,
    max_k: int,
    folds: int = DEFAULT_FOLDS,
    random_seed: int = DEFAULT_RANDOM_SEED
) -> Dict[int, PerformanceMetrics]:
    """
    Cross-validate every k in [min_k, max_k].

    The classifier's k is changed in place and it is left trained on the
    last fold of the last candidate.

    Returns:
        Dict mapping k to its averaged PerformanceMetrics, in ascending k order

    Raises:
        InvalidInputError: If min_k < 1 or max_k < min_k
    """
    _check_k_range(min_k, max_k)

    scores = {}
    for k in range(min_k, max_k + 1):
        classifier.set_k(k)
        metrics = evaluate_with_cross_validation(classifier, dataset, folds, random_seed)
        logger.info(f"k = {k}, F1-Score = {metrics.macro_f1_score:.4f}")
        scores[k] = metrics

    return scores


def find_best_k(
    classifier: KNNClassifier,
    dataset: Collection,
    min_k: int,
    max_k: int,
    folds: int = DEFAULT_FOLDS,
    random_seed: int = DEFAULT_RANDOM_SEED
) -> int:
    """
    Search [min_k, max_k] for the k with the highest cross-validated macro F1.

    Only a strictly better score replaces the current best, so ties keep the
    lowest k.

    Returns:
        Best k found

    Raises:
        InvalidInputError: If min_k < 1 or max_k < min_k
    """
    scores = score_k_range(classifier, dataset, min_k, max_k, folds, random_seed)
    best_k = select_best_k(scores)

    logger.info(f"Best k = {best_k} (F1-Score = {scores[best_k].macro_f1_score:.4f})")
    return best_k


def select_best_k(scores: Dict[int, PerformanceMetrics]) -> int:
    """
    Pick the k with the highest macro F1 from score_k_range() output.

    Candidates are scanned in ascending k and only a strictly greater score
    replaces the leader.

    Raises:
        InvalidInputError: If scores is empty
    """
    if not scores:
        raise InvalidInputError("No k candidates were scored")

    best_k = None
    best_score = -1.0
    for k in sorted(scores):
        if scores[k].macro_f1_score > best_score:
            best_score = scores[k].macro_f1_score
            best_k = k

    return best_k
