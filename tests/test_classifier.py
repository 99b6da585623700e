"""
Unit tests for the KNN classifier facade.

Tests the untrained/trained lifecycle, prediction dispatch, and rebuilding
the search engine when k or the distance metric changes.
"""

import unittest

import numpy as np

from knnlab.classifier import KNNClassifier
from knnlab.dataset import Collection, Example, KNNResult
from knnlab.distance import CosineDistance, EuclideanDistance, ManhattanDistance
from knnlab.errors import InvalidInputError, NotTrainedError, UnknownMetricError


def line(*points):
    return Collection([Example({'x': x}, label, i) for i, (x, label) in enumerate(points)])


class TestKNNClassifier(unittest.TestCase):
    """Test cases for KNNClassifier."""

    def setUp(self):
        """Set up a 1-D training set where k=1 and k=3 disagree at x=0."""
        self.training = line((0.0, 'A'), (1.0, 'B'), (1.1, 'B'), (5.0, 'A'), (6.0, 'A'))

        # k=1 picks (3, 3) as A under euclidean; manhattan picks (0, 5) as B
        self.grid = Collection([
            Example({'x': 3.0, 'y': 3.0}, 'A'),
            Example({'x': 0.0, 'y': 5.0}, 'B'),
        ])

    def test_defaults(self):
        classifier = KNNClassifier()
        self.assertEqual(classifier.k, 3)
        self.assertIsInstance(classifier.distance_metric, EuclideanDistance)
        self.assertFalse(classifier.is_trained)
        self.assertIsNone(classifier.training_set)

    def test_explicit_configuration(self):
        self.assertIsInstance(KNNClassifier(5, 'manhattan').distance_metric, ManhattanDistance)
        self.assertIsInstance(KNNClassifier(5, CosineDistance()).distance_metric, CosineDistance)

    def test_invalid_constructor_arguments(self):
        with self.assertRaises(InvalidInputError):
            KNNClassifier(0)
        with self.assertRaises(UnknownMetricError):
            KNNClassifier(3, 'hamming')

    def test_non_integer_k_is_rejected(self):
        for k in (2.5, 3.0, "3", True, None):
            with self.subTest(k=k):
                with self.assertRaises(InvalidInputError):
                    KNNClassifier(k)

        classifier = KNNClassifier(1)
        classifier.train(self.training)
        with self.assertRaises(InvalidInputError):
            classifier.set_k(1.5)
        self.assertEqual(classifier.k, 1)
        self.assertEqual(classifier.predict({'x': 0.0}), 'A')

    def test_numpy_integer_k_is_accepted(self):
        classifier = KNNClassifier(np.int64(2))
        classifier.train(self.training)
        self.assertEqual(len(classifier.find_nearest_neighbors({'x': 0.0})), 2)

    def test_predict_before_train(self):
        classifier = KNNClassifier()
        with self.assertRaises(NotTrainedError):
            classifier.predict({'x': 0.0})
        with self.assertRaises(NotTrainedError):
            classifier.predict(self.training)
        with self.assertRaises(RuntimeError):
            classifier.find_nearest_neighbors({'x': 0.0})

    def test_train_rejects_empty(self):
        classifier = KNNClassifier()
        with self.assertRaises(InvalidInputError):
            classifier.train(Collection())
        with self.assertRaises(InvalidInputError):
            classifier.train(None)
        self.assertFalse(classifier.is_trained)

    def test_train_and_predict_single(self):
        classifier = KNNClassifier(1)
        classifier.train(self.training)

        self.assertTrue(classifier.is_trained)
        self.assertIs(classifier.training_set, self.training)
        self.assertEqual(classifier.predict({'x': 0.0}), 'A')
        self.assertEqual(classifier.predict(Example({'x': 1.05})), 'B')

    def test_predict_collection(self):
        classifier = KNNClassifier(1)
        classifier.train(self.training)

        predictions = classifier.predict(line((0.1, None), (1.2, None), (5.5, None)))
        self.assertEqual(predictions, ['A', 'B', 'A'])

    def test_find_nearest_neighbors(self):
        classifier = KNNClassifier(2)
        classifier.train(self.training)

        result = classifier.find_nearest_neighbors({'x': 0.0})
        self.assertIsInstance(result, KNNResult)
        self.assertEqual(result.labels(), ['A', 'B'])

    def test_set_k_rebuilds_when_trained(self):
        classifier = KNNClassifier(1)
        classifier.train(self.training)
        self.assertEqual(classifier.predict({'x': 0.0}), 'A')

        classifier.set_k(3)
        self.assertEqual(classifier.k, 3)
        self.assertEqual(classifier.predict({'x': 0.0}), 'B')
        self.assertIs(classifier.training_set, self.training)

    def test_set_k_before_training(self):
        classifier = KNNClassifier()
        classifier.set_k(7)
        self.assertEqual(classifier.k, 7)
        self.assertFalse(classifier.is_trained)

    def test_set_k_invalid(self):
        classifier = KNNClassifier(1)
        classifier.train(self.training)

        with self.assertRaises(InvalidInputError):
            classifier.set_k(0)
        with self.assertRaises(InvalidInputError):
            classifier.set_k(len(self.training) + 1)

        self.assertEqual(classifier.k, 1)
        self.assertEqual(classifier.predict({'x': 0.0}), 'A')

    def test_set_distance_metric_rebuilds_when_trained(self):
        classifier = KNNClassifier(1)
        classifier.train(self.grid)
        self.assertEqual(classifier.predict({'x': 0.0, 'y': 0.0}), 'A')

        classifier.set_distance_metric('manhattan')
        self.assertIsInstance(classifier.distance_metric, ManhattanDistance)
        self.assertEqual(classifier.predict({'x': 0.0, 'y': 0.0}), 'B')

        classifier.set_distance_metric(EuclideanDistance())
        self.assertEqual(classifier.predict({'x': 0.0, 'y': 0.0}), 'A')

    def test_set_distance_metric_unknown_name_keeps_metric(self):
        classifier = KNNClassifier(1, 'manhattan')
        with self.assertRaises(UnknownMetricError):
            classifier.set_distance_metric('minkowski')
        self.assertIsInstance(classifier.distance_metric, ManhattanDistance)

    def test_failed_retrain_keeps_previous_state(self):
        classifier = KNNClassifier(3)
        classifier.train(self.training)

        with self.assertRaises(InvalidInputError):
            classifier.train(line((0.0, 'A'), (1.0, 'B')))

        self.assertIs(classifier.training_set, self.training)
        self.assertEqual(classifier.predict({'x': 0.0}), 'B')

    def test_retrain_replaces_training_set(self):
        classifier = KNNClassifier(1)
        classifier.train(self.training)

        other = line((0.0, 'Z'))
        classifier.train(other)
        self.assertIs(classifier.training_set, other)
        self.assertEqual(classifier.predict({'x': 3.0}), 'Z')


if __name__ == '__main__':
    unittest.main()
