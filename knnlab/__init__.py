"""
k-nearest-neighbors classification engine and evaluation harness
"""

from .dataset import Collection, Example, KNNResult, Neighbor
from .distance import CosineDistance, DistanceMetric, EuclideanDistance, ManhattanDistance, create_distance
from .classifier import KNNClassifier
from .confusion import ConfusionMatrix, PerformanceMetrics
from .evaluation import CrossValidation, evaluate_with_cross_validation, evaluate_with_holdout, find_best_k
from .search import NearestNeighborSearch
from .preprocessing import MinMaxNormalizer, collection_from_arrays, encode_categorical_labels

__all__ = [
    'Collection', 'Example', 'KNNResult', 'Neighbor',
    'DistanceMetric', 'EuclideanDistance', 'ManhattanDistance', 'CosineDistance', 'create_distance',
    'KNNClassifier', 'NearestNeighborSearch',
    'ConfusionMatrix', 'PerformanceMetrics',
    'CrossValidation', 'evaluate_with_holdout', 'evaluate_with_cross_validation', 'find_best_k',
    'MinMaxNormalizer', 'collection_from_arrays', 'encode_categorical_labels',
]
