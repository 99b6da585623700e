"""
KNN Evaluation Command-Line Demo

Runs the classifier and evaluation harness against one of scikit-learn's
bundled datasets.

Usage:
    knnlab --dataset iris --mode holdout --k 5 --metric manhattan
    knnlab --dataset wine --mode cv --folds 10
    knnlab --dataset iris --mode search --min-k 1 --max-k 20
    knnlab --dataset breast_cancer --mode compare --min-k 1 --max-k 9 --output results.json
    python -m knnlab.main --config knnlab_config.json
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

import pandas as pd
from sklearn import datasets

from knnlab.classifier import KNNClassifier
from knnlab.config import DEFAULT_CONFIG, load_config, save_config, validate_config
from knnlab.dataset import Collection
from knnlab.distance import available_metrics
from knnlab.errors import InvalidInputError, KNNError
from knnlab.evaluation import (
    evaluate_with_cross_validation,
    evaluate_with_holdout,
    score_k_range,
    select_best_k
)
from knnlab.preprocessing import MinMaxNormalizer, collection_from_arrays
from knnlab.utils import setup_logging


logger = logging.getLogger("knnlab")


DATASETS = {
    'iris': datasets.load_iris,
    'wine': datasets.load_wine,
    'breast_cancer': datasets.load_breast_cancer,
}

MODES = ('holdout', 'cv', 'search', 'compare')


def load_dataset(name: str) -> Collection:
    """
    Load a bundled scikit-learn dataset as a Collection.

    Labels are the class names (e.g. 'setosa') rather than integer targets.

    Args:
        name: One of 'iris', 'wine', 'breast_cancer'

    Returns:
        Collection with feature_names set from the dataset

    Raises:
        InvalidInputError: If the dataset name is unknown
    """
    if name not in DATASETS:
        raise InvalidInputError(f"Unknown dataset: {name!r} (expected one of {', '.join(DATASETS)})")

    bunch = DATASETS[name]()
    labels = [str(bunch.target_names[target]) for target in bunch.target]
    collection = collection_from_arrays(bunch.data, labels, list(bunch.feature_names), target_name='class')

    logger.info(f"Loaded {name} dataset: {len(collection)} examples, {len(bunch.feature_names)} features")
    return collection


def compare_metrics(dataset: Collection, config: Dict) -> pd.DataFrame:
    """
    Hold-out evaluate every registered metric for every k in [min_k, max_k].

    Returns:
        DataFrame with one row per (k, metric) pair
    """
    rows = []
    for k in range(config['min_k'], config['max_k'] + 1):
        for metric_name in available_metrics():
            classifier = KNNClassifier(k, metric_name)
            metrics = evaluate_with_holdout(classifier, dataset, config['holdout_ratio'], config['random_seed'])
            rows.append({
                'k': k,
                'metric': metric_name,
                'accuracy': metrics.accuracy,
                'precision': metrics.macro_precision,
                'recall': metrics.macro_recall,
                'f1_score': metrics.macro_f1_score,
            })

    return pd.DataFrame(rows, columns=['k', 'metric', 'accuracy', 'precision', 'recall', 'f1_score'])


def run(dataset: Collection, mode: str, config: Dict) -> Dict:
    """
    Run one evaluation mode.

    Args:
        dataset: Collection to evaluate on
        mode: One of 'holdout', 'cv', 'search', 'compare'
        config: Validated configuration

    Returns:
        Dictionary of plain results suitable for JSON
    """
    if config['normalize']:
        dataset = MinMaxNormalizer().fit_transform(dataset)

    result: Dict = {'mode': mode, 'size': len(dataset)}

    if mode == 'holdout':
        classifier = KNNClassifier(config['k'], config['metric'])
        metrics = evaluate_with_holdout(classifier, dataset, config['holdout_ratio'], config['random_seed'])
        print(metrics)
        result.update(k=config['k'], metric=config['metric'], metrics=metrics.to_dict())

    elif mode == 'cv':
        classifier = KNNClassifier(config['k'], config['metric'])
        metrics = evaluate_with_cross_validation(classifier, dataset, config['folds'], config['random_seed'])
        print(metrics)
        result.update(k=config['k'], metric=config['metric'], folds=config['folds'], metrics=metrics.to_dict())

    elif mode == 'search':
        classifier = KNNClassifier(config['min_k'], config['metric'])
        scores = score_k_range(
            classifier, dataset, config['min_k'], config['max_k'], config['folds'], config['random_seed']
        )
        best_k = select_best_k(scores)
        print(f"\nBest k found: {best_k} (F1-Score = {scores[best_k].macro_f1_score:.4f})")
        result.update(
            metric=config['metric'],
            folds=config['folds'],
            best_k=best_k,
            scores={str(k): m.to_dict() for k, m in scores.items()}
        )

    elif mode == 'compare':
        table = compare_metrics(dataset, config)
        print(table.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
        result.update(rows=table.to_dict(orient='records'))

    else:
        raise InvalidInputError(f"Unknown mode: {mode!r} (expected one of {', '.join(MODES)})")

    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate a k-nearest-neighbors classifier on a bundled dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Hold-out evaluation with k=5 and Manhattan distance
  knnlab --dataset iris --mode holdout --k 5 --metric manhattan

  # 10-fold cross-validation
  knnlab --dataset wine --mode cv --folds 10

  # Search k in [1, 20] by cross-validated macro F1
  knnlab --dataset iris --mode search --min-k 1 --max-k 20
        """
    )

    parser.add_argument('--dataset', type=str, default='iris', choices=sorted(DATASETS),
                        help='Bundled dataset to evaluate on (default: iris)')
    parser.add_argument('--mode', type=str, default='holdout', choices=MODES,
                        help='Evaluation mode (default: holdout)')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to a JSON configuration file')
    parser.add_argument('--save-config', type=str, default=None,
                        help='Write the effective configuration to this path')
    parser.add_argument('--output', type=str, default=None,
                        help='Write results as JSON to this path')
    parser.add_argument('--k', type=int, default=None, help=f"Number of neighbors (default: {DEFAULT_CONFIG['k']})")
    parser.add_argument('--metric', type=str, default=None,
                        help=f"Distance metric: {', '.join(available_metrics())} (default: {DEFAULT_CONFIG['metric']})")
    parser.add_argument('--ratio', type=float, default=None, dest='holdout_ratio',
                        help=f"Hold-out training ratio (default: {DEFAULT_CONFIG['holdout_ratio']})")
    parser.add_argument('--folds', type=int, default=None,
                        help=f"Cross-validation folds (default: {DEFAULT_CONFIG['folds']})")
    parser.add_argument('--min-k', type=int, default=None, dest='min_k',
                        help=f"Smallest k to search (default: {DEFAULT_CONFIG['min_k']})")
    parser.add_argument('--max-k', type=int, default=None, dest='max_k',
                        help=f"Largest k to search (default: {DEFAULT_CONFIG['max_k']})")
    parser.add_argument('--seed', type=int, default=None, dest='random_seed',
                        help=f"Shuffle seed (default: {DEFAULT_CONFIG['random_seed']})")
    parser.add_argument('--no-normalize', action='store_false', dest='normalize', default=None,
                        help='Disable min-max normalization of features')
    parser.add_argument('--log-level', type=str, default=None, dest='log_level',
                        help=f"Logging level (default: {DEFAULT_CONFIG['log_level']})")

    return parser


_OVERRIDES = ('k', 'metric', 'holdout_ratio', 'folds', 'min_k', 'max_k', 'random_seed', 'normalize', 'log_level')


def resolve_config(args: argparse.Namespace) -> Dict:
    """Merge defaults, the optional config file and command-line overrides, then validate."""
    config = load_config(args.config) if args.config else dict(DEFAULT_CONFIG)

    for key in _OVERRIDES:
        value = getattr(args, key)
        if value is not None:
            config[key] = value

    return validate_config(config)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the evaluation demo.
    """
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
        setup_logging(config['log_level'])

        print("\n" + "=" * 70)
        print("KNN CLASSIFIER EVALUATION")
        print("=" * 70)
        print("\nConfiguration:")
        print(f"  Dataset: {args.dataset}")
        print(f"  Mode: {args.mode}")
        for key in _OVERRIDES:
            print(f"  {key}: {config[key]}")
        print()

        if args.save_config:
            save_config(config, args.save_config)
            logger.info(f"Configuration saved to {args.save_config}")

        dataset = load_dataset(args.dataset)
        result = run(dataset, args.mode, config)
        result['dataset'] = args.dataset

        if args.output:
            with open(args.output, 'w') as f:
                json.dump(result, f, indent=2)
            logger.info(f"Results written to {args.output}")

    except (KNNError, OSError, ValueError) as e:
        print(f"\n✗ ERROR: {str(e)}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
