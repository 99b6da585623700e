"""
End-to-end tests for the command-line demo.

Runs main() in every mode against the bundled iris dataset and checks the
JSON results it writes.
"""

import io
import json
import logging
import os
import shutil
import tempfile

import pandas as pd
import pytest

from knnlab.config import DEFAULT_CONFIG, save_config, validate_config
from knnlab.errors import InvalidInputError
from knnlab.main import build_parser, compare_metrics, load_dataset, main, resolve_config, run
from knnlab.utils import setup_logging


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture(scope="module")
def iris():
    return load_dataset('iris')


def read_json(path):
    with open(path, 'r') as f:
        return json.load(f)


def test_load_dataset(iris):
    assert len(iris) == 150
    assert len(iris.feature_names) == 4
    assert iris.target_name == 'class'
    assert set(iris.labels()) == {'setosa', 'versicolor', 'virginica'}
    assert [e.id for e in iris][:3] == [0, 1, 2]


def test_load_unknown_dataset():
    with pytest.raises(InvalidInputError):
        load_dataset('mnist')


def test_run_rejects_unknown_mode(iris):
    with pytest.raises(InvalidInputError):
        run(iris, 'bootstrap', validate_config({}))


def test_compare_metrics_table(iris):
    config = validate_config({'min_k': 1, 'max_k': 2})
    table = compare_metrics(iris, config)

    assert isinstance(table, pd.DataFrame)
    assert len(table) == 6
    assert list(table.columns) == ['k', 'metric', 'accuracy', 'precision', 'recall', 'f1_score']
    assert set(table['metric']) == {'euclidean', 'manhattan', 'cosine'}
    assert table['accuracy'].between(0, 1).all()


def test_holdout_mode(temp_dir, capsys):
    output = os.path.join(temp_dir, 'holdout.json')

    assert main(['--dataset', 'iris', '--mode', 'holdout', '--k', '5', '--output', output]) == 0

    result = read_json(output)
    assert result['mode'] == 'holdout'
    assert result['dataset'] == 'iris'
    assert result['k'] == 5
    assert sum(sum(row) for row in result['metrics']['confusion_matrix']) == 45
    assert result['metrics']['accuracy'] > 0.8
    assert "KNN CLASSIFIER EVALUATION" in capsys.readouterr().out


def test_cv_mode(temp_dir):
    output = os.path.join(temp_dir, 'cv.json')

    assert main(['--mode', 'cv', '--folds', '3', '--metric', 'manhattan', '--output', output]) == 0

    result = read_json(output)
    assert result['folds'] == 3
    assert result['metric'] == 'manhattan'
    assert 'confusion_matrix' not in result['metrics']
    assert result['metrics']['macro_f1_score'] > 0.8


def test_search_mode(temp_dir):
    output = os.path.join(temp_dir, 'search.json')

    assert main(['--mode', 'search', '--min-k', '1', '--max-k', '3', '--folds', '3', '--output', output]) == 0

    result = read_json(output)
    assert list(result['scores']) == ['1', '2', '3']
    best = result['scores'][str(result['best_k'])]['macro_f1_score']
    assert all(best >= score['macro_f1_score'] for score in result['scores'].values())


def test_compare_mode(temp_dir):
    output = os.path.join(temp_dir, 'compare.json')

    assert main(['--mode', 'compare', '--min-k', '1', '--max-k', '1', '--no-normalize', '--output', output]) == 0

    result = read_json(output)
    assert [row['metric'] for row in result['rows']] == ['euclidean', 'manhattan', 'cosine']


def test_config_file_and_overrides(temp_dir):
    path = os.path.join(temp_dir, 'config.json')
    save_config(dict(DEFAULT_CONFIG, k=7, folds=4), path)

    args = build_parser().parse_args(['--config', path, '--k', '2', '--no-normalize'])
    config = resolve_config(args)

    assert config['k'] == 2
    assert config['folds'] == 4
    assert config['normalize'] is False


def test_save_config_option(temp_dir):
    path = os.path.join(temp_dir, 'saved.json')

    assert main(['--k', '4', '--save-config', path]) == 0
    assert read_json(path)['k'] == 4


def test_invalid_value_returns_error(capsys):
    assert main(['--k', '0']) == 1
    assert "ERROR" in capsys.readouterr().err


def test_missing_config_returns_error(temp_dir):
    assert main(['--config', os.path.join(temp_dir, 'missing.json')]) == 1


def test_k_larger_than_training_set_returns_error():
    assert main(['--k', '500']) == 1


def test_setup_logging_does_not_duplicate_handlers():
    logger = setup_logging("DEBUG", stream=io.StringIO())
    handler_count = len(logger.handlers)

    again = setup_logging("warning")

    assert again is logger
    assert len(again.handlers) == handler_count
    assert again.level == logging.WARNING
    assert all(handler.level == logging.WARNING for handler in again.handlers)
    setup_logging("INFO")


def test_setup_logging_writes_formatted_lines():
    stream = io.StringIO()
    setup_logging(logging.INFO, stream=stream)

    logging.getLogger("knnlab.evaluation").info("k = 1, F1-Score = 1.0000")

    assert " - knnlab.evaluation - INFO - k = 1, F1-Score = 1.0000" in stream.getvalue()
    setup_logging("INFO")


@pytest.mark.parametrize("level", ["VERBOSE", "", True])
def test_setup_logging_rejects_unknown_level(level):
    with pytest.raises(InvalidInputError):
        setup_logging(level)
