"""
Configuration Management

Loads, validates and saves the JSON configuration used by the command-line
demo. Values missing from a config file fall back to DEFAULT_CONFIG.
"""

import json
import os
from typing import Dict

from knnlab.distance import available_metrics
from knnlab.errors import InvalidInputError


DEFAULT_CONFIG_PATH = "./knnlab_config.json"

DEFAULT_CONFIG: Dict = {
    "k": 3,
    "metric": "euclidean",
    "random_seed": 42,
    "holdout_ratio": 0.7,
    "folds": 5,
    "min_k": 1,
    "max_k": 15,
    "normalize": True,
    "log_level": "INFO"
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load configuration from a JSON file, merged over DEFAULT_CONFIG.

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        json.JSONDecodeError: If config file is not valid JSON
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        loaded = json.load(f)

    config = dict(DEFAULT_CONFIG)
    config.update(loaded)
    return config


def save_config(config: Dict, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config (dict): Configuration dictionary to save
        config_path (str): Path to the configuration file

    Raises:
        IOError: If the file cannot be written
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)


def _require_int(config: Dict, key: str, minimum: int) -> int:
    value = config.get(key, DEFAULT_CONFIG[key])
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{key} must be an integer, got: {type(value).__name__}")
    if value < minimum:
        raise InvalidInputError(f"{key} must be at least {minimum}, got: {value}")
    return value


def validate_config(config: Dict) -> Dict:
    """
    Validate configuration values.

    Validates that:
    - k, folds, min_k and max_k are integers in range, with min_k <= max_k
    - metric is a registered distance metric name
    - holdout_ratio is a number strictly between 0 and 1
    - normalize is a boolean and log_level a logging level name

    Args:
        config: Configuration dictionary to validate

    Returns:
        dict: Validated configuration with normalized values

    Raises:
        InvalidInputError: If a value is invalid
    """
    validated_config = dict(DEFAULT_CONFIG)
    validated_config.update(config)

    validated_config['k'] = _require_int(config, 'k', 1)
    validated_config['folds'] = _require_int(config, 'folds', 2)
    validated_config['min_k'] = _require_int(config, 'min_k', 1)
    validated_config['max_k'] = _require_int(config, 'max_k', 1)
    validated_config['random_seed'] = _require_int(config, 'random_seed', 0)

    if validated_config['max_k'] < validated_config['min_k']:
        raise InvalidInputError(
            f"max_k ({validated_config['max_k']}) must not be less than min_k ({validated_config['min_k']})"
        )

    metric = str(config.get('metric', DEFAULT_CONFIG['metric'])).strip().lower()
    if metric not in available_metrics():
        raise InvalidInputError(f"metric must be one of {available_metrics()}, got: {metric!r}")
    validated_config['metric'] = metric

    ratio = config.get('holdout_ratio', DEFAULT_CONFIG['holdout_ratio'])
    if isinstance(ratio, bool) or not isinstance(ratio, (int, float)) or not 0 < ratio < 1:
        raise InvalidInputError(f"holdout_ratio must be a number between 0 and 1, got: {ratio!r}")
    validated_config['holdout_ratio'] = float(ratio)

    normalize = config.get('normalize', DEFAULT_CONFIG['normalize'])
    if not isinstance(normalize, bool):
        raise InvalidInputError(f"normalize must be a boolean (true/false), got: {type(normalize).__name__}")

    log_level = str(config.get('log_level', DEFAULT_CONFIG['log_level'])).upper()
    if log_level not in _LOG_LEVELS:
        raise InvalidInputError(f"log_level must be one of {_LOG_LEVELS}, got: {log_level!r}")
    validated_config['log_level'] = log_level

    return validated_config
