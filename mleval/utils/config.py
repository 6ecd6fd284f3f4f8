"""
Configuration management utilities.

This module provides functions to load and manage evaluation settings from
YAML files and to set up logging.

Functions:
    load_config: Load configuration from YAML file
    save_config: Save configuration to YAML file
    merge_configs: Merge multiple configurations
    get_config_value: Read a nested value with dot notation
    validate_config: Check the evaluation section
    evaluation_settings: Evaluation section merged over the defaults
    setup_logging: Configure the root logger
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..evaluation.thresholds import is_calibration_token, parse_threshold_values

DEFAULT_CONFIG: Dict[str, Any] = {
    "evaluation": {
        "threshold": "0.5",
        "verbosity": 1,
        "num_windows": 20,
        "recalibrate_windows": True,
        "precision": 3,
        "run_type": "ML",
    },
    "logging": {
        "level": "INFO",
    },
}

RUN_TYPES = ("ML", "MT")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path (Union[str, Path]): Path to the YAML configuration file

    Returns:
        Dict[str, Any]: Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is malformed

    Example:
        >>> config = load_config('config.yaml')
        >>> print(config['evaluation']['threshold'])
        PCut1
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML config: {e}")

    return config or {}


def save_config(
    config: Dict[str, Any], save_path: Union[str, Path]
) -> None:
    """
    Save configuration dictionary to a YAML file.

    Args:
        config (Dict[str, Any]): Configuration dictionary to save
        save_path (Union[str, Path]): Path where to save the YAML file
    """
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)

    with open(save_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def merge_configs(
    base_config: Dict[str, Any], override_config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries, with override_config taking precedence.

    Nested dictionaries are merged recursively; neither input is modified.

    Example:
        >>> base = {'evaluation': {'threshold': '0.5', 'verbosity': 1}}
        >>> override = {'evaluation': {'verbosity': 3}}
        >>> merge_configs(base, override)['evaluation']
        {'threshold': '0.5', 'verbosity': 3}
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def get_config_value(
    config: Dict[str, Any], key_path: str, default: Any = None
) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config (Dict[str, Any]): Configuration dictionary
        key_path (str): Dot-separated path to the value (e.g., 'evaluation.verbosity')
        default (Any, optional): Default value if key not found. Defaults to None.

    Returns:
        Any: Configuration value or default

    Example:
        >>> get_config_value({'evaluation': {'verbosity': 2}}, 'evaluation.verbosity')
        2
        >>> get_config_value({}, 'evaluation.missing_key', default=42)
        42
    """
    keys = key_path.split(".")
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate the evaluation section of a configuration.

    Args:
        config (Dict[str, Any]): Configuration dictionary to validate

    Raises:
        ValueError: If a setting is missing or invalid
    """
    evaluation = config.get("evaluation")
    if not isinstance(evaluation, dict):
        raise ValueError("Missing required configuration section: evaluation")

    threshold = evaluation.get("threshold")
    if threshold is None:
        raise ValueError("evaluation.threshold is required")
    if not is_calibration_token(threshold):
        try:
            parse_threshold_values(threshold)
        except ValueError as e:
            raise ValueError(f"Invalid evaluation.threshold: {e}")

    verbosity = evaluation.get("verbosity", 1)
    if not isinstance(verbosity, int) or isinstance(verbosity, bool) or verbosity < 1:
        raise ValueError(f"verbosity must be an integer >= 1, got {verbosity!r}")

    num_windows = evaluation.get("num_windows", 1)
    if not isinstance(num_windows, int) or num_windows < 1:
        raise ValueError(f"num_windows must be a positive integer, got {num_windows!r}")

    precision = evaluation.get("precision", 3)
    if not isinstance(precision, int) or precision < 0:
        raise ValueError(f"precision must be a non-negative integer, got {precision!r}")

    run_type = evaluation.get("run_type", "ML")
    if run_type not in RUN_TYPES:
        raise ValueError(f"run_type must be one of {RUN_TYPES}, got {run_type!r}")


def evaluation_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Return the evaluation section merged over the defaults, validated.

    Args:
        config (Optional[Dict[str, Any]], optional): Loaded configuration.
            Defaults to None (the defaults only).

    Returns:
        Dict[str, Any]: Evaluation settings
    """
    merged = merge_configs(DEFAULT_CONFIG, config or {})
    validate_config(merged)
    return merged["evaluation"]


def setup_logging(level: Union[str, int] = "INFO") -> None:
    """
    Configure the root logger with the project's log format.

    Args:
        level (Union[str, int], optional): Log level name or number. Defaults to "INFO".
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
