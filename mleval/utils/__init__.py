"""
Utilities package.

This package provides utility functions for:
- Configuration management
- Logging setup

Modules:
    config: Configuration loading, validation and logging setup
"""

from .config import (
    DEFAULT_CONFIG,
    load_config,
    save_config,
    merge_configs,
    get_config_value,
    validate_config,
    evaluation_settings,
    setup_logging
)

__all__ = [
    'DEFAULT_CONFIG',
    'load_config',
    'save_config',
    'merge_configs',
    'get_config_value',
    'validate_config',
    'evaluation_settings',
    'setup_logging',
]
