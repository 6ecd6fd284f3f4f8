"""
mleval - evaluation metrics for multi-label and multi-target classifiers.

Subpackages:
    evaluation: Metrics, threshold calibration and result aggregation
    utils: Configuration and logging setup
"""

__version__ = "1.0.0"
