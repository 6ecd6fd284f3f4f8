"""
Probabilistic (log-loss) metrics.

The log loss of a single (label, confidence) pair is capped at a ceiling C so
one confidently wrong prediction cannot dominate the average. Two ceilings
are used in practice: ln(L), based on the number of labels, and ln(N), based
on the number of instances.
"""

from typing import Any

import numpy as np

from .matrices import MISSING, as_confidence_matrix, as_label_matrix, check_same_shape

# Pairs closer than this count as a perfect prediction.
SMALL = 1e-6


def log_loss(y: float, p: float, ceiling: float) -> float:
    """
    Capped log loss of one true label and one confidence.

    Args:
        y (float): True label (0 or 1)
        p (float): Predicted confidence
        ceiling (float): Maximum loss for a single pair

    Returns:
        float: ``min(ceiling, -(y ln p + (1 - y) ln(1 - p)))``, 0.0 if ``y``
            and ``p`` are (almost) equal or the loss is undefined

    Example:
        >>> round(log_loss(1, 0.5, 10.0), 4)
        0.6931
        >>> log_loss(1, 0.0, 2.0)
        2.0
    """
    if abs(y - p) < SMALL:
        return 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        loss = min(-(y * np.log(p) + (1.0 - y) * np.log(1.0 - p)), ceiling)
    return 0.0 if np.isnan(loss) else float(loss)


def _pairwise_log_loss(
    labels: np.ndarray, confidences: np.ndarray, ceiling: float
) -> np.ndarray:
    y = labels.astype(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        loss = np.minimum(-(y * np.log(confidences) + (1.0 - y) * np.log(1.0 - confidences)), ceiling)
    loss = np.nan_to_num(loss, nan=0.0)
    loss[np.abs(y - confidences) < SMALL] = 0.0
    return loss


def total_log_loss(y_true: Any, confidences: Any, ceiling: float) -> float:
    """
    Sum of the capped log loss over all supervised (instance, label) pairs.

    Args:
        y_true (Any): True labels, shape (num_instances, num_labels)
        confidences (Any): Confidences, same shape
        ceiling (float): Maximum loss for a single pair

    Returns:
        float: Total loss (not normalized)
    """
    labels = as_label_matrix(y_true)
    scores = as_confidence_matrix(confidences)
    check_same_shape(labels, scores, names=("y_true", "confidences"))
    supervised = labels != MISSING
    return float(_pairwise_log_loss(labels, scores, ceiling)[supervised].sum())


def _normalized(y_true: Any, confidences: Any, ceiling: float) -> float:
    labels = as_label_matrix(y_true)
    pairs = int(np.sum(labels != MISSING))
    if pairs == 0:
        return float("nan")
    return total_log_loss(labels, confidences, ceiling) / pairs


def log_loss_by_labels(y_true: Any, confidences: Any) -> float:
    """
    Mean log loss with each pair capped at ln(L).

    Example:
        >>> round(log_loss_by_labels([[1, 0, 1]], [[0.0, 1.0, 0.0]]), 4)
        1.0986
    """
    labels = as_label_matrix(y_true)
    return _normalized(labels, confidences, np.log(labels.shape[1]))


def log_loss_by_instances(y_true: Any, confidences: Any) -> float:
    """Mean log loss with each pair capped at ln(N)."""
    labels = as_label_matrix(y_true)
    return _normalized(labels, confidences, np.log(labels.shape[0]))
