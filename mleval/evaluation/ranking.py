"""
Ranking metrics for multi-label classification.

These metrics only look at the order the classifier puts the labels in, not
at a threshold. Positions whose true label is missing are removed before
ranking, and instances without any supervised label are NaN (skipped when
averaging over a dataset).

Functions:
    rank: Rank of each confidence (1 = highest, ties share the worst rank)
    one_error: Fraction of instances whose top-ranked label is not relevant
    average_precision: Average precision over relevant labels
    rank_loss: Fraction of misordered (relevant, irrelevant) label pairs
"""

from typing import Any

import numpy as np

from .matrices import (
    align,
    as_confidence_matrix,
    as_confidence_vector,
    as_label_matrix,
    as_label_vector,
    check_same_shape,
    nan_mean,
)


def rank(confidences: Any) -> np.ndarray:
    """
    Rank confidences, where rank(i) is the number of values >= c[i].

    The highest confidence gets rank 1. Tied values all get the worst
    (largest) rank of their group.

    Args:
        confidences (Any): Confidence vector

    Returns:
        np.ndarray: Integer ranks in [1, len(confidences)]

    Example:
        >>> rank([0.1, 0.6, 0.3, 0.4, 0.2, 0.5])
        array([6, 1, 4, 3, 5, 2])
        >>> rank([0.5, 0.9, 0.5])
        array([3, 1, 3])
    """
    c = as_confidence_vector(confidences)
    return len(c) - np.searchsorted(np.sort(c), c, side="left")


def _instances(y_true: Any, confidences: Any):
    labels = as_label_matrix(y_true)
    scores = as_confidence_matrix(confidences)
    check_same_shape(labels, scores, names=("y_true", "confidences"))
    for y, c in zip(labels, scores):
        yield align(y, c)


def _ranked_vectors(y_true: Any, confidences: Any):
    return align(as_label_vector(y_true), as_confidence_vector(confidences))


def one_error_instance(y_true: Any, confidences: Any) -> float:
    """1.0 if the top-ranked supervised label is not relevant, else 0.0."""
    y, c = _ranked_vectors(y_true, confidences)
    if len(y) == 0:
        return float("nan")
    # argmax keeps the first occurrence on ties
    return 0.0 if y[np.argmax(c)] == 1 else 1.0


def one_error(y_true: Any, confidences: Any) -> float:
    """
    One-error: how often the top-ranked label is not in the true label set.

    Args:
        y_true (Any): True labels, shape (num_instances, num_labels)
        confidences (Any): Confidences, same shape

    Returns:
        float: Error rate in [0, 1]
    """
    return nan_mean([one_error_instance(y, c) for y, c in _instances(y_true, confidences)])


def average_precision_instance(y_true: Any, confidences: Any) -> float:
    """
    Average precision of one instance.

    For each relevant label j, precision at its rank is the number of
    relevant labels ranked at or above it divided by rank(j). These are
    averaged over the relevant labels; 1.0 if there is none.
    """
    y, c = _ranked_vectors(y_true, confidences)
    if len(y) == 0:
        return float("nan")
    relevant = y == 1
    if not relevant.any():
        return 1.0
    relevant_ranks = rank(c)[relevant]
    ranked_above = (relevant_ranks[None, :] <= relevant_ranks[:, None]).sum(axis=1)
    return float(np.mean(ranked_above / relevant_ranks))


def average_precision(y_true: Any, confidences: Any) -> float:
    """Average precision averaged over instances."""
    return nan_mean(
        [average_precision_instance(y, c) for y, c in _instances(y_true, confidences)]
    )


def rank_loss_instance(y_true: Any, confidences: Any) -> float:
    """
    Fraction of (relevant, irrelevant) pairs where the relevant label
    scores strictly lower. 0.0 if either set is empty.
    """
    y, c = _ranked_vectors(y_true, confidences)
    if len(y) == 0:
        return float("nan")
    relevant = c[y == 1]
    irrelevant = c[y != 1]
    if len(relevant) == 0 or len(irrelevant) == 0:
        return 0.0
    misordered = np.sum(relevant[:, None] < irrelevant[None, :])
    return misordered / (len(relevant) * len(irrelevant))


def rank_loss(y_true: Any, confidences: Any) -> float:
    """Rank loss averaged over instances."""
    return nan_mean([rank_loss_instance(y, c) for y, c in _instances(y_true, confidences)])
