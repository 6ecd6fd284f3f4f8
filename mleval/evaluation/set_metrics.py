"""
Set-based metrics for multi-label classification.

Each instance's predicted label set is compared with its true label set;
per-instance values are then averaged over the instances.

Loss measures (lower is better):
- 0/1 loss, Hamming loss, Jaccard distance

Payoff measures (higher is better):
- Exact match, Hamming score, Jaccard index ("accuracy"),
  harmonic accuracy, F-measure macro-averaged by instance

A position whose true label is missing counts in neither the numerator nor
the denominator of the per-instance ratio. Instances with no supervised
position are skipped, and a metric with no usable instance is NaN.
"""

from typing import Any, Tuple

import numpy as np

from .confusion import f1
from .matrices import (
    MISSING,
    align,
    as_label_matrix,
    as_label_vector,
    check_same_shape,
    nan_mean,
)


def _prepare(y_true: Any, y_pred: Any) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    labels = as_label_matrix(y_true)
    predictions = as_label_matrix(y_pred)
    check_same_shape(labels, predictions)
    return labels, predictions, labels != MISSING


def _ratio(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """Element-wise ratio with NaN wherever the denominator is zero."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(denominator > 0, numerator / denominator, np.nan)


def zero_one_loss(y_true: Any, y_pred: Any) -> float:
    """
    0/1 loss: fraction of instances with at least one wrong label.

    Args:
        y_true (Any): True labels, shape (num_instances, num_labels)
        y_pred (Any): Predicted labels, same shape

    Returns:
        float: Loss in [0, 1], NaN if nothing is supervised
    """
    labels, predictions, supervised = _prepare(y_true, y_pred)
    wrong = ((labels != predictions) & supervised).any(axis=1).astype(float)
    wrong[supervised.sum(axis=1) == 0] = np.nan
    return nan_mean(wrong)


def exact_match(y_true: Any, y_pred: Any) -> float:
    """
    Exact match (subset accuracy) = 1 - 0/1 loss.

    Example:
        >>> exact_match([[1, 0, 1], [0, 1, 0]], [[1, 0, 1], [0, 1, 1]])
        0.5
    """
    return 1.0 - zero_one_loss(y_true, y_pred)


def hamming_loss(y_true: Any, y_pred: Any) -> float:
    """
    Hamming loss: per-instance fraction of wrong labels, averaged over instances.

    Note that the average is taken per instance first, so instances with
    fewer supervised labels weigh as much as fully supervised ones.
    """
    labels, predictions, supervised = _prepare(y_true, y_pred)
    mistakes = ((labels != predictions) & supervised).sum(axis=1)
    return nan_mean(_ratio(mistakes, supervised.sum(axis=1)))


def hamming_score(y_true: Any, y_pred: Any) -> float:
    """Hamming score (label accuracy) = 1 - Hamming loss."""
    return 1.0 - hamming_loss(y_true, y_pred)


def hamming_score_per_label(y_true: Any, y_pred: Any, j: int) -> float:
    """Hamming score restricted to label column ``j``."""
    labels, predictions, supervised = _prepare(y_true, y_pred)
    column = supervised[:, j]
    if not column.any():
        return float("nan")
    mistakes = np.sum(labels[column, j] != predictions[column, j])
    return 1.0 - mistakes / column.sum()


def harmonic_accuracy_instance(y_true: Any, y_pred: Any) -> float:
    """
    Harmonic mean of the accuracy on the true-0 and the true-1 positions.

    Undefined (NaN) if either group is empty.
    """
    y, p = align(as_label_vector(y_true), as_label_vector(y_pred))
    accuracies = []
    for value in (0, 1):
        group = y == value
        if not group.any():
            return float("nan")
        accuracies.append(np.sum(p[group] == value) / group.sum())
    if min(accuracies) == 0.0:
        return 0.0
    return 2.0 / (1.0 / accuracies[0] + 1.0 / accuracies[1])


def harmonic_accuracy(y_true: Any, y_pred: Any) -> float:
    """Harmonic accuracy averaged over the instances where it is defined."""
    labels, predictions, _ = _prepare(y_true, y_pred)
    return nan_mean(
        [harmonic_accuracy_instance(y, p) for y, p in zip(labels, predictions)]
    )


def harmonic_accuracy_per_label(y_true: Any, y_pred: Any, j: int) -> float:
    """Harmonic accuracy of label column ``j``, computed over the instances."""
    labels, predictions, _ = _prepare(y_true, y_pred)
    return harmonic_accuracy_instance(labels[:, j], predictions[:, j])


def jaccard_index(y_true: Any, y_pred: Any) -> float:
    """
    Jaccard index, often simply called multi-label 'accuracy'.

    Per instance: |predicted AND true| / |predicted OR true|, where two
    empty sets agree perfectly (1.0). Averaged arithmetically over instances.

    Args:
        y_true (Any): True labels, shape (num_instances, num_labels)
        y_pred (Any): Binary predictions, same shape

    Returns:
        float: Index in [0, 1], NaN if nothing is supervised

    Example:
        >>> jaccard_index([[1, 1, 0]], [[1, 0, 1]])
        0.3333333333333333
    """
    labels, predictions, supervised = _prepare(y_true, y_pred)
    union = (((labels == 1) | (predictions == 1)) & supervised).sum(axis=1)
    intersection = (((labels == 1) & (predictions == 1)) & supervised).sum(axis=1)
    per_instance = np.ones(labels.shape[0], dtype=float)
    nonempty = union > 0
    per_instance[nonempty] = intersection[nonempty] / union[nonempty]
    per_instance[supervised.sum(axis=1) == 0] = np.nan
    return nan_mean(per_instance)


def jaccard_distance(y_true: Any, y_pred: Any) -> float:
    """Jaccard distance = 1 - Jaccard index."""
    return 1.0 - jaccard_index(y_true, y_pred)


def f1_macro_by_instance(y_true: Any, y_pred: Any) -> float:
    """F-measure computed per instance, then averaged over instances."""
    labels, predictions, _ = _prepare(y_true, y_pred)
    return nan_mean([f1(y, p) for y, p in zip(labels, predictions)])


def empty_prediction_rate(y_true: Any, y_pred: Any) -> float:
    """Fraction of supervised instances for which no label was predicted."""
    labels, predictions, supervised = _prepare(y_true, y_pred)
    rows = supervised.any(axis=1)
    if not rows.any():
        return float("nan")
    return float(np.mean(predictions[rows].sum(axis=1) <= 0))


def predicted_cardinality(y_true: Any, y_pred: Any) -> float:
    """Average number of labels predicted per supervised instance."""
    labels, predictions, supervised = _prepare(y_true, y_pred)
    rows = supervised.any(axis=1)
    if not rows.any():
        return float("nan")
    positives = ((predictions == 1) & supervised).sum(axis=1)
    return float(np.mean(positives[rows]))


def label_cardinality(y_true: Any) -> float:
    """
    Average number of relevant labels per instance.

    Missing entries count as not relevant; instances whose labels are all
    missing are left out.

    Example:
        >>> label_cardinality([[1, 0, 1], [0, 1, 0]])
        1.5
    """
    labels = as_label_matrix(y_true)
    rows = (labels != MISSING).any(axis=1)
    if not rows.any():
        return float("nan")
    return float(np.mean((labels[rows] == 1).sum(axis=1)))


def label_cardinalities(y_true: Any) -> np.ndarray:
    """Frequency of each label among its supervised instances (NaN if none)."""
    labels = as_label_matrix(y_true)
    supervised = labels != MISSING
    return _ratio((labels == 1).sum(axis=0), supervised.sum(axis=0)).astype(float)
