"""
Confusion-matrix primitives for multi-label classification.

Counts of true/false positives/negatives and the precision, recall and F1
measures derived from them, for single label vectors as well as macro
(per-label, then averaged) and micro (flattened) aggregates over matrices.

Positions whose true label is missing are excluded from every count.

Functions:
    confusion_counts: TP/FP/FN/TN for one vector pair
    true_positives, false_positives, false_negatives, true_negatives
    precision, recall, f1: Vector-level measures
    precision_per_label, recall_per_label: Measures for label column j
    precision_macro, recall_macro, f1_macro_by_label: Averaged over labels
    precision_micro, recall_micro, f1_micro: Computed on flattened matrices
"""

from typing import Any, NamedTuple

import numpy as np
from sklearn.metrics import confusion_matrix

from .matrices import (
    MISSING,
    align,
    as_label_matrix,
    as_label_vector,
    check_same_shape,
    nan_mean,
)


class ConfusionCounts(NamedTuple):
    tp: int
    fp: int
    fn: int
    tn: int


def _aligned(y_true: Any, y_pred: Any):
    return align(as_label_vector(y_true), as_label_vector(y_pred))


def confusion_counts(y_true: Any, y_pred: Any) -> ConfusionCounts:
    """
    Count TP, FP, FN and TN for one true/predicted vector pair.

    Args:
        y_true (Any): True labels, ``MISSING`` where unsupervised
        y_pred (Any): Binary predictions of the same length

    Returns:
        ConfusionCounts: Named tuple ``(tp, fp, fn, tn)``

    Example:
        >>> confusion_counts([1, 0, 1, -1], [1, 1, 0, 1])
        ConfusionCounts(tp=1, fp=1, fn=1, tn=0)
    """
    y, p = _aligned(y_true, y_pred)
    if y.size == 0:
        return ConfusionCounts(0, 0, 0, 0)
    tn, fp, fn, tp = confusion_matrix(y, p, labels=[0, 1]).ravel()
    return ConfusionCounts(tp=int(tp), fp=int(fp), fn=int(fn), tn=int(tn))


def true_positives(y_true: Any, y_pred: Any) -> int:
    return confusion_counts(y_true, y_pred).tp


def false_positives(y_true: Any, y_pred: Any) -> int:
    return confusion_counts(y_true, y_pred).fp


def false_negatives(y_true: Any, y_pred: Any) -> int:
    return confusion_counts(y_true, y_pred).fn


def true_negatives(y_true: Any, y_pred: Any) -> int:
    return confusion_counts(y_true, y_pred).tn


def _has_supervision(y_true: Any) -> bool:
    return bool(np.any(as_label_vector(y_true) != MISSING))


def precision(y_true: Any, y_pred: Any) -> float:
    """
    Precision = TP / (TP + FP).

    Returns 0.0 when nothing was predicted positive and NaN when every
    true label is missing.
    """
    if not _has_supervision(y_true):
        return float("nan")
    counts = confusion_counts(y_true, y_pred)
    retrieved = counts.tp + counts.fp
    if retrieved == 0:
        return 0.0
    return counts.tp / retrieved


def recall(y_true: Any, y_pred: Any) -> float:
    """
    Recall = TP / (TP + FN).

    Returns 0.0 when there is nothing relevant and NaN when every
    true label is missing.
    """
    if not _has_supervision(y_true):
        return float("nan")
    counts = confusion_counts(y_true, y_pred)
    relevant = counts.tp + counts.fn
    if relevant == 0:
        return 0.0
    return counts.tp / relevant


def f1(y_true: Any, y_pred: Any) -> float:
    """Harmonic mean of precision and recall (0.0 if both are 0)."""
    p = precision(y_true, y_pred)
    r = recall(y_true, y_pred)
    if np.isnan(p) or np.isnan(r):
        return float("nan")
    if p == 0.0 and r == 0.0:
        return 0.0
    return 2.0 * p * r / (p + r)


def _matrices(y_true: Any, y_pred: Any):
    labels = as_label_matrix(y_true)
    predictions = as_label_matrix(y_pred)
    check_same_shape(labels, predictions)
    return labels, predictions


def precision_per_label(y_true: Any, y_pred: Any, j: int) -> float:
    """Precision of label column ``j``."""
    labels, predictions = _matrices(y_true, y_pred)
    return precision(labels[:, j], predictions[:, j])


def recall_per_label(y_true: Any, y_pred: Any, j: int) -> float:
    """Recall of label column ``j``."""
    labels, predictions = _matrices(y_true, y_pred)
    return recall(labels[:, j], predictions[:, j])


def _macro(measure, y_true: Any, y_pred: Any) -> float:
    # columns without any supervision yield NaN and are left out of the mean
    labels, predictions = _matrices(y_true, y_pred)
    return nan_mean(
        [measure(labels[:, j], predictions[:, j]) for j in range(labels.shape[1])]
    )


def precision_macro(y_true: Any, y_pred: Any) -> float:
    """Per-label precision averaged over the supervised labels."""
    return _macro(precision, y_true, y_pred)


def recall_macro(y_true: Any, y_pred: Any) -> float:
    """Per-label recall averaged over the supervised labels."""
    return _macro(recall, y_true, y_pred)


def f1_macro_by_label(y_true: Any, y_pred: Any) -> float:
    """
    F-measure macro-averaged by label, the 'standard' macro F1.

    Example:
        >>> f1_macro_by_label([[1, 0], [1, 1]], [[1, 0], [0, 1]])
        0.8333333333333333
    """
    return _macro(f1, y_true, y_pred)


def _micro(measure, y_true: Any, y_pred: Any) -> float:
    labels, predictions = _matrices(y_true, y_pred)
    return measure(labels.ravel(), predictions.ravel())


def precision_micro(y_true: Any, y_pred: Any) -> float:
    """Precision over all (instance, label) pairs pooled together."""
    return _micro(precision, y_true, y_pred)


def recall_micro(y_true: Any, y_pred: Any) -> float:
    """Recall over all (instance, label) pairs pooled together."""
    return _micro(recall, y_true, y_pred)


def f1_micro(y_true: Any, y_pred: Any) -> float:
    """F1 over all (instance, label) pairs pooled together."""
    return _micro(f1, y_true, y_pred)
