"""
Threshold curves and the areas under them.

A threshold curve sweeps a cutoff over the distinct confidence values of one
label column and records the confusion counts at each cutoff. From those
points both the ROC curve (FPR vs TPR) and the precision-recall curve are
derived, and their areas are integrated with the trapezoidal rule.

Classes:
    CurvePoint: Confusion counts at one cutoff, with derived rates

Functions:
    threshold_curve: Curve points for one label vector
    roc_area: Area under the ROC curve
    prc_area: Area under the precision-recall curve
    curve_data: One curve per label
    curve_data_micro_averaged: One curve over all pooled (instance, label) pairs
    curve_data_macro_averaged: Per-label curves averaged on a threshold grid
    auroc_macro, auprc_macro: Per-label areas averaged over labels
    auroc_micro, auprc_micro: Areas of the pooled curve
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np
from sklearn.metrics import auc

from .matrices import (
    align,
    as_confidence_matrix,
    as_confidence_vector,
    as_label_matrix,
    as_label_vector,
    check_same_shape,
    nan_mean,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurvePoint:
    """
    Confusion counts obtained by predicting positive iff confidence >= threshold.

    Attributes:
        threshold (float): Cutoff (``inf`` for the point where nothing is positive)
        tp (int): True positives
        fp (int): False positives
        fn (int): False negatives
        tn (int): True negatives
    """

    threshold: float
    tp: int
    fp: int
    fn: int
    tn: int

    @property
    def precision(self) -> float:
        retrieved = self.tp + self.fp
        if retrieved == 0:
            return 1.0
        return self.tp / retrieved

    @property
    def recall(self) -> float:
        positives = self.tp + self.fn
        if positives == 0:
            return float("nan")
        return self.tp / positives

    @property
    def tpr(self) -> float:
        return self.recall

    @property
    def fpr(self) -> float:
        negatives = self.fp + self.tn
        if negatives == 0:
            return float("nan")
        return self.fp / negatives

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        """Return ``(threshold, precision, recall, tpr, fpr)``."""
        return (self.threshold, self.precision, self.recall, self.tpr, self.fpr)


def threshold_curve(y_true: Any, confidences: Any) -> List[CurvePoint]:
    """
    Build the threshold curve of one label vector.

    The confidences are sorted once in descending order. The first point has
    threshold ``inf`` (nothing predicted positive); after that there is one
    point per distinct confidence value t, predicting positive iff c >= t.

    Args:
        y_true (Any): True labels, ``MISSING`` positions are dropped
        confidences (Any): Confidences of the same length

    Returns:
        List[CurvePoint]: Points in order of decreasing threshold, empty if no
            position is supervised

    Example:
        >>> [p.tp for p in threshold_curve([1, 0, 1], [0.9, 0.5, 0.5])]
        [0, 1, 2]
    """
    y, c = align(as_label_vector(y_true), as_confidence_vector(confidences))
    if len(y) == 0:
        return []

    order = np.argsort(-c, kind="mergesort")
    c_sorted = c[order]
    relevant = (y[order] == 1).astype(int)
    tp = np.cumsum(relevant)
    fp = np.cumsum(1 - relevant)
    positives = int(tp[-1])
    negatives = int(fp[-1])

    # last index of each group of tied confidences
    group_ends = np.flatnonzero(np.diff(c_sorted) != 0)
    group_ends = np.append(group_ends, len(c_sorted) - 1)

    points = [CurvePoint(float("inf"), 0, 0, positives, negatives)]
    for k in group_ends:
        points.append(
            CurvePoint(
                threshold=float(c_sorted[k]),
                tp=int(tp[k]),
                fp=int(fp[k]),
                fn=positives - int(tp[k]),
                tn=negatives - int(fp[k]),
            )
        )
    return points


def roc_area(curve: List[CurvePoint]) -> float:
    """
    Area under the ROC curve.

    Returns:
        float: Area in [0, 1], NaN if the curve has no positives or no negatives
    """
    if not curve or curve[0].fn == 0 or curve[0].tn == 0:
        logger.debug("ROC area undefined for a curve without both classes")
        return float("nan")
    fpr = [point.fpr for point in curve]
    tpr = [point.tpr for point in curve]
    return float(auc(fpr, tpr))


def prc_area(curve: List[CurvePoint]) -> float:
    """
    Area under the precision-recall curve.

    Returns:
        float: Area in [0, 1], NaN if the curve has no positives
    """
    if not curve or curve[0].fn == 0:
        logger.debug("PR area undefined for a curve without positives")
        return float("nan")
    recall = [point.recall for point in curve]
    precision = [point.precision for point in curve]
    return float(auc(recall, precision))


def _matrices(y_true: Any, confidences: Any) -> Tuple[np.ndarray, np.ndarray]:
    labels = as_label_matrix(y_true)
    scores = as_confidence_matrix(confidences)
    check_same_shape(labels, scores, names=("y_true", "confidences"))
    return labels, scores


def curve_data(y_true: Any, confidences: Any) -> List[List[CurvePoint]]:
    """Threshold curve of every label column (empty for unsupervised columns)."""
    labels, scores = _matrices(y_true, confidences)
    return [threshold_curve(labels[:, j], scores[:, j]) for j in range(labels.shape[1])]


def curve_data_micro_averaged(y_true: Any, confidences: Any) -> List[CurvePoint]:
    """Threshold curve of all (instance, label) pairs pooled together."""
    labels, scores = _matrices(y_true, confidences)
    return threshold_curve(labels.ravel(), scores.ravel())


def _point_at(curve: List[CurvePoint], t: float) -> CurvePoint:
    # points run from high to low threshold; take the lowest one still >= t
    chosen = curve[0]
    for point in curve:
        if point.threshold < t:
            break
        chosen = point
    return chosen


def curve_data_macro_averaged(
    y_true: Any, confidences: Any, step: float = 0.01
) -> List[Tuple[float, float, float, float, float]]:
    """
    Average the per-label curves on a fixed grid of thresholds.

    For each grid value t in [0, 1) every supervised label contributes its
    (precision, recall, tpr, fpr) at cutoff t, and the values are averaged
    over those labels.

    Args:
        y_true (Any): True labels, shape (num_instances, num_labels)
        confidences (Any): Confidences, same shape
        step (float, optional): Grid spacing. Defaults to 0.01.

    Returns:
        List[Tuple[float, float, float, float, float]]: One
            ``(threshold, precision, recall, tpr, fpr)`` tuple per grid value,
            empty if no label is supervised
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    curves = [curve for curve in curve_data(y_true, confidences) if curve]
    if not curves:
        logger.warning("No supervised label; macro-averaged curve is empty")
        return []

    averaged = []
    for t in np.arange(0.0, 1.0, step):
        rows = []
        for curve in curves:
            rows.append(_point_at(curve, t).as_tuple()[1:])
        values = np.array(rows, dtype=float)
        averaged.append(
            (float(t),) + tuple(nan_mean(values[:, k]) for k in range(values.shape[1]))
        )
    return averaged


def _macro_area(area, y_true: Any, confidences: Any, name: str) -> float:
    areas = [area(curve) for curve in curve_data(y_true, confidences)]
    value = nan_mean(areas)
    if np.isnan(value):
        logger.warning(f"{name} is undefined for every label")
    return value


def auroc_macro(y_true: Any, confidences: Any) -> float:
    """
    Area under the ROC curve, macro-averaged over labels.

    Labels whose area is undefined (no positives or no negatives) are
    left out of the average.

    Example:
        >>> auroc_macro([[1, 0], [0, 1], [1, 0], [0, 1]],
        ...             [[0.9, 0.2], [0.8, 0.7], [0.7, 0.1], [0.6, 0.9]])
        0.875
    """
    return _macro_area(roc_area, y_true, confidences, "AUROC")


def auprc_macro(y_true: Any, confidences: Any) -> float:
    """Area under the precision-recall curve, macro-averaged over labels."""
    return _macro_area(prc_area, y_true, confidences, "AUPRC")


def auroc_micro(y_true: Any, confidences: Any) -> float:
    """Area under the ROC curve of the pooled (instance, label) pairs."""
    return roc_area(curve_data_micro_averaged(y_true, confidences))


def auprc_micro(y_true: Any, confidences: Any) -> float:
    """Area under the precision-recall curve of the pooled pairs."""
    return prc_area(curve_data_micro_averaged(y_true, confidences))
