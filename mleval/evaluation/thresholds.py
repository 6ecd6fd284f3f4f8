"""
Threshold specification, calibration and binarization.

A threshold spec is either a number ("0.5"), a bracketed list with one value
per label ("[0.1, 0.2, 0.8]"), or a calibration token that is resolved from
the confidences:

- "PCut1" (or "c"): one threshold for all labels, chosen so the predicted
  label cardinality best matches a target cardinality
- "PCutL" (or "C"): one threshold per label, chosen so each label's
  predicted frequency best matches its target frequency

Functions:
    is_calibration_token: Whether a spec has to be calibrated
    parse_threshold_values: Parse a numeric or bracketed spec
    parse_threshold: Parse a spec into one threshold per label
    format_threshold: Render thresholds back into a spec string
    observed_cardinality: Mean number of confidences above a threshold per row
    calibrate_threshold: PCut1 calibration
    calibrate_thresholds: PCutL calibration
    resolve_threshold: Turn any spec into a concrete spec string
    apply_threshold: Binarize confidences (strictly greater than threshold)
    round_predictions: Round multi-target predictions to class indices
"""

import logging
import re
from typing import Any, Sequence, Union

import numpy as np

from .matrices import as_confidence_matrix

logger = logging.getLogger(__name__)

SINGLE_CUT_TOKENS = ("PCut1", "c")
PER_LABEL_CUT_TOKENS = ("PCutL", "C")

ThresholdSpec = Union[str, float, Sequence[float], np.ndarray]


def is_calibration_token(spec: Any) -> bool:
    """
    Check whether a threshold spec names a calibration method.

    Example:
        >>> is_calibration_token("PCut1"), is_calibration_token("0.5")
        (True, False)
    """
    return isinstance(spec, str) and spec.strip() in SINGLE_CUT_TOKENS + PER_LABEL_CUT_TOKENS


def parse_threshold_values(spec: ThresholdSpec) -> np.ndarray:
    """
    Parse a threshold spec into its values without checking the label count.

    Args:
        spec (ThresholdSpec): Number, numeric string, bracketed list string,
            sequence or array

    Returns:
        np.ndarray: 1-D float array of the thresholds

    Raises:
        ValueError: If the spec is a calibration token or cannot be parsed
    """
    if is_calibration_token(spec):
        raise ValueError(f"Calibration token {spec!r} must be resolved before parsing")

    if isinstance(spec, str):
        text = spec.strip()
        if text.startswith("[") and text.endswith("]"):
            tokens = [t for t in re.split(r"[,\s]+", text[1:-1]) if t]
        else:
            tokens = [text]
        try:
            values = np.array([float(t) for t in tokens], dtype=float)
        except ValueError as e:
            raise ValueError(f"Cannot parse threshold {spec!r}: {e}") from e
    else:
        try:
            values = np.atleast_1d(np.asarray(spec, dtype=float)).ravel()
        except (TypeError, ValueError) as e:
            raise ValueError(f"Cannot parse threshold {spec!r}: {e}") from e

    if values.size == 0:
        raise ValueError(f"Threshold {spec!r} contains no values")
    if np.isnan(values).any():
        raise ValueError(f"Threshold {spec!r} contains NaN")
    return values


def parse_threshold(spec: ThresholdSpec, num_labels: int) -> np.ndarray:
    """
    Parse a threshold spec into one threshold per label.

    A single number is broadcast to every label; a list must have exactly
    ``num_labels`` entries.

    Args:
        spec (ThresholdSpec): Threshold spec
        num_labels (int): Number of labels L

    Returns:
        np.ndarray: Thresholds of shape (num_labels,)

    Raises:
        ValueError: If the spec cannot be parsed or has the wrong length

    Example:
        >>> parse_threshold("0.3", 3)
        array([0.3, 0.3, 0.3])
        >>> parse_threshold("[0.1, 0.2, 0.8]", 3)
        array([0.1, 0.2, 0.8])
    """
    values = parse_threshold_values(spec)
    if values.size == 1:
        return np.full(num_labels, values[0])
    if values.size != num_labels:
        raise ValueError(
            f"Threshold {spec!r} has {values.size} values but there are {num_labels} labels"
        )
    return values


def format_threshold(thresholds: Union[float, Sequence[float], np.ndarray]) -> str:
    """
    Render thresholds as a spec string.

    Example:
        >>> format_threshold(0.25)
        '0.25'
        >>> format_threshold([0.1, 0.5])
        '[0.1, 0.5]'
    """
    values = np.atleast_1d(np.asarray(thresholds, dtype=float))
    if np.ndim(thresholds) == 0:
        return str(float(values[0]))
    return "[" + ", ".join(str(float(v)) for v in values) + "]"


def _rows(confidence_rows: Any) -> np.ndarray:
    scores = as_confidence_matrix(confidence_rows)
    if scores.shape[0] == 0:
        raise ValueError("Cannot calibrate a threshold from an empty collection")
    return scores


def observed_cardinality(confidence_rows: Any, threshold: float) -> float:
    """
    Mean number of labels per row whose confidence is strictly above ``threshold``.

    Non-increasing in ``threshold``.
    """
    scores = as_confidence_matrix(confidence_rows)
    if scores.shape[0] == 0:
        return float("nan")
    return float(np.mean(np.sum(scores > threshold, axis=1)))


def calibrate_threshold(confidence_rows: Any, target_cardinality: float) -> float:
    """
    PCut1: find the threshold whose predicted label cardinality is closest
    to ``target_cardinality``.

    Every distinct confidence value is a candidate. Ties in the distance go
    to the lowest candidate.

    Args:
        confidence_rows (Any): Confidences, shape (num_instances, num_labels)
        target_cardinality (float): Desired mean number of labels per row,
            within [0, num_labels]

    Returns:
        float: Calibrated threshold

    Raises:
        ValueError: If the collection is empty or the target is NaN or out of range

    Example:
        >>> calibrate_threshold([[0.9, 0.6, 0.1], [0.8, 0.3, 0.2]], 1.0)
        0.6
    """
    scores = _rows(confidence_rows)
    num_rows, num_labels = scores.shape
    if np.isnan(target_cardinality) or not 0.0 <= target_cardinality <= num_labels:
        raise ValueError(
            f"Target cardinality {target_cardinality} is outside [0, {num_labels}]"
        )

    candidates = np.unique(scores)
    flat = np.sort(scores.ravel())
    # number of confidences strictly above each candidate
    above = flat.size - np.searchsorted(flat, candidates, side="right")
    distance = np.abs(above / num_rows - target_cardinality)
    threshold = float(candidates[np.argmin(distance)])
    logger.debug(f"PCut1 threshold {threshold} for target cardinality {target_cardinality}")
    return threshold


def calibrate_thresholds(confidence_rows: Any, target_cardinalities: Any) -> np.ndarray:
    """
    PCutL: calibrate one threshold per label column.

    Args:
        confidence_rows (Any): Confidences, shape (num_instances, num_labels)
        target_cardinalities (Any): Target frequency of each label, in [0, 1]

    Returns:
        np.ndarray: Thresholds of shape (num_labels,)

    Raises:
        ValueError: If the collection is empty or the number of targets is not L
    """
    scores = _rows(confidence_rows)
    targets = np.asarray(target_cardinalities, dtype=float).ravel()
    if targets.size != scores.shape[1]:
        raise ValueError(
            f"Got {targets.size} target cardinalities for {scores.shape[1]} labels"
        )
    return np.array(
        [calibrate_threshold(scores[:, [j]], targets[j]) for j in range(scores.shape[1])]
    )


def resolve_threshold(
    spec: ThresholdSpec,
    confidence_rows: Any,
    label_cardinality: Union[float, Sequence[float], np.ndarray],
) -> str:
    """
    Turn a threshold spec into a concrete spec string.

    Calibration tokens are resolved against ``confidence_rows``: "PCut1"
    uses the overall label cardinality (the sum of the per-label frequencies
    if those are given), "PCutL" uses the per-label frequencies (a scalar
    cardinality is spread evenly over the labels). Any other spec is
    validated and rendered as is.

    Args:
        spec (ThresholdSpec): Threshold spec
        confidence_rows (Any): Confidences, shape (num_instances, num_labels)
        label_cardinality: Target label cardinality (scalar) for PCut1, or
            per-label frequencies for PCutL

    Returns:
        str: A numeric or bracketed threshold string

    Raises:
        ValueError: If calibration or parsing fails
    """
    scores = as_confidence_matrix(confidence_rows)
    num_labels = scores.shape[1]

    if is_calibration_token(spec):
        cardinality = np.asarray(label_cardinality, dtype=float)
        if spec.strip() in SINGLE_CUT_TOKENS:
            target = float(cardinality) if cardinality.ndim == 0 else float(cardinality.sum())
            resolved = format_threshold(calibrate_threshold(scores, target))
        else:
            if cardinality.ndim == 0:
                cardinality = np.full(num_labels, float(cardinality) / num_labels)
            resolved = format_threshold(list(calibrate_thresholds(scores, cardinality)))
        logger.info(f"Calibrated threshold {spec.strip()} -> {resolved}")
        return resolved

    values = parse_threshold_values(spec)
    if values.size not in (1, num_labels):
        raise ValueError(
            f"Threshold {spec!r} has {values.size} values but there are {num_labels} labels"
        )
    if isinstance(spec, str):
        return spec.strip()
    return format_threshold(values[0] if values.size == 1 else values)


def apply_threshold(confidences: Any, threshold: ThresholdSpec) -> np.ndarray:
    """
    Binarize confidences: a label is predicted iff its confidence is
    strictly greater than its threshold.

    Args:
        confidences (Any): Confidences, shape (num_instances, num_labels)
        threshold (ThresholdSpec): Scalar, per-label vector or spec string

    Returns:
        np.ndarray: Binary int matrix with the shape of ``confidences``

    Raises:
        ValueError: If a threshold vector does not have one entry per label

    Example:
        >>> apply_threshold([[0.7, 0.5, 0.9], [0.2, 0.6, 0.4]], 0.5)
        array([[1, 0, 1],
               [0, 1, 0]])
    """
    scores = as_confidence_matrix(confidences)
    thresholds = parse_threshold(threshold, scores.shape[1])
    return (scores > thresholds[None, :]).astype(int)


def round_predictions(confidences: Any) -> np.ndarray:
    """
    Round multi-target predictions to the nearest class index (halves round up).

    Example:
        >>> round_predictions([[0.5, 1.4, 2.6]])
        array([[1, 1, 3]])
    """
    scores = as_confidence_matrix(confidences)
    return np.floor(scores + 0.5).astype(int)
