"""
Label and confidence matrix handling.

Every metric in this package works on numpy matrices of shape
(num_instances, num_labels). This module converts classifier output
(numpy arrays, nested lists or torch tensors) into that form, validates
shapes, and implements the missing-label convention shared by all metrics.

Constants:
    MISSING: Sentinel for a true-label position that was not supervised

Classes:
    EvaluationContext: Read-only snapshot of one evaluation run

Functions:
    as_label_matrix: Convert true labels to an int matrix
    as_confidence_matrix: Convert confidences to a float matrix
    as_label_vector: Convert one row of true labels to an int vector
    as_confidence_vector: Convert one row of confidences to a float vector
    check_same_shape: Validate that two matrices describe the same grid
    align: Drop missing positions from a (true, predicted) vector pair
    nan_mean: Mean of the defined (non-NaN) values
    read_only: Copy an array and mark it immutable
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import torch

MISSING = -1


def _to_numpy(values: Any) -> np.ndarray:
    """Turn tensors, arrays and (possibly ragged) nested sequences into floats."""
    if isinstance(values, torch.Tensor):
        return values.detach().cpu().numpy().astype(float)
    try:
        return np.asarray(values, dtype=float)
    except ValueError as e:
        raise ValueError(
            f"Rows must all have the same number of labels: {e}"
        ) from e


def _missing_to_sentinel(values: np.ndarray) -> np.ndarray:
    values = np.where(np.isnan(values), MISSING, values)
    return values.astype(int)


def as_label_matrix(y_true: Any) -> np.ndarray:
    """
    Convert true labels (or binary predictions) to an int matrix.

    NaN entries are treated as missing and replaced by ``MISSING``.

    Args:
        y_true (Any): Labels of shape (num_instances, num_labels)

    Returns:
        np.ndarray: Integer matrix of shape (num_instances, num_labels)

    Raises:
        ValueError: If rows are ragged or the input is not 2-D

    Example:
        >>> as_label_matrix([[1, 0, float('nan')], [0, 1, 1]])
        array([[ 1,  0, -1],
               [ 0,  1,  1]])
    """
    values = _to_numpy(y_true)
    if values.ndim != 2:
        raise ValueError(
            f"Label matrix must be 2-D (instances x labels), got shape {values.shape}"
        )
    return _missing_to_sentinel(values)


def as_confidence_matrix(confidences: Any) -> np.ndarray:
    """
    Convert confidences to a float matrix.

    Args:
        confidences (Any): Confidences of shape (num_instances, num_labels)

    Returns:
        np.ndarray: Float matrix of shape (num_instances, num_labels)

    Raises:
        ValueError: If rows are ragged or the input is not 2-D
    """
    values = _to_numpy(confidences)
    if values.ndim != 2:
        raise ValueError(
            f"Confidence matrix must be 2-D (instances x labels), got shape {values.shape}"
        )
    return values


def as_label_vector(y: Any) -> np.ndarray:
    """Convert a single row of labels to an int vector (NaN becomes MISSING)."""
    values = _to_numpy(y)
    if values.ndim != 1:
        raise ValueError(f"Label vector must be 1-D, got shape {values.shape}")
    return _missing_to_sentinel(values)


def as_confidence_vector(confidences: Any) -> np.ndarray:
    """Convert a single row of confidences to a float vector."""
    values = _to_numpy(confidences)
    if values.ndim != 1:
        raise ValueError(f"Confidence vector must be 1-D, got shape {values.shape}")
    return values


def check_same_shape(
    first: np.ndarray,
    second: np.ndarray,
    names: Tuple[str, str] = ("y_true", "y_pred"),
) -> None:
    """
    Validate that two matrices have identical (num_instances, num_labels) shapes.

    Raises:
        ValueError: If the shapes differ
    """
    if first.shape != second.shape:
        raise ValueError(
            f"Shape mismatch: {names[0]} has shape {first.shape} "
            f"but {names[1]} has shape {second.shape}"
        )


def align(y: np.ndarray, pred: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Drop the positions where the true label is missing.

    Args:
        y (np.ndarray): True label vector, may contain ``MISSING``
        pred (np.ndarray): Predictions or confidences of the same length

    Returns:
        Tuple[np.ndarray, np.ndarray]: The supervised parts of ``y`` and ``pred``

    Example:
        >>> align(np.array([1, -1, 0]), np.array([0.9, 0.5, 0.2]))
        (array([1, 0]), array([0.9, 0.2]))
    """
    if y.shape != pred.shape:
        raise ValueError(
            f"Vectors must have the same length, got {y.shape} and {pred.shape}"
        )
    supervised = y != MISSING
    return y[supervised], pred[supervised]


def nan_mean(values: Sequence[float]) -> float:
    """Mean of the values that are not NaN; NaN if there are none."""
    values = np.asarray(values, dtype=float)
    defined = ~np.isnan(values)
    if not defined.any():
        return float("nan")
    return float(values[defined].mean())


def read_only(values: np.ndarray) -> np.ndarray:
    values = np.array(values, copy=True)
    values.setflags(write=False)
    return values


@dataclass(frozen=True)
class EvaluationContext:
    """
    Immutable inputs of one evaluation run.

    The matrices are copied and flagged read-only on construction, so the
    same context can be handed to any number of metric functions (including
    concurrently) without one computation affecting another.

    Attributes:
        y_true (np.ndarray): True labels, ``MISSING`` where unsupervised
        y_pred (np.ndarray): Binary (or rounded multi-target) predictions
        confidences (Optional[np.ndarray]): Raw confidences, if available
        thresholds (Optional[np.ndarray]): Per-label thresholds that produced
            ``y_pred`` from ``confidences``
    """

    y_true: np.ndarray
    y_pred: np.ndarray
    confidences: Optional[np.ndarray] = None
    thresholds: Optional[np.ndarray] = None

    @classmethod
    def build(
        cls,
        y_true: Any,
        y_pred: Any,
        confidences: Any = None,
        thresholds: Any = None,
    ) -> "EvaluationContext":
        """Validate and freeze the given matrices."""
        labels = as_label_matrix(y_true)
        predictions = as_label_matrix(y_pred)
        check_same_shape(labels, predictions)

        confidence_matrix = None
        if confidences is not None:
            confidence_matrix = as_confidence_matrix(confidences)
            check_same_shape(labels, confidence_matrix, names=("y_true", "confidences"))

        threshold_vector = None
        if thresholds is not None:
            threshold_vector = read_only(np.asarray(thresholds, dtype=float).ravel())
            if threshold_vector.size != labels.shape[1]:
                raise ValueError(
                    f"Got {threshold_vector.size} thresholds for {labels.shape[1]} labels"
                )

        return cls(
            y_true=read_only(labels),
            y_pred=read_only(predictions),
            confidences=None if confidence_matrix is None else read_only(confidence_matrix),
            thresholds=threshold_vector,
        )

    @property
    def num_instances(self) -> int:
        return int(self.y_true.shape[0])

    @property
    def num_labels(self) -> int:
        return int(self.y_true.shape[1])
