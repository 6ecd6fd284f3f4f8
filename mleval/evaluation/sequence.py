"""
Sequence metrics for multi-target outputs.

A multi-target prediction is compared with the truth as a sequence of class
symbols, so the edit distance counts how many symbols must be substituted,
inserted or deleted to turn one into the other.
"""

from typing import Any, Sequence

import numpy as np

from .matrices import align, as_label_matrix, as_label_vector, check_same_shape, nan_mean


def levenshtein_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """
    Edit distance between two sequences of integer symbols.

    Substitution, insertion and deletion each cost 1. Only two rows of the
    dynamic-programming table are kept, sized by the shorter sequence.

    Args:
        a (Sequence[int]): First sequence
        b (Sequence[int]): Second sequence

    Returns:
        int: Minimum number of edits

    Example:
        >>> levenshtein_distance([1, 0, 1], [0, 1, 0])
        2
        >>> levenshtein_distance([1, 2, 3], [1, 3])
        1
    """
    a = list(a)
    b = list(b)
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, symbol_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, symbol_b in enumerate(b, start=1):
            substitution = previous[j - 1] + (symbol_a != symbol_b)
            current[j] = min(previous[j] + 1, current[j - 1] + 1, substitution)
        previous = current
    return previous[-1]


def levenshtein_loss(y_true: Any, y_pred: Any) -> float:
    """
    Edit distance of one instance, normalized by its supervised length.

    Missing positions are removed from both sequences first. NaN if no
    position is supervised.
    """
    y, p = align(as_label_vector(y_true), as_label_vector(y_pred))
    if len(y) == 0:
        return float("nan")
    return levenshtein_distance(y.tolist(), p.tolist()) / len(y)


def levenshtein_loss_matrix(y_true: Any, y_pred: Any) -> float:
    """Normalized edit distance averaged over instances."""
    labels = as_label_matrix(y_true)
    predictions = as_label_matrix(y_pred)
    check_same_shape(labels, predictions)
    return nan_mean(
        np.array([levenshtein_loss(y, p) for y, p in zip(labels, predictions)], dtype=float)
    )
