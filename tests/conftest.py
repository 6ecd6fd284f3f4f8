"""Shared fixtures for the evaluation tests."""

import numpy as np
import pytest


@pytest.fixture
def identity_labels():
    """Four instances whose predictions match the truth exactly."""
    return np.array(
        [
            [1, 0, 1, 0],
            [0, 1, 0, 1],
            [1, 0, 1, 0],
            [0, 1, 0, 1],
        ]
    )


@pytest.fixture
def inverted_pair():
    """True labels and a prediction matrix that gets every label wrong."""
    y_true = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0], [1, 0, 1]])
    y_pred = 1 - y_true
    return y_true, y_pred


@pytest.fixture
def sparse_pair():
    """Label sets {1,2}, {3,4,5}, {6}, {7} over 15 labels and their predictions."""
    y_true = np.zeros((4, 15), dtype=int)
    y_pred = np.zeros((4, 15), dtype=int)
    for i, labels in enumerate([[1, 2], [3, 4, 5], [6], [7]]):
        y_true[i, labels] = 1
    for i, labels in enumerate([[1, 2, 3, 9], [3, 4], [6, 12], [1]]):
        y_pred[i, labels] = 1
    return y_true, y_pred


@pytest.fixture
def random_scores():
    """Reproducible random labels (with every label present) and confidences."""
    rng = np.random.default_rng(7)
    y_true = rng.integers(0, 2, size=(40, 5))
    y_true[0] = 1
    y_true[1] = 0
    confidences = np.clip(0.35 * y_true + rng.random((40, 5)) * 0.7, 0.0, 1.0)
    return y_true, confidences
