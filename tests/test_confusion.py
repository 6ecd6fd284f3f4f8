import numpy as np
import pytest
from sklearn.metrics import f1_score, precision_score, recall_score

from mleval.evaluation.confusion import (
    ConfusionCounts,
    confusion_counts,
    f1,
    f1_macro_by_label,
    f1_micro,
    false_negatives,
    false_positives,
    precision,
    precision_macro,
    precision_micro,
    precision_per_label,
    recall,
    recall_macro,
    recall_micro,
    recall_per_label,
    true_negatives,
    true_positives,
)


def test_counts_exclude_missing_positions():
    counts = confusion_counts([1, 0, 1, -1, 0], [1, 1, 0, 1, 0])
    assert counts == ConfusionCounts(tp=1, fp=1, fn=1, tn=1)
    assert true_positives([1, 0, 1, -1, 0], [1, 1, 0, 1, 0]) == 1
    assert false_positives([1, 0, 1, -1, 0], [1, 1, 0, 1, 0]) == 1
    assert false_negatives([1, 0, 1, -1, 0], [1, 1, 0, 1, 0]) == 1
    assert true_negatives([1, 0, 1, -1, 0], [1, 1, 0, 1, 0]) == 1


def test_counts_of_single_class_and_unsupervised_vectors():
    assert confusion_counts([1, 1, 1], [1, 0, 1]) == ConfusionCounts(tp=2, fp=0, fn=1, tn=0)
    assert confusion_counts([0, 0], [0, 0]) == ConfusionCounts(tp=0, fp=0, fn=0, tn=2)
    assert confusion_counts([-1, -1], [1, 0]) == ConfusionCounts(tp=0, fp=0, fn=0, tn=0)


def test_zero_denominators_give_zero():
    assert precision([1, 0], [0, 0]) == 0.0
    assert recall([0, 0], [1, 0]) == 0.0
    assert f1([1, 0], [0, 0]) == 0.0


def test_all_missing_gives_nan():
    assert np.isnan(precision([-1, -1], [1, 0]))
    assert np.isnan(recall([-1, -1], [1, 0]))
    assert np.isnan(f1([-1, -1], [1, 0]))


def test_vector_measures():
    y, p = [1, 1, 0, 0, 1], [1, 0, 1, 0, 1]
    assert precision(y, p) == pytest.approx(2 / 3)
    assert recall(y, p) == pytest.approx(2 / 3)
    assert f1(y, p) == pytest.approx(2 / 3)


def test_macro_f1_by_label():
    assert f1_macro_by_label([[1, 0], [1, 1]], [[1, 0], [0, 1]]) == pytest.approx(0.8333, abs=1e-4)


def test_per_label_measures():
    y_true = [[1, 0], [1, 1], [0, 1]]
    y_pred = [[1, 1], [0, 1], [0, 0]]
    assert precision_per_label(y_true, y_pred, 0) == 1.0
    assert recall_per_label(y_true, y_pred, 0) == 0.5
    assert precision_per_label(y_true, y_pred, 1) == 0.5
    assert recall_per_label(y_true, y_pred, 1) == 0.5


def test_agrees_with_sklearn(random_scores):
    y_true, confidences = random_scores
    y_pred = (confidences > 0.5).astype(int)

    assert precision_macro(y_true, y_pred) == pytest.approx(
        precision_score(y_true, y_pred, average="macro", zero_division=0)
    )
    assert recall_macro(y_true, y_pred) == pytest.approx(
        recall_score(y_true, y_pred, average="macro", zero_division=0)
    )
    assert f1_macro_by_label(y_true, y_pred) == pytest.approx(
        f1_score(y_true, y_pred, average="macro", zero_division=0)
    )
    assert precision_micro(y_true, y_pred) == pytest.approx(
        precision_score(y_true, y_pred, average="micro", zero_division=0)
    )
    assert recall_micro(y_true, y_pred) == pytest.approx(
        recall_score(y_true, y_pred, average="micro", zero_division=0)
    )
    assert f1_micro(y_true, y_pred) == pytest.approx(
        f1_score(y_true, y_pred, average="micro", zero_division=0)
    )


def test_macro_skips_unsupervised_labels():
    y_true = [[1, -1], [0, -1]]
    y_pred = [[1, 1], [0, 0]]
    assert precision_macro(y_true, y_pred) == 1.0
    assert recall_macro(y_true, y_pred) == 1.0
    assert np.isnan(precision_macro([[-1, -1]], [[1, 1]]))
