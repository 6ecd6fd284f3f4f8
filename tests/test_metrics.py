import logging
import math

import numpy as np
import pytest
import torch

from mleval.evaluation.metrics import (
    compute_all_metrics,
    compute_ml_stats,
    compute_mt_stats,
    format_summary,
)


def test_headline_stats(identity_labels):
    stats = compute_ml_stats(identity_labels.astype(float), identity_labels, 0.5)
    assert list(stats) == ["N(test)", "L", "Accuracy", "Hamming score", "Exact match"]
    assert stats["N(test)"] == 4.0
    assert stats["L"] == 4.0
    assert stats["Exact match"] == 1.0


def test_inverted_stats(inverted_pair):
    y_true, y_pred = inverted_pair
    stats = compute_ml_stats(y_pred.astype(float), y_true, "0.5", verbosity=2)
    assert stats["Exact match"] == 0.0
    assert stats["ZeroOne loss"] == 1.0
    assert stats["Hamming loss"] == 1.0
    assert stats["Log Loss (max L)"] == pytest.approx(math.log(3))
    assert stats["Log Loss (max D)"] == pytest.approx(math.log(4))
    assert stats["Levenshtein distance"] == pytest.approx(2 / 3)
    assert stats["LCard_pred"] == 1.5
    assert "Accuracy[0]" not in stats


def test_per_label_entries_at_high_verbosity():
    y_true = [[1, 0], [1, 1], [0, 1], [0, 0]]
    confidences = [[0.9, 0.7], [0.2, 0.8], [0.1, 0.6], [0.3, 0.1]]

    stats = compute_ml_stats(confidences, y_true, 0.5, verbosity=3)
    assert stats["Accuracy[0]"] == 0.75
    assert stats["Accuracy[1]"] == 0.75
    assert stats["Threshold[0]"] == 0.5
    assert "Precision[0]" not in stats

    stats = compute_ml_stats(confidences, y_true, 0.5, verbosity=4)
    assert stats["Precision[0]"] == 1.0
    assert stats["Recall[0]"] == 0.5
    assert stats["Harmonic[1]"] == pytest.approx(2 / 3)
    # truth has 4 labels over 4 rows, predictions 4 as well
    assert stats["LCard_diff"] == 0.0
    assert stats["LCard_diff[0]"] == pytest.approx(0.25)
    assert stats["LCard_diff[1]"] == pytest.approx(-0.25)


def test_threshold_vector():
    stats = compute_ml_stats([[0.6, 0.6]], [[1, 0]], [0.5, 0.7], verbosity=3)
    assert stats["Exact match"] == 1.0
    assert (stats["Threshold[0]"], stats["Threshold[1]"]) == (0.5, 0.7)


def test_calibration_token_needs_resolving():
    with pytest.raises(ValueError):
        compute_ml_stats([[0.6, 0.6]], [[1, 0]], "PCut1")


def test_compute_all_metrics_with_tensors():
    torch.manual_seed(0)
    confidences = torch.rand(30, 4)
    targets = (confidences > 0.5).float()

    metrics = compute_all_metrics(confidences, targets, threshold="0.5")
    assert metrics["Exact match"] == 1.0
    assert metrics["AUROC macro"] == pytest.approx(1.0)


def test_compute_all_metrics_calibrates():
    confidences = np.array([[0.9, 0.6, 0.1], [0.8, 0.3, 0.2]])
    y_true = [[1, 0, 0], [1, 0, 0]]

    metrics = compute_all_metrics(confidences, y_true, threshold="PCut1", label_cardinality=1.0)
    assert metrics["Exact match"] == 1.0

    with pytest.raises(ValueError, match="label cardinality"):
        compute_all_metrics(confidences, y_true, threshold="PCut1")


def test_multi_target_stats():
    y_true = [[0, 2, 1], [1, 1, 3]]
    predictions = [[0.1, 1.6, 1.2], [1.0, 2.2, 2.9]]

    stats = compute_mt_stats(predictions, y_true, verbosity=3)
    assert stats["Exact match"] == 0.5
    assert stats["Hamming score"] == pytest.approx(5 / 6)
    assert stats["Levenshtein distance"] == pytest.approx(1 / 6)
    assert stats["Accuracy[1]"] == 0.5

    assert compute_all_metrics(predictions, y_true, run_type="MT", verbosity=1)["Exact match"] == 0.5


def test_verbose_summary_is_logged(identity_labels, caplog):
    with caplog.at_level(logging.INFO, logger="mleval.evaluation.metrics"):
        compute_all_metrics(identity_labels.astype(float), identity_labels, verbose=True)
    assert "EVALUATION METRICS SUMMARY" in caplog.text


def test_format_summary():
    text = format_summary({"N(test)": 10.0, "Exact match": 0.5, "Rank loss": float("nan")})
    assert "N(test)      10" in text
    assert "Exact match  0.5000" in text
    assert "nan" in text
