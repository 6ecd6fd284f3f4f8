"""
Evaluation metric maps for multi-label and multi-target classification.

This module turns a confidence matrix and the true labels into the ordered
name -> value map reported for one evaluation run:
- Set-based scores (Accuracy, Hamming, Exact match, Jaccard, Harmonic)
- Ranking scores (One error, Rank loss, Avg precision)
- Log loss
- F1, Precision and Recall (micro and macro averaged)
- AUROC / AUPRC
- Per-label scores at higher verbosity

Functions:
    compute_ml_stats: Metric map of a multi-label run
    compute_mt_stats: Metric map of a multi-target run
    compute_all_metrics: Resolve a threshold spec and compute the metric map
    format_summary: Render a metric map as a text block
"""

import logging
from typing import Any, Dict, Optional, Union

import numpy as np

from .confusion import precision_per_label, recall_per_label
from .matrices import MISSING, EvaluationContext, as_confidence_matrix, as_label_matrix, check_same_shape
from .registry import compute_metric, metric_names
from .sequence import levenshtein_loss_matrix
from .set_metrics import (
    exact_match,
    hamming_loss,
    hamming_score,
    hamming_score_per_label,
    harmonic_accuracy_per_label,
    label_cardinalities,
    label_cardinality,
    predicted_cardinality,
    zero_one_loss,
)
from .thresholds import (
    apply_threshold,
    is_calibration_token,
    parse_threshold,
    resolve_threshold,
    round_predictions,
)

logger = logging.getLogger(__name__)


def compute_ml_stats(
    confidences: Any,
    y_true: Any,
    thresholds: Any,
    verbosity: int = 1,
) -> Dict[str, float]:
    """
    Compute the metric map of a multi-label run.

    Args:
        confidences (Any): Confidences, shape (num_instances, num_labels)
        y_true (Any): True labels, same shape, ``MISSING`` where unsupervised
        thresholds (Any): Scalar, per-label vector or numeric spec string
        verbosity (int, optional): 1 reports the headline scores, 2 all
            registered metrics, 3 adds per-label accuracy and threshold, 4 adds per-label
            harmonic/precision/recall and cardinality differences. Defaults to 1.

    Returns:
        Dict[str, float]: Ordered metric map, NaN where a metric is undefined

    Example:
        >>> stats = compute_ml_stats([[0.9, 0.1], [0.2, 0.8]], [[1, 0], [0, 1]], 0.5)
        >>> stats['Exact match']
        1.0
    """
    scores = as_confidence_matrix(confidences)
    labels = as_label_matrix(y_true)
    check_same_shape(labels, scores, names=("y_true", "confidences"))
    num_instances, num_labels = labels.shape

    threshold_vector = parse_threshold(thresholds, num_labels)
    predictions = apply_threshold(scores, threshold_vector)
    context = EvaluationContext.build(labels, predictions, scores, threshold_vector)

    results = {"N(test)": float(num_instances), "L": float(num_labels)}
    for name in metric_names(verbosity):
        results[name] = compute_metric(name, context)

    if verbosity > 2:
        for j in range(num_labels):
            results[f"Accuracy[{j}]"] = hamming_score_per_label(labels, predictions, j)
            results[f"Threshold[{j}]"] = float(context.thresholds[j])
            if verbosity > 3:
                results[f"Harmonic[{j}]"] = harmonic_accuracy_per_label(labels, predictions, j)
                results[f"Precision[{j}]"] = precision_per_label(labels, predictions, j)
                results[f"Recall[{j}]"] = recall_per_label(labels, predictions, j)

    if verbosity > 3:
        results["LCard_diff"] = label_cardinality(labels) - predicted_cardinality(labels, predictions)
        # predicted frequencies over the same supervised positions as the truth
        masked_predictions = np.where(labels == MISSING, MISSING, predictions)
        differences = label_cardinalities(labels) - label_cardinalities(masked_predictions)
        for j in range(num_labels):
            results[f"LCard_diff[{j}]"] = float(differences[j])

    return results


def compute_mt_stats(confidences: Any, y_true: Any, verbosity: int = 1) -> Dict[str, float]:
    """
    Compute the metric map of a multi-target run.

    Predictions are the confidences rounded to the nearest class index.

    Args:
        confidences (Any): Class predictions, shape (num_instances, num_targets)
        y_true (Any): True class indices, same shape
        verbosity (int, optional): Level of detail. Defaults to 1.

    Returns:
        Dict[str, float]: Ordered metric map
    """
    labels = as_label_matrix(y_true)
    predictions = round_predictions(confidences)
    check_same_shape(labels, predictions)
    num_instances, num_labels = labels.shape

    results = {
        "N(test)": float(num_instances),
        "L": float(num_labels),
        "Hamming score": hamming_score(labels, predictions),
        "Exact match": exact_match(labels, predictions),
    }
    if verbosity > 1:
        results["Hamming loss"] = hamming_loss(labels, predictions)
        results["ZeroOne loss"] = zero_one_loss(labels, predictions)
        results["Levenshtein distance"] = levenshtein_loss_matrix(labels, predictions)
    if verbosity > 2:
        for j in range(num_labels):
            results[f"Accuracy[{j}]"] = hamming_score_per_label(labels, predictions, j)
    return results


def compute_all_metrics(
    confidences: Any,
    y_true: Any,
    threshold: Union[str, float, Any] = "0.5",
    verbosity: int = 2,
    label_cardinality: Optional[Any] = None,
    run_type: str = "ML",
    verbose: bool = False,
) -> Dict[str, float]:
    """
    Compute all evaluation metrics at once.

    Calibration tokens ("PCut1", "PCutL") are resolved against the given
    confidences and ``label_cardinality`` (typically measured on the
    training data).

    Args:
        confidences (Any): Confidences, shape (num_instances, num_labels)
        y_true (Any): True labels, same shape
        threshold (Union[str, float, Any], optional): Threshold spec. Defaults to "0.5".
        verbosity (int, optional): Level of detail. Defaults to 2.
        label_cardinality (Optional[Any], optional): Target cardinality for
            calibration tokens. Defaults to None.
        run_type (str, optional): "ML" or "MT". Defaults to "ML".
        verbose (bool, optional): Log a summary. Defaults to False.

    Returns:
        Dict[str, float]: Ordered metric map

    Raises:
        ValueError: If a calibration token is given without a cardinality

    Example:
        >>> preds = torch.rand(100, 18)
        >>> targets = torch.randint(0, 2, (100, 18)).float()
        >>> all_metrics = compute_all_metrics(preds, targets, threshold="PCut1",
        ...                                   label_cardinality=3.2)
    """
    if run_type.startswith("MT"):
        results = compute_mt_stats(confidences, y_true, verbosity)
    else:
        if is_calibration_token(threshold):
            if label_cardinality is None:
                raise ValueError(
                    f"Threshold {threshold!r} needs a label cardinality to calibrate against"
                )
            threshold = resolve_threshold(threshold, confidences, label_cardinality)
        results = compute_ml_stats(confidences, y_true, threshold, verbosity)

    if verbose:
        logger.info("\n" + format_summary(results))

    return results


def format_summary(metrics: Dict[str, float], precision: int = 4) -> str:
    """
    Render a metric map as an aligned text block.

    Args:
        metrics (Dict[str, float]): Metric map
        precision (int, optional): Decimal places. Defaults to 4.

    Returns:
        str: Summary block
    """
    width = max((len(name) for name in metrics), default=0)
    lines = ["=" * 80, "EVALUATION METRICS SUMMARY", "=" * 80]
    for name, value in metrics.items():
        if name in ("N(test)", "L"):
            lines.append(f"  {name:{width}s}  {int(value)}")
        else:
            lines.append(f"  {name:{width}s}  {value:.{precision}f}")
    lines.append("=" * 80)
    return "\n".join(lines)
