"""
Evaluation package for multi-label and multi-target classification.

This package provides:
- Confusion-matrix primitives (precision, recall, F1; micro and macro)
- Set-based metrics (Hamming, Exact match, Jaccard, Harmonic)
- Ranking metrics (One error, Average precision, Rank loss)
- Log loss
- ROC and precision-recall curves with their areas
- Edit distance for multi-target outputs
- Threshold parsing and PCut calibration
- Results with fold and window aggregation

Modules:
    matrices: Input conversion, missing labels, evaluation context
    confusion: Confusion counts and derived measures
    set_metrics: Set-based metrics
    ranking: Ranking metrics
    probabilistic: Log loss
    curves: Threshold curves, AUROC and AUPRC
    thresholds: Threshold specs, calibration and binarization
    sequence: Levenshtein distance
    registry: Name -> metric function registry
    metrics: Metric maps of one run
    result: Result accumulation and aggregation
"""

from .matrices import MISSING, EvaluationContext, as_confidence_matrix, as_label_matrix
from .confusion import (
    confusion_counts,
    precision,
    recall,
    f1,
    precision_macro,
    recall_macro,
    f1_macro_by_label,
    precision_micro,
    recall_micro,
    f1_micro,
)
from .set_metrics import (
    zero_one_loss,
    exact_match,
    hamming_loss,
    hamming_score,
    harmonic_accuracy,
    jaccard_index,
    jaccard_distance,
    f1_macro_by_instance,
    label_cardinality,
    label_cardinalities,
)
from .ranking import rank, one_error, average_precision, rank_loss
from .probabilistic import log_loss, log_loss_by_labels, log_loss_by_instances
from .curves import (
    CurvePoint,
    threshold_curve,
    roc_area,
    prc_area,
    curve_data,
    curve_data_micro_averaged,
    curve_data_macro_averaged,
    auroc_macro,
    auprc_macro,
    auroc_micro,
    auprc_micro,
)
from .thresholds import (
    parse_threshold,
    format_threshold,
    is_calibration_token,
    calibrate_threshold,
    calibrate_thresholds,
    resolve_threshold,
    apply_threshold,
    round_predictions,
)
from .sequence import levenshtein_distance, levenshtein_loss, levenshtein_loss_matrix
from .registry import METRIC_REGISTRY, MetricSpec, register_metric, get_metric, metric_names, compute_metric
from .metrics import compute_ml_stats, compute_mt_stats, compute_all_metrics, format_summary
from .result import Result, fold_frame, average_results, evaluate_predictions, evaluate_windows

__all__ = [
    # Matrices
    'MISSING',
    'EvaluationContext',
    'as_confidence_matrix',
    'as_label_matrix',

    # Confusion
    'confusion_counts',
    'precision',
    'recall',
    'f1',
    'precision_macro',
    'recall_macro',
    'f1_macro_by_label',
    'precision_micro',
    'recall_micro',
    'f1_micro',

    # Set-based
    'zero_one_loss',
    'exact_match',
    'hamming_loss',
    'hamming_score',
    'harmonic_accuracy',
    'jaccard_index',
    'jaccard_distance',
    'f1_macro_by_instance',
    'label_cardinality',
    'label_cardinalities',

    # Ranking
    'rank',
    'one_error',
    'average_precision',
    'rank_loss',

    # Probabilistic
    'log_loss',
    'log_loss_by_labels',
    'log_loss_by_instances',

    # Curves
    'CurvePoint',
    'threshold_curve',
    'roc_area',
    'prc_area',
    'curve_data',
    'curve_data_micro_averaged',
    'curve_data_macro_averaged',
    'auroc_macro',
    'auprc_macro',
    'auroc_micro',
    'auprc_micro',

    # Thresholds
    'parse_threshold',
    'format_threshold',
    'is_calibration_token',
    'calibrate_threshold',
    'calibrate_thresholds',
    'resolve_threshold',
    'apply_threshold',
    'round_predictions',

    # Sequence
    'levenshtein_distance',
    'levenshtein_loss',
    'levenshtein_loss_matrix',

    # Registry
    'METRIC_REGISTRY',
    'MetricSpec',
    'register_metric',
    'get_metric',
    'metric_names',
    'compute_metric',

    # Metric maps and results
    'compute_ml_stats',
    'compute_mt_stats',
    'compute_all_metrics',
    'format_summary',
    'Result',
    'fold_frame',
    'average_results',
    'evaluate_predictions',
    'evaluate_windows',
]
