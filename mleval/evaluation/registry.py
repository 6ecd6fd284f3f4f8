"""
Metric registry.

Maps the display name of every metric to the pure function computing it from
an EvaluationContext, together with what the function needs (binary
predictions or raw confidences) and the verbosity level from which the metric
is reported.

Functions:
    register_metric: Add a metric (directly or as a decorator)
    get_metric: Look up a registered metric
    metric_names: Names reported at a verbosity level, in registration order
    compute_metric: Evaluate a registered metric on a context
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from . import confusion, curves, probabilistic, ranking, sequence, set_metrics
from .matrices import EvaluationContext

PREDICTIONS = "predictions"
CONFIDENCES = "confidences"


@dataclass(frozen=True)
class MetricSpec:
    """
    A registered metric.

    Attributes:
        name (str): Display name used as key in metric maps
        func (Callable[[np.ndarray, np.ndarray], float]): Called as
            ``func(y_true, y_pred)`` or ``func(y_true, confidences)``
        needs (str): ``"predictions"`` or ``"confidences"``
        verbosity (int): Lowest verbosity at which the metric is reported
    """

    name: str
    func: Callable[[np.ndarray, np.ndarray], float]
    needs: str = PREDICTIONS
    verbosity: int = 1


METRIC_REGISTRY: Dict[str, MetricSpec] = {}


def register_metric(
    name: str,
    func: Optional[Callable] = None,
    needs: str = PREDICTIONS,
    verbosity: int = 1,
):
    """
    Register a metric under ``name``.

    Can be called directly with a function, or used as a decorator.

    Args:
        name (str): Display name
        func (Optional[Callable], optional): Metric function. If None, a
            decorator is returned. Defaults to None.
        needs (str, optional): ``"predictions"`` or ``"confidences"``.
            Defaults to ``"predictions"``.
        verbosity (int, optional): Lowest verbosity reporting the metric.
            Defaults to 1.

    Returns:
        The function itself (or a decorator registering it)

    Raises:
        ValueError: If ``needs`` is unknown or the name is already taken

    Example:
        >>> @register_metric("Label count", verbosity=5)
        ... def label_count(y_true, y_pred):
        ...     return float(y_true.shape[1])
    """
    if needs not in (PREDICTIONS, CONFIDENCES):
        raise ValueError(f"needs must be '{PREDICTIONS}' or '{CONFIDENCES}', got {needs!r}")

    def decorator(f: Callable) -> Callable:
        if name in METRIC_REGISTRY:
            raise ValueError(f"Metric {name!r} is already registered")
        METRIC_REGISTRY[name] = MetricSpec(name=name, func=f, needs=needs, verbosity=verbosity)
        return f

    if func is not None:
        return decorator(func)
    return decorator


def get_metric(name: str) -> MetricSpec:
    if name not in METRIC_REGISTRY:
        raise KeyError(f"Unknown metric: {name}. Available: {list(METRIC_REGISTRY)}")
    return METRIC_REGISTRY[name]


def metric_names(verbosity: int = 1) -> List[str]:
    """Names of the metrics reported at ``verbosity``, in registration order."""
    return [name for name, spec in METRIC_REGISTRY.items() if spec.verbosity <= verbosity]


def compute_metric(name: str, context: EvaluationContext) -> float:
    """
    Evaluate a registered metric on an evaluation context.

    Args:
        name (str): Registered metric name
        context (EvaluationContext): Inputs of the run

    Returns:
        float: Metric value (NaN if undefined)

    Raises:
        KeyError: If the metric is unknown
        ValueError: If the metric needs confidences and the context has none
    """
    spec = get_metric(name)
    if spec.needs == CONFIDENCES:
        if context.confidences is None:
            raise ValueError(f"Metric {name!r} needs confidences but none were given")
        return float(spec.func(context.y_true, context.confidences))
    return float(spec.func(context.y_true, context.y_pred))


# Built-in metrics, in reporting order
register_metric("Accuracy", set_metrics.jaccard_index)
register_metric("Hamming score", set_metrics.hamming_score)
register_metric("Exact match", set_metrics.exact_match)

register_metric("Jaccard dist", set_metrics.jaccard_distance, verbosity=2)
register_metric("Hamming loss", set_metrics.hamming_loss, verbosity=2)
register_metric("ZeroOne loss", set_metrics.zero_one_loss, verbosity=2)
register_metric("Harmonic score", set_metrics.harmonic_accuracy, verbosity=2)
register_metric("One error", ranking.one_error, needs=CONFIDENCES, verbosity=2)
register_metric("Rank loss", ranking.rank_loss, needs=CONFIDENCES, verbosity=2)
register_metric("Avg precision", ranking.average_precision, needs=CONFIDENCES, verbosity=2)
register_metric("Log Loss (max L)", probabilistic.log_loss_by_labels, needs=CONFIDENCES, verbosity=2)
register_metric("Log Loss (max D)", probabilistic.log_loss_by_instances, needs=CONFIDENCES, verbosity=2)
register_metric("F1 micro avg", confusion.f1_micro, verbosity=2)
register_metric("F1 macro avg, by ex.", set_metrics.f1_macro_by_instance, verbosity=2)
register_metric("F1 macro avg, by lbl", confusion.f1_macro_by_label, verbosity=2)
register_metric("Precision micro", confusion.precision_micro, verbosity=2)
register_metric("Recall micro", confusion.recall_micro, verbosity=2)
register_metric("Precision macro", confusion.precision_macro, verbosity=2)
register_metric("Recall macro", confusion.recall_macro, verbosity=2)
register_metric("AUROC macro", curves.auroc_macro, needs=CONFIDENCES, verbosity=2)
register_metric("AUPRC macro", curves.auprc_macro, needs=CONFIDENCES, verbosity=2)
register_metric("AUROC micro", curves.auroc_micro, needs=CONFIDENCES, verbosity=2)
register_metric("AUPRC micro", curves.auprc_micro, needs=CONFIDENCES, verbosity=2)
register_metric("Levenshtein distance", sequence.levenshtein_loss_matrix, verbosity=2)
register_metric("Percent no-labels", set_metrics.empty_prediction_rate, verbosity=2)
register_metric("LCard_pred", set_metrics.predicted_cardinality, verbosity=2)
