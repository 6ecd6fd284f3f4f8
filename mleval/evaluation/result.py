"""
Evaluation results and their aggregation.

A Result collects the (confidence row, true row) pairs of one evaluation run,
such as a cross-validation fold, a train/test split or a window of a stream,
together with metadata like the threshold spec. Finalizing it computes the
metric map once; Results of several runs are then combined into
"mean ± sd" figures.

Classes:
    Result: Predictions, true labels, metadata and metrics of one run

Functions:
    fold_frame: Per-run metric table as a DataFrame
    average_results: Mean and standard deviation over several Results
    evaluate_predictions: Evaluate a whole confidence matrix in one go
    evaluate_windows: Evaluate a stream in consecutive windows
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .matrices import (
    as_confidence_matrix,
    as_confidence_vector,
    as_label_matrix,
    as_label_vector,
    check_same_shape,
    read_only,
)
from .metrics import compute_ml_stats, compute_mt_stats
from .set_metrics import label_cardinalities, label_cardinality
from .thresholds import (
    SINGLE_CUT_TOKENS,
    calibrate_threshold,
    calibrate_thresholds,
    format_threshold,
    is_calibration_token,
    parse_threshold,
    parse_threshold_values,
    resolve_threshold,
)

logger = logging.getLogger(__name__)


class Result:
    """
    Predictions and metrics of one evaluation run.

    Rows are appended with :meth:`add_result` until :meth:`finalize` computes
    the metric map. After that the stored matrices are read-only and no more
    rows are accepted.

    Attributes:
        num_labels (Optional[int]): Number of labels L (set by the first row if None)
        info (Dict[str, str]): Metadata ("Type", "Threshold", "Verbosity", ...)
        output (Dict[str, float]): Metric map, filled by :meth:`finalize`
        vals (Dict[str, float]): Auxiliary numbers, e.g. timings
        deviations (Dict[str, float]): Standard deviations, set by averaging
        summary (Dict[str, str]): "mean ± sd" strings, set by averaging

    Example:
        >>> result = Result(num_labels=3, threshold="0.5", verbosity=2)
        >>> result.add_result([0.9, 0.2, 0.7], [1, 0, 1])
        >>> result.add_result([0.1, 0.8, 0.4], [0, 1, 1])
        >>> output = result.finalize()
        >>> output['Exact match']
        0.5
    """

    def __init__(
        self,
        num_labels: Optional[int] = None,
        threshold: Any = "0.5",
        verbosity: int = 1,
        run_type: str = "ML",
    ):
        self.num_labels = num_labels
        self.info: Dict[str, str] = {
            "Type": run_type,
            "Threshold": threshold if isinstance(threshold, str) else format_threshold(threshold),
            "Verbosity": str(verbosity),
        }
        self.output: Dict[str, float] = {}
        self.vals: Dict[str, float] = {}
        self.deviations: Dict[str, float] = {}
        self.summary: Dict[str, str] = {}

        self._predictions: List[np.ndarray] = []
        self._actuals: List[np.ndarray] = []
        self._prediction_matrix: Optional[np.ndarray] = None
        self._actual_matrix: Optional[np.ndarray] = None
        self._finalized = False

    def __len__(self) -> int:
        if self._prediction_matrix is not None:
            return int(self._prediction_matrix.shape[0])
        return len(self._predictions)

    def __str__(self) -> str:
        lines = [f"{name}: {value}" for name, value in self.info.items()]
        lines.extend(f"{name}: {value}" for name, value in self.format_output().items())
        lines.extend(f"{name}: {value:.3f}" for name, value in self.vals.items())
        return "\n".join(lines)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add_result(self, confidences: Any, actual: Any) -> None:
        """
        Append one (confidence row, true row) pair.

        Args:
            confidences (Any): Confidences of the L labels
            actual (Any): True labels (NaN or ``MISSING`` where unsupervised)

        Raises:
            RuntimeError: If the Result has been finalized
            ValueError: If a row does not have L entries
        """
        if self._finalized:
            raise RuntimeError("Cannot add rows to a finalized Result")

        row = as_confidence_vector(confidences)
        truth = as_label_vector(actual)
        if self.num_labels is None:
            self.num_labels = len(row)
        for name, values in (("confidence", row), ("true", truth)):
            if len(values) != self.num_labels:
                raise ValueError(
                    f"Expected {self.num_labels} labels but the {name} row has {len(values)}"
                )

        self._predictions.append(row)
        self._actuals.append(truth)

    def all_predictions(self, threshold: Any = None) -> np.ndarray:
        """
        All confidence rows as a matrix, or binarized if ``threshold`` is given.

        Returns:
            np.ndarray: Shape (num_instances, num_labels)
        """
        if self._prediction_matrix is not None:
            confidences = self._prediction_matrix
        else:
            confidences = self._stack(self._predictions, float)
        if threshold is None:
            return confidences
        return (confidences > parse_threshold(threshold, confidences.shape[1])).astype(int)

    def all_actuals(self) -> np.ndarray:
        """All true rows as an int matrix of shape (num_instances, num_labels)."""
        if self._actual_matrix is not None:
            return self._actual_matrix
        return self._stack(self._actuals, int)

    def _stack(self, rows: List[np.ndarray], dtype) -> np.ndarray:
        if not rows:
            return np.empty((0, self.num_labels or 0), dtype=dtype)
        return np.vstack(rows).astype(dtype)

    def row_confidences(self, i: int) -> np.ndarray:
        return self.all_predictions()[i]

    def row_actual(self, i: int) -> np.ndarray:
        return self.all_actuals()[i]

    def row_prediction(self, i: int, threshold: Any) -> np.ndarray:
        """Binary prediction of row ``i`` (confidence strictly above threshold)."""
        row = self.row_confidences(i)
        return (row > parse_threshold(threshold, len(row))).astype(int)

    def set_info(self, category: str, value: Any) -> None:
        self.info[category] = str(value)

    def get_info(self, category: str) -> Optional[str]:
        return self.info.get(category)

    def set_value(self, metric: str, value: float) -> None:
        self.vals[metric] = float(value)

    def add_value(self, metric: str, value: float) -> None:
        """Add ``value`` to the auxiliary number ``metric`` (starting from 0)."""
        self.vals[metric] = self.vals.get(metric, 0.0) + float(value)

    def get_value(self, metric: str) -> float:
        return self.vals[metric]

    def finalize(self, label_cardinality: Optional[Any] = None) -> Dict[str, float]:
        """
        Compute the metric map of the collected rows.

        If the "Threshold" info still holds a calibration token, it is
        calibrated first against ``label_cardinality`` (usually measured on
        the training data) and the concrete threshold replaces the token.

        Args:
            label_cardinality (Optional[Any], optional): Target cardinality
                (PCut1) or per-label frequencies (PCutL). Defaults to None.

        Returns:
            Dict[str, float]: The metric map, also stored in ``output``

        Raises:
            RuntimeError: If the Result is already finalized
            ValueError: If there are no rows, or a calibration token cannot
                be resolved
        """
        if self._finalized:
            raise RuntimeError("Result is already finalized")
        if len(self) == 0:
            raise ValueError("Cannot finalize a Result without any rows")

        confidences = self.all_predictions()
        actuals = self.all_actuals()
        verbosity = int(self.info.get("Verbosity", 1))

        if self.info["Type"].startswith("MT"):
            self.output = compute_mt_stats(confidences, actuals, verbosity)
        else:
            threshold = self.info["Threshold"]
            if is_calibration_token(threshold):
                if label_cardinality is None:
                    raise ValueError(
                        f"Threshold {threshold!r} needs a label cardinality to calibrate against"
                    )
                threshold = resolve_threshold(threshold, confidences, label_cardinality)
                self.info["Threshold"] = threshold
            self.output = compute_ml_stats(confidences, actuals, threshold, verbosity)

        self._prediction_matrix = read_only(confidences)
        self._actual_matrix = read_only(actuals)
        self._predictions = []
        self._actuals = []
        self._finalized = True

        logger.info(
            f"Finalized {self.info['Type']} result: {len(self)} instances, "
            f"{self.num_labels} labels, threshold {self.info['Threshold']}"
        )
        return self.output

    def format_output(self, precision: int = 3) -> Dict[str, str]:
        """
        Render the metric map as strings.

        Args:
            precision (int, optional): Decimal places. Defaults to 3.

        Returns:
            Dict[str, str]: "mean ± sd" after averaging, plain values otherwise
        """
        formatted = {}
        for name, value in self.output.items():
            if name in self.deviations:
                formatted[name] = f"{value:.{precision}f} ± {self.deviations[name]:.{precision}f}"
            else:
                formatted[name] = f"{value:.{precision}f}"
        return formatted


def fold_frame(results: Sequence[Result]) -> pd.DataFrame:
    """
    Collect the metric maps of several Results into one table.

    Args:
        results (Sequence[Result]): Finalized Results

    Returns:
        pd.DataFrame: One row per Result (index "Fold", starting at 1), one
            column per metric
    """
    frame = pd.DataFrame([result.output for result in results])
    frame.index = pd.RangeIndex(1, len(results) + 1, name="Fold")
    return frame


def average_results(results: Sequence[Result], precision: int = 3) -> Result:
    """
    Average several Results, e.g. the folds of a cross-validation.

    Per metric the mean and the sample standard deviation (0.0 for a single
    Result) are computed; NaN values of individual Results are skipped.

    Args:
        results (Sequence[Result]): Finalized Results with identical metric names
        precision (int, optional): Decimal places of the summary. Defaults to 3.

    Returns:
        Result: A finalized Result whose ``output`` holds the means,
            ``deviations`` the standard deviations and ``summary`` the
            "mean ± sd" strings

    Raises:
        ValueError: If ``results`` is empty, contains an unfinalized Result,
            or the Results report different metrics

    Example:
        >>> averaged = average_results([fold_1, fold_2, fold_3])
        >>> averaged.summary['Hamming score']
        '0.871 ± 0.012'
    """
    if len(results) == 0:
        raise ValueError("Cannot average an empty list of Results")

    unfinalized = [i for i, result in enumerate(results) if not result.finalized]
    if unfinalized:
        raise ValueError(f"Results {unfinalized} have not been finalized")

    names = list(results[0].output)
    for i, result in enumerate(results[1:], start=1):
        if set(result.output) != set(names):
            differing = sorted(set(names) ^ set(result.output))
            raise ValueError(
                f"Result {i} reports different metrics than result 0: {differing}"
            )

    frame = fold_frame(results)[names]
    means = frame.mean(skipna=True)
    if len(results) > 1:
        deviations = frame.std(ddof=1, skipna=True)
    else:
        deviations = pd.Series(0.0, index=names)

    averaged = Result(num_labels=results[0].num_labels)
    averaged.info = dict(results[0].info)
    averaged.info["Folds"] = str(len(results))
    averaged.output = {name: float(means[name]) for name in names}
    averaged.deviations = {name: float(deviations[name]) for name in names}

    val_names = list(results[0].vals)
    if val_names:
        val_frame = pd.DataFrame([result.vals for result in results]).reindex(columns=val_names)
        averaged.vals = {name: float(value) for name, value in val_frame.mean(skipna=True).items()}

    averaged.summary = averaged.format_output(precision)
    averaged._finalized = True
    logger.info(f"Averaged {len(results)} results over {len(names)} metrics")
    return averaged


def evaluate_predictions(
    confidences: Any,
    y_true: Any,
    threshold: Any = "0.5",
    verbosity: int = 1,
    run_type: str = "ML",
    label_cardinality: Optional[Any] = None,
) -> Result:
    """
    Evaluate a whole confidence matrix as one finalized Result.

    Args:
        confidences (Any): Confidences, shape (num_instances, num_labels)
        y_true (Any): True labels, same shape
        threshold (Any, optional): Threshold spec. Defaults to "0.5".
        verbosity (int, optional): Level of detail. Defaults to 1.
        run_type (str, optional): "ML" or "MT". Defaults to "ML".
        label_cardinality (Optional[Any], optional): Target for calibration
            tokens. Defaults to None.

    Returns:
        Result: The finalized Result
    """
    scores = as_confidence_matrix(confidences)
    labels = as_label_matrix(y_true)
    check_same_shape(labels, scores, names=("y_true", "confidences"))

    result = Result(
        num_labels=labels.shape[1], threshold=threshold, verbosity=verbosity, run_type=run_type
    )
    for row, truth in zip(scores, labels):
        result.add_result(row, truth)
    result.finalize(label_cardinality)
    return result


def _training_cardinality(threshold: str, labels: np.ndarray):
    if threshold.strip() in SINGLE_CUT_TOKENS:
        return label_cardinality(labels)
    return label_cardinalities(labels)


def _recalibrated(
    current: str, scores: np.ndarray, labels: np.ndarray, per_label: bool, k: int
) -> str:
    if per_label:
        targets = label_cardinalities(labels)
        if np.isnan(targets).any():
            logger.debug(f"Window {k}: previous window has unsupervised labels, keeping threshold {current}")
            return current
        return format_threshold(list(calibrate_thresholds(scores, targets)))

    cardinality = label_cardinality(labels)
    if np.isnan(cardinality):
        logger.debug(f"Window {k}: previous window unsupervised, keeping threshold {current}")
        return current
    return format_threshold(calibrate_threshold(scores, cardinality))


def evaluate_windows(
    confidences: Any,
    y_true: Any,
    num_windows: int = 20,
    threshold: Any = "0.5",
    verbosity: int = 1,
    recalibrate: bool = True,
    progress: bool = False,
) -> List[Result]:
    """
    Evaluate a stream of predictions in consecutive windows.

    The rows are split into ``num_windows`` windows of N // num_windows rows
    each; the last window also takes the remaining rows. With
    ``recalibrate``, the threshold of every window after the first is the
    PCut1 threshold of the previous window's confidences against the previous
    window's true label cardinality, so no window sees its own labels. A
    per-label starting threshold ("PCutL" or a vector) is recalibrated per
    label instead, against the previous window's label frequencies.

    Args:
        confidences (Any): Confidences in stream order, shape (num_instances, num_labels)
        y_true (Any): True labels, same shape
        num_windows (int, optional): Number of windows. Defaults to 20.
        threshold (Any, optional): Threshold of the first window. A calibration
            token is calibrated on the first window itself. Defaults to "0.5".
        verbosity (int, optional): Level of detail. Defaults to 1.
        recalibrate (bool, optional): Recalibrate between windows. Defaults to True.
        progress (bool, optional): Show a progress bar. Defaults to False.

    Returns:
        List[Result]: One finalized Result per window, with info "Window"

    Raises:
        ValueError: If there are fewer rows than windows
    """
    scores = as_confidence_matrix(confidences)
    labels = as_label_matrix(y_true)
    check_same_shape(labels, scores, names=("y_true", "confidences"))

    if num_windows < 1:
        raise ValueError(f"num_windows must be at least 1, got {num_windows}")
    window_size = scores.shape[0] // num_windows
    if window_size < 1:
        raise ValueError(
            f"Cannot split {scores.shape[0]} instances into {num_windows} windows"
        )

    current = threshold if isinstance(threshold, str) else format_threshold(threshold)
    if is_calibration_token(current):
        first = slice(0, window_size if num_windows > 1 else scores.shape[0])
        current = resolve_threshold(
            current, scores[first], _training_cardinality(current, labels[first])
        )
    per_label = parse_threshold_values(current).size > 1

    results = []
    previous = None
    for k in tqdm(range(num_windows), desc="Windows", disable=not progress):
        start = k * window_size
        end = scores.shape[0] if k == num_windows - 1 else start + window_size
        window = slice(start, end)

        if recalibrate and previous is not None:
            current = _recalibrated(current, scores[previous], labels[previous], per_label, k)

        result = Result(num_labels=scores.shape[1], threshold=current, verbosity=verbosity)
        for row, truth in zip(scores[window], labels[window]):
            result.add_result(row, truth)
        result.set_info("Window", k)
        result.finalize()
        results.append(result)
        previous = window

    logger.info(
        f"Evaluated {num_windows} windows of {window_size} instances "
        f"({scores.shape[0]} in total)"
    )
    return results
