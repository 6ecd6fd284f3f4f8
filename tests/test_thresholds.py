import numpy as np
import pytest

from mleval.evaluation.thresholds import (
    apply_threshold,
    calibrate_threshold,
    calibrate_thresholds,
    format_threshold,
    is_calibration_token,
    observed_cardinality,
    parse_threshold,
    parse_threshold_values,
    resolve_threshold,
    round_predictions,
)

CONFIDENCES = np.array(
    [
        [0.9, 0.6, 0.1],
        [0.8, 0.3, 0.2],
        [0.4, 0.7, 0.5],
        [0.95, 0.05, 0.65],
    ]
)


@pytest.mark.parametrize("token", ["PCut1", "c", "PCutL", "C", " PCut1 "])
def test_calibration_tokens(token):
    assert is_calibration_token(token)


@pytest.mark.parametrize("spec", ["0.5", "[0.1,0.2]", 0.5, "pcut1", None])
def test_non_tokens(spec):
    assert not is_calibration_token(spec)


def test_parse_single_value_is_broadcast():
    np.testing.assert_allclose(parse_threshold("0.3", 3), [0.3, 0.3, 0.3])
    np.testing.assert_allclose(parse_threshold(0.3, 2), [0.3, 0.3])


def test_parse_bracketed_list():
    np.testing.assert_allclose(parse_threshold("[0.1,0.2,0.8]", 3), [0.1, 0.2, 0.8])
    np.testing.assert_allclose(parse_threshold("[0.1, 0.2 0.8]", 3), [0.1, 0.2, 0.8])
    np.testing.assert_allclose(parse_threshold([0.1, 0.2, 0.8], 3), [0.1, 0.2, 0.8])


def test_parse_rejects_wrong_length():
    with pytest.raises(ValueError, match="3 values but there are 2 labels"):
        parse_threshold("[0.1,0.2,0.8]", 2)


@pytest.mark.parametrize("spec", ["abc", "[0.1, x]", "[]", "PCut1", "nan"])
def test_parse_rejects_bad_specs(spec):
    with pytest.raises(ValueError):
        parse_threshold_values(spec)


def test_format_threshold():
    assert format_threshold(0.25) == "0.25"
    assert format_threshold([0.1, 0.5]) == "[0.1, 0.5]"
    np.testing.assert_allclose(parse_threshold(format_threshold([0.1, 0.5]), 2), [0.1, 0.5])


def test_observed_cardinality_is_non_increasing():
    grid = np.linspace(0.0, 1.0, 41)
    values = [observed_cardinality(CONFIDENCES, t) for t in grid]
    assert all(a >= b for a, b in zip(values, values[1:]))
    assert observed_cardinality(CONFIDENCES, 0.5) == 1.5


def test_calibration_returns_closest_cardinality():
    target = 1.5
    threshold = calibrate_threshold(CONFIDENCES, target)
    achieved = abs(observed_cardinality(CONFIDENCES, threshold) - target)
    for candidate in np.unique(CONFIDENCES):
        assert achieved <= abs(observed_cardinality(CONFIDENCES, candidate) - target)
    assert threshold == 0.5


def test_calibration_ties_go_to_lowest_threshold():
    # 0.3 (cardinality 1) and 0.7 (cardinality 0) both miss the target by a half
    rows = [[0.3, 0.7], [0.3, 0.7]]
    assert observed_cardinality(rows, 0.3) == 1.0
    assert observed_cardinality(rows, 0.7) == 0.0
    assert calibrate_threshold(rows, 0.5) == 0.3
    assert calibrate_threshold([[0.2, 0.4, 0.6]], 1.5) == 0.2


def test_calibration_extremes():
    assert calibrate_threshold(CONFIDENCES, 0.0) == 0.95
    assert calibrate_threshold(CONFIDENCES, 3.0) == 0.05


@pytest.mark.parametrize("target", [-0.1, 3.5, float("nan")])
def test_calibration_rejects_unreachable_targets(target):
    with pytest.raises(ValueError):
        calibrate_threshold(CONFIDENCES, target)


def test_calibration_rejects_empty_collection():
    with pytest.raises(ValueError):
        calibrate_threshold(np.empty((0, 3)), 1.0)


def test_per_label_calibration():
    thresholds = calibrate_thresholds(CONFIDENCES, [0.5, 0.25, 0.5])
    np.testing.assert_allclose(thresholds, [0.8, 0.6, 0.2])
    predictions = apply_threshold(CONFIDENCES, thresholds)
    np.testing.assert_allclose(predictions.mean(axis=0), [0.5, 0.25, 0.5])


def test_per_label_calibration_checks_length():
    with pytest.raises(ValueError, match="2 target cardinalities for 3 labels"):
        calibrate_thresholds(CONFIDENCES, [0.5, 0.5])


def test_resolve_threshold():
    assert resolve_threshold("PCut1", CONFIDENCES, 1.5) == "0.5"
    assert resolve_threshold("c", CONFIDENCES, [0.5, 0.5, 0.5]) == "0.5"
    assert resolve_threshold("PCutL", CONFIDENCES, [0.5, 0.25, 0.5]) == "[0.8, 0.6, 0.2]"
    assert resolve_threshold(" 0.4 ", CONFIDENCES, None) == "0.4"
    assert resolve_threshold(0.4, CONFIDENCES, None) == "0.4"
    with pytest.raises(ValueError):
        resolve_threshold("[0.1, 0.2]", CONFIDENCES, None)


def test_resolve_numeric_threshold_keeps_its_form():
    assert resolve_threshold(0.4, CONFIDENCES, None) == "0.4"
    assert resolve_threshold(np.float64(0.25), CONFIDENCES, None) == "0.25"
    assert resolve_threshold([0.1, 0.2, 0.3], CONFIDENCES, None) == "[0.1, 0.2, 0.3]"
    with pytest.raises(ValueError, match="2 values but there are 3 labels"):
        resolve_threshold([0.1, 0.2], CONFIDENCES, None)


def test_apply_threshold_is_strict():
    predictions = apply_threshold([[0.5, 0.51, 0.49]], 0.5)
    np.testing.assert_array_equal(predictions, [[0, 1, 0]])


def test_apply_threshold_per_label():
    predictions = apply_threshold([[0.5, 0.5], [0.2, 0.9]], "[0.4, 0.8]")
    np.testing.assert_array_equal(predictions, [[1, 0], [0, 1]])
    with pytest.raises(ValueError):
        apply_threshold([[0.5, 0.5]], [0.1, 0.2, 0.3])


def test_round_predictions():
    np.testing.assert_array_equal(round_predictions([[0.5, 1.4, 2.6], [0.49, 2.5, 0.0]]),
                                  [[1, 1, 3], [0, 3, 0]])
