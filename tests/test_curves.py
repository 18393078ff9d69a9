"""Tests for response curves.

Validates:
- Each family's shape at known points.
- Raw inputs are clamped to the declared domain and rescaled.
- Output always lands in [0, 1].
- Invalid parameters are rejected at construction, not evaluation.
- Non-decreasing curves never lower the score for a larger input.
"""

import math

import numpy as np
import pytest

from ponder.curves import ResponseCurve, ResponseCurveType
from ponder.errors import CurveError

# ---------------------------------------------------------------------------
# Family shapes
# ---------------------------------------------------------------------------


def test_linear_identity_by_default() -> None:
    curve = ResponseCurve.linear()
    assert curve.evaluate(0.0) == 0.0
    assert curve.evaluate(0.25) == pytest.approx(0.25)
    assert curve.evaluate(1.0) == 1.0


def test_linear_slope_and_intercept() -> None:
    curve = ResponseCurve.linear(slope=-1.0, intercept=1.0)
    assert curve.evaluate(0.0) == pytest.approx(1.0)
    assert curve.evaluate(0.75) == pytest.approx(0.25)


def test_polynomial_quadratic() -> None:
    curve = ResponseCurve.polynomial(exponent=2.0)
    assert curve.evaluate(0.5) == pytest.approx(0.25)
    assert curve.evaluate(1.0) == pytest.approx(1.0)


def test_polynomial_fractional_exponent_below_shift_stays_real() -> None:
    """A negative base with a fractional exponent must not go complex."""
    curve = ResponseCurve.polynomial(exponent=0.5, x_shift=0.5, y_shift=0.5)
    value = curve.evaluate(0.0)
    assert isinstance(value, float)
    assert 0.0 <= value <= 0.5


def test_logistic_midpoint_is_half() -> None:
    curve = ResponseCurve.logistic(midpoint=0.5, steepness=10.0)
    assert curve.evaluate(0.5) == pytest.approx(0.5)
    assert curve.evaluate(0.0) < 0.01
    assert curve.evaluate(1.0) > 0.99


def test_logistic_extreme_steepness_does_not_overflow() -> None:
    curve = ResponseCurve.logistic(steepness=1e6)
    assert curve.evaluate(0.0) == pytest.approx(0.0)
    assert curve.evaluate(1.0) == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0.29, 0.0), (0.3, 1.0), (0.9, 1.0)],
)
def test_step(raw: float, expected: float) -> None:
    assert ResponseCurve.step(threshold=0.3).evaluate(raw) == expected


def test_inverse_and_bell() -> None:
    assert ResponseCurve.inverse().evaluate(0.2) == pytest.approx(0.8)
    bell = ResponseCurve.bell(peak=0.7, width=0.5)
    assert bell.evaluate(0.7) == pytest.approx(1.0)
    assert bell.evaluate(0.2) == pytest.approx(0.0)
    assert bell.evaluate(0.45) == pytest.approx(0.5)


# ---------------------------------------------------------------------------
# Domain and output clamping
# ---------------------------------------------------------------------------


def test_domain_rescales_raw_input() -> None:
    """A distance curve over 0..20 tiles maps 5 tiles to 0.25."""
    curve = ResponseCurve.linear(domain=(0.0, 20.0))
    assert curve.evaluate(5.0) == pytest.approx(0.25)


def test_raw_outside_domain_is_clamped() -> None:
    curve = ResponseCurve.linear(domain=(10.0, 20.0))
    assert curve.evaluate(-100.0) == 0.0
    assert curve.evaluate(1e9) == 1.0


def test_output_is_clamped_to_unit_interval() -> None:
    curve = ResponseCurve.linear(slope=3.0, intercept=-0.5)
    assert curve.evaluate(0.0) == 0.0
    assert curve.evaluate(1.0) == 1.0


def test_nan_input_evaluates_as_domain_minimum() -> None:
    curve = ResponseCurve.inverse()
    assert curve.evaluate(math.nan) == 1.0


@pytest.mark.parametrize(
    "curve",
    [
        ResponseCurve.linear(slope=5.0, intercept=-2.0),
        ResponseCurve.polynomial(exponent=3.0, slope=4.0, y_shift=-0.2),
        ResponseCurve.logistic(slope=2.0, y_shift=-0.5, steepness=-7.0),
        ResponseCurve.bell(peak=0.1, width=0.05),
    ],
)
def test_outputs_always_in_unit_interval(curve: ResponseCurve) -> None:
    raw = np.linspace(-5.0, 5.0, 201)
    out = curve.evaluate_many(raw)
    assert np.all(out >= 0.0)
    assert np.all(out <= 1.0)


def test_evaluate_many_matches_scalar_evaluate() -> None:
    curve = ResponseCurve.polynomial(exponent=1.5, x_shift=0.2, domain=(0.0, 50.0))
    raw = np.linspace(-10.0, 60.0, 71)
    expected = np.array([curve.evaluate(float(x)) for x in raw])
    np.testing.assert_allclose(curve.evaluate_many(raw), expected, atol=1e-12)


# ---------------------------------------------------------------------------
# Construction-time validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "kwargs",
    [
        {"curve_type": ResponseCurveType.POLYNOMIAL, "exponent": 0.0},
        {"curve_type": ResponseCurveType.POLYNOMIAL, "exponent": -2.0},
        {"curve_type": ResponseCurveType.LOGISTIC, "steepness": 0.0},
        {"curve_type": ResponseCurveType.STEP, "threshold": 1.5},
        {"curve_type": ResponseCurveType.BELL, "width": 0.0},
        {"curve_type": ResponseCurveType.LINEAR, "domain": (1.0, 1.0)},
        {"curve_type": ResponseCurveType.LINEAR, "domain": (2.0, 1.0)},
        {"curve_type": ResponseCurveType.LINEAR, "slope": math.inf},
        {"curve_type": ResponseCurveType.LINEAR, "y_shift": math.nan},
    ],
)
def test_invalid_parameters_rejected_at_construction(kwargs: dict) -> None:
    with pytest.raises(CurveError):
        ResponseCurve(**kwargs)


def test_curve_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        ResponseCurve.polynomial(exponent=-1.0)


def test_curves_are_immutable() -> None:
    curve = ResponseCurve.linear()
    with pytest.raises(AttributeError):
        curve.slope = 2.0  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Monotonicity
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "curve",
    [
        ResponseCurve.linear(),
        ResponseCurve.linear(slope=0.5, intercept=0.1, domain=(0.0, 100.0)),
        ResponseCurve.polynomial(exponent=3.0),
        ResponseCurve.polynomial(exponent=0.5, x_shift=0.4),
        ResponseCurve.logistic(midpoint=0.3, steepness=12.0),
        ResponseCurve.step(threshold=0.6),
    ],
)
def test_non_decreasing_curves_are_monotone(curve: ResponseCurve) -> None:
    assert curve.is_non_decreasing
    low, high = curve.domain
    span = high - low
    raw = np.linspace(low - span, high + span, 500)
    scores = [curve.evaluate(float(x)) for x in raw]
    assert all(b >= a for a, b in zip(scores, scores[1:], strict=False))


@pytest.mark.parametrize(
    "curve",
    [
        ResponseCurve.inverse(),
        ResponseCurve.bell(),
        ResponseCurve.linear(slope=-1.0, intercept=1.0),
        ResponseCurve.logistic(steepness=-5.0),
    ],
)
def test_decreasing_or_peaked_curves_report_not_non_decreasing(
    curve: ResponseCurve,
) -> None:
    assert not curve.is_non_decreasing
