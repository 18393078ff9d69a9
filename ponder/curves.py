"""Response curves: pure transforms from raw measurements to utility.

Every curve works the same way: the raw input is clamped to the curve's
declared ``domain`` and rescaled to ``t`` in [0, 1], the curve family is
applied to ``t``, and the result is clamped to [0, 1] to absorb overshoot.
Parameters are validated once, when the curve is built, so ``evaluate``
has no error conditions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from . import config
from .errors import CurveError
from .types import FloatRange, RawValue, Score


def _clamp(value: float, min_value: float = 0.0, max_value: float = 1.0) -> float:
    return max(min_value, min(max_value, value))


class ResponseCurveType(Enum):
    LINEAR = "linear"
    POLYNOMIAL = "polynomial"
    LOGISTIC = "logistic"
    STEP = "step"
    INVERSE = "inverse"
    BELL = "bell"


@dataclass(frozen=True, slots=True)
class ResponseCurve:
    """A parameterized response curve.

    Prefer the named constructors (``linear``, ``polynomial``, ``logistic``,
    ``step``, ``inverse``, ``bell``) over filling in fields directly; each
    family only reads the parameters listed next to it.

    Attributes:
        curve_type: Curve family.
        domain: (low, high) range of meaningful raw values. Inputs outside it
            are clamped before the transform.
        slope: LINEAR, POLYNOMIAL and LOGISTIC vertical scale.
        exponent: POLYNOMIAL power. Must be positive.
        x_shift: Horizontal offset (LINEAR, POLYNOMIAL; LOGISTIC midpoint).
        y_shift: Vertical offset (LINEAR, POLYNOMIAL, LOGISTIC).
        steepness: LOGISTIC growth rate. Negative values mirror the curve.
        threshold: STEP cutoff in normalized space.
        peak: BELL centre in normalized space.
        width: BELL half-width in normalized space. Must be positive.
    """

    curve_type: ResponseCurveType
    domain: FloatRange = config.DEFAULT_CURVE_DOMAIN
    slope: float = 1.0
    exponent: float = 2.0
    x_shift: float = 0.0
    y_shift: float = 0.0
    steepness: float = 10.0
    threshold: float = 0.5
    peak: float = 0.5
    width: float = 0.5

    def __post_init__(self) -> None:
        low, high = self.domain
        if not (math.isfinite(low) and math.isfinite(high)) or low >= high:
            raise CurveError(f"Curve domain must be a finite range, got {self.domain}")
        for field_name in (
            "slope",
            "exponent",
            "x_shift",
            "y_shift",
            "steepness",
            "threshold",
            "peak",
            "width",
        ):
            if not math.isfinite(getattr(self, field_name)):
                raise CurveError(f"Curve parameter {field_name!r} must be finite")

        match self.curve_type:
            case ResponseCurveType.POLYNOMIAL:
                if self.exponent <= 0:
                    raise CurveError(
                        f"Polynomial exponent must be positive, got {self.exponent}"
                    )
            case ResponseCurveType.LOGISTIC:
                if self.steepness == 0:
                    raise CurveError("Logistic steepness must be non-zero")
            case ResponseCurveType.STEP:
                if not 0.0 <= self.threshold <= 1.0:
                    raise CurveError(
                        f"Step threshold must lie in [0, 1], got {self.threshold}"
                    )
            case ResponseCurveType.BELL:
                if self.width <= 0:
                    raise CurveError(f"Bell width must be positive, got {self.width}")

    # ------------------------------------------------------------------
    # Named constructors
    # ------------------------------------------------------------------
    @classmethod
    def linear(
        cls,
        slope: float = 1.0,
        intercept: float = 0.0,
        domain: FloatRange = config.DEFAULT_CURVE_DOMAIN,
    ) -> ResponseCurve:
        return cls(ResponseCurveType.LINEAR, domain, slope=slope, y_shift=intercept)

    @classmethod
    def polynomial(
        cls,
        exponent: float,
        slope: float = 1.0,
        x_shift: float = 0.0,
        y_shift: float = 0.0,
        domain: FloatRange = config.DEFAULT_CURVE_DOMAIN,
    ) -> ResponseCurve:
        return cls(
            ResponseCurveType.POLYNOMIAL,
            domain,
            slope=slope,
            exponent=exponent,
            x_shift=x_shift,
            y_shift=y_shift,
        )

    @classmethod
    def logistic(
        cls,
        midpoint: float = 0.5,
        steepness: float = 10.0,
        slope: float = 1.0,
        y_shift: float = 0.0,
        domain: FloatRange = config.DEFAULT_CURVE_DOMAIN,
    ) -> ResponseCurve:
        return cls(
            ResponseCurveType.LOGISTIC,
            domain,
            slope=slope,
            x_shift=midpoint,
            y_shift=y_shift,
            steepness=steepness,
        )

    @classmethod
    def step(
        cls, threshold: float = 0.5, domain: FloatRange = config.DEFAULT_CURVE_DOMAIN
    ) -> ResponseCurve:
        return cls(ResponseCurveType.STEP, domain, threshold=threshold)

    @classmethod
    def inverse(cls, domain: FloatRange = config.DEFAULT_CURVE_DOMAIN) -> ResponseCurve:
        return cls(ResponseCurveType.INVERSE, domain)

    @classmethod
    def bell(
        cls,
        peak: float = 0.5,
        width: float = 0.5,
        domain: FloatRange = config.DEFAULT_CURVE_DOMAIN,
    ) -> ResponseCurve:
        return cls(ResponseCurveType.BELL, domain, peak=peak, width=width)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def normalize(self, raw: RawValue) -> float:
        """Clamp ``raw`` to the domain and rescale it to [0, 1]."""
        low, high = self.domain
        if math.isnan(raw):
            return 0.0
        return (_clamp(raw, low, high) - low) / (high - low)

    def evaluate(self, raw: RawValue) -> Score:
        t = self.normalize(raw)
        match self.curve_type:
            case ResponseCurveType.LINEAR:
                value = self.slope * (t - self.x_shift) + self.y_shift
            case ResponseCurveType.POLYNOMIAL:
                base = t - self.x_shift
                # Sign-preserving power keeps fractional exponents real-valued.
                power = math.copysign(abs(base) ** self.exponent, base)
                value = self.slope * power + self.y_shift
            case ResponseCurveType.LOGISTIC:
                z = self.steepness * (t - self.x_shift)
                value = self.y_shift + self.slope * 0.5 * (1.0 + math.tanh(z / 2.0))
            case ResponseCurveType.STEP:
                value = 1.0 if t >= self.threshold else 0.0
            case ResponseCurveType.INVERSE:
                value = 1.0 - t
            case ResponseCurveType.BELL:
                value = 1.0 - abs(t - self.peak) / self.width
        return _clamp(value)

    def evaluate_many(self, raw: np.ndarray) -> np.ndarray:
        """Vectorized ``evaluate`` over an array of raw values.

        Used by tooling that plots or samples a curve; the per-agent hot path
        goes through ``evaluate``.
        """
        low, high = self.domain
        values = np.asarray(raw, dtype=np.float64)
        t = (np.clip(np.nan_to_num(values, nan=low), low, high) - low) / (high - low)
        match self.curve_type:
            case ResponseCurveType.LINEAR:
                out = self.slope * (t - self.x_shift) + self.y_shift
            case ResponseCurveType.POLYNOMIAL:
                base = t - self.x_shift
                out = self.slope * np.sign(base) * np.abs(base) ** self.exponent
                out = out + self.y_shift
            case ResponseCurveType.LOGISTIC:
                z = self.steepness * (t - self.x_shift)
                out = self.y_shift + self.slope * 0.5 * (1.0 + np.tanh(z / 2.0))
            case ResponseCurveType.STEP:
                out = np.where(t >= self.threshold, 1.0, 0.0)
            case ResponseCurveType.INVERSE:
                out = 1.0 - t
            case ResponseCurveType.BELL:
                out = 1.0 - np.abs(t - self.peak) / self.width
        return np.clip(out, 0.0, 1.0)

    @property
    def is_non_decreasing(self) -> bool:
        """Whether a larger raw input can never lower the output."""
        match self.curve_type:
            case ResponseCurveType.LINEAR | ResponseCurveType.POLYNOMIAL:
                return self.slope >= 0
            case ResponseCurveType.LOGISTIC:
                return self.slope * self.steepness >= 0
            case ResponseCurveType.STEP:
                return True
            case ResponseCurveType.INVERSE | ResponseCurveType.BELL:
                return False
        return False
