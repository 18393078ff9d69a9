"""Aggregator kinds and the rules that combine child scores."""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence
from enum import Enum

from .types import Score


class AggregatorKind(Enum):
    WEIGHTED_AVERAGE = "weighted_average"
    PRODUCT = "product"
    MIN = "min"
    MAX = "max"
    # Every child must clear the bar; survivors are averaged.
    ALL_OR_NOTHING = "all_or_nothing"
    # Weighted sum clamped to 1.0.
    SUM = "sum"
    MEDIAN = "median"
    GEOMETRIC_MEAN = "geometric_mean"
    # Zero if any child is zero.
    HARMONIC_MEAN = "harmonic_mean"
    # First child minus second, floored at 0. Exactly two children.
    DIFFERENCE = "difference"


def _passes_bar(score: Score, bar: float | None) -> bool:
    if bar is None:
        return score > 0.0
    return score >= bar


def combine(
    kind: AggregatorKind,
    scores: Sequence[Score],
    weights: Sequence[float],
    bar: float | None = None,
) -> Score:
    """Combine child ``scores`` (with matching edge ``weights``).

    Scores are consumed in the order given, which the evaluator keeps equal
    to child insertion order so float summation is reproducible. Weights are
    only read by WEIGHTED_AVERAGE and SUM. An empty ``scores`` yields 0.0;
    DIFFERENCE raises ``ValueError`` unless given exactly two scores.
    """
    if not scores:
        return 0.0

    match kind:
        case AggregatorKind.WEIGHTED_AVERAGE:
            total = 0.0
            weight_sum = 0.0
            for score, weight in zip(scores, weights, strict=True):
                if weight > 0.0:
                    total += score * weight
                    weight_sum += weight
            if weight_sum == 0.0:
                return 0.0
            return total / weight_sum
        case AggregatorKind.PRODUCT:
            return math.prod(scores)
        case AggregatorKind.MIN:
            return min(scores)
        case AggregatorKind.MAX:
            return max(scores)
        case AggregatorKind.ALL_OR_NOTHING:
            if all(_passes_bar(score, bar) for score in scores):
                return math.fsum(scores) / len(scores)
            return 0.0
        case AggregatorKind.SUM:
            total = 0.0
            for score, weight in zip(scores, weights, strict=True):
                total += score * weight
            return min(1.0, total)
        case AggregatorKind.MEDIAN:
            return statistics.median(scores)
        case AggregatorKind.GEOMETRIC_MEAN:
            return math.prod(scores) ** (1.0 / len(scores))
        case AggregatorKind.HARMONIC_MEAN:
            if any(score <= 0.0 for score in scores):
                return 0.0
            return len(scores) / math.fsum(1.0 / score for score in scores)
        case AggregatorKind.DIFFERENCE:
            first, second = scores
            return max(0.0, first - second)
    raise ValueError(f"Unknown aggregator kind: {kind!r}")
