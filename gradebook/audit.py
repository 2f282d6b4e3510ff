"""Arithmetic check of the reported total against the component scores."""
from __future__ import annotations
from typing import Mapping, Optional

from .layout import SUMMABLE

DEFAULT_EPSILON = 0.01

# float representation noise, e.g. 100.0 - 99.99 == 0.010000000000005116
_FLOAT_SLACK = 1e-9


def compute_total(scores: Mapping[str, float]) -> float:
    """Sum of the summable components; an absent component counts as 0."""
    return float(sum(float(scores.get(name, 0.0)) for name in SUMMABLE))


def totals_match(computed_total: float, reported_total: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    return abs(computed_total - reported_total) - epsilon <= _FLOAT_SLACK


def check_discrepancy(
    computed_total: float,
    reported_total: Optional[float],
    epsilon: float = DEFAULT_EPSILON,
) -> Optional[str]:
    if reported_total is None:
        return None
    if totals_match(computed_total, reported_total, epsilon):
        return None
    return f"Total mismatch: expected {reported_total:.2f}, found {computed_total:.2f}"
