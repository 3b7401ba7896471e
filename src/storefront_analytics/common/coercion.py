"""
Numeric coercion shared by every dashboard metric.

Dashboards always render a number, so nothing here raises: absent or
non-numeric input becomes 0 and every ratio with an empty denominator is 0.
"""
import math
from decimal import Decimal
from numbers import Number
from typing import Any


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a scalar to a finite float, falling back to ``default``"""
    if value is None or isinstance(value, bool):
        return default
    if not isinstance(value, (str, Number, Decimal)):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def to_quantity(value: Any) -> float:
    """Line item quantity; absent, zero or negative counts as a single unit"""
    quantity = to_number(value)
    return quantity if quantity > 0 else 1.0


def safe_ratio(numerator: Any, denominator: Any) -> float:
    denominator = to_number(denominator)
    if denominator <= 0:
        return 0.0
    return to_number(to_number(numerator) / denominator)


def safe_percentage(numerator: Any, denominator: Any) -> float:
    return to_number(safe_ratio(numerator, denominator) * 100)


def growth_percentage(current: Any, previous: Any) -> float:
    """Period-over-period change in percent, 0 when there is no previous revenue"""
    previous = to_number(previous)
    if previous <= 0:
        return 0.0
    return to_number((to_number(current) - previous) / previous * 100)


def finite_sum(values: Any) -> float:
    """Sum of a Series or iterable of numbers, 0 when the total overflows"""
    total = values.sum() if hasattr(values, 'sum') else sum(values)
    return to_number(total)
