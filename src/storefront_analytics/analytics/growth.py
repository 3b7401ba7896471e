"""
Calendar period growth rates
"""
from typing import Any, Tuple

import pandas as pd
import structlog

from storefront_analytics.analytics.frames import current_time, orders_to_frame
from storefront_analytics.common.coercion import finite_sum, growth_percentage


logger = structlog.get_logger(__name__)

PERIOD_TYPES = ('monthly', 'yearly')


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def period_masks(created_at: pd.Series, period_type: str,
                 now: pd.Timestamp) -> Tuple[pd.Series, pd.Series]:
    """Boolean masks selecting the current and the preceding calendar period"""
    years = created_at.dt.year
    if period_type == 'yearly':
        return years == now.year, years == now.year - 1

    months = created_at.dt.month
    prev_year, prev_month = previous_month(now.year, now.month)
    current = (years == now.year) & (months == now.month)
    previous = (years == prev_year) & (months == prev_month)
    return current, previous


def period_revenue(df: pd.DataFrame, period_type: str, now: pd.Timestamp) -> Tuple[float, float]:
    """Revenue of the current and the preceding period"""
    current, previous = period_masks(df['created_at'], period_type, now)
    return (
        finite_sum(df.loc[current, 'total_amount']),
        finite_sum(df.loc[previous, 'total_amount'])
    )


def calculate_growth_rate(orders: Any, period_type: str = 'monthly', now: Any = None,
                          tz: str = 'UTC') -> float:
    """
    Percentage change from the previous calendar month or year to the current one

    Args:
        orders: Full, unfiltered order list
        period_type: monthly or yearly
        now: Reference time, defaults to the current time
        tz: Reporting timezone deciding which month an order falls in

    Returns:
        Growth in percent, 0 when the previous period had no revenue
    """
    if period_type not in PERIOD_TYPES:
        logger.warning("Unknown growth period, using monthly", period_type=str(period_type))
        period_type = 'monthly'

    df = orders_to_frame(orders, tz)
    current, previous = period_revenue(df, period_type, current_time(now, tz))
    return growth_percentage(current, previous)
