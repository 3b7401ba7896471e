"""
Date window filtering for dashboard views
"""
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import structlog

from storefront_analytics.analytics.frames import (
    as_records, current_time, localize, parse_timestamp
)


logger = structlog.get_logger(__name__)

WINDOW_DAYS = {'7d': 7, '30d': 30, '90d': 90}
FALLBACK_WINDOW = '30d'
DAILY_GRANULARITY_MAX_DAYS = 90


def normalize_window(window: Any) -> str:
    """Known window tag, unknown tags fall back to 30 days"""
    if isinstance(window, str) and (window in WINDOW_DAYS or window in ('1y', 'custom')):
        return window
    logger.warning("Unknown window, using fallback", window=str(window), fallback=FALLBACK_WINDOW)
    return FALLBACK_WINDOW


def custom_bounds(custom_start: Any, custom_end: Any,
                  tz: str = 'UTC') -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
    """Start of the first day through the end of the last day, or None if a bound is missing"""
    start = localize(custom_start, tz)
    end = localize(custom_end, tz)
    if start is None or end is None:
        return None
    end_of_day = end.normalize() + pd.DateOffset(days=1) - pd.Timedelta(microseconds=1)
    return start, end_of_day


def resolve_window(window: Any, now: Any = None, custom_start: Any = None,
                   custom_end: Any = None,
                   tz: str = 'UTC') -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
    """
    Resolve a window tag to inclusive ``(start, end)`` bounds

    Args:
        window: One of 7d, 30d, 90d, 1y, custom
        now: Reference time, defaults to the current time
        custom_start: First day of a custom window
        custom_end: Last day of a custom window, inclusive
        tz: Reporting timezone for calendar arithmetic

    Returns:
        Bounds, or None when the window leaves orders unfiltered
    """
    window = normalize_window(window)
    if window == 'custom':
        return custom_bounds(custom_start, custom_end, tz)

    now = current_time(now, tz)
    if window == '1y':
        return now - pd.DateOffset(years=1), now
    return now - pd.DateOffset(days=WINDOW_DAYS[window]), now


def filter_orders(orders: Any, window: Any = FALLBACK_WINDOW, now: Any = None,
                  custom_start: Any = None, custom_end: Any = None,
                  tz: str = 'UTC') -> List[Dict[str, Any]]:
    """
    Orders created inside the window, in their original order

    Orders without a parseable ``created_at`` never match a bounded window.
    A custom window with a missing bound returns every order.
    """
    records = as_records(orders)
    bounds = resolve_window(window, now, custom_start, custom_end, tz)
    if bounds is None:
        return records

    start, end = bounds
    filtered = []
    for order in records:
        created_at = parse_timestamp(order.get('created_at'), tz)
        if pd.isna(created_at):
            continue
        if start <= created_at <= end:
            filtered.append(order)
    return filtered


def period_granularity(window: Any, custom_start: Any = None, custom_end: Any = None,
                       tz: str = 'UTC',
                       daily_max_days: int = DAILY_GRANULARITY_MAX_DAYS) -> str:
    """Trend series bucket size for a window: ``daily`` or ``monthly``"""
    window = normalize_window(window)
    if window == '1y':
        return 'monthly'
    if window == 'custom':
        bounds = custom_bounds(custom_start, custom_end, tz)
        if bounds is None:
            return 'monthly'
        start, end = bounds
        return 'daily' if end - start <= pd.Timedelta(days=daily_max_days) else 'monthly'
    return 'daily'
