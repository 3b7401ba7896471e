"""
Revenue goal tracking
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import pandas as pd

from storefront_analytics.analytics.frames import (
    as_records, current_time, orders_to_frame, period_keys
)
from storefront_analytics.analytics.growth import calculate_growth_rate, period_revenue
from storefront_analytics.common.coercion import finite_sum, safe_percentage, to_number
from storefront_analytics.config.analytics_config import AnalyticsConfig


def normalize_goals(goals: Any) -> Dict[str, Any]:
    """Targets as numbers (0 when unset) and the goal description as text"""
    goals = goals if isinstance(goals, Mapping) else {}
    description = goals.get('description')
    return {
        'monthly_target': to_number(goals.get('monthly_target')),
        'yearly_target': to_number(goals.get('yearly_target')),
        'description': description if isinstance(description, str) else ''
    }


class GoalTracker:
    """Compare a merchant's revenue against monthly and yearly targets"""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()

    def progress(self, orders: Any, goals: Any = None, now: Any = None) -> Dict[str, Any]:
        """
        Goal progress over the full order list

        Args:
            orders: Every order of the merchant
            goals: Goals record with monthly_target, yearly_target, description
            now: Reference time

        Returns:
            Dict with revenue totals, growth, targets and progress percentages
        """
        tz = self.config.timezone
        now = current_time(now, tz)
        targets = normalize_goals(goals)
        records = as_records(orders)
        df = orders_to_frame(records, tz)

        current_month_revenue, _ = period_revenue(df, 'monthly', now)
        current_year_revenue, _ = period_revenue(df, 'yearly', now)

        return {
            'total_revenue': finite_sum(df['total_amount']),
            'order_count': int(len(df)),
            'current_month_revenue': current_month_revenue,
            'current_year_revenue': current_year_revenue,
            'monthly_growth': calculate_growth_rate(records, 'monthly', now, tz),
            **targets,
            'monthly_progress': safe_percentage(current_month_revenue, targets['monthly_target']),
            'yearly_progress': safe_percentage(current_year_revenue, targets['yearly_target']),
            'daily_trend': self.daily_trend(records, now=now)
        }

    def daily_trend(self, orders: Any, days: Optional[int] = None,
                    now: Any = None) -> List[Dict[str, Any]]:
        """Revenue per calendar day for the last ``days`` days ending today, oldest first"""
        if days is None:
            days = self.config.limits['daily_trend_days']
        tz = self.config.timezone
        today = current_time(now, tz).normalize()

        dates = [
            (today - pd.DateOffset(days=offset)).strftime('%Y-%m-%d')
            for offset in range(days - 1, -1, -1)
        ]

        df = orders_to_frame(orders, tz).dropna(subset=['created_at'])
        daily = df.groupby(period_keys(df['created_at'], 'daily'))['total_amount'].sum()
        daily = daily.reindex(dates, fill_value=0.0)

        return [{'date': day, 'amount': to_number(amount)} for day, amount in daily.items()]
