"""
Customer insight calculations
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import pandas as pd

from storefront_analytics.analytics.frames import as_records, current_time, orders_to_frame
from storefront_analytics.analytics.kpi_calculator import KPICalculator
from storefront_analytics.common.coercion import finite_sum, safe_percentage, safe_ratio, to_number
from storefront_analytics.config.analytics_config import AnalyticsConfig


DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


def format_hour(hour: int) -> str:
    suffix = 'PM' if hour >= 12 else 'AM'
    return f"{hour % 12 or 12} {suffix}"


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class CustomerInsightsCalculator:
    """Customer behavior, value and profile metrics over windowed orders"""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()
        self.kpis = KPICalculator(self.config)

    def calculate_insights(self, orders: Any, now: Any = None) -> Dict[str, Any]:
        """
        Headline customer metrics

        Args:
            orders: Window-filtered order records
            now: Reference time for the churn window

        Returns:
            Dict of insight values plus a trend tag per headline metric
        """
        tz = self.config.timezone
        settings = self.config.insights
        df = orders_to_frame(orders, tz)

        total_revenue = finite_sum(df['total_amount'])
        total_orders = int(len(df))
        customers = df['email'].dropna()
        unique_customers = int(customers.nunique())

        average_customer_value = safe_ratio(total_revenue, unique_customers)

        repeat_purchase_rate = self.kpis.customer_retention(df)

        # Customers with no order inside the churn window
        cutoff = current_time(now, tz) - pd.DateOffset(days=settings['churn_window_days'])
        active = df.loc[df['created_at'] >= cutoff, 'email'].dropna().nunique()
        churn_rate = safe_percentage(unique_customers - active, unique_customers)

        return {
            'total_revenue': total_revenue,
            'total_orders': total_orders,
            'unique_customers': unique_customers,
            'average_order_value': safe_ratio(total_revenue, total_orders),
            'average_customer_value': average_customer_value,
            'repeat_purchase_rate': repeat_purchase_rate,
            'purchase_frequency': safe_ratio(total_orders, unique_customers),
            'lifetime_value': to_number(
                average_customer_value * settings['customer_lifespan_months'] / 12
            ),
            'lifetime_value_is_estimate': True,
            'churn_rate': churn_rate,
            'trends': {
                'repeat_purchase_rate': (
                    'up' if repeat_purchase_rate > settings['repeat_rate_up_threshold'] else 'stable'
                ),
                'churn_rate': (
                    'stable' if churn_rate < settings['churn_stable_threshold'] else 'down'
                )
            }
        }

    def customer_profiles(self, orders: Any, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Per-customer spend profiles, biggest spenders first

        Orders without an email are profiled one per order.
        """
        if limit is None:
            limit = self.config.limits['customer_profiles']

        records = as_records(orders)
        df = orders_to_frame(records, self.config.timezone)
        if df.empty or limit <= 0:
            return []

        fallback_keys = 'customer_' + df['order_id'].where(
            df['order_id'].notna(), df['position']
        ).astype(str)
        df['profile_key'] = df['email'].where(df['email'].notna(), fallback_keys)

        profiles = []
        for profile_key, group in df.groupby('profile_key', sort=False):
            total_spent = finite_sum(group['total_amount'])
            order_count = int(len(group))
            latest = group.sort_values('created_at', ascending=False, na_position='last',
                                       kind='stable').iloc[0]

            info = records[int(latest['position'])].get('customer_info')
            info = info if isinstance(info, Mapping) else {}
            address = info.get('address')
            address = address if isinstance(address, Mapping) else {}
            email = profile_key if '@' in profile_key else None

            profiles.append({
                'id': profile_key,
                'name': _first_text(
                    info.get('name'), info.get('full_name'), info.get('fullName'),
                    profile_key.split('@')[0] if email else None
                ) or 'Guest Customer',
                'email': email,
                'total_spent': total_spent,
                'order_count': order_count,
                'average_order_value': safe_ratio(total_spent, order_count),
                'last_order_date': (
                    None if pd.isna(latest['created_at']) else latest['created_at'].isoformat()
                ),
                'location': _first_text(
                    address.get('city'), info.get('city'), info.get('location')
                ) or 'Unknown Location'
            })

        profiles.sort(key=lambda profile: profile['total_spent'], reverse=True)
        return profiles[:limit]

    def behavior(self, orders: Any) -> Dict[str, Any]:
        """Peak ordering hours, busiest weekday and retention"""
        df = orders_to_frame(orders, self.config.timezone)
        retention_rate = self.kpis.customer_retention(df)

        created_at = df['created_at'].dropna()
        if created_at.empty:
            return {'peak_hours': '-', 'busiest_day': '-', 'retention_rate': retention_rate}

        # idxmax returns the first maximum, so the earliest hour or day wins ties
        hours = created_at.dt.hour.value_counts().reindex(range(24), fill_value=0)
        peak_hour = int(hours.idxmax())

        # Sunday first, matching DAY_NAMES
        weekdays = ((created_at.dt.dayofweek + 1) % 7).value_counts().reindex(range(7), fill_value=0)
        busiest_day = DAY_NAMES[int(weekdays.idxmax())]

        return {
            'peak_hours': f"{format_hour(peak_hour)} - {format_hour((peak_hour + 2) % 24)}",
            'busiest_day': busiest_day,
            'retention_rate': retention_rate
        }
