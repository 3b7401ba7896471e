"""
Dashboard analytics configuration
"""
import os

import pandas as pd

from storefront_analytics.common.error_handlers import ConfigurationError


WINDOW_TAGS = ('7d', '30d', '90d', '1y', 'custom')


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


class AnalyticsConfig:
    """Dashboard settings and business limits"""

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'dev')

        # Calendar arithmetic and period keys use this zone
        self.timezone = os.getenv('ANALYTICS_TIMEZONE', 'UTC')
        self.default_window = os.getenv('ANALYTICS_DEFAULT_WINDOW', '30d')

        # Traffic is not tracked, conversion rate uses this estimate
        self.estimated_visits = _env_int('ESTIMATED_VISITS', 1000)
        self.currency_symbol = os.getenv('STORE_CURRENCY_SYMBOL', '₦')

        # Result sizes
        self.limits = {
            'top_products': 5,
            'report_top_products': 10,
            'sales_periods': 10,
            'customer_profiles': 10,
            'daily_trend_days': 7
        }

        # Custom windows longer than this are bucketed by month
        self.daily_granularity_max_days = 90

        # Customer insight assumptions
        self.insights = {
            'churn_window_days': 60,
            'customer_lifespan_months': 12,
            'repeat_rate_up_threshold': 20.0,
            'churn_stable_threshold': 30.0
        }

        self._validate()

    def _validate(self):
        try:
            pd.Timestamp.now(tz=self.timezone)
        except (KeyError, ValueError, TypeError) as e:
            raise ConfigurationError(f"Unknown ANALYTICS_TIMEZONE {self.timezone!r}: {e}") from e

        if self.default_window not in WINDOW_TAGS:
            raise ConfigurationError(
                f"ANALYTICS_DEFAULT_WINDOW must be one of {WINDOW_TAGS}, got {self.default_window!r}"
            )
