"""
Analytics and report payloads for the merchant dashboard
"""
from typing import Any, Dict, Optional

from storefront_analytics.analytics.frames import as_records
from storefront_analytics.analytics.growth import calculate_growth_rate
from storefront_analytics.analytics.kpi_calculator import KPICalculator
from storefront_analytics.analytics.windows import filter_orders, normalize_window, period_granularity
from storefront_analytics.config.analytics_config import AnalyticsConfig


class ReportBuilder:
    """Build analytics and report payloads from a merchant's full order list"""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()
        self.calculator = KPICalculator(self.config)

    def build_analytics(self, orders: Any, window: Any = None, estimated_visits: Any = None,
                        now: Any = None, custom_start: Any = None,
                        custom_end: Any = None) -> Dict[str, Any]:
        """
        Analytics view: windowed KPIs with the top 5 products

        Args:
            orders: Full order list for the merchant
            window: Window tag, defaults to the configured window
            estimated_visits: Visit estimate for the conversion rate
            now: Reference time

        Returns:
            Dict with window metadata and KPIs
        """
        return self._windowed_metrics(
            orders, window, estimated_visits, now, custom_start, custom_end,
            self.config.limits['top_products']
        )

    def build_report(self, orders: Any, window: Any = None, estimated_visits: Any = None,
                     now: Any = None, custom_start: Any = None,
                     custom_end: Any = None) -> Dict[str, Any]:
        """
        Full report: windowed KPIs with the top 10 products plus growth rates

        Growth rates always compare calendar periods over the unfiltered orders.
        """
        orders = as_records(orders)
        report = self._windowed_metrics(
            orders, window, estimated_visits, now, custom_start, custom_end,
            self.config.limits['report_top_products']
        )
        tz = self.config.timezone
        report['monthly_growth'] = calculate_growth_rate(orders, 'monthly', now, tz)
        report['yearly_growth'] = calculate_growth_rate(orders, 'yearly', now, tz)
        return report

    def _windowed_metrics(self, orders, window, estimated_visits, now, custom_start,
                          custom_end, top_products_limit) -> Dict[str, Any]:
        tz = self.config.timezone
        window = normalize_window(window if window is not None else self.config.default_window)

        filtered = filter_orders(orders, window, now, custom_start, custom_end, tz)
        granularity = period_granularity(
            window, custom_start, custom_end, tz, self.config.daily_granularity_max_days
        )

        metrics = self.calculator.calculate_metrics(
            filtered,
            granularity=granularity,
            estimated_visits=estimated_visits,
            top_products_limit=top_products_limit
        )
        return {'window': window, 'granularity': granularity, **metrics}
