"""
KPI calculation functions
"""
import pandas as pd
from typing import Any, Dict, List, Optional

from storefront_analytics.analytics.frames import (
    as_number, as_records, items_to_frame, orders_to_frame, period_keys
)
from storefront_analytics.common.coercion import finite_sum, safe_percentage, safe_ratio, to_number
from storefront_analytics.config.analytics_config import AnalyticsConfig


class KPICalculator:
    """Calculate dashboard KPIs from merchant order records"""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or AnalyticsConfig()

    def calculate_metrics(self, orders: Any, granularity: str = 'daily',
                          estimated_visits: Any = None,
                          top_products_limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Calculate the dashboard metrics for an already filtered order list

        Args:
            orders: Order records inside the selected window
            granularity: Period bucket for the sales series, daily or monthly
            estimated_visits: Visit estimate for the conversion rate
            top_products_limit: Number of products to rank

        Returns:
            Dict with revenue, order, customer and product KPIs
        """
        records = as_records(orders)
        df = orders_to_frame(records, self.config.timezone)
        items_df = items_to_frame(records)

        if estimated_visits is None:
            estimated_visits = self.config.estimated_visits
        if top_products_limit is None:
            top_products_limit = self.config.limits['top_products']

        total_revenue = finite_sum(df['total_amount'])
        total_orders = int(len(df))

        return {
            'total_revenue': total_revenue,
            'total_orders': total_orders,
            'average_order_value': safe_ratio(total_revenue, total_orders),
            'customer_count': self.count_customers(df),
            'top_products': self.rank_products(items_df, top_products_limit),
            'sales_by_period': self.sales_by_period(df, granularity),
            'customer_retention': self.customer_retention(df),
            'conversion_rate': self.conversion_rate(total_orders, estimated_visits)
        }

    def count_customers(self, df: pd.DataFrame) -> int:
        """Distinct customer emails; orders without one are not customers here"""
        return int(df['email'].dropna().nunique())

    def rank_products(self, items_df: pd.DataFrame, limit: int) -> List[Dict[str, Any]]:
        """
        Rank products by revenue

        Args:
            items_df: Line item rows from items_to_frame
            limit: Number of products to keep

        Returns:
            List of name/sales/revenue dicts, highest revenue first
        """
        if items_df.empty or limit <= 0:
            return []

        # sort=False keeps first-encountered order so the stable sort breaks ties by it
        products = items_df.groupby('name', sort=False).agg(
            sales=('quantity', 'sum'),
            revenue=('revenue', 'sum')
        ).reset_index()
        products['revenue'] = products['revenue'].map(to_number)
        ranked = products.sort_values('revenue', ascending=False, kind='stable').head(limit)

        return [
            {
                'name': str(row['name']),
                'sales': as_number(to_number(row['sales'])),
                'revenue': to_number(row['revenue'])
            }
            for row in ranked.to_dict('records')
        ]

    def sales_by_period(self, df: pd.DataFrame, granularity: str = 'daily',
                        limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Revenue and order counts per period with period-over-period growth

        Args:
            df: Order rows from orders_to_frame
            granularity: daily (YYYY-MM-DD) or monthly (YYYY-MM)
            limit: Most recent periods to return

        Returns:
            List of period dicts in ascending period order
        """
        if limit is None:
            limit = self.config.limits['sales_periods']

        dated = df.dropna(subset=['created_at'])
        if dated.empty or limit <= 0:
            return []

        periods = dated.assign(
            period=period_keys(dated['created_at'], granularity)
        ).groupby('period', sort=True).agg(
            revenue=('total_amount', 'sum'),
            orders=('position', 'count')
        ).reset_index()
        periods['revenue'] = periods['revenue'].map(to_number)

        # Growth is computed over the full series before trimming
        previous = periods['revenue'].shift(1)
        growth = (periods['revenue'] - previous) / previous * 100
        periods['growth'] = growth.where(previous > 0, 0.0).map(to_number)

        return [
            {
                'period': str(row['period']),
                'revenue': float(row['revenue']),
                'orders': int(row['orders']),
                'growth': float(row['growth'])
            }
            for row in periods.tail(limit).to_dict('records')
        ]

    def customer_retention(self, df: pd.DataFrame) -> float:
        """Percentage of customers (email, else order id) with more than one order"""
        order_counts = df['customer_key'].value_counts()
        repeat_customers = int((order_counts > 1).sum())
        return safe_percentage(repeat_customers, len(order_counts))

    def conversion_rate(self, total_orders: int, estimated_visits: Any) -> float:
        return safe_percentage(total_orders, estimated_visits)
