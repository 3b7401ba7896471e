"""
CSV exports and share text for dashboard payloads
"""
import io
from datetime import date
from typing import Any, Dict, Optional

import pandas as pd

from storefront_analytics.common.coercion import to_number


REPORT_COLUMNS = ['Period', 'Revenue', 'Orders', 'Growth (%)', 'Top Product', 'Product Sales']

INSIGHT_COLUMNS = ['Insight', 'Value', 'Trend', 'Description']

# File name prefix per export kind
EXPORT_PREFIXES = {
    'analytics': 'store-analytics',
    'report': 'store-report',
    'insights': 'customer-insights'
}


def format_money(value: Any, currency_symbol: str = '₦') -> str:
    return f"{currency_symbol}{to_number(value):,.2f}"


def _to_csv(df: pd.DataFrame) -> str:
    buffer = io.StringIO()
    df.to_csv(buffer, index=False, lineterminator='\n')
    return buffer.getvalue()


def analytics_csv(analytics: Dict[str, Any], currency_symbol: str = '₦') -> str:
    """Metric/value summary followed by the top products table"""
    metrics = pd.DataFrame(
        [
            ['Total Revenue', format_money(analytics.get('total_revenue'), currency_symbol)],
            ['Total Orders', str(int(to_number(analytics.get('total_orders'))))],
            ['Average Order Value', format_money(analytics.get('average_order_value'), currency_symbol)],
            ['Customer Count', str(int(to_number(analytics.get('customer_count'))))],
            ['Customer Retention', f"{to_number(analytics.get('customer_retention')):.1f}%"],
            ['Conversion Rate', f"{to_number(analytics.get('conversion_rate')):.1f}%"],
        ],
        columns=['Metric', 'Value']
    )

    products = pd.DataFrame(
        [
            [product['name'], product['sales'], format_money(product['revenue'], currency_symbol)]
            for product in analytics.get('top_products') or []
        ],
        columns=['Product', 'Sales', 'Revenue']
    )

    return _to_csv(metrics) + '\n' + _to_csv(products)


def report_csv(report: Dict[str, Any]) -> str:
    """
    Report table pairing each sales period with the product of the same rank

    Rows run to the longer of the two lists; the shorter side is left blank.
    """
    periods = report.get('sales_by_period') or []
    products = report.get('top_products') or []

    rows = []
    for index in range(max(len(periods), len(products))):
        period = periods[index] if index < len(periods) else None
        product = products[index] if index < len(products) else None
        rows.append([
            period['period'] if period else '',
            period['revenue'] if period else '',
            period['orders'] if period else '',
            f"{to_number(period['growth']):.2f}%" if period else '',
            product['name'] if product else '',
            product['sales'] if product else ''
        ])

    return _to_csv(pd.DataFrame(rows, columns=REPORT_COLUMNS))


def insights_csv(insights: Dict[str, Any], currency_symbol: str = '₦') -> str:
    """Insight/value/trend/description rows for the customer insight metrics"""
    trends = insights.get('trends') or {}
    rows = [
        [
            'Repeat Purchase Rate',
            f"{to_number(insights.get('repeat_purchase_rate')):.1f}%",
            trends.get('repeat_purchase_rate', 'stable'),
            'Percentage of customers who made multiple purchases'
        ],
        [
            'Average Order Value',
            format_money(insights.get('average_order_value'), currency_symbol),
            trends.get('average_order_value', 'stable'),
            'Average amount spent per order'
        ],
        [
            'Customer Lifetime Value',
            format_money(insights.get('lifetime_value'), currency_symbol),
            trends.get('lifetime_value', 'stable'),
            'Estimated value of a customer over the configured lifespan'
        ],
        [
            'Customer Churn Rate',
            f"{to_number(insights.get('churn_rate')):.1f}%",
            trends.get('churn_rate', 'stable'),
            'Percentage of customers who stopped buying'
        ],
        [
            'Purchase Frequency',
            f"{to_number(insights.get('purchase_frequency')):.1f}",
            trends.get('purchase_frequency', 'stable'),
            'Average orders per customer'
        ]
    ]
    return _to_csv(pd.DataFrame(rows, columns=INSIGHT_COLUMNS))


def report_filename(window: str, today: Optional[date] = None, prefix: str = 'store-report') -> str:
    today = today or date.today()
    return f"{prefix}-{window}-{today.isoformat()}.csv"


def export_filename(kind: str, window: str, today: Optional[date] = None) -> str:
    """File name for an analytics, report or insights export"""
    return report_filename(window, today, prefix=EXPORT_PREFIXES[kind])


def report_summary(report: Dict[str, Any], currency_symbol: str = '₦',
                   today: Optional[date] = None) -> str:
    """Plain-text summary for sharing a report"""
    today = today or date.today()
    window = str(report.get('window', '')).upper()
    return (
        f"Store Report ({window})\n\n"
        f"Revenue: {format_money(report.get('total_revenue'), currency_symbol)}\n"
        f"Orders: {int(to_number(report.get('total_orders')))}\n"
        f"Customers: {int(to_number(report.get('customer_count')))}\n"
        f"Growth: {to_number(report.get('monthly_growth')):.1f}%\n\n"
        f"Generated on {today.isoformat()}"
    )
