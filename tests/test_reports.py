import pytest

from storefront_analytics.analytics.reports import ReportBuilder
from conftest import make_order


@pytest.fixture()
def builder(config):
    return ReportBuilder(config)


def test_analytics_view(builder, sample_orders, now):
    analytics = builder.build_analytics(sample_orders, window='30d', estimated_visits=100, now=now)

    assert analytics['window'] == '30d'
    assert analytics['granularity'] == 'daily'
    assert analytics['total_orders'] == 3
    assert analytics['conversion_rate'] == pytest.approx(3.0)
    assert [p['period'] for p in analytics['sales_by_period']] == ['2024-05-20', '2024-06-10', '2024-06-14']
    assert 'monthly_growth' not in analytics


def test_analytics_defaults_to_configured_window(builder, sample_orders, now):
    builder.config.default_window = '7d'
    analytics = builder.build_analytics(sample_orders, now=now)
    assert analytics['window'] == '7d'
    assert analytics['total_orders'] == 2


def test_unknown_window_reported_as_fallback(builder, sample_orders, now):
    analytics = builder.build_analytics(sample_orders, window='quarter', now=now)
    assert analytics['window'] == '30d'
    assert analytics['total_orders'] == 3


def test_report_one_year_is_monthly(builder, sample_orders, now):
    report = builder.build_report(sample_orders, window='1y', now=now)

    assert report['granularity'] == 'monthly'
    assert [p['period'] for p in report['sales_by_period']] == ['2023-12', '2024-04', '2024-05', '2024-06']
    assert report['total_orders'] == 5


def test_report_growth_uses_all_orders(builder, sample_orders, now):
    report = builder.build_report(sample_orders, window='7d', now=now)

    assert report['total_orders'] == 2
    assert report['monthly_growth'] == pytest.approx((300 - 50.5) / 50.5 * 100)
    assert report['yearly_growth'] == pytest.approx((650.5 - 1079) / 1079 * 100)


def test_report_ranks_ten_products(builder, now):
    items = [{'name': f'P{i}', 'price': i} for i in range(1, 13)]
    orders = [make_order('a', '2024-06-14T10:00:00Z', 78, items=items)]

    assert len(builder.build_analytics(orders, window='30d', now=now)['top_products']) == 5
    assert len(builder.build_report(orders, window='30d', now=now)['top_products']) == 10


def test_custom_report(builder, sample_orders, now):
    report = builder.build_report(sample_orders, window='custom', now=now,
                                  custom_start='2023-01-01', custom_end='2024-06-15')

    assert report['window'] == 'custom'
    assert report['granularity'] == 'monthly'
    assert report['total_orders'] == 6


def test_empty_report(builder, now):
    report = builder.build_report([], window='90d', now=now)

    assert report['total_revenue'] == 0
    assert report['top_products'] == []
    assert report['sales_by_period'] == []
    assert report['monthly_growth'] == 0
    assert report['yearly_growth'] == 0


def test_report_accepts_generator(builder, sample_orders, now):
    report = builder.build_report((order for order in sample_orders), window='7d', now=now)

    assert report['total_orders'] == 2
    assert report['monthly_growth'] == pytest.approx((300 - 50.5) / 50.5 * 100)
