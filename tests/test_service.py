import json

import pytest

from storefront_analytics.common.error_handlers import OrderSourceError
from storefront_analytics.common.s3_utils import S3Utils
from storefront_analytics.service import app
from storefront_analytics.service.app import DashboardService, dispatch, parse_event
from conftest import FakeS3Client


class FakeOrderSource:
    def __init__(self, orders=None, error=None):
        self.orders = orders or []
        self.error = error
        self.requests = []

    def fetch_orders(self, owner_id):
        self.requests.append(owner_id)
        if self.error:
            raise self.error
        return self.orders


@pytest.fixture()
def s3_client():
    return FakeS3Client()


@pytest.fixture()
def service(sample_orders, s3_client):
    return DashboardService(order_source=FakeOrderSource(sample_orders),
                            s3_utils=S3Utils(s3_client=s3_client))


def test_analytics_view(service, now):
    result = service.analytics('merchant-1', '7d', now=now)

    assert result['success'] is True
    assert result['view'] == 'analytics'
    assert result['owner_id'] == 'merchant-1'
    assert result['window'] == '7d'
    assert result['total_orders'] == 2
    assert result['total_revenue'] == 300
    assert 'processing_time' in result
    assert service.order_source.requests == ['merchant-1']


def test_report_view_includes_summary(service, now):
    result = service.report('merchant-1', '30d', now=now)

    assert result['success'] is True
    assert len(result['top_products']) == 3
    assert result['summary'].startswith('Store Report (30D)\n\nRevenue: ₦350.50\n')
    assert result['summary'].endswith('Generated on 2024-06-15')


def test_insights_view(service, now):
    result = service.insights('merchant-1', '30d', now=now)

    assert result['window'] == '30d'
    assert result['insights']['unique_customers'] == 2
    assert [p['id'] for p in result['customer_profiles']] == ['ada@example.com', 'bola@example.com']
    assert result['behavior']['busiest_day'] == 'Mon'


def test_goals_view(service, now):
    result = service.goals('merchant-1', {'monthly_target': 600}, now=now)

    assert result['success'] is True
    assert result['monthly_progress'] == pytest.approx(50.0)
    assert len(result['daily_trend']) == 7


def test_source_failure_is_reported(sample_orders):
    service = DashboardService(order_source=FakeOrderSource(error=OrderSourceError('bucket gone')))
    result = service.analytics('merchant-1', '30d')

    assert result['success'] is False
    assert result['error']['type'] == 'OrderSourceError'
    assert result['error']['message'] == 'bucket gone'


@pytest.mark.parametrize('kind, filename, header', [
    ('report', 'store-report-30d-2024-06-15.csv', 'Period,Revenue,Orders,Growth (%),Top Product'),
    ('analytics', 'store-analytics-30d-2024-06-15.csv', 'Metric,Value\nTotal Revenue,₦350.50'),
    ('insights', 'customer-insights-30d-2024-06-15.csv', 'Insight,Value,Trend,Description'),
])
def test_export_uploads_csv(service, s3_client, now, kind, filename, header):
    result = service.export_report('merchant-1', kind=kind, now=now)

    assert result['success'] is True
    assert result['kind'] == kind
    assert result['bucket'] == 'storefront-reports-dev'
    assert result['key'] == f'reports/merchant-1/{filename}'

    [call] = s3_client.put_calls
    assert call['Bucket'] == 'storefront-reports-dev'
    assert call['Key'] == result['key']
    assert call['ContentType'] == 'text/csv'
    assert call['Body'].decode('utf-8').startswith(header)


def test_export_file_name_uses_reporting_date(sample_orders, s3_client, monkeypatch):
    monkeypatch.setenv('ANALYTICS_TIMEZONE', 'Africa/Lagos')
    service = DashboardService(order_source=FakeOrderSource(sample_orders),
                               s3_utils=S3Utils(s3_client=s3_client))
    result = service.export_report('merchant-1', '7d', now='2024-06-15T23:30:00+00:00')

    assert result['key'] == 'reports/merchant-1/store-report-7d-2024-06-16.csv'


def test_export_unknown_kind(service):
    with pytest.raises(ValueError, match='Unknown export kind'):
        service.export_report('merchant-1', kind='profiles')


def test_export_failure(sample_orders):
    service = DashboardService(order_source=FakeOrderSource(sample_orders),
                               s3_utils=S3Utils(s3_client=FakeS3Client(fail_put=True)))
    result = service.export_report('merchant-1', '7d')

    assert result['success'] is False
    assert result['error']['type'] == 'ReportExportError'


def test_dispatch(service):
    result = dispatch(service, {'owner_id': 'merchant-1', 'view': 'goals', 'goals': {}})
    assert result['view'] == 'goals'

    with pytest.raises(ValueError, match='Unknown view'):
        dispatch(service, {'owner_id': 'merchant-1', 'view': 'forecast'})
    with pytest.raises(ValueError, match='owner_id'):
        dispatch(service, {'view': 'analytics'})


def test_parse_event(monkeypatch):
    assert parse_event(['prog', 'merchant-1', 'report', '90d']) == {
        'owner_id': 'merchant-1', 'view': 'report', 'window': '90d'
    }
    assert parse_event(['prog', 'merchant-1', 'insights']) == {'owner_id': 'merchant-1', 'view': 'insights'}

    with pytest.raises(ValueError):
        parse_event(['prog'])

    monkeypatch.setenv('DASHBOARD_INPUT', '{"owner_id": "merchant-2", "view": "goals"}')
    assert parse_event(['prog']) == {'owner_id': 'merchant-2', 'view': 'goals'}


def test_main_with_orders_file(tmp_path, monkeypatch, capsys, sample_orders):
    path = tmp_path / 'orders.json'
    path.write_text(json.dumps(sample_orders), encoding='utf-8')
    monkeypatch.setenv('ORDERS_FILE', str(path))
    monkeypatch.setattr(app.sys, 'argv', ['storefront-analytics', 'merchant-1', 'analytics', '1y'])

    with pytest.raises(SystemExit) as excinfo:
        app.main()

    assert excinfo.value.code == 0
    result = json.loads(capsys.readouterr().out)
    assert result['success'] is True
    assert result['window'] == '1y'


def test_main_without_input(monkeypatch, capsys):
    monkeypatch.setattr(app.sys, 'argv', ['storefront-analytics'])

    with pytest.raises(SystemExit) as excinfo:
        app.main()

    assert excinfo.value.code == 1
    error = json.loads(capsys.readouterr().out)['error']
    assert error['type'] == 'ValueError'
    assert error['message'] == 'No input provided'


def test_custom_window_bounds_reach_analytics(service):
    result = dispatch(service, {
        'owner_id': 'merchant-1', 'view': 'analytics', 'window': 'custom',
        'custom_start': '2024-05-01', 'custom_end': '2024-05-31'
    })

    assert result['window'] == 'custom'
    assert result['total_orders'] == 1
    assert result['total_revenue'] == pytest.approx(50.5)


def test_custom_window_bounds_reach_insights(service):
    result = dispatch(service, {
        'owner_id': 'merchant-1', 'view': 'insights', 'window': 'custom',
        'custom_start': '2024-06-01', 'custom_end': '2024-06-30'
    })

    assert result['insights']['total_orders'] == 2
    assert [p['id'] for p in result['customer_profiles']] == ['ada@example.com']


def test_dispatch_export_kind(service, s3_client):
    result = dispatch(service, {'owner_id': 'merchant-1', 'view': 'export', 'kind': 'insights'})

    assert result['success'] is True
    assert result['key'].startswith('reports/merchant-1/customer-insights-30d-')
