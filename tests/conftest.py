import io
import json

import pandas as pd
import pytest
from botocore.exceptions import ClientError

from storefront_analytics.config.analytics_config import AnalyticsConfig


NOW = pd.Timestamp('2024-06-15T12:00:00', tz='UTC')

ENV_VARS = (
    'ENVIRONMENT', 'LOG_LEVEL', 'ANALYTICS_TIMEZONE', 'ANALYTICS_DEFAULT_WINDOW',
    'ESTIMATED_VISITS', 'STORE_CURRENCY_SYMBOL', 'AWS_REGION', 'ORDERS_BUCKET',
    'REPORTS_BUCKET', 'ORDERS_PREFIX', 'REPORTS_PREFIX', 'DASHBOARD_INPUT', 'ORDERS_FILE',
    'SERVICE_VERSION',
)


def make_order(order_id, created_at, total_amount, email=None, items=None, **extra):
    order = {
        'id': order_id,
        'owner_id': 'merchant-1',
        'created_at': created_at,
        'total_amount': total_amount,
        'status': 'completed',
    }
    if email is not None:
        order['customer_info'] = {'email': email}
    if items is not None:
        order['items'] = items
    order.update(extra)
    return order


class FakeS3Client:
    def __init__(self, objects=None, fail_put=False):
        self.objects = dict(objects or {})
        self.fail_put = fail_put
        self.put_calls = []

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({'Error': {'Code': 'NoSuchKey', 'Message': 'Not Found'}}, 'GetObject')
        return {'Body': io.BytesIO(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_put:
            raise ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'Denied'}}, 'PutObject')
        self.put_calls.append({'Bucket': Bucket, 'Key': Key, 'Body': Body, 'ContentType': ContentType})
        self.objects[(Bucket, Key)] = Body


def json_bytes(payload):
    return json.dumps(payload).encode('utf-8')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def config():
    return AnalyticsConfig()


@pytest.fixture()
def sample_orders():
    return [
        make_order('o1', '2024-06-14T10:00:00Z', 100, 'ada@example.com', items=[
            {'name': 'Dress', 'price': 40, 'quantity': 2},
            {'name': 'Scarf', 'price': 20},
        ]),
        make_order('o2', '2024-06-10T15:30:00Z', '200', 'ada@example.com', items=[
            {'name': 'Shoes', 'price': 200, 'quantity': 1},
        ]),
        make_order('o3', '2024-05-20T09:00:00Z', 50.5, 'bola@example.com', items=[
            {'name': 'Scarf', 'price': 25.25, 'quantity': 2},
        ]),
        make_order('o4', '2024-04-01T08:00:00Z', 300),
        make_order('o5', '2023-12-01T08:00:00Z', 80, 'chi@example.com'),
        make_order('o6', '2023-01-01T00:00:00Z', 999, 'old@example.com'),
    ]
