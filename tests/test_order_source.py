import json

import pytest

from storefront_analytics.common.aws_clients import AWSConfig
from storefront_analytics.common.error_handlers import OrderSourceError, StorageError
from storefront_analytics.common.s3_utils import S3Utils
from storefront_analytics.storage.order_source import (
    FileOrderSource, S3OrderSource, extract_orders
)
from conftest import FakeS3Client, json_bytes, make_order


BUCKET = 'storefront-orders-dev'


def s3_source(objects):
    return S3OrderSource(AWSConfig(), S3Utils(s3_client=FakeS3Client(objects)))


def test_fetch_list_snapshot():
    orders = [make_order('a', '2024-06-01T10:00:00Z', 10), make_order('b', '2024-06-02T10:00:00Z', 20)]
    source = s3_source({(BUCKET, 'orders/merchant-1.json'): json_bytes(orders)})

    assert [o['id'] for o in source.fetch_orders('merchant-1')] == ['a', 'b']


def test_fetch_wrapped_snapshot_with_custom_prefix(monkeypatch):
    monkeypatch.setenv('ORDERS_PREFIX', '/snapshots/')
    monkeypatch.setenv('ORDERS_BUCKET', 'my-orders')
    payload = {'orders': [make_order('a', '2024-06-01T10:00:00Z', 10)]}
    source = s3_source({('my-orders', 'snapshots/merchant-1.json'): json_bytes(payload)})

    assert len(source.fetch_orders('merchant-1')) == 1


def test_other_merchants_orders_are_dropped():
    payload = [
        make_order('a', '2024-06-01T10:00:00Z', 10),
        make_order('b', '2024-06-01T10:00:00Z', 10, owner_id='merchant-2'),
        {'id': 'c', 'user_id': 'merchant-2'},
        {'id': 'd', 'user_id': 'merchant-1'},
        {'id': 'e'},
        'not an order',
    ]

    assert [o['id'] for o in extract_orders(payload, 'merchant-1')] == ['a', 'd', 'e']


def test_extracted_orders_are_copies():
    payload = [make_order('a', '2024-06-01T10:00:00Z', 10)]
    orders = extract_orders(payload, 'merchant-1')
    orders[0]['total_amount'] = 0

    assert payload[0]['total_amount'] == 10


@pytest.mark.parametrize('payload', [{'orders': 'nope'}, 'orders', 42, None])
def test_malformed_snapshot(payload):
    with pytest.raises(OrderSourceError):
        extract_orders(payload, 'merchant-1')


def test_missing_snapshot():
    with pytest.raises(OrderSourceError) as excinfo:
        s3_source({}).fetch_orders('merchant-1')

    assert isinstance(excinfo.value.__cause__, StorageError)
    assert 'NoSuchKey' in str(excinfo.value)


def test_invalid_json_snapshot():
    source = s3_source({(BUCKET, 'orders/merchant-1.json'): b'{not json'})

    with pytest.raises(OrderSourceError, match='Invalid JSON'):
        source.fetch_orders('merchant-1')


def test_file_source(tmp_path):
    path = tmp_path / 'orders.json'
    path.write_text(json.dumps([make_order('a', '2024-06-01T10:00:00Z', 10)]), encoding='utf-8')

    assert [o['id'] for o in FileOrderSource(path).fetch_orders('merchant-1')] == ['a']


def test_file_source_errors(tmp_path):
    with pytest.raises(OrderSourceError):
        FileOrderSource(tmp_path / 'missing.json').fetch_orders('merchant-1')

    broken = tmp_path / 'broken.json'
    broken.write_text('[', encoding='utf-8')
    with pytest.raises(OrderSourceError):
        FileOrderSource(broken).fetch_orders('merchant-1')
