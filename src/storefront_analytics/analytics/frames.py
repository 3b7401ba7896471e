"""
Order record normalization into pandas frames
"""
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from storefront_analytics.common.coercion import to_number, to_quantity


ORDER_COLUMNS = [
    'position', 'order_id', 'email', 'customer_key',
    'total_amount', 'created_at', 'status'
]

ITEM_COLUMNS = ['order_position', 'name', 'price', 'quantity', 'revenue']

UNKNOWN_PRODUCT = 'Unknown product'


def as_records(orders: Any) -> List[Dict[str, Any]]:
    """List of order mappings; anything that is not a mapping becomes an empty order"""
    if orders is None or isinstance(orders, (str, bytes, Mapping)):
        return []
    try:
        return [order if isinstance(order, Mapping) else {} for order in orders]
    except TypeError:
        return []


def customer_email(customer_info: Any) -> Optional[str]:
    if not isinstance(customer_info, Mapping):
        return None
    email = customer_info.get('email')
    if isinstance(email, str) and email.strip():
        return email.strip()
    return None


def product_name(value: Any) -> str:
    if value is None:
        return UNKNOWN_PRODUCT
    name = str(value).strip()
    return name or UNKNOWN_PRODUCT


def parse_timestamp(value: Any, tz: str = 'UTC'):
    """
    Parse an order timestamp into the reporting timezone

    Naive values are read as UTC. Anything unparseable is NaT.
    """
    if not isinstance(value, (str, datetime, date)):
        return pd.NaT
    try:
        timestamp = pd.to_datetime(value, utc=True)
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if pd.isna(timestamp):
        return pd.NaT
    return timestamp.tz_convert(tz)


def localize(value: Any, tz: str = 'UTC'):
    """
    Parse a caller-supplied bound; naive values are wall-clock time in ``tz``
    """
    if not isinstance(value, (str, datetime, date)):
        return None
    try:
        timestamp = pd.Timestamp(value)
        if pd.isna(timestamp):
            return None
        if timestamp.tzinfo is None:
            return timestamp.tz_localize(tz, nonexistent='shift_forward', ambiguous=True)
        return timestamp.tz_convert(tz)
    except (TypeError, ValueError, OverflowError):
        return None


def current_time(now: Any = None, tz: str = 'UTC') -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz=tz)
    timestamp = localize(now, tz)
    return timestamp if timestamp is not None else pd.Timestamp.now(tz=tz)


def customer_key(email: Optional[str], order_id: Any, position: int) -> str:
    """Identity used for repeat-customer counting: email, else the order id"""
    if email:
        return email
    if order_id is not None and str(order_id) != '':
        return str(order_id)
    return f'order-{position}'


def orders_to_frame(orders: Iterable[Any], tz: str = 'UTC') -> pd.DataFrame:
    """One row per order with coerced totals and parsed timestamps"""
    rows = []
    for position, order in enumerate(as_records(orders)):
        email = customer_email(order.get('customer_info'))
        order_id = order.get('id')
        rows.append({
            'position': position,
            'order_id': order_id,
            'email': email,
            'customer_key': customer_key(email, order_id, position),
            'total_amount': to_number(order.get('total_amount')),
            'created_at': parse_timestamp(order.get('created_at'), tz),
            'status': order.get('status')
        })

    frame = pd.DataFrame(rows, columns=ORDER_COLUMNS)
    frame['position'] = frame['position'].astype(int)
    frame['total_amount'] = frame['total_amount'].astype(float)
    frame['created_at'] = pd.to_datetime(frame['created_at'], utc=True).dt.tz_convert(tz)
    return frame


def items_to_frame(orders: Iterable[Any]) -> pd.DataFrame:
    """One row per line item across all orders, in encounter order"""
    rows = []
    for position, order in enumerate(as_records(orders)):
        items = order.get('items')
        if not isinstance(items, (list, tuple)):
            continue
        for item in items:
            if not isinstance(item, Mapping):
                continue
            price = to_number(item.get('price'))
            quantity = to_quantity(item.get('quantity'))
            rows.append({
                'order_position': position,
                'name': product_name(item.get('name')),
                'price': price,
                'quantity': quantity,
                'revenue': to_number(price * quantity)
            })

    frame = pd.DataFrame(rows, columns=ITEM_COLUMNS)
    for column in ('price', 'quantity', 'revenue'):
        frame[column] = frame[column].astype(float)
    return frame


def as_number(value: Any):
    """Plain int for whole numbers, float otherwise"""
    number = float(value)
    return int(number) if number.is_integer() else number


def period_keys(created_at: pd.Series, granularity: str = 'daily') -> pd.Series:
    """``YYYY-MM-DD`` or ``YYYY-MM`` keys; years are zero-padded so keys sort by date"""
    keys = (
        created_at.dt.year.astype(str).str.zfill(4) + '-'
        + created_at.dt.month.astype(str).str.zfill(2)
    )
    if granularity == 'monthly':
        return keys
    return keys + '-' + created_at.dt.day.astype(str).str.zfill(2)
