"""
Data quality checks for merchant order snapshots
"""
from collections.abc import Mapping
from typing import Dict, Any, List, Set

import pandas as pd

from storefront_analytics.analytics.frames import as_records, customer_email, parse_timestamp
from storefront_analytics.common.coercion import to_number


class OrderQualityValidator:
    """Report order records that aggregation will coerce to defaults"""

    def validate_orders(self, orders: Any) -> Dict[str, Any]:
        """
        Check order records for data quality problems

        Args:
            orders: Order records as fetched from the store

        Returns:
            Dict with errors and warnings lists
        """
        results = {
            'errors': [],
            'warnings': []
        }

        records = as_records(orders)
        results['errors'].extend(self._check_duplicates(records))

        for index, order in enumerate(records):
            row_errors, row_warnings = self._check_order(order, index)
            results['errors'].extend(row_errors)
            results['warnings'].extend(row_warnings)

        return results

    def _check_duplicates(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Check for duplicate order IDs"""
        errors = []
        seen_order_ids: Set[str] = set()

        for index, order in enumerate(records):
            order_id = order.get('id')
            if order_id is None:
                continue
            order_id = str(order_id)
            if order_id in seen_order_ids:
                errors.append({
                    'type': 'DUPLICATE_ORDER_ID',
                    'message': f"Duplicate order ID: {order_id}",
                    'row_index': index,
                    'column': 'id',
                    'value': order_id
                })
            else:
                seen_order_ids.add(order_id)

        return errors

    def _check_order(self, order: Dict[str, Any], index: int):
        errors = []
        warnings = []

        if order.get('id') is None:
            warnings.append({
                'type': 'MISSING_ORDER_ID',
                'message': "Order has no id",
                'row_index': index,
                'column': 'id'
            })

        if pd.isna(parse_timestamp(order.get('created_at'))):
            errors.append({
                'type': 'INVALID_CREATED_AT',
                'message': f"Invalid order timestamp: {order.get('created_at')!r}",
                'row_index': index,
                'column': 'created_at',
                'value': str(order.get('created_at'))
            })

        total = order.get('total_amount')
        amount = to_number(total, default=None)
        if amount is None:
            errors.append({
                'type': 'INVALID_TOTAL_AMOUNT',
                'message': f"Non-numeric total amount: {total!r}",
                'row_index': index,
                'column': 'total_amount',
                'value': str(total)
            })
        elif amount < 0:
            warnings.append({
                'type': 'NEGATIVE_TOTAL_AMOUNT',
                'message': f"Negative total amount: {amount}",
                'row_index': index,
                'column': 'total_amount',
                'value': amount
            })

        if customer_email(order.get('customer_info')) is None:
            warnings.append({
                'type': 'MISSING_CUSTOMER_EMAIL',
                'message': "Order has no customer email",
                'row_index': index,
                'column': 'customer_info'
            })

        warnings.extend(self._check_items(order.get('items'), index))
        return errors, warnings

    def _check_items(self, items: Any, index: int) -> List[Dict[str, Any]]:
        """Check line items"""
        if not isinstance(items, (list, tuple)) or not items:
            return [{
                'type': 'MISSING_ITEMS',
                'message': "Order has no line items",
                'row_index': index,
                'column': 'items'
            }]

        warnings = []
        for item_index, item in enumerate(items):
            if not isinstance(item, Mapping):
                warnings.append({
                    'type': 'INVALID_ITEM',
                    'message': f"Line item is not an object: {item!r}",
                    'row_index': index,
                    'item_index': item_index
                })
                continue

            name = item.get('name')
            if name is None or str(name).strip() == '':
                warnings.append({
                    'type': 'MISSING_ITEM_NAME',
                    'message': "Line item has no name",
                    'row_index': index,
                    'item_index': item_index
                })

            quantity = to_number(item.get('quantity'), default=None)
            if item.get('quantity') is not None and (quantity is None or quantity <= 0):
                warnings.append({
                    'type': 'INVALID_QUANTITY',
                    'message': f"Quantity must be positive: {item.get('quantity')!r}",
                    'row_index': index,
                    'item_index': item_index,
                    'value': str(item.get('quantity'))
                })

            if to_number(item.get('price'), default=None) is None:
                warnings.append({
                    'type': 'INVALID_ITEM_PRICE',
                    'message': f"Non-numeric item price: {item.get('price')!r}",
                    'row_index': index,
                    'item_index': item_index,
                    'value': str(item.get('price'))
                })

        return warnings
