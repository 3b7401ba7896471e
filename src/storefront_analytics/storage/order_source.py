"""
Merchant order snapshots from object storage
"""
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from storefront_analytics.common.aws_clients import AWSConfig
from storefront_analytics.common.error_handlers import OrderSourceError, StorageError
from storefront_analytics.common.s3_utils import S3Utils


logger = structlog.get_logger(__name__)


def order_owner(order: Mapping) -> Optional[str]:
    owner = order.get('owner_id', order.get('user_id'))
    return None if owner is None else str(owner)


def extract_orders(payload: Any, owner_id: str) -> List[Dict[str, Any]]:
    """
    Order records for one merchant from a decoded snapshot

    The snapshot is a list of orders or an object with an ``orders`` list.
    Records owned by another merchant and non-object entries are dropped.
    """
    if isinstance(payload, Mapping):
        payload = payload.get('orders')
    if not isinstance(payload, list):
        raise OrderSourceError("Order snapshot must be a list or an object with an 'orders' list")

    orders = []
    skipped = 0
    for record in payload:
        if not isinstance(record, Mapping):
            skipped += 1
            continue
        owner = order_owner(record)
        if owner is not None and owner != str(owner_id):
            skipped += 1
            continue
        orders.append(dict(record))

    if skipped:
        logger.warning("Dropped records from order snapshot", owner_id=str(owner_id), skipped=skipped)
    return orders


class S3OrderSource:
    """Read a merchant's orders from the orders bucket"""

    def __init__(self, aws_config: Optional[AWSConfig] = None, s3_utils: Optional[S3Utils] = None):
        self.aws_config = aws_config or AWSConfig()
        self.s3_utils = s3_utils or S3Utils(aws_config=self.aws_config)

    def fetch_orders(self, owner_id: str) -> List[Dict[str, Any]]:
        """
        Fetch every order of a merchant

        Args:
            owner_id: Merchant identifier

        Returns:
            List of order records

        Raises:
            OrderSourceError: when the snapshot is missing, unreadable or malformed
        """
        bucket = self.aws_config.s3_config['orders_bucket']
        key = self.aws_config.orders_key(owner_id)
        try:
            payload = self.s3_utils.get_json(bucket, key)
        except StorageError as e:
            raise OrderSourceError(f"Failed to fetch orders for {owner_id}: {e}") from e

        orders = extract_orders(payload, owner_id)
        logger.info("Fetched orders", owner_id=str(owner_id), bucket=bucket, key=key,
                    order_count=len(orders))
        return orders


class FileOrderSource:
    """Read orders from a local JSON snapshot"""

    def __init__(self, path):
        self.path = Path(path)

    def fetch_orders(self, owner_id: str) -> List[Dict[str, Any]]:
        try:
            payload = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise OrderSourceError(f"Failed to read orders from {self.path}: {e}") from e

        orders = extract_orders(payload, owner_id)
        logger.info("Loaded orders", owner_id=str(owner_id), path=str(self.path),
                    order_count=len(orders))
        return orders
