"""
S3 utility functions
"""
import json
from typing import Any, Optional
from botocore.exceptions import BotoCoreError, ClientError

from storefront_analytics.common.aws_clients import AWSConfig
from storefront_analytics.common.error_handlers import StorageError


class S3Utils:
    """S3 utility functions"""
    
    def __init__(self, s3_client=None, aws_config: Optional[AWSConfig] = None):
        self.s3_client = s3_client or (aws_config or AWSConfig()).get_s3_client()
    
    def get_json(self, bucket: str, key: str) -> Any:
        """Download and decode a JSON document"""
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            body = response['Body'].read()
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to get s3://{bucket}/{key}: {e}") from e
        
        try:
            return json.loads(body)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Invalid JSON in s3://{bucket}/{key}: {e}") from e
    
    def put_object(self, bucket: str, key: str, content: str, content_type: str = 'text/plain'):
        """Put object to S3"""
        try:
            self.s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=content.encode('utf-8'),
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to put s3://{bucket}/{key}: {e}") from e
