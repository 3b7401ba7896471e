"""
AWS configuration management
"""
import os
import boto3


class AWSConfig:
    """AWS configuration manager"""
    
    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'dev')
        self.region = os.getenv('AWS_REGION', 'us-east-1')
        
        # S3 configuration
        self.s3_config = {
            'orders_bucket': os.getenv('ORDERS_BUCKET', f'storefront-orders-{self.environment}'),
            'reports_bucket': os.getenv('REPORTS_BUCKET', f'storefront-reports-{self.environment}'),
            'orders_prefix': os.getenv('ORDERS_PREFIX', 'orders').strip('/'),
            'reports_prefix': os.getenv('REPORTS_PREFIX', 'reports').strip('/')
        }
    
    def orders_key(self, owner_id: str) -> str:
        """Object key holding a merchant's order snapshot"""
        return f"{self.s3_config['orders_prefix']}/{owner_id}.json"
    
    def report_key(self, owner_id: str, filename: str) -> str:
        return f"{self.s3_config['reports_prefix']}/{owner_id}/{filename}"
    
    def get_s3_client(self):
        """Get S3 client"""
        return boto3.client('s3', region_name=self.region)
