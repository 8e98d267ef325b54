"""
Build AWS adapter instances from environment variables.

Use when deploying with Terraform: outputs (bucket name, table name) are passed
into the process as env vars so resource names are not hardcoded.

Required env vars:
- ASSETS_BUCKET_NAME
- ASSETS_TABLE_NAME

Optional:
- ASSETS_PUBLIC_BASE_URL (e.g. a CloudFront domain); default is the S3 URL
- AWS_REGION (default: boto3 resolution, else us-east-1 for URLs)
- AWS_ENDPOINT_URL (e.g. for LocalStack)
"""

import os

from .dynamodb_stores import DynamoDBAssetStore
from .s3_storage import S3ObjectStorage


def _get_region() -> str | None:
    return os.environ.get("AWS_REGION") or None


def _get_endpoint_url() -> str | None:
    return os.environ.get("AWS_ENDPOINT_URL") or None


def assets_bucket_name() -> str:
    return os.environ["ASSETS_BUCKET_NAME"]


def object_storage_from_env() -> S3ObjectStorage:
    """Build S3ObjectStorage from ASSETS_BUCKET_NAME (and ASSETS_PUBLIC_BASE_URL if set)."""
    return S3ObjectStorage(
        assets_bucket_name(),
        public_base_url=os.environ.get("ASSETS_PUBLIC_BASE_URL") or None,
        region_name=_get_region(),
        endpoint_url=_get_endpoint_url(),
    )


def asset_store_from_env() -> DynamoDBAssetStore:
    """Build DynamoDBAssetStore from ASSETS_TABLE_NAME."""
    table_name = os.environ["ASSETS_TABLE_NAME"]
    return DynamoDBAssetStore(
        table_name,
        region_name=_get_region(),
        endpoint_url=_get_endpoint_url(),
    )
