"""AWS implementations of the video publish interfaces."""

from .dynamodb_stores import DynamoDBAssetStore
from .env_config import asset_store_from_env, object_storage_from_env
from .s3_storage import S3ObjectStorage

__all__ = [
    "DynamoDBAssetStore",
    "S3ObjectStorage",
    "asset_store_from_env",
    "object_storage_from_env",
]
