"""Object storage operations for S3-compatible services."""

from .clients import S3ClientConfig, S3ClientManager
from .s3_operations import PUBLIC_READ, ObjectStore, S3ObjectStore, list_s3_objects

__all__ = [
    "PUBLIC_READ",
    "ObjectStore",
    "S3ClientConfig",
    "S3ClientManager",
    "S3ObjectStore",
    "list_s3_objects",
]
