"""Core utilities and shared components for s3-publisher."""

from .config import settings
from .exceptions import (
    ConfigError,
    DirectoryReadError,
    ObjectStoreError,
    PublisherError,
    UploadError,
    ValidationError,
)
from .observability import get_logger, get_tracer

__all__ = [
    "settings",
    "PublisherError",
    "ConfigError",
    "DirectoryReadError",
    "ObjectStoreError",
    "UploadError",
    "ValidationError",
    "get_logger",
    "get_tracer",
]
