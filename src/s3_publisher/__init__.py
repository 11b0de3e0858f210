"""Publish local directory trees to S3-compatible object storage.

This package walks a local directory, computes an object key for every file
(flattening the tree or mirroring it under a key prefix), classifies each
file's content type, and uploads the files with public-read visibility using
a bounded pool of workers. It is meant as a building block for deployment
and static-site publishing workflows.

Key Features:
    - Flattened or preserved directory layouts under a key prefix
    - Extension-based content types with signature sniffing fallback
    - Extension exclusions
    - One outcome per file, aggregated into a single report
    - CLI interface

Recommended Usage:

    >>> from s3_publisher import Publisher
    >>> publisher = Publisher.create({"bucket": "my-site", "keyPrefix": "docs"})
    >>> report = publisher.publish("./build")
    >>> report.success
    True

Advanced Usage:
    Import specific modules for lower level operations:

    >>> from s3_publisher.filesystem import iter_upload_tasks, compute_remote_key
    >>> from s3_publisher.objectstorage import S3ObjectStore
"""

__version__ = "0.1.0"

from .core.exceptions import (
    ConfigError,
    DirectoryReadError,
    ObjectStoreError,
    PublisherError,
    UploadError,
)
from .filesystem import (
    CONTENT_TYPES,
    DirectoryWalker,
    UploadTask,
    classify_content_type,
    compute_remote_key,
    iter_upload_tasks,
)
from .objectstorage import S3ClientConfig, S3ObjectStore
from .publisher import (
    Publisher,
    PublishReport,
    UploadOutcome,
    UploadResult,
)
from .schemas import PublisherConfig

__all__ = [
    # Publishing
    "Publisher",
    "PublisherConfig",
    "PublishReport",
    "UploadOutcome",
    "UploadResult",
    # Errors
    "PublisherError",
    "ConfigError",
    "DirectoryReadError",
    "ObjectStoreError",
    "UploadError",
    # Filesystem
    "CONTENT_TYPES",
    "DirectoryWalker",
    "UploadTask",
    "classify_content_type",
    "compute_remote_key",
    "iter_upload_tasks",
    # Object storage
    "S3ClientConfig",
    "S3ObjectStore",
]
