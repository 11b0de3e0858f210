"""Exception hierarchy for s3-publisher."""

from typing import Optional


class PublisherError(Exception):
    """Base exception for all s3-publisher errors."""

    pass


class ConfigError(PublisherError):
    """Raised when a publisher is constructed with bad or missing parameters."""

    pass


class ValidationError(PublisherError):
    """Raised when validation fails."""

    pass


class DirectoryReadError(PublisherError):
    """Raised when a source directory is missing or cannot be listed."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class UploadError(PublisherError):
    """Raised when a single file could not be stored in the bucket.

    The underlying transport or filesystem error is chained as ``__cause__``.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class ObjectStoreError(PublisherError):
    """Raised when listing, reading, or deleting objects fails."""

    pass
