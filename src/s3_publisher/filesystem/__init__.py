"""Local filesystem traversal and content classification."""

from .content_types import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    classify_content_type,
    file_extension,
    sniff_content_type,
)
from .walker import (
    DirectoryWalker,
    UploadTask,
    compute_remote_key,
    iter_upload_tasks,
    normalize_source_path,
)

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "classify_content_type",
    "file_extension",
    "sniff_content_type",
    "DirectoryWalker",
    "UploadTask",
    "compute_remote_key",
    "iter_upload_tasks",
    "normalize_source_path",
]
