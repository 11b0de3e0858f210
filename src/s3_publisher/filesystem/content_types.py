"""Content-type classification for files being published.

Classification runs in three steps:

1. Exact, case-sensitive lookup of the file extension in ``CONTENT_TYPES``.
2. Signature sniffing of the file's leading bytes with libmagic, accepting
   only binary-format matches (images, archives, fonts, media, ...).
3. ``application/octet-stream`` when neither step produced a type.
"""

import os
from typing import Optional

import magic

from s3_publisher.core import get_logger

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Enough leading bytes to cover the deepest signature offsets (e.g. tar at 257)
SNIFF_BYTES = 4100

CONTENT_TYPES: dict[str, str] = {
    ".css": "text/css",
    ".csv": "text/csv",
    ".html": "text/html",
    ".js": "text/javascript",
    ".json": "application/json",
    ".md": "text/markdown",
    ".map": "text/javascript",
    ".txt": "text/plain",
    ".yaml": "text/x-yaml",
    ".yml": "text/x-yaml",
}

# libmagic answers that do not come from a binary signature
_NON_SIGNATURE_TYPES = frozenset(
    {
        DEFAULT_CONTENT_TYPE,
        "application/x-empty",
        "inode/x-empty",
        "application/json",
        "application/javascript",
        "application/x-ndjson",
    }
)


def file_extension(filename: str) -> str:
    """Return the extension after the final dot, including the dot.

    Dotfiles such as ``.env`` have no extension.
    """
    return os.path.splitext(filename)[1]


def sniff_content_type(data: bytes) -> Optional[str]:
    """Detect a binary content type from leading file bytes.

    Returns:
        The detected MIME type, or None when no binary signature matched
    """
    if not data:
        return None

    try:
        detected = magic.from_buffer(data[:SNIFF_BYTES], mime=True)
    except magic.MagicException as e:
        logger.warning("Signature sniffing failed", error=str(e))
        return None

    if not detected or detected.startswith("text/"):
        return None
    if detected in _NON_SIGNATURE_TYPES:
        return None
    return detected


def classify_content_type(path: str, extension: Optional[str] = None) -> str:
    """Classify a local file's content type.

    Args:
        path: Local file path
        extension: Precomputed extension; derived from path if omitted

    Returns:
        MIME type string, never empty

    Raises:
        OSError: If the file has to be sniffed and cannot be read
    """
    if extension is None:
        extension = file_extension(path)

    content_type = CONTENT_TYPES.get(extension)
    if content_type is not None:
        return content_type

    with open(path, "rb") as f:
        head = f.read(SNIFF_BYTES)

    content_type = sniff_content_type(head)
    if content_type is None:
        logger.debug("No signature matched", path=path, extension=extension)
        return DEFAULT_CONTENT_TYPE

    logger.debug("Content type sniffed", path=path, content_type=content_type)
    return content_type
