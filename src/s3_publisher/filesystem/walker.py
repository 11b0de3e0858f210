"""Directory traversal and remote key computation.

The walker turns a local directory tree into a lazy stream of upload tasks.
Directories are expanded internally and never appear in the stream; files
whose extension is excluded are skipped silently.

Remote keys are computed in one of three modes:

- ``preserve_source_dir``: ``key_prefix/<directory path>/<filename>``, the
  directory path kept exactly as walked (including the root's own segments).
- nested directory, tree not preserved: ``key_prefix/<survivors>/<filename>``
  where the survivors are the directory path segments that do not occur
  anywhere among the root path's segments. This is a segment-wise set
  difference, not a relative path: a subdirectory named like one of the
  root's segments (``/data/site`` containing ``site/``) is dropped.
- root directory, tree not preserved: ``key_prefix/<filename>``.
"""

import os
import posixpath
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from s3_publisher.core import get_logger
from s3_publisher.core.exceptions import DirectoryReadError
from s3_publisher.filesystem.content_types import file_extension
from s3_publisher.schemas import PublisherConfig

logger = get_logger(__name__)

ErrorHandler = Callable[[DirectoryReadError], None]


@dataclass(frozen=True)
class UploadTask:
    """A single file scheduled for upload.

    Attributes:
        local_path: Path of the file on the local filesystem
        remote_key: Object key the file is stored under
        content_type: MIME type, or None until the file has been classified
    """

    local_path: str
    remote_key: str
    content_type: Optional[str] = None


def normalize_source_path(path: str) -> str:
    """Strip trailing path separators, keeping a bare root separator."""
    seps = os.sep + (os.altsep or "")
    stripped = path.rstrip(seps)
    if not stripped and path:
        return path[0]
    return stripped


def _segments(path: str) -> list[str]:
    return path.split(os.sep)


def _join_key(parts: Iterable[str]) -> str:
    joined = "/".join(part for part in parts if part)
    return posixpath.normpath(joined).lstrip("/")


def compute_remote_key(
    dir_path: str,
    filename: str,
    root_path: str,
    depth: int,
    config: PublisherConfig,
) -> str:
    """Compute the object key for a file found while walking.

    Args:
        dir_path: Directory containing the file, as walked
        filename: Name of the file
        root_path: Normalized top-level source path of the traversal
        depth: Nesting level of dir_path below root_path (0 for the root)
        config: Publisher configuration

    Returns:
        Object key joined with '/', never starting with '/'
    """
    if config.preserve_source_dir:
        parts = [config.key_prefix, *_segments(dir_path), filename]
    elif depth > 0:
        root_segments = set(_segments(root_path))
        survivors = [s for s in _segments(dir_path) if s not in root_segments]
        parts = [config.key_prefix, *survivors, filename]
    else:
        parts = [config.key_prefix, filename]

    return _join_key(parts)


def iter_upload_tasks(
    source_path: str,
    config: PublisherConfig,
    onerror: Optional[ErrorHandler] = None,
) -> Iterator[UploadTask]:
    """Walk source_path and yield an UploadTask per file to upload.

    Args:
        source_path: Local directory to publish
        config: Publisher configuration
        onerror: Called with a DirectoryReadError for every directory that
            cannot be listed; that branch is skipped and the walk continues.
            When omitted the error is raised instead.

    Yields:
        UploadTask without content type, in name order per directory

    Raises:
        DirectoryReadError: If a directory cannot be listed and no onerror
            handler was given
    """
    root_path = normalize_source_path(source_path)
    logger.info("Walking source directory", path=root_path)
    yield from _walk(root_path, root_path, 0, config, onerror)


def _report_error(
    path: str, depth: int, cause: OSError, onerror: Optional[ErrorHandler]
) -> None:
    error = DirectoryReadError(f"Failed to read directory '{path}': {cause}", path=path)
    error.__cause__ = cause
    logger.error("Directory read failed", path=path, depth=depth, error=str(cause))
    if onerror is None:
        raise error
    onerror(error)


def _walk(
    dir_path: str,
    root_path: str,
    depth: int,
    config: PublisherConfig,
    onerror: Optional[ErrorHandler],
) -> Iterator[UploadTask]:
    try:
        with os.scandir(dir_path) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        _report_error(dir_path, depth, e, onerror)
        return

    for entry in entries:
        child_path = os.path.join(dir_path, entry.name)

        try:
            is_symlink = entry.is_symlink()
            is_dir = not is_symlink and entry.is_dir()
            is_file = not is_symlink and not is_dir and entry.is_file()
        except OSError as e:
            _report_error(child_path, depth + 1, e, onerror)
            continue

        if is_symlink:
            logger.debug("Skipping symlink", path=child_path)
            continue

        if is_dir:
            yield from _walk(child_path, root_path, depth + 1, config, onerror)
            continue

        if not is_file:
            continue

        extension = file_extension(entry.name)
        if extension in config.exclusions:
            logger.debug("Skipping excluded file", path=child_path, extension=extension)
            continue

        remote_key = compute_remote_key(
            dir_path, entry.name, root_path, depth, config
        )
        logger.debug(
            "File discovered", path=child_path, key=remote_key, depth=depth
        )
        yield UploadTask(local_path=child_path, remote_key=remote_key)


class DirectoryWalker:
    """Restartable iterable over the upload tasks of a source directory.

    Each iteration walks the filesystem again, so files added between
    iterations are picked up.
    """

    def __init__(
        self,
        source_path: str,
        config: PublisherConfig,
        onerror: Optional[ErrorHandler] = None,
    ):
        self.source_path = source_path
        self.config = config
        self.onerror = onerror

    def __iter__(self) -> Iterator[UploadTask]:
        return iter_upload_tasks(self.source_path, self.config, self.onerror)
