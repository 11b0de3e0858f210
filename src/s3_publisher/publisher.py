"""Publish a local directory tree to an object-storage bucket.

The walker produces upload tasks lazily; a bounded pool of worker threads
classifies and uploads each file and reports exactly one outcome per file.
Directories that cannot be read are reported as outcomes too. A publish run
is complete when the walk is exhausted and every worker is idle.

Example:
    >>> publisher = Publisher.create(
    ...     {"bucket": "my-site", "keyPrefix": "docs", "exclusions": [".map"]}
    ... )
    >>> report = publisher.publish("./build")
    >>> for result in report.uploaded:
    ...     print(result.s3_uri, result.content_type)
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from s3_publisher.core import get_logger, get_tracer, settings
from s3_publisher.core.exceptions import (
    ConfigError,
    DirectoryReadError,
    PublisherError,
    UploadError,
)
from s3_publisher.filesystem.content_types import classify_content_type
from s3_publisher.filesystem.walker import UploadTask, iter_upload_tasks
from s3_publisher.objectstorage import (
    PUBLIC_READ,
    ObjectStore,
    S3ClientConfig,
    S3ObjectStore,
)
from s3_publisher.schemas import PublisherConfig

logger = get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class UploadResult:
    """A file stored in the bucket.

    Attributes:
        bucket: Target bucket
        key: Object key the file was stored under
        etag: Entity tag assigned by the storage service
        content_type: Content type sent with the object
        local_path: Source file on the local filesystem
    """

    bucket: str
    key: str
    etag: Optional[str]
    content_type: str
    local_path: str

    @property
    def s3_uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True)
class UploadOutcome:
    """Outcome of one file upload or one unreadable directory."""

    local_path: str
    remote_key: Optional[str] = None
    result: Optional[UploadResult] = None
    error: Optional[PublisherError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


ProgressCallback = Callable[[UploadOutcome], None]


@dataclass
class PublishReport:
    """All outcomes of a publish run, in completion order."""

    source_path: str
    outcomes: list[UploadOutcome] = field(default_factory=list)

    @property
    def uploaded(self) -> list[UploadResult]:
        return [o.result for o in self.outcomes if o.result is not None]

    @property
    def failed(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def success(self) -> bool:
        return not self.failed


class Publisher:
    """Uploads directory trees according to a PublisherConfig.

    A publisher holds no traversal state, so one instance may run several
    publishes at the same time.
    """

    def __init__(
        self,
        config: PublisherConfig,
        store: Optional[ObjectStore] = None,
        max_workers: Optional[int] = None,
        client_config: Optional[S3ClientConfig] = None,
    ):
        """Initialize a publisher.

        Args:
            config: Upload parameters
            store: Object store to write to; an S3ObjectStore built from
                client_config (or the environment) when omitted
            max_workers: Upload worker count, defaults to settings.max_workers
            client_config: S3 connection settings for the default store

        Raises:
            ConfigError: If max_workers is not positive
        """
        self.config = config
        self.store = store if store is not None else S3ObjectStore(client_config)
        self.max_workers = (
            settings.max_workers if max_workers is None else max_workers
        )

        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be positive, got {self.max_workers}")

        logger.info(
            "Publisher initialized",
            bucket=config.bucket,
            key_prefix=config.key_prefix,
            exclusions=sorted(config.exclusions),
            preserve_source_dir=config.preserve_source_dir,
            max_workers=self.max_workers,
        )

    @classmethod
    def create(
        cls,
        params: Optional[Mapping[str, Any]],
        store: Optional[ObjectStore] = None,
        max_workers: Optional[int] = None,
        client_config: Optional[S3ClientConfig] = None,
    ) -> "Publisher":
        """Create a publisher from a parameter mapping.

        Raises:
            ConfigError: If params is missing or invalid
        """
        return cls(
            PublisherConfig.from_params(params),
            store=store,
            max_workers=max_workers,
            client_config=client_config,
        )

    def upload(self, task: UploadTask) -> UploadResult:
        """Classify, read, and store a single file.

        Raises:
            UploadError: If the file cannot be read or stored
        """
        try:
            content_type = task.content_type or classify_content_type(task.local_path)
            with open(task.local_path, "rb") as f:
                body = f.read()
        except OSError as e:
            error_msg = f"Failed to read '{task.local_path}': {e}"
            logger.error(error_msg, path=task.local_path, error=str(e))
            raise UploadError(error_msg, key=task.remote_key) from e

        with tracer.start_as_current_span("s3_publisher.upload") as span:
            span.set_attribute("s3.bucket", self.config.bucket)
            span.set_attribute("s3.key", task.remote_key)

            try:
                response = self.store.put_object(
                    self.config.bucket,
                    task.remote_key,
                    body,
                    content_type,
                    acl=PUBLIC_READ,
                )
            except UploadError:
                raise
            except Exception as e:
                error_msg = (
                    f"Failed to upload '{task.local_path}' to "
                    f"'s3://{self.config.bucket}/{task.remote_key}': {e}"
                )
                logger.error(error_msg, key=task.remote_key, error=str(e))
                raise UploadError(error_msg, key=task.remote_key) from e

        result = UploadResult(
            bucket=self.config.bucket,
            key=task.remote_key,
            etag=response.get("ETag"),
            content_type=content_type,
            local_path=task.local_path,
        )
        logger.info(
            "File uploaded",
            path=task.local_path,
            s3_uri=result.s3_uri,
            content_type=content_type,
            size=len(body),
        )
        return result

    def publish(
        self, source_path: str, on_progress: Optional[ProgressCallback] = None
    ) -> PublishReport:
        """Upload every file under source_path and wait for all uploads.

        Args:
            source_path: Local directory to publish
            on_progress: Called once per outcome as soon as it is known;
                calls are serialized

        Returns:
            PublishReport with one outcome per file and per unreadable directory
        """
        report = PublishReport(source_path=source_path)
        lock = threading.Lock()
        # Backpressure: the walk pauses while this many tasks are pending
        slots = threading.BoundedSemaphore(self.max_workers * 2)

        def record(outcome: UploadOutcome) -> None:
            with lock:
                report.outcomes.append(outcome)
                if on_progress is None:
                    return
                try:
                    on_progress(outcome)
                except Exception as e:
                    logger.warning(
                        "Progress callback failed", path=outcome.local_path, error=str(e)
                    )

        def on_directory_error(error: DirectoryReadError) -> None:
            record(UploadOutcome(local_path=error.path, error=error))

        def work(task: UploadTask) -> None:
            try:
                record(self._upload_outcome(task))
            finally:
                slots.release()

        logger.info("Publishing directory", path=source_path, bucket=self.config.bucket)

        with tracer.start_as_current_span("s3_publisher.publish") as span:
            span.set_attribute("s3.bucket", self.config.bucket)
            span.set_attribute("publisher.source_path", source_path)

            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="s3-publisher"
            ) as pool:
                tasks = iter_upload_tasks(
                    source_path, self.config, onerror=on_directory_error
                )
                for task in tasks:
                    slots.acquire()
                    pool.submit(work, task)

            span.set_attribute("publisher.uploaded", len(report.uploaded))
            span.set_attribute("publisher.failed", len(report.failed))

        logger.info(
            "Publish completed",
            path=source_path,
            bucket=self.config.bucket,
            uploaded=len(report.uploaded),
            failed=len(report.failed),
        )
        return report

    def submit(
        self, source_path: str, on_progress: Optional[ProgressCallback] = None
    ) -> "Future[PublishReport]":
        """Start publishing in the background and return its completion."""
        runner = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="s3-publisher-run"
        )
        try:
            return runner.submit(self.publish, source_path, on_progress)
        finally:
            runner.shutdown(wait=False)

    def _upload_outcome(self, task: UploadTask) -> UploadOutcome:
        try:
            result = self.upload(task)
        except UploadError as e:
            return UploadOutcome(
                local_path=task.local_path, remote_key=task.remote_key, error=e
            )
        except Exception as e:
            error_msg = f"Unexpected error uploading '{task.local_path}': {e}"
            logger.exception(error_msg, path=task.local_path, key=task.remote_key)
            error = UploadError(error_msg, key=task.remote_key)
            error.__cause__ = e
            return UploadOutcome(
                local_path=task.local_path, remote_key=task.remote_key, error=error
            )
        return UploadOutcome(
            local_path=task.local_path, remote_key=task.remote_key, result=result
        )
