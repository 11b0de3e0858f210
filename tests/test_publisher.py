"""Tests for publishing directory trees to mocked S3."""

import threading
import time
from unittest.mock import Mock

import pytest

from s3_publisher.core import settings
from s3_publisher.core.exceptions import (
    ConfigError,
    DirectoryReadError,
    ObjectStoreError,
    UploadError,
)
from s3_publisher.filesystem.walker import UploadTask
from s3_publisher.publisher import Publisher, PublishReport, UploadOutcome

TEST_BUCKET = "test-bucket"


class RecordingStore:
    """In-memory object store that can fail selected keys."""

    def __init__(self, fail_keys=(), delay=0.0):
        self.fail_keys = set(fail_keys)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def put_object(self, bucket, key, body, content_type, acl="public-read"):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if key in self.fail_keys:
                raise RuntimeError(f"connection reset while storing {key}")
            with self._lock:
                self.calls.append((bucket, key, body, content_type, acl))
            return {"ETag": f'"{key}"'}
        finally:
            with self._lock:
                self.in_flight -= 1


class TestPublisherCreate:
    """Test publisher construction."""

    def test_create_valid(self, store):
        """Test a publisher is created for a valid bucket."""
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        assert isinstance(publisher, Publisher)
        assert publisher.config.bucket == TEST_BUCKET

    def test_create_without_params(self):
        """Test construction fails without params."""
        with pytest.raises(ConfigError):
            Publisher.create(None, store=RecordingStore())

    @pytest.mark.parametrize("params", [{}, {"bucket": ""}])
    def test_create_invalid_bucket(self, params):
        """Test construction fails without a usable bucket."""
        with pytest.raises(ConfigError):
            Publisher.create(params, store=RecordingStore())

    @pytest.mark.parametrize("max_workers", [0, -1])
    def test_create_invalid_workers(self, max_workers):
        """Test the worker count must be positive."""
        with pytest.raises(ConfigError, match="max_workers"):
            Publisher.create(
                {"bucket": "b"}, store=RecordingStore(), max_workers=max_workers
            )

    def test_create_default_workers(self):
        """Test the worker count falls back to settings when omitted."""
        publisher = Publisher.create({"bucket": "b"}, store=RecordingStore())

        assert publisher.max_workers == settings.max_workers

    def test_create_ignores_unknown_params(self):
        """Test extra parameters do not prevent construction."""
        publisher = Publisher.create(
            {"bucket": "b", "region": "us-east-1"}, store=RecordingStore()
        )

        assert publisher.config.bucket == "b"


class TestPublishScenarios:
    """Test end-to-end publishing against mocked S3."""

    def test_publish_with_exclusions(self, site_tree, store):
        """Test excluded files are skipped and nested keys drop the root."""
        publisher = Publisher.create(
            {"bucket": TEST_BUCKET, "keyPrefix": "P", "exclusions": [".map"]},
            store=store,
        )

        report = publisher.publish(str(site_tree))

        assert report.success
        assert sorted(r.key for r in report.uploaded) == [
            "P/bar/script.js",
            "P/style.css",
        ]
        assert sorted(store.list_objects(TEST_BUCKET, "P")) == [
            "P/bar/script.js",
            "P/style.css",
        ]
        assert store.get_object(TEST_BUCKET, "P/style.css")["ContentType"] == "text/css"
        assert (
            store.get_object(TEST_BUCKET, "P/bar/script.js")["ContentType"]
            == "text/javascript"
        )
        with pytest.raises(ObjectStoreError):
            store.get_object(TEST_BUCKET, "P/script.js.map")

    def test_publish_preserve_source_dir(self, site_tree, store, monkeypatch):
        """Test preserved mode mirrors the source directory in keys."""
        monkeypatch.chdir(site_tree.parent)
        publisher = Publisher.create(
            {"bucket": TEST_BUCKET, "keyPrefix": "P", "preserveSourceDir": True},
            store=store,
        )

        report = publisher.publish("foo")

        assert report.success
        assert sorted(store.list_objects(TEST_BUCKET, "P")) == [
            "P/foo/bar/script.js",
            "P/foo/script.js.map",
            "P/foo/style.css",
        ]
        assert (
            store.get_object(TEST_BUCKET, "P/foo/script.js.map")["ContentType"]
            == "text/javascript"
        )

    def test_publish_result_fields(self, site_tree, store):
        """Test results carry the ETag and an s3:// locator."""
        publisher = Publisher.create(
            {"bucket": TEST_BUCKET, "keyPrefix": "P"}, store=store
        )

        report = publisher.publish(str(site_tree))
        result = next(r for r in report.uploaded if r.key == "P/style.css")

        assert result.etag
        assert result.s3_uri == f"s3://{TEST_BUCKET}/P/style.css"
        assert result.content_type == "text/css"
        assert result.local_path == str(site_tree / "style.css")
        assert result.etag == store.get_object(TEST_BUCKET, "P/style.css")["ETag"]

    def test_publish_body_uploaded(self, site_tree, store):
        """Test the full file content is stored."""
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        publisher.publish(str(site_tree))

        body = store.get_object(TEST_BUCKET, "bar/script.js")["Body"]
        assert body == b"console.log('hello');"

    def test_publish_missing_directory(self, temp_dir, store):
        """Test a missing source yields exactly one directory error."""
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(temp_dir / "nil"))

        assert len(report.outcomes) == 1
        assert isinstance(report.outcomes[0].error, DirectoryReadError)
        assert report.uploaded == []
        assert not report.success
        assert store.list_objects(TEST_BUCKET) == []

    def test_publish_empty_subdirectory(self, temp_dir, store):
        """Test an empty subdirectory uploads nothing and reports no error."""
        (temp_dir / "empty").mkdir()
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(temp_dir))

        assert report.outcomes == []
        assert report.success
        assert store.list_objects(TEST_BUCKET) == []

    def test_publish_twice_is_idempotent(self, site_tree, store):
        """Test republishing unchanged files overwrites with the same ETag."""
        publisher = Publisher.create(
            {"bucket": TEST_BUCKET, "keyPrefix": "P"}, store=store
        )

        first = {r.key: r.etag for r in publisher.publish(str(site_tree)).uploaded}
        second = {r.key: r.etag for r in publisher.publish(str(site_tree)).uploaded}

        assert first == second
        assert len(store.list_objects(TEST_BUCKET, "P")) == 3

    def test_publish_sniffed_content_type(self, temp_dir, store):
        """Test files outside the extension table are sniffed."""
        (temp_dir / "logo.img").write_bytes(b"GIF89a\x01\x00\x01\x00\x00\x00\x00;")
        (temp_dir / "notes.cfg").write_text("plain text\n")
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(temp_dir))
        content_types = {r.key: r.content_type for r in report.uploaded}

        assert content_types == {
            "logo.img": "image/gif",
            "notes.cfg": "application/octet-stream",
        }

    def test_concurrent_publishes_share_publisher(self, temp_dir, store):
        """Test one publisher can run independent roots at the same time."""
        for name in ("one", "two"):
            nested = temp_dir / name / "nested"
            nested.mkdir(parents=True)
            (nested / f"{name}.txt").write_text(name)
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        futures = [
            publisher.submit(str(temp_dir / "one")),
            publisher.submit(str(temp_dir / "two")),
        ]
        reports = [future.result(timeout=30) for future in futures]

        assert [r.key for r in reports[0].uploaded] == ["nested/one.txt"]
        assert [r.key for r in reports[1].uploaded] == ["nested/two.txt"]


class TestPublishOutcomes:
    """Test outcome reporting, failures, and the worker pool."""

    def test_upload_error_does_not_affect_siblings(self, site_tree):
        """Test one failing upload is reported while the rest succeed."""
        store = RecordingStore(fail_keys={"style.css"})
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(site_tree))

        assert sorted(r.key for r in report.uploaded) == [
            "bar/script.js",
            "script.js.map",
        ]
        assert len(report.failed) == 1
        failure = report.failed[0]
        assert failure.remote_key == "style.css"
        assert isinstance(failure.error, UploadError)
        assert isinstance(failure.error.__cause__, RuntimeError)
        assert failure.error.key == "style.css"

    def test_upload_uses_public_read(self, site_tree):
        """Test every object is stored with public-read visibility."""
        store = RecordingStore()
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        publisher.publish(str(site_tree))

        assert {call[4] for call in store.calls} == {"public-read"}
        assert {call[0] for call in store.calls} == {TEST_BUCKET}

    def test_progress_called_once_per_outcome(self, site_tree):
        """Test the progress callback sees every outcome exactly once."""
        seen = []
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=RecordingStore())

        report = publisher.publish(str(site_tree), on_progress=seen.append)

        assert len(seen) == 3
        assert set(seen) == set(report.outcomes)
        assert all(isinstance(outcome, UploadOutcome) for outcome in seen)

    def test_progress_reports_directory_errors(self, temp_dir):
        """Test unreadable directories reach the progress callback."""
        seen = []
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=RecordingStore())

        publisher.publish(str(temp_dir / "nil"), on_progress=seen.append)

        assert len(seen) == 1
        assert seen[0].remote_key is None
        assert isinstance(seen[0].error, DirectoryReadError)

    def test_progress_callback_errors_are_contained(self, site_tree):
        """Test a failing callback does not break publishing."""
        callback = Mock(side_effect=ValueError("display closed"))
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=RecordingStore())

        report = publisher.publish(str(site_tree), on_progress=callback)

        assert report.success
        assert callback.call_count == 3

    def test_unreadable_file_reported(self, site_tree):
        """Test files that vanish before upload become UploadError outcomes."""
        store = RecordingStore()
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)
        task = UploadTask(
            local_path=str(site_tree / "gone.bin"), remote_key="gone.bin"
        )

        with pytest.raises(UploadError, match="Failed to read") as exc_info:
            publisher.upload(task)

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
        assert store.calls == []

    def test_upload_keeps_given_content_type(self, site_tree):
        """Test a pre-classified task is not classified again."""
        store = RecordingStore()
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)
        task = UploadTask(
            local_path=str(site_tree / "style.css"),
            remote_key="custom.css",
            content_type="text/plain",
        )

        result = publisher.upload(task)

        assert result.content_type == "text/plain"
        assert store.calls[0][3] == "text/plain"

    def test_worker_pool_is_bounded(self, temp_dir):
        """Test no more uploads run at once than there are workers."""
        for i in range(12):
            (temp_dir / f"file{i}.txt").write_text(str(i))
        store = RecordingStore(delay=0.02)
        publisher = Publisher.create(
            {"bucket": TEST_BUCKET}, store=store, max_workers=3
        )

        report = publisher.publish(str(temp_dir))

        assert len(report.uploaded) == 12
        assert store.max_in_flight <= 3

    def test_submit_returns_single_completion(self, site_tree):
        """Test submit resolves to the same report publish would give."""
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=RecordingStore())

        future = publisher.submit(str(site_tree))
        report = future.result(timeout=30)

        assert isinstance(report, PublishReport)
        assert report.success
        assert sorted(r.key for r in report.uploaded) == [
            "bar/script.js",
            "script.js.map",
            "style.css",
        ]

    def test_malformed_store_response_reported(self, site_tree):
        """Test a store returning no response still yields one failure per file."""
        store = Mock()
        store.put_object.return_value = None
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(site_tree))

        assert len(report.outcomes) == 3
        assert not report.success
        assert report.uploaded == []
        for outcome in report.failed:
            assert isinstance(outcome.error, UploadError)
            assert outcome.error.key == outcome.remote_key
            assert isinstance(outcome.error.__cause__, AttributeError)

    def test_unexpected_store_exception_reported(self, site_tree):
        """Test arbitrary exceptions from the store become UploadError outcomes."""
        store = Mock()
        store.put_object.side_effect = KeyError("ETag")
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=store)

        report = publisher.publish(str(site_tree))

        assert len(report.failed) == 3
        assert all(isinstance(o.error.__cause__, KeyError) for o in report.failed)

    def test_unexpected_classification_error_reported(self, site_tree, monkeypatch):
        """Test failures outside the upload call are still recorded per file."""
        monkeypatch.setattr(
            "s3_publisher.publisher.classify_content_type",
            Mock(side_effect=ValueError("bad magic database")),
        )
        publisher = Publisher.create({"bucket": TEST_BUCKET}, store=RecordingStore())

        report = publisher.publish(str(site_tree))

        assert len(report.outcomes) == 3
        assert all(isinstance(o.error, UploadError) for o in report.failed)
        assert all(isinstance(o.error.__cause__, ValueError) for o in report.failed)
