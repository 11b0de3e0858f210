"""Test configuration and fixtures for s3-publisher."""

import boto3
import pytest
from moto import mock_aws

from s3_publisher.objectstorage import S3ClientConfig, S3ObjectStore

TEST_BUCKET = "test-bucket"


@pytest.fixture
def temp_dir(tmp_path):
    """Create a temporary directory for testing."""
    return tmp_path


@pytest.fixture
def site_tree(temp_dir):
    """Create the sample tree used by the publishing scenarios.

    foo/
        style.css
        script.js.map
        bar/
            script.js
    """
    foo = temp_dir / "foo"
    foo.mkdir()
    (foo / "style.css").write_text("body { color: black; }")
    (foo / "script.js.map").write_text('{"version": 3, "mappings": ""}')

    bar = foo / "bar"
    bar.mkdir()
    (bar / "script.js").write_text("console.log('hello');")

    return foo


@pytest.fixture
def aws_credentials(monkeypatch):
    """Keep boto3 away from real credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test_key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test_secret")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def s3_client(aws_credentials):
    """Mocked S3 client with an empty test bucket."""
    with mock_aws():
        client = boto3.client(
            "s3",
            aws_access_key_id="test_key",
            aws_secret_access_key="test_secret",
            region_name="us-east-1",
        )
        client.create_bucket(Bucket=TEST_BUCKET, ObjectOwnership="ObjectWriter")
        yield client


@pytest.fixture
def client_config():
    """S3 client configuration matching the mocked account."""
    return S3ClientConfig(
        access_key_id="test_key",
        secret_access_key="test_secret",
        region_name="us-east-1",
    )


@pytest.fixture
def store(s3_client, client_config):
    """Object store writing to the mocked bucket."""
    return S3ObjectStore(client_config)
