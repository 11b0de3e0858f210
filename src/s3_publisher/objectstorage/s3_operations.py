"""Object store boundary backed by S3.

The publisher only needs ``put_object``; listing, reading, and deleting are
used to verify and clean up what was published.
"""

from typing import Any, Dict, Iterable, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from s3_publisher.core import get_logger
from s3_publisher.core.exceptions import ObjectStoreError, UploadError

from .clients import S3ClientConfig, S3ClientManager

logger = get_logger(__name__)

PUBLIC_READ = "public-read"

# DeleteObjects accepts at most this many keys per request
_DELETE_BATCH_SIZE = 1000


class ObjectStore(Protocol):
    """Protocol for the storage backend a publisher writes to."""

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        acl: str = PUBLIC_READ,
    ) -> Dict[str, Any]:
        """Store body under bucket/key and return the backend response."""
        ...


class S3ObjectStore:
    """S3 implementation of the object store boundary."""

    def __init__(
        self,
        config: Optional[S3ClientConfig] = None,
        client_manager: Optional[S3ClientManager] = None,
    ):
        self.client_manager = client_manager or S3ClientManager(
            config or S3ClientConfig()
        )

    @property
    def client(self):
        return self.client_manager.client

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        acl: str = PUBLIC_READ,
    ) -> Dict[str, Any]:
        """Upload body as a single object.

        Raises:
            UploadError: If the request fails
        """
        try:
            response = self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ACL=acl,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            error_msg = f"Failed to put object 's3://{bucket}/{key}': {e}"
            logger.error(error_msg, bucket=bucket, key=key, error=str(e))
            raise UploadError(error_msg, key=key) from e

        logger.debug("Object stored", bucket=bucket, key=key, etag=response.get("ETag"))
        return response

    def list_objects(self, bucket: str, prefix: str = "") -> list[str]:
        """List object keys under a prefix.

        Raises:
            ObjectStoreError: If listing fails
        """
        try:
            keys = []
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            error_msg = f"Failed to list objects under 's3://{bucket}/{prefix}': {e}"
            logger.error(error_msg, bucket=bucket, prefix=prefix, error=str(e))
            raise ObjectStoreError(error_msg) from e

        logger.info("Objects listed", bucket=bucket, prefix=prefix, object_count=len(keys))
        return keys

    def get_object(self, bucket: str, key: str) -> Dict[str, Any]:
        """Fetch an object; the returned ``Body`` is already read into bytes.

        Raises:
            ObjectStoreError: If the object cannot be fetched
        """
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            body = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            error_msg = f"Failed to get object 's3://{bucket}/{key}': {e}"
            logger.error(error_msg, bucket=bucket, key=key, error=str(e))
            raise ObjectStoreError(error_msg) from e

        return {
            "Body": body,
            "ContentType": response.get("ContentType"),
            "ETag": response.get("ETag"),
        }

    def delete_objects(self, bucket: str, keys: Iterable[str]) -> int:
        """Delete keys in batches and return how many were deleted.

        Raises:
            ObjectStoreError: If a delete request fails or reports errors
        """
        keys = list(keys)
        deleted = 0

        for start in range(0, len(keys), _DELETE_BATCH_SIZE):
            batch = keys[start : start + _DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": key} for key in batch]},
                )
            except (ClientError, BotoCoreError) as e:
                error_msg = f"Failed to delete objects from '{bucket}': {e}"
                logger.error(error_msg, bucket=bucket, error=str(e))
                raise ObjectStoreError(error_msg) from e

            errors = response.get("Errors", [])
            if errors:
                error_msg = (
                    f"Failed to delete {len(errors)} objects from '{bucket}': "
                    f"{errors[0].get('Message', errors[0].get('Code'))}"
                )
                logger.error(error_msg, bucket=bucket, error_count=len(errors))
                raise ObjectStoreError(error_msg)

            deleted += len(response.get("Deleted", []))

        logger.info("Objects deleted", bucket=bucket, object_count=deleted)
        return deleted


def list_s3_objects(s3_path: str, store: S3ObjectStore) -> list[str]:
    """List objects under an ``s3://bucket/prefix`` path as full S3 URIs."""
    bucket, prefix = S3ClientManager.parse_s3_path(s3_path)
    return [f"s3://{bucket}/{key}" for key in store.list_objects(bucket, prefix)]
