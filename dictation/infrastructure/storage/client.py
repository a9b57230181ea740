"""
Object storage client for video clips.

Supports Cloudflare R2 (S3-compatible) with mock mode for local development.
Clips are served to learners straight from the bucket's public CDN URL, so
the client returns public URLs rather than storage paths.

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for R2/S3-compatible storage.

    public_url is the CDN origin that serves the bucket, e.g.
    https://clips.example.com. Object URLs are built as {public_url}/{key}.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    public_url: str
    region: str = "auto"  # R2 uses 'auto' for region


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def upload_object(self, data: bytes, key: str, content_type: str) -> str:
        """Upload object and return its public URL."""
        ...

    async def delete_object(self, key: str) -> None:
        """Delete object by key."""
        ...

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        """Generate temporary download URL."""
        ...

    async def object_exists(self, key: str) -> bool:
        """Check whether an object is stored under key."""
        ...

    async def list_keys(self, prefix: str = "") -> list[str]:
        """List every key in the bucket under prefix."""
        ...

    async def test_connection(self) -> bool:
        """True if the bucket is reachable with the configured credentials."""
        ...

    def public_url(self, key: str) -> str:
        """Public CDN URL for key."""
        ...


class R2StorageClient:
    """
    Cloudflare R2 object storage client.

    Uses boto3 because R2 is S3-compatible. Methods are async to match the
    Protocol even though boto3 is synchronous.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize R2 client with boto3.

        boto3 is imported here (not at module level) so mock mode and the
        test suite never load it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for R2 storage. Install with: pip install boto3"
            )

        self._config = config

        # R2 requires v4 signatures and path-style addressing
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized R2 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    def public_url(self, key: str) -> str:
        return f"{self._config.public_url.rstrip('/')}/{key}"

    async def upload_object(self, data: bytes, key: str, content_type: str) -> str:
        """Upload a clip to R2 and return its public CDN URL."""
        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"storage_key": key, "error": str(e)}
            )
            raise StorageError(f"Failed to upload file to R2: {e}")

        logger.debug(
            "Uploaded object",
            extra={"storage_key": key, "size_bytes": len(data)}
        )
        return self.public_url(key)

    async def delete_object(self, key: str) -> None:
        """Delete an object from R2. Deleting a missing key is not an error."""
        try:
            self._s3_client.delete_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except Exception as e:
            logger.error(
                "Failed to delete object",
                extra={"storage_key": key, "error": str(e)}
            )
            raise StorageError(f"Failed to delete file from R2: {e}")

        logger.info("Deleted object", extra={"storage_key": key})

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        """
        Generate a temporary download URL.

        Default 1-hour expiry covers a practice session.
        """
        try:
            return self._s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self._config.bucket_name,
                    'Key': key,
                },
                ExpiresIn=expiry_seconds,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"storage_key": key, "error": str(e)}
            )
            raise StorageError(f"Failed to generate presigned URL: {e}")

    async def object_exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self._s3_client.head_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            raise StorageError(f"Failed to check object: {e}")

    async def list_keys(self, prefix: str = "") -> list[str]:
        """List keys page by page; buckets can exceed the 1000-key page size."""
        keys: list[str] = []
        try:
            paginator = self._s3_client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self._config.bucket_name, Prefix=prefix):
                keys.extend(obj['Key'] for obj in page.get('Contents', []))
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"Failed to list objects: {e}")
        return keys

    async def test_connection(self) -> bool:
        try:
            self._s3_client.head_bucket(Bucket=self._config.bucket_name)
            return True
        except Exception as e:
            logger.error("R2 connection test failed", extra={"error": str(e)})
            return False


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are stored in a dictionary and URLs use a mock:// scheme.
    Failures can be injected for tests via fail_uploads / fail_deletes.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, public_url: str = "mock://storage") -> None:
        # {key: (bytes, content_type)}
        self._objects: dict[str, tuple[bytes, str]] = {}
        self._public_url = public_url.rstrip("/")
        self.fail_uploads = False
        self.fail_deletes = False
        self.upload_calls = 0
        self.delete_calls = 0
        logger.info("Initialized mock storage client (in-memory)")

    def public_url(self, key: str) -> str:
        return f"{self._public_url}/{key}"

    async def upload_object(self, data: bytes, key: str, content_type: str) -> str:
        self.upload_calls += 1
        if self.fail_uploads:
            raise StorageError("Mock upload failure")
        self._objects[key] = (data, content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"storage_key": key, "size_bytes": len(data)}
        )
        return self.public_url(key)

    async def delete_object(self, key: str) -> None:
        self.delete_calls += 1
        if self.fail_deletes:
            raise StorageError("Mock delete failure")
        self._objects.pop(key, None)

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")
        return f"{self.public_url(key)}?expires={expiry_seconds}"

    async def object_exists(self, key: str) -> bool:
        return key in self._objects

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._objects if key.startswith(prefix))

    async def test_connection(self) -> bool:
        return True

    def get_object(self, key: str) -> tuple[bytes, str]:
        """Return (data, content_type) for key. Test helper."""
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")
        return self._objects[key]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (R2 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2StorageClient(config)
