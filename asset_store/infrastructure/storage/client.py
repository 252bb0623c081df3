"""
Object storage client for uploaded images.

Talks to MinIO (or any S3-compatible service) through boto3 with
path-style addressing. Mock mode keeps objects in memory so the
upload flow can be exercised without a running MinIO.

Bucket lifecycle:

    Unknown --head--> Exists
    Unknown --head 404--> Missing --create + policy--> Created

The public-read policy is only attached to buckets we create ourselves.
We don't cache the bucket state: every upload probes again. Concurrent
first uploads may both try to create the bucket; that relies on
create-bucket and put-bucket-policy being idempotent on the server side.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from asset_store.core.uploads import (
    UploadRequest,
    UploadResult,
    build_public_url,
    generate_object_key,
    infer_content_type,
    key_from_public_url,
    public_read_policy,
    public_read_policy_json,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})

# Another concurrent upload created the bucket between our probe and create.
ALREADY_OWNED_CODES = frozenset({"BucketAlreadyOwnedByYou"})


class StorageError(Exception):
    """Raised when storage operations fail."""

    def __init__(self, message: str, bucket: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class StorageUnavailable(StorageError):
    """Bucket probe failed for a reason other than not-found."""
    pass


class BucketCreationFailed(StorageError):
    """Bucket was missing and creating it (or attaching its policy) failed."""
    pass


class UploadFailed(StorageError):
    pass


class DeleteFailed(StorageError):
    pass


@dataclass(frozen=True)
class BucketConfig:
    """
    Connection settings for one bucket.

    Frozen because the store owns it for its whole lifetime. Credentials
    are all-or-nothing: give both keys or neither (default boto3 chain).
    """
    name: str
    endpoint: str
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"  # MinIO ignores it but SigV4 needs one
    path_style: bool = True
    public_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("BucketConfig.name must be a non-empty string")
        if not self.endpoint or not self.endpoint.strip():
            raise ValueError("BucketConfig.endpoint must be a non-empty string")
        has_access = bool(self.access_key and self.access_key.strip())
        has_secret = bool(self.secret_key and self.secret_key.strip())
        if has_access != has_secret:
            raise ValueError(
                "BucketConfig requires both access_key and secret_key, or neither"
            )

    @property
    def public_base(self) -> str:
        """Base for returned URLs; falls back to the API endpoint."""
        return (self.public_url or self.endpoint).rstrip("/")


class ObjectStoreClient(Protocol):
    """
    Protocol for the upload/delete surface.

    Callers (HTTP handlers, services) depend on this so tests can hand
    in the in-memory store.
    """

    async def ensure_bucket(self) -> None:
        """Make sure the bucket exists, creating it public-read if missing."""
        ...

    async def upload(self, request: UploadRequest) -> UploadResult:
        """Store the file under a fresh key and return its public URL."""
        ...

    async def delete(self, key: str) -> None:
        """Remove an object. Missing keys are not an error."""
        ...

    def key_from_url(self, url: str) -> str:
        """Recover the object key from a URL this store returned."""
        ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def is_not_found(error: ClientError) -> bool:
    """True when a ClientError means the bucket (or object) doesn't exist."""
    code = _error_code(error)
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in NOT_FOUND_CODES or status == 404


def _require_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("key must be a non-empty string")


class ObjectStore:
    """
    MinIO/S3 object store bound to a single bucket.

    boto3 is synchronous, so every call goes through asyncio.to_thread.
    The boto3 client itself is thread-safe and shared by all outstanding
    operations; this class holds no other mutable state.
    """

    def __init__(self, config: BucketConfig, s3_client: Any = None) -> None:
        self._config = config

        if s3_client is None:
            s3_client = self._build_client(config)
        self._s3_client = s3_client

        logger.info(
            "Initialized object store",
            extra={"bucket": config.name, "endpoint": config.endpoint},
        )

    @staticmethod
    def _build_client(config: BucketConfig) -> Any:
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if config.path_style else "auto"},
        )

        client_kwargs: dict[str, Any] = {
            "endpoint_url": config.endpoint,
            "region_name": config.region,
            "config": boto_config,
        }
        if config.access_key:
            client_kwargs["aws_access_key_id"] = config.access_key
        if config.secret_key:
            client_kwargs["aws_secret_access_key"] = config.secret_key

        return boto3.client("s3", **client_kwargs)

    @property
    def bucket_name(self) -> str:
        return self._config.name

    async def ensure_bucket(self) -> None:
        """
        Probe the bucket and create it if it's missing.

        Only a not-found probe leads to creation. Anything else (bad
        credentials, connection refused, 5xx) is StorageUnavailable and
        we don't try to create.
        """
        bucket = self._config.name

        try:
            await asyncio.to_thread(self._s3_client.head_bucket, Bucket=bucket)
            logger.debug("Bucket already exists", extra={"bucket": bucket})
            return
        except ClientError as e:
            if not is_not_found(e):
                logger.error(
                    "Bucket probe failed for %s",
                    bucket,
                    extra={"bucket": bucket, "error": str(e)},
                )
                raise StorageUnavailable(f"Bucket probe failed: {e}", bucket) from e
        except BotoCoreError as e:
            logger.error(
                "Bucket probe failed for %s",
                bucket,
                extra={"bucket": bucket, "error": str(e)},
            )
            raise StorageUnavailable(f"Bucket probe failed: {e}", bucket) from e

        try:
            await asyncio.to_thread(self._s3_client.create_bucket, Bucket=bucket)
            logger.info("Created bucket", extra={"bucket": bucket})
        except ClientError as e:
            if _error_code(e) not in ALREADY_OWNED_CODES:
                logger.error(
                    "Failed to create bucket %s",
                    bucket,
                    extra={"bucket": bucket, "error": str(e)},
                )
                raise BucketCreationFailed(f"Bucket creation failed: {e}", bucket) from e
            logger.debug("Bucket created concurrently", extra={"bucket": bucket})
        except BotoCoreError as e:
            logger.error(
                "Failed to create bucket %s",
                bucket,
                extra={"bucket": bucket, "error": str(e)},
            )
            raise BucketCreationFailed(f"Bucket creation failed: {e}", bucket) from e

        await self.set_public_bucket_policy()

    async def set_public_bucket_policy(self) -> None:
        """Attach the anonymous-read policy to the bucket."""
        bucket = self._config.name

        try:
            await asyncio.to_thread(
                self._s3_client.put_bucket_policy,
                Bucket=bucket,
                Policy=public_read_policy_json(bucket),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to apply public bucket policy to %s",
                bucket,
                extra={"bucket": bucket, "error": str(e)},
            )
            raise BucketCreationFailed(f"Policy update failed: {e}", bucket) from e

        logger.info("Applied public read policy", extra={"bucket": bucket})

    async def upload(self, request: UploadRequest) -> UploadResult:
        """
        Store a file and return where it can be fetched.

        Key format: {uuid4}-{original_name}
        The URL is assembled from the public base, bucket and key; we
        don't check that it resolves.
        """
        await self.ensure_bucket()

        bucket = self._config.name
        key = generate_object_key(request.original_name)
        content_type = infer_content_type(request.original_name)

        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=bucket,
                Key=key,
                Body=bytes(request.content),
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to upload object %s to bucket %s",
                key,
                bucket,
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise UploadFailed(f"Upload failed: {e}", bucket, key) from e

        logger.info(
            "Uploaded object",
            extra={
                "bucket": bucket,
                "key": key,
                "content_type": content_type,
                "size_bytes": request.size_bytes,
            },
        )

        return UploadResult(
            url=build_public_url(self._config.public_base, bucket, key),
            key=key,
            content_type=content_type,
            size_bytes=request.size_bytes,
        )

    async def delete(self, key: str) -> None:
        """
        Delete an object by key.

        S3 delete is idempotent, so a key that was never stored is fine.
        Transport and auth failures surface as DeleteFailed.
        """
        _require_key(key)
        bucket = self._config.name

        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=bucket,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to delete object %s from bucket %s",
                key,
                bucket,
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise DeleteFailed(f"Delete failed: {e}", bucket, key) from e

        logger.info("Deleted object", extra={"bucket": bucket, "key": key})

    def key_from_url(self, url: str) -> str:
        return key_from_public_url(self._config.public_base, self._config.name, url)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class InMemoryObjectStore:
    """
    In-memory stand-in for ObjectStore.

    Follows the same lifecycle (probe, create, policy) so call counts
    match the real store, and returns URLs built the same way. Nothing
    is actually served at those URLs.
    """

    def __init__(self, config: BucketConfig) -> None:
        self._config = config
        self.bucket_exists = False
        self.policy: Optional[dict] = None
        # {key: (content, content_type)}
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.head_calls = 0
        self.create_calls = 0
        self.policy_calls = 0
        logger.info("Initialized in-memory object store", extra={"bucket": config.name})

    @property
    def bucket_name(self) -> str:
        return self._config.name

    async def head_bucket(self) -> bool:
        """Probe the bucket; False stands in for a 404."""
        self.head_calls += 1
        return self.bucket_exists

    async def ensure_bucket(self) -> None:
        if await self.head_bucket():
            return
        self.bucket_exists = True
        self.create_calls += 1
        logger.debug("Created bucket in mock storage", extra={"bucket": self._config.name})
        await self.set_public_bucket_policy()

    async def set_public_bucket_policy(self) -> None:
        self.policy = public_read_policy(self._config.name)
        self.policy_calls += 1

    async def upload(self, request: UploadRequest) -> UploadResult:
        await self.ensure_bucket()

        key = generate_object_key(request.original_name)
        content_type = infer_content_type(request.original_name)
        self.objects[key] = (bytes(request.content), content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": request.size_bytes},
        )

        return UploadResult(
            url=build_public_url(self._config.public_base, self._config.name, key),
            key=key,
            content_type=content_type,
            size_bytes=request.size_bytes,
        )

    async def delete(self, key: str) -> None:
        _require_key(key)
        self.objects.pop(key, None)

    def key_from_url(self, url: str) -> str:
        return key_from_public_url(self._config.public_base, self._config.name, url)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: BucketConfig,
    mock_mode: bool = False,
) -> ObjectStoreClient:
    """
    Create the object store for a bucket.

    Args:
        config: Bucket connection settings
        mock_mode: If True, return the in-memory store

    Returns:
        ObjectStoreClient implementation (MinIO/S3 or in-memory)
    """
    if mock_mode:
        return InMemoryObjectStore(config)

    return ObjectStore(config)
