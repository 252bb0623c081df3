"""
Object storage for uploaded images.

MinIO (or any S3-compatible service) via boto3, plus an in-memory
store for local development without a running MinIO.
"""

from .client import (
    BucketConfig,
    BucketCreationFailed,
    DeleteFailed,
    InMemoryObjectStore,
    ObjectStore,
    ObjectStoreClient,
    StorageError,
    StorageUnavailable,
    UploadFailed,
    create_object_store,
)

__all__ = [
    "BucketConfig",
    "BucketCreationFailed",
    "DeleteFailed",
    "InMemoryObjectStore",
    "ObjectStore",
    "ObjectStoreClient",
    "StorageError",
    "StorageUnavailable",
    "UploadFailed",
    "create_object_store",
]
