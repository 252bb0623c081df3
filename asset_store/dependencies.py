"""
Building the object store from settings.

The HTTP layer calls get_object_store() instead of constructing
stores itself, so tests can swap in the in-memory store.
"""

import logging
from typing import Optional

from .config.logging import configure_logging
from .config.settings import Settings, get_settings
from .infrastructure.storage.client import ObjectStoreClient, create_object_store

logger = logging.getLogger(__name__)

# Shared in-memory store, so uploads persist across calls in mock mode
_mock_object_store: Optional[ObjectStoreClient] = None


def get_object_store(settings: Optional[Settings] = None) -> ObjectStoreClient:
    """
    Provide the object store for the configured bucket.

    Returns the MinIO-backed store, or one shared in-memory store
    when MINIO_MOCK_MODE is set.
    """
    global _mock_object_store

    settings = settings or get_settings()

    if settings.minio_mock_mode:
        if _mock_object_store is None:
            _mock_object_store = create_object_store(
                settings.to_bucket_config(), mock_mode=True
            )
            logger.info("Created shared in-memory object store")
        return _mock_object_store

    missing = settings.validate_required_fields()
    if missing:
        logger.warning(
            "Storage credentials not configured, using default credential chain",
            extra={"missing_fields": missing},
        )

    return create_object_store(settings.to_bucket_config())


def reset_mock_object_store() -> None:
    """Drop the shared in-memory store (tests)."""
    global _mock_object_store
    _mock_object_store = None


def init_app(settings: Optional[Settings] = None) -> ObjectStoreClient:
    """
    Startup hook for the service hosting the store.

    Applies LOG_LEVEL, reports missing credentials and returns the store
    the request handlers should share.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    logger.info(
        "Asset store starting",
        extra={
            "bucket": settings.minio_bucket_name,
            "endpoint": settings.minio_endpoint,
            "mock_mode": settings.minio_mock_mode,
        },
    )

    return get_object_store(settings)
