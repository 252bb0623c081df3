"""
Core upload logic - framework-agnostic and free of network calls.

Key derivation, content-type inference, URL building and the
public-read policy document all live here so they can be tested
without a storage backend.
"""

from .uploads import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    UploadRequest,
    UploadResult,
    build_public_url,
    generate_object_key,
    infer_content_type,
    key_from_public_url,
    public_read_policy,
)

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "UploadRequest",
    "UploadResult",
    "build_public_url",
    "generate_object_key",
    "infer_content_type",
    "key_from_public_url",
    "public_read_policy",
]
