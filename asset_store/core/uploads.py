"""
Upload domain logic.

Everything here is pure: no network, no boto3, no settings lookup.
The storage clients compose these pieces:

1. Validate the incoming file (UploadRequest)
2. Derive a collision-free object key
3. Infer the content type from the filename extension
4. Build the public URL once the object is stored

Content type comes from the extension only. We never sniff the bytes,
so a PNG uploaded as "photo.gif" is tagged image/gif. Callers depend on
the current mapping, so keep it exactly as is.
"""

import json
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4


DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    "avif": "image/avif",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}

POLICY_VERSION = "2012-10-17"


@dataclass(frozen=True)
class UploadRequest:
    """
    A file handed to us by the caller.

    Transient: the store reads it once and never keeps a reference.
    """
    original_name: str
    content: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.original_name, str) or not self.original_name:
            raise ValueError("original_name must be a non-empty string")
        if not isinstance(self.content, (bytes, bytearray, memoryview)):
            raise ValueError("content must be a byte buffer")

    @property
    def declared_extension(self) -> Optional[str]:
        """Lowercase suffix after the last dot, or None if there is no dot."""
        return extension_of(self.original_name)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class UploadResult:
    """Where an uploaded object ended up."""
    url: str
    key: str
    content_type: str
    size_bytes: int


def extension_of(filename: str) -> Optional[str]:
    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[-1].lower()


def infer_content_type(filename: str) -> str:
    """
    Map a filename to a MIME type by its extension.

    Matching is case-insensitive. Unknown or missing extensions fall
    back to generic binary.
    """
    ext = extension_of(filename)
    if ext is None:
        return DEFAULT_CONTENT_TYPE
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def generate_object_key(original_name: str) -> str:
    """
    Build a fresh key of the form "<uuid4>-<original_name>".

    The UUID prefix keeps two uploads of the same filename apart.
    """
    return f"{uuid4()}-{original_name}"


def build_public_url(public_base: str, bucket_name: str, key: str) -> str:
    """
    Construct the address an object is served from.

    This is string assembly only. Nothing checks that the object is
    actually reachable there.
    """
    return f"{public_base.rstrip('/')}/{bucket_name}/{key}"


def key_from_public_url(public_base: str, bucket_name: str, url: str) -> str:
    """Recover the object key from a URL produced by build_public_url."""
    prefix = f"{public_base.rstrip('/')}/{bucket_name}/"
    if not url.startswith(prefix) or len(url) == len(prefix):
        raise ValueError(f"URL does not point into bucket {bucket_name!r}: {url}")
    return url[len(prefix):]


def public_read_policy(bucket_name: str) -> dict:
    """
    Access document granting anonymous GetObject on every object in the bucket.

    The document is static for a given bucket, so applying it twice is harmless.
    """
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": "*",
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
            }
        ],
    }


def public_read_policy_json(bucket_name: str) -> str:
    return json.dumps(public_read_policy(bucket_name))
