"""
Unit tests for the upload domain logic.

No storage backend involved: key derivation, content-type inference,
URL building and the bucket policy are all pure functions.
"""

import json
import re
from uuid import UUID

import pytest

from asset_store.core.uploads import (
    DEFAULT_CONTENT_TYPE,
    UploadRequest,
    build_public_url,
    generate_object_key,
    infer_content_type,
    key_from_public_url,
    public_read_policy,
    public_read_policy_json,
)


UUID_PREFIX = re.compile(
    r"^([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})-(.*)$"
)


# ---------------------------------------------------------------------------
# Content Type Tests
# ---------------------------------------------------------------------------

class TestInferContentType:
    """Tests for extension-based content-type inference."""

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("photo.avif", "image/avif"),
            ("photo.png", "image/png"),
            ("photo.jpg", "image/jpeg"),
            ("photo.jpeg", "image/jpeg"),
            ("photo.gif", "image/gif"),
        ],
    )
    def test_known_extensions_map_to_image_types(self, filename, expected):
        assert infer_content_type(filename) == expected

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("CAT.PNG", "image/png"),
            ("cat.Png", "image/png"),
            ("x.JPEG", "image/jpeg"),
            ("IMG_0001.JPG", "image/jpeg"),
            ("a.GiF", "image/gif"),
            ("b.AVIF", "image/avif"),
        ],
    )
    def test_matching_is_case_insensitive(self, filename, expected):
        """Uppercase extensions are common from phone cameras."""
        assert infer_content_type(filename) == expected

    @pytest.mark.parametrize(
        "filename",
        ["doc", "notes.txt", "archive.tar.gz", "image.webp", "trailing.", "png"],
    )
    def test_other_or_missing_extensions_are_binary(self, filename):
        assert infer_content_type(filename) == DEFAULT_CONTENT_TYPE

    def test_only_last_suffix_counts(self):
        """A .png.exe is not an image."""
        assert infer_content_type("evil.png.exe") == DEFAULT_CONTENT_TYPE
        assert infer_content_type("backup.exe.png") == "image/png"

    def test_bytes_are_not_sniffed(self):
        """A mislabelled extension wins over the actual content."""
        request = UploadRequest(original_name="fake.gif", content=b"\x89PNG\r\n\x1a\n")
        assert infer_content_type(request.original_name) == "image/gif"


# ---------------------------------------------------------------------------
# Object Key Tests
# ---------------------------------------------------------------------------

class TestGenerateObjectKey:
    """Tests for object key derivation."""

    def test_key_is_uuid_dash_original_name(self):
        key = generate_object_key("cat.png")

        match = UUID_PREFIX.match(key)
        assert match is not None
        assert UUID(match.group(1)).version == 4
        assert match.group(2) == "cat.png"

    def test_original_name_is_kept_verbatim(self):
        """Spaces, dashes and extra dots are not normalized."""
        name = "My Holiday - day-2.final.JPG"
        key = generate_object_key(name)
        assert key.endswith("-" + name)
        assert UUID_PREFIX.match(key).group(2) == name

    def test_same_filename_gives_distinct_keys(self):
        keys = {generate_object_key("cat.png") for _ in range(100)}
        assert len(keys) == 100


# ---------------------------------------------------------------------------
# Upload Request Tests
# ---------------------------------------------------------------------------

class TestUploadRequest:
    """Tests for the UploadRequest value object."""

    def test_declared_extension_is_lowercase_suffix(self):
        request = UploadRequest(original_name="Cat.PNG", content=b"x")
        assert request.declared_extension == "png"

    def test_declared_extension_absent_without_dot(self):
        request = UploadRequest(original_name="doc", content=b"x")
        assert request.declared_extension is None

    def test_size_bytes(self):
        request = UploadRequest(original_name="a.gif", content=b"12345")
        assert request.size_bytes == 5

    def test_empty_content_is_allowed(self):
        request = UploadRequest(original_name="empty.png", content=b"")
        assert request.size_bytes == 0

    def test_rejects_empty_name(self):
        with pytest.raises(ValueError, match="original_name"):
            UploadRequest(original_name="", content=b"x")

    def test_rejects_non_bytes_content(self):
        with pytest.raises(ValueError, match="byte buffer"):
            UploadRequest(original_name="a.png", content="not bytes")


# ---------------------------------------------------------------------------
# URL Tests
# ---------------------------------------------------------------------------

class TestPublicUrls:
    """Tests for building and parsing public object URLs."""

    def test_url_is_base_bucket_key(self):
        url = build_public_url("http://localhost:9000", "posts", "abc-cat.png")
        assert url == "http://localhost:9000/posts/abc-cat.png"

    def test_trailing_slash_on_base_is_ignored(self):
        url = build_public_url("http://cdn.example.com/", "posts", "k")
        assert url == "http://cdn.example.com/posts/k"

    def test_key_from_url_inverts_build(self):
        key = generate_object_key("cat.png")
        url = build_public_url("http://localhost:9000", "posts", key)
        assert key_from_public_url("http://localhost:9000", "posts", url) == key

    def test_key_from_url_rejects_other_bucket(self):
        with pytest.raises(ValueError, match="posts"):
            key_from_public_url(
                "http://localhost:9000", "posts", "http://localhost:9000/avatars/k.png"
            )

    def test_key_from_url_rejects_bucket_root(self):
        with pytest.raises(ValueError):
            key_from_public_url("http://localhost:9000", "posts", "http://localhost:9000/posts/")


# ---------------------------------------------------------------------------
# Bucket Policy Tests
# ---------------------------------------------------------------------------

class TestPublicReadPolicy:
    """Tests for the anonymous-read policy document."""

    def test_policy_grants_anonymous_get_object(self):
        policy = public_read_policy("posts")

        assert policy["Version"] == "2012-10-17"
        [statement] = policy["Statement"]
        assert statement == {
            "Effect": "Allow",
            "Principal": "*",
            "Action": ["s3:GetObject"],
            "Resource": ["arn:aws:s3:::posts/*"],
        }

    def test_policy_json_is_stable(self):
        """Reapplying is harmless because the document never changes."""
        assert public_read_policy_json("posts") == public_read_policy_json("posts")
        assert json.loads(public_read_policy_json("posts")) == public_read_policy("posts")
