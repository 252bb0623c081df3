"""
Asset Store - public image hosting on an S3-compatible bucket.

This package contains:
- core: Key derivation, content types, URLs, bucket policy
- infrastructure: MinIO/S3 and in-memory object stores
- config: Settings and logging setup
- dependencies: Building a store from settings
"""

__version__ = "0.1.0"
