"""
MinIO connection settings for the image bucket.

Every field maps to a MINIO_* environment variable (or a line in .env),
the names the existing deployment already uses. Without any of them
set, the store targets the "posts" bucket on a local MinIO at
http://localhost:9000.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..infrastructure.storage.client import BucketConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # MinIO / S3 Storage Configuration
    minio_bucket_name: str = Field(
        default="posts",
        description="Bucket holding uploaded post images"
    )
    minio_endpoint: str = Field(
        default="http://localhost:9000",
        description="S3 API endpoint of the MinIO server"
    )
    minio_access_key: Optional[str] = Field(
        default=None,
        description="MinIO access key"
    )
    minio_secret_key: Optional[str] = Field(
        default=None,
        description="MinIO secret key"
    )
    minio_region: str = Field(
        default="us-east-1",
        description="Signing region. MinIO accepts any value."
    )
    minio_public_url: Optional[str] = Field(
        default=None,
        description="Base for returned image URLs. Defaults to the endpoint."
    )
    minio_mock_mode: bool = Field(
        default=False,
        description="Use in-memory storage instead of MinIO. Enables local dev without object storage."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def public_url(self) -> str:
        """Base URL for links handed back to clients."""
        return (self.minio_public_url or self.minio_endpoint).rstrip("/")

    def validate_required_fields(self) -> list[str]:
        """
        Return the names of missing credentials.

        Nothing is required in mock mode.
        """
        if self.minio_mock_mode:
            return []

        missing = []
        if not self.minio_access_key:
            missing.append("MINIO_ACCESS_KEY")
        if not self.minio_secret_key:
            missing.append("MINIO_SECRET_KEY")
        return missing

    def to_bucket_config(self) -> BucketConfig:
        return BucketConfig(
            name=self.minio_bucket_name,
            endpoint=self.minio_endpoint,
            access_key=self.minio_access_key,
            secret_key=self.minio_secret_key,
            region=self.minio_region,
            path_style=True,
            public_url=self.public_url,
        )


@lru_cache()
def get_settings() -> Settings:
    """Read the environment once; cache_clear() forces a re-read."""
    return Settings()
