"""
Infrastructure layer - external service integrations.

- storage: Object storage (MinIO/S3)

These wrappers translate between boto3 calls and our upload types.
"""
