"""
Object storage integration for uploaded files.

Supports MinIO and other S3-compatible stores via boto3.
Includes mock mode for local development without a running store.
"""

from .client import (
    MockObjectStorageClient,
    S3ObjectStorageClient,
    create_object_storage_client,
    create_upload_provider,
)

__all__ = [
    "MockObjectStorageClient",
    "S3ObjectStorageClient",
    "create_object_storage_client",
    "create_upload_provider",
]
