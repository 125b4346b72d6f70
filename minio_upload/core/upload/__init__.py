"""
Upload provider contract and its S3-compatible implementation.
"""

from .models import (
    DAY_IN_MINUTES,
    PART_SIZE,
    QUEUE_SIZE,
    ProviderConfig,
    UploadedFile,
    UploadResult,
)
from .provider import (
    NO_CLIENT_LIBRARY,
    DeleteFailed,
    DependencyUnavailable,
    ObjectStorageClient,
    ObjectStorageProvider,
    PathFailed,
    ProviderError,
    UploadFailed,
    UploadProvider,
)

__all__ = [
    "DAY_IN_MINUTES",
    "PART_SIZE",
    "QUEUE_SIZE",
    "ProviderConfig",
    "UploadedFile",
    "UploadResult",
    "NO_CLIENT_LIBRARY",
    "DeleteFailed",
    "DependencyUnavailable",
    "ObjectStorageClient",
    "ObjectStorageProvider",
    "PathFailed",
    "ProviderError",
    "UploadFailed",
    "UploadProvider",
]
