"""
Domain models for the upload provider.

These models describe what the upload feature hands to a storage backend
and what it gets back. They have no dependency on boto3, FastAPI or any
other infrastructure package.
"""

from dataclasses import dataclass
from typing import Optional


# One day. Signed links stay valid this long unless configured otherwise.
DAY_IN_MINUTES = 24 * 60

# Multipart upload tuning: 5 MiB parts, up to 10 parts in flight.
PART_SIZE = 5 * 1024 * 1024
QUEUE_SIZE = 10

PUBLIC_READ_ACL = "public-read"


@dataclass(frozen=True)
class ProviderConfig:
    """
    Connection and policy settings for an S3-compatible bucket.

    Credentials are optional. When they are omitted the object-storage
    client falls back to its own credential chain (environment variables,
    shared config files, instance metadata).

    `expires` is the lifetime of signed links in minutes. When it is not
    given it defaults to one day. Zero switches the provider to public
    objects: uploads are marked `public-read` and paths are plain URLs.
    """
    endpoint: str
    bucket: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    expires: Optional[int] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.endpoint or not self.endpoint.strip():
            raise ValueError("endpoint is required")
        if not self.bucket or not self.bucket.strip():
            raise ValueError("bucket is required")
        if self.expires is not None and self.expires < 0:
            raise ValueError("expires cannot be negative")

    @property
    def expires_minutes(self) -> int:
        """Effective link lifetime in minutes."""
        if self.expires is None:
            return DAY_IN_MINUTES
        return self.expires

    @property
    def base_url(self) -> str:
        """Endpoint without a trailing slash, used to build object URLs."""
        return self.endpoint.rstrip("/")


@dataclass(frozen=True)
class UploadedFile:
    """
    A file the HTTP layer has already written to local disk.

    Only `path` is needed to upload. `type` becomes the object's
    Content-Type when present.
    """
    path: str
    name: Optional[str] = None
    type: Optional[str] = None
    size: Optional[int] = None


@dataclass(frozen=True)
class UploadResult:
    """Confirmation returned once an object has been stored."""
    bucket: str
    key: str
    location: str
    etag: Optional[str] = None
