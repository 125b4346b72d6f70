"""
Object storage upload provider.

Translates the upload feature's three requests (store a temp file, delete
an object, resolve an access path) into calls on an object-storage client,
applying the configured bucket and the public/signed link policy.

The provider never talks to S3 itself. It is handed an ObjectStorageClient
(or a factory for one) at construction time, which keeps this module free
of boto3 and lets tests substitute an in-memory client.
"""

import logging
import os
from typing import Any, BinaryIO, Callable, Optional, Protocol, Union

from .models import (
    PART_SIZE,
    PUBLIC_READ_ACL,
    QUEUE_SIZE,
    ProviderConfig,
    UploadedFile,
    UploadResult,
)

logger = logging.getLogger(__name__)


NO_CLIENT_LIBRARY = "object storage client library not installed"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ProviderError(Exception):
    """Base class for upload provider failures."""
    pass


class DependencyUnavailable(ProviderError):
    """Raised at construction when no object-storage client can be created."""

    def __init__(self, message: str = NO_CLIENT_LIBRARY) -> None:
        super().__init__(message)


class UploadFailed(ProviderError):
    """Raised when the object-storage client rejects an upload."""
    pass


class DeleteFailed(ProviderError):
    """Raised when the object-storage client rejects a delete."""
    pass


class PathFailed(ProviderError):
    """Raised when a signed URL cannot be produced."""
    pass


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectStorageClient(Protocol):
    """
    Interface for the S3-protocol client the provider delegates to.

    Implementations live in infrastructure.storage: a boto3 client for
    real buckets and an in-memory client for local development.
    """

    async def upload(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        part_size: int,
        concurrency: int,
        acl: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> UploadResult:
        """Stream `stream` to `bucket/key` as a multipart upload."""
        ...

    async def delete_object(self, bucket: str, key: str) -> dict[str, Any]:
        """Delete a single object and return the store's response."""
        ...

    async def get_signed_url(
        self,
        operation: str,
        bucket: str,
        key: str,
        expiry_seconds: int,
    ) -> str:
        """Return a presigned URL for `operation` on `bucket/key`."""
        ...


class UploadProvider(Protocol):
    """
    The capability set an upload feature needs from a storage backend.

    Any backend (S3, MinIO, local disk) can implement these three
    coroutines independently; shared values such as the bucket come in
    through configuration.
    """

    async def upload(self, file: Union[UploadedFile, str], key: str) -> UploadResult:
        ...

    async def delete(self, key: str, bucket: str) -> dict[str, Any]:
        ...

    async def path(self, key: str, bucket: str) -> str:
        ...


ClientFactory = Callable[[ProviderConfig], ObjectStorageClient]


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class ObjectStorageProvider:
    """
    Upload provider for S3-compatible stores such as MinIO.

    When `config.expires` is zero, uploaded objects are made public and
    `path()` returns `{endpoint}/{bucket}/{key}` without contacting the
    store. Otherwise objects keep the bucket's default (private) ACL and
    `path()` asks the client for a fresh signed URL on every call.

    Every operation is a single call-through: no retries, no caching.
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[ObjectStorageClient] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.bucket = config.bucket
        self.endpoint = config.base_url
        self.expires = config.expires_minutes
        self._client = client if client is not None else self._create_client(
            config, client_factory
        )

        logger.info(
            "Initialized object storage provider",
            extra={
                "bucket": self.bucket,
                "endpoint": self.endpoint,
                "expires": self.expires,
            }
        )

    @staticmethod
    def _create_client(
        config: ProviderConfig,
        client_factory: Optional[ClientFactory],
    ) -> ObjectStorageClient:
        if client_factory is None:
            logger.error("No object storage client or factory supplied")
            raise DependencyUnavailable()

        try:
            client = client_factory(config)
        except DependencyUnavailable:
            raise
        except Exception as e:
            logger.error(
                "Object storage client could not be created",
                extra={"error": str(e)}
            )
            raise DependencyUnavailable() from e

        if client is None:
            raise DependencyUnavailable()

        return client

    @property
    def is_public(self) -> bool:
        """True when objects are stored public-read and paths are unsigned."""
        return not self.expires

    async def upload(self, file: Union[UploadedFile, str], key: str) -> UploadResult:
        """
        Stream a local file to the configured bucket under `key`.

        The file is opened for reading and handed to the client as a
        stream; its contents are never loaded into memory here.
        """
        if not key:
            raise ValueError("key is required")

        if isinstance(file, UploadedFile):
            local_path = file.path
            content_type = file.type
        else:
            local_path = os.fspath(file)
            content_type = None

        acl = PUBLIC_READ_ACL if self.is_public else None

        try:
            with open(local_path, "rb") as stream:
                result = await self._client.upload(
                    bucket=self.bucket,
                    key=key,
                    stream=stream,
                    part_size=PART_SIZE,
                    concurrency=QUEUE_SIZE,
                    acl=acl,
                    content_type=content_type,
                )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"bucket": self.bucket, "key": key, "error": str(e)}
            )
            raise UploadFailed(f"Upload failed: {e}") from e

        logger.debug(
            "Uploaded object",
            extra={"bucket": self.bucket, "key": key, "acl": acl}
        )

        return result

    async def delete(self, key: str, bucket: str) -> dict[str, Any]:
        """Delete `key` from `bucket`. Missing keys behave as the store decides."""
        try:
            result = await self._client.delete_object(bucket=bucket, key=key)
        except Exception as e:
            logger.error(
                "Failed to delete object",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise DeleteFailed(f"Delete failed: {e}") from e

        logger.debug("Deleted object", extra={"bucket": bucket, "key": key})

        return result

    async def path(self, key: str, bucket: str) -> str:
        """
        Return a URL the browser can fetch the object from.

        Signed URLs are valid for `expires` minutes from this call. Public
        URLs are built locally from the endpoint.
        """
        if self.is_public:
            return f"{self.endpoint}/{bucket}/{key}"

        try:
            return await self._client.get_signed_url(
                operation="get_object",
                bucket=bucket,
                key=key,
                expiry_seconds=self.expires * 60,
            )
        except Exception as e:
            logger.error(
                "Failed to generate signed URL",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise PathFailed(f"Signed URL generation failed: {e}") from e
