"""
Object storage clients for uploaded files.

Supports any S3-compatible store (MinIO, AWS S3, Cloudflare R2) through
boto3, plus an in-memory mock for local development and tests.

Both clients implement the ObjectStorageClient protocol from
core.upload.provider, so the provider can be handed either one.
"""

import asyncio
import functools
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional
from uuid import uuid4

from ...core.upload.models import ProviderConfig, UploadResult
from ...core.upload.provider import (
    DependencyUnavailable,
    ObjectStorageClient,
    ObjectStorageProvider,
)

logger = logging.getLogger(__name__)


DEFAULT_REGION = "us-east-1"


class S3ObjectStorageClient:
    """
    boto3-backed client for S3-compatible stores.

    Requests use path-style addressing (`endpoint/bucket/key`) and SigV4
    signing, which MinIO and most non-AWS stores require.

    boto3 is synchronous, so network calls run in the event loop's default
    executor. A boto3 client is thread-safe and is shared by every call.
    """

    def __init__(self, config: ProviderConfig) -> None:
        try:
            import boto3
            from boto3.s3.transfer import TransferConfig
            from botocore.config import Config
        except ImportError as e:
            raise DependencyUnavailable() from e

        self._config = config
        self._transfer_config_cls = TransferConfig

        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        # None credentials fall through to boto3's own credential chain
        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region or DEFAULT_REGION,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 object storage client",
            extra={
                "bucket": config.bucket,
                "endpoint": config.endpoint,
                "explicit_credentials": config.access_key_id is not None,
            }
        )

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
        """
        Multipart upload from an open stream.

        Files larger than one part are split into `part_size` chunks with
        at most `concurrency` chunks in flight. Smaller files go up in a
        single PUT.
        """
        transfer_config = self._transfer_config_cls(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
            max_concurrency=concurrency,
        )

        extra_args: dict[str, str] = {}
        if acl:
            extra_args['ACL'] = acl
        if content_type:
            extra_args['ContentType'] = content_type

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            functools.partial(
                self._s3_client.upload_fileobj,
                stream,
                bucket,
                key,
                ExtraArgs=extra_args or None,
                Config=transfer_config,
            ),
        )

        return UploadResult(
            bucket=bucket,
            key=key,
            location=f"{self._config.base_url}/{bucket}/{key}",
        )

    async def delete_object(self, bucket: str, key: str) -> dict[str, Any]:
        """Delete one object. S3 reports success for keys that do not exist."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(
                self._s3_client.delete_object,
                Bucket=bucket,
                Key=key,
            ),
        )

    async def get_signed_url(
        self,
        operation: str,
        bucket: str,
        key: str,
        expiry_seconds: int,
    ) -> str:
        """
        Presign `operation` for `bucket/key`.

        Signing is a local computation; no request is sent to the store.
        """
        return self._s3_client.generate_presigned_url(
            operation,
            Params={
                'Bucket': bucket,
                'Key': key,
            },
            ExpiresIn=expiry_seconds,
        )


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class StoredObject:
    """An object held by the mock client."""
    data: bytes
    etag: str
    acl: Optional[str] = None
    content_type: Optional[str] = None


class MockObjectStorageClient:
    """
    In-memory object store for local development and tests.

    Uploads are read from the stream one part at a time, as the real
    client does. Signed URLs use a `mock://` scheme and carry a random
    signature, so two calls never return the same URL.
    """

    def __init__(self, endpoint: str = "mock://storage") -> None:
        self._endpoint = endpoint.rstrip("/")
        self._objects: dict[tuple[str, str], StoredObject] = {}
        logger.info("Initialized mock object storage client (in-memory)")

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
        """Store the stream's contents in memory."""
        digest = hashlib.md5()
        parts: list[bytes] = []
        while True:
            chunk = stream.read(part_size)
            if not chunk:
                break
            digest.update(chunk)
            parts.append(chunk)

        etag = f'"{digest.hexdigest()}"'
        self._objects[(bucket, key)] = StoredObject(
            data=b"".join(parts),
            etag=etag,
            acl=acl,
            content_type=content_type,
        )

        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": bucket, "key": key, "parts": len(parts), "acl": acl}
        )

        return UploadResult(
            bucket=bucket,
            key=key,
            location=f"{self._endpoint}/{bucket}/{key}",
            etag=etag,
        )

    async def delete_object(self, bucket: str, key: str) -> dict[str, Any]:
        """Remove an object. Missing keys are not an error, matching S3."""
        self._objects.pop((bucket, key), None)
        return {"DeleteMarker": False}

    async def get_signed_url(
        self,
        operation: str,
        bucket: str,
        key: str,
        expiry_seconds: int,
    ) -> str:
        """Return a mock URL for the object."""
        return (
            f"{self._endpoint}/{bucket}/{key}"
            f"?operation={operation}&expires={expiry_seconds}&signature={uuid4().hex}"
        )

    def get_object(self, bucket: str, key: str) -> Optional[StoredObject]:
        """Look up a stored object. Test and debugging helper."""
        return self._objects.get((bucket, key))


# ---------------------------------------------------------------------------
# Factory Functions
# ---------------------------------------------------------------------------

def create_object_storage_client(
    config: Optional[ProviderConfig] = None,
    mock_mode: bool = False,
) -> ObjectStorageClient:
    """
    Create an object storage client.

    Args:
        config: Bucket configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory client

    Returns:
        ObjectStorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockObjectStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectStorageClient(config)


def create_upload_provider(
    config: ProviderConfig,
    mock_mode: bool = False,
) -> ObjectStorageProvider:
    """
    Create an upload provider wired to the matching storage client.

    Raises DependencyUnavailable if the boto3 client cannot be created.
    """
    return ObjectStorageProvider(
        config,
        client_factory=functools.partial(
            create_object_storage_client,
            mock_mode=mock_mode,
        ),
    )
