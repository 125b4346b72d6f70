"""
Unit tests for ObjectStorageProvider.

The provider is exercised against a recording test double that implements
the ObjectStorageClient protocol, so no bucket or network is needed.
"""

import os

import pytest

from minio_upload.core.upload.models import (
    PART_SIZE,
    QUEUE_SIZE,
    ProviderConfig,
    UploadedFile,
    UploadResult,
)
from minio_upload.core.upload.provider import (
    NO_CLIENT_LIBRARY,
    DeleteFailed,
    DependencyUnavailable,
    ObjectStorageProvider,
    PathFailed,
    UploadFailed,
)
from minio_upload.infrastructure.storage.client import MockObjectStorageClient


class RecordingClient:
    """
    Test double for the object-storage client.

    Records every call. Uploads are drained part by part and only the
    sizes are kept, so the largest single read shows how much of the file
    was ever in memory at once.
    """

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: list[dict] = []
        self.deletes: list[dict] = []
        self.signed_url_requests: list[dict] = []
        self.max_read_size = 0
        self.total_read = 0

    async def upload(self, bucket, key, stream, part_size, concurrency, acl=None, content_type=None):
        if self.error:
            raise self.error
        self.uploads.append({
            "bucket": bucket,
            "key": key,
            "stream": stream,
            "part_size": part_size,
            "concurrency": concurrency,
            "acl": acl,
            "content_type": content_type,
        })
        while True:
            chunk = stream.read(part_size)
            if not chunk:
                break
            self.max_read_size = max(self.max_read_size, len(chunk))
            self.total_read += len(chunk)
        return UploadResult(bucket=bucket, key=key, location=f"http://minio:9000/{bucket}/{key}", etag='"abc"')

    async def delete_object(self, bucket, key):
        if self.error:
            raise self.error
        self.deletes.append({"Key": key, "Bucket": bucket})
        return {"DeleteMarker": False, "RequestCharged": "requester"}

    async def get_signed_url(self, operation, bucket, key, expiry_seconds):
        if self.error:
            raise self.error
        self.signed_url_requests.append({
            "operation": operation,
            "bucket": bucket,
            "key": key,
            "expiry_seconds": expiry_seconds,
        })
        return f"http://minio:9000/{bucket}/{key}?X-Amz-Expires={expiry_seconds}&sig={len(self.signed_url_requests)}"


@pytest.fixture
def temp_file(tmp_path):
    path = tmp_path / "a.png"
    path.write_bytes(b"\x89PNG fake image")
    return str(path)


def make_provider(expires=None, client=None, endpoint="http://minio:9000"):
    config = ProviderConfig(endpoint=endpoint, bucket="files", expires=expires)
    return ObjectStorageProvider(config, client=client or RecordingClient())


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    """Tests for provider setup and client resolution."""

    def test_default_expiry_is_one_day(self):
        provider = make_provider()

        assert provider.expires == 1440
        assert not provider.is_public

    def test_factory_is_called_once_with_config(self):
        """A client factory receives the config and builds the handle."""
        seen = []

        def factory(config):
            seen.append(config)
            return RecordingClient()

        config = ProviderConfig(endpoint="http://minio:9000", bucket="files")
        ObjectStorageProvider(config, client_factory=factory)

        assert seen == [config]

    def test_missing_library_raises_dependency_unavailable(self):
        """A failed import in the factory surfaces as DependencyUnavailable."""
        def factory(config):
            raise ImportError("No module named 'boto3'")

        config = ProviderConfig(endpoint="http://minio:9000", bucket="files")

        with pytest.raises(DependencyUnavailable) as exc_info:
            ObjectStorageProvider(config, client_factory=factory)

        assert str(exc_info.value) == NO_CLIENT_LIBRARY
        assert str(exc_info.value) == "object storage client library not installed"
        assert isinstance(exc_info.value.__cause__, ImportError)

    def test_no_client_and_no_factory_fails_fast(self):
        config = ProviderConfig(endpoint="http://minio:9000", bucket="files")

        with pytest.raises(DependencyUnavailable, match="not installed"):
            ObjectStorageProvider(config)

    def test_factory_returning_none_is_unavailable(self):
        config = ProviderConfig(endpoint="http://minio:9000", bucket="files")

        with pytest.raises(DependencyUnavailable):
            ObjectStorageProvider(config, client_factory=lambda c: None)


# ---------------------------------------------------------------------------
# upload
# ---------------------------------------------------------------------------

class TestUpload:
    """Tests for streaming uploads."""

    @pytest.mark.asyncio
    async def test_public_mode_requests_public_read_acl(self, temp_file):
        """expires=0 marks every upload public-read."""
        client = RecordingClient()
        provider = make_provider(expires=0, client=client)

        await provider.upload(UploadedFile(path=temp_file), "a.png")

        assert client.uploads[0]["acl"] == "public-read"

    @pytest.mark.asyncio
    async def test_signed_mode_leaves_acl_unset(self, temp_file):
        """With an expiry the bucket's default (private) ACL applies."""
        client = RecordingClient()
        provider = make_provider(expires=60, client=client)

        await provider.upload(UploadedFile(path=temp_file), "a.png")

        assert client.uploads[0]["acl"] is None

    @pytest.mark.asyncio
    async def test_uses_configured_bucket_and_multipart_settings(self, temp_file):
        client = RecordingClient()
        provider = make_provider(client=client)

        await provider.upload(UploadedFile(path=temp_file, type="image/png"), "avatars/a.png")

        call = client.uploads[0]
        assert call["bucket"] == "files"
        assert call["key"] == "avatars/a.png"
        assert call["part_size"] == PART_SIZE
        assert call["concurrency"] == QUEUE_SIZE
        assert call["content_type"] == "image/png"

    @pytest.mark.asyncio
    async def test_returns_client_confirmation_unchanged(self, temp_file):
        provider = make_provider()

        result = await provider.upload(temp_file, "a.png")

        assert result == UploadResult(
            bucket="files",
            key="a.png",
            location="http://minio:9000/files/a.png",
            etag='"abc"',
        )

    @pytest.mark.asyncio
    async def test_streams_file_instead_of_buffering(self, tmp_path):
        """
        The client gets an open file, never the file's bytes.

        A file of several parts is only ever read one part at a time.
        """
        big_file = tmp_path / "big.bin"
        with open(big_file, "wb") as f:
            for _ in range(3):
                f.write(os.urandom(PART_SIZE))
            f.write(b"tail")

        client = RecordingClient()
        provider = make_provider(client=client)

        await provider.upload(UploadedFile(path=str(big_file)), "big.bin")

        stream = client.uploads[0]["stream"]
        assert not isinstance(stream, (bytes, bytearray))
        assert hasattr(stream, "read")
        assert client.max_read_size <= PART_SIZE
        assert client.total_read == 3 * PART_SIZE + 4

    @pytest.mark.asyncio
    async def test_stream_is_closed_after_upload(self, temp_file):
        client = RecordingClient()
        provider = make_provider(client=client)

        await provider.upload(temp_file, "a.png")

        assert client.uploads[0]["stream"].closed

    @pytest.mark.asyncio
    async def test_client_error_propagates_as_upload_failed(self, temp_file):
        """Client errors are wrapped once and chained, not retried."""
        original = ConnectionError("connection refused")
        provider = make_provider(client=RecordingClient(error=original))

        with pytest.raises(UploadFailed, match="connection refused") as exc_info:
            await provider.upload(temp_file, "a.png")

        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_missing_local_file_is_upload_failed(self, tmp_path):
        client = RecordingClient()
        provider = make_provider(client=client)

        with pytest.raises(UploadFailed):
            await provider.upload(str(tmp_path / "gone.png"), "a.png")

        assert client.uploads == []

    @pytest.mark.asyncio
    async def test_empty_key_is_rejected(self, temp_file):
        provider = make_provider()

        with pytest.raises(ValueError, match="key is required"):
            await provider.upload(temp_file, "")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

class TestDelete:
    """Tests for single-object deletes."""

    @pytest.mark.asyncio
    async def test_forwards_key_and_explicit_bucket(self):
        """The caller's bucket is used even when it differs from the default."""
        client = RecordingClient()
        provider = make_provider(client=client)

        await provider.delete("a.png", "archive")

        assert client.deletes == [{"Key": "a.png", "Bucket": "archive"}]

    @pytest.mark.asyncio
    async def test_returns_client_result_unchanged(self):
        provider = make_provider()

        result = await provider.delete("a.png", "files")

        assert result == {"DeleteMarker": False, "RequestCharged": "requester"}

    @pytest.mark.asyncio
    async def test_client_error_propagates_as_delete_failed(self):
        original = KeyError("NoSuchKey")
        provider = make_provider(client=RecordingClient(error=original))

        with pytest.raises(DeleteFailed, match="NoSuchKey") as exc_info:
            await provider.delete("missing.png", "files")

        assert exc_info.value.__cause__ is original


# ---------------------------------------------------------------------------
# path
# ---------------------------------------------------------------------------

class TestPath:
    """Tests for access path resolution."""

    @pytest.mark.asyncio
    async def test_public_mode_builds_url_without_client_call(self):
        client = RecordingClient()
        provider = make_provider(expires=0, client=client)

        url = await provider.path("a.png", "files")

        assert url == "http://minio:9000/files/a.png"
        assert client.signed_url_requests == []

    @pytest.mark.asyncio
    async def test_public_url_uses_callers_bucket(self):
        provider = make_provider(expires=0)

        assert await provider.path("docs/b.pdf", "archive") == "http://minio:9000/archive/docs/b.pdf"

    @pytest.mark.asyncio
    async def test_public_url_tolerates_trailing_slash_on_endpoint(self):
        provider = make_provider(expires=0, endpoint="http://minio:9000/")

        assert await provider.path("a.png", "files") == "http://minio:9000/files/a.png"

    @pytest.mark.asyncio
    async def test_signed_mode_converts_minutes_to_seconds(self):
        client = RecordingClient()
        provider = make_provider(expires=60, client=client)

        await provider.path("a.png", "files")

        assert client.signed_url_requests == [{
            "operation": "get_object",
            "bucket": "files",
            "key": "a.png",
            "expiry_seconds": 3600,
        }]

    @pytest.mark.asyncio
    async def test_signed_url_is_returned_untouched(self):
        provider = make_provider(expires=60)

        url = await provider.path("a.png", "files")

        assert url == "http://minio:9000/files/a.png?X-Amz-Expires=3600&sig=1"

    @pytest.mark.asyncio
    async def test_every_call_requests_a_new_signature(self):
        """No caching: each call goes to the client, URLs may differ."""
        client = RecordingClient()
        provider = make_provider(expires=60, client=client)

        first = await provider.path("a.png", "files")
        second = await provider.path("a.png", "files")

        assert len(client.signed_url_requests) == 2
        assert first.startswith("http://minio:9000/files/a.png?")
        assert second.startswith("http://minio:9000/files/a.png?")

    @pytest.mark.asyncio
    async def test_signing_error_propagates_as_path_failed(self):
        original = RuntimeError("no credentials")
        provider = make_provider(expires=60, client=RecordingClient(error=original))

        with pytest.raises(PathFailed) as exc_info:
            await provider.path("a.png", "files")

        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_zero_expiry_means_public_not_instant_expiry(self):
        """
        expires=0 disables signing altogether.

        A caller might read 0 as 'links that expire immediately'; the
        provider treats it as 'public objects' instead.
        """
        client = RecordingClient()
        provider = make_provider(expires=0, client=client)

        url = await provider.path("a.png", "files")

        assert "X-Amz-Expires" not in url
        assert provider.is_public


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    """End-to-end flows against the in-memory client."""

    @pytest.mark.asyncio
    async def test_public_upload_then_path(self, temp_file):
        client = MockObjectStorageClient()
        config = ProviderConfig(endpoint="http://minio:9000", bucket="files", expires=0)
        provider = ObjectStorageProvider(config, client=client)

        await provider.upload(UploadedFile(path=temp_file), "a.png")

        stored = client.get_object("files", "a.png")
        assert stored is not None
        assert stored.acl == "public-read"
        assert stored.data == b"\x89PNG fake image"
        assert await provider.path("a.png", "files") == "http://minio:9000/files/a.png"

    @pytest.mark.asyncio
    async def test_signed_path_then_delete(self, temp_file):
        client = MockObjectStorageClient()
        config = ProviderConfig(endpoint="http://minio:9000", bucket="files", expires=60)
        provider = ObjectStorageProvider(config, client=client)

        await provider.upload(temp_file, "a.png")
        first = await provider.path("a.png", "files")
        second = await provider.path("a.png", "files")
        await provider.delete("a.png", "files")

        assert "expires=3600" in first
        assert first != second
        assert client.get_object("files", "a.png") is None
