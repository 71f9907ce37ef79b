"""Tests for the local and Supabase storage gateways."""

import json

import httpx
import pytest

from src.infrastructure.storage import LocalStorageGateway, SupabaseStorageGateway, create_storage_gateway
from src.modules.common.exceptions import BlobNotFoundError, StorageError


class TestLocalStorageGateway:
    @pytest.fixture
    def gateway(self, tmp_path) -> LocalStorageGateway:
        return LocalStorageGateway(root=str(tmp_path / "blobs"))

    @pytest.mark.asyncio
    async def test_upload_then_download(self, gateway):
        """Test storing a file and reading it back."""
        await gateway.upload("user-1/client-1/1700000000000_form.pdf", b"%PDF-1.4 data")

        assert await gateway.download("user-1/client-1/1700000000000_form.pdf") == b"%PDF-1.4 data"

    @pytest.mark.asyncio
    async def test_upload_does_not_overwrite(self, gateway):
        """Test that an existing file is never overwritten."""
        await gateway.upload("a/b.pdf", b"first")

        with pytest.raises(StorageError):
            await gateway.upload("a/b.pdf", b"second")

        assert await gateway.download("a/b.pdf") == b"first"

    @pytest.mark.asyncio
    async def test_missing_blob(self, gateway):
        """Test downloading a path with no stored file."""
        await gateway.ensure_bucket()

        with pytest.raises(BlobNotFoundError) as exc_info:
            await gateway.download("nothing/here.pdf")

        assert exc_info.value.code == "blob_not_found"

    @pytest.mark.asyncio
    async def test_rejects_paths_outside_root(self, gateway):
        """Test that paths escaping the storage root are refused."""
        with pytest.raises(StorageError):
            await gateway.upload("../escape.pdf", b"data")


class TestSupabaseStorageGateway:
    def _gateway(self, handler) -> SupabaseStorageGateway:
        return SupabaseStorageGateway(
            url="https://project.supabase.test/",
            service_role_key="service-key",
            bucket="documents",
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_upload_request(self):
        """Test the Supabase upload request and its headers."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "documents/u/c/1_form.pdf"})

        gateway = self._gateway(handler)
        await gateway.upload("u/c/1_form.pdf", b"bytes", "application/pdf")
        await gateway.aclose()

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://project.supabase.test/storage/v1/object/documents/u/c/1_form.pdf"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["x-upsert"] == "false"
        assert request.headers["Content-Type"] == "application/pdf"
        assert request.content == b"bytes"

    @pytest.mark.asyncio
    async def test_upload_conflict_is_storage_error(self):
        """Test that an upload conflict is a storage error."""
        gateway = self._gateway(lambda request: httpx.Response(409, json={"error": "Duplicate"}))

        with pytest.raises(StorageError):
            await gateway.upload("u/c/1_form.pdf", b"bytes")

    @pytest.mark.asyncio
    async def test_download(self):
        """Test downloading from Supabase Storage."""
        gateway = self._gateway(lambda request: httpx.Response(200, content=b"file bytes"))

        assert await gateway.download("u/c/1_form.pdf") == b"file bytes"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"error": "not found"}),
            httpx.Response(400, json={"statusCode": "404", "error": "not_found", "message": "Object not found"}),
        ],
    )
    async def test_download_missing(self, response):
        """Test that a missing object is reported as not found."""
        gateway = self._gateway(lambda request: response)

        with pytest.raises(BlobNotFoundError):
            await gateway.download("u/c/missing.pdf")

    @pytest.mark.asyncio
    async def test_download_transport_error(self):
        """Test that a transport failure is a storage error."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = self._gateway(handler)

        with pytest.raises(StorageError):
            await gateway.download("u/c/1_form.pdf")

    @pytest.mark.asyncio
    async def test_ensure_bucket_creates_private_bucket(self):
        """Test that a missing bucket is created as private."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "GET":
                return httpx.Response(404, json={"error": "Bucket not found"})
            return httpx.Response(200, json={"name": "documents"})

        gateway = self._gateway(handler)
        await gateway.ensure_bucket()

        assert [r.method for r in seen] == ["GET", "POST"]
        assert json.loads(seen[1].content) == {"id": "documents", "name": "documents", "public": False}

    @pytest.mark.asyncio
    async def test_ensure_bucket_existing(self):
        """Test that an existing bucket is left alone."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "documents"})

        await self._gateway(handler).ensure_bucket()

        assert len(seen) == 1


def test_create_storage_gateway_rejects_unknown_backend():
    """Test that an unknown storage backend is refused."""
    class _Settings:
        STORAGE_BACKEND = "ftp"

    with pytest.raises(ValueError):
        create_storage_gateway(_Settings())
