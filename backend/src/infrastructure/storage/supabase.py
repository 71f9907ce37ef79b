"""Supabase Storage gateway over the storage REST API."""

from typing import Optional
from urllib.parse import quote

import httpx

from ...modules.common.exceptions import BlobNotFoundError, StorageError
from ..logging import get_logger
from .base import StorageGateway

logger = get_logger(__name__)


class SupabaseStorageGateway(StorageGateway):
    """Stores blobs in one Supabase Storage bucket.

    Authenticates with the service role key, so the gateway must only run
    server side.
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        bucket: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bucket = bucket
        self.base_api_url = f"{url.rstrip('/')}/storage/v1"
        self.client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {service_role_key}", "apikey": service_role_key},
            timeout=timeout,
            transport=transport,
        )

    def _object_url(self, path: str) -> str:
        return f"{self.base_api_url}/object/{self.bucket}/{quote(path, safe='/')}"

    async def upload(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            response = await self.client.post(
                self._object_url(path),
                content=content,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
        except httpx.HTTPError as e:
            logger.error("Storage upload request failed", extra={"file_path": path, "error": str(e)})
            raise StorageError(f"Storage upload error: {type(e).__name__}") from e

        if response.status_code not in (200, 201):
            logger.error(
                "Storage upload rejected",
                extra={"file_path": path, "status_code": response.status_code, "body": response.text[:500]},
            )
            raise StorageError(f"Upload failed with status {response.status_code}")

    async def download(self, path: str) -> bytes:
        try:
            response = await self.client.get(self._object_url(path))
        except httpx.HTTPError as e:
            logger.error("Storage download request failed", extra={"file_path": path, "error": str(e)})
            raise StorageError(f"Storage download error: {type(e).__name__}") from e

        if response.status_code == 404 or (response.status_code == 400 and "not_found" in response.text.lower()):
            raise BlobNotFoundError(f"No object stored at {path}")
        if response.status_code != 200:
            raise StorageError(f"Download failed with status {response.status_code}")
        return response.content

    async def ensure_bucket(self) -> None:
        """Create the private bucket if it does not exist yet."""
        try:
            response = await self.client.get(f"{self.base_api_url}/bucket/{self.bucket}")
            if response.status_code == 200:
                return

            response = await self.client.post(
                f"{self.base_api_url}/bucket",
                json={"id": self.bucket, "name": self.bucket, "public": False},
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Bucket check failed: {type(e).__name__}") from e

        if response.status_code in (200, 201) or "already exists" in response.text.lower():
            logger.info("Storage bucket ready", extra={"bucket": self.bucket})
            return
        raise StorageError(f"Could not create bucket {self.bucket}: status {response.status_code}")

    async def aclose(self) -> None:
        await self.client.aclose()
