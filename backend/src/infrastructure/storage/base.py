"""Blob storage gateway interface."""

from abc import ABC, abstractmethod


class StorageGateway(ABC):
    """Key/value blob store addressed by a slash-separated path.

    Uploads are create-if-absent: writing to a path that already holds a blob
    fails instead of overwriting it.
    """

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> None:
        """Store ``content`` at ``path``.

        Raises:
            StorageError: If the path is taken or the store rejects the write
        """

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Read the blob stored at ``path``.

        Raises:
            BlobNotFoundError: If nothing is stored at the path
            StorageError: On any other store failure
        """

    async def ensure_bucket(self) -> None:
        """Create the backing container if the backend needs one."""
        return None

    async def aclose(self) -> None:
        return None
