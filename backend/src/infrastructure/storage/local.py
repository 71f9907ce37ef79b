"""Filesystem-backed storage gateway for development."""

from pathlib import Path

import anyio

from ...modules.common.exceptions import BlobNotFoundError, StorageError
from ..logging import get_logger
from .base import StorageGateway

logger = get_logger(__name__)


class LocalStorageGateway(StorageGateway):
    """Stores blobs as files below a root directory."""

    def __init__(self, root: str):
        self.root = anyio.Path(root)

    async def _resolve(self, path: str) -> anyio.Path:
        root = await self.root.resolve()
        target = await (root / path).resolve()
        if Path(target) == Path(root) or not Path(target).is_relative_to(Path(root)):
            raise StorageError(f"Invalid storage path: {path}")
        return target

    async def ensure_bucket(self) -> None:
        await self.root.mkdir(parents=True, exist_ok=True)

    async def upload(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> None:
        target = await self._resolve(path)
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            async with await target.open("xb") as f:
                await f.write(content)
        except FileExistsError as e:
            raise StorageError(f"A file already exists at {path}") from e
        except OSError as e:
            logger.error("Local storage write failed", extra={"file_path": path, "error": str(e)})
            raise StorageError(f"Could not write {path}") from e

    async def download(self, path: str) -> bytes:
        target = await self._resolve(path)
        try:
            return await target.read_bytes()
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"No file stored at {path}") from e
        except OSError as e:
            raise StorageError(f"Could not read {path}") from e
