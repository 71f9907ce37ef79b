"""Upload intake: turns an uploaded file into a stored document."""

import re
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ...infrastructure.storage import StorageGateway
from ..client.services import ClientService
from ..common.constants import IMAGE_EXTENSIONS
from ..common.exceptions import (
    DocumentPersistenceError,
    MissingInputError,
    StorageError,
    StorageUploadError,
    UnsupportedFileTypeError,
)
from .models import Document, DocumentStatus, FileType

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class UploadedFile:
    """A file received by the intake endpoint."""

    filename: str
    content: bytes
    content_type: Optional[str] = None


def detect_file_type(filename: str) -> FileType:
    """Map a file name's extension to its declared type.

    Raises:
        UnsupportedFileTypeError: If the extension is not pdf, docx, doc or a known image type
    """
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension == "pdf":
        return FileType.PDF
    if extension in ("docx", "doc"):
        return FileType.DOCX
    if extension in IMAGE_EXTENSIONS:
        return FileType.IMAGE
    raise UnsupportedFileTypeError(f"Unsupported file type: .{extension}" if extension else "File has no extension")


def safe_file_name(filename: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-]`` with an underscore."""
    return _UNSAFE_CHARS.sub("_", filename)


def build_storage_path(user_id: str, client_id, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Storage key of an upload: ``{user}/{client}/{epoch_millis}_{safe_name}``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{user_id}/{client_id}/{timestamp_ms}_{safe_file_name(filename)}"


class UploadIntakeService:
    """Validates an upload, stores the file and creates its document row.

    The document row and the client it references are committed only after
    the blob is stored, so a failed upload leaves no row behind.
    """

    def __init__(self, storage: StorageGateway, client_service: Optional[ClientService] = None):
        self.storage = storage
        self.client_service = client_service or ClientService()

    async def create_document(
        self,
        user_id: str,
        client_name: Optional[str],
        upload: Optional[UploadedFile],
        db: AsyncSession,
        notify_email: Optional[str] = None,
    ) -> Document:
        """Create a document in ``uploading`` from an uploaded file.

        Args:
            user_id: Owning agency user id
            client_name: Client display name typed by the user
            upload: The received file
            db: Database session
            notify_email: Owner address for the completion email

        Returns:
            The committed document

        Raises:
            MissingInputError: If the client name or file is missing or empty
            UnsupportedFileTypeError: If the file extension is not supported
            ClientLookupError: If the client cannot be resolved
            StorageUploadError: If the file cannot be stored
            DocumentPersistenceError: If the document row cannot be written
        """
        if not client_name or not client_name.strip():
            raise MissingInputError("Client name is required")
        if upload is None or not upload.filename:
            raise MissingInputError("A file is required")
        if not upload.content:
            raise MissingInputError("The uploaded file is empty")

        file_type = detect_file_type(upload.filename)
        client = await self.client_service.get_or_create_client(user_id, client_name, db)

        file_path = build_storage_path(user_id, client.id, upload.filename)
        document = Document(
            user_id=user_id,
            client_id=client.id,
            file_name=upload.filename,
            file_path=file_path,
            file_type=file_type.value,
            status=DocumentStatus.UPLOADING.value,
            notify_email=notify_email,
        )

        try:
            db.add(document)
            await db.flush()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Document insert failed", extra={"user_id": user_id, "error": str(e)})
            raise DocumentPersistenceError("Failed to create document record") from e

        try:
            await self.storage.upload(file_path, upload.content, upload.content_type or "application/octet-stream")
        except StorageError as e:
            await db.rollback()
            logger.error("Storage upload failed", extra={"file_path": file_path, "error": str(e)})
            raise StorageUploadError("Failed to store uploaded file") from e

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Document commit failed, stored file is orphaned", extra={"file_path": file_path})
            raise DocumentPersistenceError("Failed to create document record") from e

        logger.info(
            "Document uploaded",
            extra={"document_id": str(document.id), "client_id": str(client.id), "file_type": file_type.value},
        )
        return document
