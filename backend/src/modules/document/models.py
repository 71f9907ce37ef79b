"""SQLAlchemy models for document entities."""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, UUIDMixin
from ...infrastructure.database.session import Base


class DocumentStatus(str, Enum):
    """Lifecycle states of an uploaded document."""

    UPLOADING = "uploading"
    ANALYSING = "analysing"
    READY = "ready"
    ERROR = "error"


class FileType(str, Enum):
    """Declared type of an uploaded file, derived from its extension."""

    PDF = "pdf"
    DOCX = "docx"
    IMAGE = "image"


CLAIMABLE_STATUSES = (DocumentStatus.UPLOADING.value, DocumentStatus.READY.value, DocumentStatus.ERROR.value)


def new_share_token() -> str:
    return uuid.uuid4().hex


class Document(Base, UUIDMixin, TimestampMixin):
    """One uploaded client file and its processing status.

    A document is created by intake in ``uploading`` and afterwards only
    changed by the lifecycle controller and the stale-run sweep. The share
    token is generated once at creation and grants read access to the
    public report; it is never regenerated.
    """

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "status IN ('uploading', 'analysing', 'ready', 'error')",
            name="ck_documents_status",
        ),
        CheckConstraint("file_type IN ('pdf', 'docx', 'image')", name="ck_documents_file_type"),
    )

    user_id: Mapped[str] = mapped_column(String(255), index=True)
    client_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    file_name: Mapped[str] = mapped_column(String(512))
    file_path: Mapped[str] = mapped_column(String(1024))
    file_type: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16), default=DocumentStatus.UPLOADING.value, index=True)
    share_token: Mapped[str] = mapped_column(String(64), unique=True, index=True, default_factory=new_share_token)
    error_reason: Mapped[Optional[str]] = mapped_column(Text, default=None)
    notify_email: Mapped[Optional[str]] = mapped_column(String(320), default=None)
