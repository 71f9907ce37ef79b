"""SQLAlchemy models for analysis entities."""

import uuid
from typing import Any, Dict, List

from sqlalchemy import JSON, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, UUIDMixin
from ...infrastructure.database.session import Base


class Analysis(Base, UUIDMixin, TimestampMixin):
    """One versioned result of analysing a document.

    Rows are append-only: a re-analysis inserts the next version and never
    touches earlier ones. The highest version is the current analysis.
    """

    __tablename__ = "analyses"
    __table_args__ = (UniqueConstraint("document_id", "version", name="uq_analyses_document_version"),)

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("documents.id", ondelete="CASCADE"), index=True)
    version: Mapped[int] = mapped_column(Integer)
    structured_result: Mapped[List[Dict[str, Any]]] = mapped_column(JSON)
    summary: Mapped[str] = mapped_column(Text)
