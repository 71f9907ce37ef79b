"""Pydantic schemas for document entities."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..analysis.schemas import AnalysisRead
from ..common.schemas import TimestampSchema
from .models import DocumentStatus, FileType


class DocumentRead(TimestampSchema):
    """Schema for reading document data as its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    client_id: uuid.UUID
    file_name: str
    file_path: str
    file_type: FileType
    status: DocumentStatus
    share_token: str
    error_reason: Optional[str] = Field(default=None, description="Category and message of the last failed run")


class DocumentDetail(DocumentRead):
    """Document with its client name and current analysis."""

    client_name: Optional[str] = None
    analysis_count: int = 0
    latest_analysis: Optional[AnalysisRead] = None


class DocumentListResponse(BaseModel):
    """Schema for paginated document list response."""

    data: List[DocumentRead]
    total_count: int
    has_more: bool
    page: int
    items_per_page: int


class SharedReport(BaseModel):
    """Public view of a document, reachable through its share token."""

    file_name: str
    client_name: Optional[str] = None
    status: DocumentStatus
    created_at: datetime
    analysis: Optional[AnalysisRead] = None


class ShareEmailRequest(BaseModel):
    """Request to email a report link to a recipient."""

    document_id: uuid.UUID
    email: EmailStr


class ShareEmailResponse(BaseModel):
    success: bool = True
    email_id: Optional[str] = None


class LifecycleResult(BaseModel):
    """Outcome of one lifecycle run."""

    document_id: uuid.UUID
    status: DocumentStatus
    version: Optional[int] = None
    error: Optional[str] = None
