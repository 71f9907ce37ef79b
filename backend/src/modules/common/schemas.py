"""Shared Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class TimestampSchema(BaseModel):
    """Timestamps exposed on every persisted entity."""

    created_at: datetime = Field(description="When the record was created")
    updated_at: datetime = Field(description="When the record was last written")


class ErrorResponse(BaseModel):
    """Typed error body returned by every failing endpoint."""

    detail: str
    code: str
