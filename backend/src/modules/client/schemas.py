"""Pydantic schemas for client entities."""

import uuid
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field

from ..common.schemas import TimestampSchema


class ClientBase(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=255, description="Client display name")]


class ClientRead(TimestampSchema, ClientBase):
    """Schema for reading client data with its document count."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    document_count: int = 0


class ClientListResponse(BaseModel):
    """Schema for paginated client list response."""

    data: List[ClientRead]
    total_count: int
    has_more: bool
    page: int
    items_per_page: int
