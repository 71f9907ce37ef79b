"""Pydantic schemas for analysis entities."""

import uuid
from datetime import datetime
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter, field_validator

from .summary import clean_summary

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class QABlock(BaseModel):
    """One question from the intake form with its rewrite and review notes."""

    question: NonEmptyStr
    original_response: NonEmptyStr
    improved_response: NonEmptyStr
    recommendations: List[str] = Field(default_factory=list)
    flags: List[str] = Field(default_factory=list, description="Ambiguities that need clarification")


QA_BLOCK_LIST = TypeAdapter(List[QABlock])


class AnalysisOutcome(BaseModel):
    """What one analysis run produced before it is persisted."""

    structured_result: List[QABlock] = Field(min_length=1)
    summary: str


class AnalysisRead(BaseModel):
    """Schema for reading a persisted analysis version."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_id: uuid.UUID
    version: int
    structured_result: List[QABlock]
    summary: str
    created_at: datetime

    @field_validator("summary")
    @classmethod
    def _clean_summary(cls, value: str) -> str:
        return clean_summary(value)
