"""Analysis version management service."""

import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .crud import analysis_crud
from .models import Analysis
from .schemas import AnalysisOutcome, AnalysisRead


class AnalysisService:
    """Service for the append-only history of analysis versions.

    Versions for a document start at 1 and increase by one per successful
    run. Writes here only flush; the lifecycle controller commits the new
    row together with the document's status change.
    """

    async def next_version(self, document_id: uuid.UUID, db: AsyncSession) -> int:
        """Return the version number the next analysis of a document gets."""
        stmt = select(func.coalesce(func.max(Analysis.version), 0)).where(Analysis.document_id == document_id)
        current = (await db.execute(stmt)).scalar_one()
        return int(current) + 1

    async def add_analysis(self, document_id: uuid.UUID, outcome: AnalysisOutcome, db: AsyncSession) -> Analysis:
        """Stage a new analysis version for a document.

        Args:
            document_id: Document the analysis belongs to
            outcome: Structured result and cleaned summary
            db: Database session; the caller commits

        Returns:
            The flushed analysis row
        """
        version = await self.next_version(document_id, db)
        analysis = Analysis(
            document_id=document_id,
            version=version,
            structured_result=[block.model_dump() for block in outcome.structured_result],
            summary=outcome.summary,
        )
        db.add(analysis)
        await db.flush()
        return analysis

    async def get_latest(self, document_id: uuid.UUID, db: AsyncSession) -> Optional[AnalysisRead]:
        """Get the current (highest version) analysis of a document."""
        stmt = select(Analysis).where(Analysis.document_id == document_id).order_by(Analysis.version.desc()).limit(1)
        analysis = (await db.execute(stmt)).scalars().first()
        if analysis is None:
            return None
        return AnalysisRead.model_validate(analysis)

    async def list_versions(self, document_id: uuid.UUID, db: AsyncSession) -> List[AnalysisRead]:
        """Get every analysis version of a document, newest first."""
        stmt = select(Analysis).where(Analysis.document_id == document_id).order_by(Analysis.version.desc())
        rows = (await db.execute(stmt)).scalars().all()
        return [AnalysisRead.model_validate(row) for row in rows]

    async def count_versions(self, document_id: uuid.UUID, db: AsyncSession) -> int:
        """Count the analysis versions stored for a document."""
        return await analysis_crud.count(db=db, document_id=document_id)
