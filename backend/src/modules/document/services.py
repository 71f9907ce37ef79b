"""Document read and state-transition service."""

import uuid
from datetime import timedelta
from typing import Any, List, Optional

from fastcrud.paginated.response import paginated_response
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.database.models import utc_now
from ...infrastructure.logging import get_logger
from ..analysis.services import AnalysisService
from ..client.models import Client
from ..common.exceptions import AnalysisInProgressError, DocumentNotFoundError, PersistenceError
from .crud import document_crud
from .models import CLAIMABLE_STATUSES, Document, DocumentStatus
from .schemas import DocumentDetail, DocumentRead, SharedReport

logger = get_logger(__name__)

STALE_RUN_REASON = "timeout: analysis run did not finish"


class DocumentService:
    """Service for reading documents and moving them between states.

    Owner-facing reads are scoped by ``user_id``; a document owned by someone
    else is reported as missing. State transitions are conditional updates
    so that two writers can never both believe they moved the same document.
    """

    def __init__(self, analysis_service: Optional[AnalysisService] = None):
        self.analysis_service = analysis_service or AnalysisService()

    async def get_document(self, document_id: uuid.UUID, db: AsyncSession, user_id: Optional[str] = None) -> Optional[Document]:
        """Get a document row, optionally restricted to one owner."""
        document = await db.get(Document, document_id)
        if document is None:
            return None
        if user_id is not None and document.user_id != user_id:
            return None
        return document

    async def get_document_detail(self, document_id: uuid.UUID, user_id: str, db: AsyncSession) -> Optional[DocumentDetail]:
        """Get an owner's document with its client name, version count and current analysis.

        Args:
            document_id: Document to read
            user_id: Requesting owner
            db: Database session

        Returns:
            The document detail, or None if it does not exist for this owner
        """
        document = await self.get_document(document_id, db, user_id=user_id)
        if document is None:
            return None

        client = await db.get(Client, document.client_id)
        latest = await self.analysis_service.get_latest(document.id, db)

        detail = DocumentDetail.model_validate(document)
        detail.client_name = client.name if client else None
        detail.analysis_count = await self.analysis_service.count_versions(document.id, db)
        detail.latest_analysis = latest
        return detail

    async def get_documents(
        self,
        user_id: str,
        db: AsyncSession,
        page: int = 1,
        items_per_page: int = 50,
        status: Optional[DocumentStatus] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> dict[str, Any]:
        """Get an owner's documents, newest first, with pagination.

        Args:
            user_id: Owner whose documents are listed
            db: Database session
            page: Page number (1-indexed)
            items_per_page: Number of documents per page
            status: Optional status filter
            client_id: Optional client filter

        Returns:
            Paginated response with documents
        """
        filters: dict[str, Any] = {"user_id": user_id}
        if status is not None:
            filters["status"] = status.value
        if client_id is not None:
            filters["client_id"] = client_id

        offset = (page - 1) * items_per_page
        stmt = await document_crud.select(sort_columns="created_at", sort_orders="desc", **filters)
        stmt = stmt.offset(offset).limit(items_per_page)

        result = await db.execute(stmt)
        documents = [DocumentRead.model_validate(dict(row)).model_dump() for row in result.mappings().all()]
        total_count = await document_crud.count(db=db, **filters)

        return paginated_response({"data": documents, "total_count": total_count}, page, items_per_page)

    async def get_shared_report(self, share_token: str, db: AsyncSession) -> Optional[SharedReport]:
        """Get the public view of a document by its share token."""
        stmt = (
            select(Document, Client.name)
            .outerjoin(Client, Client.id == Document.client_id)
            .where(Document.share_token == share_token)
        )
        row = (await db.execute(stmt)).first()
        if row is None:
            return None

        document, client_name = row
        return SharedReport(
            file_name=document.file_name,
            client_name=client_name,
            status=DocumentStatus(document.status),
            created_at=document.created_at,
            analysis=await self.analysis_service.get_latest(document.id, db),
        )

    async def claim_for_analysis(self, document_id: uuid.UUID, db: AsyncSession) -> Document:
        """Move a document to ``analysing`` if no other run holds it.

        The update only matches documents in ``uploading``, ``ready`` or
        ``error`` and clears the previous error reason. The change is
        committed before returning.

        Raises:
            DocumentNotFoundError: If the document does not exist
            AnalysisInProgressError: If the document is already being analysed
        """
        stmt = (
            update(Document)
            .where(Document.id == document_id, Document.status.in_(CLAIMABLE_STATUSES))
            .values(status=DocumentStatus.ANALYSING.value, error_reason=None)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            await db.rollback()
            if await db.get(Document, document_id) is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")
            raise AnalysisInProgressError(f"Document {document_id} is already being analysed")

        await db.commit()
        document = await db.get(Document, document_id, populate_existing=True)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def mark_ready(self, document_id: uuid.UUID, db: AsyncSession) -> None:
        """Stage the ``analysing`` to ``ready`` transition without committing.

        Raises:
            PersistenceError: If the document is no longer in ``analysing``
        """
        stmt = (
            update(Document)
            .where(Document.id == document_id, Document.status == DocumentStatus.ANALYSING.value)
            .values(status=DocumentStatus.READY.value)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            raise PersistenceError("Document left the analysing state before the run finished")

    async def mark_error(self, document_id: uuid.UUID, reason: str, db: AsyncSession) -> bool:
        """Move an ``analysing`` document to ``error`` and commit.

        Returns:
            True if the document was updated
        """
        stmt = (
            update(Document)
            .where(Document.id == document_id, Document.status == DocumentStatus.ANALYSING.value)
            .values(status=DocumentStatus.ERROR.value, error_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount > 0

    async def fail_stale_analyses(self, db: AsyncSession, older_than: timedelta) -> List[uuid.UUID]:
        """Move documents stuck in ``analysing`` to ``error``.

        A document counts as stuck when it has not been written for longer
        than ``older_than`` while in ``analysing``; the run that claimed it
        was killed or lost.

        Args:
            db: Database session
            older_than: Minimum time since the claim

        Returns:
            Ids of the documents that were moved to ``error``
        """
        cutoff = utc_now() - older_than
        stmt = select(Document.id).where(
            Document.status == DocumentStatus.ANALYSING.value, Document.updated_at < cutoff
        )
        stale_ids = list((await db.execute(stmt)).scalars().all())
        if not stale_ids:
            return []

        await db.execute(
            update(Document)
            .where(Document.id.in_(stale_ids), Document.status == DocumentStatus.ANALYSING.value)
            .values(status=DocumentStatus.ERROR.value, error_reason=STALE_RUN_REASON)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        logger.warning("Failed stale analysis runs", extra={"count": len(stale_ids)})
        return stale_ids
