"""Document lifecycle controller.

Drives one analysis run of a document through
``uploading/ready/error -> analysing -> ready | error``:

1. claim the document (conditional update to ``analysing``)
2. download the stored file
3. extract its text
4. run the two model requests
5. insert the next analysis version and flip the status to ``ready`` in one
   transaction
6. send the completion email (failures are logged only)

Any failure in steps 2 to 5 rolls back and records ``error`` with the
failure's code and message as ``error_reason``.
"""

import uuid
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...infrastructure.extraction import TextExtractor
from ...infrastructure.logging import correlation_scope, get_logger
from ...infrastructure.storage import StorageGateway
from ..analysis.client import AnalysisClient
from ..analysis.services import AnalysisService
from ..client.models import Client
from ..common.exceptions import DomainError
from ..document.models import Document, DocumentStatus
from ..document.schemas import LifecycleResult
from ..document.services import DocumentService
from ..notification.services import NotificationService

logger = get_logger(__name__)


class DocumentLifecycleController:
    """Runs the analysis lifecycle for one document at a time.

    All collaborators are passed in so each can be replaced in tests. Every
    run opens its own database sessions from ``session_factory`` and does not
    depend on any request-scoped state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: StorageGateway,
        extractor: TextExtractor,
        analysis_client: AnalysisClient,
        notifier: NotificationService,
        document_service: Optional[DocumentService] = None,
        analysis_service: Optional[AnalysisService] = None,
    ):
        self.session_factory = session_factory
        self.storage = storage
        self.extractor = extractor
        self.analysis_client = analysis_client
        self.notifier = notifier
        self.analysis_service = analysis_service or AnalysisService()
        self.document_service = document_service or DocumentService(self.analysis_service)

    async def run(self, document_id: uuid.UUID) -> LifecycleResult:
        """Run one analysis of a document.

        Args:
            document_id: Document to analyse

        Returns:
            The terminal status of the run, the new version on success and
            the recorded reason on failure

        Raises:
            DocumentNotFoundError: If the document does not exist
            AnalysisInProgressError: If another run holds the document
        """
        with correlation_scope(str(document_id)):
            async with self.session_factory() as db:
                document = await self.document_service.claim_for_analysis(document_id, db)
                logger.info("Analysis run started", extra={"file_type": document.file_type})

                try:
                    version, summary = await self._analyse(document, db)
                except DomainError as e:
                    await db.rollback()
                    return await self._record_failure(document_id, f"{e.code}: {e.message}")
                except SQLAlchemyError as e:
                    await db.rollback()
                    return await self._record_failure(document_id, f"persistence_failed: {type(e).__name__}")
                except Exception as e:
                    await db.rollback()
                    logger.exception("Unexpected analysis failure")
                    return await self._record_failure(document_id, f"internal_error: {type(e).__name__}")

                logger.info("Analysis run finished", extra={"version": version})
                await self._notify(document, summary, db)

        return LifecycleResult(document_id=document_id, status=DocumentStatus.READY, version=version)

    async def _analyse(self, document: Document, db: AsyncSession) -> tuple[int, str]:
        content = await self.storage.download(document.file_path)
        text = await self.extractor.extract_async(content, document.file_type)
        outcome = await self.analysis_client.analyse(text)

        analysis = await self.analysis_service.add_analysis(document.id, outcome, db)
        await self.document_service.mark_ready(document.id, db)
        await db.commit()
        return analysis.version, analysis.summary

    async def _record_failure(self, document_id: uuid.UUID, reason: str) -> LifecycleResult:
        logger.warning("Analysis run failed", extra={"error_reason": reason})
        try:
            async with self.session_factory() as db:
                updated = await self.document_service.mark_error(document_id, reason, db)
            if not updated:
                logger.warning("Document was not in analysing when recording the failure")
        except Exception as e:
            logger.error(
                "Could not record analysis failure, document left in analysing",
                extra={"error_type": type(e).__name__},
            )
        return LifecycleResult(document_id=document_id, status=DocumentStatus.ERROR, error=reason)

    async def _notify(self, document: Document, summary: str, db: AsyncSession) -> None:
        try:
            client: Any = await db.get(Client, document.client_id)
            await self.notifier.notify_analysis_complete(
                to=document.notify_email,
                document_id=document.id,
                client_name=client.name if client else None,
                summary=summary,
            )
        except Exception as e:
            logger.warning("Completion notification failed", extra={"error_type": type(e).__name__})
