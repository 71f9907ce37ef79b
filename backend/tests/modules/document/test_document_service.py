"""Tests for document reads and state transitions."""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import update

from src.infrastructure.database.models import utc_now
from src.modules.analysis.schemas import AnalysisOutcome, QABlock
from src.modules.analysis.services import AnalysisService
from src.modules.common.exceptions import AnalysisInProgressError, DocumentNotFoundError, PersistenceError
from src.modules.document.models import Document, DocumentStatus
from src.modules.document.services import STALE_RUN_REASON, DocumentService


@pytest.fixture
def document_service() -> DocumentService:
    return DocumentService()


def _outcome(summary: str = "Summary.") -> AnalysisOutcome:
    block = QABlock(question="Q?", original_response="a", improved_response="An answer.")
    return AnalysisOutcome(structured_result=[block], summary=summary)


async def _status(session_factory, document_id) -> Document:
    async with session_factory() as db:
        return await db.get(Document, document_id)


class TestClaim:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [DocumentStatus.UPLOADING, DocumentStatus.READY, DocumentStatus.ERROR])
    async def test_claims_from_claimable_states(self, document_service, make_document, session_factory, status):
        """Test claiming a document from each claimable state."""
        doc = await make_document(status=status)

        async with session_factory() as db:
            document = await document_service.claim_for_analysis(doc["id"], db)

        assert document.status == DocumentStatus.ANALYSING.value
        stored = await _status(session_factory, doc["id"])
        assert stored.status == DocumentStatus.ANALYSING.value
        assert stored.error_reason is None

    @pytest.mark.asyncio
    async def test_claim_clears_previous_error(self, document_service, make_document, session_factory):
        """Test that a claim clears the previous error reason."""
        doc = await make_document(status=DocumentStatus.ERROR)
        async with session_factory() as db:
            await db.execute(update(Document).where(Document.id == doc["id"]).values(error_reason="old: failure"))
            await db.commit()

        async with session_factory() as db:
            await document_service.claim_for_analysis(doc["id"], db)

        assert (await _status(session_factory, doc["id"])).error_reason is None

    @pytest.mark.asyncio
    async def test_second_claim_is_rejected(self, document_service, make_document, session_factory):
        """Test that a second concurrent claim is rejected."""
        doc = await make_document()

        async with session_factory() as db:
            await document_service.claim_for_analysis(doc["id"], db)
        async with session_factory() as db:
            with pytest.raises(AnalysisInProgressError) as exc_info:
                await document_service.claim_for_analysis(doc["id"], db)

        assert exc_info.value.code == "analysis_in_progress"

    @pytest.mark.asyncio
    async def test_claim_unknown_document(self, document_service, session_factory):
        """Test claiming a non-existent document."""
        async with session_factory() as db:
            with pytest.raises(DocumentNotFoundError):
                await document_service.claim_for_analysis(uuid.uuid4(), db)


class TestTransitions:
    @pytest.mark.asyncio
    async def test_mark_ready_requires_analysing(self, document_service, make_document, session_factory):
        """Test that the ready write needs a document in analysing."""
        doc = await make_document(status=DocumentStatus.UPLOADING)

        async with session_factory() as db:
            with pytest.raises(PersistenceError):
                await document_service.mark_ready(doc["id"], db)

    @pytest.mark.asyncio
    async def test_mark_error(self, document_service, make_document, session_factory):
        """Test that only an analysing document moves to error."""
        doc = await make_document(status=DocumentStatus.ANALYSING)

        async with session_factory() as db:
            assert await document_service.mark_error(doc["id"], "empty_content: nothing", db) is True
        async with session_factory() as db:
            assert await document_service.mark_error(doc["id"], "second", db) is False

        stored = await _status(session_factory, doc["id"])
        assert stored.status == DocumentStatus.ERROR.value
        assert stored.error_reason == "empty_content: nothing"

    @pytest.mark.asyncio
    async def test_fail_stale_analyses(self, document_service, make_document, session_factory):
        """Test that only stale analysing documents are swept to error."""
        stale = await make_document(status=DocumentStatus.ANALYSING)
        fresh = await make_document(status=DocumentStatus.ANALYSING)
        ready = await make_document(status=DocumentStatus.READY)

        an_hour_ago = utc_now() - timedelta(hours=1)
        async with session_factory() as db:
            await db.execute(
                update(Document)
                .where(Document.id.in_([stale["id"], ready["id"]]))
                .values(updated_at=an_hour_ago)
            )
            await db.commit()

        async with session_factory() as db:
            failed = await document_service.fail_stale_analyses(db, older_than=timedelta(minutes=15))

        assert failed == [stale["id"]]
        stored = await _status(session_factory, stale["id"])
        assert stored.status == DocumentStatus.ERROR.value
        assert stored.error_reason == STALE_RUN_REASON
        assert (await _status(session_factory, fresh["id"])).status == DocumentStatus.ANALYSING.value
        assert (await _status(session_factory, ready["id"])).status == DocumentStatus.READY.value


class TestReads:
    @pytest.mark.asyncio
    async def test_get_document_is_owner_scoped(self, document_service, test_document, db_session):
        """Test that owner reads hide other users' documents."""
        assert await document_service.get_document(test_document["id"], db_session, user_id="user-1") is not None
        assert await document_service.get_document(test_document["id"], db_session, user_id="user-2") is None

    @pytest.mark.asyncio
    async def test_detail_includes_latest_analysis(self, document_service, test_document, session_factory):
        """Test document detail with client name, version count and latest analysis."""
        analysis_service = AnalysisService()
        async with session_factory() as db:
            await analysis_service.add_analysis(test_document["id"], _outcome("First."), db)
            await analysis_service.add_analysis(test_document["id"], _outcome("Second."), db)
            await db.commit()

        async with session_factory() as db:
            detail = await document_service.get_document_detail(test_document["id"], "user-1", db)
            versions = await analysis_service.list_versions(test_document["id"], db)

        assert detail.client_name == "Acme Ltd"
        assert detail.analysis_count == 2
        assert detail.latest_analysis.version == 2
        assert detail.latest_analysis.summary == "Second."
        assert [v.version for v in versions] == [2, 1]

    @pytest.mark.asyncio
    async def test_list_documents(self, document_service, make_document, session_factory):
        """Test document listing with pagination and status filter."""
        for _ in range(3):
            await make_document()
        await make_document(status=DocumentStatus.READY)
        await make_document(user_id="user-2")

        async with session_factory() as db:
            page_one = await document_service.get_documents("user-1", db, page=1, items_per_page=3)
            ready = await document_service.get_documents("user-1", db, status=DocumentStatus.READY)

        assert page_one["total_count"] == 4
        assert len(page_one["data"]) == 3
        assert page_one["has_more"] is True
        assert all(doc["user_id"] == "user-1" for doc in page_one["data"])
        assert ready["total_count"] == 1
        assert ready["data"][0]["status"] == DocumentStatus.READY

    @pytest.mark.asyncio
    async def test_shared_report(self, document_service, test_document, session_factory):
        """Test the shared report for a token and an unknown token."""
        async with session_factory() as db:
            report = await document_service.get_shared_report(test_document["share_token"], db)
            missing = await document_service.get_shared_report("no-such-token", db)

        assert report.client_name == "Acme Ltd"
        assert report.status == DocumentStatus.UPLOADING
        assert report.analysis is None
        assert missing is None
