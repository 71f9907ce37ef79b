"""Tests for upload intake."""

import pytest
from sqlalchemy import func, select

from src.modules.client.models import Client
from src.modules.common.exceptions import MissingInputError, StorageUploadError, UnsupportedFileTypeError
from src.modules.document.intake import (
    UploadedFile,
    UploadIntakeService,
    build_storage_path,
    detect_file_type,
    safe_file_name,
)
from src.modules.document.models import Document, DocumentStatus, FileType


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("form.pdf", FileType.PDF),
        ("FORM.PDF", FileType.PDF),
        ("intake.docx", FileType.DOCX),
        ("legacy.doc", FileType.DOCX),
        ("scan.PNG", FileType.IMAGE),
        ("photo.jpeg", FileType.IMAGE),
        ("photo.heic", FileType.IMAGE),
    ],
)
def test_detect_file_type(filename, expected):
    """Test file type detection from the extension."""
    assert detect_file_type(filename) == expected


@pytest.mark.parametrize("filename", ["notes.txt", "archive.zip", "README"])
def test_detect_file_type_rejects(filename):
    """Test that unsupported extensions are rejected."""
    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        detect_file_type(filename)

    assert exc_info.value.code == "unsupported_file_type"


def test_safe_file_name():
    """Test file name sanitizing for storage paths."""
    assert safe_file_name("Client Form (final) v2.pdf") == "Client_Form__final__v2.pdf"
    assert safe_file_name("ok-name.1.docx") == "ok-name.1.docx"


def test_build_storage_path():
    """Test the owner, client and timestamp storage path layout."""
    assert build_storage_path("user-1", "client-9", "My Form.pdf", timestamp_ms=1700000000123) == (
        "user-1/client-9/1700000000123_My_Form.pdf"
    )


class TestUploadIntakeService:
    @pytest.fixture
    def intake(self, storage) -> UploadIntakeService:
        return UploadIntakeService(storage=storage)

    @pytest.mark.asyncio
    async def test_creates_document_and_stores_file(self, intake, storage, db_session, pdf_factory):
        """Test that intake creates the document and stores the file."""
        content = pdf_factory("Company name Acme")

        document = await intake.create_document(
            user_id="user-1",
            client_name="  Acme Ltd ",
            upload=UploadedFile(filename="Intake Form.pdf", content=content, content_type="application/pdf"),
            db=db_session,
            notify_email="owner@agency.test",
        )

        assert document.status == DocumentStatus.UPLOADING.value
        assert document.file_type == FileType.PDF.value
        assert document.file_name == "Intake Form.pdf"
        assert document.file_path.startswith(f"user-1/{document.client_id}/")
        assert document.file_path.endswith("_Intake_Form.pdf")
        assert document.notify_email == "owner@agency.test"
        assert len(document.share_token) == 32
        assert storage.blobs[document.file_path] == content

        client = await db_session.get(Client, document.client_id)
        assert client.name == "Acme Ltd"

    @pytest.mark.asyncio
    async def test_reuses_client_case_insensitively(self, intake, db_session, pdf_factory):
        """Test that clients are matched by case-insensitive name per owner."""
        first = await intake.create_document(
            "user-1", "Acme Ltd", UploadedFile("a.pdf", pdf_factory("one")), db_session
        )
        second = await intake.create_document(
            "user-1", "ACME LTD", UploadedFile("b.pdf", pdf_factory("two")), db_session
        )
        other_owner = await intake.create_document(
            "user-2", "Acme Ltd", UploadedFile("c.pdf", pdf_factory("three")), db_session
        )

        assert first.client_id == second.client_id
        assert other_owner.client_id != first.client_id
        assert first.share_token != second.share_token

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "client_name, upload",
        [
            (None, UploadedFile("a.pdf", b"data")),
            ("   ", UploadedFile("a.pdf", b"data")),
            ("Acme", None),
            ("Acme", UploadedFile("", b"data")),
            ("Acme", UploadedFile("a.pdf", b"")),
        ],
    )
    async def test_missing_input(self, intake, db_session, storage, client_name, upload):
        """Test that a missing client name or file creates nothing."""
        with pytest.raises(MissingInputError) as exc_info:
            await intake.create_document("user-1", client_name, upload, db_session)

        assert exc_info.value.code == "missing_input"
        assert storage.blobs == {}

    @pytest.mark.asyncio
    async def test_unsupported_type_creates_nothing(self, intake, db_session, storage):
        """Test that an unsupported upload creates nothing."""
        with pytest.raises(UnsupportedFileTypeError):
            await intake.create_document("user-1", "Acme", UploadedFile("notes.txt", b"data"), db_session)

        assert await db_session.scalar(select(func.count()).select_from(Client)) == 0
        assert storage.blobs == {}

    @pytest.mark.asyncio
    async def test_storage_failure_leaves_no_rows(self, intake, db_session, storage, session_factory):
        """Test that a storage failure rolls back the client and document."""
        storage.fail_uploads = True

        with pytest.raises(StorageUploadError) as exc_info:
            await intake.create_document("user-1", "Acme", UploadedFile("a.pdf", b"data"), db_session)

        assert exc_info.value.code == "storage_upload_failed"
        async with session_factory() as fresh:
            assert await fresh.scalar(select(func.count()).select_from(Document)) == 0
            assert await fresh.scalar(select(func.count()).select_from(Client)) == 0
