"""Test configuration and fixtures for the client analysis portal."""

import io
import json
import os
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("APP_URL", "http://portal.test")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

import docx  # noqa: E402

from src.infrastructure.database.session import Base, async_session  # noqa: E402
from src.infrastructure.extraction import TextExtractor  # noqa: E402
from src.infrastructure.logging import configure_testing_logging  # noqa: E402
from src.infrastructure.storage.base import StorageGateway  # noqa: E402
from src.interfaces.api import dependencies  # noqa: E402
from src.interfaces.main import app  # noqa: E402
from src.modules.analysis.client import AnalysisClient  # noqa: E402
from src.modules.analysis.prompts import STRUCTURING_SYSTEM_PROMPT  # noqa: E402
from src.modules.client.models import Client  # noqa: E402
from src.modules.common.exceptions import BlobNotFoundError, EmailDeliveryError, StorageError  # noqa: E402
from src.modules.document.models import Document, DocumentStatus  # noqa: E402
from src.modules.lifecycle import AnalysisDispatcher, DocumentLifecycleController  # noqa: E402
from src.modules.notification.services import NotificationService  # noqa: E402

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
USER_EMAIL = "owner@agency.test"

QA_BLOCKS: List[Dict[str, Any]] = [
    {
        "question": "What is your company name?",
        "original_response": "Acme Ltd",
        "improved_response": "Acme Ltd is an established regional supplier of industrial parts.",
        "recommendations": ["Lead with the company's regional reputation"],
        "flags": [],
    },
    {
        "question": "What are your goals for the next year?",
        "original_response": "grow",
        "improved_response": "Increase annual revenue through new online sales channels.",
        "recommendations": ["Set a measurable revenue target", "Launch an e-commerce pilot"],
        "flags": ["Growth target is not quantified"],
    },
]

STRUCTURED_REPLY = "```json\n" + json.dumps(QA_BLOCKS) + "\n```"
SUMMARY_REPLY = "## Executive Summary\n\nAcme wants to grow online.\n\n\n\nBudget is the main hurdle."
CLEAN_SUMMARY = "Acme wants to grow online.\n\nBudget is the main hurdle."


class InMemoryStorage(StorageGateway):
    """Create-if-absent blob store kept in a dict."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.fail_uploads = False
        self.fail_downloads = False

    async def upload(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> None:
        if self.fail_uploads:
            raise StorageError("storage is down")
        if path in self.blobs:
            raise StorageError(f"A file already exists at {path}")
        self.blobs[path] = content

    async def download(self, path: str) -> bytes:
        if self.fail_downloads:
            raise StorageError("storage is down")
        if path not in self.blobs:
            raise BlobNotFoundError(f"No file stored at {path}")
        return self.blobs[path]


class FakeMessages:
    """Stand-in for ``AsyncAnthropic().messages`` that replays queued replies."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.structuring_replies: List[Any] = []
        self.summary_replies: List[Any] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        is_structuring = kwargs["system"] == STRUCTURING_SYSTEM_PROMPT
        queue = self.structuring_replies if is_structuring else self.summary_replies
        if queue:
            reply = queue.pop(0)
        else:
            reply = STRUCTURED_REPLY if is_structuring else SUMMARY_REPLY
        if isinstance(reply, BaseException):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)])


class FakeAnthropic:
    def __init__(self):
        self.messages = FakeMessages()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeEmailSender:
    """Records sent emails instead of calling the provider."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.fail = False

    async def send(self, to, subject: str, html: str) -> Optional[str]:
        if self.fail:
            raise EmailDeliveryError("Failed to send email")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"email-{len(self.sent)}"

    async def aclose(self) -> None:
        return None


def build_pdf(text: Optional[str]) -> bytes:
    """Build a one-page PDF showing ``text`` in Helvetica."""
    stream = f"BT /F1 18 Tf 72 720 Td ({text}) Tj ET".encode("latin-1") if text else b""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(out)


def build_docx(paragraphs: List[str], table_rows: Optional[List[List[str]]] = None) -> bytes:
    """Build a DOCX with the given paragraphs followed by an optional table."""
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    configure_testing_logging()


@pytest.fixture
def pdf_factory() -> Callable[[Optional[str]], bytes]:
    return build_pdf


@pytest.fixture
def docx_factory() -> Callable[..., bytes]:
    return build_docx


@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """Create a SQLite database file with all tables for one test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def fake_anthropic() -> FakeAnthropic:
    return FakeAnthropic()


@pytest.fixture
def analysis_client(fake_anthropic) -> AnalysisClient:
    return AnalysisClient(client=fake_anthropic, model="test-model")


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def notifier(email_sender) -> NotificationService:
    return NotificationService(sender=email_sender, app_url="http://portal.test", app_name="Test Portal")


@pytest.fixture
def controller(session_factory, storage, analysis_client, notifier) -> DocumentLifecycleController:
    return DocumentLifecycleController(
        session_factory=session_factory,
        storage=storage,
        extractor=TextExtractor(),
        analysis_client=analysis_client,
        notifier=notifier,
    )


@pytest.fixture
def dispatcher(controller) -> AnalysisDispatcher:
    return AnalysisDispatcher(controller=controller, mode="background")


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, storage, controller, dispatcher, notifier):
    """Create a test client wired to the test database and fakes."""
    app.dependency_overrides = {}

    async def override_get_db():
        """Each request gets its own isolated database session."""
        async with session_factory() as session:
            yield session

    app.dependency_overrides[async_session] = override_get_db
    app.dependency_overrides[dependencies.get_storage] = lambda: storage
    app.dependency_overrides[dependencies.get_lifecycle_controller] = lambda: controller
    app.dependency_overrides[dependencies.get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[dependencies.get_notification_service] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def owner_headers() -> Dict[str, str]:
    return {"X-User-Id": USER_ID, "X-User-Email": USER_EMAIL}


@pytest_asyncio.fixture
async def test_client_record(db_session: AsyncSession):
    """Create a client owned by the test user."""
    client = Client(user_id=USER_ID, name="Acme Ltd")
    db_session.add(client)
    await db_session.commit()
    return {"id": client.id, "user_id": client.user_id, "name": client.name}


@pytest_asyncio.fixture
async def make_document(db_session: AsyncSession, storage: InMemoryStorage, test_client_record: dict):
    """Factory creating a stored document in a given state."""

    async def _make(
        content: Optional[bytes] = None,
        file_type: str = "pdf",
        status: DocumentStatus = DocumentStatus.UPLOADING,
        user_id: str = USER_ID,
        file_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        name = file_name or f"intake.{file_type if file_type != 'image' else 'png'}"
        document = Document(
            user_id=user_id,
            client_id=test_client_record["id"],
            file_name=name,
            file_path=f"{user_id}/{test_client_record['id']}/{len(storage.blobs)}_{name}",
            file_type=file_type,
            status=status.value,
            notify_email=USER_EMAIL,
        )
        db_session.add(document)
        await db_session.commit()
        if content is not None:
            await storage.upload(document.file_path, content)
        return {
            "id": document.id,
            "file_path": document.file_path,
            "share_token": document.share_token,
            "status": document.status,
            "client_id": document.client_id,
        }

    return _make


@pytest_asyncio.fixture
async def test_document(make_document, pdf_factory):
    """Create an uploaded PDF document owned by the test user."""
    return await make_document(content=pdf_factory("Company name: Acme Ltd. Goal: grow online sales."))


@pytest.fixture
def qa_blocks() -> List[Dict[str, Any]]:
    """QA blocks the fake model returns for every structuring request."""
    return QA_BLOCKS
