"""FastAPI dependencies for use in API endpoints."""

import hmac
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.config.settings import Settings, get_settings
from ...infrastructure.database import async_session, get_session_factory
from ...infrastructure.email import get_email_sender
from ...infrastructure.extraction import get_text_extractor
from ...infrastructure.storage import StorageGateway, get_storage_gateway
from ...modules.analysis.client import get_analysis_client
from ...modules.analysis.services import AnalysisService
from ...modules.client.services import ClientService
from ...modules.common.exceptions import PermissionDeniedError
from ...modules.document.intake import UploadIntakeService
from ...modules.document.services import DocumentService
from ...modules.lifecycle import AnalysisDispatcher, DocumentLifecycleController
from ...modules.notification.services import NotificationService

DbSession = Annotated[AsyncSession, Depends(async_session)]


@dataclass
class CurrentUser:
    """Agency user identity forwarded by the upstream identity proxy."""

    id: str
    email: Optional[str] = None


def get_current_user(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_email: Annotated[Optional[str], Header()] = None,
) -> CurrentUser:
    """Dependency resolving the requesting user from identity headers.

    Raises:
        PermissionDeniedError: If no user id header is present
    """
    if not x_user_id or not x_user_id.strip():
        raise PermissionDeniedError("Unauthorized")
    return CurrentUser(id=x_user_id.strip(), email=x_user_email or None)


def get_optional_user(x_user_id: Annotated[Optional[str], Header()] = None) -> Optional[CurrentUser]:
    if not x_user_id or not x_user_id.strip():
        return None
    return CurrentUser(id=x_user_id.strip())


def has_valid_trigger_token(
    x_trigger_token: Annotated[Optional[str], Header()] = None,
    settings: Settings = Depends(get_settings),
) -> bool:
    """Whether the request carries the configured trigger shared secret."""
    expected = settings.ANALYSIS_TRIGGER_TOKEN
    if not expected or not x_trigger_token:
        return False
    return hmac.compare_digest(expected, x_trigger_token)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def get_analysis_service() -> AnalysisService:
    """Dependency for providing an AnalysisService instance."""
    return AnalysisService()


def get_client_service() -> ClientService:
    """Dependency for providing a ClientService instance."""
    return ClientService()


def get_document_service() -> DocumentService:
    """Dependency for providing a DocumentService instance."""
    return DocumentService()


def get_storage() -> StorageGateway:
    return get_storage_gateway()


def get_intake_service(storage: StorageGateway = Depends(get_storage)) -> UploadIntakeService:
    """Dependency for providing an UploadIntakeService instance."""
    return UploadIntakeService(storage=storage)


@lru_cache
def get_notification_service() -> NotificationService:
    """Get the process-wide notification service."""
    settings = get_settings()
    return NotificationService(sender=get_email_sender(), app_url=settings.APP_URL, app_name=settings.APP_NAME)


@lru_cache
def get_lifecycle_controller() -> DocumentLifecycleController:
    """Get the process-wide lifecycle controller."""
    return DocumentLifecycleController(
        session_factory=get_session_factory(),
        storage=get_storage_gateway(),
        extractor=get_text_extractor(),
        analysis_client=get_analysis_client(),
        notifier=get_notification_service(),
    )


@lru_cache
def get_dispatcher() -> AnalysisDispatcher:
    """Get the process-wide analysis dispatcher."""
    settings = get_settings()
    return AnalysisDispatcher(
        controller=get_lifecycle_controller(),
        mode=settings.ANALYSIS_DISPATCH_MODE,
        base_url=settings.ANALYSIS_TRIGGER_BASE_URL,
        api_prefix=f"{settings.API_PREFIX}/v1",
        trigger_token=settings.ANALYSIS_TRIGGER_TOKEN,
        timeout=settings.ANALYSIS_TRIGGER_TIMEOUT_SECONDS,
        stale_after=settings.ANALYSIS_STALE_AFTER_SECONDS,
    )
