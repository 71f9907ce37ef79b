"""Document API endpoints."""

import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status

from ....modules.analysis.schemas import AnalysisRead
from ....modules.analysis.services import AnalysisService
from ....modules.common.exceptions import PermissionDeniedError
from ....modules.common.schemas import ErrorResponse
from ....modules.common.utils.error_handler import handle_exception
from ....modules.common.utils.http import CodedHTTPException
from ....modules.document.intake import UploadedFile, UploadIntakeService
from ....modules.document.models import DocumentStatus
from ....modules.document.schemas import DocumentDetail, DocumentListResponse, DocumentRead, LifecycleResult
from ....modules.document.services import DocumentService
from ....modules.lifecycle import AnalysisDispatcher, DocumentLifecycleController
from ..dependencies import (
    CurrentUser,
    CurrentUserDep,
    DbSession,
    get_analysis_service,
    get_dispatcher,
    get_document_service,
    get_intake_service,
    get_lifecycle_controller,
    get_optional_user,
    has_valid_trigger_token,
)

router = APIRouter(prefix="/documents", tags=["Documents"])

ERROR_RESPONSES = {
    401: {"description": "Missing user identity", "model": ErrorResponse},
    404: {"description": "Document not found", "model": ErrorResponse},
}


def _internal_error(e: Exception) -> HTTPException:
    http_exc = handle_exception(e)
    if http_exc:
        return http_exc
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    summary="Upload Client Document",
    description="""
    Uploads a client onboarding form and starts its analysis.

    The client is matched by case-insensitive name for the current user and
    created if it does not exist. The file is stored, the document is created
    in `uploading` and the analysis is handed off; the response does not wait
    for it.

    - **client_name**: Display name of the agency's client
    - **file**: PDF or DOCX form (images are stored but cannot be analysed yet)
    """,
    responses={
        201: {"description": "Document created and analysis dispatched"},
        401: {"description": "Missing user identity"},
        415: {"description": "Unsupported file type"},
        422: {"description": "Missing client name or file"},
        502: {"description": "File could not be stored"},
    },
)
async def upload_document(
    background_tasks: BackgroundTasks,
    db: DbSession,
    user: CurrentUserDep,
    client_name: Annotated[Optional[str], Form()] = None,
    file: Annotated[Optional[UploadFile], File()] = None,
    intake: UploadIntakeService = Depends(get_intake_service),
    dispatcher: AnalysisDispatcher = Depends(get_dispatcher),
) -> DocumentRead:
    """Upload a document and dispatch its analysis."""
    try:
        upload = None
        if file is not None:
            upload = UploadedFile(filename=file.filename or "", content=await file.read(), content_type=file.content_type)

        document = await intake.create_document(
            user_id=user.id, client_name=client_name, upload=upload, db=db, notify_email=user.email
        )
        dispatcher.dispatch(document.id, user.id, background_tasks)
        return DocumentRead.model_validate(document)
    except Exception as e:
        raise _internal_error(e)


@router.post(
    "/{document_id}/analyse",
    summary="Run Document Analysis",
    description="""
    Runs the analysis lifecycle for a document and waits for it to finish.

    The document is claimed first; a document that is already being analysed
    is rejected with `analysis_in_progress`. Each successful run appends a new
    analysis version. Callable by the document owner or with the configured
    `X-Trigger-Token`.
    """,
    responses={
        200: {"description": "Analysis finished and the document is ready"},
        401: {"description": "Neither a valid trigger token nor a user identity"},
        404: {"description": "Document not found"},
        409: {"description": "Analysis already in progress"},
        500: {"description": "Analysis failed; the document is in error"},
    },
)
async def analyse_document(
    document_id: uuid.UUID,
    db: DbSession,
    trusted: bool = Depends(has_valid_trigger_token),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    document_service: DocumentService = Depends(get_document_service),
    controller: DocumentLifecycleController = Depends(get_lifecycle_controller),
) -> LifecycleResult:
    """Trigger one analysis run."""
    try:
        if not trusted:
            if user is None:
                raise PermissionDeniedError("Unauthorized")
            if await document_service.get_document(document_id, db, user_id=user.id) is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        await db.close()

        result = await controller.run(document_id)
        if result.status == DocumentStatus.ERROR:
            raise CodedHTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, result.error, "analysis_failed")
        return result
    except Exception as e:
        raise _internal_error(e)


@router.get(
    "",
    summary="List Documents",
    description="""
    Retrieves the current user's documents, newest first.

    - **status**: Optional status filter
    - **client_id**: Optional client filter
    - **page**: Page number (1-indexed, default: 1)
    - **items_per_page**: Number of documents per page (default: 50, max: 100)
    """,
    response_model=DocumentListResponse,
    responses={200: {"description": "Paginated list of documents"}, 401: {"description": "Missing user identity"}},
)
async def get_documents(
    db: DbSession,
    user: CurrentUserDep,
    document_status: Annotated[Optional[DocumentStatus], Query(alias="status", description="Filter by status")] = None,
    client_id: Annotated[Optional[uuid.UUID], Query(description="Filter by client")] = None,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    document_service: DocumentService = Depends(get_document_service),
):
    """Get the user's documents with pagination."""
    try:
        return await document_service.get_documents(
            user.id, db, page=page, items_per_page=items_per_page, status=document_status, client_id=client_id
        )
    except Exception as e:
        raise _internal_error(e)


@router.get(
    "/{document_id}",
    summary="Get Document Details",
    description="""
    Retrieves a document with its client name, status, last error reason and
    current (highest version) analysis, if any. Poll this endpoint to follow
    the document through `uploading`, `analysing` and `ready` or `error`.
    """,
    responses={200: {"description": "Document details"}, **ERROR_RESPONSES},
)
async def get_document(
    document_id: uuid.UUID,
    db: DbSession,
    user: CurrentUserDep,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentDetail:
    """Get a specific document by ID."""
    try:
        result = await document_service.get_document_detail(document_id, user.id, db)
        if not result:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        return result
    except Exception as e:
        raise _internal_error(e)


@router.get(
    "/{document_id}/analyses",
    summary="List Analysis Versions",
    description="Retrieves every analysis version of a document, newest first. Earlier versions are never modified.",
    responses={200: {"description": "Analysis versions"}, **ERROR_RESPONSES},
)
async def get_document_analyses(
    document_id: uuid.UUID,
    db: DbSession,
    user: CurrentUserDep,
    document_service: DocumentService = Depends(get_document_service),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> List[AnalysisRead]:
    """Get all analysis versions of a document."""
    try:
        if await document_service.get_document(document_id, db, user_id=user.id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
        return await analysis_service.list_versions(document_id, db)
    except Exception as e:
        raise _internal_error(e)
