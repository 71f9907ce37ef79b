"""Report sharing API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from ....modules.client.models import Client
from ....modules.common.utils.error_handler import handle_exception
from ....modules.document.schemas import SharedReport, ShareEmailRequest, ShareEmailResponse
from ....modules.document.services import DocumentService
from ....modules.notification.services import NotificationService
from ..dependencies import CurrentUserDep, DbSession, get_document_service, get_notification_service

router = APIRouter(tags=["Sharing"])


@router.post(
    "/share/email",
    summary="Email Report Link",
    description="""
    Emails the executive summary and the public report link of one of the
    current user's documents to a recipient.

    - **document_id**: Document to share; must belong to the current user
    - **email**: Recipient address
    """,
    responses={
        200: {"description": "Email accepted by the provider"},
        401: {"description": "Missing user identity"},
        404: {"description": "Document not found"},
        502: {"description": "Email could not be delivered"},
    },
)
async def share_by_email(
    share_request: ShareEmailRequest,
    db: DbSession,
    user: CurrentUserDep,
    document_service: DocumentService = Depends(get_document_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> ShareEmailResponse:
    """Send a share email for a document."""
    try:
        document = await document_service.get_document(share_request.document_id, db, user_id=user.id)
        if document is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

        client = await db.get(Client, document.client_id)
        latest = await document_service.analysis_service.get_latest(document.id, db)

        email_id = await notifier.send_share_email(
            to=str(share_request.email),
            share_token=document.share_token,
            client_name=client.name if client else None,
            summary=latest.summary if latest else None,
        )
        return ShareEmailResponse(success=True, email_id=email_id)
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get(
    "/shared/{share_token}",
    summary="Get Shared Report",
    description="""
    Public, unauthenticated view of a document through its share token.

    Returns the file and client name, the status and the current analysis.
    Failure reasons are never included.
    """,
    responses={200: {"description": "Shared report"}, 404: {"description": "Unknown share token"}},
)
async def get_shared_report(
    share_token: str,
    db: DbSession,
    document_service: DocumentService = Depends(get_document_service),
) -> SharedReport:
    """Get a shared report by token."""
    try:
        report = await document_service.get_shared_report(share_token, db)
        if report is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
        return report
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
