"""Client API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....modules.client.schemas import ClientListResponse
from ....modules.client.services import ClientService
from ....modules.common.utils.error_handler import handle_exception
from ..dependencies import CurrentUserDep, DbSession, get_client_service

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get(
    "",
    summary="List Clients",
    description="""
    Retrieves the current user's clients with the number of documents
    uploaded for each, most recently updated first.

    - **page**: Page number (1-indexed, default: 1)
    - **items_per_page**: Number of clients per page (default: 50, max: 100)
    """,
    response_model=ClientListResponse,
    responses={200: {"description": "Paginated list of clients"}, 401: {"description": "Missing user identity"}},
)
async def get_clients(
    db: DbSession,
    user: CurrentUserDep,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    client_service: ClientService = Depends(get_client_service),
):
    """Get the user's clients with pagination."""
    try:
        return await client_service.get_clients(user.id, db, page=page, items_per_page=items_per_page)
    except Exception as e:
        http_exc = handle_exception(e)
        if http_exc:
            raise http_exc
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
