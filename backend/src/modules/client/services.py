"""Client resolution and listing service."""

from typing import Any

from fastcrud.paginated.response import paginated_response
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...infrastructure.logging import get_logger
from ..common.exceptions import ClientLookupError
from ..document.models import Document
from .crud import client_crud
from .models import Client
from .schemas import ClientRead

logger = get_logger(__name__)


class ClientService:
    """Service for resolving the agency client a document belongs to."""

    async def get_or_create_client(self, user_id: str, name: str, db: AsyncSession) -> Client:
        """Find the owner's client by case-insensitive name, or create it.

        The new client is flushed but not committed; the caller commits it
        together with the document that references it.

        Args:
            user_id: Owning agency user id
            name: Client display name as typed by the user
            db: Database session

        Returns:
            The existing or newly created client

        Raises:
            ClientLookupError: If the lookup or insert fails
        """
        display_name = name.strip()
        try:
            stmt = (
                select(Client)
                .where(Client.user_id == user_id, func.lower(Client.name) == display_name.lower())
                .order_by(Client.created_at)
                .limit(1)
            )
            result = await db.execute(stmt)
            client = result.scalars().first()
            if client is not None:
                return client

            client = Client(user_id=user_id, name=display_name)
            db.add(client)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Client lookup failed", extra={"user_id": user_id, "error": str(e)})
            raise ClientLookupError("Failed to resolve client") from e

        logger.info("Created client", extra={"client_id": str(client.id), "user_id": user_id})
        return client

    async def get_clients(self, user_id: str, db: AsyncSession, page: int = 1, items_per_page: int = 50) -> dict[str, Any]:
        """Get an owner's clients with their document counts.

        Args:
            user_id: Owner whose clients are listed
            db: Database session
            page: Page number (1-indexed)
            items_per_page: Number of clients per page

        Returns:
            Paginated response with clients, most recently updated first
        """
        offset = (page - 1) * items_per_page
        stmt = await client_crud.select(sort_columns="updated_at", sort_orders="desc", user_id=user_id)
        stmt = (
            stmt.add_columns(func.count(Document.id).label("document_count"))
            .outerjoin(Document, Client.id == Document.client_id)
            .group_by(Client.id)
            .offset(offset)
            .limit(items_per_page)
        )

        rows = (await db.execute(stmt)).fetchall()
        total_count = await client_crud.count(db=db, user_id=user_id)

        clients = [
            ClientRead(
                id=row.id,
                user_id=row.user_id,
                name=row.name,
                created_at=row.created_at,
                updated_at=row.updated_at,
                document_count=row.document_count,
            ).model_dump()
            for row in rows
        ]
        return paginated_response({"data": clients, "total_count": total_count}, page, items_per_page)
