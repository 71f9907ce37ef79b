"""SQLAlchemy models for client entities."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ...infrastructure.database.models import TimestampMixin, UUIDMixin
from ...infrastructure.database.session import Base


class Client(Base, UUIDMixin, TimestampMixin):
    """An agency's client, the owner of one or more uploaded documents.

    Clients are scoped to the agency user that created them. Names are unique
    per owner case-insensitively; intake enforces this with a lookup before
    creating a new client.
    """

    __tablename__ = "clients"

    user_id: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
