from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from ..config.settings import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    pool_size=settings.POSTGRES_POOL_SIZE,
    max_overflow=settings.POSTGRES_MAX_OVERFLOW,
)

local_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase, MappedAsDataclass):
    """Declarative base for every persisted entity of the portal.

    Combines SQLAlchemy's DeclarativeBase with MappedAsDataclass so models
    get a dataclass ``__init__``/``__repr__`` generated from their mapped
    columns. Columns filled in by the database or by mixins are declared
    with ``init=False``.

    Example:
        ```python
        class Client(Base, UUIDMixin, TimestampMixin):
            __tablename__ = "clients"

            user_id: Mapped[str] = mapped_column(String(255), index=True)
            name: Mapped[str] = mapped_column(String(255))

        client = Client(user_id="user-1", name="Acme Ltd")
        ```
    """

    pass


async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped database session.

    Yields:
        AsyncSession: A session that is closed when the request finishes.

    Note:
        Use via ``Depends(async_session)``. Work that outlives the request,
        such as a lifecycle run handed off to the background, must open its
        own session from :func:`get_session_factory` instead.
    """
    async with local_session() as db:
        yield db


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory used by background lifecycle runs."""
    return local_session


async def create_tables() -> None:
    """Create all tables in the database if they don't exist.

    Note:
        Idempotent: existing tables are left unchanged. Schema changes to
        existing tables need a migration tool.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
