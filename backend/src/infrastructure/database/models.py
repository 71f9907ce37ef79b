import uuid as uuid_pkg
from datetime import UTC, datetime

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, MappedAsDataclass, mapped_column


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class UUIDMixin(MappedAsDataclass):
    """Mixin adding an opaque UUID primary key named ``id``.

    The identifier is generated client-side with ``uuid4`` so it is known
    before the row is flushed, which lets intake derive the storage path and
    share link in the same transaction that creates the row.

    Attributes:
        id: The UUID primary key, excluded from the dataclass constructor.
    """

    id: Mapped[uuid_pkg.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default_factory=uuid_pkg.uuid4,
        init=False,
    )


class TimestampMixin(MappedAsDataclass):
    """Mixin for adding created_at and updated_at timestamp columns.

    Both columns are timezone-aware and stored in UTC. ``updated_at`` is
    refreshed on every ORM flush and on every Core ``update()`` that does not
    set it explicitly, which the stale-run sweep relies on to measure how long
    a document has been sitting in a state.

    Attributes:
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last written.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        nullable=False,
        init=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default_factory=utc_now,
        onupdate=utc_now,
        nullable=False,
        init=False,
    )
