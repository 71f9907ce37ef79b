"""Infrastructure: configuration, database, logging and external service clients."""

from .config import get_settings
from .database.session import async_session, create_tables

__all__ = [
    "async_session",
    "create_tables",
    "get_settings",
]
