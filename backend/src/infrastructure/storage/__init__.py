"""Blob storage gateways."""

from functools import lru_cache

from ..config.settings import get_settings
from .base import StorageGateway
from .local import LocalStorageGateway
from .supabase import SupabaseStorageGateway


def create_storage_gateway(settings) -> StorageGateway:
    """Build the gateway selected by ``STORAGE_BACKEND``."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "supabase":
        return SupabaseStorageGateway(
            url=settings.SUPABASE_URL,
            service_role_key=settings.SUPABASE_SERVICE_ROLE_KEY,
            bucket=settings.STORAGE_BUCKET,
            timeout=settings.STORAGE_TIMEOUT_SECONDS,
        )
    if backend == "local":
        return LocalStorageGateway(root=settings.STORAGE_LOCAL_ROOT)
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}. Available: local, supabase")


@lru_cache
def get_storage_gateway() -> StorageGateway:
    """Get the process-wide storage gateway."""
    return create_storage_gateway(get_settings())


__all__ = [
    "LocalStorageGateway",
    "StorageGateway",
    "SupabaseStorageGateway",
    "create_storage_gateway",
    "get_storage_gateway",
]
