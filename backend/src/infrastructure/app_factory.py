from asyncio import Event
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..modules.analysis.client import get_analysis_client
from ..modules.common.exceptions import StorageError
from ..modules.common.utils.error_handler import register_exception_handlers
from .config.settings import (
    DatabaseSettings,
    EnvironmentOption,
    EnvironmentSettings,
    Settings,
    get_settings,
)
from .database.session import create_tables
from .email import get_email_sender
from .logging import configure_logging, correlation_scope, generate_correlation_id, get_logger
from .storage import get_storage_gateway

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def set_threadpool_tokens(number_of_tokens: int = 100) -> None:
    """Configure the number of threadpool tokens for anyio."""
    limiter = anyio.to_thread.current_default_thread_limiter()
    limiter.total_tokens = number_of_tokens


def lifespan_factory(
    settings: Settings,
    create_tables_on_startup: bool = True,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Factory to create a lifespan async context manager for a FastAPI app.

    On startup: configures logging, sets the anyio worker thread limit used by
    sync endpoints and dependencies, creates tables when enabled and makes
    sure the storage bucket exists. On shutdown: closes the storage, email and
    Anthropic HTTP clients.

    Args:
        settings: Application settings
        create_tables_on_startup: Whether to create database tables on startup

    Returns:
        An async context manager for FastAPI's lifespan
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        initialization_complete = Event()
        app.state.initialization_complete = initialization_complete

        configure_logging()
        await set_threadpool_tokens()

        storage = get_storage_gateway()
        try:
            if isinstance(settings, DatabaseSettings) and create_tables_on_startup:
                await create_tables()

            try:
                await storage.ensure_bucket()
            except StorageError as e:
                logger.error("Storage bucket is not available", extra={"error": str(e)})

            initialization_complete.set()
            logger.info(f"{settings.APP_NAME} started", extra={"environment": settings.ENVIRONMENT.value})
            yield

        finally:
            await storage.aclose()
            await get_email_sender().aclose()
            if get_analysis_client.cache_info().currsize:
                await get_analysis_client().aclose()

    return lifespan


class CorrelationIdMiddleware:
    """Tag every log line of a request with its ``X-Request-ID``.

    Plain ASGI middleware, so the id also covers background tasks that run
    after the response body is sent.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or generate_correlation_id()

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = correlation_id
            await send(message)

        with correlation_scope(correlation_id):
            await self.app(scope, receive, send_with_request_id)


def create_application(
    router: APIRouter,
    settings: Optional[Settings] = None,
    lifespan: Optional[Callable[[FastAPI], AbstractAsyncContextManager[None]]] = None,
    create_tables_on_startup: Optional[bool] = None,
    enable_cors: Optional[bool] = None,
    cors_origins: Optional[List[str]] = None,
    enable_docs_in_production: Optional[bool] = None,
    enable_gzip: Optional[bool] = None,
    **kwargs: Any,
) -> FastAPI:
    """Creates and configures a FastAPI application based on the provided settings.

    Args:
        router: The APIRouter containing the routes for the application
        settings: Application settings (uses get_settings() if None)
        lifespan: Optional lifespan function for the FastAPI app. If None, uses
            the default lifespan_factory.
        create_tables_on_startup: Whether to create database tables on startup.
            Defaults to settings.CREATE_TABLES_ON_STARTUP if None.
        enable_cors: Whether to enable CORS middleware.
            Defaults to settings.CORS_ENABLED if None.
        cors_origins: List of allowed origins for CORS.
            Defaults to settings.CORS_ORIGINS if None.
        enable_docs_in_production: Whether to enable API docs in production.
            Defaults to settings.ENABLE_DOCS_IN_PRODUCTION if None.
        enable_gzip: Whether to enable GZip compression middleware.
            Defaults to settings.GZIP_ENABLED if None.
        **kwargs: Additional keyword arguments passed to FastAPI constructor,
            such as title, summary, description and version

    Returns:
        A configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    _create_tables_on_startup = (
        create_tables_on_startup if create_tables_on_startup is not None else settings.CREATE_TABLES_ON_STARTUP
    )
    _enable_cors = enable_cors if enable_cors is not None else settings.CORS_ENABLED
    _cors_origins = cors_origins if cors_origins is not None else settings.CORS_ORIGINS_LIST
    _enable_docs_in_production = (
        enable_docs_in_production if enable_docs_in_production is not None else settings.ENABLE_DOCS_IN_PRODUCTION
    )
    _enable_gzip = enable_gzip if enable_gzip is not None else settings.GZIP_ENABLED

    metadata: Dict[str, Any] = {
        "title": settings.APP_NAME,
        "description": settings.APP_DESCRIPTION,
        "version": settings.VERSION,
        "docs_url": settings.DOCS_URL,
        "redoc_url": settings.REDOC_URL,
        "openapi_url": settings.OPENAPI_URL,
    }
    metadata.update(kwargs)

    hide_docs = (
        isinstance(settings, EnvironmentSettings)
        and settings.ENVIRONMENT == EnvironmentOption.PRODUCTION
        and not _enable_docs_in_production
    )
    if hide_docs:
        metadata.update({"docs_url": None, "redoc_url": None, "openapi_url": None})

    if lifespan is None:
        lifespan = lifespan_factory(settings, create_tables_on_startup=_create_tables_on_startup)

    application = FastAPI(lifespan=lifespan, **metadata)

    application.include_router(router)
    register_exception_handlers(application)
    application.add_middleware(CorrelationIdMiddleware)

    if _enable_cors:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=_cors_origins,
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            allow_methods=settings.CORS_ALLOW_METHODS.split(","),
            allow_headers=settings.CORS_ALLOW_HEADERS.split(","),
        )

    if _enable_gzip:
        application.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)

    return application
