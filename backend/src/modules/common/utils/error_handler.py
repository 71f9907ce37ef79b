"""Utility functions for mapping domain exceptions to HTTP exceptions."""

from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ....infrastructure.logging import get_logger
from ..constants import EXCEPTION_MAPPING, STATUS_CODE_NAMES
from ..exceptions import DomainError
from .http import CodedHTTPException

logger = get_logger(__name__)


def map_exception(error: DomainError) -> CodedHTTPException:
    """Map a domain exception to a corresponding HTTP exception."""
    for exception_class, mapper in EXCEPTION_MAPPING.items():
        if isinstance(error, exception_class):
            return mapper(error)

    return CodedHTTPException(
        status.HTTP_500_INTERNAL_SERVER_ERROR, f"An unexpected error occurred: {str(error)}", error.code
    )


def error_body(exc: StarletteHTTPException) -> dict:
    """Render the ``{"detail", "code"}`` body for an HTTP exception."""
    code = getattr(exc, "code", None) or STATUS_CODE_NAMES.get(exc.status_code, "error")
    return {"detail": exc.detail, "code": code}


def register_exception_handlers(app: FastAPI) -> None:
    """Register global handlers so every error response carries a code."""

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Convert domain exceptions to appropriate HTTP responses."""
        http_exception = map_exception(exc)
        return JSONResponse(status_code=http_exception.status_code, content=error_body(http_exception))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected request payload", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_errors(exc), "code": "invalid_input"},
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Return validation errors without the non-serializable context objects."""
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]


def handle_exception(error: Exception) -> Optional[HTTPException]:
    """
    Handle an exception and return an appropriate HTTP exception if possible.

    For use in route handlers when you want to handle exceptions manually.

    Args:
        error: The exception to handle

    Returns:
        An HTTPException if the error can be mapped, None otherwise
    """
    if isinstance(error, DomainError):
        return map_exception(error)
    elif isinstance(error, HTTPException):
        return error
    return None
