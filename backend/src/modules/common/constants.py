"""Common constants used across the application."""

from typing import Callable, Dict, Type

from fastapi import status

from .exceptions import (
    AnalysisModelError,
    ConflictError,
    DomainError,
    ExtractionError,
    NotificationError,
    PermissionDeniedError,
    PersistenceError,
    ResourceNotFoundError,
    StorageError,
    UnsupportedFileTypeError,
    ValidationError,
)
from .utils.http import CodedHTTPException

# Ordered most specific first: the first isinstance match wins.
EXCEPTION_MAPPING: Dict[Type[DomainError], Callable[[DomainError], CodedHTTPException]] = {
    ResourceNotFoundError: lambda e: CodedHTTPException(status.HTTP_404_NOT_FOUND, e.message, e.code),
    UnsupportedFileTypeError: lambda e: CodedHTTPException(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, e.message, e.code),
    ValidationError: lambda e: CodedHTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message, e.code),
    PermissionDeniedError: lambda e: CodedHTTPException(status.HTTP_401_UNAUTHORIZED, e.message, e.code),
    ConflictError: lambda e: CodedHTTPException(status.HTTP_409_CONFLICT, e.message, e.code),
    ExtractionError: lambda e: CodedHTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message, e.code),
    AnalysisModelError: lambda e: CodedHTTPException(status.HTTP_502_BAD_GATEWAY, e.message, e.code),
    StorageError: lambda e: CodedHTTPException(status.HTTP_502_BAD_GATEWAY, e.message, e.code),
    NotificationError: lambda e: CodedHTTPException(status.HTTP_502_BAD_GATEWAY, e.message, e.code),
    PersistenceError: lambda e: CodedHTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message, e.code),
}

STATUS_CODE_NAMES: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "invalid_input",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "internal_error",
}

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp", "heic"})
