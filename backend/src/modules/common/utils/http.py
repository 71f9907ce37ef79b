from typing import Any, Dict, Optional

from fastapi import HTTPException


class CodedHTTPException(HTTPException):
    """HTTPException that also carries a stable error code for the response body."""

    def __init__(self, status_code: int, detail: Any = None, code: str = "internal_error", headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
