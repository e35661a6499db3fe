"""Typed errors raised by the acquisition pipeline and their HTTP mapping."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_URL = "INVALID_URL"
    SCRAPE_FAILED = "SCRAPE_FAILED"
    RECIPE_NOT_FOUND = "RECIPE_NOT_FOUND"
    BLOCKED_BY_SITE = "BLOCKED_BY_SITE"
    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_MULTIPLIER = "INVALID_MULTIPLIER"
    AI_SCALING_FAILED = "AI_SCALING_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES = {
    ErrorCode.INVALID_URL: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_MULTIPLIER: 400,
    ErrorCode.RECIPE_NOT_FOUND: 404,
    ErrorCode.BLOCKED_BY_SITE: 429,
    ErrorCode.SCRAPE_FAILED: 502,
    ErrorCode.NETWORK_ERROR: 502,
    ErrorCode.AI_SCALING_FAILED: 502,
}


class RecipeError(Exception):
    """Error with a machine-readable code, surfaced to API callers."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_CODES.get(self.code, 500)

    def __repr__(self) -> str:
        return f"RecipeError(code={self.code.value!r}, message={self.message!r})"


def to_api_error(exc: BaseException) -> Dict[str, Any]:
    """Convert any exception into the `{code, message, details}` error shape."""
    if isinstance(exc, RecipeError):
        return {"code": exc.code.value, "message": exc.message, "details": exc.details}
    message = str(exc) or "An unexpected error occurred"
    return {"code": ErrorCode.INTERNAL_ERROR.value, "message": message, "details": None}
