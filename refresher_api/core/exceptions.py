"""
Typed error outcomes raised by services and dependencies.

Handlers registered in main.py are the only place these become HTTP
responses. Every error renders as:

    {"error": {"code": "...", "message": "...", "details": [...]}}
"""

from typing import Any, Dict, List, Optional


class ApiError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, str]]] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class ValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class AuthenticationError(ApiError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"
    message = "Missing or invalid authentication token"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    code = "CONFLICT"
    message = "Resource already exists"


class RateLimitError(ApiError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        super().__init__(message)
        if retry_after is not None:
            self.headers = {"Retry-After": str(retry_after)}


class InternalError(ApiError):
    """Store or unexpected failure. Context is for server logs only."""

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ServiceUnavailableError(ApiError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    message = "AI service is temporarily unavailable. Please try again later."


def error_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """``{field, message}`` pairs from pydantic errors; model-level errors are reported on ``body``."""
    return [
        {"field": ".".join(str(p) for p in e.get("loc", ())) or "body", "message": e["msg"]}
        for e in errors
    ]
