"""
Application error types and their JSON envelope.

Every error leaving the API has the same shape:

    {"success": null, "error": {"code": "...", "message": "...", "metaData": {...} | null}}
"""

from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    code = "UNKNOWN_ERROR"
    status_code = 500

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "success": None,
            "error": {
                "code": self.code,
                "message": self.message,
                "metaData": self.metadata,
            },
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code}, message={self.message!r})>"


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class Forbidden(AppError):
    code = "FORBIDDEN"
    status_code = 403


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationFailure(AppError):
    code = "VALIDATION_FAILURE"
    status_code = 422


class TransportFailure(AppError):
    code = "TRANSPORT_FAILURE"
    status_code = 502


def transport_failure(exc: Exception, message: str) -> TransportFailure:
    """Wrap an exception raised by Supabase (PostgREST or Auth) into a TransportFailure."""
    metadata: Dict[str, Any] = {"reason": str(exc)}
    code = getattr(exc, "code", None)
    if code:
        metadata["upstreamCode"] = code
    logger.error(f"{message}: {exc}")
    return TransportFailure(message, metadata)
