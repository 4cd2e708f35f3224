"""Error taxonomy for the DMS backend.

Every error carries a stable machine-readable code and is rendered by the API
layer as ``{"error": {"code", "message", "details"}}``.
"""

from typing import Any, Optional


class DmsError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class ValidationFailed(DmsError):
    code = "VALIDATION_ERROR"
    status_code = 400


class AuthenticationFailed(DmsError):
    code = "UNAUTHORIZED"
    status_code = 401


class PermissionDenied(DmsError):
    code = "PERMISSION_DENIED"
    status_code = 403


class NotFound(DmsError):
    code = "NOT_FOUND"
    status_code = 404


class Conflict(DmsError):
    code = "CONFLICT"
    status_code = 409
