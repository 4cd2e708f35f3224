"""Errors raised by the DMS REST client."""

from typing import Any, Optional


class ApiError(Exception):
    """A failed API call, carrying the server's error envelope when there was one."""

    def __init__(self, status: int, code: str, message: str, details: Any = None):
        super().__init__(f"{status} {code}: {message}")
        self.status = status
        self.code = code
        self.message = message
        self.details = details

    @property
    def display_message(self) -> str:
        """Message suitable for showing to a person; list details are flattened."""
        if isinstance(self.details, list) and self.details:
            parts = []
            for item in self.details:
                if isinstance(item, dict):
                    field = item.get("field")
                    msg = item.get("message") or item.get("msg") or ""
                    parts.append(f"{field}: {msg}" if field else msg)
                else:
                    parts.append(str(item))
            return f"{self.message}: " + "; ".join(p for p in parts if p)
        if isinstance(self.details, str) and self.details:
            return f"{self.message}: {self.details}"
        return self.message

    @classmethod
    def from_response(cls, response) -> "ApiError":
        """Build from a requests.Response, tolerating non-envelope bodies."""
        code = "HTTP_ERROR"
        message = response.reason or f"HTTP {response.status_code}"
        details: Optional[Any] = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            code = error.get("code", code)
            message = error.get("message", message)
            details = error.get("details")
        return cls(response.status_code, code, message, details)


class ClientValidationError(ApiError):
    """Input rejected before any request was sent."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(0, "VALIDATION_ERROR", message, details)


class SessionExpired(ApiError):
    """The server rejected the token of a signed-in session; the session was cleared."""

    def __init__(self, message: str = "Session expired. Please sign in again."):
        super().__init__(401, "SESSION_EXPIRED", message)
