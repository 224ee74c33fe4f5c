"""
Error types for the FileMaker Data API client.

Remote errors come from the server's message envelope; everything else is a
local failure detected by the client itself.
"""

import json
from typing import Any


class FMDataError(Exception):
    """Base error class for client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class RemoteError(FMDataError):
    """The server rejected a request with a FileMaker error code."""

    def __init__(self, code: str, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.code = code
        self.status = status

    def __repr__(self) -> str:
        return f"RemoteError(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["code"] = self.code
        if self.status:
            result["status"] = self.status
        return result


class ProtocolError(FMDataError):
    """The server answered in a way the client cannot work with."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class ValidationError(FMDataError):
    """Validation error for local input/config issues (not API errors)."""


def error_from_response(status: int, body: bytes) -> FMDataError:
    """
    Build an error from a non-2xx response body.

    The Data API wraps failures as ``{"messages": [{"code", "message"}]}``;
    only the first message is used. Bodies that do not follow this shape
    yield a :class:`ProtocolError`.
    """
    try:
        data = json.loads(body.decode("utf-8")) if body else None
    except (UnicodeDecodeError, json.JSONDecodeError):
        data = None

    messages = data.get("messages") if isinstance(data, dict) else None
    if not messages or not isinstance(messages[0], dict):
        return ProtocolError(f"Unexpected error response (HTTP {status})", status=status)

    first = messages[0]
    return RemoteError(str(first.get("code", "")), first.get("message", ""), status=status, details=data)
