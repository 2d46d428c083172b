"""Failures raised by the catalog client.

Every call ends in exactly one of:
- NetworkFailure: no response reached the client
- RemoteError: the authority answered with a failure (NotFound for 404)
- UnexpectedShape: the authority answered, but not with the expected envelope

The client never recovers from these; they travel unchanged to
`error_messages.normalize_error`.
"""

from __future__ import annotations

from typing import Any, Optional


class CatalogError(RuntimeError):
    """Base class for catalog client failures."""

    def __init__(self, message: str = "", *, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def transport_message(self) -> str:
        """Descriptive text produced by the client/transport (may be empty)."""
        return str(self)


class NetworkFailure(CatalogError):
    """Raised when the request never got a response (connection error, timeout)."""


class RemoteError(CatalogError):
    """Raised when the authority responds with a non-success status."""

    def __init__(
        self,
        *,
        status_code: Optional[int],
        message: str = "",
        body: Any = None,
        reason: str = "",
    ):
        super().__init__(message, status_code=status_code, body=body)
        self.reason = reason

    @property
    def transport_message(self) -> str:
        return self.reason


class NotFound(RemoteError):
    """Raised when the authority reports the addressed resource does not exist."""


class UnexpectedShape(CatalogError):
    """Raised when a response does not match the `{success, data}` envelope."""
