"""Error taxonomy shared by the transport, the resources and the CLI.

Every error carries a ``kind`` tag so callers can branch on the variant
(``match exc.kind``) instead of on the concrete class.
"""

from __future__ import annotations

import enum

from _constants import MAX_ERROR_BODY_LEN, REAUTH_HINT

__all__ = [
    "ApiError",
    "AuthError",
    "ConfigError",
    "ErrorKind",
    "FreshtimeError",
    "NetworkError",
]


class ErrorKind(enum.Enum):
    UNAUTHORIZED = "unauthorized"
    REMOTE = "remote"
    NETWORK = "network"
    CONFIG = "config"


class FreshtimeError(Exception):
    """Base class for every failure the CLI knows how to report."""

    kind: ErrorKind = ErrorKind.REMOTE


class ApiError(FreshtimeError):
    """Non-2xx response from the FreshBooks API."""

    kind = ErrorKind.REMOTE

    def __init__(self, status: int, status_text: str, body: str) -> None:
        self.status = status
        self.status_text = status_text
        self.body = body
        shown = body if len(body) <= MAX_ERROR_BODY_LEN else body[:MAX_ERROR_BODY_LEN] + "..."
        super().__init__(f"API error {status} {status_text}: {shown}")


class AuthError(ApiError):
    """401 that survived the single refresh-and-retry (or could not be retried)."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, body: str = "") -> None:
        super().__init__(401, "Unauthorized", body)
        self.args = (f"Session expired or invalid. {REAUTH_HINT}",)


class NetworkError(FreshtimeError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.NETWORK


class ConfigError(FreshtimeError):
    """Missing or invalid local configuration, or invalid user input."""

    kind = ErrorKind.CONFIG
