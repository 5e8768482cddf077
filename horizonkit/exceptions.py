"""
Horizonkit - Error taxonomy.

Every failure raised by the SDK is a ``HorizonError`` whose ``kind`` is one of
the closed set of ``ErrorKind`` values. Callers branch on ``error.kind``.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .models import RateLimit


class ErrorKind(str, Enum):
    """Kinds of failure surfaced by the SDK."""

    MALFORMED_ADDRESS = "malformed_address"
    FEDERATION_SERVER_INVALID = "federation_server_invalid"
    CONFIG_DOCUMENT_NOT_FOUND = "config_document_not_found"
    NO_FEDERATION_SERVER = "no_federation_server"
    NOT_FOUND = "not_found"
    TOO_MANY_REQUESTS = "too_many_requests"
    SERVER_ERROR = "server_error"
    CONNECTION_ERROR = "connection_error"
    DECODE_ERROR = "decode_error"
    BUILDER_MISUSE = "builder_misuse"


class HorizonError(Exception):
    """Base exception for all Horizonkit errors."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: Optional[int] = None,
        response: Optional[Any] = None,
        rate_limit: Optional["RateLimit"] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.response = response
        self.rate_limit = rate_limit

    @property
    def retryable(self) -> bool:
        """True when the caller may retry after backing off."""
        return self.kind == ErrorKind.TOO_MANY_REQUESTS

    def __repr__(self) -> str:
        return f"HorizonError(kind={self.kind.value!r}, message={self.message!r})"
