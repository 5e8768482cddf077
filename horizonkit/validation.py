"""
Horizonkit - Input validation helpers.

Provides validation functions for client-side parameter checking before any
request is built or sent.
"""

import re
from typing import Any, Optional

from .exceptions import ErrorKind, HorizonError


class InputValidationError(HorizonError):
    """Raised when input validation fails before making an API request."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        kind: ErrorKind = ErrorKind.BUILDER_MISUSE,
    ):
        super().__init__(message, kind=kind)
        self.field = field
        self.value = value


_DOMAIN_PATTERN = re.compile(
    r"^(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?$",
    re.IGNORECASE,
)

_ASSET_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{1,12}$")


def validate_required(value: Any, field_name: str) -> None:
    """Validate that a required field is not None or empty."""
    if value is None:
        raise InputValidationError(f"{field_name} is required", field=field_name)
    if isinstance(value, str) and not value.strip():
        raise InputValidationError(
            f"{field_name} cannot be empty", field=field_name, value=value
        )


def validate_positive_int(value: int, field_name: str) -> None:
    """Validate that a number is a positive integer."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(
            f"{field_name} must be an integer", field=field_name, value=value
        )

    if value <= 0:
        raise InputValidationError(
            f"{field_name} must be positive", field=field_name, value=value
        )


def validate_segment(value: Any, field_name: str = "segment") -> None:
    """Validate a single URL path segment."""
    validate_required(value, field_name)
    if "/" in str(value):
        raise InputValidationError(
            f"{field_name} cannot contain '/'", field=field_name, value=value
        )


def validate_domain(value: str, field_name: str = "domain") -> None:
    """Validate an internet domain name such as ``stellar.org``."""
    if not isinstance(value, str) or not _DOMAIN_PATTERN.match(value):
        raise InputValidationError(
            f"{field_name} must be a valid domain name",
            field=field_name,
            value=value,
            kind=ErrorKind.MALFORMED_ADDRESS,
        )


def validate_asset_code(value: str, field_name: str = "code") -> None:
    """Validate an alphanumeric asset code of 1 to 12 characters."""
    if not isinstance(value, str) or not _ASSET_CODE_PATTERN.match(value):
        raise InputValidationError(
            f"{field_name} must be 1-12 alphanumeric characters",
            field=field_name,
            value=value,
        )
