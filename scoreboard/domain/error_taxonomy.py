from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from scoreboard.domain.errors import (
    ConflictError,
    DomainError,
    DomainValidationError,
    EmptyInputError,
    NoOverlapError,
    NotConfiguredError,
    NotFoundError,
    QuotaExceededError,
)

# Canonical error vocabulary surfaced by the API and written to logs.
ErrorCode = Literal[
    "not_configured",
    "quota_exceeded",
    "empty_input",
    "no_overlap",
    "validation_error",
    "not_found",
    "internal_error",
]

CANONICAL_ERROR_CODES: tuple[ErrorCode, ...] = (
    "not_configured",
    "quota_exceeded",
    "empty_input",
    "no_overlap",
    "validation_error",
    "not_found",
    "internal_error",
)

# Most specific classes first: EmptyInputError is also a DomainValidationError.
# DomainInvariantError is not listed, so a broken invariant reports internal_error.
_ERROR_CODE_BY_TYPE: tuple[tuple[type[Exception], ErrorCode], ...] = (
    (NotConfiguredError, "not_configured"),
    (QuotaExceededError, "quota_exceeded"),
    (EmptyInputError, "empty_input"),
    (NoOverlapError, "no_overlap"),
    (NotFoundError, "not_found"),
    (ConflictError, "validation_error"),
    (DomainValidationError, "validation_error"),
)

HTTP_STATUS_BY_CODE: Mapping[ErrorCode, int] = {
    "not_configured": 409,
    "quota_exceeded": 403,
    "empty_input": 400,
    "no_overlap": 422,
    "validation_error": 400,
    "not_found": 404,
    "internal_error": 500,
}

GENERIC_INTERNAL_DETAIL = "Failed to process request"


def is_canonical_error_code(code: str) -> bool:
    return code in CANONICAL_ERROR_CODES


def resolve_error_code(code: str) -> ErrorCode:
    if is_canonical_error_code(code):
        return code  # type: ignore[return-value]
    # Keep the public vocabulary stable even if a caller invents a code.
    return "internal_error"


def error_code_for(exc: Exception) -> ErrorCode:
    for error_type, code in _ERROR_CODE_BY_TYPE:
        if isinstance(exc, error_type):
            return code
    return "internal_error"


def http_status_for(code: ErrorCode) -> int:
    return HTTP_STATUS_BY_CODE[resolve_error_code(code)]


def public_detail_for(exc: Exception) -> str:
    """Message safe to return to callers; internal failures stay generic."""
    if isinstance(exc, DomainError) and error_code_for(exc) != "internal_error":
        return str(exc)
    return GENERIC_INTERNAL_DETAIL
