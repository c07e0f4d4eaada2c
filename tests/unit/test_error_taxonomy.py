import pytest

from scoreboard.domain.error_taxonomy import (
    GENERIC_INTERNAL_DETAIL,
    error_code_for,
    http_status_for,
    is_canonical_error_code,
    public_detail_for,
    resolve_error_code,
)
from scoreboard.domain.errors import (
    ConflictError,
    CsvFormatError,
    DomainInvariantError,
    EmptyInputError,
    NoOverlapError,
    NotConfiguredError,
    NotFoundError,
    QuotaExceededError,
)


@pytest.mark.unit
def test_canonical_error_codes_are_enforced() -> None:
    assert is_canonical_error_code("quota_exceeded") is True
    assert is_canonical_error_code("unknown_error") is False
    assert resolve_error_code("unknown_error") == "internal_error"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("exc", "code", "status"),
    [
        (NotConfiguredError("no answers"), "not_configured", 409),
        (QuotaExceededError(used=15, allowed=15), "quota_exceeded", 403),
        (EmptyInputError("CSV file is empty"), "empty_input", 400),
        (NoOverlapError("no overlap"), "no_overlap", 422),
        (CsvFormatError("bad csv"), "validation_error", 400),
        (ConflictError("User with this email already exists"), "validation_error", 400),
        (DomainInvariantError("failed to allocate unique submission public id"), "internal_error", 500),
        (NotFoundError("missing"), "not_found", 404),
        (RuntimeError("boom"), "internal_error", 500),
    ],
)
def test_errors_map_to_codes_and_statuses(exc: Exception, code: str, status: int) -> None:
    assert error_code_for(exc) == code
    assert http_status_for(error_code_for(exc)) == status


@pytest.mark.unit
def test_quota_message_reports_usage() -> None:
    exc = QuotaExceededError(used=3, allowed=3)

    assert str(exc) == "Upload limit reached. You have used 3 of 3 allowed submissions."
    assert public_detail_for(exc) == str(exc)


@pytest.mark.unit
def test_internal_errors_do_not_leak_details() -> None:
    assert public_detail_for(RuntimeError("password=secret")) == GENERIC_INTERNAL_DETAIL


@pytest.mark.unit
def test_broken_persistence_invariants_stay_internal() -> None:
    exc = DomainInvariantError("failed to allocate unique answer set public id")

    assert error_code_for(exc) == "internal_error"
    assert public_detail_for(exc) == GENERIC_INTERNAL_DETAIL
