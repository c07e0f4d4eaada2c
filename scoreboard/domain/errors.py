from __future__ import annotations


class DomainError(Exception):
    pass


class DomainValidationError(DomainError):
    pass


class DomainInvariantError(DomainError):
    pass


class ConflictError(DomainError):
    pass


class CsvFormatError(DomainValidationError):
    def __init__(self, message: str, *, found_columns: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.found_columns = found_columns


class NotFoundError(DomainError):
    pass


class NotConfiguredError(DomainError):
    pass


class QuotaExceededError(DomainError):
    def __init__(self, *, used: int, allowed: int) -> None:
        super().__init__(f"Upload limit reached. You have used {used} of {allowed} allowed submissions.")
        self.used = used
        self.allowed = allowed


class EmptyInputError(DomainValidationError):
    pass


class NoOverlapError(DomainError):
    pass
