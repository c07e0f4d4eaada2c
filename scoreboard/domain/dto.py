from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from scoreboard.domain.models import (
    AnswerSet,
    ComparisonResult,
    QuotaStatus,
    SubmissionSnapshot,
)


RowsReader = Callable[[], Sequence[Mapping[str, object]]]


@dataclass(frozen=True)
class EvaluateSubmissionCommand:
    participant_public_id: str
    filename: str
    # Called only after the configuration and quota checks pass.
    read_rows: RowsReader
    fallback_upload_limit: int

    @classmethod
    def from_rows(
        cls,
        *,
        participant_public_id: str,
        filename: str,
        rows: Sequence[Mapping[str, object]],
        fallback_upload_limit: int,
    ) -> EvaluateSubmissionCommand:
        return cls(
            participant_public_id=participant_public_id,
            filename=filename,
            read_rows=lambda: rows,
            fallback_upload_limit=fallback_upload_limit,
        )


@dataclass(frozen=True)
class EvaluateSubmissionResult:
    submission: SubmissionSnapshot
    comparison: ComparisonResult


@dataclass(frozen=True)
class QuotaCheckCommand:
    participant_public_id: str
    fallback_upload_limit: int


@dataclass(frozen=True)
class QuotaCheckResult:
    status: QuotaStatus

    @property
    def exhausted(self) -> bool:
        return self.status.used >= self.status.allowed


@dataclass(frozen=True)
class ReplaceAnswerSetCommand:
    filename: str
    uploaded_by: str | None
    columns: Sequence[str]
    rows: Sequence[Mapping[str, object]]


@dataclass(frozen=True)
class ReplaceAnswerSetResult:
    answer_set: AnswerSet


@dataclass(frozen=True)
class LeaderboardQuery:
    limit: int = 50
    participant_public_id: str | None = None
