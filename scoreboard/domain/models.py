from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


@dataclass(frozen=True)
class LabelRecord:
    row_id: str
    label: str


@dataclass(frozen=True)
class AnswerSet:
    """Active canonical answer set.

    Instances are never mutated; replacing the answer set swaps the active
    reference so evaluations already holding a snapshot keep scoring against it.
    """

    answer_set_public_id: str
    filename: str
    uploaded_by: str | None
    uploaded_at: datetime
    columns: tuple[str, ...]
    records: tuple[LabelRecord, ...]

    @property
    def row_count(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class ComparisonRow:
    row_id: str
    predicted: str
    actual: str
    match: bool


@dataclass(frozen=True)
class ComparisonResult:
    rows: tuple[ComparisonRow, ...]
    rows_in_canonical: int
    rows_in_submission: int
    missing_rows: int
    extra_rows: int
    missing_row_ids: tuple[str, ...]
    extra_row_ids: tuple[str, ...]

    @property
    def rows_compared(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class ClassificationMetrics:
    accuracy: float
    precision: float
    recall: float
    f1: float
    matches: int


class ParticipantRole(StrEnum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class ParticipantSnapshot:
    participant_public_id: str
    email: str
    team_name: str
    role: ParticipantRole
    upload_limit: int | None
    created_at: datetime | None = None


@dataclass(frozen=True)
class SubmissionDraft:
    """Evaluated submission waiting for its attempt number."""

    participant_public_id: str
    filename: str
    rows_in_canonical: int
    rows_in_submission: int
    rows_compared: int
    missing_rows: int
    extra_rows: int
    missing_row_ids: tuple[str, ...]
    extra_row_ids: tuple[str, ...]
    metrics: ClassificationMetrics
    preview: tuple[ComparisonRow, ...]


@dataclass(frozen=True)
class SubmissionSnapshot:
    submission_public_id: str
    participant_public_id: str
    attempt_number: int
    filename: str
    submitted_at: datetime
    rows_in_canonical: int
    rows_in_submission: int
    rows_compared: int
    missing_rows: int
    extra_rows: int
    missing_row_ids: tuple[str, ...]
    extra_row_ids: tuple[str, ...]
    accuracy: float
    precision: float
    recall: float
    f1: float
    matches: int
    preview: tuple[ComparisonRow, ...] = ()

    @property
    def mismatches(self) -> int:
        return self.rows_compared - self.matches


@dataclass(frozen=True)
class ParticipantStats:
    participant: ParticipantSnapshot
    submission_count: int
    best_accuracy: float | None
    best_f1: float | None


@dataclass(frozen=True)
class RankedSubmission:
    rank: int
    submission: SubmissionSnapshot


@dataclass(frozen=True)
class ParticipantRank:
    rank: int
    accuracy: float
    f1: float
    total_participants: int


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    participant_public_id: str
    team_name: str
    email: str
    accuracy: float
    f1: float
    precision: float
    recall: float
    submitted_at: datetime
    attempt_number: int
    submission_public_id: str


@dataclass(frozen=True)
class Leaderboard:
    entries: tuple[LeaderboardEntry, ...]
    participant_rank: ParticipantRank | None
    total_participants: int


@dataclass(frozen=True)
class QuotaStatus:
    used: int
    allowed: int

    @property
    def remaining(self) -> int:
        return max(0, self.allowed - self.used)
