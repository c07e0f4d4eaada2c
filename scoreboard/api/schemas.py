from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from scoreboard.domain.models import ParticipantRole


PARTICIPANT_ID_PATTERN = r"^par_[0-9A-HJKMNP-TV-Z]{26}$"
SUBMISSION_ID_PATTERN = r"^sub_[0-9A-HJKMNP-TV-Z]{26}$"
ANSWER_SET_ID_PATTERN = r"^ans_[0-9A-HJKMNP-TV-Z]{26}$"


class ErrorResponse(BaseModel):
    detail: str
    error_code: str | None = None
    found_columns: list[str] | None = None


class HealthResponse(BaseModel):
    status: str
    service: str
    mode: str


class ReadyResponse(BaseModel):
    status: str
    service: str
    mode: str
    answer_set_configured: bool


class MetricsPayload(BaseModel):
    accuracy: float = Field(ge=0, le=1)
    precision: float = Field(ge=0, le=1)
    recall: float = Field(ge=0, le=1)
    f1: float = Field(ge=0, le=1)


class SubmissionSummary(BaseModel):
    rows_in_canonical: int = Field(ge=0)
    rows_in_submission: int = Field(ge=0)
    rows_compared: int = Field(ge=0)
    matches: int = Field(ge=0)
    mismatches: int = Field(ge=0)
    missing_rows: int = Field(ge=0)
    extra_rows: int = Field(ge=0)
    missing_row_ids: list[str]
    extra_row_ids: list[str]


class PreviewRow(BaseModel):
    row_id: str
    predicted: str
    actual: str
    match: bool


class SubmissionResponse(BaseModel):
    submission_id: str = Field(pattern=SUBMISSION_ID_PATTERN)
    participant_id: str = Field(pattern=PARTICIPANT_ID_PATTERN)
    filename: str
    attempt_number: int = Field(ge=1)
    submitted_at: datetime
    metrics: MetricsPayload
    summary: SubmissionSummary
    preview: list[PreviewRow] = Field(default_factory=list)


class UploadSubmissionResponse(BaseModel):
    message: str
    submission: SubmissionResponse


class SubmissionListResponse(BaseModel):
    items: list[SubmissionResponse]


class BestSubmissionResponse(BaseModel):
    submission: SubmissionResponse | None


class QuotaResponse(BaseModel):
    used: int = Field(ge=0)
    allowed: int = Field(ge=0)
    remaining: int = Field(ge=0)


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    participant_id: str
    team_name: str
    email: str
    accuracy: float
    f1: float
    precision: float
    recall: float
    submitted_at: datetime
    attempt_number: int
    submission_id: str


class ParticipantRankResponse(BaseModel):
    rank: int = Field(ge=1)
    accuracy: float
    f1: float
    total_participants: int = Field(ge=1)


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]
    participant_rank: ParticipantRankResponse | None
    total_entries: int = Field(ge=0)
    total_participants: int = Field(ge=0)


class CreateParticipantRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    team_name: str = Field(min_length=1, max_length=128)
    role: ParticipantRole = ParticipantRole.USER
    upload_limit: int | None = Field(default=None, ge=0)


class UpdateParticipantRequest(BaseModel):
    email: str | None = Field(default=None, min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    team_name: str | None = Field(default=None, min_length=1, max_length=128)
    role: ParticipantRole | None = None
    # Sending null explicitly clears the override; omitting it keeps the current value.
    upload_limit: int | None = Field(default=None, ge=0)


class ParticipantResponse(BaseModel):
    participant_id: str = Field(pattern=PARTICIPANT_ID_PATTERN)
    email: str
    team_name: str
    role: ParticipantRole
    upload_limit: int | None
    created_at: datetime | None = None


class ParticipantStatsResponse(ParticipantResponse):
    submission_count: int = Field(ge=0)
    best_accuracy: float | None
    best_f1: float | None


class ListParticipantsResponse(BaseModel):
    items: list[ParticipantStatsResponse]


class DeleteParticipantResponse(BaseModel):
    message: str


class AnswerSetResponse(BaseModel):
    answer_set_id: str = Field(pattern=ANSWER_SET_ID_PATTERN)
    filename: str
    uploaded_by: str | None
    uploaded_at: datetime
    row_count: int = Field(ge=1)
    columns: list[str]


class AnswerSetInfoResponse(BaseModel):
    answer_set: AnswerSetResponse | None


class UploadAnswerSetResponse(BaseModel):
    message: str
    answer_set: AnswerSetResponse


class UpdateConfigRequest(BaseModel):
    key: Literal["default_upload_limit"]
    value: int = Field(ge=0)


class ConfigResponse(BaseModel):
    key: str
    value: int
    is_default: bool


class AdminSubmissionResponse(SubmissionResponse):
    team_name: str
    email: str


class AdminSubmissionListResponse(BaseModel):
    items: list[AdminSubmissionResponse]
