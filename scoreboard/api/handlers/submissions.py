from __future__ import annotations

from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.api.schemas import (
    BestSubmissionResponse,
    MetricsPayload,
    PreviewRow,
    QuotaResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionSummary,
    UploadSubmissionResponse,
)
from scoreboard.domain.dto import EvaluateSubmissionCommand, QuotaCheckCommand
from scoreboard.domain.errors import DomainValidationError
from scoreboard.domain.models import SubmissionSnapshot
from scoreboard.domain.normalization import REQUIRED_FIELDS
from scoreboard.domain.use_cases.evaluate import evaluate_submission
from scoreboard.domain.use_cases.quota import check_quota
from scoreboard.domain.use_cases.submissions import get_best_submission, get_owned_submission
from scoreboard.lib.csv_rows import parse_csv_rows, require_columns

COMPONENT_ID = "api.submissions"


async def upload_submission_handler(
    *,
    participant_public_id: str,
    filename: str,
    payload: bytes,
    api_deps: ApiDeps,
) -> UploadSubmissionResponse:
    if len(payload) > api_deps.settings.max_upload_bytes:
        raise DomainValidationError("Uploaded file is too large")

    def read_rows() -> list[dict[str, str]]:
        parsed = parse_csv_rows(payload)
        require_columns(parsed, REQUIRED_FIELDS)
        return parsed.rows

    result = await evaluate_submission(
        EvaluateSubmissionCommand(
            participant_public_id=participant_public_id,
            filename=filename,
            read_rows=read_rows,
            fallback_upload_limit=api_deps.settings.fallback_upload_limit,
        ),
        repository=api_deps.repository,
    )
    return UploadSubmissionResponse(
        message="Submission processed successfully",
        submission=submission_response(result.submission),
    )


async def list_submissions_handler(*, participant_public_id: str, api_deps: ApiDeps) -> SubmissionListResponse:
    items = await api_deps.repository.list_participant_submissions(participant_public_id=participant_public_id)
    return SubmissionListResponse(items=[submission_response(item) for item in items])


async def get_submission_handler(
    *,
    participant_public_id: str,
    submission_public_id: str,
    api_deps: ApiDeps,
) -> SubmissionResponse:
    submission = await get_owned_submission(
        participant_public_id=participant_public_id,
        submission_public_id=submission_public_id,
        repository=api_deps.repository,
    )
    return submission_response(submission)


async def get_best_submission_handler(*, participant_public_id: str, api_deps: ApiDeps) -> BestSubmissionResponse:
    best = await get_best_submission(participant_public_id=participant_public_id, repository=api_deps.repository)
    return BestSubmissionResponse(submission=submission_response(best) if best else None)


async def get_quota_handler(*, participant_public_id: str, api_deps: ApiDeps) -> QuotaResponse:
    result = await check_quota(
        QuotaCheckCommand(
            participant_public_id=participant_public_id,
            fallback_upload_limit=api_deps.settings.fallback_upload_limit,
        ),
        repository=api_deps.repository,
    )
    return QuotaResponse(
        used=result.status.used,
        allowed=result.status.allowed,
        remaining=result.status.remaining,
    )


def submission_response(submission: SubmissionSnapshot) -> SubmissionResponse:
    return SubmissionResponse(
        submission_id=submission.submission_public_id,
        participant_id=submission.participant_public_id,
        filename=submission.filename,
        attempt_number=submission.attempt_number,
        submitted_at=submission.submitted_at,
        metrics=MetricsPayload(
            accuracy=submission.accuracy,
            precision=submission.precision,
            recall=submission.recall,
            f1=submission.f1,
        ),
        summary=SubmissionSummary(
            rows_in_canonical=submission.rows_in_canonical,
            rows_in_submission=submission.rows_in_submission,
            rows_compared=submission.rows_compared,
            matches=submission.matches,
            mismatches=submission.mismatches,
            missing_rows=submission.missing_rows,
            extra_rows=submission.extra_rows,
            missing_row_ids=list(submission.missing_row_ids),
            extra_row_ids=list(submission.extra_row_ids),
        ),
        preview=[
            PreviewRow(row_id=row.row_id, predicted=row.predicted, actual=row.actual, match=row.match)
            for row in submission.preview
        ],
    )
