from __future__ import annotations

from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.api.handlers.submissions import submission_response
from scoreboard.api.schemas import (
    AdminSubmissionListResponse,
    AdminSubmissionResponse,
    AnswerSetInfoResponse,
    AnswerSetResponse,
    ConfigResponse,
    UploadAnswerSetResponse,
)
from scoreboard.domain.contracts import DEFAULT_UPLOAD_LIMIT_KEY
from scoreboard.domain.dto import ReplaceAnswerSetCommand
from scoreboard.domain.errors import DomainValidationError, NotFoundError
from scoreboard.domain.models import AnswerSet
from scoreboard.domain.normalization import REQUIRED_FIELDS
from scoreboard.domain.use_cases.answer_set import replace_answer_set
from scoreboard.domain.use_cases.leaderboard import UNKNOWN_PARTICIPANT
from scoreboard.lib.csv_rows import parse_csv_rows, require_columns

COMPONENT_ID = "api.admin"
ADMIN_SUBMISSIONS_LIMIT = 100


async def upload_answer_set_handler(
    *,
    filename: str,
    payload: bytes,
    uploaded_by: str | None,
    api_deps: ApiDeps,
) -> UploadAnswerSetResponse:
    if len(payload) > api_deps.settings.max_upload_bytes:
        raise DomainValidationError("Uploaded file is too large")
    if uploaded_by is not None:
        uploader = await api_deps.repository.get_participant(participant_public_id=uploaded_by)
        if uploader is None:
            raise NotFoundError("User not found")
    parsed = parse_csv_rows(payload)
    require_columns(parsed, REQUIRED_FIELDS)
    result = await replace_answer_set(
        ReplaceAnswerSetCommand(
            filename=filename,
            uploaded_by=uploaded_by,
            columns=parsed.columns,
            rows=parsed.rows,
        ),
        repository=api_deps.repository,
    )
    return UploadAnswerSetResponse(
        message="Answer CSV uploaded successfully",
        answer_set=_answer_set_response(result.answer_set),
    )


async def get_answer_set_handler(*, api_deps: ApiDeps) -> AnswerSetInfoResponse:
    answer_set = await api_deps.repository.get_active_answer_set()
    if answer_set is None:
        return AnswerSetInfoResponse(answer_set=None)
    return AnswerSetInfoResponse(answer_set=_answer_set_response(answer_set))


async def get_config_handler(*, key: str, api_deps: ApiDeps) -> ConfigResponse:
    if key != DEFAULT_UPLOAD_LIMIT_KEY:
        raise NotFoundError("Configuration not found")
    value = await api_deps.repository.get_default_upload_limit()
    if value is None:
        return ConfigResponse(key=key, value=api_deps.settings.fallback_upload_limit, is_default=True)
    return ConfigResponse(key=key, value=value, is_default=False)


async def update_config_handler(*, key: str, value: int, api_deps: ApiDeps) -> ConfigResponse:
    stored = await api_deps.repository.set_default_upload_limit(value=value)
    return ConfigResponse(key=key, value=stored, is_default=False)


async def list_recent_submissions_handler(*, api_deps: ApiDeps) -> AdminSubmissionListResponse:
    submissions = await api_deps.repository.list_recent_submissions(limit=ADMIN_SUBMISSIONS_LIMIT)
    participants = {item.participant_public_id: item for item in await api_deps.repository.list_participants()}
    items: list[AdminSubmissionResponse] = []
    for submission in submissions:
        participant = participants.get(submission.participant_public_id)
        items.append(
            AdminSubmissionResponse(
                **submission_response(submission).model_dump(),
                team_name=participant.team_name if participant else UNKNOWN_PARTICIPANT,
                email=participant.email if participant else UNKNOWN_PARTICIPANT,
            )
        )
    return AdminSubmissionListResponse(items=items)


def _answer_set_response(answer_set: AnswerSet) -> AnswerSetResponse:
    return AnswerSetResponse(
        answer_set_id=answer_set.answer_set_public_id,
        filename=answer_set.filename,
        uploaded_by=answer_set.uploaded_by,
        uploaded_at=answer_set.uploaded_at,
        row_count=answer_set.row_count,
        columns=list(answer_set.columns),
    )
