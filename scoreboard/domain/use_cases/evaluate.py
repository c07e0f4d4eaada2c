from __future__ import annotations

import logging

from scoreboard.domain.comparison import compare_records
from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.domain.dto import EvaluateSubmissionCommand, EvaluateSubmissionResult, QuotaCheckCommand
from scoreboard.domain.errors import EmptyInputError, NoOverlapError, NotConfiguredError, QuotaExceededError
from scoreboard.domain.models import SubmissionDraft
from scoreboard.domain.normalization import normalize_rows
from scoreboard.domain.preview import build_preview
from scoreboard.domain.scoring import compute_metrics
from scoreboard.domain.use_cases.quota import check_quota

COMPONENT_ID = "domain.submission.evaluate"

logger = logging.getLogger("runtime")


async def evaluate_submission(
    cmd: EvaluateSubmissionCommand,
    *,
    repository: SubmissionRepository,
) -> EvaluateSubmissionResult:
    """Score one upload and persist it as the participant's next attempt.

    Every rejection happens before anything is written. The quota read here
    only rejects early; append_submission repeats the check atomically and
    assigns the attempt number, so concurrent uploads never share an attempt
    number or overshoot the limit.
    """
    # Snapshot held for the whole evaluation, even if an admin replaces it meanwhile.
    answer_set = await repository.get_active_answer_set()
    if answer_set is None:
        raise NotConfiguredError("No canonical answer CSV has been uploaded yet. Please contact admin.")

    quota = await check_quota(
        QuotaCheckCommand(
            participant_public_id=cmd.participant_public_id,
            fallback_upload_limit=cmd.fallback_upload_limit,
        ),
        repository=repository,
    )
    if quota.exhausted:
        raise QuotaExceededError(used=quota.status.used, allowed=quota.status.allowed)

    records = normalize_rows(cmd.read_rows())
    if not records:
        raise EmptyInputError("CSV file is empty")

    comparison = compare_records(records, answer_set.records)
    if comparison.rows_compared == 0:
        raise NoOverlapError("Submission shares no row_id values with the answer CSV")

    metrics = compute_metrics(comparison.rows)

    draft = SubmissionDraft(
        participant_public_id=cmd.participant_public_id,
        filename=cmd.filename,
        rows_in_canonical=comparison.rows_in_canonical,
        rows_in_submission=comparison.rows_in_submission,
        rows_compared=comparison.rows_compared,
        missing_rows=comparison.missing_rows,
        extra_rows=comparison.extra_rows,
        missing_row_ids=comparison.missing_row_ids,
        extra_row_ids=comparison.extra_row_ids,
        metrics=metrics,
        preview=build_preview(comparison.rows),
    )
    submission = await repository.append_submission(draft=draft, upload_limit=quota.status.allowed)
    logger.info(
        "submission scored",
        extra={
            "component": COMPONENT_ID,
            "participant_id": submission.participant_public_id,
            "submission_id": submission.submission_public_id,
            "attempt_number": submission.attempt_number,
        },
    )
    return EvaluateSubmissionResult(submission=submission, comparison=comparison)
