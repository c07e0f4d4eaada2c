from __future__ import annotations

import logging

from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.domain.dto import ReplaceAnswerSetCommand, ReplaceAnswerSetResult
from scoreboard.domain.errors import EmptyInputError
from scoreboard.domain.normalization import normalize_answer_rows

COMPONENT_ID = "domain.answer_set.replace"

logger = logging.getLogger("runtime")


async def replace_answer_set(
    cmd: ReplaceAnswerSetCommand,
    *,
    repository: SubmissionRepository,
) -> ReplaceAnswerSetResult:
    """Validate and activate a new canonical answer set.

    Past submissions keep the metrics computed against the previous set.
    """
    records = normalize_answer_rows(cmd.rows)
    if not records:
        raise EmptyInputError("CSV file is empty")
    answer_set = await repository.replace_answer_set(
        filename=cmd.filename,
        uploaded_by=cmd.uploaded_by,
        columns=tuple(cmd.columns),
        records=records,
    )
    logger.info(
        "answer set replaced",
        extra={"component": COMPONENT_ID, "answer_set_id": answer_set.answer_set_public_id},
    )
    return ReplaceAnswerSetResult(answer_set=answer_set)
