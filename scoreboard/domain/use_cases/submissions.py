from __future__ import annotations

from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.domain.errors import NotFoundError
from scoreboard.domain.models import ParticipantStats, SubmissionSnapshot
from scoreboard.domain.ranking import best_submission

COMPONENT_ID = "domain.submission.read"


async def get_owned_submission(
    *,
    participant_public_id: str,
    submission_public_id: str,
    repository: SubmissionRepository,
) -> SubmissionSnapshot:
    submission = await repository.get_submission(submission_public_id=submission_public_id)
    # Other participants' submissions are reported as missing.
    if submission is None or submission.participant_public_id != participant_public_id:
        raise NotFoundError("Submission not found")
    return submission


async def get_best_submission(
    *,
    participant_public_id: str,
    repository: SubmissionRepository,
) -> SubmissionSnapshot | None:
    history = await repository.list_participant_submissions(participant_public_id=participant_public_id)
    return best_submission(history)


async def list_participant_stats(*, repository: SubmissionRepository) -> list[ParticipantStats]:
    history_by_participant: dict[str, list[SubmissionSnapshot]] = {}
    for submission in await repository.list_all_submissions():
        history_by_participant.setdefault(submission.participant_public_id, []).append(submission)

    stats: list[ParticipantStats] = []
    for participant in await repository.list_participants():
        history = history_by_participant.get(participant.participant_public_id, [])
        best = best_submission(history)
        stats.append(
            ParticipantStats(
                participant=participant,
                submission_count=len(history),
                best_accuracy=best.accuracy if best else None,
                best_f1=best.f1 if best else None,
            )
        )
    return stats
