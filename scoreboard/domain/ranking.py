from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from scoreboard.domain.models import ParticipantRank, RankedSubmission, SubmissionSnapshot


def best_submission_key(submission: SubmissionSnapshot) -> tuple[float, float, int]:
    # Higher accuracy, then higher f1, then the earliest attempt.
    return (-submission.accuracy, -submission.f1, submission.attempt_number)


def ranking_key(submission: SubmissionSnapshot) -> tuple[float, float, datetime, int, str]:
    return (
        -submission.accuracy,
        -submission.f1,
        submission.submitted_at,
        submission.attempt_number,
        submission.participant_public_id,
    )


def best_submission(history: Iterable[SubmissionSnapshot]) -> SubmissionSnapshot | None:
    return min(history, key=best_submission_key, default=None)


def rank_participants(submissions: Iterable[SubmissionSnapshot]) -> tuple[RankedSubmission, ...]:
    """Reduce every participant's history to its best submission and rank them.

    Participants without submissions never appear. Ranks are 1-based and the
    ordering is total, so equal scores still get distinct, stable positions.
    """
    best_by_participant: dict[str, SubmissionSnapshot] = {}
    for submission in submissions:
        current = best_by_participant.get(submission.participant_public_id)
        if current is None or best_submission_key(submission) < best_submission_key(current):
            best_by_participant[submission.participant_public_id] = submission

    ordered = sorted(best_by_participant.values(), key=ranking_key)
    return tuple(RankedSubmission(rank=index, submission=item) for index, item in enumerate(ordered, start=1))


def find_rank(ranking: Sequence[RankedSubmission], participant_public_id: str) -> ParticipantRank | None:
    for ranked in ranking:
        if ranked.submission.participant_public_id == participant_public_id:
            return ParticipantRank(
                rank=ranked.rank,
                accuracy=ranked.submission.accuracy,
                f1=ranked.submission.f1,
                total_participants=len(ranking),
            )
    return None
