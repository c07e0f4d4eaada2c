from __future__ import annotations

from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.domain.dto import LeaderboardQuery
from scoreboard.domain.errors import DomainValidationError
from scoreboard.domain.models import Leaderboard, LeaderboardEntry
from scoreboard.domain.ranking import find_rank, rank_participants

COMPONENT_ID = "domain.leaderboard.build"
UNKNOWN_PARTICIPANT = "Unknown"


async def build_leaderboard(query: LeaderboardQuery, *, repository: SubmissionRepository) -> Leaderboard:
    """Rank participants by their best submission, recomputed on every call."""
    if query.limit < 1:
        raise DomainValidationError("limit must be a positive integer")

    ranking = rank_participants(await repository.list_all_submissions())
    participants = {item.participant_public_id: item for item in await repository.list_participants()}

    entries: list[LeaderboardEntry] = []
    for ranked in ranking[: query.limit]:
        submission = ranked.submission
        participant = participants.get(submission.participant_public_id)
        entries.append(
            LeaderboardEntry(
                rank=ranked.rank,
                participant_public_id=submission.participant_public_id,
                team_name=participant.team_name if participant else UNKNOWN_PARTICIPANT,
                email=participant.email if participant else UNKNOWN_PARTICIPANT,
                accuracy=submission.accuracy,
                f1=submission.f1,
                precision=submission.precision,
                recall=submission.recall,
                submitted_at=submission.submitted_at,
                attempt_number=submission.attempt_number,
                submission_public_id=submission.submission_public_id,
            )
        )

    participant_rank = None
    if query.participant_public_id is not None:
        participant_rank = find_rank(ranking, query.participant_public_id)

    return Leaderboard(
        entries=tuple(entries),
        participant_rank=participant_rank,
        total_participants=len(ranking),
    )
