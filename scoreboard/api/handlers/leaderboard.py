from __future__ import annotations

from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.api.schemas import LeaderboardEntryResponse, LeaderboardResponse, ParticipantRankResponse
from scoreboard.domain.dto import LeaderboardQuery
from scoreboard.domain.use_cases.leaderboard import build_leaderboard

COMPONENT_ID = "api.leaderboard"


async def get_leaderboard_handler(
    *,
    limit: int,
    participant_public_id: str | None,
    api_deps: ApiDeps,
) -> LeaderboardResponse:
    leaderboard = await build_leaderboard(
        LeaderboardQuery(limit=limit, participant_public_id=participant_public_id),
        repository=api_deps.repository,
    )
    rank = leaderboard.participant_rank
    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=entry.rank,
                participant_id=entry.participant_public_id,
                team_name=entry.team_name,
                email=entry.email,
                accuracy=entry.accuracy,
                f1=entry.f1,
                precision=entry.precision,
                recall=entry.recall,
                submitted_at=entry.submitted_at,
                attempt_number=entry.attempt_number,
                submission_id=entry.submission_public_id,
            )
            for entry in leaderboard.entries
        ],
        participant_rank=(
            ParticipantRankResponse(
                rank=rank.rank,
                accuracy=rank.accuracy,
                f1=rank.f1,
                total_participants=rank.total_participants,
            )
            if rank is not None
            else None
        ),
        total_entries=len(leaderboard.entries),
        total_participants=leaderboard.total_participants,
    )
