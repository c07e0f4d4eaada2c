from __future__ import annotations

from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.domain.dto import QuotaCheckCommand, QuotaCheckResult
from scoreboard.domain.errors import NotFoundError
from scoreboard.domain.models import ParticipantSnapshot, QuotaStatus

COMPONENT_ID = "domain.quota.check"


async def resolve_upload_limit(
    *,
    participant: ParticipantSnapshot,
    repository: SubmissionRepository,
    fallback_upload_limit: int,
) -> int:
    """Participant override, else the configured default, else the fallback.

    The configured default is read on every call so admin changes apply to the
    next request.
    """
    if participant.upload_limit is not None:
        return participant.upload_limit
    configured = await repository.get_default_upload_limit()
    if configured is not None:
        return configured
    return fallback_upload_limit


async def check_quota(cmd: QuotaCheckCommand, *, repository: SubmissionRepository) -> QuotaCheckResult:
    participant = await repository.get_participant(participant_public_id=cmd.participant_public_id)
    if participant is None:
        raise NotFoundError("participant not found")
    allowed = await resolve_upload_limit(
        participant=participant,
        repository=repository,
        fallback_upload_limit=cmd.fallback_upload_limit,
    )
    used = await repository.count_submissions(participant_public_id=cmd.participant_public_id)
    return QuotaCheckResult(status=QuotaStatus(used=used, allowed=allowed))
