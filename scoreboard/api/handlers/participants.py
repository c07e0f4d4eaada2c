from __future__ import annotations

from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.api.schemas import (
    CreateParticipantRequest,
    DeleteParticipantResponse,
    ListParticipantsResponse,
    ParticipantResponse,
    ParticipantStatsResponse,
    UpdateParticipantRequest,
)
from scoreboard.domain.errors import NotFoundError
from scoreboard.domain.models import ParticipantSnapshot
from scoreboard.domain.use_cases.submissions import list_participant_stats

COMPONENT_ID = "api.participants"


async def create_participant_handler(*, request: CreateParticipantRequest, api_deps: ApiDeps) -> ParticipantResponse:
    participant = await api_deps.repository.create_participant(
        email=request.email,
        team_name=request.team_name,
        role=request.role,
        upload_limit=request.upload_limit,
    )
    return participant_response(participant)


async def list_participants_handler(*, api_deps: ApiDeps) -> ListParticipantsResponse:
    stats = await list_participant_stats(repository=api_deps.repository)
    return ListParticipantsResponse(
        items=[
            ParticipantStatsResponse(
                **participant_response(item.participant).model_dump(),
                submission_count=item.submission_count,
                best_accuracy=item.best_accuracy,
                best_f1=item.best_f1,
            )
            for item in stats
        ]
    )


async def update_participant_handler(
    *,
    participant_public_id: str,
    request: UpdateParticipantRequest,
    api_deps: ApiDeps,
) -> ParticipantResponse:
    participant = await api_deps.repository.update_participant(
        participant_public_id=participant_public_id,
        email=request.email,
        team_name=request.team_name,
        role=request.role,
        upload_limit=request.upload_limit,
        update_upload_limit="upload_limit" in request.model_fields_set,
    )
    return participant_response(participant)


async def delete_participant_handler(*, participant_public_id: str, api_deps: ApiDeps) -> DeleteParticipantResponse:
    deleted = await api_deps.repository.delete_participant(participant_public_id=participant_public_id)
    if not deleted:
        raise NotFoundError("User not found")
    return DeleteParticipantResponse(message="User and all their submissions deleted successfully")


def participant_response(participant: ParticipantSnapshot) -> ParticipantResponse:
    return ParticipantResponse(
        participant_id=participant.participant_public_id,
        email=participant.email,
        team_name=participant.team_name,
        role=participant.role,
        upload_limit=participant.upload_limit,
        created_at=participant.created_at,
    )
