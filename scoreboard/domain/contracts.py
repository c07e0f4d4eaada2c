from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from scoreboard.domain.models import (
    AnswerSet,
    LabelRecord,
    ParticipantRole,
    ParticipantSnapshot,
    SubmissionDraft,
    SubmissionSnapshot,
)

ATTEMPT_LOCK_SQL_CONTRACT = "SELECT ... FOR UPDATE"
DEFAULT_UPLOAD_LIMIT_KEY = "default_upload_limit"


@runtime_checkable
class SubmissionRepository(Protocol):
    """Storage contract for participants, the answer set and submissions.

    append_submission is the only write that needs mutual exclusion: the
    submission count is re-read, checked against the quota and turned into the
    next attempt number inside one per-participant exclusive scope. Postgres
    backs this with SELECT ... FOR UPDATE on the participant row.
    """

    async def create_participant(
        self,
        *,
        email: str,
        team_name: str,
        role: ParticipantRole = ParticipantRole.USER,
        upload_limit: int | None = None,
    ) -> ParticipantSnapshot: ...

    async def get_participant(self, *, participant_public_id: str) -> ParticipantSnapshot | None: ...

    async def list_participants(self) -> list[ParticipantSnapshot]: ...

    async def update_participant(
        self,
        *,
        participant_public_id: str,
        email: str | None = None,
        team_name: str | None = None,
        role: ParticipantRole | None = None,
        upload_limit: int | None = None,
        update_upload_limit: bool = False,
    ) -> ParticipantSnapshot: ...

    # Cascades to the participant's submissions.
    async def delete_participant(self, *, participant_public_id: str) -> bool: ...

    # None means the default was never configured.
    async def get_default_upload_limit(self) -> int | None: ...

    async def set_default_upload_limit(self, *, value: int) -> int: ...

    async def get_active_answer_set(self) -> AnswerSet | None: ...

    async def replace_answer_set(
        self,
        *,
        filename: str,
        uploaded_by: str | None,
        columns: Sequence[str],
        records: Sequence[LabelRecord],
    ) -> AnswerSet: ...

    async def count_submissions(self, *, participant_public_id: str) -> int: ...

    async def append_submission(self, *, draft: SubmissionDraft, upload_limit: int) -> SubmissionSnapshot: ...

    async def get_submission(self, *, submission_public_id: str) -> SubmissionSnapshot | None: ...

    # Newest attempt first; previews are not loaded.
    async def list_participant_submissions(self, *, participant_public_id: str) -> list[SubmissionSnapshot]: ...

    # Full history for ranking; previews are not loaded.
    async def list_all_submissions(self) -> list[SubmissionSnapshot]: ...

    async def list_recent_submissions(self, *, limit: int = 100) -> list[SubmissionSnapshot]: ...
