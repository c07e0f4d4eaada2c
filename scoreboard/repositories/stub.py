from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from scoreboard.domain.contracts import DEFAULT_UPLOAD_LIMIT_KEY
from scoreboard.domain.errors import ConflictError, NotFoundError, QuotaExceededError
from scoreboard.domain.ids import (
    new_answer_set_public_id,
    new_participant_public_id,
    new_submission_public_id,
)
from scoreboard.domain.models import (
    AnswerSet,
    LabelRecord,
    ParticipantRole,
    ParticipantSnapshot,
    SubmissionDraft,
    SubmissionSnapshot,
)


@dataclass
class _ParticipantRow:
    participant_public_id: str
    email: str
    team_name: str
    role: ParticipantRole
    upload_limit: int | None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def snapshot(self) -> ParticipantSnapshot:
        return ParticipantSnapshot(
            participant_public_id=self.participant_public_id,
            email=self.email,
            team_name=self.team_name,
            role=self.role,
            upload_limit=self.upload_limit,
            created_at=self.created_at,
        )


@dataclass
class InMemorySubmissionRepository:
    """Non-network repository with deterministic behavior for local mode."""

    participants: dict[str, _ParticipantRow] = field(default_factory=dict)
    submissions: list[SubmissionSnapshot] = field(default_factory=list)
    config: dict[str, int] = field(default_factory=dict)
    answer_set: AnswerSet | None = None
    attempt_locks: dict[str, asyncio.Lock] = field(default_factory=dict)

    async def create_participant(
        self,
        *,
        email: str,
        team_name: str,
        role: ParticipantRole = ParticipantRole.USER,
        upload_limit: int | None = None,
    ) -> ParticipantSnapshot:
        normalized_email = email.strip().lower()
        if any(row.email == normalized_email for row in self.participants.values()):
            raise ConflictError("User with this email already exists")
        row = _ParticipantRow(
            participant_public_id=new_participant_public_id(),
            email=normalized_email,
            team_name=team_name.strip(),
            role=role,
            upload_limit=upload_limit,
        )
        self.participants[row.participant_public_id] = row
        return row.snapshot()

    async def get_participant(self, *, participant_public_id: str) -> ParticipantSnapshot | None:
        row = self.participants.get(participant_public_id)
        if row is None:
            return None
        return row.snapshot()

    async def list_participants(self) -> list[ParticipantSnapshot]:
        rows = sorted(self.participants.values(), key=lambda row: (row.created_at, row.participant_public_id))
        return [row.snapshot() for row in rows]

    async def update_participant(
        self,
        *,
        participant_public_id: str,
        email: str | None = None,
        team_name: str | None = None,
        role: ParticipantRole | None = None,
        upload_limit: int | None = None,
        update_upload_limit: bool = False,
    ) -> ParticipantSnapshot:
        row = self._participant_row(participant_public_id)
        normalized_email = email.strip().lower() if email is not None else None
        if normalized_email is not None and any(
            other.email == normalized_email and other.participant_public_id != participant_public_id
            for other in self.participants.values()
        ):
            raise ConflictError("User with this email already exists")
        if normalized_email is not None:
            row.email = normalized_email
        if team_name is not None:
            row.team_name = team_name.strip()
        if role is not None:
            row.role = role
        if update_upload_limit:
            row.upload_limit = upload_limit
        return row.snapshot()

    async def delete_participant(self, *, participant_public_id: str) -> bool:
        if self.participants.pop(participant_public_id, None) is None:
            return False
        self.submissions = [
            item for item in self.submissions if item.participant_public_id != participant_public_id
        ]
        self.attempt_locks.pop(participant_public_id, None)
        return True

    async def get_default_upload_limit(self) -> int | None:
        return self.config.get(DEFAULT_UPLOAD_LIMIT_KEY)

    async def set_default_upload_limit(self, *, value: int) -> int:
        self.config[DEFAULT_UPLOAD_LIMIT_KEY] = value
        return value

    async def get_active_answer_set(self) -> AnswerSet | None:
        return self.answer_set

    async def replace_answer_set(
        self,
        *,
        filename: str,
        uploaded_by: str | None,
        columns: Sequence[str],
        records: Sequence[LabelRecord],
    ) -> AnswerSet:
        # Swap the reference; readers holding the previous snapshot are unaffected.
        self.answer_set = AnswerSet(
            answer_set_public_id=new_answer_set_public_id(),
            filename=filename,
            uploaded_by=uploaded_by,
            uploaded_at=datetime.now(tz=UTC),
            columns=tuple(columns),
            records=tuple(records),
        )
        return self.answer_set

    async def count_submissions(self, *, participant_public_id: str) -> int:
        return sum(1 for item in self.submissions if item.participant_public_id == participant_public_id)

    async def append_submission(self, *, draft: SubmissionDraft, upload_limit: int) -> SubmissionSnapshot:
        participant_public_id = draft.participant_public_id
        lock = self.attempt_locks.setdefault(participant_public_id, asyncio.Lock())
        async with lock:
            if participant_public_id not in self.participants:
                raise NotFoundError("participant not found")
            used = await self.count_submissions(participant_public_id=participant_public_id)
            if used >= upload_limit:
                raise QuotaExceededError(used=used, allowed=upload_limit)
            snapshot = SubmissionSnapshot(
                submission_public_id=new_submission_public_id(),
                participant_public_id=participant_public_id,
                attempt_number=used + 1,
                filename=draft.filename,
                submitted_at=datetime.now(tz=UTC),
                rows_in_canonical=draft.rows_in_canonical,
                rows_in_submission=draft.rows_in_submission,
                rows_compared=draft.rows_compared,
                missing_rows=draft.missing_rows,
                extra_rows=draft.extra_rows,
                missing_row_ids=draft.missing_row_ids,
                extra_row_ids=draft.extra_row_ids,
                accuracy=draft.metrics.accuracy,
                precision=draft.metrics.precision,
                recall=draft.metrics.recall,
                f1=draft.metrics.f1,
                matches=draft.metrics.matches,
                preview=draft.preview,
            )
            self.submissions.append(snapshot)
            return snapshot

    async def get_submission(self, *, submission_public_id: str) -> SubmissionSnapshot | None:
        for item in self.submissions:
            if item.submission_public_id == submission_public_id:
                return item
        return None

    async def list_participant_submissions(self, *, participant_public_id: str) -> list[SubmissionSnapshot]:
        items = [
            replace(item, preview=())
            for item in self.submissions
            if item.participant_public_id == participant_public_id
        ]
        items.sort(key=lambda item: item.attempt_number, reverse=True)
        return items

    async def list_all_submissions(self) -> list[SubmissionSnapshot]:
        return [replace(item, preview=()) for item in self.submissions]

    async def list_recent_submissions(self, *, limit: int = 100) -> list[SubmissionSnapshot]:
        items = [replace(item, preview=()) for item in reversed(self.submissions)]
        return items[:limit]

    def _participant_row(self, participant_public_id: str) -> _ParticipantRow:
        row = self.participants.get(participant_public_id)
        if row is None:
            raise NotFoundError("User not found")
        return row
