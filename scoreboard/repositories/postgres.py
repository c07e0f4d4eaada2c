from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import importlib
import json
from typing import Any

from scoreboard.domain.contracts import DEFAULT_UPLOAD_LIMIT_KEY
from scoreboard.domain.errors import ConflictError, DomainInvariantError, NotFoundError, QuotaExceededError
from scoreboard.domain.ids import (
    new_answer_set_public_id,
    new_participant_public_id,
    new_submission_public_id,
)
from scoreboard.domain.models import (
    AnswerSet,
    ComparisonRow,
    LabelRecord,
    ParticipantRole,
    ParticipantSnapshot,
    SubmissionDraft,
    SubmissionSnapshot,
)
from scoreboard.repositories.sql_loader import load_sql

try:
    asyncpg_module = importlib.import_module("asyncpg")
except ModuleNotFoundError:  # pragma: no cover
    asyncpg_module = None  # type: ignore[assignment]


SQL_CREATE_PARTICIPANT = load_sql("create_participant.sql")
SQL_GET_PARTICIPANT = load_sql("get_participant.sql")
SQL_LIST_PARTICIPANTS = load_sql("list_participants.sql")
SQL_UPDATE_PARTICIPANT = load_sql("update_participant.sql")
SQL_DELETE_PARTICIPANT = load_sql("delete_participant.sql")
SQL_LOCK_PARTICIPANT = load_sql("lock_participant.sql")
SQL_GET_CONFIG_VALUE = load_sql("get_config_value.sql")
SQL_UPSERT_CONFIG_VALUE = load_sql("upsert_config_value.sql")
SQL_GET_ACTIVE_ANSWER_SET = load_sql("get_active_answer_set.sql")
SQL_LOCK_ANSWER_SETS = load_sql("lock_answer_sets.sql")
SQL_DEACTIVATE_ANSWER_SETS = load_sql("deactivate_answer_sets.sql")
SQL_INSERT_ANSWER_SET = load_sql("insert_answer_set.sql")
SQL_COUNT_SUBMISSIONS = load_sql("count_submissions.sql")
SQL_COUNT_SUBMISSIONS_BY_PK = load_sql("count_submissions_by_pk.sql")
SQL_INSERT_SUBMISSION = load_sql("insert_submission.sql")
SQL_GET_SUBMISSION = load_sql("get_submission.sql")
SQL_LIST_PARTICIPANT_SUBMISSIONS = load_sql("list_participant_submissions.sql")
SQL_LIST_ALL_SUBMISSIONS = load_sql("list_all_submissions.sql")
SQL_LIST_RECENT_SUBMISSIONS = load_sql("list_recent_submissions.sql")

_EMAIL_CONSTRAINT = "participants_email_key"
_PUBLIC_ID_CONSTRAINT_SUFFIX = "_public_id_key"


def _is_unique_violation(exc: Exception) -> bool:
    return getattr(exc, "sqlstate", None) == "23505"


def _is_email_conflict(exc: Exception) -> bool:
    return _is_unique_violation(exc) and getattr(exc, "constraint_name", None) == _EMAIL_CONSTRAINT


def _is_public_id_conflict(exc: Exception) -> bool:
    constraint = getattr(exc, "constraint_name", None) or ""
    return _is_unique_violation(exc) and constraint.endswith(_PUBLIC_ID_CONSTRAINT_SUFFIX)


@dataclass
class AsyncpgPoolManager:
    dsn: str
    pool: Any | None = None

    async def startup(self) -> None:
        if asyncpg_module is None:  # pragma: no cover
            raise RuntimeError("asyncpg is required for postgres repository mode")

        async def _init_connection(conn: Any) -> None:
            await conn.set_type_codec(
                "json",
                encoder=json.dumps,
                decoder=json.loads,
                schema="pg_catalog",
            )
            await conn.set_type_codec(
                "jsonb",
                encoder=json.dumps,
                decoder=json.loads,
                schema="pg_catalog",
            )

        self.pool = await asyncpg_module.create_pool(
            dsn=self.dsn,
            min_size=1,
            max_size=5,
            init=_init_connection,
        )

    async def shutdown(self) -> None:
        if self.pool is None:
            return
        await self.pool.close()
        self.pool = None


@dataclass
class PostgresSubmissionRepository:
    pool_manager: AsyncpgPoolManager

    def _pool(self) -> Any:
        if self.pool_manager.pool is None:
            raise RuntimeError("postgres pool is not initialized")
        return self.pool_manager.pool

    async def create_participant(
        self,
        *,
        email: str,
        team_name: str,
        role: ParticipantRole = ParticipantRole.USER,
        upload_limit: int | None = None,
    ) -> ParticipantSnapshot:
        pool = self._pool()
        async with pool.acquire() as conn:
            for _ in range(5):
                try:
                    row = await conn.fetchrow(
                        SQL_CREATE_PARTICIPANT,
                        new_participant_public_id(),
                        email.strip().lower(),
                        team_name.strip(),
                        role.value,
                        upload_limit,
                    )
                except Exception as exc:
                    if _is_email_conflict(exc):
                        raise ConflictError("User with this email already exists") from exc
                    if _is_public_id_conflict(exc):
                        continue
                    raise
                if row is None:
                    raise DomainInvariantError("failed to create participant")
                return _participant_from_row(row)
        raise DomainInvariantError("failed to allocate unique participant public id")

    async def get_participant(self, *, participant_public_id: str) -> ParticipantSnapshot | None:
        pool = self._pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(SQL_GET_PARTICIPANT, participant_public_id)
        if row is None:
            return None
        return _participant_from_row(row)

    async def list_participants(self) -> list[ParticipantSnapshot]:
        pool = self._pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SQL_LIST_PARTICIPANTS)
        return [_participant_from_row(row) for row in rows]

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
        pool = self._pool()
        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    SQL_UPDATE_PARTICIPANT,
                    participant_public_id,
                    email.strip().lower() if email is not None else None,
                    team_name.strip() if team_name is not None else None,
                    role.value if role is not None else None,
                    update_upload_limit,
                    upload_limit,
                )
            except Exception as exc:
                if _is_email_conflict(exc):
                    raise ConflictError("User with this email already exists") from exc
                raise
        if row is None:
            raise NotFoundError("User not found")
        return _participant_from_row(row)

    async def delete_participant(self, *, participant_public_id: str) -> bool:
        pool = self._pool()
        async with pool.acquire() as conn:
            # Submissions go with the participant through ON DELETE CASCADE.
            deleted = await conn.fetchval(SQL_DELETE_PARTICIPANT, participant_public_id)
        return deleted is not None

    async def get_default_upload_limit(self) -> int | None:
        pool = self._pool()
        async with pool.acquire() as conn:
            value = await conn.fetchval(SQL_GET_CONFIG_VALUE, DEFAULT_UPLOAD_LIMIT_KEY)
        if value is None:
            return None
        return int(value)

    async def set_default_upload_limit(self, *, value: int) -> int:
        pool = self._pool()
        async with pool.acquire() as conn:
            stored = await conn.fetchval(SQL_UPSERT_CONFIG_VALUE, DEFAULT_UPLOAD_LIMIT_KEY, value)
        return int(stored)

    async def get_active_answer_set(self) -> AnswerSet | None:
        pool = self._pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(SQL_GET_ACTIVE_ANSWER_SET)
        if row is None:
            return None
        return _answer_set_from_row(row)

    async def replace_answer_set(
        self,
        *,
        filename: str,
        uploaded_by: str | None,
        columns: Sequence[str],
        records: Sequence[LabelRecord],
    ) -> AnswerSet:
        records_json = [{"row_id": record.row_id, "label": record.label} for record in records]
        pool = self._pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                # Replacements run one at a time against the single-active index.
                await conn.execute(SQL_LOCK_ANSWER_SETS)
                await conn.execute(SQL_DEACTIVATE_ANSWER_SETS)
                for _ in range(5):
                    try:
                        async with conn.transaction():
                            row = await conn.fetchrow(
                                SQL_INSERT_ANSWER_SET,
                                new_answer_set_public_id(),
                                filename,
                                uploaded_by,
                                list(columns),
                                records_json,
                            )
                    except Exception as exc:
                        if _is_public_id_conflict(exc):
                            continue
                        raise
                    if row is None:
                        raise DomainInvariantError("failed to store answer set")
                    return _answer_set_from_row(row)
        raise DomainInvariantError("failed to allocate unique answer set public id")

    async def count_submissions(self, *, participant_public_id: str) -> int:
        pool = self._pool()
        async with pool.acquire() as conn:
            count = await conn.fetchval(SQL_COUNT_SUBMISSIONS, participant_public_id)
        return int(count or 0)

    async def append_submission(self, *, draft: SubmissionDraft, upload_limit: int) -> SubmissionSnapshot:
        preview_json = [
            {"row_id": row.row_id, "predicted": row.predicted, "actual": row.actual, "match": row.match}
            for row in draft.preview
        ]
        pool = self._pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                # Row lock serializes count -> attempt number -> insert per participant.
                participant_pk = await conn.fetchval(SQL_LOCK_PARTICIPANT, draft.participant_public_id)
                if participant_pk is None:
                    raise NotFoundError("participant not found")
                used = int(await conn.fetchval(SQL_COUNT_SUBMISSIONS_BY_PK, participant_pk) or 0)
                if used >= upload_limit:
                    raise QuotaExceededError(used=used, allowed=upload_limit)
                attempt_number = used + 1

                for _ in range(5):
                    submission_public_id = new_submission_public_id()
                    try:
                        async with conn.transaction():
                            submitted_at = await conn.fetchval(
                                SQL_INSERT_SUBMISSION,
                                submission_public_id,
                                participant_pk,
                                attempt_number,
                                draft.filename,
                                draft.rows_in_canonical,
                                draft.rows_in_submission,
                                draft.rows_compared,
                                draft.missing_rows,
                                draft.extra_rows,
                                list(draft.missing_row_ids),
                                list(draft.extra_row_ids),
                                draft.metrics.accuracy,
                                draft.metrics.precision,
                                draft.metrics.recall,
                                draft.metrics.f1,
                                draft.metrics.matches,
                                preview_json,
                            )
                    except Exception as exc:
                        if _is_public_id_conflict(exc):
                            continue
                        raise
                    return SubmissionSnapshot(
                        submission_public_id=submission_public_id,
                        participant_public_id=draft.participant_public_id,
                        attempt_number=attempt_number,
                        filename=draft.filename,
                        submitted_at=submitted_at,
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

                raise DomainInvariantError("failed to allocate unique submission public id")

    async def get_submission(self, *, submission_public_id: str) -> SubmissionSnapshot | None:
        pool = self._pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(SQL_GET_SUBMISSION, submission_public_id)
        if row is None:
            return None
        return _submission_from_row(row, preview_json=row["preview_json"])

    async def list_participant_submissions(self, *, participant_public_id: str) -> list[SubmissionSnapshot]:
        pool = self._pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SQL_LIST_PARTICIPANT_SUBMISSIONS, participant_public_id)
        return [_submission_from_row(row) for row in rows]

    async def list_all_submissions(self) -> list[SubmissionSnapshot]:
        pool = self._pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SQL_LIST_ALL_SUBMISSIONS)
        return [_submission_from_row(row) for row in rows]

    async def list_recent_submissions(self, *, limit: int = 100) -> list[SubmissionSnapshot]:
        pool = self._pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SQL_LIST_RECENT_SUBMISSIONS, limit)
        return [_submission_from_row(row) for row in rows]


def _participant_from_row(row: Any) -> ParticipantSnapshot:
    return ParticipantSnapshot(
        participant_public_id=row["public_id"],
        email=row["email"],
        team_name=row["team_name"],
        role=ParticipantRole(row["role"]),
        upload_limit=row["upload_limit"],
        created_at=row["created_at"],
    )


def _answer_set_from_row(row: Any) -> AnswerSet:
    records_json = _json_list(row["records_json"])
    return AnswerSet(
        answer_set_public_id=row["public_id"],
        filename=row["filename"],
        uploaded_by=row["uploaded_by"],
        uploaded_at=row["uploaded_at"],
        columns=tuple(str(name) for name in _json_list(row["columns_json"])),
        records=tuple(
            LabelRecord(row_id=str(item["row_id"]), label=str(item["label"]))
            for item in records_json
            if isinstance(item, dict)
        ),
    )


def _submission_from_row(row: Any, *, preview_json: object = None) -> SubmissionSnapshot:
    preview = tuple(
        ComparisonRow(
            row_id=str(item["row_id"]),
            predicted=str(item["predicted"]),
            actual=str(item["actual"]),
            match=bool(item["match"]),
        )
        for item in _json_list(preview_json)
        if isinstance(item, dict)
    )
    return SubmissionSnapshot(
        submission_public_id=row["public_id"],
        participant_public_id=row["participant_public_id"],
        attempt_number=row["attempt_number"],
        filename=row["filename"],
        submitted_at=row["submitted_at"],
        rows_in_canonical=row["rows_in_canonical"],
        rows_in_submission=row["rows_in_submission"],
        rows_compared=row["rows_compared"],
        missing_rows=row["missing_rows"],
        extra_rows=row["extra_rows"],
        missing_row_ids=tuple(str(item) for item in _json_list(row["missing_row_ids_json"])),
        extra_row_ids=tuple(str(item) for item in _json_list(row["extra_row_ids_json"])),
        accuracy=float(row["accuracy"]),
        precision=float(row["precision"]),
        recall=float(row["recall"]),
        f1=float(row["f1"]),
        matches=row["matches"],
        preview=preview,
    )


def _json_list(value: object) -> list[Any]:
    if isinstance(value, str):
        value = json.loads(value)
    if isinstance(value, list):
        return value
    return []
