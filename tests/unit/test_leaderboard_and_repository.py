from __future__ import annotations

import asyncio

import pytest

from scoreboard.domain.dto import EvaluateSubmissionCommand, LeaderboardQuery
from scoreboard.domain.errors import ConflictError, DomainValidationError, NotFoundError
from scoreboard.domain.models import LabelRecord
from scoreboard.domain.use_cases.evaluate import evaluate_submission
from scoreboard.domain.use_cases.leaderboard import build_leaderboard
from scoreboard.domain.use_cases.submissions import (
    get_best_submission,
    get_owned_submission,
    list_participant_stats,
)
from scoreboard.repositories.stub import InMemorySubmissionRepository

ANSWERS = (
    LabelRecord(row_id="1", label="A"),
    LabelRecord(row_id="2", label="B"),
    LabelRecord(row_id="3", label="A"),
    LabelRecord(row_id="4", label="B"),
)


async def _submit(repo: InMemorySubmissionRepository, participant_id: str, labels: str) -> str:
    rows = [{"row_id": str(idx), "label": label} for idx, label in enumerate(labels, start=1)]
    result = await evaluate_submission(
        EvaluateSubmissionCommand.from_rows(
            participant_public_id=participant_id,
            filename="preds.csv",
            rows=rows,
            fallback_upload_limit=15,
        ),
        repository=repo,
    )
    return result.submission.submission_public_id


async def _repo_with_answers() -> InMemorySubmissionRepository:
    repo = InMemorySubmissionRepository()
    await repo.replace_answer_set(
        filename="answers.csv",
        uploaded_by=None,
        columns=("row_id", "label"),
        records=ANSWERS,
    )
    return repo


@pytest.mark.unit
def test_leaderboard_ranks_best_submissions_and_reports_caller_rank() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        alice = await repo.create_participant(email="alice@example.com", team_name="Alice")
        bob = await repo.create_participant(email="bob@example.com", team_name="Bob")
        await repo.create_participant(email="idle@example.com", team_name="Idle")

        await _submit(repo, alice.participant_public_id, "AAAA")
        await _submit(repo, bob.participant_public_id, "ABAA")
        await _submit(repo, alice.participant_public_id, "ABAB")

        board = await build_leaderboard(
            LeaderboardQuery(limit=1, participant_public_id=bob.participant_public_id),
            repository=repo,
        )

        assert board.total_participants == 2
        assert len(board.entries) == 1
        top = board.entries[0]
        assert (top.rank, top.team_name, top.accuracy, top.attempt_number) == (1, "Alice", 1.0, 2)
        assert board.participant_rank is not None
        assert board.participant_rank.rank == 2
        assert board.participant_rank.accuracy == 0.75

    asyncio.run(_run())


@pytest.mark.unit
def test_leaderboard_rejects_non_positive_limit() -> None:
    async def _run() -> None:
        with pytest.raises(DomainValidationError):
            await build_leaderboard(LeaderboardQuery(limit=0), repository=InMemorySubmissionRepository())

    asyncio.run(_run())


@pytest.mark.unit
def test_leaderboard_without_submissions_is_empty() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        participant = await repo.create_participant(email="a@example.com", team_name="A")

        board = await build_leaderboard(
            LeaderboardQuery(participant_public_id=participant.participant_public_id),
            repository=repo,
        )

        assert board.entries == ()
        assert board.participant_rank is None
        assert board.total_participants == 0

    asyncio.run(_run())


@pytest.mark.unit
def test_submissions_are_only_visible_to_their_owner() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        owner = await repo.create_participant(email="owner@example.com", team_name="Owner")
        other = await repo.create_participant(email="other@example.com", team_name="Other")
        submission_id = await _submit(repo, owner.participant_public_id, "ABAB")

        found = await get_owned_submission(
            participant_public_id=owner.participant_public_id,
            submission_public_id=submission_id,
            repository=repo,
        )
        assert found.preview

        with pytest.raises(NotFoundError):
            await get_owned_submission(
                participant_public_id=other.participant_public_id,
                submission_public_id=submission_id,
                repository=repo,
            )

    asyncio.run(_run())


@pytest.mark.unit
def test_history_is_newest_first_without_previews() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        participant = await repo.create_participant(email="p@example.com", team_name="P")
        await _submit(repo, participant.participant_public_id, "ABAB")
        await _submit(repo, participant.participant_public_id, "AAAA")

        history = await repo.list_participant_submissions(participant_public_id=participant.participant_public_id)
        best = await get_best_submission(participant_public_id=participant.participant_public_id, repository=repo)

        assert [item.attempt_number for item in history] == [2, 1]
        assert all(item.preview == () for item in history)
        assert best is not None
        assert best.attempt_number == 1

    asyncio.run(_run())


@pytest.mark.unit
def test_participant_stats_include_idle_participants() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        active = await repo.create_participant(email="active@example.com", team_name="Active")
        await repo.create_participant(email="idle@example.com", team_name="Idle")
        await _submit(repo, active.participant_public_id, "ABAA")

        stats = {item.participant.team_name: item for item in await list_participant_stats(repository=repo)}

        assert stats["Active"].submission_count == 1
        assert stats["Active"].best_accuracy == 0.75
        assert stats["Idle"].submission_count == 0
        assert stats["Idle"].best_accuracy is None

    asyncio.run(_run())


@pytest.mark.unit
def test_participant_emails_are_unique_case_insensitively() -> None:
    async def _run() -> None:
        repo = InMemorySubmissionRepository()
        created = await repo.create_participant(email="Team@Example.com", team_name="Team")

        assert created.email == "team@example.com"
        with pytest.raises(ConflictError):
            await repo.create_participant(email="team@example.COM", team_name="Clone")

    asyncio.run(_run())


@pytest.mark.unit
def test_deleting_participant_removes_their_submissions() -> None:
    async def _run() -> None:
        repo = await _repo_with_answers()
        gone = await repo.create_participant(email="gone@example.com", team_name="Gone")
        kept = await repo.create_participant(email="kept@example.com", team_name="Kept")
        await _submit(repo, gone.participant_public_id, "ABAB")
        await _submit(repo, kept.participant_public_id, "ABAB")

        assert await repo.delete_participant(participant_public_id=gone.participant_public_id) is True
        assert await repo.delete_participant(participant_public_id=gone.participant_public_id) is False

        remaining = await repo.list_all_submissions()
        assert [item.participant_public_id for item in remaining] == [kept.participant_public_id]

    asyncio.run(_run())


@pytest.mark.unit
def test_updating_unknown_participant_is_not_found() -> None:
    async def _run() -> None:
        repo = InMemorySubmissionRepository()

        with pytest.raises(NotFoundError):
            await repo.update_participant(participant_public_id="par_missing", team_name="X")

    asyncio.run(_run())
