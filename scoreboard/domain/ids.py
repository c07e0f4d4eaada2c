from __future__ import annotations

import importlib

ulid_module = importlib.import_module("ulid")

SUBMISSION_PREFIX = "sub"
PARTICIPANT_PREFIX = "par"
ANSWER_SET_PREFIX = "ans"


def _prefixed_ulid(prefix: str) -> str:
    # ULIDs sort by creation time, so ids double as a coarse insertion order.
    return f"{prefix}_{ulid_module.new().str}"


def new_submission_public_id() -> str:
    return _prefixed_ulid(SUBMISSION_PREFIX)


def new_participant_public_id() -> str:
    return _prefixed_ulid(PARTICIPANT_PREFIX)


def new_answer_set_public_id() -> str:
    return _prefixed_ulid(ANSWER_SET_PREFIX)
