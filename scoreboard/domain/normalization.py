from __future__ import annotations

from collections.abc import Iterable, Mapping

from scoreboard.domain.errors import DomainValidationError
from scoreboard.domain.models import LabelRecord

ROW_ID_FIELD = "row_id"
LABEL_FIELD = "label"
REQUIRED_FIELDS: tuple[str, ...] = (ROW_ID_FIELD, LABEL_FIELD)


def normalize_rows(rows: Iterable[Mapping[str, object]]) -> tuple[LabelRecord, ...]:
    """Convert parsed rows into trimmed (row_id, label) records, keeping order."""
    return tuple(
        LabelRecord(
            row_id=_as_text(row.get(ROW_ID_FIELD)),
            label=_as_text(row.get(LABEL_FIELD)),
        )
        for row in rows
    )


def normalize_answer_rows(rows: Iterable[Mapping[str, object]]) -> tuple[LabelRecord, ...]:
    records = normalize_rows(rows)
    seen: set[str] = set()
    duplicates: list[str] = []
    for record in records:
        if record.row_id in seen:
            duplicates.append(record.row_id)
        seen.add(record.row_id)
    if duplicates:
        sample = ", ".join(duplicates[:10])
        raise DomainValidationError(f"answer set contains duplicate row_id values: {sample}")
    return records


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()
