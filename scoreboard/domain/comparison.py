from __future__ import annotations

from collections.abc import Sequence

from scoreboard.domain.models import ComparisonResult, ComparisonRow, LabelRecord

ROW_ID_SAMPLE_SIZE = 10


def compare_records(
    submission: Sequence[LabelRecord],
    canonical: Sequence[LabelRecord],
) -> ComparisonResult:
    """Join a submission against the canonical records by row_id.

    Rows are emitted in canonical order. When the submission repeats a row_id,
    the later occurrence wins. A result with zero compared rows is valid here;
    the caller decides how to report it.
    """
    canonical_ids = {record.row_id for record in canonical}

    # dict insertion keeps first-seen order while assignment keeps the last label.
    submitted: dict[str, str] = {}
    for record in submission:
        submitted[record.row_id] = record.label

    rows: list[ComparisonRow] = []
    missing: list[str] = []
    for record in canonical:
        predicted = submitted.get(record.row_id)
        if predicted is None:
            missing.append(record.row_id)
            continue
        rows.append(
            ComparisonRow(
                row_id=record.row_id,
                predicted=predicted,
                actual=record.label,
                match=predicted == record.label,
            )
        )

    extra = [row_id for row_id in submitted if row_id not in canonical_ids]

    return ComparisonResult(
        rows=tuple(rows),
        rows_in_canonical=len(canonical),
        rows_in_submission=len(submission),
        missing_rows=len(missing),
        extra_rows=len(extra),
        missing_row_ids=tuple(missing[:ROW_ID_SAMPLE_SIZE]),
        extra_row_ids=tuple(extra[:ROW_ID_SAMPLE_SIZE]),
    )
