import pytest

from scoreboard.domain.comparison import ROW_ID_SAMPLE_SIZE, compare_records
from scoreboard.domain.errors import DomainValidationError
from scoreboard.domain.models import ComparisonRow, LabelRecord
from scoreboard.domain.scoring import compute_metrics


def _records(*pairs: tuple[str, str]) -> tuple[LabelRecord, ...]:
    return tuple(LabelRecord(row_id=row_id, label=label) for row_id, label in pairs)


@pytest.mark.unit
def test_identical_submission_scores_perfectly() -> None:
    canonical = _records(("1", "A"), ("2", "B"), ("3", "A"))
    comparison = compare_records(canonical, canonical)
    metrics = compute_metrics(comparison.rows)

    assert (metrics.accuracy, metrics.precision, metrics.recall, metrics.f1) == (1.0, 1.0, 1.0, 1.0)
    assert metrics.matches == 3
    assert comparison.missing_rows == 0
    assert comparison.extra_rows == 0


@pytest.mark.unit
def test_constant_prediction_counts_unpredicted_class_as_zero() -> None:
    canonical = _records(("1", "A"), ("2", "B"), ("3", "A"), ("4", "B"))
    submission = _records(("1", "A"), ("2", "A"), ("3", "A"), ("4", "A"))
    metrics = compute_metrics(compare_records(submission, canonical).rows)

    assert metrics.matches == 2
    assert metrics.accuracy == 0.5
    assert metrics.precision == 0.25
    assert metrics.recall == 0.5
    assert metrics.f1 == 0.333333


@pytest.mark.unit
def test_missing_rows_are_excluded_from_comparison() -> None:
    comparison = compare_records(_records(("1", "A")), _records(("1", "A"), ("2", "B")))

    assert comparison.rows_compared == 1
    assert comparison.missing_rows == 1
    assert comparison.extra_rows == 0
    assert comparison.missing_row_ids == ("2",)


@pytest.mark.unit
def test_extra_rows_are_reported_not_scored() -> None:
    comparison = compare_records(
        _records(("1", "A"), ("2", "B"), ("3", "C")),
        _records(("1", "A"), ("2", "B")),
    )
    metrics = compute_metrics(comparison.rows)

    assert comparison.rows_compared == 2
    assert comparison.extra_rows == 1
    assert comparison.extra_row_ids == ("3",)
    assert metrics.accuracy == 1.0


@pytest.mark.unit
def test_balanced_binary_confusion_matrix() -> None:
    rows = (
        ComparisonRow(row_id="1", predicted="A", actual="A", match=True),
        ComparisonRow(row_id="2", predicted="A", actual="B", match=False),
        ComparisonRow(row_id="3", predicted="B", actual="A", match=False),
        ComparisonRow(row_id="4", predicted="B", actual="B", match=True),
    )
    metrics = compute_metrics(rows)

    assert metrics.accuracy == 0.5
    assert metrics.precision == 0.5
    assert metrics.recall == 0.5
    assert metrics.f1 == 0.5


@pytest.mark.unit
def test_duplicate_submission_ids_keep_last_label() -> None:
    canonical = _records(("1", "A"), ("2", "B"))
    submission = _records(("1", "B"), ("2", "B"), ("1", "A"))
    comparison = compare_records(submission, canonical)

    assert comparison.rows_in_submission == 3
    assert comparison.rows_compared == 2
    assert [row.predicted for row in comparison.rows] == ["A", "B"]
    assert all(row.match for row in comparison.rows)


@pytest.mark.unit
def test_rows_follow_canonical_order() -> None:
    canonical = _records(("c", "x"), ("a", "y"), ("b", "z"))
    submission = _records(("a", "y"), ("b", "z"), ("c", "x"))
    comparison = compare_records(submission, canonical)

    assert [row.row_id for row in comparison.rows] == ["c", "a", "b"]


@pytest.mark.unit
def test_repeated_extra_id_counts_once_and_samples_are_capped() -> None:
    canonical = _records(("keep", "A"))
    extras = [(f"extra-{idx}", "A") for idx in range(ROW_ID_SAMPLE_SIZE + 5)]
    submission = _records(("keep", "A"), ("extra-0", "B"), *extras)
    comparison = compare_records(submission, canonical)

    assert comparison.extra_rows == ROW_ID_SAMPLE_SIZE + 5
    assert len(comparison.extra_row_ids) == ROW_ID_SAMPLE_SIZE
    assert comparison.extra_row_ids[0] == "extra-0"


@pytest.mark.unit
def test_no_overlap_yields_empty_comparison() -> None:
    comparison = compare_records(_records(("9", "A")), _records(("1", "A")))

    assert comparison.rows_compared == 0
    assert comparison.missing_rows == 1
    assert comparison.extra_rows == 1


@pytest.mark.unit
def test_metrics_reject_empty_rows() -> None:
    with pytest.raises(DomainValidationError):
        compute_metrics(())


@pytest.mark.unit
def test_labels_compare_case_sensitively() -> None:
    comparison = compare_records(_records(("1", "cat")), _records(("1", "Cat")))
    metrics = compute_metrics(comparison.rows)

    assert metrics.matches == 0
    assert metrics.accuracy == 0.0
    assert metrics.f1 == 0.0


@pytest.mark.unit
def test_metrics_are_reproducible_and_bounded() -> None:
    canonical = _records(*[(str(idx), "ABC"[idx % 3]) for idx in range(50)])
    submission = _records(*[(str(idx), "ABCD"[(idx * 7) % 4]) for idx in range(50)])
    rows = compare_records(submission, canonical).rows

    first = compute_metrics(rows)
    second = compute_metrics(tuple(reversed(rows)))

    assert first == second
    for value in (first.accuracy, first.precision, first.recall, first.f1):
        assert 0.0 <= value <= 1.0
        assert round(value, 6) == value
    assert first.accuracy == first.matches / len(rows)
