from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from scoreboard.domain.errors import DomainValidationError
from scoreboard.domain.models import ClassificationMetrics, ComparisonRow

METRIC_DECIMALS = 6


def compute_metrics(rows: Sequence[ComparisonRow]) -> ClassificationMetrics:
    """Accuracy plus macro-averaged precision, recall and F1.

    The label universe is every label seen as either predicted or actual, so
    a label that only appears in predictions counts as a class with zero
    precision and recall. Every class weighs the same in the averages.
    """
    if not rows:
        raise DomainValidationError("metrics require at least one compared row")

    total = len(rows)
    true_positives: Counter[str] = Counter()
    predicted_counts: Counter[str] = Counter()
    actual_counts: Counter[str] = Counter()
    for row in rows:
        predicted_counts[row.predicted] += 1
        actual_counts[row.actual] += 1
        if row.predicted == row.actual:
            true_positives[row.actual] += 1

    matches = sum(true_positives.values())
    labels = sorted(set(predicted_counts) | set(actual_counts))

    precisions: list[float] = []
    recalls: list[float] = []
    for label in labels:
        tp = true_positives[label]
        # TP + FP is every prediction of the label, TP + FN every actual occurrence.
        predicted_total = predicted_counts[label]
        actual_total = actual_counts[label]
        precisions.append(tp / predicted_total if predicted_total > 0 else 0.0)
        recalls.append(tp / actual_total if actual_total > 0 else 0.0)

    precision = sum(precisions) / len(labels)
    recall = sum(recalls) / len(labels)
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0

    return ClassificationMetrics(
        accuracy=_bounded(matches / total),
        precision=_bounded(precision),
        recall=_bounded(recall),
        f1=_bounded(f1),
        matches=matches,
    )


def _bounded(value: float) -> float:
    return round(max(0.0, min(1.0, value)), METRIC_DECIMALS)
