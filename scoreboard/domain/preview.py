from __future__ import annotations

from collections.abc import Sequence
from itertools import islice

from scoreboard.domain.models import ComparisonRow

PREVIEW_MISMATCH_LIMIT = 15
PREVIEW_MATCH_LIMIT = 5
PREVIEW_TOTAL_LIMIT = 20


def build_preview(rows: Sequence[ComparisonRow]) -> tuple[ComparisonRow, ...]:
    """Mismatches first, then a few matches, both in comparison order."""
    mismatches = islice((row for row in rows if not row.match), PREVIEW_MISMATCH_LIMIT)
    matches = islice((row for row in rows if row.match), PREVIEW_MATCH_LIMIT)
    return (*mismatches, *matches)[:PREVIEW_TOTAL_LIMIT]
