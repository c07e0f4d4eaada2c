from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass

from scoreboard.domain.errors import CsvFormatError

MAX_REPORTED_ROW_ERRORS = 5


@dataclass(frozen=True)
class ParsedCsv:
    columns: tuple[str, ...]
    rows: list[dict[str, str]]


def parse_csv_rows(payload: bytes) -> ParsedCsv:
    """Tokenize an uploaded CSV with a header row.

    Headers are trimmed and blank lines skipped. Rows whose field count does
    not match the header are reported as errors instead of being padded.
    """
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvFormatError("CSV must be UTF-8 encoded") from exc

    reader = csv.reader(io.StringIO(text, newline=""))
    columns: tuple[str, ...] | None = None
    rows: list[dict[str, str]] = []
    errors: list[str] = []
    try:
        for line in reader:
            if _is_blank(line):
                continue
            if columns is None:
                columns = tuple(name.strip() for name in line)
                continue
            if len(line) != len(columns):
                errors.append(
                    f"line {reader.line_num}: expected {len(columns)} fields, found {len(line)}"
                )
                continue
            rows.append(dict(zip(columns, line)))
    except csv.Error as exc:
        raise CsvFormatError(f"CSV parsing error: line {reader.line_num}: {exc}") from exc

    if errors:
        details = "; ".join(errors[:MAX_REPORTED_ROW_ERRORS])
        raise CsvFormatError(f"CSV parsing error: {details}", found_columns=columns or ())

    return ParsedCsv(columns=columns or (), rows=rows)


def require_columns(parsed: ParsedCsv, required: Sequence[str]) -> None:
    if all(name in parsed.columns for name in required):
        return
    expected = " and ".join(f'"{name}"' for name in required)
    raise CsvFormatError(f"CSV must contain {expected} columns", found_columns=parsed.columns)


def _is_blank(line: list[str]) -> bool:
    return not line or (len(line) == 1 and not line[0].strip())
