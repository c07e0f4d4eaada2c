from __future__ import annotations

from functools import cache
from pathlib import Path

SQL_DIR = Path(__file__).resolve().parent / "sql"


def available_statements() -> tuple[str, ...]:
    return tuple(sorted(path.name for path in SQL_DIR.glob("*.sql")))


@cache
def load_sql(name: str) -> str:
    """Read one statement from the packaged sql/ directory."""
    if name not in available_statements():
        raise FileNotFoundError(f"sql statement not found: {name}")
    return (SQL_DIR / name).read_text(encoding="utf-8").strip()
