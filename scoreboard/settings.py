from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_UPLOAD_LIMIT = 15
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_LEADERBOARD_LIMIT = 50


@dataclass(frozen=True)
class RuntimeSettings:
    database_url: str | None = None
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Used only while no default upload limit has been stored by an admin.
    fallback_upload_limit: int = DEFAULT_UPLOAD_LIMIT
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    leaderboard_limit: int = DEFAULT_LEADERBOARD_LIMIT


def runtime_settings_from_env() -> RuntimeSettings:
    return RuntimeSettings(
        database_url=os.getenv("DATABASE_URL") or None,
        host=os.getenv("APP_HOST", "0.0.0.0"),
        port=_env_int("APP_PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        fallback_upload_limit=_env_int("DEFAULT_UPLOAD_LIMIT", DEFAULT_UPLOAD_LIMIT),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        leaderboard_limit=_env_int("LEADERBOARD_LIMIT", DEFAULT_LEADERBOARD_LIMIT),
    )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default
