from __future__ import annotations

from dataclasses import dataclass

from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.settings import RuntimeSettings


@dataclass(frozen=True)
class ApiDeps:
    repository: SubmissionRepository
    settings: RuntimeSettings
