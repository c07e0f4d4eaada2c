from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.domain.contracts import SubmissionRepository
from scoreboard.repositories.postgres import AsyncpgPoolManager, PostgresSubmissionRepository
from scoreboard.repositories.stub import InMemorySubmissionRepository
from scoreboard.settings import RuntimeSettings


@dataclass
class RuntimeContainer:
    repository: SubmissionRepository
    api_deps: ApiDeps
    mode: str
    on_startup: Callable[[], Awaitable[None]] | None
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(settings: RuntimeSettings) -> RuntimeContainer:
    on_startup: Callable[[], Awaitable[None]] | None = None
    on_shutdown: Callable[[], Awaitable[None]] | None = None
    repository: SubmissionRepository
    if settings.database_url:
        pool_manager = AsyncpgPoolManager(dsn=settings.database_url)
        repository = PostgresSubmissionRepository(pool_manager=pool_manager)
        on_startup = pool_manager.startup
        on_shutdown = pool_manager.shutdown
        mode = "postgres"
    else:
        repository = InMemorySubmissionRepository()
        mode = "memory"

    return RuntimeContainer(
        repository=repository,
        api_deps=ApiDeps(repository=repository, settings=settings),
        mode=mode,
        on_startup=on_startup,
        on_shutdown=on_shutdown,
    )
