from __future__ import annotations

import argparse
import logging
import uuid

from fastapi import FastAPI
import uvicorn

from scoreboard.api.http_app import SERVICE_NAME, build_app
from scoreboard.logging_setup import configure_logging
from scoreboard.services.bootstrap import RuntimeContainer, build_runtime_container
from scoreboard.settings import RuntimeSettings, runtime_settings_from_env


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submission scoring and leaderboard API")
    parser.add_argument("--host", default=None, help="Bind address (default: APP_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: APP_PORT)")
    parser.add_argument("--log-level", default=None, help="Log level name (default: LOG_LEVEL)")
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate configuration and wiring, then exit",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable code reload (dev mode)",
    )
    return parser.parse_args(argv)


def _app_for(container: RuntimeContainer, run_id: str) -> FastAPI:
    return build_app(
        run_id=run_id,
        api_deps=container.api_deps,
        mode=container.mode,
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
    )


def create_runtime_app() -> FastAPI:
    settings = runtime_settings_from_env()
    configure_logging(settings.log_level)
    return _app_for(build_runtime_container(settings), run_id=str(uuid.uuid4()))


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings: RuntimeSettings = runtime_settings_from_env()

    configure_logging(args.log_level or settings.log_level)
    run_id = str(uuid.uuid4())
    logger = logging.getLogger("runtime")

    container = build_runtime_container(settings)
    logger.info(
        "runtime initialized",
        extra={"service": SERVICE_NAME, "run_id": run_id, "component": f"repository.{container.mode}"},
    )

    if args.dry_run_startup:
        logger.info("dry-run startup complete", extra={"service": SERVICE_NAME, "run_id": run_id})
        return 0

    host = args.host or settings.host
    port = args.port if args.port is not None else settings.port
    if args.reload:
        # The reloader imports the app in a child process, so it rebuilds from the environment.
        uvicorn.run(
            "scoreboard.main:create_runtime_app",
            host=host,
            port=port,
            log_level="warning",
            reload=True,
            factory=True,
        )
    else:
        uvicorn.run(_app_for(container, run_id), host=host, port=port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
