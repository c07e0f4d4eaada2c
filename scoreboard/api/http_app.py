from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import Awaitable, Callable
import logging

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from scoreboard.api.handlers.admin import (
    get_answer_set_handler,
    get_config_handler,
    list_recent_submissions_handler,
    update_config_handler,
    upload_answer_set_handler,
)
from scoreboard.api.handlers.deps import ApiDeps
from scoreboard.api.handlers.leaderboard import get_leaderboard_handler
from scoreboard.api.handlers.participants import (
    create_participant_handler,
    delete_participant_handler,
    list_participants_handler,
    update_participant_handler,
)
from scoreboard.api.handlers.submissions import (
    get_best_submission_handler,
    get_quota_handler,
    get_submission_handler,
    list_submissions_handler,
    upload_submission_handler,
)
from scoreboard.api.schemas import (
    PARTICIPANT_ID_PATTERN,
    AdminSubmissionListResponse,
    AnswerSetInfoResponse,
    BestSubmissionResponse,
    ConfigResponse,
    CreateParticipantRequest,
    DeleteParticipantResponse,
    ErrorResponse,
    HealthResponse,
    LeaderboardResponse,
    ListParticipantsResponse,
    ParticipantResponse,
    QuotaResponse,
    ReadyResponse,
    SubmissionListResponse,
    SubmissionResponse,
    UpdateConfigRequest,
    UpdateParticipantRequest,
    UploadAnswerSetResponse,
    UploadSubmissionResponse,
)
from scoreboard.domain.error_taxonomy import (
    GENERIC_INTERNAL_DETAIL,
    error_code_for,
    http_status_for,
    public_detail_for,
)
from scoreboard.domain.errors import CsvFormatError, DomainError

SERVICE_NAME = "scoreboard"

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def build_app(
    run_id: str,
    api_deps: ApiDeps | None = None,
    mode: str = "memory",
    on_startup: Callable[[], Awaitable[None]] | None = None,
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    logger = logging.getLogger("runtime")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        logger.info("service started", extra={"service": SERVICE_NAME, "run_id": run_id})

        if on_startup is not None:
            await on_startup()

        yield

        if on_shutdown is not None:
            await on_shutdown()

        logger.info("service stopped", extra={"service": SERVICE_NAME, "run_id": run_id})

    app = FastAPI(title="scoreboard", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        code = error_code_for(exc)
        status_code = http_status_for(code)
        if code == "internal_error":
            logger.exception(
                "request failed",
                exc_info=exc,
                extra={"service": SERVICE_NAME, "run_id": run_id, "error_code": code},
            )
        else:
            logger.info(
                "request rejected",
                extra={"service": SERVICE_NAME, "run_id": run_id, "error_code": code},
            )
        body = ErrorResponse(
            detail=public_detail_for(exc),
            error_code=code,
            found_columns=list(exc.found_columns) if isinstance(exc, CsvFormatError) and exc.found_columns else None,
        )
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled error",
            exc_info=exc,
            extra={"service": SERVICE_NAME, "run_id": run_id, "error_code": "internal_error"},
        )
        body = ErrorResponse(detail=GENERIC_INTERNAL_DETAIL, error_code="internal_error")
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    def deps() -> ApiDeps:
        if api_deps is None:
            raise HTTPException(status_code=503, detail="api dependencies are not available")
        return api_deps

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME, mode=mode)

    @app.get("/ready", response_model=ReadyResponse, tags=["System"])
    async def ready() -> ReadyResponse:
        answer_set = await deps().repository.get_active_answer_set()
        return ReadyResponse(
            status="ready",
            service=SERVICE_NAME,
            mode=mode,
            answer_set_configured=answer_set is not None,
        )

    @app.post(
        "/submissions/file",
        response_model=UploadSubmissionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Submissions"],
    )
    async def upload_submission(
        file: UploadFile = File(...),
        participant_id: str = Form(..., pattern=PARTICIPANT_ID_PATTERN),
    ) -> UploadSubmissionResponse:
        api = deps()
        return await upload_submission_handler(
            participant_public_id=participant_id,
            filename=file.filename or "submission.csv",
            payload=await file.read(),
            api_deps=api,
        )

    @app.get(
        "/participants/{participant_id}/submissions",
        response_model=SubmissionListResponse,
        tags=["Submissions"],
    )
    async def list_submissions(participant_id: str) -> SubmissionListResponse:
        return await list_submissions_handler(participant_public_id=participant_id, api_deps=deps())

    @app.get(
        "/participants/{participant_id}/submissions/best",
        response_model=BestSubmissionResponse,
        tags=["Submissions"],
    )
    async def get_best_submission(participant_id: str) -> BestSubmissionResponse:
        return await get_best_submission_handler(participant_public_id=participant_id, api_deps=deps())

    @app.get(
        "/participants/{participant_id}/submissions/{submission_id}",
        response_model=SubmissionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Submissions"],
    )
    async def get_submission(participant_id: str, submission_id: str) -> SubmissionResponse:
        return await get_submission_handler(
            participant_public_id=participant_id,
            submission_public_id=submission_id,
            api_deps=deps(),
        )

    @app.get(
        "/participants/{participant_id}/quota",
        response_model=QuotaResponse,
        responses=_ERROR_RESPONSES,
        tags=["Submissions"],
    )
    async def get_quota(participant_id: str) -> QuotaResponse:
        return await get_quota_handler(participant_public_id=participant_id, api_deps=deps())

    @app.get("/leaderboard", response_model=LeaderboardResponse, responses=_ERROR_RESPONSES, tags=["Leaderboard"])
    async def get_leaderboard(
        limit: int | None = Query(default=None, ge=1, le=1000),
        participant_id: str | None = Query(default=None),
    ) -> LeaderboardResponse:
        api = deps()
        return await get_leaderboard_handler(
            limit=limit if limit is not None else api.settings.leaderboard_limit,
            participant_public_id=participant_id,
            api_deps=api,
        )

    @app.post(
        "/admin/participants",
        response_model=ParticipantResponse,
        status_code=201,
        responses=_ERROR_RESPONSES,
        tags=["Admin"],
    )
    async def create_participant(request: CreateParticipantRequest) -> ParticipantResponse:
        return await create_participant_handler(request=request, api_deps=deps())

    @app.get("/admin/participants", response_model=ListParticipantsResponse, tags=["Admin"])
    async def list_participants() -> ListParticipantsResponse:
        return await list_participants_handler(api_deps=deps())

    @app.put(
        "/admin/participants/{participant_id}",
        response_model=ParticipantResponse,
        responses=_ERROR_RESPONSES,
        tags=["Admin"],
    )
    async def update_participant(participant_id: str, request: UpdateParticipantRequest) -> ParticipantResponse:
        return await update_participant_handler(
            participant_public_id=participant_id,
            request=request,
            api_deps=deps(),
        )

    @app.delete(
        "/admin/participants/{participant_id}",
        response_model=DeleteParticipantResponse,
        responses=_ERROR_RESPONSES,
        tags=["Admin"],
    )
    async def delete_participant(participant_id: str) -> DeleteParticipantResponse:
        return await delete_participant_handler(participant_public_id=participant_id, api_deps=deps())

    @app.post(
        "/admin/answer-set",
        response_model=UploadAnswerSetResponse,
        responses=_ERROR_RESPONSES,
        tags=["Admin"],
    )
    async def upload_answer_set(
        file: UploadFile = File(...),
        uploaded_by: str | None = Form(default=None, pattern=PARTICIPANT_ID_PATTERN),
    ) -> UploadAnswerSetResponse:
        api = deps()
        return await upload_answer_set_handler(
            filename=file.filename or "answers.csv",
            payload=await file.read(),
            uploaded_by=uploaded_by,
            api_deps=api,
        )

    @app.get("/admin/answer-set", response_model=AnswerSetInfoResponse, tags=["Admin"])
    async def get_answer_set() -> AnswerSetInfoResponse:
        return await get_answer_set_handler(api_deps=deps())

    @app.get("/admin/config/{key}", response_model=ConfigResponse, responses=_ERROR_RESPONSES, tags=["Admin"])
    async def get_config(key: str) -> ConfigResponse:
        return await get_config_handler(key=key, api_deps=deps())

    @app.put("/admin/config", response_model=ConfigResponse, responses=_ERROR_RESPONSES, tags=["Admin"])
    async def update_config(request: UpdateConfigRequest) -> ConfigResponse:
        return await update_config_handler(key=request.key, value=request.value, api_deps=deps())

    @app.get("/admin/submissions", response_model=AdminSubmissionListResponse, tags=["Admin"])
    async def list_recent_submissions() -> AdminSubmissionListResponse:
        return await list_recent_submissions_handler(api_deps=deps())

    return app
