from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import SETTINGS, Settings
from .job_runner import JobRunner
from .job_store import JobRecord, JobStore
from .llm import GenerationClient, OpenAIGenerationClient
from .logging_setup import configure_logging
from .models import JobCreateRequest, JobView
from .pipeline import PipelineCoordinator, RetryPolicy
from .rendering import RenderBackend, build_render_backend
from .system import check_pipeline_dependencies

configure_logging(SETTINGS.logs_root, SETTINGS.log_level)


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialize_job(record: JobRecord) -> JobView:
    return JobView(
        id=record.job_id,
        prompt=record.prompt,
        status=record.status.value,
        scene_plan=record.scene_plan,
        generated_code=record.generated_code,
        validation_result=record.validation_result,
        video_url=record.video_url,
        error_message=record.error_message,
        agent_logs=[entry.to_dict() for entry in record.agent_logs],
        created_at=_isoformat(record.created_at),
        completed_at=_isoformat(record.completed_at),
    )


def _log_dependency_report(settings: Settings) -> None:
    snapshot = check_pipeline_dependencies(settings)
    if snapshot["overall"] == "fail":
        logger.error("Critical pipeline dependencies missing: {}", snapshot["dependencies"])
    elif snapshot["overall"] == "warn":
        logger.warning("Optional pipeline dependencies missing: {}", snapshot["dependencies"])
    else:
        logger.info("Pipeline dependency check passed.")


def create_app(
    settings: Settings = SETTINGS,
    client: GenerationClient | None = None,
    render_backend: RenderBackend | None = None,
    store: JobStore | None = None,
) -> FastAPI:
    store = store if store is not None else JobStore()
    coordinator = PipelineCoordinator(
        client if client is not None else OpenAIGenerationClient.from_settings(settings),
        render_backend if render_backend is not None else build_render_backend(settings),
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            jitter=settings.retry_jitter,
        ),
    )
    runner = JobRunner(store, coordinator)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        _log_dependency_report(settings)
        yield
        await runner.shutdown()

    app = FastAPI(title="Educational Animation Studio API", version="0.1.0", lifespan=lifespan)
    app.state.store = store
    app.state.runner = runner
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "time": _isoformat(datetime.now(timezone.utc))}

    @app.get("/api/system/dependencies")
    def system_dependencies() -> dict:
        return check_pipeline_dependencies(settings)

    @app.post("/api/jobs", response_model=JobView, status_code=201)
    async def create_job(payload: JobCreateRequest) -> JobView:
        record = store.create_job(payload.prompt)
        runner.start_job(record.job_id)
        logger.info("Accepted job {} ({} chars)", record.job_id, len(record.prompt))
        return serialize_job(record)

    @app.get("/api/jobs", response_model=list[JobView])
    async def list_jobs() -> list[JobView]:
        return [serialize_job(r) for r in store.list_jobs()]

    @app.get("/api/jobs/{job_id}", response_model=JobView)
    async def get_job(job_id: str) -> JobView:
        record = store.get_job(job_id)
        if not record:
            raise HTTPException(status_code=404, detail="job not found")
        return serialize_job(record)

    @app.delete("/api/jobs/{job_id}", status_code=204, response_class=Response)
    async def delete_job(job_id: str) -> Response:
        if not store.delete_job(job_id):
            raise HTTPException(status_code=404, detail="job not found")
        runner.cancel_job(job_id)
        logger.info("Deleted job {}", job_id)
        return Response(status_code=204)

    return app


app = create_app()


def run() -> None:
    uvicorn.run("backend.app.main:app", host="0.0.0.0", port=8000, reload=True)


if __name__ == "__main__":
    run()
