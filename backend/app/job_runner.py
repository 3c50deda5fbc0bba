from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from .job_store import JobRecord, JobStore
from .models import LogEntry
from .pipeline import InvalidTransitionError, JobStatus, PipelineCoordinator, PipelineResult


class JobRunner:
    def __init__(self, store: JobStore, coordinator: PipelineCoordinator) -> None:
        self._store = store
        self._coordinator = coordinator
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def active_jobs(self) -> list[str]:
        return list(self._tasks)

    def start_job(self, job_id: str) -> None:
        record = self._store.get_job(job_id)
        if not record:
            raise KeyError(job_id)
        if job_id in self._tasks:
            raise ValueError(f"job {job_id} is already running")
        task = asyncio.create_task(self._run_job(job_id, record.prompt), name=f"worker-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda t: self._forget(job_id, t))

    def cancel_job(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        logger.info("Cancelling pipeline for job {}", job_id)
        return task.cancel()

    async def wait(self, job_id: str) -> None:
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelled {} in-flight pipeline(s) on shutdown.", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, job_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Pipeline task for job {} crashed: {!r}", job_id, task.exception())

    def _require(self, job_id: str, record: JobRecord | None) -> JobRecord:
        if record is None:
            raise KeyError(f"job {job_id} no longer exists")
        return record

    async def _run_job(self, job_id: str, prompt: str) -> None:
        def log_sink(entry: LogEntry) -> None:
            self._store.append_log(job_id, entry)

        def status_sink(status: JobStatus) -> None:
            self._require(job_id, self._store.update_job(job_id, status=status))

        def artifact_sink(key: str, value: Any) -> None:
            self._require(job_id, self._store.update_job(job_id, **{key: value}))

        with logger.contextualize(job_id=job_id):
            logger.info("Running job {}", job_id)
            try:
                result = await self._coordinator.run(prompt, log_sink, status_sink, artifact_sink)
            except Exception as exc:  # noqa: BLE001
                logger.opt(exception=exc).warning("Job {} failed", job_id)
                self._commit_failure(job_id, exc)
                return
            self._commit_success(job_id, result)

    def _commit_success(self, job_id: str, result: PipelineResult) -> None:
        try:
            record = self._store.update_job(
                job_id,
                status=JobStatus.COMPLETED,
                scene_plan=result.scene_plan,
                generated_code=result.generated_code,
                validation_result=result.validation_result,
                video_url=result.video_url,
            )
        except InvalidTransitionError as exc:
            logger.error("Could not complete job {}: {}", job_id, exc)
            self._commit_failure(job_id, exc)
            return
        if record is None:
            logger.info("Job {} finished after it was deleted.", job_id)
            return
        logger.info("Job {} completed with video {}", job_id, record.video_url)

    def _commit_failure(self, job_id: str, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        try:
            record = self._store.update_job(job_id, status=JobStatus.FAILED, error_message=message)
        except InvalidTransitionError as commit_exc:
            logger.error("Could not mark job {} failed: {}", job_id, commit_exc)
            return
        if record is None:
            logger.info("Job {} failed after it was deleted.", job_id)
