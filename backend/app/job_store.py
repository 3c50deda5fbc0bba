from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from .models import LogEntry, ScenePlan, ValidationResult
from .pipeline.state import InvalidTransitionError, JobStatus, is_terminal, validate_transition


@dataclass
class JobRecord:
    job_id: str
    prompt: str
    status: JobStatus
    created_at: datetime
    scene_plan: ScenePlan | None = None
    generated_code: str | None = None
    validation_result: ValidationResult | None = None
    video_url: str | None = None
    error_message: str | None = None
    agent_logs: list[LogEntry] = field(default_factory=list)
    completed_at: datetime | None = None


UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "scene_plan",
        "generated_code",
        "validation_result",
        "video_url",
        "error_message",
    }
)


def _snapshot(record: JobRecord) -> JobRecord:
    return replace(record, agent_logs=list(record.agent_logs))


class JobStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: dict[str, JobRecord] = {}

    def create_job(self, prompt: str) -> JobRecord:
        record = JobRecord(
            job_id=str(uuid.uuid4()),
            prompt=prompt,
            status=JobStatus.QUEUED,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._jobs[record.job_id] = record
            return _snapshot(record)

    def get_job(self, job_id: str) -> JobRecord | None:
        with self._lock:
            record = self._jobs.get(job_id)
            if not record:
                return None
            return _snapshot(record)

    def list_jobs(self) -> list[JobRecord]:
        with self._lock:
            rows = [_snapshot(r) for r in self._jobs.values()]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    def update_job(self, job_id: str, **updates: Any) -> JobRecord | None:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update job fields: {sorted(unknown)}")
        with self._lock:
            record = self._jobs.get(job_id)
            if not record:
                return None
            if record.completed_at is not None:
                raise InvalidTransitionError(f"job {job_id} is already {record.status.value}")
            if "status" in updates:
                updates["status"] = validate_transition(record.status, updates["status"])
            for key, value in updates.items():
                setattr(record, key, value)
            if is_terminal(record.status):
                record.completed_at = datetime.now(timezone.utc)
            return _snapshot(record)

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def append_log(self, job_id: str, entry: LogEntry) -> None:
        with self._lock:
            record = self._jobs.get(job_id)
            if not record:
                logger.debug("Dropping {} log for missing job {}", entry.agent, job_id)
                return
            if record.completed_at is not None:
                logger.debug("Dropping {} log for finalized job {}", entry.agent, job_id)
                return
            record.agent_logs.append(entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
