from __future__ import annotations

from enum import Enum

from typing_extensions import TypedDict

from ..models import ScenePlan, ValidationResult


class JobStatus(str, Enum):
    QUEUED = "queued"
    PLANNING = "planning"
    GENERATING = "generating"
    VALIDATING = "validating"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidTransitionError(ValueError):
    pass


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Forward moves only; FAILED is added for every non-terminal state below.
_NEXT_STATUS: dict[JobStatus, JobStatus] = {
    JobStatus.QUEUED: JobStatus.PLANNING,
    JobStatus.PLANNING: JobStatus.GENERATING,
    JobStatus.GENERATING: JobStatus.VALIDATING,
    JobStatus.VALIDATING: JobStatus.RENDERING,
    JobStatus.RENDERING: JobStatus.COMPLETED,
}


def is_terminal(status: JobStatus | str) -> bool:
    return JobStatus(status) in TERMINAL_STATUSES


def allowed_transitions(status: JobStatus | str) -> frozenset[JobStatus]:
    current = JobStatus(status)
    if current in TERMINAL_STATUSES:
        return frozenset()
    return frozenset({_NEXT_STATUS[current], JobStatus.FAILED})


def validate_transition(current: JobStatus | str, new: JobStatus | str) -> JobStatus:
    try:
        target = JobStatus(new)
    except ValueError as exc:
        raise InvalidTransitionError(f"unknown job status: {new!r}") from exc
    source = JobStatus(current)
    if target not in allowed_transitions(source):
        raise InvalidTransitionError(f"cannot move job from {source.value} to {target.value}")
    return target


class PipelineState(TypedDict, total=False):
    prompt: str
    scene_plan: ScenePlan
    generated_code: str
    validation_result: ValidationResult
    video_url: str
