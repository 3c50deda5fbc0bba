from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from langchain_core.runnables import RunnableConfig
from pydantic import BaseModel, ValidationError

from ..llm import GenerationClient
from ..models import LogEntry
from ..rendering import RenderBackend
from .retry import RetryPolicy
from .state import JobStatus

ModelT = TypeVar("ModelT", bound=BaseModel)

LogSink = Callable[[LogEntry], None]
StatusSink = Callable[[JobStatus], None]
ArtifactSink = Callable[[str, Any], None]

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_+-]*\n?")


class StructuredOutputError(ValueError):
    pass


def _ignore(*_: Any) -> None:
    return None


@dataclass(frozen=True)
class PipelineContext:
    client: GenerationClient
    render_backend: RenderBackend
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    log_sink: LogSink = _ignore
    status_sink: StatusSink = _ignore
    artifact_sink: ArtifactSink = _ignore


def context_from_config(config: RunnableConfig) -> PipelineContext:
    configurable = (config or {}).get("configurable", {})
    context = configurable.get("pipeline_context")
    if not isinstance(context, PipelineContext):
        raise RuntimeError("pipeline_context missing from graph config")
    return context


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).replace("```", "").strip()


def parse_structured(text: str, model: type[ModelT], stage: str) -> ModelT:
    raw = strip_code_fences(text or "")
    if not raw:
        raise StructuredOutputError(f"Empty response from {stage}")
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
        raise StructuredOutputError(
            f"{stage} returned non-conforming output ({exc.error_count()} errors, first at {location}: {first.get('msg')})"
        ) from exc


def dump_artifact(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)
