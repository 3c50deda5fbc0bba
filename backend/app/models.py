from __future__ import annotations

import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AgentName = Literal["planner", "generator", "validator", "orchestrator"]
LogStatus = Literal["waiting", "active", "completed", "failed"]
Severity = Literal["error", "warning", "info"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SceneElement(CamelModel):
    type: str
    description: str
    properties: dict[str, Any] = Field(default_factory=dict)


class SceneAnimation(CamelModel):
    type: str
    target: str
    duration: float
    description: str


class Scene(CamelModel):
    name: str
    description: str
    start_time: float
    end_time: float
    elements: list[SceneElement]
    animations: list[SceneAnimation]


class ScenePlan(CamelModel):
    title: str
    description: str
    duration: float
    scenes: list[Scene]


class ValidationIssue(CamelModel):
    line: int | None = None
    message: str
    severity: Severity


class ValidationResult(CamelModel):
    is_valid: bool
    errors: list[ValidationIssue]
    suggestions: list[str]
    educational_score: int = Field(ge=0, le=100)


class LogEntry(CamelModel):
    agent: AgentName
    status: LogStatus
    message: str
    timestamp: int
    data: Any = None

    @classmethod
    def now(cls, agent: AgentName, status: LogStatus, message: str, data: Any = None) -> "LogEntry":
        return cls(
            agent=agent,
            status=status,
            message=message,
            timestamp=int(time.time() * 1000),
            data=data,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "agent": self.agent,
            "status": self.status,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


class JobCreateRequest(BaseModel):
    prompt: str = Field(min_length=10)


class JobView(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    prompt: str
    status: str
    scene_plan: ScenePlan | None = None
    generated_code: str | None = None
    validation_result: ValidationResult | None = None
    video_url: str | None = None
    error_message: str | None = None
    agent_logs: list[dict[str, Any]] = Field(default_factory=list)
    created_at: str | None = None
    completed_at: str | None = None
