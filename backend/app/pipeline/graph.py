from __future__ import annotations

from dataclasses import dataclass

from langgraph.graph import END, StateGraph

from ..llm import GenerationClient
from ..models import ScenePlan, ValidationResult
from ..rendering import RenderBackend
from .nodes import code_generator, code_validator, scene_planner, video_renderer
from .retry import RetryPolicy
from .state import PipelineState
from .utils import ArtifactSink, LogSink, PipelineContext, StatusSink


def build_graph():
    workflow = StateGraph(PipelineState)
    workflow.add_node("scene_planner", scene_planner)
    workflow.add_node("code_generator", code_generator)
    workflow.add_node("code_validator", code_validator)
    workflow.add_node("video_renderer", video_renderer)

    workflow.set_entry_point("scene_planner")
    workflow.add_edge("scene_planner", "code_generator")
    workflow.add_edge("code_generator", "code_validator")
    workflow.add_edge("code_validator", "video_renderer")
    workflow.add_edge("video_renderer", END)
    return workflow.compile()


@dataclass(frozen=True)
class PipelineResult:
    scene_plan: ScenePlan
    generated_code: str
    validation_result: ValidationResult
    video_url: str


class PipelineCoordinator:
    def __init__(
        self,
        client: GenerationClient,
        render_backend: RenderBackend,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.client = client
        self.render_backend = render_backend
        self.retry_policy = retry_policy or RetryPolicy()
        self._graph = build_graph()

    async def run(
        self,
        prompt: str,
        log_sink: LogSink,
        status_sink: StatusSink,
        artifact_sink: ArtifactSink,
    ) -> PipelineResult:
        context = PipelineContext(
            client=self.client,
            render_backend=self.render_backend,
            retry_policy=self.retry_policy,
            log_sink=log_sink,
            status_sink=status_sink,
            artifact_sink=artifact_sink,
        )
        result = await self._graph.ainvoke(
            {"prompt": prompt},
            config={"configurable": {"pipeline_context": context}},
        )
        return PipelineResult(
            scene_plan=result["scene_plan"],
            generated_code=result["generated_code"],
            validation_result=result["validation_result"],
            video_url=result["video_url"],
        )
