from __future__ import annotations

from langchain_core.runnables import RunnableConfig
from loguru import logger

from ...llm import GenerationClient, GenerationRequest
from ...models import LogEntry, ScenePlan
from ..prompts import PLANNER_SYSTEM_PROMPT
from ..retry import RetryPolicy, retry_with_policy
from ..state import JobStatus, PipelineState
from ..utils import LogSink, context_from_config, dump_artifact, parse_structured


async def plan_scenes(
    prompt: str,
    client: GenerationClient,
    on_log: LogSink,
    retry_policy: RetryPolicy = RetryPolicy(),
) -> ScenePlan:
    on_log(LogEntry.now("planner", "active", "Analyzing prompt and creating scene blueprint..."))

    async def _call() -> ScenePlan:
        response = await client.generate(
            GenerationRequest(
                system_instruction=PLANNER_SYSTEM_PROMPT,
                response_payload=prompt,
                expect_structured_output=True,
            )
        )
        return parse_structured(response.text, ScenePlan, "planner")

    try:
        plan = await retry_with_policy("scene_planner", _call, retry_policy)
    except Exception as exc:
        logger.warning("Scene planning failed: {}", exc)
        on_log(LogEntry.now("planner", "failed", f"Planning failed: {exc}"))
        raise

    on_log(
        LogEntry.now(
            "planner",
            "completed",
            f"Created plan with {len(plan.scenes)} scenes",
            data=dump_artifact(plan),
        )
    )
    return plan


async def scene_planner(state: PipelineState, config: RunnableConfig) -> PipelineState:
    ctx = context_from_config(config)
    ctx.status_sink(JobStatus.PLANNING)
    plan = await plan_scenes(state["prompt"], ctx.client, ctx.log_sink, ctx.retry_policy)
    ctx.artifact_sink("scene_plan", plan)
    return {"scene_plan": plan}
