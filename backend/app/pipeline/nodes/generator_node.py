from __future__ import annotations

from langchain_core.runnables import RunnableConfig
from loguru import logger

from ...llm import GenerationClient, GenerationRequest
from ...models import LogEntry, ScenePlan
from ..prompts import GENERATOR_SYSTEM_PROMPT, generator_payload
from ..retry import RetryPolicy, retry_with_policy
from ..state import JobStatus, PipelineState
from ..utils import LogSink, StructuredOutputError, context_from_config, strip_code_fences


async def generate_code(
    plan: ScenePlan,
    client: GenerationClient,
    on_log: LogSink,
    retry_policy: RetryPolicy = RetryPolicy(),
) -> str:
    on_log(LogEntry.now("generator", "active", "Converting scene plan to Manim Python code..."))

    async def _call() -> str:
        response = await client.generate(
            GenerationRequest(
                system_instruction=GENERATOR_SYSTEM_PROMPT,
                response_payload=generator_payload(plan),
            )
        )
        code = strip_code_fences(response.text or "")
        if not code:
            raise StructuredOutputError("Empty response from generator")
        return code

    try:
        code = await retry_with_policy("code_generator", _call, retry_policy)
    except Exception as exc:
        logger.warning("Code generation failed: {}", exc)
        on_log(LogEntry.now("generator", "failed", f"Code generation failed: {exc}"))
        raise

    line_count = len(code.split("\n"))
    on_log(LogEntry.now("generator", "completed", f"Generated {line_count} lines of Manim code"))
    return code


async def code_generator(state: PipelineState, config: RunnableConfig) -> PipelineState:
    ctx = context_from_config(config)
    ctx.status_sink(JobStatus.GENERATING)
    code = await generate_code(state["scene_plan"], ctx.client, ctx.log_sink, ctx.retry_policy)
    ctx.artifact_sink("generated_code", code)
    return {"generated_code": code}
