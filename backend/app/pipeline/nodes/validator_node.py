from __future__ import annotations

from langchain_core.runnables import RunnableConfig
from loguru import logger

from ...llm import GenerationClient, GenerationRequest
from ...models import LogEntry, ScenePlan, ValidationResult
from ..prompts import VALIDATOR_SYSTEM_PROMPT, validator_payload
from ..retry import RetryPolicy, retry_with_policy
from ..state import JobStatus, PipelineState
from ..utils import LogSink, context_from_config, dump_artifact, parse_structured


async def validate_code(
    code: str,
    plan: ScenePlan,
    client: GenerationClient,
    on_log: LogSink,
    retry_policy: RetryPolicy = RetryPolicy(),
) -> ValidationResult:
    on_log(LogEntry.now("validator", "active", "Validating code for errors and best practices..."))

    async def _call() -> ValidationResult:
        response = await client.generate(
            GenerationRequest(
                system_instruction=VALIDATOR_SYSTEM_PROMPT,
                response_payload=validator_payload(code, plan),
                expect_structured_output=True,
            )
        )
        return parse_structured(response.text, ValidationResult, "validator")

    try:
        result = await retry_with_policy("code_validator", _call, retry_policy)
    except Exception as exc:
        logger.warning("Code validation failed: {}", exc)
        on_log(LogEntry.now("validator", "failed", f"Validation failed: {exc}"))
        raise

    on_log(
        LogEntry.now(
            "validator",
            "completed",
            f"Validation complete. Score: {result.educational_score}/100",
            data=dump_artifact(result),
        )
    )
    return result


async def code_validator(state: PipelineState, config: RunnableConfig) -> PipelineState:
    ctx = context_from_config(config)
    ctx.status_sink(JobStatus.VALIDATING)
    result = await validate_code(
        state["generated_code"],
        state["scene_plan"],
        ctx.client,
        ctx.log_sink,
        ctx.retry_policy,
    )
    ctx.artifact_sink("validation_result", result)
    return {"validation_result": result}
