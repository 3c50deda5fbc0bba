from __future__ import annotations

from langchain_core.runnables import RunnableConfig
from loguru import logger

from ...models import LogEntry
from ...rendering import RenderBackend, RenderError
from ..retry import RetryPolicy, retry_with_policy
from ..state import JobStatus, PipelineState
from ..utils import LogSink, context_from_config


async def render_video(
    code: str,
    backend: RenderBackend,
    on_log: LogSink,
    retry_policy: RetryPolicy = RetryPolicy(),
) -> str:
    on_log(LogEntry.now("orchestrator", "active", "Preparing sandboxed execution environment..."))

    def _progress(message: str) -> None:
        on_log(LogEntry.now("orchestrator", "active", message))

    async def _call() -> str:
        video_url = await backend.render(code, _progress)
        if not video_url:
            raise RenderError("render backend returned no video reference")
        return video_url

    try:
        video_url = await retry_with_policy("video_renderer", _call, retry_policy)
    except Exception as exc:
        logger.warning("Rendering failed: {}", exc)
        on_log(LogEntry.now("orchestrator", "failed", f"Rendering failed: {exc}"))
        raise

    on_log(LogEntry.now("orchestrator", "completed", "Rendering complete. Video ready for download."))
    return video_url


async def video_renderer(state: PipelineState, config: RunnableConfig) -> PipelineState:
    ctx = context_from_config(config)
    ctx.status_sink(JobStatus.RENDERING)
    video_url = await render_video(state["generated_code"], ctx.render_backend, ctx.log_sink, ctx.retry_policy)
    ctx.artifact_sink("video_url", video_url)
    return {"video_url": video_url}
