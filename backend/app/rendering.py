from __future__ import annotations

import asyncio
import re
from typing import Any, Callable, Protocol

import requests
from loguru import logger

from .config import Settings

ProgressCallback = Callable[[str], None]

SCENE_CLASS_RE = re.compile(r"^class\s+(\w+)\s*\(([^)]*)\)\s*:", re.MULTILINE)


class RenderError(RuntimeError):
    pass


class RenderBackend(Protocol):
    async def render(self, code: str, on_progress: ProgressCallback) -> str: ...


def detect_scene_class(code: str) -> str:
    for match in SCENE_CLASS_RE.finditer(code):
        name, bases = match.group(1), match.group(2)
        if "Scene" in bases:
            return name
    raise RenderError("no Scene subclass found in generated code")


class SimulatedRenderBackend:
    def __init__(self, video_url: str, step_delay: float = 1.5) -> None:
        self.video_url = video_url
        self.step_delay = step_delay

    async def render(self, code: str, on_progress: ProgressCallback) -> str:
        await asyncio.sleep(self.step_delay)
        on_progress("Executing Manim script in sandbox...")
        await asyncio.sleep(self.step_delay)
        return self.video_url


class GenerativeManimRenderBackend:
    def __init__(self, api_url: str, timeout: float = 300.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def check_health(self) -> tuple[bool, str]:
        try:
            response = requests.get(f"{self.api_url}/health", timeout=5)
        except requests.RequestException as exc:
            return False, str(exc)
        if response.status_code != 200:
            return False, f"HTTP {response.status_code}"
        return True, "reachable"

    def _post_render(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = requests.post(
            f"{self.api_url}/v1/video/rendering",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def render(self, code: str, on_progress: ProgressCallback) -> str:
        class_name = detect_scene_class(code)
        payload = {
            "code": code,
            "file_name": f"scene_{class_name.lower()}",
            "file_class": class_name,
            "stream": False,
        }
        on_progress(f"Rendering {class_name} via render API...")
        logger.info("Posting {} to {}", class_name, self.api_url)
        data = await asyncio.to_thread(self._post_render, payload)
        video_url = data.get("video_url") or data.get("video_path")
        if not video_url:
            raise RenderError(f"render API returned no video reference for {class_name}")
        return str(video_url)


def build_render_backend(settings: Settings) -> RenderBackend:
    if settings.render_backend == "generative_manim":
        return GenerativeManimRenderBackend(settings.render_api_url, timeout=settings.render_timeout)
    if settings.render_backend != "simulated":
        logger.warning("Unknown RENDER_BACKEND '{}'; using the simulated renderer.", settings.render_backend)
    return SimulatedRenderBackend(settings.sample_video_url, step_delay=settings.render_step_delay)
