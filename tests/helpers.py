"""Scripted collaborators and payloads shared by the test modules."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from httpx import AsyncClient

from backend.app.llm import GenerationRequest, GenerationResponse
from backend.app.pipeline.prompts import GENERATOR_SYSTEM_PROMPT, PLANNER_SYSTEM_PROMPT, VALIDATOR_SYSTEM_PROMPT

VIDEO_URL = "https://videos.example.test/pythagoras.mp4"

PLAN_PAYLOAD: dict[str, Any] = {
    "title": "The Pythagorean Theorem",
    "description": "Squares on the sides of a right triangle",
    "duration": 12,
    "scenes": [
        {
            "name": "Triangle",
            "description": "Draw a right triangle",
            "startTime": 0,
            "endTime": 4,
            "elements": [{"type": "shape", "description": "right triangle", "properties": {"color": "BLUE"}}],
            "animations": [{"type": "Create", "target": "triangle", "duration": 1, "description": "draw it"}],
        },
        {
            "name": "Squares",
            "description": "Grow a colored square on each side",
            "startTime": 4,
            "endTime": 12,
            "elements": [{"type": "shape", "description": "three squares"}],
            "animations": [{"type": "FadeIn", "target": "squares", "duration": 2, "description": "fade in"}],
        },
    ],
}

CODE_RESPONSE = (
    "```python\n"
    "from manim import *\n"
    "\n"
    "class PythagoreanScene(Scene):\n"
    "    def construct(self):\n"
    "        triangle = Polygon(ORIGIN, RIGHT * 3, UP * 4)\n"
    "        self.play(Create(triangle))\n"
    "        self.wait(1)\n"
    "```"
)

VALIDATION_PAYLOAD: dict[str, Any] = {
    "isValid": True,
    "errors": [{"line": 6, "message": "Consider labelling the sides", "severity": "info"}],
    "suggestions": ["Show a² + b² = c² at the end"],
    "educationalScore": 88,
}

STAGE_BY_INSTRUCTION = {
    PLANNER_SYSTEM_PROMPT: "planner",
    GENERATOR_SYSTEM_PROMPT: "generator",
    VALIDATOR_SYSTEM_PROMPT: "validator",
}


class FakeGenerationClient:
    """Scripted generation client.

    Each stage has a list of outcomes (response text or an exception to raise).
    Outcomes are consumed in order and the last one repeats.
    """

    def __init__(self, **scripts: list[Any]) -> None:
        self.scripts: dict[str, list[Any]] = {
            "planner": [json.dumps(PLAN_PAYLOAD)],
            "generator": [CODE_RESPONSE],
            "validator": [json.dumps(VALIDATION_PAYLOAD)],
        }
        self.scripts.update(scripts)
        self.calls: list[GenerationRequest] = []

    def calls_for(self, stage: str) -> list[GenerationRequest]:
        return [c for c in self.calls if STAGE_BY_INSTRUCTION[c.system_instruction] == stage]

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.calls.append(request)
        await asyncio.sleep(0)
        script = self.scripts[STAGE_BY_INSTRUCTION[request.system_instruction]]
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return GenerationResponse(text=outcome)


class FailingRenderBackend:
    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def render(self, code: str, on_progress) -> str:
        self.calls += 1
        on_progress("Executing Manim script in sandbox...")
        raise self.error


async def wait_for_terminal(client: AsyncClient, job_id: str, attempts: int = 500) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for _ in range(attempts):
        response = await client.get(f"/api/jobs/{job_id}")
        assert response.status_code == 200
        body = response.json()
        if body["status"] in {"completed", "failed"}:
            return body
        await asyncio.sleep(0.01)
    raise AssertionError(f"job {job_id} never finished; last status {body.get('status')}")
