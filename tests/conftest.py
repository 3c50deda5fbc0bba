"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import replace

import pytest
from httpx import ASGITransport, AsyncClient

from backend.app.config import SETTINGS
from backend.app.main import create_app
from backend.app.pipeline import RetryPolicy
from backend.app.rendering import SimulatedRenderBackend

from .helpers import VIDEO_URL, FakeGenerationClient


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=0.0, jitter=0.0)


@pytest.fixture
def test_settings():
    return replace(SETTINGS, retry_base_delay=0.0, retry_jitter=0.0, render_step_delay=0.0)


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def render_backend() -> SimulatedRenderBackend:
    return SimulatedRenderBackend(VIDEO_URL, step_delay=0.0)


@pytest.fixture
def app(test_settings, fake_client, render_backend):
    return create_app(test_settings, client=fake_client, render_backend=render_backend)


@pytest.fixture
async def api_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    await app.state.runner.shutdown()
