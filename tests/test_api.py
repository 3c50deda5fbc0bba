from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from backend.app.job_store import JobStore
from backend.app.llm import OpenAIGenerationClient
from backend.app.main import create_app

from .helpers import VIDEO_URL, FakeGenerationClient, wait_for_terminal

PROMPT = "Animate the Pythagorean theorem with colored squares"


class UnreadableStore(JobStore):
    def list_jobs(self):
        raise RuntimeError("secret db detail")


class BlockingRenderBackend:
    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def render(self, code: str, on_progress) -> str:
        self.started.set()
        await asyncio.Event().wait()
        return "never"


@pytest.mark.anyio
async def test_create_job_returns_queued_record(api_client) -> None:
    response = await api_client.post("/api/jobs", json={"prompt": PROMPT})
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "queued"
    assert body["prompt"] == PROMPT
    for key in ["scenePlan", "generatedCode", "validationResult", "videoUrl", "errorMessage", "completedAt"]:
        assert body[key] is None
    assert body["agentLogs"] == []
    assert body["createdAt"].endswith("Z")
    await wait_for_terminal(api_client, body["id"])


@pytest.mark.anyio
async def test_job_completes_with_all_artifacts(api_client) -> None:
    created = (await api_client.post("/api/jobs", json={"prompt": PROMPT})).json()
    final = await wait_for_terminal(api_client, created["id"])

    assert final["status"] == "completed"
    assert final["videoUrl"] == VIDEO_URL
    assert final["completedAt"] is not None
    assert final["scenePlan"]["scenes"][0]["startTime"] == 0
    assert final["generatedCode"].startswith("from manim import *")
    assert final["validationResult"]["educationalScore"] == 88
    assert final["errorMessage"] is None
    agents = [log["agent"] for log in final["agentLogs"] if log["status"] == "completed"]
    assert agents == ["planner", "generator", "validator", "orchestrator"]
    planner_done = next(log for log in final["agentLogs"] if log["agent"] == "planner" and log["status"] == "completed")
    assert planner_done["data"] == final["scenePlan"]
    assert all("data" not in log for log in final["agentLogs"] if log["agent"] == "generator")


@pytest.mark.anyio
async def test_short_prompt_is_rejected_without_creating_a_job(api_client) -> None:
    before = (await api_client.get("/api/jobs")).json()
    response = await api_client.post("/api/jobs", json={"prompt": "short"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert (await api_client.get("/api/jobs")).json() == before


@pytest.mark.anyio
async def test_malformed_body_is_rejected(api_client) -> None:
    response = await api_client.post("/api/jobs", json={"topic": PROMPT})
    assert response.status_code == 400
    response = await api_client.post("/api/jobs", content=b"not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


@pytest.mark.anyio
async def test_planner_permanent_error_fails_the_job(test_settings, render_backend) -> None:
    client = FakeGenerationClient(planner=[ValueError("400 INVALID_ARGUMENT: bad request")])
    app = create_app(test_settings, client=client, render_backend=render_backend)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as api:
        created = (await api.post("/api/jobs", json={"prompt": PROMPT})).json()
        final = await wait_for_terminal(api, created["id"])

    assert final["status"] == "failed"
    assert "400 INVALID_ARGUMENT" in final["errorMessage"]
    assert final["scenePlan"] is None
    assert final["completedAt"] is not None
    assert len(client.calls_for("planner")) == 1
    assert client.calls_for("generator") == []
    assert final["agentLogs"][-1]["status"] == "failed"


@pytest.mark.anyio
async def test_missing_credential_fails_jobs_visibly(test_settings, render_backend) -> None:
    app = create_app(test_settings, client=OpenAIGenerationClient(api_key="", model="gpt-4o-mini"), render_backend=render_backend)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as api:
        created = await api.post("/api/jobs", json={"prompt": PROMPT})
        assert created.status_code == 201
        final = await wait_for_terminal(api, created.json()["id"])

    assert final["status"] == "failed"
    assert final["errorMessage"] == "OPENAI_API_KEY is not configured"
    assert final["agentLogs"][0]["agent"] == "planner"


@pytest.mark.anyio
async def test_repeated_gets_are_byte_identical(api_client) -> None:
    created = (await api_client.post("/api/jobs", json={"prompt": PROMPT})).json()
    await wait_for_terminal(api_client, created["id"])
    first = await api_client.get(f"/api/jobs/{created['id']}")
    second = await api_client.get(f"/api/jobs/{created['id']}")
    assert first.content == second.content


@pytest.mark.anyio
async def test_list_jobs_returns_every_job(api_client) -> None:
    ids = []
    for i in range(3):
        created = (await api_client.post("/api/jobs", json={"prompt": f"{PROMPT} #{i}"})).json()
        ids.append(created["id"])
    for job_id in ids:
        await wait_for_terminal(api_client, job_id)
    response = await api_client.get("/api/jobs")
    assert response.status_code == 200
    rows = response.json()
    assert {row["id"] for row in rows} == set(ids)
    created_at = [row["createdAt"] for row in rows]
    assert created_at == sorted(created_at, reverse=True)


@pytest.mark.anyio
async def test_delete_then_get_returns_404(api_client) -> None:
    created = (await api_client.post("/api/jobs", json={"prompt": PROMPT})).json()
    await wait_for_terminal(api_client, created["id"])

    response = await api_client.delete(f"/api/jobs/{created['id']}")
    assert response.status_code == 204
    assert response.content == b""
    assert (await api_client.get(f"/api/jobs/{created['id']}")).status_code == 404
    assert (await api_client.delete(f"/api/jobs/{created['id']}")).status_code == 404


@pytest.mark.anyio
async def test_unknown_job_returns_404(api_client) -> None:
    response = await api_client.get("/api/jobs/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"detail": "job not found"}
    assert (await api_client.delete("/api/jobs/does-not-exist")).status_code == 404


@pytest.mark.anyio
async def test_deleting_a_running_job_cancels_its_pipeline(test_settings) -> None:
    backend = BlockingRenderBackend()
    app = create_app(test_settings, client=FakeGenerationClient(), render_backend=backend)
    runner = app.state.runner
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as api:
        created = (await api.post("/api/jobs", json={"prompt": PROMPT})).json()
        await asyncio.wait_for(backend.started.wait(), timeout=5)
        running = (await api.get(f"/api/jobs/{created['id']}")).json()
        assert running["status"] == "rendering"
        assert running["validationResult"] is not None

        assert (await api.delete(f"/api/jobs/{created['id']}")).status_code == 204
        await runner.wait(created["id"])
        assert runner.active_jobs == []
        assert (await api.get(f"/api/jobs/{created['id']}")).status_code == 404


@pytest.mark.anyio
async def test_unexpected_error_returns_generic_500(test_settings, fake_client, render_backend) -> None:
    app = create_app(test_settings, client=fake_client, render_backend=render_backend, store=UnreadableStore())
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/jobs")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "secret" not in response.text


@pytest.mark.anyio
async def test_health(api_client) -> None:
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
