from __future__ import annotations

import asyncio
import inspect
import time

import httpx
import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient
from sqlalchemy import inspect as sa_inspect
from starlette.websockets import WebSocketDisconnect

from aidjobs.api.app import create_app
from aidjobs.api.routes import get_llm_router
from aidjobs.db.base import Base
from aidjobs.db.session import engine
from conftest import SAMPLE_JD, FakeLLM

BRIEF = "We are hiring a monitoring and evaluation officer for our nutrition programme in Mali"


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def client(llm: FakeLLM) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_llm_router] = lambda: llm
    return TestClient(app)


def _register(client: TestClient, email: str, role: str = "organization") -> dict:
    response = client.post("/api/users", json={"email": email, "display_name": "Test", "role": role})
    assert response.status_code == 200
    body = response.json()
    return {"id": body["id"], "headers": {"Authorization": f"Bearer {body['api_token']}"}}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json()["status"] == "ok"


def test_requests_without_token_are_unauthorized(client: TestClient) -> None:
    assert client.get("/api/progress").status_code == 401
    assert client.get("/api/progress", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_duplicate_email_is_a_conflict(client: TestClient) -> None:
    _register(client, "org@example.org")
    response = client.post("/api/users", json={"email": "org@example.org"})
    assert response.status_code == 409


def test_message_flow_creates_completed_draft(client: TestClient) -> None:
    user = _register(client, "org@example.org")

    response = client.post("/api/jd/messages", json={"text": BRIEF}, headers=user["headers"])

    assert response.status_code == 200
    reply = response.json()
    assert reply["kind"] == "completed"
    assert reply["content"] == SAMPLE_JD

    drafts = client.get("/api/jd/drafts", headers=user["headers"]).json()
    assert [draft["id"] for draft in drafts] == [reply["draft_id"]]
    assert drafts[0]["status"] == "completed"

    progress = client.get("/api/progress", headers=user["headers"]).json()
    assert progress["has_generated_jd"] is True


def test_clarification_is_returned_for_short_brief(client: TestClient) -> None:
    user = _register(client, "org@example.org")

    reply = client.post("/api/jd/messages", json={"text": "need a coordinator"}, headers=user["headers"]).json()

    assert reply["kind"] == "clarification"
    assert client.get("/api/jd/drafts", headers=user["headers"]).json() == []


def test_foreign_draft_is_forbidden(client: TestClient) -> None:
    owner = _register(client, "owner@example.org")
    other = _register(client, "other@example.org")
    draft_id = client.post("/api/jd/messages", json={"text": BRIEF}, headers=owner["headers"]).json()["draft_id"]

    assert client.get(f"/api/jd/drafts/{draft_id}", headers=other["headers"]).status_code == 403
    assert client.post(f"/api/jd/drafts/{draft_id}/retry", headers=other["headers"]).status_code == 403
    assert client.get("/api/jd/drafts/missing", headers=owner["headers"]).status_code == 404


def test_failed_generation_and_retry(client: TestClient, llm: FakeLLM, timeout_error) -> None:
    llm.outcomes = [timeout_error, SAMPLE_JD]
    user = _register(client, "org@example.org")

    failed = client.post("/api/jd/messages", json={"text": BRIEF}, headers=user["headers"]).json()
    assert failed["kind"] == "failed"
    assert failed["can_retry"] is True

    offer = client.get("/api/jd/retry-offer", headers=user["headers"]).json()
    assert offer["draft_id"] == failed["draft_id"]

    retried = client.post(f"/api/jd/drafts/{failed['draft_id']}/retry", headers=user["headers"]).json()
    assert retried["kind"] == "completed"
    assert retried["draft_id"] == failed["draft_id"]

    again = client.post(f"/api/jd/drafts/{failed['draft_id']}/retry", headers=user["headers"])
    assert again.status_code == 409
    assert client.get("/api/jd/retry-offer", headers=user["headers"]).json() is None


def test_upload_rejects_unsupported_file(client: TestClient) -> None:
    user = _register(client, "org@example.org")

    response = client.post(
        "/api/jd/uploads",
        files={"file": ("setup.exe", b"MZ", "application/octet-stream")},
        headers=user["headers"],
    )

    assert response.status_code == 200
    assert response.json()["kind"] == "rejected"
    assert client.get("/api/jd/drafts", headers=user["headers"]).json() == []


def test_upload_of_text_file(client: TestClient) -> None:
    user = _register(client, "org@example.org")

    response = client.post(
        "/api/jd/uploads",
        files={"file": ("jd.txt", b"Finance Officer\nManage grants.", "text/plain")},
        headers=user["headers"],
    )

    assert response.json()["kind"] == "completed"
    assert response.json()["category"] == "upload"


def test_progress_update(client: TestClient) -> None:
    user = _register(client, "candidate@example.org", role="candidate")

    response = client.put("/api/progress", json={"has_uploaded_cv": True}, headers=user["headers"])
    assert response.status_code == 200
    assert response.json()["has_uploaded_cv"] is True

    response = client.put("/api/progress", json={"has_flown": True}, headers=user["headers"])
    assert response.status_code == 422


def test_publish_and_apply(client: TestClient) -> None:
    org = _register(client, "org@example.org")
    candidate = _register(client, "candidate@example.org", role="candidate")
    draft_id = client.post("/api/jd/messages", json={"text": BRIEF}, headers=org["headers"]).json()["draft_id"]

    job = client.post("/api/jobs", json={"draft_id": draft_id, "location": "Bamako"}, headers=org["headers"])
    assert job.status_code == 200
    job_body = job.json()
    assert job_body["location"] == "Bamako"

    public = client.get(f"/api/jobs/public/{job_body['public_token']}").json()
    assert public["id"] == job_body["id"]

    applied = client.post(
        f"/api/jobs/{job_body['id']}/applications",
        json={"cover_letter": "I would love to help."},
        headers=candidate["headers"],
    )
    assert applied.status_code == 200
    duplicate = client.post(f"/api/jobs/{job_body['id']}/applications", json={}, headers=candidate["headers"])
    assert duplicate.status_code == 409

    listed = client.get(f"/api/jobs/{job_body['id']}/applications", headers=org["headers"]).json()
    assert [row["applicant_id"] for row in listed] == [candidate["id"]]
    assert client.get(f"/api/jobs/{job_body['id']}/applications", headers=candidate["headers"]).status_code == 403
    assert len(client.get("/api/applications", headers=candidate["headers"]).json()) == 1

    closed = client.post(f"/api/jobs/{job_body['id']}/close", headers=org["headers"]).json()
    assert closed["status"] == "closed"
    assert client.get("/api/jobs/public").json() == []


def test_stream_rejects_unknown_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/api/jd/stream?token=bogus"):
            pass


class SlowLLM(FakeLLM):
    def complete(self, **kwargs) -> str:
        time.sleep(1.0)
        return super().complete(**kwargs)


def test_upload_handler_runs_in_threadpool() -> None:
    app = create_app()
    upload = next(route for route in app.routes if isinstance(route, APIRoute) and route.path == "/api/jd/uploads")

    assert not inspect.iscoroutinefunction(upload.endpoint)


def test_slow_upload_does_not_block_other_requests() -> None:
    app = create_app()
    app.dependency_overrides[get_llm_router] = lambda: SlowLLM()
    user = _register(TestClient(app), "org@example.org")

    async def scenario() -> tuple[httpx.Response, httpx.Response, float]:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            upload = asyncio.create_task(
                client.post(
                    "/api/jd/uploads",
                    files={"file": ("jd.txt", b"Finance Officer\nManage grants.", "text/plain")},
                    headers=user["headers"],
                )
            )
            await asyncio.sleep(0.2)
            started = time.perf_counter()
            health = await client.get("/health")
            elapsed = time.perf_counter() - started
            return await upload, health, elapsed

    upload, health, elapsed = asyncio.run(scenario())

    assert health.status_code == 200
    assert elapsed < 0.5
    assert upload.json()["kind"] == "completed"


def test_edit_completed_draft(client: TestClient) -> None:
    user = _register(client, "org@example.org")
    draft_id = client.post("/api/jd/messages", json={"text": BRIEF}, headers=user["headers"]).json()["draft_id"]
    edited = SAMPLE_JD.replace("five years", "three years")

    response = client.patch(f"/api/jd/drafts/{draft_id}", json={"generated_text": edited}, headers=user["headers"])

    assert response.status_code == 200
    assert response.json()["generated_text"] == edited
    assert response.json()["status"] == "completed"
    stored = client.get(f"/api/jd/drafts/{draft_id}", headers=user["headers"]).json()
    assert stored["generated_text"] == edited
    assert stored["error_detail"] == ""


def test_edit_is_owner_scoped_and_completed_only(client: TestClient, llm: FakeLLM, timeout_error) -> None:
    owner = _register(client, "owner@example.org")
    other = _register(client, "other@example.org")
    completed_id = client.post("/api/jd/messages", json={"text": BRIEF}, headers=owner["headers"]).json()["draft_id"]
    llm.outcomes = [timeout_error]
    failed_id = client.post("/api/jd/messages", json={"text": BRIEF}, headers=owner["headers"]).json()["draft_id"]

    def edit(draft_id: str, text: str, headers: dict) -> int:
        return client.patch(f"/api/jd/drafts/{draft_id}", json={"generated_text": text}, headers=headers).status_code

    assert edit(completed_id, "mine now", other["headers"]) == 403
    assert edit(failed_id, "text", owner["headers"]) == 409
    assert edit(completed_id, "   ", owner["headers"]) == 422
    assert edit("missing", "text", owner["headers"]) == 404

    failed = client.get(f"/api/jd/drafts/{failed_id}", headers=owner["headers"]).json()
    assert failed["generated_text"] == ""
    assert failed["status"] == "failed"


def test_startup_creates_schema() -> None:
    Base.metadata.drop_all(bind=engine)
    assert "jd_drafts" not in sa_inspect(engine).get_table_names()

    with TestClient(create_app()) as client:
        assert client.get("/health").status_code == 200

    assert {"users", "jd_drafts", "jobs"} <= set(sa_inspect(engine).get_table_names())
