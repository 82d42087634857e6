"""Tests for the HTTP endpoints."""

import uuid

import httpx
import pytest

from leadcapture.core.exceptions import OracleError
from leadcapture.database import get_session
from leadcapture.main import app
from leadcapture.services.supervisor import PipelineSupervisor


@pytest.fixture
async def client(session_factory, orchestrator):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.state.orchestrator = orchestrator
    app.state.supervisor = PipelineSupervisor(orchestrator)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await app.state.supervisor.drain()
    app.dependency_overrides.clear()


async def submit(client, form, responses):
    return await client.post("/api/customers/submit", json={
        "form_id": str(form.id),
        "responses": responses,
    })


async def test_root_and_health(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Lead Capture API is running"

    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["pipelines"] == {"pending": 0, "completed": 0, "failed": 0}


async def test_submit_schedules_pipeline(client, form, sample_responses, transport):
    resp = await submit(client, form, sample_responses)
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "scheduled"
    customer_id = data["customer_id"]

    await app.state.supervisor.drain()

    resp = await client.get(f"/api/customers/{customer_id}")
    assert resp.status_code == 200
    detail = resp.json()
    assert detail["customer"]["email"] == "jane@x.com"
    assert detail["customer"]["processed"] is True
    assert detail["lead"]["classification"] == "normal"
    assert detail["lead"]["email_sent"] is True
    assert transport.get_last_email()["to"] == "jane@x.com"


async def test_submit_unknown_form(client):
    resp = await client.post("/api/customers/submit", json={
        "form_id": str(uuid.uuid4()),
        "responses": {"Email": "a@b.com"},
    })
    assert resp.status_code == 404


async def test_submit_empty_responses(client, form):
    resp = await submit(client, form, {})
    assert resp.status_code == 422


async def test_get_unknown_customer(client):
    resp = await client.get(f"/api/customers/{uuid.uuid4()}")
    assert resp.status_code == 404


async def test_list_filter_and_stats(client, form, sample_responses):
    await submit(client, form, sample_responses)
    await submit(client, form, {"Name": "Sam", "Budget": "$5k"})
    await app.state.supervisor.drain()

    resp = await client.get("/api/leads/", params={"form_id": str(form.id)})
    assert resp.status_code == 200
    page = resp.json()
    assert page["total"] == 2
    assert page["has_next"] is False

    resp = await client.get("/api/leads/", params={"classification": "hot"})
    assert resp.json()["total"] == 0

    resp = await client.get("/api/leads/", params={"classification": "lukewarm"})
    assert resp.status_code == 422

    resp = await client.get("/api/leads/stats")
    stats = resp.json()
    assert stats["total"] == 2
    assert stats["by_classification"]["normal"] == {"count": 2, "avg_confidence": 0.5}
    assert stats["by_classification"]["hot"]["count"] == 0


async def test_reclassify_lead(client, form, sample_responses, oracle):
    await submit(client, form, sample_responses)
    await app.state.supervisor.drain()
    lead_id = (await client.get("/api/leads/")).json()["items"][0]["id"]

    oracle.classification = {"confidenceScore": 0.92, "reasoning": "Budget confirmed on call."}
    resp = await client.post(f"/api/leads/{lead_id}/reclassify")
    assert resp.status_code == 200
    lead = resp.json()
    assert lead["classification"] == "hot"
    assert lead["confidence_score"] == 0.92
    assert lead["reasoning"] == "Budget confirmed on call."

    resp = await client.get(f"/api/leads/{lead_id}")
    assert resp.json()["classification"] == "hot"


async def test_reclassify_oracle_failure(client, form, sample_responses, oracle):
    await submit(client, form, sample_responses)
    await app.state.supervisor.drain()
    lead_id = (await client.get("/api/leads/")).json()["items"][0]["id"]

    oracle.error = OracleError("down")
    resp = await client.post(f"/api/leads/{lead_id}/reclassify")
    assert resp.status_code == 502


async def test_unknown_lead(client):
    resp = await client.get(f"/api/leads/{uuid.uuid4()}")
    assert resp.status_code == 404
    resp = await client.post(f"/api/leads/{uuid.uuid4()}/reclassify")
    assert resp.status_code == 404
