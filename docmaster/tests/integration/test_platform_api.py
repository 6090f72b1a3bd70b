from __future__ import annotations

import pytest

from docmaster.tests.utils.app import build_app, client_for
from docmaster.tests.utils.auth import login_admin, signup_and_login


@pytest.mark.asyncio
async def test_health_is_public() -> None:
    app = build_app()
    async with client_for(app) as client:
        response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_request_id_is_echoed() -> None:
    app = build_app()
    async with client_for(app) as client:
        response = await client.get("/api/health", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_query_returns_simulated_answer_and_records_activity() -> None:
    app = build_app()
    async with client_for(app) as client:
        user = await signup_and_login(client, "hugo")
        response = await client.post("/api/qa/query", json={"query": "What was revenue in Q1?"})
        assert response.status_code == 200
        assert response.json() == {
            "answer": "This is a simulated response to your query: What was revenue in Q1?",
            "sources": [
                {"documentId": 1, "title": "Annual Report 2023.pdf", "relevance": 0.92},
                {"documentId": 3, "title": "Q1 Financial Summary.xlsx", "relevance": 0.78},
            ],
        }

        activities = (await client.get("/api/activities")).json()
    assert [(a["type"], a["userId"], a["details"]) for a in activities] == [
        ("query", user["id"], '"What was revenue in Q1?" was queried')
    ]


@pytest.mark.asyncio
async def test_query_validation_and_authentication() -> None:
    app = build_app()
    async with client_for(app) as client:
        assert (await client.post("/api/qa/query", json={"query": "hi"})).status_code == 401

        await signup_and_login(client, "iris")
        for payload in ({}, {"query": ""}, {"query": "   "}):
            response = await client.post("/api/qa/query", json=payload)
            assert response.status_code == 400
            assert response.json() == {"message": "Query is required"}
    assert app.state.store.count("activities") == 0


@pytest.mark.asyncio
async def test_ops_metrics_are_admin_only() -> None:
    app = build_app()
    async with client_for(app) as admin, client_for(app) as viewer:
        await signup_and_login(viewer, "jade")
        assert (await viewer.get("/api/ops/metrics")).status_code == 403

        await login_admin(admin)
        response = await admin.get("/api/ops/metrics")
    assert response.status_code == 200
    body = response.json()
    assert body["active_sessions"] == 2
    assert body["entities"]["users"] == 2
    assert body["counters"]["auth.login.success"] == 2
    assert body["status_families"]["2xx"] >= 1
    assert body["status_families"]["4xx"] == 1


@pytest.mark.asyncio
async def test_unhandled_errors_become_generic_500() -> None:
    app = build_app()

    @app.get("/api/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    async with client_for(app) as client:
        response = await client.get("/api/boom")
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "secret" not in response.text
        # The process keeps serving after a failed request.
        assert (await client.get("/api/health")).status_code == 200


@pytest.mark.asyncio
async def test_unknown_route_uses_error_body() -> None:
    app = build_app()
    async with client_for(app) as client:
        response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
