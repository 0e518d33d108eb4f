# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Tests for health, metrics, event replay, trace ids and error handlers."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from agentflow.core.context import init_service_context
from agentflow.kernel.bus import RedisBus
from agentflow.protocols.events import EXECUTION_STARTED
from agentflow.protocols.schema import FlowEvent


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data
        assert "counters" in data["metrics"]

    @pytest.mark.asyncio
    async def test_metrics_count_requests(self, client):
        await client.get("/health")
        resp = await client.get("/api/metrics")
        assert resp.json()["counters"]["http_requests"] >= 1


class TestTraceId:
    @pytest.mark.asyncio
    async def test_generated(self, client):
        resp = await client.get("/health")
        assert resp.headers["X-Trace-Id"]

    @pytest.mark.asyncio
    async def test_propagated_into_errors(self, client):
        resp = await client.get("/api/projects/missing", headers={"X-Trace-Id": "trace-123"})
        assert resp.status_code == 404
        assert resp.headers["X-Trace-Id"] == "trace-123"
        body = resp.json()
        assert body["code"] == "PROJECT_NOT_FOUND"
        assert body["message"] == "Project not found"
        assert body["trace_id"] == "trace-123"


class TestUnhandledErrors:
    @pytest.mark.asyncio
    async def test_500_envelope(self, client, service_ctx, monkeypatch):
        async def boom():
            raise RuntimeError("database exploded")

        monkeypatch.setattr(service_ctx.store.projects, "list_all", boom)
        resp = await client.get("/api/projects")
        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert body["message"] == "database exploded"
        assert "stack" in body["details"]


class TestEventReplay:
    @pytest.mark.asyncio
    async def test_replay(self, client, mock_redis, mock_project_id):
        bus = RedisBus(mock_redis, mock_project_id)
        for i in range(3):
            await bus.publish(FlowEvent.create(
                type=EXECUTION_STARTED, source="test", project_id=mock_project_id, payload={"n": i},
            ))

        resp = await client.get(f"/api/projects/{mock_project_id}/events", params={"limit": 2})
        data = resp.json()
        assert data["project_id"] == mock_project_id
        assert data["count"] == 2
        assert [e["payload"]["n"] for e in data["events"]] == [0, 1]

    @pytest.mark.asyncio
    async def test_replay_empty(self, client, mock_project_id):
        resp = await client.get(f"/api/projects/{mock_project_id}/events")
        assert resp.json()["count"] == 0


class TestWebSocket:
    def test_closes_without_event_bus(self, fake_llm):
        from agentflow.main import app

        init_service_context(None, None, llm=fake_llm)
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with TestClient(app).websocket_connect("/ws/projects/p_001") as ws:
                ws.receive_text()
        assert exc_info.value.code == 1011
