# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Tests for the agents API: catalog, stages and execution."""

import pytest

from agentflow.api.errors import LLMNotConfiguredError


async def _project(client):
    resp = await client.post("/api/projects", json={"name": "Habit Tracker"})
    return resp.json()["id"]


class TestCatalogAPI:
    @pytest.mark.asyncio
    async def test_list_agents(self, client):
        resp = await client.get("/api/agents")
        assert resp.status_code == 200
        agents = resp.json()
        assert len(agents) == 10
        assert agents[1]["name"] == "Problem Framer"
        assert "system_prompt" not in agents[1]

    @pytest.mark.asyncio
    async def test_get_agent(self, client):
        resp = await client.get("/api/agents/6")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Engineer"

    @pytest.mark.asyncio
    async def test_get_unknown_agent(self, client):
        resp = await client.get("/api/agents/42")
        assert resp.status_code == 404
        assert resp.json()["code"] == "AGENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_workflow_stages(self, client):
        resp = await client.get("/api/workflow/stages")
        assert resp.status_code == 200
        assert resp.json()[0] == {
            "stage": "DISCOVERY",
            "agents": [1, 2],
            "artifacts": ["problem-brief", "competitive-analysis"],
        }


class TestExecuteAPI:
    @pytest.mark.asyncio
    async def test_execute(self, client, fake_llm):
        project_id = await _project(client)
        resp = await client.post(
            f"/api/projects/{project_id}/agents/1/execute",
            json={"userMessage": "Frame it", "saveArtifact": True},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["output"] == fake_llm.text
        assert data["tokensUsed"] == 1500
        assert data["cost"] == pytest.approx(0.0105)
        assert data["artifacts"][0]["type"] == "problem-brief"

        status = (await client.get(f"/api/executions/{data['executionId']}")).json()
        assert status["status"] == "COMPLETED"
        assert len(status["messages"]) == 2

    @pytest.mark.asyncio
    async def test_execute_requires_message(self, client):
        project_id = await _project(client)
        resp = await client.post(f"/api/projects/{project_id}/agents/1/execute", json={})
        assert resp.status_code == 400
        assert resp.json()["message"] == "userMessage is required"

    @pytest.mark.asyncio
    async def test_execute_unknown_agent(self, client, fake_llm):
        project_id = await _project(client)
        resp = await client.post(
            f"/api/projects/{project_id}/agents/42/execute", json={"userMessage": "hi"},
        )
        assert resp.status_code == 404
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_execute_unknown_project(self, client):
        resp = await client.post("/api/projects/nope/agents/1/execute", json={"userMessage": "hi"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "PROJECT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_execute_without_api_key(self, client, service_ctx, llm_factory):
        service_ctx.executor._llm = llm_factory(error=LLMNotConfiguredError())
        project_id = await _project(client)
        resp = await client.post(
            f"/api/projects/{project_id}/agents/1/execute", json={"userMessage": "hi"},
        )
        assert resp.status_code == 503
        assert resp.json()["code"] == "LLM_NOT_CONFIGURED"

        detail = (await client.get(f"/api/projects/{project_id}")).json()
        assert detail["executions"][0]["status"] == "FAILED"

    @pytest.mark.asyncio
    async def test_get_missing_execution(self, client):
        resp = await client.get("/api/executions/nope")
        assert resp.status_code == 404
