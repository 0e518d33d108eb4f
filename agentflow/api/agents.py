# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agents API — Persona catalog, workflow stages and agent execution.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from agentflow.agents.catalog import get_agent_metadata, get_all_agent_metadata
from agentflow.agents.executor import ExecuteAgentInput
from agentflow.agents.workflow import describe_stages
from agentflow.api.errors import AgentNotFoundError, ExecutionNotFoundError, MissingFieldError
from agentflow.core.context import get_service_context

router = APIRouter(prefix="/api", tags=["agents"])


class ExecuteRequest(BaseModel):
    """Request body for POST /api/projects/{id}/agents/{agentId}/execute."""
    model_config = ConfigDict(populate_by_name=True)

    user_message: Optional[str] = Field(None, alias="userMessage")
    context: Optional[Any] = None
    save_artifact: bool = Field(False, alias="saveArtifact")


@router.get("/agents")
async def list_agents():
    """Metadata of every loadable persona."""
    return get_all_agent_metadata()


@router.get("/agents/{agent_id}")
async def get_agent(agent_id: int):
    metadata = get_agent_metadata(agent_id)
    if metadata is None:
        raise AgentNotFoundError(agent_id)
    return metadata


@router.get("/workflow/stages")
async def get_workflow_stages():
    return describe_stages()


@router.post("/projects/{project_id}/agents/{agent_id}/execute")
async def execute_agent(project_id: str, agent_id: int, req: ExecuteRequest):
    """
    Run one persona against the project.

    The project's locked artifacts are passed to the persona as context.
    """
    if not req.user_message:
        raise MissingFieldError("userMessage is required", ["userMessage"])

    ctx = get_service_context()
    result = await ctx.executor.execute(
        ExecuteAgentInput(
            project_id=project_id,
            agent_id=agent_id,
            user_message=req.user_message,
            context=req.context,
            save_artifact=req.save_artifact,
        )
    )
    return result.to_dict()


@router.get("/executions/{execution_id}")
async def get_execution(execution_id: str):
    ctx = get_service_context()
    status = await ctx.executor.get_execution_status(execution_id)
    if status is None:
        raise ExecutionNotFoundError(execution_id)
    return status
