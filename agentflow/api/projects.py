# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Projects API — CRUD for projects.

A project belongs to the default dashboard user, created on demand.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Response
from pydantic import BaseModel, ConfigDict

from agentflow.api.errors import MissingFieldError, ProjectNotFoundError, check_choice
from agentflow.core.context import get_service_context
from agentflow.kernel.bus import publish_safely
from agentflow.protocols.events import PROJECT_UPDATED
from agentflow.protocols.schema import FlowEvent
from agentflow.storage.models import PROJECT_STAGES, PROJECT_STATUSES

logger = logging.getLogger("agentflow.api.projects")

router = APIRouter(prefix="/api/projects", tags=["projects"])


class ProjectCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    constraints: Optional[Dict[str, Any]] = None


class ProjectUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    constraints: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    stage: Optional[str] = None


def _dump_constraints(constraints: Optional[Dict[str, Any]]) -> Optional[str]:
    return json.dumps(constraints) if constraints else None


@router.get("")
async def list_projects():
    """All projects, most recently updated first."""
    ctx = get_service_context()
    projects = await ctx.store.projects.list_all()
    return [p.to_dict() for p in projects]


@router.post("", status_code=201)
async def create_project(req: ProjectCreateRequest):
    if not req.name:
        raise MissingFieldError("Project name is required", ["name"])

    ctx = get_service_context()
    user = await ctx.store.users.get_or_create_default()
    project = await ctx.store.projects.create(
        user_id=user.id,
        name=req.name,
        description=req.description,
        constraints=_dump_constraints(req.constraints),
    )
    logger.info("Created project %s", project.id, extra={"project_id": project.id})
    return project.to_dict()


@router.get("/{project_id}")
async def get_project(project_id: str):
    """Project with its artifacts, executions and messages."""
    ctx = get_service_context()
    detail = await ctx.store.project_detail(project_id)
    if detail is None:
        raise ProjectNotFoundError(project_id)
    return detail


@router.put("/{project_id}")
async def update_project(project_id: str, req: ProjectUpdateRequest):
    check_choice("status", req.status, PROJECT_STATUSES)
    check_choice("stage", req.stage, PROJECT_STAGES)

    ctx = get_service_context()
    project = await ctx.store.projects.update(
        project_id,
        name=req.name,
        description=req.description,
        constraints=_dump_constraints(req.constraints),
        status=req.status,
        stage=req.stage,
    )
    if project is None:
        raise ProjectNotFoundError(project_id)

    await publish_safely(
        ctx.redis,
        FlowEvent.create(
            type=PROJECT_UPDATED,
            source="api",
            project_id=project_id,
            payload={"status": project.status, "stage": project.stage},
        ),
    )
    return project.to_dict()


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str):
    ctx = get_service_context()
    if not await ctx.store.projects.delete(project_id):
        raise ProjectNotFoundError(project_id)
    logger.info("Deleted project %s", project_id, extra={"project_id": project_id})
    return Response(status_code=204)
