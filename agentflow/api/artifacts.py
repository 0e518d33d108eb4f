# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Artifacts API — Handoff documents of a project.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from agentflow.agents.workflow import (
    DEFAULT_VERSION,
    export_artifacts,
    is_valid_artifact_type,
    is_valid_version,
)
from agentflow.api.errors import (
    ArtifactNotFoundError,
    InvalidFieldError,
    MissingFieldError,
    ProjectNotFoundError,
    check_choice,
)
from agentflow.core.context import get_service_context
from agentflow.kernel.bus import publish_safely
from agentflow.protocols.events import ARTIFACT_UPDATED
from agentflow.protocols.schema import FlowEvent
from agentflow.storage.models import ARTIFACT_STATUSES

logger = logging.getLogger("agentflow.api.artifacts")

router = APIRouter(prefix="/api", tags=["artifacts"])


class ArtifactCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    content: Optional[str] = None
    version: Optional[str] = None
    agent_id: Optional[int] = Field(None, alias="agentId")
    status: Optional[str] = None


class ArtifactUpdateRequest(BaseModel):
    content: Optional[str] = None
    status: Optional[str] = None


class ArtifactExportRequest(BaseModel):
    directory: Optional[str] = None


async def _notify(project_id: str, artifact_id: str) -> None:
    ctx = get_service_context()
    await publish_safely(
        ctx.redis,
        FlowEvent.create(
            type=ARTIFACT_UPDATED,
            source="api",
            project_id=project_id,
            payload={"artifactId": artifact_id},
        ),
    )


@router.get("/projects/{project_id}/artifacts")
async def list_artifacts(project_id: str):
    """Artifacts of a project, most recently updated first."""
    ctx = get_service_context()
    artifacts = await ctx.store.artifacts.list_by_project(project_id)
    return [a.to_dict() for a in artifacts]


@router.post("/projects/{project_id}/artifacts", status_code=201)
async def create_artifact(project_id: str, req: ArtifactCreateRequest):
    missing = [name for name in ("type", "content") if not getattr(req, name)]
    if missing:
        raise MissingFieldError("Type and content are required", missing)
    if not is_valid_artifact_type(req.type):
        raise InvalidFieldError("type", req.type)
    if req.version and not is_valid_version(req.version):
        raise InvalidFieldError("version", req.version)
    check_choice("status", req.status, ARTIFACT_STATUSES)

    ctx = get_service_context()
    if await ctx.store.projects.get(project_id) is None:
        raise ProjectNotFoundError(project_id)

    artifact = await ctx.store.artifacts.create(
        project_id=project_id,
        type=req.type,
        content=req.content,
        version=req.version or DEFAULT_VERSION,
        status=req.status or "DRAFT",
        agent_id=req.agent_id,
    )
    await _notify(project_id, artifact.id)
    return artifact.to_dict()


@router.get("/artifacts/{artifact_id}")
async def get_artifact(artifact_id: str):
    ctx = get_service_context()
    artifact = await ctx.store.artifacts.get(artifact_id)
    if artifact is None:
        raise ArtifactNotFoundError(artifact_id)
    return artifact.to_dict()


@router.put("/artifacts/{artifact_id}")
async def update_artifact(artifact_id: str, req: ArtifactUpdateRequest):
    """Update content and/or status (e.g. DRAFT -> LOCKED)."""
    check_choice("status", req.status, ARTIFACT_STATUSES)

    ctx = get_service_context()
    artifact = await ctx.store.artifacts.update(
        artifact_id, content=req.content, status=req.status,
    )
    if artifact is None:
        raise ArtifactNotFoundError(artifact_id)
    await _notify(artifact.project_id, artifact.id)
    return artifact.to_dict()


@router.post("/projects/{project_id}/artifacts/export")
async def export_project_artifacts(project_id: str, req: ArtifactExportRequest):
    """Write every artifact as ``{type}-v{version}.md`` into a directory."""
    if not req.directory:
        raise MissingFieldError("directory is required", ["directory"])

    ctx = get_service_context()
    if await ctx.store.projects.get(project_id) is None:
        raise ProjectNotFoundError(project_id)

    artifacts = await ctx.store.artifacts.list_by_project(project_id)
    paths = export_artifacts(artifacts, Path(req.directory))
    return {"files": [str(p) for p in paths], "count": len(paths)}
