# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Observability API — Health check, metrics, event replay.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from agentflow.core.context import get_service_context
from agentflow.core.metrics import service_metrics

VERSION = "0.1.0"

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "metrics": service_metrics.snapshot(),
    }


@router.get("/api/metrics")
async def get_metrics():
    """Return current service metrics."""
    return service_metrics.snapshot()


@router.get("/api/projects/{project_id}/events")
async def get_project_events(project_id: str, since: str = "0-0", limit: int = 100):
    """Replay past execution events of a project, oldest first."""
    ctx = get_service_context()
    if ctx.redis is None:
        events = []
    else:
        events = await ctx.get_bus(project_id).read_stream(last_id=since, count=limit)
    return {
        "project_id": project_id,
        "events": [e.model_dump(mode="json") for e in events],
        "count": len(events),
    }
