# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
WebSocket Event Push — Live execution events for the dashboard.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from agentflow.core.context import get_service_context
from agentflow.protocols.schema import FlowEvent

router = APIRouter()
logger = logging.getLogger("agentflow.ws")


@router.websocket("/ws/projects/{project_id}")
async def project_events(websocket: WebSocket, project_id: str):
    """
    Forward every bus event of one project to the client as JSON.

    Client messages are read only to detect the disconnect.
    """
    ctx = get_service_context()
    await websocket.accept()
    if ctx.redis is None:
        await websocket.close(code=1011, reason="Event bus unavailable")
        return

    logger.info("WS connected: project=%s", project_id, extra={"project_id": project_id})
    bus = ctx.get_bus(project_id)

    async def on_bus_event(event: FlowEvent):
        await websocket.send_text(event.to_json())

    await bus.subscribe(on_bus_event)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("WS disconnected: project=%s", project_id, extra={"project_id": project_id})
    finally:
        await bus.close()
