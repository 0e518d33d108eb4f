# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Namespace Helper — Redis key and channel naming.

All Redis names are namespaced: agentflow:{project_id}:{resource}
"""

from __future__ import annotations

PREFIX = "agentflow"


def get_channel(project_id: str) -> str:
    """
    Build a project-scoped Pub/Sub channel name.

    Example:
        get_channel("p_001") -> "agentflow:p_001:events"
    """
    return f"{PREFIX}:{project_id}:events"


def get_stream_key(project_id: str) -> str:
    """
    Build the durable event stream key for a project.

    Example:
        get_stream_key("p_001") -> "agentflow:p_001:events:stream"
    """
    return f"{get_channel(project_id)}:stream"
