# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
AgentFlow Event Schema.

Defines the FlowEvent model published on the project event bus and
forwarded to dashboard WebSocket clients.

  - Mandatory `project_id`: every channel is project-scoped.
  - `type` is enforced UPPERCASE to prevent silent misrouting.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class FlowEvent(BaseModel):
    """Event emitted while agents run against a project."""

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique event identifier (UUID v4)",
    )
    type: str = Field(
        ...,
        min_length=1,
        description="Event type constant — MUST be UPPERCASE",
    )
    source: str = Field(
        ...,
        min_length=1,
        description="Component that emitted the event",
    )
    project_id: str = Field(
        ...,
        min_length=1,
        description="Project the event belongs to",
    )
    execution_id: Optional[str] = Field(
        default=None,
        description="Agent execution the event refers to, if any",
    )
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: float = Field(
        default_factory=time.time,
        description="Unix timestamp of event creation",
    )
    trace_id: Optional[str] = None

    @field_validator("type")
    @classmethod
    def type_must_be_uppercase(cls, v: str) -> str:
        if v != v.upper():
            raise ValueError(
                f"Event type must be UPPERCASE, got '{v}'. "
                f"Did you mean '{v.upper()}'?"
            )
        return v

    @field_validator("id")
    @classmethod
    def id_must_be_valid_uuid(cls, v: str) -> str:
        try:
            uuid.UUID(v)
        except ValueError:
            raise ValueError(f"Event id must be a valid UUID, got '{v}'")
        return v

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> FlowEvent:
        return cls.model_validate_json(data)

    @classmethod
    def create(
        cls,
        *,
        type: str,
        source: str,
        project_id: str,
        execution_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ) -> FlowEvent:
        """Convenience factory with keyword-only arguments."""
        return cls(
            type=type,
            source=source,
            project_id=project_id,
            execution_id=execution_id,
            payload=payload or {},
            trace_id=trace_id,
        )

    def __repr__(self) -> str:
        return (
            f"FlowEvent(type={self.type!r}, source={self.source!r}, "
            f"project={self.project_id!r}, execution={self.execution_id!r})"
        )
