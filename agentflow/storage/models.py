# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
ORM Models — Table definitions for AgentFlow.

Tables:
  - users: Dashboard users (a default user is created on demand)
  - projects: Products being taken through the agent workflow
  - artifacts: Markdown handoff documents (problem brief, PRD, ...)
  - agent_executions: One LLM run of a persona against a project
  - messages: User requests and agent replies, per execution
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column, String, Text, Integer, Float,
    DateTime, ForeignKey, Index,
)

from agentflow.storage.database import Base

# ── Enumerations (stored as strings) ────────────────────────

PROJECT_STATUSES = ("ACTIVE", "PAUSED", "COMPLETED", "ARCHIVED")
PROJECT_STAGES = ("DISCOVERY", "DEFINITION", "IMPLEMENTATION", "LAUNCH", "ITERATION")
ARTIFACT_STATUSES = ("DRAFT", "REVIEW", "LOCKED")
EXECUTION_STATUSES = ("RUNNING", "COMPLETED", "FAILED")
MESSAGE_ROLES = ("USER", "AGENT", "SYSTEM")


def _utcnow():
    return datetime.now(timezone.utc)


def _genuuid():
    return str(uuid.uuid4())


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ── Users ───────────────────────────────────────────────────

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_genuuid)
    email = Column(String(256), nullable=False, unique=True)
    name = Column(String(256), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"


# ── Projects ────────────────────────────────────────────────

class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_genuuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    constraints = Column(Text, nullable=True)  # JSON: timeline / budget / techStack
    status = Column(String(32), nullable=False, default="ACTIVE")
    stage = Column(String(32), nullable=False, default="DISCOVERY")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "description": self.description,
            "constraints": self.constraints,
            "status": self.status,
            "stage": self.stage,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.id} {self.name!r} stage={self.stage}>"


# ── Artifacts ───────────────────────────────────────────────

class Artifact(Base):
    __tablename__ = "artifacts"

    id = Column(String(36), primary_key=True, default=_genuuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    agent_id = Column(Integer, nullable=True)
    type = Column(String(64), nullable=False)
    version = Column(String(16), nullable=False, default="0.1")
    content = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default="DRAFT")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_artifacts_project_status", "project_id", "status", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "agentId": self.agent_id,
            "type": self.type,
            "version": self.version,
            "content": self.content,
            "status": self.status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Artifact {self.type} v{self.version} {self.status}>"


# ── Agent Executions ────────────────────────────────────────

class AgentExecution(Base):
    __tablename__ = "agent_executions"

    id = Column(String(36), primary_key=True, default=_genuuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    agent_id = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="RUNNING")
    input = Column(Text, nullable=True)    # JSON: {"userMessage", "context"}
    output = Column(Text, nullable=True)   # JSON: {"text"}
    error = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)  # ms
    tokens_used = Column(Integer, nullable=True)
    cost = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_executions_project", "project_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "agentId": self.agent_id,
            "status": self.status,
            "input": self.input,
            "output": self.output,
            "error": self.error,
            "duration": self.duration,
            "tokensUsed": self.tokens_used,
            "cost": self.cost,
            "createdAt": _iso(self.created_at),
            "completedAt": _iso(self.completed_at),
        }

    def __repr__(self):
        return f"<Execution {self.id} agent={self.agent_id} {self.status}>"


# ── Messages ────────────────────────────────────────────────

class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=_genuuid)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    execution_id = Column(String(36), ForeignKey("agent_executions.id", ondelete="CASCADE"), nullable=True)
    role = Column(String(16), nullable=False)
    agent_id = Column(Integer, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_messages_project", "project_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "executionId": self.execution_id,
            "role": self.role,
            "agentId": self.agent_id,
            "content": self.content,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Message {self.role} agent={self.agent_id}>"
