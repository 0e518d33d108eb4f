# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Repository Layer — CRUD operations for all AgentFlow tables.

Each repository takes a session factory; every method opens its own
session and commits within it, so an execution's FAILED status is
persisted even when the caller re-raises.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agentflow.storage.models import (
    User,
    Project,
    Artifact,
    AgentExecution,
    Message,
)

logger = logging.getLogger("agentflow.repository")

DEFAULT_USER_EMAIL = "default@example.com"
DEFAULT_USER_NAME = "Default User"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── User Repository ─────────────────────────────────────────

class UserRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_or_create_default(self) -> User:
        """Return the first user, creating the default one if none exists."""
        async with self._session_factory() as session:
            result = await session.execute(select(User).order_by(User.created_at).limit(1))
            user = result.scalar_one_or_none()
            if user is not None:
                return user
            user = User(email=DEFAULT_USER_EMAIL, name=DEFAULT_USER_NAME)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            logger.info("Created default user %s", user.id)
            return user


# ── Project Repository ──────────────────────────────────────

class ProjectRepository:
    UPDATABLE = ("name", "description", "constraints", "status", "stage")

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        constraints: Optional[str] = None,
    ) -> Project:
        async with self._session_factory() as session:
            project = Project(
                user_id=user_id,
                name=name,
                description=description,
                constraints=constraints,
            )
            session.add(project)
            await session.commit()
            await session.refresh(project)
            return project

    async def get(self, project_id: str) -> Optional[Project]:
        async with self._session_factory() as session:
            return await session.get(Project, project_id)

    async def list_all(self) -> List[Project]:
        """All projects, most recently updated first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Project).order_by(Project.updated_at.desc())
            )
            return list(result.scalars().all())

    async def update(self, project_id: str, **fields: Any) -> Optional[Project]:
        """
        Update only the provided, non-empty fields.

        Returns the refreshed project, or None if it does not exist.
        """
        values = {k: v for k, v in fields.items() if k in self.UPDATABLE and v}
        async with self._session_factory() as session:
            project = await session.get(Project, project_id)
            if project is None:
                return None
            for key, value in values.items():
                setattr(project, key, value)
            project.updated_at = _now()
            await session.commit()
            await session.refresh(project)
            return project

    async def touch(self, project_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Project).where(Project.id == project_id).values(updated_at=_now())
            )
            await session.commit()

    async def delete(self, project_id: str) -> bool:
        """Delete a project together with its messages, executions and artifacts."""
        async with self._session_factory() as session:
            project = await session.get(Project, project_id)
            if project is None:
                return False
            await session.execute(delete(Message).where(Message.project_id == project_id))
            await session.execute(delete(AgentExecution).where(AgentExecution.project_id == project_id))
            await session.execute(delete(Artifact).where(Artifact.project_id == project_id))
            await session.delete(project)
            await session.commit()
            return True


# ── Artifact Repository ─────────────────────────────────────

class ArtifactRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        project_id: str,
        type: str,
        content: str,
        version: str = "0.1",
        status: str = "DRAFT",
        agent_id: Optional[int] = None,
    ) -> Artifact:
        async with self._session_factory() as session:
            artifact = Artifact(
                project_id=project_id,
                agent_id=agent_id,
                type=type,
                version=version,
                content=content,
                status=status,
            )
            session.add(artifact)
            await session.commit()
            await session.refresh(artifact)
            return artifact

    async def get(self, artifact_id: str) -> Optional[Artifact]:
        async with self._session_factory() as session:
            return await session.get(Artifact, artifact_id)

    async def list_by_project(self, project_id: str) -> List[Artifact]:
        """Artifacts of a project, most recently updated first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Artifact)
                .where(Artifact.project_id == project_id)
                .order_by(Artifact.updated_at.desc())
            )
            return list(result.scalars().all())

    async def list_locked(self, project_id: str) -> List[Artifact]:
        """LOCKED artifacts of a project, oldest first (handoff context order)."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Artifact)
                .where(Artifact.project_id == project_id, Artifact.status == "LOCKED")
                .order_by(Artifact.created_at.asc())
            )
            return list(result.scalars().all())

    async def list_versions(self, project_id: str, type: str) -> List[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Artifact.version)
                .where(Artifact.project_id == project_id, Artifact.type == type)
            )
            return list(result.scalars().all())

    async def update(
        self,
        artifact_id: str,
        content: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Optional[Artifact]:
        """Update content and/or status when provided and non-empty."""
        async with self._session_factory() as session:
            artifact = await session.get(Artifact, artifact_id)
            if artifact is None:
                return None
            if content:
                artifact.content = content
            if status:
                artifact.status = status
            artifact.updated_at = _now()
            await session.commit()
            await session.refresh(artifact)
            return artifact

    async def delete(self, artifact_id: str) -> bool:
        async with self._session_factory() as session:
            artifact = await session.get(Artifact, artifact_id)
            if artifact is None:
                return False
            await session.delete(artifact)
            await session.commit()
            return True


# ── Execution Repository ────────────────────────────────────

class ExecutionRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, project_id: str, agent_id: int, input: str) -> AgentExecution:
        """Create a RUNNING execution record."""
        async with self._session_factory() as session:
            execution = AgentExecution(
                project_id=project_id,
                agent_id=agent_id,
                status="RUNNING",
                input=input,
            )
            session.add(execution)
            await session.commit()
            await session.refresh(execution)
            return execution

    async def get(self, execution_id: str) -> Optional[AgentExecution]:
        async with self._session_factory() as session:
            return await session.get(AgentExecution, execution_id)

    async def list_by_project(self, project_id: str) -> List[AgentExecution]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AgentExecution)
                .where(AgentExecution.project_id == project_id)
                .order_by(AgentExecution.created_at.asc())
            )
            return list(result.scalars().all())

    async def mark_completed(
        self,
        execution_id: str,
        output: str,
        duration: int,
        tokens_used: int,
        cost: float,
    ) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(AgentExecution)
                .where(AgentExecution.id == execution_id)
                .values(
                    status="COMPLETED",
                    output=output,
                    duration=duration,
                    tokens_used=tokens_used,
                    cost=cost,
                    completed_at=_now(),
                )
            )
            await session.commit()

    async def mark_failed(self, execution_id: str, error: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(AgentExecution)
                .where(AgentExecution.id == execution_id)
                .values(status="FAILED", error=error, completed_at=_now())
            )
            await session.commit()


# ── Message Repository ──────────────────────────────────────

class MessageRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        project_id: str,
        role: str,
        content: str,
        execution_id: Optional[str] = None,
        agent_id: Optional[int] = None,
    ) -> Message:
        async with self._session_factory() as session:
            message = Message(
                project_id=project_id,
                execution_id=execution_id,
                role=role,
                agent_id=agent_id,
                content=content,
            )
            session.add(message)
            await session.commit()
            await session.refresh(message)
            return message

    async def list_by_execution(self, execution_id: str) -> List[Message]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Message)
                .where(Message.execution_id == execution_id)
                .order_by(Message.created_at.asc())
            )
            return list(result.scalars().all())

    async def list_by_project(self, project_id: str) -> List[Message]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Message)
                .where(Message.project_id == project_id)
                .order_by(Message.created_at.asc())
            )
            return list(result.scalars().all())


# ── Aggregate ───────────────────────────────────────────────

class Store:
    """All repositories bound to one session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.users = UserRepository(session_factory)
        self.projects = ProjectRepository(session_factory)
        self.artifacts = ArtifactRepository(session_factory)
        self.executions = ExecutionRepository(session_factory)
        self.messages = MessageRepository(session_factory)

    async def project_detail(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Project with its artifacts, executions and messages (oldest first)."""
        project = await self.projects.get(project_id)
        if project is None:
            return None
        data = project.to_dict()
        data["artifacts"] = [a.to_dict() for a in await self.artifacts.list_by_project(project_id)]
        data["executions"] = [e.to_dict() for e in await self.executions.list_by_project(project_id)]
        data["messages"] = [m.to_dict() for m in await self.messages.list_by_project(project_id)]
        return data
