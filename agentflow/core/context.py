# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Service Context — Singleton that holds all core component references.

Initialized at startup (or by test fixtures), read by API handlers.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agentflow.agents.executor import AgentExecutor
from agentflow.kernel.bus import RedisBus
from agentflow.services.llm_service import LLMService
from agentflow.storage.repositories import Store


class ServiceContext:
    """Runtime references shared by all API handlers."""

    def __init__(
        self,
        redis: Optional[aioredis.Redis],
        session_factory: async_sessionmaker[AsyncSession],
        llm: Optional[LLMService] = None,
    ) -> None:
        self.redis = redis
        self.store = Store(session_factory)
        self.llm = llm or LLMService()
        self.executor = AgentExecutor(self.store, self.llm, redis)

    def get_bus(self, project_id: str) -> RedisBus:
        """Create a project-scoped Bus."""
        if self.redis is None:
            raise RuntimeError("Redis is not configured")
        return RedisBus(self.redis, project_id)


# ── Global singleton ────────────────────────────────────────

_ctx: Optional[ServiceContext] = None


def init_service_context(
    redis: Optional[aioredis.Redis],
    session_factory: async_sessionmaker[AsyncSession],
    llm: Optional[LLMService] = None,
) -> ServiceContext:
    global _ctx
    _ctx = ServiceContext(redis, session_factory, llm)
    return _ctx


def get_service_context() -> ServiceContext:
    if _ctx is None:
        raise RuntimeError("ServiceContext not initialized. Call init_service_context() first.")
    return _ctx
