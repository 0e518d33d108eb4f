# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Shared test fixtures for all AgentFlow tests.
"""

import uuid
from typing import List, Optional

import pytest
import fakeredis.aioredis
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from agentflow.agents.catalog import reload_agents
from agentflow.core.context import init_service_context
from agentflow.core.metrics import service_metrics
from agentflow.kernel.redis_client import inject_redis_for_test
from agentflow.services.llm_service import LLMResponse
from agentflow.storage.database import (
    close_db,
    create_all_tables,
    get_session_factory,
    override_engine_for_test,
)
from agentflow.storage.repositories import Store


class FakeLLM:
    """Stands in for LLMService: returns canned text and records every call."""

    def __init__(
        self,
        text: str = "# Problem Brief\n\nDraft output.",
        input_tokens: int = 1000,
        output_tokens: int = 500,
        error: Optional[Exception] = None,
    ):
        self.text = text
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.error = error
        self.calls: List[dict] = []
        self.is_configured = True

    async def complete(self, system_prompt, user_content, max_tokens=None, model=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_content": user_content,
            "max_tokens": max_tokens,
            "model": model,
        })
        if self.error is not None:
            raise self.error
        return LLMResponse(
            text=self.text,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
        )


@pytest.fixture(autouse=True)
def reset_globals():
    """Metrics and persona cache are process-wide; start every test clean."""
    service_metrics.reset()
    reload_agents()
    yield
    service_metrics.reset()


@pytest.fixture
def mock_redis():
    """Provide a FakeRedis async instance."""
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    inject_redis_for_test(r)
    return r


@pytest.fixture
async def session_factory():
    """SQLite in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    override_engine_for_test(engine)
    await create_all_tables()
    yield get_session_factory()
    await close_db()


@pytest.fixture
def store(session_factory) -> Store:
    return Store(session_factory)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def llm_factory():
    """Build FakeLLM instances with custom text, usage or error."""
    return FakeLLM


@pytest.fixture
def service_ctx(mock_redis, session_factory, fake_llm):
    """ServiceContext wired to FakeRedis, SQLite and FakeLLM."""
    return init_service_context(mock_redis, session_factory, llm=fake_llm)


@pytest.fixture
async def client(service_ctx):
    """HTTP client against the app (lifespan is not run; service_ctx stands in)."""
    from agentflow.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def mock_project_id() -> str:
    """Provide a random project ID."""
    return str(uuid.uuid4())
