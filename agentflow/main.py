# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
AgentFlow Application Entry Point.

FastAPI app with lifespan, middleware and all API routers.
Run with: uvicorn agentflow.main:app --port 4000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentflow.agents.catalog import load_all_agents
from agentflow.api.agents import router as agents_router
from agentflow.api.artifacts import router as artifacts_router
from agentflow.api.errors import APIError, api_error_handler, unhandled_error_handler
from agentflow.api.github import router as github_router
from agentflow.api.middleware import TraceMiddleware
from agentflow.api.observability import VERSION, router as observability_router
from agentflow.api.projects import router as projects_router
from agentflow.api.ws import router as ws_router
from agentflow.core.config import settings
from agentflow.core.context import init_service_context
from agentflow.core.logging import setup_logging
from agentflow.core.metrics import service_metrics
from agentflow.kernel.redis_client import close_redis_pool, get_redis_pool
from agentflow.storage.database import close_db, create_all_tables, get_session_factory

logger = logging.getLogger("agentflow.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown of service resources."""
    # Startup
    setup_logging(settings.LOG_LEVEL)
    await create_all_tables()
    redis = await get_redis_pool()
    ctx = init_service_context(redis, get_session_factory())

    agents = load_all_agents()
    service_metrics.set_gauge("agents_loaded", len(agents))
    if not ctx.llm.is_configured:
        logger.warning("DASHSCOPE_API_KEY is not set; agent execution will fail")
    logger.info("[AgentFlow] Ready with %d agents (env=%s)", len(agents), settings.AGENTFLOW_ENV)
    yield
    # Shutdown
    await close_redis_pool()
    await close_db()
    logger.info("[AgentFlow] Shutdown complete")


app = FastAPI(
    title="AgentFlow",
    description="Agent persona workflow backend",
    version=VERSION,
    lifespan=lifespan,
)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(TraceMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Trace-Id"],
)

# ── Error Handlers ──────────────────────────────────────────
app.add_exception_handler(APIError, api_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# ── Routes ──────────────────────────────────────────────────
app.include_router(projects_router)
app.include_router(agents_router)
app.include_router(artifacts_router)
app.include_router(github_router)
app.include_router(ws_router)
app.include_router(observability_router)
