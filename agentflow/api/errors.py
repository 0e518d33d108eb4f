# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
API Error Handling — Unified error structure.

Every error leaves the service as
``{"code", "message", "trace_id", "details"}``.
"""

from __future__ import annotations

import logging
import traceback
import uuid
from typing import Any, Dict, Iterable, Optional, Sequence

from fastapi import Request
from fastapi.responses import JSONResponse

from agentflow.core.config import settings

logger = logging.getLogger("agentflow.api.errors")


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(message)


class ProjectNotFoundError(APIError):
    def __init__(self, project_id: str, trace_id: str = None):
        super().__init__(
            code="PROJECT_NOT_FOUND",
            message="Project not found",
            status_code=404,
            details={"project_id": project_id},
            trace_id=trace_id,
        )


class ArtifactNotFoundError(APIError):
    def __init__(self, artifact_id: str, trace_id: str = None):
        super().__init__(
            code="ARTIFACT_NOT_FOUND",
            message="Artifact not found",
            status_code=404,
            details={"artifact_id": artifact_id},
            trace_id=trace_id,
        )


class ExecutionNotFoundError(APIError):
    def __init__(self, execution_id: str, trace_id: str = None):
        super().__init__(
            code="EXECUTION_NOT_FOUND",
            message="Execution not found",
            status_code=404,
            details={"execution_id": execution_id},
            trace_id=trace_id,
        )


class AgentNotFoundError(APIError):
    def __init__(self, agent_id: int, trace_id: str = None):
        super().__init__(
            code="AGENT_NOT_FOUND",
            message=f"Agent {agent_id} not found",
            status_code=404,
            details={"agent_id": agent_id},
            trace_id=trace_id,
        )


class MissingFieldError(APIError):
    def __init__(self, message: str, fields: list, trace_id: str = None):
        super().__init__(
            code="MISSING_FIELD",
            message=message,
            status_code=400,
            details={"fields": fields},
            trace_id=trace_id,
        )


class InvalidFieldError(APIError):
    def __init__(self, field: str, value: Any, allowed: Optional[Iterable[str]] = None, trace_id: str = None):
        details: Dict[str, Any] = {"field": field, "value": value}
        if allowed is not None:
            details["allowed"] = list(allowed)
        super().__init__(
            code="INVALID_FIELD",
            message=f"Invalid {field}: {value!r}",
            status_code=400,
            details=details,
            trace_id=trace_id,
        )


def check_choice(field: str, value: Optional[str], allowed: Sequence[str]) -> None:
    """Reject a provided value that is not one of `allowed` (case-sensitive)."""
    if value and value not in allowed:
        raise InvalidFieldError(field, value, allowed)


class LLMNotConfiguredError(APIError):
    def __init__(self, trace_id: str = None):
        super().__init__(
            code="LLM_NOT_CONFIGURED",
            message="DASHSCOPE_API_KEY not set in environment variables",
            status_code=503,
            trace_id=trace_id,
        )


class AgentExecutionError(APIError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, trace_id: str = None):
        super().__init__(
            code="AGENT_EXECUTION_FAILED",
            message=message,
            status_code=502,
            details=details,
            trace_id=trace_id,
        )


class GitHubNotConfiguredError(APIError):
    def __init__(self, trace_id: str = None):
        super().__init__(
            code="GITHUB_NOT_CONFIGURED",
            message="GitHub credentials not configured",
            status_code=503,
            trace_id=trace_id,
        )


class GitHubAPIError(APIError):
    def __init__(self, message: str, upstream_status: Optional[int] = None, trace_id: str = None):
        status = upstream_status if upstream_status and 400 <= upstream_status < 500 else 502
        super().__init__(
            code="GITHUB_API_ERROR",
            message=message,
            status_code=status,
            details={"upstream_status": upstream_status} if upstream_status else {},
            trace_id=trace_id,
        )


def _trace_id(request: Request, exc: Optional[APIError] = None) -> str:
    return getattr(request.state, "trace_id", None) or (exc.trace_id if exc else str(uuid.uuid4()))


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Global exception handler for APIError."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "trace_id": _trace_id(request, exc),
            "details": exc.details,
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: 500 with stack trace in dev only."""
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    details: Dict[str, Any] = {}
    if settings.is_dev:
        details["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        status_code=500,
        content={
            "code": "INTERNAL_ERROR",
            "message": str(exc) or "Internal server error",
            "trace_id": _trace_id(request),
            "details": details,
        },
    )
