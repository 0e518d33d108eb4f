# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
API Middleware — Trace ID propagation and request logging.
"""

from __future__ import annotations

import uuid
import time
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agentflow.core.metrics import service_metrics

logger = logging.getLogger("agentflow.api")


class TraceMiddleware(BaseHTTPMiddleware):
    """
    Generates or propagates X-Trace-Id header for every request.
    Also logs request duration.
    """

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4()))
        request.state.trace_id = trace_id

        start = time.time()
        response: Response = await call_next(request)
        elapsed = (time.time() - start) * 1000

        response.headers["X-Trace-Id"] = trace_id
        service_metrics.inc("http_requests")
        if response.status_code >= 500:
            service_metrics.inc("http_errors")
        logger.info(
            "%s %s -> %d (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
            extra={"trace_id": trace_id},
        )
        return response
