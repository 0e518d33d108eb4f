# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Structured Logging — JSON lines with request and agent-run context.

Context keys are passed through ``extra=``; agent 0 (the orchestrator)
is a real id, so only missing or empty values are dropped.
"""

from __future__ import annotations

import json
import logging
import sys

CONTEXT_KEYS = ("trace_id", "project_id", "execution_id", "agent_id")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with AgentFlow context keys when set."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None and val != "":
                log_entry[key] = val

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route everything through one stdout JSON handler; quiet access logs."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # request lines come from TraceMiddleware instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
