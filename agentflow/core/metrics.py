# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Metrics — In-memory counters for agent execution observability.

Tracks per-agent execution counts, failures, latency and token spend.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any, Dict, List

HISTOGRAM_WINDOW = 1000


class Metrics:
    """Simple in-memory metrics collector."""

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = {}
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._start_time = time.time()

    # ── Primitives ──────────────────────────────────────────────

    def inc(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def set_gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def get_gauge(self, name: str) -> float:
        return self._gauges.get(name, 0.0)

    def observe(self, name: str, value: float) -> None:
        """Record an observation, keeping the most recent window only."""
        values = self._histograms[name]
        values.append(value)
        if len(values) > HISTOGRAM_WINDOW:
            del values[: len(values) - HISTOGRAM_WINDOW]

    # ── Agent executions ────────────────────────────────────────

    def record_execution(
        self,
        agent_id: int,
        duration_ms: float,
        tokens: int = 0,
        cost: float = 0.0,
        failed: bool = False,
    ) -> None:
        """Account one finished agent execution."""
        self.inc(f"agent_exec:{agent_id}")
        if failed:
            self.inc(f"agent_error:{agent_id}")
            return
        self.observe(f"agent_latency:{agent_id}", duration_ms)
        self.inc("tokens_used", tokens)
        self._gauges["cost_total"] = round(self._gauges.get("cost_total", 0.0) + cost, 6)

    # ── Export ──────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
        }
        for name, values in self._histograms.items():
            if not values:
                continue
            ordered = sorted(values)
            result[f"histogram_{name}"] = {
                "count": len(values),
                "avg": round(sum(values) / len(values), 2),
                "p95": round(ordered[int(0.95 * (len(ordered) - 1))], 2),
                "max": round(ordered[-1], 2),
                "min": round(ordered[0], 2),
            }
        return result

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()
        self._histograms.clear()
        self._start_time = time.time()


# Global singleton
service_metrics = Metrics()
