# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Unit tests for the in-memory Metrics collector."""

from agentflow.core.metrics import Metrics


class TestMetrics:
    def test_counters(self):
        m = Metrics()
        m.inc("http_requests")
        m.inc("http_requests", 2)
        assert m.get_counter("http_requests") == 3
        assert m.get_counter("missing") == 0

    def test_gauges(self):
        m = Metrics()
        m.set_gauge("agents_loaded", 10)
        assert m.get_gauge("agents_loaded") == 10
        assert m.get_gauge("missing") == 0.0

    def test_histogram_snapshot(self):
        m = Metrics()
        for v in range(1, 101):
            m.observe("latency", float(v))
        h = m.snapshot()["histogram_latency"]
        assert h["count"] == 100
        assert h["min"] == 1
        assert h["max"] == 100
        assert h["avg"] == 50.5
        assert h["p95"] == 95

    def test_histogram_window(self):
        m = Metrics()
        for v in range(1500):
            m.observe("latency", float(v))
        assert m.snapshot()["histogram_latency"]["count"] == 1000

    def test_record_execution_success(self):
        m = Metrics()
        m.record_execution(1, 1200.0, tokens=1500, cost=0.0105)
        assert m.get_counter("agent_exec:1") == 1
        assert m.get_counter("agent_error:1") == 0
        assert m.get_counter("tokens_used") == 1500
        assert m.get_gauge("cost_total") == 0.0105
        assert "histogram_agent_latency:1" in m.snapshot()

    def test_record_execution_failure(self):
        m = Metrics()
        m.record_execution(6, 50.0, failed=True)
        assert m.get_counter("agent_exec:6") == 1
        assert m.get_counter("agent_error:6") == 1
        assert m.get_counter("tokens_used") == 0

    def test_reset(self):
        m = Metrics()
        m.inc("x")
        m.observe("y", 1.0)
        m.reset()
        snap = m.snapshot()
        assert snap["counters"] == {}
        assert "histogram_y" not in snap
