# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Unit tests for Redis key namespacing."""

from agentflow.kernel.namespace import get_channel, get_stream_key


class TestNamespace:
    def test_channel(self):
        assert get_channel("p_001") == "agentflow:p_001:events"

    def test_stream_key(self):
        assert get_stream_key("p_001") == "agentflow:p_001:events:stream"

    def test_projects_isolated(self):
        assert get_channel("a") != get_channel("b")
