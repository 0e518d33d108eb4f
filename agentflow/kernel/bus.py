# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Redis Event Bus — Project-scoped execution events.

Every publish goes to the project's Pub/Sub channel (live dashboard
clients) and is appended to the project's Redis Stream (replay).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, List, Optional

import redis.asyncio as aioredis

from agentflow.kernel.namespace import get_channel, get_stream_key
from agentflow.protocols.schema import FlowEvent

logger = logging.getLogger("agentflow.bus")

STREAM_MAXLEN = 1000


class RedisBus:
    """
    Project-scoped Redis Pub/Sub event bus.

    Each RedisBus instance is bound to a single project_id.
    """

    def __init__(self, redis: aioredis.Redis, project_id: str) -> None:
        self._redis = redis
        self._project_id = project_id
        self._channel = get_channel(project_id)
        self._stream_key = get_stream_key(project_id)
        self._subscribers: List[asyncio.Task] = []
        self._pubsub: Optional[aioredis.client.PubSub] = None

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def channel(self) -> str:
        return self._channel

    # ── Publish ─────────────────────────────────────────────────

    async def publish(self, event: FlowEvent) -> int:
        """
        Publish an event to the project channel and its stream.

        Returns the number of live subscribers that received it.
        """
        if event.project_id != self._project_id:
            raise ValueError(
                f"Event project_id '{event.project_id}' does not match "
                f"bus project_id '{self._project_id}'"
            )
        payload = event.to_json()
        await self._redis.xadd(
            self._stream_key, {"data": payload}, maxlen=STREAM_MAXLEN, approximate=True,
        )
        count = await self._redis.publish(self._channel, payload)
        logger.debug("Published %s to %s (%d receivers)", event.type, self._channel, count)
        return count

    # ── Subscribe ───────────────────────────────────────────────

    async def subscribe(
        self,
        handler: Callable[[FlowEvent], Coroutine[Any, Any, None]],
        event_filter: Optional[str] = None,
    ) -> aioredis.client.PubSub:
        """
        Subscribe to the project channel and dispatch events to handler.

        Args:
            handler: Async callable invoked for each received FlowEvent.
            event_filter: If set, only events with this type are dispatched.
        """
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        self._pubsub = pubsub

        async def _listener():
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = FlowEvent.from_json(message["data"])
                    if event_filter and event.type != event_filter:
                        continue
                    await handler(event)
                except Exception as exc:
                    logger.error("Bus handler error: %s", exc)

        task = asyncio.create_task(_listener())
        self._subscribers.append(task)
        return pubsub

    # ── Replay ──────────────────────────────────────────────────

    async def read_stream(self, last_id: str = "0-0", count: int = 100) -> List[FlowEvent]:
        """Read past events for the project in publish order."""
        entries = await self._redis.xrange(self._stream_key, min=last_id, count=count)
        return [FlowEvent.from_json(fields["data"]) for _entry_id, fields in entries]

    # ── Cleanup ─────────────────────────────────────────────────

    async def close(self) -> None:
        """Unsubscribe and cancel all listener tasks."""
        for task in self._subscribers:
            task.cancel()
        self._subscribers.clear()
        if self._pubsub:
            await self._pubsub.unsubscribe(self._channel)
            await self._pubsub.aclose()
            self._pubsub = None


async def publish_safely(redis: Optional[aioredis.Redis], event: FlowEvent) -> None:
    """Publish without letting bus failures leak into the caller."""
    if redis is None:
        return
    try:
        await RedisBus(redis, event.project_id).publish(event)
    except Exception as exc:
        logger.warning("Failed to publish %s for project %s: %s", event.type, event.project_id, exc)
