# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Retry Policy — Exponential backoff for flaky upstream calls (LLM, GitHub).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger("agentflow.retry")

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    backoff_base: float = 1.0        # seconds
    backoff_multiplier: float = 2.0  # exponential factor
    max_backoff: float = 30.0        # cap

    def next_delay(self, attempt: int) -> float:
        """Delay before the attempt following `attempt` (1-based)."""
        delay = self.backoff_base * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_backoff)


DEFAULT_RETRY_POLICY = RetryPolicy()


class RetryExhaustedError(Exception):
    """Raised when every attempt of a retried call failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"failed after {attempts} attempts: {last_error}")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "call",
) -> T:
    """
    Await `fn()` until it succeeds or the policy is exhausted.

    Exceptions outside `retry_on` propagate immediately.
    """
    policy = policy or DEFAULT_RETRY_POLICY
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await fn()
        except retry_on as e:
            last_error = e
            if attempt >= policy.max_attempts:
                break
            delay = policy.next_delay(attempt)
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs",
                label, attempt, policy.max_attempts, e, delay,
            )
            await asyncio.sleep(delay)

    logger.error("%s failed after %d attempts: %s", label, policy.max_attempts, last_error)
    raise RetryExhaustedError(policy.max_attempts, last_error)
