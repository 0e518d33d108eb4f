# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
LLM Service — DashScope wrapper used to run agent personas.

One call = one persona system prompt + one user turn. Token usage is
returned so executions can be costed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import dashscope

from agentflow.api.errors import AgentExecutionError, LLMNotConfiguredError
from agentflow.core.config import settings
from agentflow.resilience.retry import RetryExhaustedError, RetryPolicy, retry_async

logger = logging.getLogger("agentflow.llm")

PLACEHOLDER_KEYS = {"", "your-api-key-here"}


@dataclass
class LLMResponse:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def estimate_cost(
    input_tokens: int,
    output_tokens: int,
    input_rate: Optional[float] = None,
    output_rate: Optional[float] = None,
) -> float:
    """Approximate USD cost from per-1k token rates."""
    if input_rate is None:
        input_rate = settings.LLM_INPUT_COST_PER_1K
    if output_rate is None:
        output_rate = settings.LLM_OUTPUT_COST_PER_1K
    return (input_tokens * input_rate + output_tokens * output_rate) / 1000


def _usage_value(usage: Any, key: str) -> int:
    if usage is None:
        return 0
    try:
        value = usage[key]
    except (TypeError, KeyError):
        value = getattr(usage, key, 0)
    return int(value or 0)


def _message_text(message: Any) -> str:
    try:
        content = message["content"]
    except (TypeError, KeyError):
        content = getattr(message, "content", "")
    if isinstance(content, list):
        # multi-part content: keep text parts only
        return "\n".join(
            part.get("text", "") for part in content if isinstance(part, dict) and "text" in part
        )
    return content or ""


class LLMService:
    """
    DashScope generation wrapper.

    DashScope's client is synchronous; calls run in a worker thread.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.api_key = settings.DASHSCOPE_API_KEY if api_key is None else api_key
        self.model = model or settings.DASHSCOPE_MODEL
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=settings.LLM_MAX_RETRY)

    @property
    def is_configured(self) -> bool:
        return self.api_key not in PLACEHOLDER_KEYS

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> LLMResponse:
        """
        Run one system + user exchange.

        `model` overrides the service default for this call only.

        Raises:
            LLMNotConfiguredError: No usable API key.
            AgentExecutionError: Every retry attempt failed.
        """
        if not self.is_configured:
            raise LLMNotConfiguredError()

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        model = model or self.model

        try:
            return await retry_async(
                lambda: self._async_call(messages, max_tokens, model),
                policy=self.retry_policy,
                label=f"LLM call (model={model})",
            )
        except RetryExhaustedError as e:
            raise AgentExecutionError(
                f"LLM call failed after {e.attempts} attempts: {e.last_error}",
                details={"model": model},
            ) from e.last_error

    async def _async_call(
        self, messages: List[Dict[str, str]], max_tokens: int, model: str,
    ) -> LLMResponse:
        def _sync_call() -> LLMResponse:
            response = dashscope.Generation.call(
                model=model,
                messages=messages,
                api_key=self.api_key,
                result_format="message",
                max_tokens=max_tokens,
            )
            if response.status_code != 200:
                raise RuntimeError(
                    f"DashScope error: {response.code} - {response.message}"
                )
            choices = response.output.choices or []
            text = _message_text(choices[0].message) if choices else ""
            usage = getattr(response, "usage", None)
            return LLMResponse(
                text=text,
                input_tokens=_usage_value(usage, "input_tokens"),
                output_tokens=_usage_value(usage, "output_tokens"),
            )

        return await asyncio.to_thread(_sync_call)
