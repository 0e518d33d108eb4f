# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agent Executor — Runs one persona against a project.

Flow:
  1. Load the persona (unknown id -> AgentNotFoundError, nothing recorded)
  2. Check the project exists
  3. Record a RUNNING execution
  4. Build the project context: name, description, constraints and every
     LOCKED artifact, oldest first (the handoff chain)
  5. Call the LLM with the persona system prompt
  6. Persist the user request and the agent reply as messages
  7. Optionally save the reply as a DRAFT handoff artifact
  8. Mark the execution COMPLETED with tokens, cost and duration

Any failure after step 3 marks the execution FAILED, removes a draft
saved in step 7 and re-raises.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as aioredis

from agentflow.agents.catalog import load_agent_prompt
from agentflow.agents.workflow import (
    DEFAULT_VERSION,
    handoff_artifact_type,
    latest_version,
    next_version,
)
from agentflow.api.errors import AgentNotFoundError, ProjectNotFoundError
from agentflow.core.metrics import service_metrics
from agentflow.kernel.bus import publish_safely
from agentflow.protocols.events import (
    ARTIFACT_UPDATED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    EXECUTION_STARTED,
)
from agentflow.protocols.schema import FlowEvent
from agentflow.services.llm_service import LLMService, estimate_cost
from agentflow.storage.models import AgentExecution, Artifact, Project
from agentflow.storage.repositories import Store

logger = logging.getLogger("agentflow.agents.executor")

NOT_SPECIFIED = "Not specified"


@dataclass
class ExecuteAgentInput:
    project_id: str
    agent_id: int
    user_message: str
    context: Optional[Any] = None
    save_artifact: bool = False


@dataclass
class ExecuteAgentResult:
    execution_id: str
    output: str
    tokens_used: int
    cost: float
    artifacts: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executionId": self.execution_id,
            "output": self.output,
            "tokensUsed": self.tokens_used,
            "cost": self.cost,
            "artifacts": self.artifacts,
        }


def build_context_message(project: Project, artifacts: Sequence[Artifact]) -> str:
    """Render the project header and locked artifacts handed to every agent."""
    message = f"Project: {project.name}\n"

    if project.description:
        message += f"Description: {project.description}\n"

    if project.constraints:
        try:
            constraints = json.loads(project.constraints)
        except (TypeError, ValueError):
            constraints = None
        if isinstance(constraints, dict):
            message += "\nConstraints:\n"
            message += f"- Timeline: {constraints.get('timeline') or NOT_SPECIFIED}\n"
            message += f"- Budget: {constraints.get('budget') or NOT_SPECIFIED}\n"
            message += f"- Tech Stack: {constraints.get('techStack') or NOT_SPECIFIED}\n"

    if artifacts:
        message += "\n--- Previous Artifacts ---\n\n"
        for artifact in artifacts:
            message += f"## {artifact.type} ({artifact.version})\n\n"
            message += f"{artifact.content}\n\n"
            message += "---\n\n"

    return message


class AgentExecutor:
    """Executes personas and records the outcome."""

    def __init__(
        self,
        store: Store,
        llm: LLMService,
        redis: Optional[aioredis.Redis] = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._redis = redis

    async def execute(self, req: ExecuteAgentInput) -> ExecuteAgentResult:
        agent = load_agent_prompt(req.agent_id)
        if agent is None:
            raise AgentNotFoundError(req.agent_id)

        project = await self._store.projects.get(req.project_id)
        if project is None:
            raise ProjectNotFoundError(req.project_id)

        execution = await self._store.executions.create(
            project_id=req.project_id,
            agent_id=req.agent_id,
            input=json.dumps({"userMessage": req.user_message, "context": req.context}),
        )
        log_extra = {
            "project_id": req.project_id,
            "execution_id": execution.id,
            "agent_id": req.agent_id,
        }
        logger.info("Executing agent %d (%s)", req.agent_id, agent.name, extra=log_extra)
        await self._emit(EXECUTION_STARTED, execution, {"agentId": req.agent_id})

        start = time.time()
        saved: List[Dict[str, Any]] = []
        draft: Optional[Artifact] = None
        try:
            artifacts = await self._store.artifacts.list_locked(req.project_id)
            context_message = build_context_message(project, artifacts)

            response = await self._llm.complete(
                system_prompt=agent.system_prompt,
                user_content=f"{context_message}\n\nUser Request:\n{req.user_message}",
                model=agent.model,
            )
            duration = int((time.time() - start) * 1000)
            output = response.text
            tokens_used = response.total_tokens
            cost = estimate_cost(response.input_tokens, response.output_tokens)

            await self._store.messages.create(
                project_id=req.project_id,
                execution_id=execution.id,
                role="USER",
                content=req.user_message,
            )
            await self._store.messages.create(
                project_id=req.project_id,
                execution_id=execution.id,
                role="AGENT",
                agent_id=req.agent_id,
                content=output,
            )

            if req.save_artifact:
                artifact_type = agent.handoff_artifact or handoff_artifact_type(req.agent_id)
                draft = await self._save_draft(req.project_id, req.agent_id, artifact_type, output)
                saved.append(draft.to_dict())

            await self._store.executions.mark_completed(
                execution.id,
                output=json.dumps({"text": output}),
                duration=duration,
                tokens_used=tokens_used,
                cost=cost,
            )
            await self._store.projects.touch(req.project_id)
        except Exception as e:
            if draft is not None:
                # a failed run leaves no draft behind
                await self._store.artifacts.delete(draft.id)
            await self._store.executions.mark_failed(execution.id, str(e))
            service_metrics.record_execution(
                req.agent_id, (time.time() - start) * 1000, failed=True,
            )
            logger.error("Agent %d execution failed: %s", req.agent_id, e, extra=log_extra)
            await self._emit(EXECUTION_FAILED, execution, {"agentId": req.agent_id, "error": str(e)})
            raise

        service_metrics.record_execution(req.agent_id, duration, tokens=tokens_used, cost=cost)
        logger.info(
            "Agent %d completed in %dms (%d tokens, $%.4f)",
            req.agent_id, duration, tokens_used, cost, extra=log_extra,
        )
        await self._emit(
            EXECUTION_COMPLETED,
            execution,
            {"agentId": req.agent_id, "tokensUsed": tokens_used, "cost": cost},
        )
        for artifact in saved:
            await self._emit(ARTIFACT_UPDATED, execution, {"artifactId": artifact["id"]})

        return ExecuteAgentResult(
            execution_id=execution.id,
            output=output,
            tokens_used=tokens_used,
            cost=cost,
            artifacts=saved,
        )

    async def get_execution_status(self, execution_id: str) -> Optional[Dict[str, Any]]:
        """Execution record with its messages (oldest first), or None."""
        execution = await self._store.executions.get(execution_id)
        if execution is None:
            return None
        data = execution.to_dict()
        messages = await self._store.messages.list_by_execution(execution_id)
        data["messages"] = [m.to_dict() for m in messages]
        return data

    # ── Internal ──────────────────────────────────────────────

    async def _save_draft(self, project_id: str, agent_id: int, type: str, content: str) -> Artifact:
        existing = await self._store.artifacts.list_versions(project_id, type)
        current = latest_version(existing)
        version = next_version(current) if current else DEFAULT_VERSION
        return await self._store.artifacts.create(
            project_id=project_id,
            type=type,
            content=content,
            version=version,
            status="DRAFT",
            agent_id=agent_id,
        )

    async def _emit(self, type: str, execution: AgentExecution, payload: Dict[str, Any]) -> None:
        event = FlowEvent.create(
            type=type,
            source="executor",
            project_id=execution.project_id,
            execution_id=execution.id,
            payload=payload,
        )
        await publish_safely(self._redis, event)
