# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agent Catalog — Loads persona prompts from markdown files.

Each persona is a file named ``agent-{id}-{slug}.md``. The parser pulls:
  - the name from the first ``# `` heading,
  - the role from the ``## Role`` section,
  - the system prompt from the fenced block under ``## System Prompt``
    (the whole document when there is none).

An optional YAML frontmatter block may set ``handoff_artifact`` and ``model``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel

from agentflow.core.config import settings

logger = logging.getLogger("agentflow.agents.catalog")

AGENT_FILES = [
    "agent-0-orchestrator.md",
    "agent-1-problem-framer.md",
    "agent-2-competitive-mapper.md",
    "agent-3-product-manager.md",
    "agent-4-ux-designer.md",
    "agent-5-system-architect.md",
    "agent-6-engineer.md",
    "agent-7-qa-test-engineer.md",
    "agent-8-devops-deployment.md",
    "agent-9-analytics-growth.md",
]

_SYSTEM_PROMPT_RE = re.compile(r"## System Prompt\s*```[\w-]*\n?(.*?)```", re.DOTALL)
_NAME_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_ROLE_RE = re.compile(r"## Role\s+(.+?)(?=\n##|\n\n|\Z)", re.DOTALL)


class AgentConfig(BaseModel):
    id: int
    name: str
    role: str = "AI Agent"
    system_prompt: str
    file_path: str = ""
    handoff_artifact: Optional[str] = None
    model: Optional[str] = None

    def metadata(self) -> Dict[str, object]:
        return {"id": self.id, "name": self.name, "role": self.role}


# ── Parsing ──────────────────────────────────────────────────

def _split_frontmatter(content: str) -> Tuple[dict, str]:
    if not content.startswith("---"):
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    try:
        meta = yaml.safe_load(parts[1]) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse YAML frontmatter: %s", e)
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, parts[2].lstrip("\n")


def parse_agent_markdown(content: str, agent_id: int, file_path: str = "") -> AgentConfig:
    """Build an AgentConfig from the raw markdown of a persona file."""
    meta, body = _split_frontmatter(content)

    prompt_match = _SYSTEM_PROMPT_RE.search(body)
    system_prompt = prompt_match.group(1).strip() if prompt_match else body

    name_match = _NAME_RE.search(body)
    name = name_match.group(1).strip() if name_match else f"Agent {agent_id}"

    role_match = _ROLE_RE.search(body)
    role = role_match.group(1).strip() if role_match else "AI Agent"

    return AgentConfig(
        id=agent_id,
        name=name,
        role=role,
        system_prompt=system_prompt,
        file_path=file_path,
        handoff_artifact=meta.get("handoff_artifact"),
        model=meta.get("model"),
    )


# ── Loading ──────────────────────────────────────────────────

_agent_cache: Dict[Tuple[str, int], AgentConfig] = {}


def _resolve_file(agents_dir: Path, agent_id: int) -> Optional[Path]:
    path = agents_dir / AGENT_FILES[agent_id]
    if path.exists():
        return path
    # tolerate renamed slugs: agent-3-pm.md etc.
    candidates = sorted(agents_dir.glob(f"agent-{agent_id}-*.md"))
    return candidates[0] if candidates else None


def load_agent_prompt(agent_id: int, agents_dir: Optional[Path] = None) -> Optional[AgentConfig]:
    """
    Load one persona by id.

    Returns None when the id is out of range or the file is missing
    or unreadable.
    """
    if agent_id < 0 or agent_id >= len(AGENT_FILES):
        return None

    agents_dir = Path(agents_dir) if agents_dir else settings.agents_path
    cache_key = (str(agents_dir), agent_id)
    if cache_key in _agent_cache:
        return _agent_cache[cache_key]

    path = _resolve_file(agents_dir, agent_id)
    if path is None:
        logger.error("Agent file not found: %s", agents_dir / AGENT_FILES[agent_id])
        return None

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Error loading agent %d from %s: %s", agent_id, path, e)
        return None

    config = parse_agent_markdown(content, agent_id, str(path))
    _agent_cache[cache_key] = config
    return config


def load_all_agents(agents_dir: Optional[Path] = None) -> List[AgentConfig]:
    agents = []
    for agent_id in range(len(AGENT_FILES)):
        agent = load_agent_prompt(agent_id, agents_dir)
        if agent:
            agents.append(agent)
    return agents


def get_agent_metadata(agent_id: int, agents_dir: Optional[Path] = None) -> Optional[Dict[str, object]]:
    """Persona metadata without the full prompt."""
    agent = load_agent_prompt(agent_id, agents_dir)
    return agent.metadata() if agent else None


def get_all_agent_metadata(agents_dir: Optional[Path] = None) -> List[Dict[str, object]]:
    return [agent.metadata() for agent in load_all_agents(agents_dir)]


def reload_agents() -> None:
    """Clear the cache and force reload from disk."""
    _agent_cache.clear()
    logger.info("Reloaded agent personas")
