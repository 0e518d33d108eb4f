# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Workflow Conventions — stages, handoff artifacts and artifact file names.

The workflow is sequential: Discovery (agents 1-2), Definition (3-5),
Implementation (6-7), Launch (8-9). Agent 0 orchestrates every stage.
Each persona hands off one markdown artifact, saved as
``{type}-v{version}.md`` (e.g. ``problem-brief-v0.1.md``).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from agentflow.api.errors import InvalidFieldError
from agentflow.storage.models import Artifact

logger = logging.getLogger("agentflow.agents.workflow")

ORCHESTRATOR_ID = 0

STAGES: Dict[str, List[int]] = {
    "DISCOVERY": [1, 2],
    "DEFINITION": [3, 4, 5],
    "IMPLEMENTATION": [6, 7],
    "LAUNCH": [8, 9],
}

HANDOFF_ARTIFACTS: Dict[int, str] = {
    0: "orchestration-plan",
    1: "problem-brief",
    2: "competitive-analysis",
    3: "prd",
    4: "ux-flows",
    5: "architecture",
    6: "code",
    7: "test-plan",
    8: "deployment-plan",
    9: "analytics-plan",
}

DEFAULT_VERSION = "0.1"

ARTIFACT_TYPE_RE = re.compile(r"[a-z0-9][a-z0-9-]*")
VERSION_RE = re.compile(r"\d+(\.\d+)*")


def stage_for_agent(agent_id: int) -> Optional[str]:
    """Stage an agent belongs to; None for the orchestrator or unknown ids."""
    for stage, agents in STAGES.items():
        if agent_id in agents:
            return stage
    return None


def handoff_artifact_type(agent_id: int) -> str:
    return HANDOFF_ARTIFACTS.get(agent_id, f"agent-{agent_id}-output")


def describe_stages() -> List[Dict[str, object]]:
    return [
        {
            "stage": stage,
            "agents": agents,
            "artifacts": [HANDOFF_ARTIFACTS[a] for a in agents],
        }
        for stage, agents in STAGES.items()
    ]


# ── Versions & file names ────────────────────────────────────

def _version_key(version: str) -> tuple:
    parts = []
    for piece in version.split("."):
        try:
            parts.append(int(piece))
        except ValueError:
            parts.append(0)
    return tuple(parts)


def next_version(version: str) -> str:
    """Bump the minor part: 0.1 -> 0.2, 1.9 -> 1.10."""
    major, _, minor = version.partition(".")
    try:
        return f"{int(major)}.{int(minor or 0) + 1}"
    except ValueError:
        return DEFAULT_VERSION


def latest_version(versions: Iterable[str]) -> Optional[str]:
    versions = list(versions)
    if not versions:
        return None
    return max(versions, key=_version_key)


def is_valid_artifact_type(type: str) -> bool:
    """Lowercase slug: letters, digits and dashes."""
    return bool(type) and ARTIFACT_TYPE_RE.fullmatch(type) is not None


def is_valid_version(version: str) -> bool:
    return bool(version) and VERSION_RE.fullmatch(version) is not None


def artifact_filename(type: str, version: str) -> str:
    return f"{type}-v{version}.md"


def export_artifacts(artifacts: Iterable[Artifact], directory: Path) -> List[Path]:
    """
    Write artifacts to `directory` as convention-named markdown files.

    Every target is checked before anything is written; a name that would
    land outside `directory` raises InvalidFieldError.
    """
    directory = Path(directory)
    root = directory.resolve()
    targets = []
    for artifact in artifacts:
        path = directory / artifact_filename(artifact.type, artifact.version)
        if path.resolve().parent != root:
            logger.warning("Refusing to export %s outside %s", path, directory)
            raise InvalidFieldError("type", artifact.type)
        targets.append((path, artifact))

    directory.mkdir(parents=True, exist_ok=True)
    for path, artifact in targets:
        path.write_text(artifact.content or "", encoding="utf-8")
    logger.info("Exported %d artifacts to %s", len(targets), directory)
    return [path for path, _ in targets]
