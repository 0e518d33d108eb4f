# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Score History — ``history.json`` of saved evaluation runs.

File layout::

    {"entries": [{"agentId": 1, "date": "2026-01-31", "version": "current",
                  "overallScore": 82, "passRate": 100}, ...]}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger("agentflow.evaluation.history")

HISTORY_FILE = "history.json"
COMPARE_WINDOW = 10
TREND_WINDOW = 3
SUMMARY_WINDOW = 20


class HistoryEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    agent_id: int
    date: str
    version: str = "current"
    overall_score: float
    pass_rate: float


class TestHistory(BaseModel):
    __test__ = False

    entries: List[HistoryEntry] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "TestHistory":
        path = Path(path)
        if not path.exists():
            return cls()
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(self.model_dump(mode="json", by_alias=True), indent=2),
            encoding="utf-8",
        )
        logger.debug("Saved %d history entries to %s", len(self.entries), path)

    def add(
        self,
        agent_id: int,
        overall_score: float,
        pass_rate: float,
        version: str = "current",
        date: Optional[str] = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            agent_id=agent_id,
            date=date or datetime.now().date().isoformat(),
            version=version,
            overall_score=overall_score,
            pass_rate=pass_rate,
        )
        self.entries.append(entry)
        return entry

    def for_agent(self, agent_id: int) -> List[HistoryEntry]:
        return [e for e in self.entries if e.agent_id == agent_id]


def trend_of(scores: Sequence[float]) -> str:
    """Mean of the last three scores against the three before them."""
    recent = list(scores[-TREND_WINDOW:])
    if not recent:
        return "stable"
    older = list(scores[-2 * TREND_WINDOW:-TREND_WINDOW])
    avg_recent = sum(recent) / len(recent)
    avg_older = sum(older) / len(older) if older else avg_recent
    if avg_recent > avg_older:
        return "improving"
    if avg_recent < avg_older:
        return "declining"
    return "stable"


@dataclass
class ComparisonRow:
    date: str
    version: str
    overall_score: float
    pass_rate: float
    change: float


def compare_versions(history: TestHistory, agent_id: int) -> Optional[Dict[str, Any]]:
    """
    Last ten runs of an agent with score deltas, plus the trend.

    Returns None when fewer than two runs were saved.
    """
    entries = history.for_agent(agent_id)
    if len(entries) < 2:
        return None

    start = max(0, len(entries) - COMPARE_WINDOW)
    rows = []
    for i in range(start, len(entries)):
        entry = entries[i]
        change = entry.overall_score - entries[i - 1].overall_score if i > 0 else 0
        rows.append(ComparisonRow(
            date=entry.date,
            version=entry.version,
            overall_score=entry.overall_score,
            pass_rate=entry.pass_rate,
            change=change,
        ))
    return {"rows": rows, "trend": trend_of([e.overall_score for e in entries])}


def summary_report(scenario_files: Sequence[Dict[str, Any]], history: TestHistory) -> str:
    """Coverage of agents with scenario files and their latest scores."""
    lines = [
        "=" * 60,
        "           AGENT TESTING SUMMARY REPORT",
        "=" * 60,
        f"Generated: {datetime.now().isoformat()}",
        "",
        "Agent Coverage",
        "-" * 40,
    ]
    total_scenarios = 0
    total_edge_cases = 0
    for data in scenario_files:
        agent_id = data.get("agentId")
        scenarios = data.get("scenarios", [])
        edge_cases = sum(len(s.get("edgeCases", [])) for s in scenarios)
        total_scenarios += len(scenarios)
        total_edge_cases += edge_cases

        agent_history = history.for_agent(agent_id)
        latest = agent_history[-1].overall_score if agent_history else "N/A"
        lines.append(
            f"  Agent {agent_id}: {str(data.get('agentName', '')):<25} "
            f"{len(scenarios)} scenarios, {edge_cases} edge cases | Latest: {latest}%"
        )

    recent = history.entries[-SUMMARY_WINDOW:]
    avg = round(sum(e.overall_score for e in recent) / len(recent)) if recent else "N/A"
    lines += [
        "",
        "-" * 40,
        f"Total Agents with Tests: {len(scenario_files)}",
        f"Total Scenarios: {total_scenarios}",
        f"Total Edge Cases: {total_edge_cases}",
        f"Average Score (last {SUMMARY_WINDOW} runs): {avg}%",
    ]
    return "\n".join(lines)
