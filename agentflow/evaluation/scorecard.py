# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agent Scorecard — Aggregates test results into a 0-100 scorecard.

  overall = 0.20 completeness + 0.30 quality + 0.15 consistency
          + 0.20 guardrails   + 0.15 handoff
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from agentflow.evaluation.criteria import EvalAgentConfig
from agentflow.evaluation.harness import TestResult
from agentflow.evaluation.history import HistoryEntry, trend_of

WEIGHTS = {
    "completeness": 0.2,
    "quality": 0.3,
    "consistency": 0.15,
    "guardrails": 0.2,
    "handoff": 0.15,
}

VAGUE_WORDS = ("might", "maybe", "possibly", "somewhat", "generally")
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class Recommendation:
    priority: str  # high | medium | low
    category: str
    issue: str
    suggestion: str
    expected_impact: str


@dataclass
class ScenarioScore:
    scenario_id: str
    score: float
    failed_checks: List[str] = field(default_factory=list)


@dataclass
class AgentScorecard:
    agent_id: int
    agent_name: str
    scores: Dict[str, int]
    metrics: Dict[str, float]
    scenario_results: List[ScenarioScore]
    issues: Dict[str, List[str]]
    recommendations: List[Recommendation]
    trends: Dict[str, object]
    version: str = "current"
    evaluation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ── Sub-scores ──────────────────────────────────────────────

def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def completeness_score(results: Sequence[TestResult]) -> int:
    return round(_mean([r.scores.completeness for r in results]) * 100)


def quality_score(results: Sequence[TestResult]) -> int:
    return round(_mean([r.scores.quality for r in results]) * 100)


def consistency_score(results: Sequence[TestResult]) -> int:
    """Low spread of overall scores across scenarios means high consistency."""
    if len(results) < 2:
        return 100
    scores = [r.overall_score for r in results]
    mean = _mean(scores)
    std_dev = math.sqrt(sum((s - mean) ** 2 for s in scores) / len(scores))
    return round(max(0.0, 100 - std_dev * 200))


def guardrail_score(results: Sequence[TestResult]) -> int:
    if not results:
        return 0
    passed = sum(1 for r in results if r.scores.guardrails.passed)
    return round(passed / len(results) * 100)


def _section_share(output: str, sections: Sequence[str]) -> float:
    if not sections:
        return 1.0
    lowered = output.lower()
    return sum(1 for s in sections if s.lower() in lowered) / len(sections)


def handoff_score(results: Sequence[TestResult], config: EvalAgentConfig) -> int:
    """Mean share of required sections present (case-insensitive)."""
    return round(_mean([_section_share(r.output, config.required_sections) for r in results]) * 100)


# ── Heuristics ──────────────────────────────────────────────

def specificity(outputs: Sequence[str]) -> int:
    total = 0
    for output in outputs:
        score = min(len(re.findall(r"\d+", output)) * 2, 20)
        if "```" in output:
            score += 15
        if "example" in output:
            score += 10
        if re.search(r"[\"'][^\"']+[\"']", output):
            score += 10
        lowered = output.lower()
        score -= sum(5 for w in VAGUE_WORDS if w in lowered)
        total += max(0, min(100, score))
    return round(total / len(outputs)) if outputs else 0


def actionability(outputs: Sequence[str]) -> int:
    total = 0
    for output in outputs:
        score = 0
        if re.search(r"step \d|1\.|first,", output, re.I):
            score += 20
        if "```" in output:
            score += 25
        if re.search(r"npm |npx |git |curl |pip ", output, re.I):
            score += 15
        if re.search(r"run |execute |create |add |install ", output, re.I):
            score += 20
        if "```markdown" in output or "```yaml" in output:
            score += 20
        total += min(100, score)
    return round(total / len(outputs)) if outputs else 0


def detailed_metrics(results: Sequence[TestResult], config: EvalAgentConfig) -> Dict[str, float]:
    outputs = [r.output for r in results]
    count = len(results) or 1
    return {
        "avg_output_length": _mean([len(o) for o in outputs]),
        "section_coverage": round(_mean([_section_share(o, config.required_sections) for o in outputs]) * 100),
        "specificity": specificity(outputs),
        "actionability": actionability(outputs),
        "self_reflection": sum(1 for o in outputs if "self_reflection" in o) / count * 100,
        "guardrail_compliance": sum(1 for r in results if r.scores.guardrails.passed) / count * 100,
    }


def aggregate_issues(results: Sequence[TestResult]) -> Dict[str, List[str]]:
    buckets: Dict[str, List[str]] = {"critical": [], "major": [], "minor": []}
    for result in results:
        for issue in result.issues:
            if issue.severity in buckets:
                buckets[issue.severity].append(f"{result.scenario_id}: {issue.description}")
    return {severity: list(dict.fromkeys(items)) for severity, items in buckets.items()}


def generate_recommendations(
    scores: Dict[str, int],
    metrics: Dict[str, float],
    issues: Dict[str, List[str]],
) -> List[Recommendation]:
    recs = []
    if scores["completeness"] < 80:
        recs.append(Recommendation(
            "high", "completeness",
            f"Completeness score is {scores['completeness']}%, below target of 80%",
            "Review required sections in agent prompt and add explicit section headers",
            "+10-15% completeness score",
        ))
    if scores["guardrails"] < 100:
        recs.append(Recommendation(
            "high", "guardrails",
            f"Guardrail compliance is {scores['guardrails']}%",
            "Add stronger guardrail checks in the agent prompt and provide negative examples",
            "Reduce guardrail violations to zero",
        ))
    if metrics["specificity"] < 70:
        recs.append(Recommendation(
            "medium", "quality",
            f"Specificity score is {metrics['specificity']}%, outputs may be too vague",
            "Add instructions to always include specific numbers, examples, and concrete details",
            "+15-20% specificity score",
        ))
    if metrics["actionability"] < 70:
        recs.append(Recommendation(
            "medium", "quality",
            f"Actionability score is {metrics['actionability']}%",
            "Include more code examples, step-by-step instructions, and copy-paste templates",
            "+20% actionability score",
        ))
    if metrics["self_reflection"] < 80:
        recs.append(Recommendation(
            "low", "process",
            f"Self-reflection completion is {metrics['self_reflection']:.0f}%",
            "Make self-reflection checklist more prominent and require it before output",
            "More consistent quality across outputs",
        ))
    if issues["critical"]:
        recs.append(Recommendation(
            "high", "critical-issues",
            f"{len(issues['critical'])} critical issues found",
            f"Address: {'; '.join(issues['critical'][:3])}",
            "Eliminate blocking issues",
        ))
    # stable sort keeps insertion order within a priority
    return sorted(recs, key=lambda r: PRIORITY_ORDER[r.priority])


def _trends(overall: int, history: Sequence[HistoryEntry]) -> Dict[str, object]:
    if not history:
        return {"vs_last_version": 0, "vs_baseline": 0, "trajectory": "stable"}
    scores = [e.overall_score for e in history] + [overall]
    return {
        "vs_last_version": overall - history[-1].overall_score,
        "vs_baseline": overall - history[0].overall_score,
        "trajectory": trend_of(scores),
    }


def calculate_agent_score(
    results: Sequence[TestResult],
    config: EvalAgentConfig,
    history: Optional[Sequence[HistoryEntry]] = None,
) -> AgentScorecard:
    """
    Build a scorecard from an agent's test results.

    Args:
        history: Earlier entries of this agent, oldest first; drives trends.

    Raises:
        ValueError: No results to score.
    """
    if not results:
        raise ValueError(f"No results to score for agent {config.id}")

    scores = {
        "completeness": completeness_score(results),
        "quality": quality_score(results),
        "consistency": consistency_score(results),
        "guardrails": guardrail_score(results),
        "handoff": handoff_score(results, config),
    }
    overall = round(sum(scores[k] * w for k, w in WEIGHTS.items()))
    metrics = detailed_metrics(results, config)
    issues = aggregate_issues(results)

    return AgentScorecard(
        agent_id=config.id,
        agent_name=config.name,
        scores={"overall": overall, **scores},
        metrics=metrics,
        scenario_results=[
            ScenarioScore(
                scenario_id=r.scenario_id,
                score=r.overall_score * 100,
                failed_checks=[i.description for i in r.issues],
            )
            for r in results
        ],
        issues=issues,
        recommendations=generate_recommendations(scores, metrics, issues),
        trends=_trends(overall, history or []),
    )


# ── Report ──────────────────────────────────────────────────

def grade(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def status_icon(score: float) -> str:
    if score >= 90:
        return "🟢"
    if score >= 70:
        return "🟡"
    return "🔴"


def _signed(value: float) -> str:
    return f"+{value}" if value >= 0 else f"{value}"


def _issue_lines(items: List[str], marker: str, limit: Optional[int] = None) -> str:
    if not items:
        return "None"
    return "\n".join(f"- {marker} {i}" for i in items[:limit])


def generate_scorecard_report(card: AgentScorecard) -> str:
    """Markdown scorecard with grades, metrics, issues and trends."""
    s = card.scores
    m = card.metrics
    lines = [
        f"# Agent {card.agent_id} Scorecard: {card.agent_name}",
        "",
        f"**Evaluation Date:** {card.evaluation_date.date().isoformat()}",
        f"**Version:** {card.version}",
        "",
        f"## Overall Score: {s['overall']}/100 ({grade(s['overall'])})",
        "",
        f"{status_icon(s['overall'])} {'PASSING' if s['overall'] >= 80 else 'NEEDS IMPROVEMENT'}",
        "",
        "---",
        "",
        "## Score Breakdown",
        "",
        "| Category | Score | Grade | Status |",
        "|----------|-------|-------|--------|",
    ]
    for key in WEIGHTS:
        lines.append(f"| {key.capitalize()} | {s[key]} | {grade(s[key])} | {status_icon(s[key])} |")

    lines += [
        "",
        "---",
        "",
        "## Detailed Metrics",
        "",
        "| Metric | Value | Target |",
        "|--------|-------|--------|",
        f"| Avg Output Length | {m['avg_output_length']:.0f} chars | 2000+ |",
        f"| Section Coverage | {m['section_coverage']:.0f}% | 90%+ |",
        f"| Specificity | {m['specificity']:.0f}% | 70%+ |",
        f"| Actionability | {m['actionability']:.0f}% | 70%+ |",
        f"| Self-Reflection | {m['self_reflection']:.0f}% | 100% |",
        f"| Guardrail Compliance | {m['guardrail_compliance']:.0f}% | 100% |",
        "",
        "---",
        "",
        "## Scenario Results",
        "",
        "| Scenario | Score | Status |",
        "|----------|-------|--------|",
    ]
    for sr in card.scenario_results:
        lines.append(f"| {sr.scenario_id} | {sr.score:.0f}% | {status_icon(sr.score)} |")

    lines += [
        "",
        "---",
        "",
        "## Issues Found",
        "",
        f"### Critical ({len(card.issues['critical'])})",
        _issue_lines(card.issues["critical"], "🔴"),
        "",
        f"### Major ({len(card.issues['major'])})",
        _issue_lines(card.issues["major"], "🟠"),
        "",
        f"### Minor ({len(card.issues['minor'])})",
        _issue_lines(card.issues["minor"], "🟡", limit=5),
        "",
        "---",
        "",
        "## Recommendations",
        "",
    ]
    for rec in card.recommendations:
        lines += [
            f"### {rec.priority.upper()}: {rec.category}",
            f"**Issue:** {rec.issue}",
            f"**Suggestion:** {rec.suggestion}",
            f"**Expected Impact:** {rec.expected_impact}",
            "",
        ]

    trajectory = card.trends["trajectory"]
    arrow = {"improving": "📈", "declining": "📉"}.get(trajectory, "➡️")
    lines += [
        "---",
        "",
        "## Trend Analysis",
        "",
        "| Comparison | Change |",
        "|------------|--------|",
        f"| vs Last Version | {_signed(card.trends['vs_last_version'])}% |",
        f"| vs Baseline | {_signed(card.trends['vs_baseline'])}% |",
        f"| Trajectory | {arrow} {trajectory} |",
        "",
    ]
    return "\n".join(lines)
