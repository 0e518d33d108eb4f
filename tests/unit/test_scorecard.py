# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Unit tests for agent scorecards."""

import pytest

from agentflow.evaluation.criteria import PROBLEM_FRAMER
from agentflow.evaluation.harness import GuardrailResult, Issue, Scores, TestResult
from agentflow.evaluation.history import HistoryEntry
from agentflow.evaluation.scorecard import (
    actionability,
    aggregate_issues,
    calculate_agent_score,
    consistency_score,
    generate_scorecard_report,
    grade,
    guardrail_score,
    handoff_score,
    specificity,
    status_icon,
)
from eval_samples import GOOD_BRIEF


def _result(scenario_id="s1", overall=1.0, passed=True, output=GOOD_BRIEF, issues=None,
            completeness=1.0, quality=1.0):
    return TestResult(
        scenario_id=scenario_id,
        agent_id=1,
        scores=Scores(
            completeness=completeness,
            quality=quality,
            guardrails=GuardrailResult(passed=passed, violations=[] if passed else ["x"]),
        ),
        overall_score=overall,
        output=output,
        issues=issues or [],
    )


def _history(*scores):
    return [HistoryEntry(agent_id=1, date="2026-01-01", overall_score=s, pass_rate=100) for s in scores]


class TestSubScores:
    def test_consistency_single_result(self):
        assert consistency_score([_result()]) == 100

    def test_consistency_spread(self):
        assert consistency_score([_result(overall=1.0), _result(overall=0.5)]) == 50

    def test_guardrail_score(self):
        assert guardrail_score([_result(), _result(passed=False)]) == 50
        assert guardrail_score([]) == 0

    def test_handoff_counts_sections_case_insensitive(self):
        output = "discovery notes and FRAMING"
        assert handoff_score([_result(output=output)], PROBLEM_FRAMER) == 67


class TestHeuristics:
    def test_specificity(self):
        assert specificity(["We might do it"]) == 0
        assert specificity(['```\ncode\n``` example "x" 1 2']) == 39
        assert specificity([]) == 0

    def test_actionability(self):
        assert actionability(["Step 1: run pip install agentflow"]) == 55
        assert actionability(["```yaml\nkey: value\n```"]) == 45


class TestAggregateIssues:
    def test_prefixed_and_deduplicated(self):
        issue = Issue(severity="critical", category="guardrail", description="Guardrail violation: x")
        results = [_result("a", issues=[issue, issue]), _result("b", issues=[issue])]
        buckets = aggregate_issues(results)
        assert buckets["critical"] == ["a: Guardrail violation: x", "b: Guardrail violation: x"]
        assert buckets["major"] == []


class TestCalculateAgentScore:
    def test_empty_results(self):
        with pytest.raises(ValueError):
            calculate_agent_score([], PROBLEM_FRAMER)

    def test_perfect_results(self):
        card = calculate_agent_score([_result("a"), _result("b")], PROBLEM_FRAMER)
        assert card.scores == {
            "overall": 100,
            "completeness": 100,
            "quality": 100,
            "consistency": 100,
            "guardrails": 100,
            "handoff": 100,
        }
        assert card.agent_name == "Problem Framer"
        assert [s.scenario_id for s in card.scenario_results] == ["a", "b"]
        assert card.metrics["guardrail_compliance"] == 100
        assert card.trends == {"vs_last_version": 0, "vs_baseline": 0, "trajectory": "stable"}

    def test_recommendations_sorted_by_priority(self):
        card = calculate_agent_score(
            [_result(completeness=0.5, passed=False, output="short")], PROBLEM_FRAMER,
        )
        priorities = [r.priority for r in card.recommendations]
        assert priorities[0] == "high"
        assert priorities == sorted(priorities, key=["high", "medium", "low"].index)
        assert {"completeness", "guardrails"} <= {r.category for r in card.recommendations}

    def test_trends_against_history(self):
        card = calculate_agent_score([_result()], PROBLEM_FRAMER, _history(50, 50, 50, 60, 70))
        assert card.trends["vs_last_version"] == 30
        assert card.trends["vs_baseline"] == 50
        assert card.trends["trajectory"] == "improving"


class TestReport:
    def test_grades(self):
        assert [grade(s) for s in (95, 85, 75, 65, 10)] == ["A", "B", "C", "D", "F"]
        assert status_icon(90) == "🟢"
        assert status_icon(70) == "🟡"
        assert status_icon(69) == "🔴"

    def test_report_sections(self):
        card = calculate_agent_score([_result()], PROBLEM_FRAMER, _history(70))
        report = generate_scorecard_report(card)
        assert report.startswith("# Agent 1 Scorecard: Problem Framer")
        assert "## Overall Score: 100/100 (A)" in report
        assert "| Completeness | 100 | A | 🟢 |" in report
        assert "| s1 | 100% | 🟢 |" in report
        assert "### Critical (0)\nNone" in report
        assert "| vs Last Version | +30" in report
