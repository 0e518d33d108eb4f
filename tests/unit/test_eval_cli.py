# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Tests for the agent testing CLI."""

import json

import pytest

from agentflow.evaluation.cli import build_parser, load_scenario_files, run, summarize
from agentflow.evaluation.harness import AgentTestHarness, GuardrailResult, Scores, TestResult
from agentflow.evaluation.history import TestHistory
from eval_samples import BAD_BRIEF, GOOD_BRIEF


def _args(tmp_path, *argv):
    return build_parser().parse_args([*argv, "--eval-dir", str(tmp_path)])


def _result(scenario_id, overall, passed=True):
    return TestResult(
        scenario_id=scenario_id,
        agent_id=1,
        scores=Scores(
            completeness=1.0,
            quality=1.0,
            guardrails=GuardrailResult(passed=passed, violations=[] if passed else ["No secrets in code"]),
        ),
        overall_score=overall,
        output="x",
    )


class TestParser:
    def test_flags(self):
        args = build_parser().parse_args(["-a", "6", "-s", "-v", "--scenario", "eng-001"])
        assert args.agent == 6
        assert args.save is True
        assert args.verbose is True
        assert args.scenario == "eng-001"
        assert args.all is False


class TestLoadScenarioFiles:
    def test_bundled(self):
        files = load_scenario_files(build_parser().parse_args([]).scenarios_dir)
        assert [(f["agentId"], f["agentName"]) for f in files] == [
            (0, "Orchestrator"), (1, "Problem Framer"), (6, "Engineer"),
        ]

    def test_list_file_without_criteria(self, tmp_path):
        (tmp_path / "agent-2-scenarios.json").write_text(
            json.dumps([{"id": "cm-001", "name": "Map", "input": "x"}]), encoding="utf-8",
        )
        [data] = load_scenario_files(tmp_path)
        assert data["agentId"] == 2
        assert data["agentName"] == "Agent 2"


class TestSummarize:
    def test_scores_and_recommendations(self):
        summary = summarize(6, "Engineer", [_result("a", 0.9), _result("b", 0.5), _result("c", 0.8, passed=False)])
        assert [s["score"] for s in summary["scenarioResults"]] == [90, 50, 80]
        assert [s["passed"] for s in summary["scenarioResults"]] == [True, False, False]
        assert summary["overallScore"] == 73
        assert summary["passRate"] == 33
        assert summary["recommendations"] == [
            "Review scenarios: b",
            "Address guardrail violations: No secrets in code",
        ]


class TestRun:
    @pytest.mark.asyncio
    async def test_no_target_prints_help(self, tmp_path, capsys):
        assert await run(_args(tmp_path)) == 1
        assert "usage: agentflow-eval" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_report(self, tmp_path, capsys):
        assert await run(_args(tmp_path, "--report")) == 0
        assert "Total Scenarios: 5" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_dry_run(self, tmp_path, capsys, llm_factory):
        llm = llm_factory()
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm)
        assert await run(_args(tmp_path, "--all", "--dry-run"), harness) == 0
        out = capsys.readouterr().out
        assert "Agent 1: Problem Framer (2 scenarios)" in out
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_agent_run_with_save(self, tmp_path, capsys, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path / "results", llm=llm_factory(text=GOOD_BRIEF))

        assert await run(_args(tmp_path, "--agent", "1", "--save"), harness) == 0

        out = capsys.readouterr().out
        assert "[PASS] pf-001: 100%" in out
        assert "Overall Score: 100%" in out

        history = TestHistory.load(tmp_path / "results" / "history.json")
        assert [(e.agent_id, e.overall_score, e.pass_rate) for e in history.entries] == [(1, 100, 100)]
        assert (tmp_path / "reports" / "agent-1-scorecard.md").exists()
        [run_file] = (tmp_path / "results").glob("run-*.json")
        assert json.loads(run_file.read_text(encoding="utf-8"))[0]["agentId"] == 1

    @pytest.mark.asyncio
    async def test_failing_outputs(self, tmp_path, capsys, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path / "results", llm=llm_factory(text=BAD_BRIEF))
        assert await run(_args(tmp_path, "--agent", "1", "--scenario", "pf-002"), harness) == 0
        assert "[FAIL] pf-002: 10%" in capsys.readouterr().out
        assert not (tmp_path / "results" / "history.json").exists()

    @pytest.mark.asyncio
    async def test_agent_without_scenarios(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path / "results", llm=llm_factory())
        assert await run(_args(tmp_path, "--agent", "3"), harness) == 1

    @pytest.mark.asyncio
    async def test_compare(self, tmp_path, capsys):
        assert await run(_args(tmp_path, "--compare", "1")) == 0
        assert "Insufficient history for agent 1" in capsys.readouterr().out

        history = TestHistory()
        history.add(1, 60, 50, date="2026-01-01")
        history.add(1, 80, 100, date="2026-01-02")
        history.save(tmp_path / "results" / "history.json")

        assert await run(_args(tmp_path, "--compare", "1")) == 0
        out = capsys.readouterr().out
        assert "Agent 1 Version Comparison" in out
        assert "(+20)" in out
        assert "Trend: Stable" in out
