# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Unit tests for the evaluation harness."""

import json
import time

import pytest

from agentflow.evaluation.criteria import PROBLEM_FRAMER
from agentflow.evaluation.harness import (
    AgentTestHarness,
    EvaluationError,
    TestScenario,
    build_agent_input,
    compare_agent_versions,
    evaluate_output,
    generate_improvement_report,
    load_scenarios,
    parse_scenario_file,
)
from eval_samples import BAD_BRIEF, GOOD_BRIEF


def _scenario(**kwargs):
    data = {"id": "pf-x", "name": "X", "targetAgent": 1, "input": "Idea"}
    data.update(kwargs)
    return TestScenario.model_validate(data)


class TestEvaluateOutput:
    def test_good_output_scores_full(self):
        result = evaluate_output(GOOD_BRIEF, PROBLEM_FRAMER, _scenario(), time.time())
        assert result.scores.completeness == 1.0
        assert result.scores.quality == 1.0
        assert result.scores.guardrails.passed is True
        assert result.overall_score == pytest.approx(1.0)
        assert result.issues == []
        assert result.recommendations == []
        assert result.agent_id == 1

    def test_bad_output(self):
        result = evaluate_output(BAD_BRIEF, PROBLEM_FRAMER, _scenario(), time.time())
        assert result.scores.completeness == 0.0
        assert result.scores.quality == pytest.approx(0.25)
        assert result.scores.guardrails.violations == ["No 'everyone' as target", "Includes constraints"]
        assert result.overall_score == pytest.approx(0.1)

        severities = {i.description: i.severity for i in result.issues}
        assert severities["Guardrail violation: No 'everyone' as target"] == "critical"
        assert severities["Guardrail violation: Includes constraints"] == "major"
        assert severities["Missing: Discovery questions asked"] == "major"
        assert any(r.startswith("Address guardrail violations") for r in result.recommendations)
        assert "Review required sections and ensure all are present" in result.recommendations

    def test_expected_outputs_raise_issues_only(self):
        scenario = _scenario(expectedOutputs=[
            {"section": "Brief", "mustContain": ["blockchain"], "mustNotContain": ["narrow"], "maxLength": 10},
        ])
        result = evaluate_output(GOOD_BRIEF, PROBLEM_FRAMER, scenario, time.time())
        descriptions = [i.description for i in result.issues]
        assert "Missing expected term: blockchain" in descriptions
        assert "Contains forbidden term: narrow" in descriptions
        assert "Output longer than 10 characters" in descriptions
        assert all(i.location == "Brief" for i in result.issues)
        assert result.overall_score == pytest.approx(1.0)


class TestBuildAgentInput:
    def test_format(self):
        text = build_agent_input("Idea", {1: "brief", 2: "map"})
        assert text == (
            "Idea\n\n## Context from Previous Agents\n"
            "## Agent 1 Output\nbrief\n\n## Agent 2 Output\nmap"
        )


class TestScenarioFiles:
    def test_parse_list(self):
        scenarios = parse_scenario_file([{"id": "a", "name": "A", "input": "x"}], agent_id=6)
        assert scenarios[0].target_agent == 6

    def test_parse_object_keeps_explicit_target(self):
        data = {"agentId": 1, "scenarios": [{"id": "a", "name": "A", "input": "x", "targetAgent": 0}]}
        assert parse_scenario_file(data)[0].target_agent == 0

    def test_bundled_scenarios(self):
        scenarios = load_scenarios(1)
        assert [s.id for s in scenarios] == ["pf-001", "pf-002"]
        assert scenarios[0].edge_cases[0].name == "vague-idea"
        assert scenarios[0].expected_outputs[1].min_length == 1500

    def test_missing_file(self, tmp_path):
        assert load_scenarios(4, tmp_path) == []


class TestAgentTestHarness:
    @pytest.mark.asyncio
    async def test_run_agent_tests(self, tmp_path, llm_factory):
        llm = llm_factory(text=GOOD_BRIEF)
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm)

        results = await harness.run_agent_tests(1)

        assert [r.scenario_id for r in results] == ["pf-001", "pf-001-edge-vague-idea", "pf-002"]
        assert llm.calls[1]["user_content"] == "An app for everyone to be more productive."
        assert llm.calls[0]["max_tokens"] == 8192
        assert llm.calls[0]["system_prompt"].startswith("You are a Problem Framer")

        files = sorted(tmp_path.glob("*.json"))
        assert len(files) == 3
        stored = json.loads(files[0].read_text(encoding="utf-8"))
        assert {"scenarioId", "agentId", "overallScore", "scores"} <= set(stored)

    @pytest.mark.asyncio
    async def test_single_scenario(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm_factory(text=GOOD_BRIEF))
        results = await harness.run_agent_tests(1, "pf-002")
        assert [r.scenario_id for r in results] == ["pf-002"]

    @pytest.mark.asyncio
    async def test_unknown_scenario(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm_factory())
        with pytest.raises(EvaluationError, match="Scenario nope not found"):
            await harness.run_agent_tests(1, "nope")

    @pytest.mark.asyncio
    async def test_agent_without_criteria(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm_factory())
        with pytest.raises(EvaluationError, match="Agent 3 not found"):
            await harness.run_scenario(_scenario(targetAgent=3))

    @pytest.mark.asyncio
    async def test_missing_persona_file(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, agents_dir=tmp_path, llm=llm_factory())
        with pytest.raises(EvaluationError, match="No agent file"):
            await harness.run_scenario(_scenario())

    @pytest.mark.asyncio
    async def test_workflow_chains_outputs(self, tmp_path, llm_factory):
        llm = llm_factory(text=GOOD_BRIEF)
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm)

        results = await harness.run_workflow_test(_scenario(id="wf"))

        assert [(r.scenario_id, r.agent_id) for r in results] == [("wf-agent-1", 1), ("wf-agent-6", 6)]
        assert "## Agent 1 Output\n" + GOOD_BRIEF in llm.calls[1]["user_content"]

    @pytest.mark.asyncio
    async def test_workflow_stops_on_guardrail_failure(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm_factory(text=BAD_BRIEF))
        results = await harness.run_workflow_test(_scenario(id="wf"))
        assert len(results) == 1


class TestReporting:
    @pytest.mark.asyncio
    async def test_compare_agent_versions(self, tmp_path, llm_factory):
        harness = AgentTestHarness(results_dir=tmp_path, llm=llm_factory(text=GOOD_BRIEF))
        buckets = await compare_agent_versions(harness, 1, [_scenario(id="a"), _scenario(id="b")])
        assert buckets == {"improved": ["a", "b"], "regressed": [], "unchanged": []}

    def test_improvement_report(self):
        results = [
            evaluate_output(GOOD_BRIEF, PROBLEM_FRAMER, _scenario(id="a"), time.time()),
            evaluate_output(BAD_BRIEF, PROBLEM_FRAMER, _scenario(id="b"), time.time()),
        ]
        report = generate_improvement_report(results)
        assert report.startswith("# Agent Improvement Report")
        assert "## Agent 1" in report
        assert "**Average Score:** 55.0%" in report
        assert "- **guardrail**: 2 occurrences" in report
