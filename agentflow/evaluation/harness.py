# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agent Test Harness — Runs personas against scenarios and scores the output.

  1. A scenario names a target agent and a user input
  2. The persona's system prompt and the input go to the LLM
  3. The output is scored against the agent's criteria (criteria.py)
  4. Each result is written to ``results_dir`` as JSON

Workflow tests chain agents 1..7, feeding each agent the outputs of the
ones before it, and stop at the first guardrail failure.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agentflow.agents.catalog import load_agent_prompt
from agentflow.core.config import settings
from agentflow.evaluation.criteria import EvalAgentConfig, get_eval_config
from agentflow.services.llm_service import LLMService

logger = logging.getLogger("agentflow.evaluation")

WORKFLOW_ORDER = [1, 2, 3, 4, 5, 6, 7]
SCENARIOS_DIR = Path(__file__).parent / "scenarios"


class EvaluationError(Exception):
    """Raised when a scenario cannot be run."""


# ── Models ──────────────────────────────────────────────────

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExpectedOutput(_CamelModel):
    section: str = ""
    must_contain: List[str] = Field(default_factory=list)
    must_not_contain: List[str] = Field(default_factory=list)
    format: Optional[str] = None  # markdown | yaml | json | code
    min_length: Optional[int] = None
    max_length: Optional[int] = None


class EdgeCase(_CamelModel):
    name: str
    input: str
    expected_behavior: str = ""


class TestScenario(_CamelModel):
    __test__ = False

    id: str
    name: str
    description: str = ""
    target_agent: int
    input: str
    context: Optional[Dict[str, Any]] = None
    expected_outputs: List[ExpectedOutput] = Field(default_factory=list)
    edge_cases: List[EdgeCase] = Field(default_factory=list)


class Issue(_CamelModel):
    severity: str  # critical | major | minor
    category: str
    description: str
    location: Optional[str] = None
    suggestion: Optional[str] = None


class GuardrailResult(_CamelModel):
    passed: bool
    violations: List[str] = Field(default_factory=list)


class Scores(_CamelModel):
    completeness: float
    quality: float
    consistency: float = 0.0
    guardrails: GuardrailResult


class TestResult(_CamelModel):
    __test__ = False

    scenario_id: str
    agent_id: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration: int = 0  # ms
    scores: Scores
    overall_score: float
    output: str
    issues: List[Issue] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


@dataclass
class EvalContext:
    scenario: TestScenario
    previous_outputs: Dict[int, str] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)


# ── Scoring ─────────────────────────────────────────────────

def _check_expected_outputs(output: str, expected: List[ExpectedOutput]) -> List[Issue]:
    issues = []
    lowered = output.lower()
    for expectation in expected:
        location = expectation.section or None
        for term in expectation.must_contain:
            if term.lower() not in lowered:
                issues.append(Issue(
                    severity="major",
                    category="completeness",
                    description=f"Missing expected term: {term}",
                    location=location,
                    suggestion=f"Ensure output mentions {term}",
                ))
        for term in expectation.must_not_contain:
            if term.lower() in lowered:
                issues.append(Issue(
                    severity="major",
                    category="completeness",
                    description=f"Contains forbidden term: {term}",
                    location=location,
                ))
        if expectation.min_length is not None and len(output) < expectation.min_length:
            issues.append(Issue(
                severity="minor",
                category="completeness",
                description=f"Output shorter than {expectation.min_length} characters",
                location=location,
            ))
        if expectation.max_length is not None and len(output) > expectation.max_length:
            issues.append(Issue(
                severity="minor",
                category="completeness",
                description=f"Output longer than {expectation.max_length} characters",
                location=location,
            ))
    return issues


def evaluate_output(
    output: str,
    config: EvalAgentConfig,
    scenario: TestScenario,
    start_time: float,
) -> TestResult:
    """Score one output against an agent's criteria."""
    issues: List[Issue] = []
    recommendations: List[str] = []

    # Completeness
    passed_weight = 0.0
    total_weight = 0.0
    for check in config.completeness:
        total_weight += check.weight
        if check.check(output):
            passed_weight += check.weight
        else:
            issues.append(Issue(
                severity="major" if check.required else "minor",
                category="completeness",
                description=f"Missing: {check.name}",
                suggestion=f"Ensure output includes {check.name}",
            ))
    completeness = passed_weight / total_weight if total_weight > 0 else 0.0
    issues.extend(_check_expected_outputs(output, scenario.expected_outputs))

    # Quality
    ctx = EvalContext(scenario=scenario, start_time=start_time)
    weighted = 0.0
    total_weight = 0.0
    for check in config.quality:
        total_weight += check.weight
        score = check.evaluate(output, ctx)
        weighted += score * check.weight
        if score < 0.5:
            issues.append(Issue(
                severity="minor",
                category="quality",
                description=f"Low score for: {check.name}",
                suggestion=f"Improve {check.name} for better output quality",
            ))
    quality = weighted / total_weight if total_weight > 0 else 0.0

    # Guardrails
    violations = []
    for check in config.guardrails:
        if not check.must_not_violate(output):
            violations.append(check.name)
            issues.append(Issue(
                severity="critical" if check.severity == "critical" else "major",
                category="guardrail",
                description=f"Guardrail violation: {check.name}",
            ))

    if completeness < 0.8:
        recommendations.append("Review required sections and ensure all are present")
    if quality < 0.7:
        recommendations.append("Focus on specificity and actionability of outputs")
    if violations:
        recommendations.append(f"Address guardrail violations: {', '.join(violations)}")

    overall = completeness * 0.3 + quality * 0.4 + (0.3 if not violations else 0.0)

    return TestResult(
        scenario_id=scenario.id,
        agent_id=scenario.target_agent,
        duration=int((time.time() - start_time) * 1000),
        scores=Scores(
            completeness=completeness,
            quality=quality,
            guardrails=GuardrailResult(passed=not violations, violations=violations),
        ),
        overall_score=overall,
        output=output,
        issues=issues,
        recommendations=recommendations,
    )


def build_agent_input(base_input: str, previous_outputs: Dict[int, str]) -> str:
    """Scenario input followed by every earlier agent's output."""
    sections = "\n\n".join(
        f"## Agent {agent_id} Output\n{output}" for agent_id, output in previous_outputs.items()
    )
    return f"{base_input}\n\n## Context from Previous Agents\n{sections}"


# ── Scenario files ──────────────────────────────────────────

def parse_scenario_file(data: Any, agent_id: Optional[int] = None) -> List[TestScenario]:
    """
    Accept either a list of scenarios or ``{"scenarios": [...]}``.

    Scenarios without ``targetAgent`` default to the file's agent.
    """
    if isinstance(data, dict):
        agent_id = data.get("agentId", agent_id)
        items = data.get("scenarios", [])
    else:
        items = data or []
    scenarios = []
    for item in items:
        if agent_id is not None:
            item = {"targetAgent": agent_id, **item}
        scenarios.append(TestScenario.model_validate(item))
    return scenarios


def load_scenarios(agent_id: int, scenarios_dir: Optional[Path] = None) -> List[TestScenario]:
    path = Path(scenarios_dir or SCENARIOS_DIR) / f"agent-{agent_id}-scenarios.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("No scenarios found for agent %d", agent_id)
        return []
    return parse_scenario_file(data, agent_id)


# ── Harness ─────────────────────────────────────────────────

class AgentTestHarness:
    """Runs scenarios through the LLM and stores scored results."""

    def __init__(
        self,
        results_dir: Path,
        agents_dir: Optional[Path] = None,
        scenarios_dir: Optional[Path] = None,
        llm: Optional[LLMService] = None,
    ) -> None:
        self.results_dir = Path(results_dir)
        self.agents_dir = agents_dir
        self.scenarios_dir = Path(scenarios_dir) if scenarios_dir else SCENARIOS_DIR
        self.llm = llm or LLMService()

    async def run_scenario(self, scenario: TestScenario) -> TestResult:
        start_time = time.time()
        config = get_eval_config(scenario.target_agent)
        if config is None:
            raise EvaluationError(f"Agent {scenario.target_agent} not found")

        agent = load_agent_prompt(scenario.target_agent, self.agents_dir)
        if agent is None:
            raise EvaluationError(f"No agent file found for agent {scenario.target_agent}")

        response = await self.llm.complete(
            system_prompt=agent.system_prompt,
            user_content=scenario.input,
            max_tokens=settings.EVAL_MAX_TOKENS,
            model=agent.model,
        )
        result = evaluate_output(response.text, config, scenario, start_time)
        self.store_result(result)
        return result

    async def run_agent_tests(self, agent_id: int, scenario_id: Optional[str] = None) -> List[TestResult]:
        """Every scenario of an agent, each followed by its edge cases."""
        scenarios = load_scenarios(agent_id, self.scenarios_dir)
        if scenario_id:
            scenarios = [s for s in scenarios if s.id == scenario_id]
            if not scenarios:
                raise EvaluationError(f"Scenario {scenario_id} not found")

        results = []
        for scenario in scenarios:
            logger.info("Running scenario: %s", scenario.name)
            results.append(await self.run_scenario(scenario))

            for edge in scenario.edge_cases:
                edge_scenario = scenario.model_copy(update={
                    "id": f"{scenario.id}-edge-{edge.name}",
                    "name": f"{scenario.name} - Edge: {edge.name}",
                    "input": edge.input,
                })
                results.append(await self.run_scenario(edge_scenario))
        return results

    async def run_workflow_test(self, scenario: TestScenario) -> List[TestResult]:
        results: List[TestResult] = []
        previous_outputs: Dict[int, str] = {}

        for agent_id in WORKFLOW_ORDER:
            if get_eval_config(agent_id) is None:
                continue

            step = scenario.model_copy(update={
                "id": f"{scenario.id}-agent-{agent_id}",
                "target_agent": agent_id,
                "input": build_agent_input(scenario.input, previous_outputs),
            })
            result = await self.run_scenario(step)
            results.append(result)
            previous_outputs[agent_id] = result.output

            if not result.scores.guardrails.passed:
                logger.warning("Agent %d has guardrail violations, stopping workflow", agent_id)
                break
        return results

    def store_result(self, result: TestResult) -> Path:
        stamp = result.timestamp.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        path = self.results_dir / f"{result.scenario_id}-{stamp}.json"
        self.results_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        return path


# ── Comparison & reporting ──────────────────────────────────

async def compare_agent_versions(
    harness: AgentTestHarness,
    agent_id: int,
    scenarios: List[TestScenario],
) -> Dict[str, List[str]]:
    """Bucket current scenario scores: improved / regressed / unchanged."""
    results = [await harness.run_scenario(s) for s in scenarios]
    return {
        "improved": [r.scenario_id for r in results if r.overall_score >= 0.8],
        "regressed": [r.scenario_id for r in results if r.overall_score < 0.5],
        "unchanged": [r.scenario_id for r in results if 0.5 <= r.overall_score < 0.8],
    }


def generate_improvement_report(results: List[TestResult]) -> str:
    by_agent: Dict[int, List[TestResult]] = {}
    for result in results:
        by_agent.setdefault(result.agent_id, []).append(result)

    report = "# Agent Improvement Report\n\n"
    for agent_id, agent_results in by_agent.items():
        avg = sum(r.overall_score for r in agent_results) / len(agent_results)
        report += f"## Agent {agent_id}\n"
        report += f"**Average Score:** {avg * 100:.1f}%\n\n"

        by_category: Dict[str, List[Issue]] = {}
        for result in agent_results:
            for issue in result.issues:
                by_category.setdefault(issue.category, []).append(issue)

        report += "### Common Issues\n"
        for category, issues in by_category.items():
            report += f"- **{category}**: {len(issues)} occurrences\n"
            for desc in list(dict.fromkeys(i.description for i in issues))[:3]:
                report += f"  - {desc}\n"

        report += "\n### Recommendations\n"
        recs = dict.fromkeys(rec for r in agent_results for rec in r.recommendations)
        for rec in recs:
            report += f"- {rec}\n"
        report += "\n---\n\n"

    return report
