# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Agent Testing CLI

Runs persona scenarios through the LLM, scores them, tracks history.

Usage:
    python -m agentflow.evaluation --agent 1            # Test one agent
    python -m agentflow.evaluation --all --save         # Test all, save history
    python -m agentflow.evaluation --agent 1 --scenario pf-001
    python -m agentflow.evaluation --compare 1          # Score history of agent 1
    python -m agentflow.evaluation --report             # Coverage summary
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from agentflow.api.errors import APIError
from agentflow.core.config import settings
from agentflow.core.logging import setup_logging
from agentflow.evaluation.criteria import get_eval_config
from agentflow.evaluation.harness import (
    SCENARIOS_DIR,
    AgentTestHarness,
    EvaluationError,
    TestResult,
)
from agentflow.evaluation.history import HISTORY_FILE, TestHistory, compare_versions, summary_report
from agentflow.evaluation.scorecard import calculate_agent_score, generate_scorecard_report

logger = logging.getLogger("agentflow.evaluation.cli")

PASS_THRESHOLD = 70


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentflow-eval",
        description="Agent Testing CLI: run scenarios, score personas, track improvements.",
    )
    parser.add_argument("--agent", "-a", type=int, help="Test a specific agent by ID")
    parser.add_argument("--all", action="store_true", help="Test all agents with scenario files")
    parser.add_argument("--save", "-s", action="store_true", help="Save results to history")
    parser.add_argument("--compare", "-c", type=int, metavar="ID",
                        help="Compare agent's current vs historical performance")
    parser.add_argument("--report", "-r", action="store_true",
                        help="Generate summary report for all agents")
    parser.add_argument("--scenario", help="Run a specific scenario only")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed output")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be tested without running")
    parser.add_argument("--scenarios-dir", type=Path, default=SCENARIOS_DIR)
    parser.add_argument("--eval-dir", type=Path, default=Path(settings.EVAL_DIR),
                        help="Root for results/ and reports/")
    return parser


# ── Scenario files ──────────────────────────────────────────

def load_scenario_files(scenarios_dir: Path) -> List[Dict[str, Any]]:
    """Every ``agent-{id}-scenarios.json``, normalized to ``{agentId, agentName, scenarios}``."""
    files = []
    for path in sorted(Path(scenarios_dir).glob("agent-*-scenarios.json")):
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, list):
            data = {"scenarios": data}
        if "agentId" not in data:
            data["agentId"] = int(path.name.split("-")[1])
        config = get_eval_config(data["agentId"])
        data.setdefault("agentName", config.name if config else f"Agent {data['agentId']}")
        files.append(data)
    return files


# ── Summaries ───────────────────────────────────────────────

def summarize(agent_id: int, agent_name: str, results: List[TestResult]) -> Dict[str, Any]:
    """Per-run summary: a scenario passes at score >= 70 with no guardrail violation."""
    scenario_results = []
    for r in results:
        score = round(r.overall_score * 100)
        scenario_results.append({
            "scenarioId": r.scenario_id,
            "passed": score >= PASS_THRESHOLD and r.scores.guardrails.passed,
            "score": score,
            "guardrailViolations": r.scores.guardrails.violations,
            "output": r.output[:500],
            "duration": r.duration,
            "timestamp": r.timestamp.isoformat(),
        })

    count = len(scenario_results) or 1
    overall = round(sum(s["score"] for s in scenario_results) / count)
    pass_rate = round(sum(1 for s in scenario_results if s["passed"]) / count * 100)

    recommendations = []
    low = [s["scenarioId"] for s in scenario_results if s["score"] < PASS_THRESHOLD]
    if low:
        recommendations.append(f"Review scenarios: {', '.join(low)}")
    violations = list(dict.fromkeys(v for s in scenario_results for v in s["guardrailViolations"]))
    if violations:
        recommendations.append(f"Address guardrail violations: {', '.join(violations)}")

    return {
        "agentId": agent_id,
        "agentName": agent_name,
        "overallScore": overall,
        "passRate": pass_rate,
        "scenarioResults": scenario_results,
        "recommendations": recommendations,
        "testDate": datetime.now(timezone.utc).isoformat(),
    }


def _print_summary(summary: Dict[str, Any], verbose: bool) -> None:
    for s in summary["scenarioResults"]:
        mark = "PASS" if s["passed"] else "FAIL"
        print(f"  [{mark}] {s['scenarioId']}: {s['score']}%")
        if verbose and s["guardrailViolations"]:
            print(f"    Guardrail violations: {', '.join(s['guardrailViolations'])}")
    passed = sum(1 for s in summary["scenarioResults"] if s["passed"])
    print("\n" + "-" * 50)
    print(f"Overall Score: {summary['overallScore']}%")
    print(f"Pass Rate: {summary['passRate']}% ({passed}/{len(summary['scenarioResults'])})")


def _write_scorecard(agent_id: int, results: List[TestResult], history: TestHistory, reports_dir: Path) -> None:
    config = get_eval_config(agent_id)
    if config is None or not results:
        return
    card = calculate_agent_score(results, config, history.for_agent(agent_id))
    reports_dir.mkdir(parents=True, exist_ok=True)
    path = reports_dir / f"agent-{agent_id}-scorecard.md"
    path.write_text(generate_scorecard_report(card), encoding="utf-8")
    print(f"Scorecard written to: {path}")


async def evaluate_agent(
    harness: AgentTestHarness,
    agent_id: int,
    agent_name: str,
    scenario_id: Optional[str] = None,
    verbose: bool = False,
) -> Tuple[Dict[str, Any], List[TestResult]]:
    print(f"\nTesting Agent {agent_id}: {agent_name}")
    print("=" * 50)
    results = await harness.run_agent_tests(agent_id, scenario_id)
    if not results:
        raise EvaluationError(f"No scenario file found for agent {agent_id}")
    summary = summarize(agent_id, agent_name, results)
    _print_summary(summary, verbose)
    return summary, results


# ── Commands ────────────────────────────────────────────────

def _dry_run(args: argparse.Namespace, files: List[Dict[str, Any]]) -> None:
    print("\nDry Run - Would test:")
    if args.all:
        for f in files:
            print(f"  Agent {f['agentId']}: {f['agentName']} ({len(f['scenarios'])} scenarios)")
    elif args.agent is not None:
        match = next((f for f in files if f["agentId"] == args.agent), None)
        if match:
            print(f"  Agent {match['agentId']}: {match['agentName']}")
            if args.scenario:
                print(f"    Scenario: {args.scenario}")
            else:
                print(f"    All {len(match['scenarios'])} scenarios")


def _compare(history: TestHistory, agent_id: int) -> None:
    comparison = compare_versions(history, agent_id)
    if comparison is None:
        print(f"Insufficient history for agent {agent_id}. Run more tests with --save.")
        return
    print(f"\nAgent {agent_id} Version Comparison")
    print("=" * 50)
    print("\nDate                 Version    Score    Pass Rate")
    print("-" * 50)
    for row in comparison["rows"]:
        change = f"+{row.change:g}" if row.change >= 0 else f"{row.change:g}"
        print(f"{row.date:<20} {row.version:<10} {row.overall_score:<8g} {row.pass_rate:g}% ({change})")
    print(f"\nTrend: {comparison['trend'].capitalize()}")


async def run(args: argparse.Namespace, harness: Optional[AgentTestHarness] = None) -> int:
    results_dir = args.eval_dir / "results"
    reports_dir = args.eval_dir / "reports"
    history_path = results_dir / HISTORY_FILE
    history = TestHistory.load(history_path)

    if args.report:
        print(summary_report(load_scenario_files(args.scenarios_dir), history))
        return 0

    if args.compare is not None:
        _compare(history, args.compare)
        return 0

    files = load_scenario_files(args.scenarios_dir)
    if args.dry_run:
        _dry_run(args, files)
        return 0

    if args.all:
        targets = [(f["agentId"], f["agentName"]) for f in files]
    elif args.agent is not None:
        match = next((f for f in files if f["agentId"] == args.agent), None)
        targets = [(args.agent, match["agentName"] if match else f"Agent {args.agent}")]
    else:
        build_parser().print_help()
        return 1

    harness = harness or AgentTestHarness(results_dir=results_dir, scenarios_dir=args.scenarios_dir)
    summaries = []
    failed = False
    for agent_id, agent_name in targets:
        try:
            summary, results = await evaluate_agent(harness, agent_id, agent_name, args.scenario, args.verbose)
        except (EvaluationError, APIError) as e:
            logger.error("Failed to test agent %d: %s", agent_id, e)
            print(f"Failed to test agent {agent_id}: {e}", file=sys.stderr)
            failed = True
            continue
        summaries.append(summary)
        _write_scorecard(agent_id, results, history, reports_dir)

    if args.save and summaries:
        for summary in summaries:
            history.add(summary["agentId"], summary["overallScore"], summary["passRate"])
        history.save(history_path)
        print("\nResults saved to history")

    if summaries:
        stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-")
        results_dir.mkdir(parents=True, exist_ok=True)
        path = results_dir / f"run-{stamp}.json"
        path.write_text(json.dumps(summaries, indent=2), encoding="utf-8")
        print(f"\nDetailed results saved to: {path}")

    return 1 if failed and not summaries else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else settings.LOG_LEVEL)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
