# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Evaluation Criteria — What a good output looks like, per persona.

Four kinds of checks:
  - completeness: predicates over the output (required or optional)
  - quality:      0..1 scores, weighted
  - consistency:  comparisons against a reference output
  - guardrails:   predicates that must hold; ``critical`` or ``warning``
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from agentflow.evaluation.harness import EvalContext


@dataclass
class CompletenessCheck:
    name: str
    check: Callable[[str], bool]
    required: bool = True
    weight: float = 1.0


@dataclass
class QualityCheck:
    name: str
    evaluate: Callable[[str, "EvalContext"], float]
    weight: float = 1.0


@dataclass
class ConsistencyCheck:
    name: str
    compare_with: str
    evaluate: Callable[[str, str], float]


@dataclass
class GuardrailCheck:
    name: str
    must_not_violate: Callable[[str], bool]
    severity: str = "warning"  # critical | warning


@dataclass
class EvalAgentConfig:
    id: int
    name: str
    prompt_file: str
    required_sections: List[str]
    handoff_artifact: str
    completeness: List[CompletenessCheck] = field(default_factory=list)
    quality: List[QualityCheck] = field(default_factory=list)
    consistency: List[ConsistencyCheck] = field(default_factory=list)
    guardrails: List[GuardrailCheck] = field(default_factory=list)


def _search(pattern: str, flags: int = 0) -> Callable[[str], bool]:
    compiled = re.compile(pattern, flags)
    return lambda o: compiled.search(o) is not None


# ── Agent 0: Orchestrator ───────────────────────────────────

def _risks_are_specific(o: str, _ctx: "EvalContext") -> float:
    section = re.search(r"## Risks.*?(?=##|\Z)", o, re.S)
    if not section:
        return 0.0
    return 1.0 if len(section.group(0)) > 200 else 0.5


ORCHESTRATOR = EvalAgentConfig(
    id=0,
    name="Orchestrator",
    prompt_file="agent-0-orchestrator.md",
    required_sections=["Project Status", "Reasoning", "Risks & Blockers", "Recommended Actions"],
    handoff_artifact="orchestration-plan",
    completeness=[
        CompletenessCheck("Project status included", lambda o: "## Project Status" in o),
        CompletenessCheck("Gate assessment", _search(r"Gate \d")),
        CompletenessCheck("Action recommendations", lambda o: "Recommended Actions" in o),
        CompletenessCheck("Ready-to-paste prompts", lambda o: "<prompt>" in o),
    ],
    quality=[
        QualityCheck("Reasoning shown", lambda o, _ctx: 1.0 if "<thinking>" in o else 0.0),
        QualityCheck("Risks are specific", _risks_are_specific),
    ],
    guardrails=[
        GuardrailCheck("Max 3 actions", lambda o: len(re.findall(r"### Action \d", o)) <= 3),
        GuardrailCheck(
            "No vague language",
            lambda o: re.search(r"(soon|eventually|might|maybe|probably)", o, re.I) is None,
        ),
    ],
)


# ── Agent 1: Problem Framer ─────────────────────────────────

def _problem_is_falsifiable(o: str, _ctx: "EvalContext") -> float:
    return 1.0 if re.search(r"\d+%|\$\d+|\d+ (users|minutes|hours)", o, re.I) else 0.5


def _user_specificity(o: str, _ctx: "EvalContext") -> float:
    has_role = re.search(r"role:|title:|job:", o, re.I) is not None
    has_context = re.search(r"company size|industry|environment", o, re.I) is not None
    if has_role and has_context:
        return 1.0
    return 0.5 if has_role else 0.0


PROBLEM_FRAMER = EvalAgentConfig(
    id=1,
    name="Problem Framer",
    prompt_file="agent-1-problem-framer.md",
    required_sections=["Discovery", "Framing", "Problem Brief"],
    handoff_artifact="problem-brief-v0.1.md",
    completeness=[
        CompletenessCheck("Discovery questions asked", lambda o: o.count("?") >= 8),
        CompletenessCheck(
            "Three framings provided",
            lambda o: "Narrow" in o and "Balanced" in o and "Broad" in o,
        ),
        CompletenessCheck("Explicit recommendation", _search(r"recommend", re.I)),
        CompletenessCheck("Target persona defined", _search(r"persona|target user", re.I)),
        CompletenessCheck("JTBD included", _search(r"When.*want.*so", re.I)),
    ],
    quality=[
        QualityCheck("Problem is falsifiable", _problem_is_falsifiable, weight=1.5),
        QualityCheck("User specificity", _user_specificity, weight=1.5),
    ],
    guardrails=[
        GuardrailCheck(
            "No 'everyone' as target",
            lambda o: re.search(r"target.*everyone", o, re.I) is None,
            severity="critical",
        ),
        GuardrailCheck("Includes constraints", _search(r"constraint|timeline|budget", re.I)),
    ],
)


# ── Agent 6: Engineer ───────────────────────────────────────

def _typed_code_practices(o: str, _ctx: "EvalContext") -> float:
    score = 0.0
    if ": any" not in o:
        score += 0.25
    if "interface " in o or "type " in o:
        score += 0.25
    if "async " in o and "await " in o:
        score += 0.25
    if "try" in o and "catch" in o:
        score += 0.25
    return score


def _security_considerations(o: str, _ctx: "EvalContext") -> float:
    score = 0.0
    if re.search(r"validation|sanitiz", o, re.I):
        score += 0.33
    if re.search(r"auth|permission|role", o, re.I):
        score += 0.33
    if re.search(r"injection|xss|csrf", o, re.I):
        score += 0.34
    return score


_SECRET_RE = re.compile(r"password\s*=\s*[\"'][^\"']+[\"']|api_key\s*=\s*[\"'][^\"']+[\"']", re.I)
_TS_BLOCK_RE = re.compile(r"```typescript[\s\S]*?```")


def _no_console_log(o: str) -> bool:
    # console.log is tolerated in blocks marked "// debug"
    return not any(
        "console.log" in block and "// debug" not in block
        for block in _TS_BLOCK_RE.findall(o)
    )


ENGINEER = EvalAgentConfig(
    id=6,
    name="Engineer",
    prompt_file="agent-6-engineer.md",
    required_sections=["Implementation Summary", "Acceptance Criteria Verification", "Testing"],
    handoff_artifact="code + test report",
    completeness=[
        CompletenessCheck("PRD reference", _search(r"PRD|acceptance criteria", re.I)),
        CompletenessCheck("Code examples typed", lambda o: ": any" not in o),
        CompletenessCheck("Error handling shown", _search(r"try.*catch|error", re.I)),
        CompletenessCheck("Tests included", _search(r"test|spec|describe|it\(", re.I)),
    ],
    quality=[
        QualityCheck("TypeScript best practices", _typed_code_practices, weight=2.0),
        QualityCheck("Security considerations", _security_considerations, weight=1.5),
    ],
    guardrails=[
        GuardrailCheck(
            "No secrets in code",
            lambda o: _SECRET_RE.search(o) is None,
            severity="critical",
        ),
        GuardrailCheck("No console.log in production code", _no_console_log),
    ],
)


AGENT_CONFIGS: Dict[int, EvalAgentConfig] = {
    config.id: config for config in (ORCHESTRATOR, PROBLEM_FRAMER, ENGINEER)
}


def get_eval_config(agent_id: int) -> Optional[EvalAgentConfig]:
    return AGENT_CONFIGS.get(agent_id)
