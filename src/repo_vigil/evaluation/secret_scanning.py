"""Secret-Scanning scoring."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    DetailLogger,
    create_inconclusive_result,
    create_max_score_result,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, ExecutionPattern
from repo_vigil.probes import secret_scanning as ss

EXPECTED_PROBES = (
    ss.HAS_GITHUB_SECRET_SCANNING_ENABLED,
    ss.HAS_GITHUB_PUSH_PROTECTION_ENABLED,
    *ss.THIRD_PARTY_PROBES.values(),
)

# (minimum share of merged changes scanned, score), best first.
COVERAGE_BANDS: tuple[tuple[float, int], ...] = ((1.0, 10), (0.7, 7), (0.5, 5))
SOME_COVERAGE_SCORE = 3
PRESENT_ONLY_SCORE = 1


def tool_score(f: Finding) -> int:
    """Score one detected scanner from how regularly it ran in CI."""
    analyzed = int(f.values.get(ss.COMMITS_ANALYZED_KEY, 0))
    if analyzed == 0:
        return PRESENT_ONLY_SCORE
    if f.values.get(ss.EXECUTION_PATTERN_KEY) == ExecutionPattern.PERIODIC.value:
        return MAX_RESULT_SCORE if f.values.get(ss.HAS_RECENT_RUNS_KEY) else PRESENT_ONLY_SCORE
    coverage = int(f.values.get(ss.COMMITS_WITH_TOOL_RUN_KEY, 0)) / analyzed
    for minimum, score in COVERAGE_BANDS:
        if coverage >= minimum:
            return score
    return SOME_COVERAGE_SCORE if coverage > 0 else PRESENT_ONLY_SCORE


def _coverage(f: Finding) -> str | None:
    tool = f.values.get(ss.TOOL_KEY, "")
    analyzed = int(f.values.get(ss.COMMITS_ANALYZED_KEY, 0))
    if analyzed == 0:
        return None
    if f.values.get(ss.EXECUTION_PATTERN_KEY) == ExecutionPattern.PERIODIC.value:
        if f.values.get(ss.HAS_RECENT_RUNS_KEY):
            return f"{tool}: ran recently"
        return f"{tool}: no recent runs"
    percent = 100 * int(f.values.get(ss.COMMITS_WITH_TOOL_RUN_KEY, 0)) / analyzed
    return f"{tool}: {percent:.0f}% coverage"


def _describe(reason: str, push: Outcome, tools: list[Finding]) -> str:
    if push is Outcome.TRUE:
        reason += " (push protection enabled)"
    if tools:
        reason += "; " + "; ".join(f.message for f in tools)
        coverage = [c for f in tools if (c := _coverage(f)) is not None]
        if coverage:
            reason += "; CI coverage: " + ", ".join(coverage)
    return reason


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    native = push = Outcome.NOT_AVAILABLE
    tools: list[Finding] = []
    for f in findings:
        if f.probe == ss.HAS_GITHUB_SECRET_SCANNING_ENABLED:
            native = f.outcome
        elif f.probe == ss.HAS_GITHUB_PUSH_PROTECTION_ENABLED:
            push = f.outcome
        elif f.outcome is Outcome.TRUE:
            tools.append(f)
        else:
            continue
        log_finding(dl, f, DetailType.INFO if f.outcome is Outcome.TRUE else DetailType.WARN)

    match native:
        case Outcome.TRUE:
            reason = _describe("GitHub native secret scanning is enabled", push, tools)
            return create_max_score_result(name, reason)
        case Outcome.FALSE:
            reason = _describe("GitHub native secret scanning is disabled", push, tools)
            score = max((tool_score(f) for f in tools), default=0)
            return create_result_with_score(name, reason, score)
    reason = _describe(
        "Token has insufficient permissions to get information about native GitHub secret scanning",
        push,
        tools,
    )
    return create_inconclusive_result(name, reason)
