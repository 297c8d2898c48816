"""SAST scoring."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    INCONCLUSIVE_RESULT_SCORE,
    MAX_RESULT_SCORE,
    DetailLogger,
    aggregate_scores_with_weight,
    create_max_score_result,
    create_min_score_result,
    create_proportional_score,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, SASTTool
from repo_vigil.probes import sast

EXPECTED_PROBES = (sast.SAST_TOOL_CONFIGURED, sast.SAST_TOOL_RUNS_ON_ALL_COMMITS)

SAST_WEIGHT = 3
CODEQL_WEIGHT = 7


def _commit_score(f: Finding, dl: DetailLogger) -> int:
    if f.outcome is Outcome.NOT_APPLICABLE:
        log_finding(dl, f, DetailType.WARN)
        return INCONCLUSIVE_RESULT_SCORE
    log_finding(dl, f, DetailType.INFO if f.outcome is Outcome.POSITIVE else DetailType.WARN)
    analyzed = int(f.values.get(sast.ANALYZED_PRS_KEY, 0))
    total = int(f.values.get(sast.TOTAL_PRS_KEY, 0))
    return create_proportional_score(analyzed, total)


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    tools: list[str] = []
    sast_score = INCONCLUSIVE_RESULT_SCORE
    for f in findings:
        if f.probe == sast.SAST_TOOL_RUNS_ON_ALL_COMMITS:
            sast_score = _commit_score(f, dl)
        elif f.outcome is Outcome.TRUE:
            log_finding(dl, f, DetailType.INFO)
            tools.append(str(f.values.get(sast.TOOL_KEY, "")))

    # Tools other than CodeQL are trusted to run on every change.
    for tool in tools:
        if tool != SASTTool.CODEQL:
            return create_max_score_result(name, f"SAST tool detected: {tool}")
    codeql = SASTTool.CODEQL in tools

    if sast_score == INCONCLUSIVE_RESULT_SCORE:
        if codeql:
            return create_max_score_result(name, "SAST tool detected: CodeQL")
        return create_min_score_result(name, "no SAST tool detected")

    if sast_score == MAX_RESULT_SCORE:
        return create_max_score_result(name, "SAST tool is run on all commits")
    if not codeql:
        return create_result_with_score(
            name, normalize_reason("SAST tool is not run on all commits", sast_score), sast_score
        )
    score = aggregate_scores_with_weight({sast_score: SAST_WEIGHT, MAX_RESULT_SCORE: CODEQL_WEIGHT})
    return create_result_with_score(name, "SAST tool detected but not run on all commits", score)
