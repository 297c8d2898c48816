"""Vulnerabilities scoring: one point off per known vulnerability."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    DetailLogger,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes.vulnerabilities import HAS_OSV_VULNERABILITIES


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, [HAS_OSV_VULNERABILITIES]):
        return invalid_probe_results(name, findings, [HAS_OSV_VULNERABILITIES])

    vulns = [f for f in findings if f.outcome is Outcome.TRUE]
    for f in vulns:
        log_finding(dl, f, DetailType.WARN)
    score = max(MAX_RESULT_SCORE - len(vulns), MIN_RESULT_SCORE)
    return create_result_with_score(name, f"{len(vulns)} existing vulnerabilities detected", score)
