"""Security-Policy scoring: 6 for links, 3 for free text, 1 for disclosure wording."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_min_score_result,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes import security_policy as sp

EXPECTED_PROBES = (
    sp.SECURITY_POLICY_PRESENT,
    sp.SECURITY_POLICY_CONTAINS_LINKS,
    sp.SECURITY_POLICY_CONTAINS_VULNERABILITY_DISCLOSURE,
    sp.SECURITY_POLICY_CONTAINS_TEXT,
)

POINTS = {
    sp.SECURITY_POLICY_CONTAINS_LINKS: 6,
    sp.SECURITY_POLICY_CONTAINS_TEXT: 3,
    sp.SECURITY_POLICY_CONTAINS_VULNERABILITY_DISCLOSURE: 1,
}


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    present = [f for f in findings if f.probe == sp.SECURITY_POLICY_PRESENT]
    if not any(f.outcome is Outcome.TRUE for f in present):
        for f in present:
            log_finding(dl, f, DetailType.WARN)
        return create_min_score_result(name, "security policy file not detected")

    passed: set[str] = set()
    for f in findings:
        if f.probe == sp.SECURITY_POLICY_PRESENT:
            log_finding(dl, f, DetailType.INFO)
        elif f.outcome is Outcome.TRUE:
            passed.add(f.probe)
        else:
            log_finding(dl, f, DetailType.WARN)

    score = sum(POINTS[probe] for probe in passed)
    return create_result_with_score(name, "security policy file detected", score)
