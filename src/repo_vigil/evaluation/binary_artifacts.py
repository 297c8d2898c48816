"""Binary-Artifacts scoring: one point off per checked-in binary."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    DetailLogger,
    create_max_score_result,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes.binary_artifacts import HAS_BINARY_ARTIFACTS


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, [HAS_BINARY_ARTIFACTS]):
        return invalid_probe_results(name, findings, [HAS_BINARY_ARTIFACTS])

    if findings[0].outcome is Outcome.FALSE:
        return create_max_score_result(name, "no binaries found in the repo")

    binaries = [f for f in findings if f.outcome is Outcome.TRUE]
    for f in binaries:
        log_finding(dl, f, DetailType.WARN)
    score = max(MAX_RESULT_SCORE - len(binaries), MIN_RESULT_SCORE)
    return create_result_with_score(name, f"binaries present in source code: {len(binaries)}", score)
