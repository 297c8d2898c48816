"""SBOM scoring: 3 for any SBOM, plus 3 for a release asset, 1 for a
security insights declaration and 3 for a CI artifact."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    DetailLogger,
    create_min_score_result,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes import sbom

EXPECTED_PROBES = (
    sbom.SBOM_EXISTS,
    sbom.SBOM_RELEASE_ASSET_EXISTS,
    sbom.SBOM_STANDARDS_FILE_USED,
    sbom.SBOM_CICD_ARTIFACT_EXISTS,
)

PROBE_POINTS: dict[str, int] = {
    sbom.SBOM_EXISTS: 3,
    sbom.SBOM_RELEASE_ASSET_EXISTS: 3,
    sbom.SBOM_STANDARDS_FILE_USED: 1,
    sbom.SBOM_CICD_ARTIFACT_EXISTS: 3,
}


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    present: set[str] = set()
    for f in findings:
        if f.outcome is Outcome.TRUE:
            log_finding(dl, f, DetailType.INFO)
            present.add(f.probe)
        else:
            log_finding(dl, f, DetailType.WARN)

    if sbom.SBOM_EXISTS not in present:
        return create_min_score_result(name, "SBOM file not detected")
    score = min(sum(PROBE_POINTS[p] for p in present), MAX_RESULT_SCORE)
    return create_result_with_score(name, "SBOM file detected", score)
