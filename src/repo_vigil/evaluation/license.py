"""License scoring: 6 for a license file, 3 for placing it at the top, 1 for approval."""

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
from repo_vigil.probes import license as lic

EXPECTED_PROBES = (
    lic.HAS_LICENSE_FILE,
    lic.HAS_FSF_OR_OSI_APPROVED_LICENSE,
    lic.HAS_LICENSE_FILE_AT_TOP_DIR,
)

POINTS = {
    lic.HAS_LICENSE_FILE: 6,
    lic.HAS_LICENSE_FILE_AT_TOP_DIR: 3,
    lic.HAS_FSF_OR_OSI_APPROVED_LICENSE: 1,
}


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    passed: set[str] = set()
    for f in findings:
        if f.outcome is Outcome.TRUE:
            if f.probe != lic.HAS_LICENSE_FILE:
                log_finding(dl, f, DetailType.INFO)
            passed.add(f.probe)
        elif f.outcome is Outcome.FALSE and f.probe != lic.HAS_LICENSE_FILE:
            log_finding(dl, f, DetailType.WARN)

    if lic.HAS_LICENSE_FILE not in passed:
        return create_min_score_result(name, "license file not detected")
    # Each probe counts once however many files it matched.
    score = sum(POINTS[probe] for probe in passed)
    return create_result_with_score(name, "license file detected", score)
