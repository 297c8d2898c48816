"""CI-Tests scoring."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_inconclusive_result,
    create_proportional_score,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes.ci_tests import TESTS_RUN_IN_CI


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, [TESTS_RUN_IN_CI]):
        return invalid_probe_results(name, findings, [TESTS_RUN_IN_CI])
    if findings[0].outcome is Outcome.NOT_APPLICABLE:
        return create_inconclusive_result(name, "no pull request found")

    tested = 0
    for f in findings:
        if f.outcome is Outcome.TRUE:
            tested += 1
            log_finding(dl, f, DetailType.INFO)
        else:
            log_finding(dl, f, DetailType.WARN)
    total = len(findings)
    score = create_proportional_score(tested, total)
    reason = f"{tested} out of {total} merged PRs checked by a CI test"
    return create_result_with_score(name, normalize_reason(reason, score), score)
