"""Maintained scoring: recent activity measured in weekly units."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_min_score_result,
    create_proportional_score,
    create_result_with_score,
    evidence_confidence,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType
from repo_vigil.probes import maintained as mt

EXPECTED_PROBES = (
    mt.ARCHIVED,
    mt.HAS_RECENT_COMMITS,
    mt.ISSUE_ACTIVITY_BY_PROJECT_MEMBER,
    mt.CREATED_RECENTLY,
)

ACTIVITY_PER_WEEK = 1
DAYS_IN_ONE_WEEK = 7


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    archived = recently_created = False
    commits = issues = 0
    for f in findings:
        if f.outcome is Outcome.TRUE:
            match f.probe:
                case mt.ARCHIVED:
                    archived = True
                    log_finding(dl, f, DetailType.WARN)
                case mt.CREATED_RECENTLY:
                    recently_created = True
                    log_finding(dl, f, DetailType.WARN)
                case mt.HAS_RECENT_COMMITS:
                    commits = int(f.values.get(mt.COMMITS_KEY, 0))
                case mt.ISSUE_ACTIVITY_BY_PROJECT_MEMBER:
                    issues = int(f.values.get(mt.ISSUES_KEY, 0))
        elif f.outcome is not Outcome.FALSE:
            log_finding(dl, f, DetailType.DEBUG)

    if archived:
        return create_min_score_result(name, "project is archived")
    if recently_created:
        return create_min_score_result(
            name,
            f"project was created in last {mt.LOOK_BACK_DAYS} days. "
            "please review its contents carefully",
        )

    expected = ACTIVITY_PER_WEEK * mt.LOOK_BACK_DAYS // DAYS_IN_ONE_WEEK
    score = create_proportional_score(commits + issues, expected)
    reason = (
        f"{commits} commit(s) and {issues} issue activity found "
        f"in the last {mt.LOOK_BACK_DAYS} days"
    )
    return create_result_with_score(
        name, normalize_reason(reason, score), score, evidence_confidence(findings)
    )
