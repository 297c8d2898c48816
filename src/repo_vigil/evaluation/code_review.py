"""Code-Review scoring over human-authored changesets."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_inconclusive_result,
    create_max_score_result,
    create_proportional_score,
    create_result_with_score,
    evidence_confidence,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, LogMessage
from repo_vigil.probes import code_review as cr

EXPECTED_PROBES = (cr.CODE_REVIEWED, cr.CODE_APPROVED, cr.CODE_REVIEW_TWO_REVIEWERS)

# Every human change reviewed, but some bot changes landed unreviewed.
UNREVIEWED_BOT_SCORE = 7


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    for f in findings:
        if f.probe != cr.CODE_REVIEWED:
            log_finding(dl, f, DetailType.DEBUG)

    reviewed = next(f for f in findings if f.probe == cr.CODE_REVIEWED)
    if reviewed.outcome is Outcome.NOT_APPLICABLE:
        return create_inconclusive_result(name, "no changesets found to review")
    if reviewed.outcome is Outcome.NOT_AVAILABLE:
        return create_inconclusive_result(name, reviewed.message)

    confidence = evidence_confidence(findings)
    count = int(reviewed.values.get(cr.REVIEWED_KEY, 0))
    total = int(reviewed.values.get(cr.TOTAL_KEY, 0))
    unreviewed_bots = int(reviewed.values.get(cr.UNREVIEWED_BOT_KEY, 0))

    if count < total:
        log_finding(dl, reviewed, DetailType.WARN)
        score = create_proportional_score(count, total)
        reason = f"found {total - count} unreviewed changesets out of {total}"
        return create_result_with_score(
            name, normalize_reason(reason, score), score, confidence
        )

    log_finding(dl, reviewed, DetailType.INFO)
    if unreviewed_bots:
        dl.warn(LogMessage(text=f"{unreviewed_bots} bot changesets merged without review"))
        return create_result_with_score(
            name,
            f"all human changesets reviewed, {unreviewed_bots} bot changesets unreviewed",
            UNREVIEWED_BOT_SCORE,
            confidence,
        )
    return create_max_score_result(name, "all changesets reviewed", confidence)
