"""Maintainer-Response scoring: share of bug/security issues left without a reaction."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_inconclusive_result,
    create_max_score_result,
    create_result_with_score,
    invalid_probe_results,
)
from repo_vigil.finding import FileType, Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, LogMessage
from repo_vigil.probes import maintainer_response as mr

MAX_ISSUES_IN_REASON = 20

# (violation percentage above which the score applies, score), checked in order
SCORE_BANDS: tuple[tuple[float, int], ...] = ((40.0, 0), (20.0, 5))


def _issue_url(f: Finding) -> str:
    if f.location is not None and f.location.type is FileType.URL:
        return f.location.path
    return ""


def format_issue_list(numbers: list[int], limit: int = MAX_ISSUES_IN_REASON) -> str:
    shown = ", ".join(f"#{n}" for n in numbers[:limit])
    if len(numbers) > limit:
        shown += f" ... +{len(numbers) - limit} more"
    return shown


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    probe = mr.MAINTAINERS_RESPOND_TO_BUG_ISSUES
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])

    threshold = mr.RESPONSE_THRESHOLD_DAYS
    evaluated = violations = worst_ok = 0
    violating: list[int] = []
    for f in findings:
        lag = int(f.values.get(mr.LAG_DAYS_KEY, 0))
        if f.outcome is Outcome.FALSE:
            evaluated += 1
            violations += 1
            url = _issue_url(f)
            text = f"{f.message} ({url})" if url and url not in f.message else f.message
            dl.warn(LogMessage(text=text, finding=f))
            number = int(f.values.get(mr.ISSUE_NUMBER_KEY, 0))
            if number > 0:
                violating.append(number)
        elif f.outcome is Outcome.TRUE:
            evaluated += 1
            if lag < threshold:
                worst_ok = max(worst_ok, lag)

    if evaluated == 0:
        return create_inconclusive_result(
            name, "no issues with bug/security labels found to evaluate"
        )

    if violations == 0:
        return create_max_score_result(
            name,
            f"Evaluated {evaluated} issues with bug/security labels. "
            f"All {evaluated} had timely maintainer activity "
            f"(no label went >={threshold} days without response)",
        )

    percent = violations / evaluated * 100.0
    score = 10
    for limit, band_score in SCORE_BANDS:
        if percent > limit:
            score = band_score
            break

    reason = (
        f"Evaluated {evaluated} issues with bug/security labels. "
        f"{evaluated - violations} had activity by a maintainer within {threshold} days"
    )
    if worst_ok > 0:
        reason += f" (worst {worst_ok} days)"
    reason += f". {percent:.1f}% exceeded {threshold} days without response"
    if violating:
        reason += f"; violating issues: {format_issue_list(violating)}"

    dl.debug(LogMessage(text=f"evaluated issues: {evaluated}; violations: {violations}"))
    if violating:
        dl.debug(
            LogMessage(
                text=f"issues exceeding {threshold} days without response: {violating}"
            )
        )
    return create_result_with_score(name, reason, score)
