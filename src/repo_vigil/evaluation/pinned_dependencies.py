"""Pinned-Dependencies scoring: each dependency type contributes equally."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    INCONCLUSIVE_RESULT_SCORE,
    MAX_RESULT_SCORE,
    DetailLogger,
    ProportionalScore,
    ScoreError,
    create_inconclusive_result,
    create_max_score_result,
    create_proportional_score_weighted,
    create_result_with_score,
    create_runtime_error_result,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, LogMessage
from repo_vigil.probes import pinned_dependencies as pd


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, [pd.PINS_DEPENDENCIES]):
        return invalid_probe_results(name, findings, [pd.PINS_DEPENDENCIES])
    if findings[0].outcome is Outcome.NOT_APPLICABLE:
        return create_inconclusive_result(name, "no dependencies found")

    # dependency type -> [pinned, total]
    counts: dict[str, list[int]] = {}
    for f in findings:
        kind = str(f.values.get(pd.DEPENDENCY_TYPE_KEY, ""))
        entry = counts.setdefault(kind, [0, 0])
        entry[1] += 1
        if f.outcome is Outcome.TRUE:
            entry[0] += 1
        else:
            log_finding(dl, f, DetailType.WARN)

    for kind, (pinned, total) in counts.items():
        dl.info(LogMessage(text=f"{pinned} out of {total} {kind} dependencies pinned"))

    try:
        score = create_proportional_score_weighted(
            ProportionalScore(success=pinned, total=total, weight=1)
            for pinned, total in counts.values()
        )
    except ScoreError as exc:
        return create_runtime_error_result(name, exc)

    if score == INCONCLUSIVE_RESULT_SCORE:
        return create_inconclusive_result(name, "no dependencies found")
    if score == MAX_RESULT_SCORE:
        return create_max_score_result(name, "all dependencies are pinned")
    return create_result_with_score(
        name, normalize_reason("dependency not pinned by hash detected", score), score
    )
