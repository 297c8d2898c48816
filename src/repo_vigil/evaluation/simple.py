"""Scoring for checks backed by a single probe with a short rule."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_inconclusive_result,
    create_max_score_result,
    create_min_score_result,
    create_proportional_score,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
    normalize_reason,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import BadgeLevel, CheckResult, DetailType
from repo_vigil.probes import (
    cii_best_practices,
    contributors,
    dangerous_workflow,
    dependency_update_tool,
    packaging,
    webhooks,
)

# ─── Dependency-Update-Tool ───────────────────────────────────


def evaluate_dependency_update_tool(
    name: str, findings: list[Finding], dl: DetailLogger
) -> CheckResult:
    probe = dependency_update_tool.DEPENDENCY_UPDATE_TOOL_CONFIGURED
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])

    for f in findings:
        if f.outcome is Outcome.TRUE:
            log_finding(dl, f, DetailType.INFO)
            return create_max_score_result(name, "update tool detected")
    log_finding(dl, findings[0], DetailType.WARN)
    return create_min_score_result(name, "no update tool detected")


# ─── Packaging ────────────────────────────────────────────────


def evaluate_packaging(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    probe = packaging.PACKAGED_WITH_AUTOMATED_WORKFLOW
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])

    for f in findings:
        if f.outcome is Outcome.TRUE:
            log_finding(dl, f, DetailType.INFO)
            return create_max_score_result(name, "packaging workflow detected")
    for f in findings:
        log_finding(dl, f, DetailType.WARN)
    # Publishing may happen outside the hosting platform.
    return create_inconclusive_result(name, "packaging workflow not detected")


# ─── Contributors ─────────────────────────────────────────────

NUM_CONTRIBUTOR_ENTITIES = 3


def evaluate_contributors(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    probe = contributors.CONTRIBUTORS_FROM_ORG_OR_COMPANY
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])

    entities = [f for f in findings if f.outcome is Outcome.TRUE]
    for f in entities:
        log_finding(dl, f, DetailType.INFO)
    if not entities:
        return create_min_score_result(name, "project has 0 contributing companies or organizations")
    score = create_proportional_score(len(entities), NUM_CONTRIBUTOR_ENTITIES)
    reason = f"project has {len(entities)} contributing companies or organizations"
    return create_result_with_score(name, normalize_reason(reason, score), score)


# ─── Dangerous-Workflow ───────────────────────────────────────


def evaluate_dangerous_workflow(
    name: str, findings: list[Finding], dl: DetailLogger
) -> CheckResult:
    expected = (
        dangerous_workflow.HAS_DANGEROUS_WORKFLOW_SCRIPT_INJECTION,
        dangerous_workflow.HAS_DANGEROUS_WORKFLOW_UNTRUSTED_CHECKOUT,
    )
    if not unique_probes_equal(findings, expected):
        return invalid_probe_results(name, findings, expected)

    if all(f.outcome is Outcome.NOT_APPLICABLE for f in findings):
        return create_inconclusive_result(name, "no workflows found")
    dangerous = [f for f in findings if f.outcome is Outcome.TRUE]
    for f in dangerous:
        log_finding(dl, f, DetailType.WARN)
    if dangerous:
        return create_min_score_result(name, "dangerous workflow patterns detected")
    return create_max_score_result(name, "no dangerous workflow patterns detected")


# ─── Webhooks ─────────────────────────────────────────────────


def evaluate_webhooks(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    probe = webhooks.WEBHOOKS_USE_SECRETS
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])
    if findings[0].outcome is Outcome.NOT_AVAILABLE:
        return create_max_score_result(name, "no webhooks defined")

    secured = 0
    for f in findings:
        if f.outcome is Outcome.TRUE:
            secured += 1
        else:
            log_finding(dl, f, DetailType.WARN)
    total = len(findings)
    if secured == total:
        return create_max_score_result(name, "all webhooks use secrets")
    score = create_proportional_score(secured, total)
    reason = f"{total - secured} out of {total} webhooks do not use secrets"
    return create_result_with_score(name, normalize_reason(reason, score), score)


# ─── CII-Best-Practices ───────────────────────────────────────

BADGE_SCORES: dict[BadgeLevel, int] = {
    BadgeLevel.IN_PROGRESS: 2,
    BadgeLevel.PASSING: 5,
    BadgeLevel.SILVER: 7,
    BadgeLevel.GOLD: 10,
}


def evaluate_cii_best_practices(
    name: str, findings: list[Finding], dl: DetailLogger
) -> CheckResult:
    probe = cii_best_practices.HAS_OPENSSF_BADGE
    if not unique_probes_equal(findings, [probe]):
        return invalid_probe_results(name, findings, [probe])

    f = findings[0]
    if f.outcome is not Outcome.TRUE:
        log_finding(dl, f, DetailType.WARN)
        return create_min_score_result(name, "no effort to earn an OpenSSF best practices badge detected")

    level = BadgeLevel(str(f.values.get(cii_best_practices.LEVEL_KEY, BadgeLevel.UNKNOWN)))
    score = BADGE_SCORES.get(level, 0)
    log_finding(dl, f, DetailType.INFO)
    if level is BadgeLevel.IN_PROGRESS:
        reason = "badge detected: InProgress"
    else:
        reason = f"badge detected: {level.value.capitalize()}"
    return create_result_with_score(name, reason, score)
