"""Token-Permissions scoring.

Write access is grouped per workflow file. A workflow whose top level and
jobs are both unrestricted (undeclared or ``write-all``) scores 0 outright;
otherwise each top-level write costs points by how much damage it allows:
contents, packages and actions cost everything, deployments and
security-events cost 1, checks and statuses cost 0.5.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    DetailLogger,
    create_inconclusive_result,
    create_max_score_result,
    create_result_with_score,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, PermissionLocation
from repo_vigil.probes import token_permissions as tp

EXPECTED_PROBES = (
    tp.HAS_GITHUB_WORKFLOW_PERMISSION_UNDECLARED,
    tp.HAS_GITHUB_WORKFLOW_PERMISSION_NONE,
    tp.HAS_GITHUB_WORKFLOW_PERMISSION_READ,
    tp.HAS_GITHUB_WORKFLOW_PERMISSION_UNKNOWN,
    tp.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_TOP,
    tp.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_JOB,
    tp.TOP_LEVEL_PERMISSIONS,
    tp.JOB_LEVEL_PERMISSIONS,
)

# Stands for every scope: an undeclared block or write-all.
ALL_SCOPES = "all"

TOP_LEVEL_WRITE_COST: dict[str, float] = {
    "statuses": 0.5,
    "checks": 0.5,
    "security-events": 1.0,
    "deployments": 1.0,
    "contents": float(MAX_RESULT_SCORE),
    "packages": float(MAX_RESULT_SCORE),
    "actions": float(MAX_RESULT_SCORE),
}
UNRESTRICTED_TOP_LEVEL_COST = 0.5


@dataclass(slots=True)
class WorkflowWrites:
    top: set[str] = field(default_factory=set)
    job: set[str] = field(default_factory=set)


def score_writes(writes: dict[str, WorkflowWrites]) -> int:
    score = float(MAX_RESULT_SCORE)
    for perms in writes.values():
        if ALL_SCOPES in perms.top:
            if ALL_SCOPES in perms.job:
                return MIN_RESULT_SCORE
            score -= UNRESTRICTED_TOP_LEVEL_COST
        for scope, cost in TOP_LEVEL_WRITE_COST.items():
            if scope in perms.top:
                score -= cost
        if score < MIN_RESULT_SCORE:
            break
    return max(int(score), MIN_RESULT_SCORE)


def _record(writes: dict[str, WorkflowWrites], f: Finding, scope: str) -> None:
    path = f.location.path if f.location is not None else ""
    entry = writes.setdefault(path, WorkflowWrites())
    if f.values.get(tp.PERMISSION_LOCATION_KEY) == PermissionLocation.TOP.value:
        entry.top.add(scope)
    else:
        entry.job.add(scope)


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)
    if any(f.outcome is Outcome.NOT_AVAILABLE for f in findings):
        return create_inconclusive_result(name, "no GitHub workflow tokens found")

    writes: dict[str, WorkflowWrites] = {}
    for f in findings:
        at_top = f.values.get(tp.PERMISSION_LOCATION_KEY) == PermissionLocation.TOP.value
        match f.probe, f.outcome:
            case tp.HAS_GITHUB_WORKFLOW_PERMISSION_UNDECLARED, Outcome.TRUE:
                # Only an undeclared top level is worth a warning.
                log_finding(dl, f, DetailType.WARN if at_top else DetailType.DEBUG)
                _record(writes, f, ALL_SCOPES)
            case (
                tp.HAS_GITHUB_WORKFLOW_PERMISSION_NONE | tp.HAS_GITHUB_WORKFLOW_PERMISSION_READ,
                Outcome.TRUE,
            ):
                log_finding(dl, f, DetailType.INFO)
            case tp.HAS_GITHUB_WORKFLOW_PERMISSION_UNKNOWN, Outcome.TRUE:
                log_finding(dl, f, DetailType.DEBUG)
            case (
                tp.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_TOP
                | tp.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_JOB,
                Outcome.FALSE,
            ):
                log_finding(dl, f, DetailType.WARN)
                _record(writes, f, ALL_SCOPES)
            case tp.TOP_LEVEL_PERMISSIONS | tp.JOB_LEVEL_PERMISSIONS, Outcome.FALSE:
                log_finding(dl, f, DetailType.WARN)
                _record(writes, f, str(f.values.get(tp.TOKEN_NAME_KEY, ALL_SCOPES)))

    score = score_writes(writes)
    if score == MAX_RESULT_SCORE:
        return create_max_score_result(name, "tokens are read-only in GitHub workflows")
    return create_result_with_score(name, "non read-only tokens detected in GitHub workflows", score)
