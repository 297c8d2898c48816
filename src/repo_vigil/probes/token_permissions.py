"""Token-Permissions probes over the GITHUB_TOKEN permissions declared by workflows."""

from __future__ import annotations

from collections.abc import Callable

from repo_vigil.finding import Finding, Outcome, new_not_available, new_with
from repo_vigil.models import (
    PermissionLevel,
    PermissionLocation,
    RawResults,
    TokenPermission,
    TokenPermissionsData,
)
from repo_vigil.probes._helpers import require

HAS_GITHUB_WORKFLOW_PERMISSION_UNDECLARED = "hasGitHubWorkflowPermissionUndeclared"
HAS_GITHUB_WORKFLOW_PERMISSION_NONE = "hasGitHubWorkflowPermissionNone"
HAS_GITHUB_WORKFLOW_PERMISSION_READ = "hasGitHubWorkflowPermissionRead"
HAS_GITHUB_WORKFLOW_PERMISSION_UNKNOWN = "hasGitHubWorkflowPermissionUnknown"
HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_TOP = "hasNoGitHubWorkflowPermissionWriteAllTop"
HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_JOB = "hasNoGitHubWorkflowPermissionWriteAllJob"
TOP_LEVEL_PERMISSIONS = "topLevelPermissions"
JOB_LEVEL_PERMISSIONS = "jobLevelPermissions"

PERMISSION_LOCATION_KEY = "permissionLocation"
TOKEN_NAME_KEY = "tokenName"
PERMISSION_LEVEL_KEY = "permissionLevel"
JOB_NAME_KEY = "jobName"


def permission_text(t: TokenPermission) -> str:
    if t.type is PermissionLevel.UNDECLARED:
        return f"no {t.location_type} permission defined"
    if not t.name:
        return f"{t.location_type} permissions set to '{t.value}'"
    return f"{t.location_type} '{t.name}' permission set to '{t.value}'"


def permission_finding(probe: str, outcome: Outcome, t: TokenPermission) -> Finding:
    values: dict[str, str | int] = {
        PERMISSION_LOCATION_KEY: t.location_type.value,
        PERMISSION_LEVEL_KEY: t.type.value,
    }
    if t.name:
        values[TOKEN_NAME_KEY] = t.name
    if t.job_name:
        values[JOB_NAME_KEY] = t.job_name
    return new_with(probe, outcome, permission_text(t), t.file.location(), values)


def _level_probe(
    raw: RawResults | None, probe: str, level: PermissionLevel, description: str
) -> tuple[list[Finding], str]:
    """TRUE for every declaration at ``level``, a single FALSE when there are none."""
    data: TokenPermissionsData = require(raw, "token_permissions", probe)
    if not data.token_permissions:
        return [new_not_available(probe, "no token permissions found")], probe
    findings = [
        permission_finding(probe, Outcome.TRUE, t)
        for t in data.token_permissions
        if t.type is level
    ]
    if not findings:
        findings = [new_with(probe, Outcome.FALSE, f"no {description} permissions found")]
    return findings, probe


def _write_probe(
    raw: RawResults | None,
    probe: str,
    matches: Callable[[TokenPermission], bool],
    description: str,
) -> tuple[list[Finding], str]:
    """FALSE for every matching write declaration, a single TRUE when there are none."""
    data: TokenPermissionsData = require(raw, "token_permissions", probe)
    if not data.token_permissions:
        return [new_not_available(probe, "no token permissions found")], probe
    findings = [
        permission_finding(probe, Outcome.FALSE, t)
        for t in data.token_permissions
        if t.type is PermissionLevel.WRITE and matches(t)
    ]
    if not findings:
        findings = [new_with(probe, Outcome.TRUE, f"no {description} found")]
    return findings, probe


def has_github_workflow_permission_undeclared(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _level_probe(
        raw, HAS_GITHUB_WORKFLOW_PERMISSION_UNDECLARED, PermissionLevel.UNDECLARED, "undeclared"
    )


def has_github_workflow_permission_none(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _level_probe(raw, HAS_GITHUB_WORKFLOW_PERMISSION_NONE, PermissionLevel.NONE, "'none'")


def has_github_workflow_permission_read(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _level_probe(raw, HAS_GITHUB_WORKFLOW_PERMISSION_READ, PermissionLevel.READ, "read")


def has_github_workflow_permission_unknown(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _level_probe(
        raw, HAS_GITHUB_WORKFLOW_PERMISSION_UNKNOWN, PermissionLevel.UNKNOWN, "unscored"
    )


def has_no_github_workflow_permission_write_all_top(
    raw: RawResults | None,
) -> tuple[list[Finding], str]:
    return _write_probe(
        raw,
        HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_TOP,
        lambda t: t.location_type is PermissionLocation.TOP and not t.name,
        "top-level write-all permissions",
    )


def has_no_github_workflow_permission_write_all_job(
    raw: RawResults | None,
) -> tuple[list[Finding], str]:
    return _write_probe(
        raw,
        HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_JOB,
        lambda t: t.location_type is PermissionLocation.JOB and not t.name,
        "job-level write-all permissions",
    )


def top_level_permissions(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _write_probe(
        raw,
        TOP_LEVEL_PERMISSIONS,
        lambda t: t.location_type is PermissionLocation.TOP and bool(t.name),
        "top-level write permissions",
    )


def job_level_permissions(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _write_probe(
        raw,
        JOB_LEVEL_PERMISSIONS,
        lambda t: t.location_type is PermissionLocation.JOB and bool(t.name),
        "job-level write permissions",
    )
