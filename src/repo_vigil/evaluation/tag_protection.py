"""Tag-Protection scoring.

Tiers, each requiring the ones before it on every release tag:

0. some release tag is unprotected
3. all tags protected, but deletion or force push is allowed
6. deletion and force push blocked, but updates allowed
8. updates blocked, but admins exempt or tag creation unrestricted
10. protection enforced on admins with restricted creation

Signed tags are reported but not scored.
"""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_inconclusive_result,
    create_min_score_result,
    create_result_with_score,
    invalid_probe_results,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, LogMessage
from repo_vigil.probes import tag_protection as tp

EXPECTED_PROBES = (
    tp.TAGS_ARE_PROTECTED,
    tp.BLOCKS_DELETE_ON_TAGS,
    tp.BLOCKS_FORCE_PUSH_ON_TAGS,
    tp.BLOCKS_UPDATE_ON_TAGS,
    tp.TAG_PROTECTION_APPLIES_TO_ADMINS,
    tp.RESTRICTS_TAG_CREATION,
    tp.REQUIRES_SIGNED_TAGS,
)


def _counts(findings: list[Finding], probe: str) -> tuple[int, int]:
    applicable = [
        f for f in findings if f.probe == probe and f.outcome is not Outcome.NOT_APPLICABLE
    ]
    return sum(1 for f in applicable if f.outcome is Outcome.TRUE), len(applicable)


def _fully(findings: list[Finding], probe: str) -> bool:
    ok, total = _counts(findings, probe)
    return total > 0 and ok == total


def _log_status(dl: DetailLogger, findings: list[Finding], probe: str, feature: str) -> bool:
    ok = _fully(findings, probe)
    _, total = _counts(findings, probe)
    if ok:
        dl.info(LogMessage(text=f"{feature} on all release tags"))
    elif total:
        dl.warn(LogMessage(text=f"Not {feature.lower()} on all release tags"))
    return ok


def _log_unprotected(dl: DetailLogger, findings: list[Finding], probe: str, lacking: str) -> None:
    for f in findings:
        if f.probe == probe and f.outcome is Outcome.FALSE:
            tag = f.values.get(tp.TAG_NAME_KEY) or "unknown"
            dl.debug(LogMessage(text=f"Tag '{tag}' lacks {lacking}", finding=f))


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    _, tags = _counts(findings, tp.TAGS_ARE_PROTECTED)
    if tags == 0:
        return create_inconclusive_result(name, "no release tags found")

    if not _fully(findings, tp.TAGS_ARE_PROTECTED):
        dl.warn(LogMessage(text="Not all release tags are protected"))
        _log_unprotected(dl, findings, tp.TAGS_ARE_PROTECTED, "protection")
        return create_min_score_result(name, "not all release tags are protected")
    dl.info(LogMessage(text="All release tags are protected"))

    delete_ok = _log_status(dl, findings, tp.BLOCKS_DELETE_ON_TAGS, "Tag deletion is blocked")
    force_ok = _log_status(dl, findings, tp.BLOCKS_FORCE_PUSH_ON_TAGS, "Force push is blocked")
    if not delete_ok:
        _log_unprotected(dl, findings, tp.BLOCKS_DELETE_ON_TAGS, "delete protection")
    if not force_ok:
        _log_unprotected(dl, findings, tp.BLOCKS_FORCE_PUSH_ON_TAGS, "force-push protection")
    if not (delete_ok and force_ok):
        return create_result_with_score(
            name, "release tags are protected but can be deleted or force pushed", 3
        )

    if not _log_status(dl, findings, tp.BLOCKS_UPDATE_ON_TAGS, "Tag updates are blocked"):
        _log_unprotected(dl, findings, tp.BLOCKS_UPDATE_ON_TAGS, "update protection")
        return create_result_with_score(name, "release tags are protected but can be updated", 6)

    admins_ok = _log_status(
        dl, findings, tp.TAG_PROTECTION_APPLIES_TO_ADMINS, "Tag protection applies to administrators"
    )
    creation_ok = _log_status(
        dl, findings, tp.RESTRICTS_TAG_CREATION, "Tag creation is restricted"
    )
    if not admins_ok:
        _log_unprotected(dl, findings, tp.TAG_PROTECTION_APPLIES_TO_ADMINS, "admin enforcement")
    if not creation_ok:
        _log_unprotected(dl, findings, tp.RESTRICTS_TAG_CREATION, "creation restriction")

    _, signed_total = _counts(findings, tp.REQUIRES_SIGNED_TAGS)
    if _fully(findings, tp.REQUIRES_SIGNED_TAGS):
        dl.info(LogMessage(text="Signed tags are required on all release tags"))
    elif signed_total:
        dl.debug(LogMessage(text="Signed tags are not required on all release tags"))

    if admins_ok and creation_ok:
        return create_result_with_score(name, "release tags are fully protected", 10)
    return create_result_with_score(
        name, "release tag protection does not cover administrators or tag creation", 8
    )
