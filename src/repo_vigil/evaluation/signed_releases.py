"""Signed-Releases scoring: 8 per signed release, 10 with provenance, averaged."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    ScoreError,
    create_inconclusive_result,
    create_min_score_result,
    create_result_with_score,
    create_runtime_error_result,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, LogMessage
from repo_vigil.probes import signed_releases as sr

EXPECTED_PROBES = (sr.RELEASES_ARE_SIGNED, sr.RELEASES_HAVE_PROVENANCE)

SIGNED_SCORE = 8
PROVENANCE_SCORE = 10


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)
    if any(f.outcome in (Outcome.NOT_APPLICABLE, Outcome.NOT_AVAILABLE) for f in findings):
        return create_inconclusive_result(name, "no releases found")

    releases: list[str] = []
    per_release: dict[str, int] = {}
    positives = 0
    for f in findings:
        release = str(f.values.get(sr.RELEASE_NAME_KEY, ""))
        if not release:
            return create_runtime_error_result(
                name, ScoreError(f"Finding from {f.probe} is missing its release name.")
            )
        if release not in releases:
            dl.debug(LogMessage(text=f"GitHub release found: {release}"))
            releases.append(release)

        if f.outcome is not Outcome.TRUE:
            log_finding(dl, f, DetailType.WARN)
            continue
        log_finding(dl, f, DetailType.INFO)
        positives += 1
        if f.probe == sr.RELEASES_HAVE_PROVENANCE:
            per_release[release] = PROVENANCE_SCORE
        else:
            per_release.setdefault(release, SIGNED_SCORE)

    if positives == 0:
        return create_min_score_result(
            name, "Project has not signed or included provenance with any releases."
        )
    score = sum(per_release.values()) // len(releases)
    reason = (
        f"{len(per_release)} out of the last {len(releases)} releases "
        f"have a total of {positives} signed artifacts."
    )
    return create_result_with_score(name, reason, score)
