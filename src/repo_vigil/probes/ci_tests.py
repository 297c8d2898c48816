"""CI-Tests probe: were merged pull requests tested by CI at their head commit?"""

from __future__ import annotations

from repo_vigil.finding import FileType, Finding, Location, Outcome, new_not_applicable, new_with
from repo_vigil.models import CITestData, RawResults, RevisionCIInfo
from repo_vigil.probes._helpers import require

TESTS_RUN_IN_CI = "testsRunInCI"

PULL_REQUEST_KEY = "pullRequest"

_SUCCESS = "success"

TEST_PATTERNS: tuple[str, ...] = (
    "appveyor",
    "buildkite",
    "circleci",
    "e2e",
    "github-actions",
    "jenkins",
    "mergeable",
    "packit-as-a-service",
    "semaphoreci",
    "test",
    "travis-ci",
    "flutter-dashboard",
    "cirrus-ci",
    "cirrus ci",
    "azure-pipelines",
    "ci/woodpecker",
    "vstfs:///build/build",
)


def is_test(name: str) -> bool:
    lowered = name.lower()
    return any(pattern in lowered for pattern in TEST_PATTERNS)


def _url_location(url: str) -> Location | None:
    return Location(path=url, type=FileType.URL) if url else None


def _tested_by(info: RevisionCIInfo) -> tuple[str, str] | None:
    """(context, url) of the first successful CI test at the PR head, if any."""
    for status in info.statuses:
        if status.state == _SUCCESS and (is_test(status.context) or is_test(status.target_url)):
            return status.context, status.url
    for run in info.check_runs:
        if run.status == "completed" and run.conclusion == _SUCCESS and is_test(run.app_slug):
            return run.app_slug, run.url
    return None


def tests_run_in_ci(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = TESTS_RUN_IN_CI
    data: CITestData = require(raw, "ci_tests", probe)
    if not data.ci_info:
        return [new_not_applicable(probe, "no pull requests found")], probe

    findings = []
    for info in data.ci_info:
        values: dict[str, str | int] = {PULL_REQUEST_KEY: info.pull_request_number}
        hit = _tested_by(info)
        if hit is not None:
            context, url = hit
            message = f"CI test found: pr: {info.pull_request_number}, context: {context}"
            findings.append(new_with(probe, Outcome.TRUE, message, _url_location(url), values))
        else:
            message = (
                f"merged PR {info.pull_request_number} without CI test at HEAD: {info.head_sha}"
            )
            findings.append(new_with(probe, Outcome.FALSE, message, values=values))
    return findings, probe
