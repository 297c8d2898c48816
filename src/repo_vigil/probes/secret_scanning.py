"""Secret-Scanning probes: native GitHub scanning and third-party scanners."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_not_available, new_with
from repo_vigil.models import RawResults, SecretScanningData, SecretScanningTool
from repo_vigil.probes._helpers import require

HAS_GITHUB_SECRET_SCANNING_ENABLED = "hasGitHubSecretScanningEnabled"
HAS_GITHUB_PUSH_PROTECTION_ENABLED = "hasGitHubPushProtectionEnabled"
HAS_THIRD_PARTY_GITLEAKS = "hasThirdPartyGitleaks"
HAS_THIRD_PARTY_TRUFFLEHOG = "hasThirdPartyTruffleHog"
HAS_THIRD_PARTY_DETECT_SECRETS = "hasThirdPartyDetectSecrets"
HAS_THIRD_PARTY_GIT_SECRETS = "hasThirdPartyGitSecrets"
HAS_THIRD_PARTY_GGSHIELD = "hasThirdPartyGGShield"
HAS_THIRD_PARTY_SHHGIT = "hasThirdPartyShhGit"
HAS_THIRD_PARTY_REPO_SUPERVISOR = "hasThirdPartyRepoSupervisor"

TOOL_KEY = "tool"
EXECUTION_PATTERN_KEY = "executionPattern"
COMMITS_ANALYZED_KEY = "commitsAnalyzed"
COMMITS_WITH_TOOL_RUN_KEY = "commitsWithToolRun"
HAS_RECENT_RUNS_KEY = "hasRecentRuns"

THIRD_PARTY_PROBES: dict[SecretScanningTool, str] = {
    SecretScanningTool.GITLEAKS: HAS_THIRD_PARTY_GITLEAKS,
    SecretScanningTool.TRUFFLEHOG: HAS_THIRD_PARTY_TRUFFLEHOG,
    SecretScanningTool.DETECT_SECRETS: HAS_THIRD_PARTY_DETECT_SECRETS,
    SecretScanningTool.GIT_SECRETS: HAS_THIRD_PARTY_GIT_SECRETS,
    SecretScanningTool.GGSHIELD: HAS_THIRD_PARTY_GGSHIELD,
    SecretScanningTool.SHHGIT: HAS_THIRD_PARTY_SHHGIT,
    SecretScanningTool.REPO_SUPERVISOR: HAS_THIRD_PARTY_REPO_SUPERVISOR,
}


def _native(probe: str, state: bool | None, feature: str) -> tuple[list[Finding], str]:
    if state is None:
        message = f"unable to determine whether GitHub {feature} is enabled"
        return [new_not_available(probe, message)], probe
    if state:
        return [new_with(probe, Outcome.TRUE, f"GitHub {feature} is enabled")], probe
    return [new_with(probe, Outcome.FALSE, f"GitHub {feature} is disabled")], probe


def has_github_secret_scanning_enabled(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = HAS_GITHUB_SECRET_SCANNING_ENABLED
    data: SecretScanningData = require(raw, "secret_scanning", probe)
    return _native(probe, data.native.enabled, "secret scanning")


def has_github_push_protection_enabled(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = HAS_GITHUB_PUSH_PROTECTION_ENABLED
    data: SecretScanningData = require(raw, "secret_scanning", probe)
    return _native(probe, data.native.push_protection, "secret scanning push protection")


def _third_party(raw: RawResults | None, tool: SecretScanningTool) -> tuple[list[Finding], str]:
    """TRUE with the tool's CI run statistics when it is configured, FALSE otherwise."""
    probe = THIRD_PARTY_PROBES[tool]
    data: SecretScanningData = require(raw, "secret_scanning", probe)
    scanner = next((s for s in data.third_party if s.tool is tool), None)
    if scanner is None:
        return [new_with(probe, Outcome.FALSE, f"{tool.value} not detected")], probe

    values: dict[str, str | int] = {TOOL_KEY: tool.value}
    stats = scanner.ci_stats
    if stats is not None:
        values.update(
            {
                EXECUTION_PATTERN_KEY: stats.execution_pattern.value,
                COMMITS_ANALYZED_KEY: stats.commits_analyzed,
                COMMITS_WITH_TOOL_RUN_KEY: stats.commits_with_tool_run,
                HAS_RECENT_RUNS_KEY: int(stats.has_recent_runs),
            }
        )
    location = scanner.files[0].location() if scanner.files else None
    return [new_with(probe, Outcome.TRUE, f"{tool.value} detected", location, values)], probe


def has_third_party_gitleaks(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.GITLEAKS)


def has_third_party_trufflehog(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.TRUFFLEHOG)


def has_third_party_detect_secrets(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.DETECT_SECRETS)


def has_third_party_git_secrets(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.GIT_SECRETS)


def has_third_party_ggshield(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.GGSHIELD)


def has_third_party_shhgit(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.SHHGIT)


def has_third_party_repo_supervisor(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _third_party(raw, SecretScanningTool.REPO_SUPERVISOR)
