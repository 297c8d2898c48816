"""Security-Policy probes: presence and content of SECURITY.md-style files."""

from __future__ import annotations

from collections.abc import Callable

from repo_vigil.finding import Finding, Outcome, new_false, new_with
from repo_vigil.models import (
    PolicyInformationType,
    RawResults,
    SecurityPolicyData,
    SecurityPolicyFile,
)
from repo_vigil.probes._helpers import require

SECURITY_POLICY_PRESENT = "securityPolicyPresent"
SECURITY_POLICY_CONTAINS_LINKS = "securityPolicyContainsLinks"
SECURITY_POLICY_CONTAINS_VULNERABILITY_DISCLOSURE = "securityPolicyContainsVulnerabilityDisclosure"
SECURITY_POLICY_CONTAINS_TEXT = "securityPolicyContainsText"

URLS_KEY = "urls"
EMAILS_KEY = "emails"

MIN_DISCLOSURE_MATCHES = 2


def _count(policy: SecurityPolicyFile, kind: PolicyInformationType) -> int:
    return sum(1 for info in policy.information if info.type is kind)


def _per_file(
    raw: RawResults | None,
    probe: str,
    judge: Callable[[SecurityPolicyFile], tuple[bool, str]],
) -> tuple[list[Finding], str]:
    data: SecurityPolicyData = require(raw, "security_policy", probe)
    if not data.policy_files:
        return [new_false(probe, "no security policy file detected")], probe

    findings = []
    for policy in data.policy_files:
        ok, message = judge(policy)
        values: dict[str, str | int] = {
            URLS_KEY: _count(policy, PolicyInformationType.LINK),
            EMAILS_KEY: _count(policy, PolicyInformationType.EMAIL),
        }
        outcome = Outcome.TRUE if ok else Outcome.FALSE
        findings.append(new_with(probe, outcome, message, policy.file.location(), values))
    return findings, probe


def security_policy_present(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_file(
        raw, SECURITY_POLICY_PRESENT, lambda _: (True, "security policy file detected")
    )


def security_policy_contains_links(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(policy: SecurityPolicyFile) -> tuple[bool, str]:
        links = _count(policy, PolicyInformationType.LINK) + _count(
            policy, PolicyInformationType.EMAIL
        )
        if links:
            return True, "found linked content in security policy"
        return False, "no email or URL found in security policy"

    return _per_file(raw, SECURITY_POLICY_CONTAINS_LINKS, judge)


def security_policy_contains_vulnerability_disclosure(
    raw: RawResults | None,
) -> tuple[list[Finding], str]:
    def judge(policy: SecurityPolicyFile) -> tuple[bool, str]:
        if _count(policy, PolicyInformationType.TEXT) >= MIN_DISCLOSURE_MATCHES:
            return True, "found text in security policy"
        return False, "no disclosure text found in security policy"

    return _per_file(raw, SECURITY_POLICY_CONTAINS_VULNERABILITY_DISCLOSURE, judge)


def security_policy_contains_text(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(policy: SecurityPolicyFile) -> tuple[bool, str]:
        linked = sum(
            len(info.match)
            for info in policy.information
            if info.type in (PolicyInformationType.LINK, PolicyInformationType.EMAIL)
        )
        if policy.file.file_size - linked > 1:
            return True, "found text in security policy"
        return False, "security policy contains no text beyond links"

    return _per_file(raw, SECURITY_POLICY_CONTAINS_TEXT, judge)
