"""Vulnerabilities probe."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_false, new_with
from repo_vigil.models import RawResults, VulnerabilitiesData
from repo_vigil.probes._helpers import require

HAS_OSV_VULNERABILITIES = "hasOSVVulnerabilities"

ID_KEY = "id"


def has_osv_vulnerabilities(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One True finding per known vulnerability, named by its id and aliases."""
    probe = HAS_OSV_VULNERABILITIES
    data: VulnerabilitiesData = require(raw, "vulnerabilities", probe)
    if not data.vulnerabilities:
        return [new_false(probe, "no existing vulnerabilities detected")], probe

    findings = []
    for vuln in data.vulnerabilities:
        ids = " / ".join([vuln.id, *vuln.aliases])
        findings.append(
            new_with(
                probe,
                Outcome.TRUE,
                f"Project is vulnerable to: {ids}",
                values={ID_KEY: vuln.id},
            )
        )
    return findings, probe
