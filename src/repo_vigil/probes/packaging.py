"""Packaging probe: is the project published by an automated workflow?"""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_not_available, new_with
from repo_vigil.models import PackagingData, RawResults
from repo_vigil.probes._helpers import require

PACKAGED_WITH_AUTOMATED_WORKFLOW = "packagedWithAutomatedWorkflow"

PACKAGE_KEY = "package"


def packaged_with_automated_workflow(raw: RawResults | None) -> tuple[list[Finding], str]:
    """True per packaging workflow with a successful run; False when none ran."""
    probe = PACKAGED_WITH_AUTOMATED_WORKFLOW
    data: PackagingData = require(raw, "packaging", probe)
    if not data.packages:
        return [new_not_available(probe, "no package publishing workflow detected")], probe

    findings = []
    for package in data.packages:
        if not package.runs:
            continue
        location = package.file.location() if package.file is not None else None
        findings.append(
            new_with(
                probe,
                Outcome.TRUE,
                f"project is published as package: {package.name}",
                location,
                {PACKAGE_KEY: package.name},
            )
        )
    if not findings:
        message = "publishing workflows found but none has a successful run"
        return [new_with(probe, Outcome.FALSE, message)], probe
    return findings, probe
