"""Pinned-Dependencies probe."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_not_applicable, new_with
from repo_vigil.models import PinningDependenciesData, RawResults
from repo_vigil.probes._helpers import require

PINS_DEPENDENCIES = "pinsDependencies"

DEPENDENCY_TYPE_KEY = "dependencyType"
DEPENDENCY_NAME_KEY = "dependencyName"


def pins_dependencies(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One finding per dependency use: True when pinned by hash, False otherwise."""
    probe = PINS_DEPENDENCIES
    data: PinningDependenciesData = require(raw, "pinned_dependencies", probe)
    if not data.dependencies:
        return [new_not_applicable(probe, "no dependencies found")], probe

    findings = []
    for dep in data.dependencies:
        values: dict[str, str | int] = {
            DEPENDENCY_TYPE_KEY: dep.type.value,
            DEPENDENCY_NAME_KEY: dep.name,
        }
        if dep.pinned:
            outcome, message = Outcome.TRUE, f"dependency {dep.name} is pinned by hash"
        else:
            outcome, message = Outcome.FALSE, f"{dep.type.value} dependency not pinned by hash"
        findings.append(new_with(probe, outcome, message, dep.location.location(), values))
    return findings, probe
