"""Dependency-Update-Tool probe."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_false, new_with
from repo_vigil.models import DependencyUpdateToolData, RawResults
from repo_vigil.probes._helpers import require

DEPENDENCY_UPDATE_TOOL_CONFIGURED = "dependencyUpdateToolConfigured"

TOOL_KEY = "tool"


def dependency_update_tool_configured(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = DEPENDENCY_UPDATE_TOOL_CONFIGURED
    data: DependencyUpdateToolData = require(raw, "dependency_update_tool", probe)
    if not data.tools:
        return [new_false(probe, "no dependency update tool configurations found")], probe

    findings = []
    for tool in data.tools:
        location = tool.files[0].location() if tool.files else None
        findings.append(
            new_with(
                probe,
                Outcome.TRUE,
                f"detected update tool: {tool.name}",
                location,
                {TOOL_KEY: tool.name},
            )
        )
    return findings, probe
