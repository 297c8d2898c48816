"""SAST probes: static analysis tooling and its coverage of merged changes."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_false, new_not_applicable, new_with
from repo_vigil.models import RawResults, SASTData
from repo_vigil.probes._helpers import require

SAST_TOOL_CONFIGURED = "sastToolConfigured"
SAST_TOOL_RUNS_ON_ALL_COMMITS = "sastToolRunsOnAllCommits"

TOOL_KEY = "tool"
ANALYZED_PRS_KEY = "analyzedPRs"
TOTAL_PRS_KEY = "totalPRs"


def sast_tool_configured(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = SAST_TOOL_CONFIGURED
    data: SASTData = require(raw, "sast", probe)
    if not data.workflows:
        return [new_false(probe, "no SAST tool detected")], probe
    findings = [
        new_with(
            probe,
            Outcome.TRUE,
            f"SAST tool detected: {wf.tool.value}",
            wf.file.location(),
            {TOOL_KEY: wf.tool.value},
        )
        for wf in data.workflows
    ]
    return findings, probe


def sast_tool_runs_on_all_commits(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = SAST_TOOL_RUNS_ON_ALL_COMMITS
    data: SASTData = require(raw, "sast", probe)
    total = len(data.commits)
    if total == 0:
        return [new_not_applicable(probe, "no pull requests merged into dev branch")], probe

    analyzed = sum(1 for commit in data.commits if commit.compliant)
    values: dict[str, str | int] = {ANALYZED_PRS_KEY: analyzed, TOTAL_PRS_KEY: total}
    if analyzed == total:
        message = f"all commits ({total}) are checked with a SAST tool"
        return [new_with(probe, Outcome.POSITIVE, message, values=values)], probe
    message = f"{analyzed} commits out of {total} are checked with a SAST tool"
    return [new_with(probe, Outcome.NEGATIVE, message, values=values)], probe
