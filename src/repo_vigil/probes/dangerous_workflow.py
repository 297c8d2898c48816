"""Dangerous-Workflow probes: risky patterns in CI workflow definitions."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_false, new_not_applicable, new_with
from repo_vigil.models import DangerousWorkflowData, DangerousWorkflowType, RawResults
from repo_vigil.probes._helpers import require

HAS_DANGEROUS_WORKFLOW_SCRIPT_INJECTION = "hasDangerousWorkflowScriptInjection"
HAS_DANGEROUS_WORKFLOW_UNTRUSTED_CHECKOUT = "hasDangerousWorkflowUntrustedCheckout"

JOB_KEY = "job"


def _detect(
    raw: RawResults | None, probe: str, kind: DangerousWorkflowType, description: str
) -> tuple[list[Finding], str]:
    data: DangerousWorkflowData = require(raw, "dangerous_workflow", probe)
    if data.num_workflows == 0:
        return [new_not_applicable(probe, "no workflows found")], probe

    matches = [wf for wf in data.workflows if wf.type is kind]
    if not matches:
        return [new_false(probe, f"no {description} found")], probe
    findings = [
        new_with(
            probe,
            Outcome.TRUE,
            f"{description} found: {wf.file.snippet}" if wf.file.snippet else f"{description} found",
            wf.file.location(),
            {JOB_KEY: wf.job_name},
        )
        for wf in matches
    ]
    return findings, probe


def has_dangerous_workflow_script_injection(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _detect(
        raw,
        HAS_DANGEROUS_WORKFLOW_SCRIPT_INJECTION,
        DangerousWorkflowType.SCRIPT_INJECTION,
        "script injection",
    )


def has_dangerous_workflow_untrusted_checkout(
    raw: RawResults | None,
) -> tuple[list[Finding], str]:
    return _detect(
        raw,
        HAS_DANGEROUS_WORKFLOW_UNTRUSTED_CHECKOUT,
        DangerousWorkflowType.UNTRUSTED_CHECKOUT,
        "untrusted code checkout",
    )
