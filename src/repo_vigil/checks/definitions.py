"""The check table: which probes feed each check and how their findings are scored."""

from __future__ import annotations

from dataclasses import dataclass

from repo_vigil.errors import CheckNotFoundError
from repo_vigil.evaluation import (
    binary_artifacts,
    branch_protection,
    ci_tests,
    code_review,
    fuzzing,
    license,
    maintained,
    maintainer_response,
    pinned_dependencies,
    sast,
    sbom,
    secret_scanning,
    security_policy,
    signed_releases,
    simple,
    tag_protection,
    token_permissions,
    vulnerabilities,
)
from repo_vigil.evaluation.base import Evaluator
from repo_vigil.models import CheckName, Risk
from repo_vigil.probes.catalog import probes_for_check


@dataclass(frozen=True, slots=True)
class CheckDefinition:
    """One scored check.

    ``strict`` checks turn an upstream outage into a runtime error instead of
    an inconclusive result, because a missing answer there can hide real risk.
    """

    name: CheckName
    probes: tuple[str, ...]
    evaluate: Evaluator
    risk: Risk
    description: str = ""
    strict: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name.value,
            "risk": self.risk.value,
            "description": self.description,
            "probes": list(self.probes),
        }


def _define(
    name: CheckName, evaluate: Evaluator, risk: Risk, description: str, strict: bool = False
) -> CheckDefinition:
    return CheckDefinition(
        name=name,
        probes=tuple(probes_for_check(name)),
        evaluate=evaluate,
        risk=risk,
        description=description,
        strict=strict,
    )


CHECKS: dict[CheckName, CheckDefinition] = {
    d.name: d
    for d in (
        _define(
            CheckName.BINARY_ARTIFACTS,
            binary_artifacts.evaluate,
            Risk.HIGH,
            "Determines if the project has generated executable (binary) artifacts "
            "in the source repository.",
        ),
        _define(
            CheckName.BRANCH_PROTECTION,
            branch_protection.evaluate,
            Risk.HIGH,
            "Determines if the default and release branches are protected.",
        ),
        _define(
            CheckName.CI_TESTS,
            ci_tests.evaluate,
            Risk.LOW,
            "Determines if the project runs tests before pull requests are merged.",
        ),
        _define(
            CheckName.CII_BEST_PRACTICES,
            simple.evaluate_cii_best_practices,
            Risk.LOW,
            "Determines if the project has an OpenSSF (formerly CII) Best Practices Badge.",
        ),
        _define(
            CheckName.CODE_REVIEW,
            code_review.evaluate,
            Risk.HIGH,
            "Determines if the project requires human code review before pull requests "
            "are merged.",
        ),
        _define(
            CheckName.CONTRIBUTORS,
            simple.evaluate_contributors,
            Risk.LOW,
            "Determines if the project has a set of contributors from multiple "
            "organizations.",
        ),
        _define(
            CheckName.DANGEROUS_WORKFLOW,
            simple.evaluate_dangerous_workflow,
            Risk.CRITICAL,
            "Determines if the project's GitHub Action workflows avoid dangerous patterns.",
        ),
        _define(
            CheckName.DEPENDENCY_UPDATE_TOOL,
            simple.evaluate_dependency_update_tool,
            Risk.HIGH,
            "Determines if the project uses a dependency update tool.",
        ),
        _define(
            CheckName.FUZZING,
            fuzzing.evaluate,
            Risk.MEDIUM,
            "Determines if the project uses fuzzing.",
        ),
        _define(
            CheckName.LICENSE,
            license.evaluate,
            Risk.LOW,
            "Determines if the project has defined a license.",
        ),
        _define(
            CheckName.MAINTAINED,
            maintained.evaluate,
            Risk.HIGH,
            "Determines if the project is \"actively maintained\".",
        ),
        _define(
            CheckName.MAINTAINER_RESPONSE,
            maintainer_response.evaluate,
            Risk.MEDIUM,
            "Determines if maintainers react to bug and security issues within 180 days.",
        ),
        _define(
            CheckName.PACKAGING,
            simple.evaluate_packaging,
            Risk.MEDIUM,
            "Determines if the project is published as a package.",
        ),
        _define(
            CheckName.PINNED_DEPENDENCIES,
            pinned_dependencies.evaluate,
            Risk.MEDIUM,
            "Determines if the project has declared and pinned the dependencies of its "
            "build process.",
        ),
        _define(
            CheckName.SAST,
            sast.evaluate,
            Risk.MEDIUM,
            "Determines if the project uses static code analysis.",
        ),
        _define(
            CheckName.SBOM,
            sbom.evaluate,
            Risk.MEDIUM,
            "Determines if the project publishes a Software Bill of Materials.",
        ),
        _define(
            CheckName.SECRET_SCANNING,
            secret_scanning.evaluate,
            Risk.HIGH,
            "Determines if the project scans commits for leaked credentials, natively on "
            "the hosting platform or with a third-party scanner.",
        ),
        _define(
            CheckName.SECURITY_POLICY,
            security_policy.evaluate,
            Risk.MEDIUM,
            "Determines if the project has published a security policy.",
        ),
        _define(
            CheckName.SIGNED_RELEASES,
            signed_releases.evaluate,
            Risk.HIGH,
            "Determines if the project cryptographically signs release artifacts.",
        ),
        _define(
            CheckName.TAG_PROTECTION,
            tag_protection.evaluate,
            Risk.HIGH,
            "Determines if release tags are protected against deletion and rewriting.",
        ),
        _define(
            CheckName.TOKEN_PERMISSIONS,
            token_permissions.evaluate,
            Risk.HIGH,
            "Determines if the project's automated workflow tokens follow the principle of "
            "least privilege.",
        ),
        _define(
            CheckName.VULNERABILITIES,
            vulnerabilities.evaluate,
            Risk.HIGH,
            "Determines if the project has open, known unfixed vulnerabilities.",
            strict=True,
        ),
        _define(
            CheckName.WEBHOOKS,
            simple.evaluate_webhooks,
            Risk.CRITICAL,
            "Determines if the webhooks defined in the repository have a token configured "
            "to authenticate the origins of requests.",
        ),
    )
}

RISK_WEIGHTS: dict[Risk, float] = {
    Risk.CRITICAL: 10.0,
    Risk.HIGH: 7.5,
    Risk.MEDIUM: 5.0,
    Risk.LOW: 2.5,
}


def get_check(name: str) -> CheckDefinition:
    """Look up a check by its display name (case-insensitive)."""
    for check_name, definition in CHECKS.items():
        if check_name.value.lower() == name.strip().lower():
            return definition
    raise CheckNotFoundError(
        f"Check not found: {name}. Available checks: {', '.join(c.value for c in CHECKS)}."
    )


def resolve_checks(names: list[str] | None) -> list[CheckDefinition]:
    """All checks when ``names`` is None, otherwise the named ones in the given order."""
    if names is None:
        return list(CHECKS.values())
    resolved: list[CheckDefinition] = []
    for name in names:
        definition = get_check(name)
        if definition not in resolved:
            resolved.append(definition)
    return resolved
