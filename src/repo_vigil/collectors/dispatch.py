"""Which collector fills the raw data of each check."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from repo_vigil.clients.base import CheckRequest
from repo_vigil.collectors import activity, platform, repository, security, workflows
from repo_vigil.models import CheckName

COLLECTORS: dict[CheckName, Callable[[CheckRequest], Awaitable[object]]] = {
    CheckName.BINARY_ARTIFACTS: repository.collect_binary_artifacts,
    CheckName.BRANCH_PROTECTION: platform.collect_branch_protection,
    CheckName.CI_TESTS: activity.collect_ci_tests,
    CheckName.CODE_REVIEW: activity.collect_code_review,
    CheckName.CONTRIBUTORS: activity.collect_contributors,
    CheckName.DANGEROUS_WORKFLOW: workflows.collect_dangerous_workflow,
    CheckName.DEPENDENCY_UPDATE_TOOL: repository.collect_dependency_update_tool,
    CheckName.FUZZING: repository.collect_fuzzing,
    CheckName.LICENSE: repository.collect_license,
    CheckName.MAINTAINED: activity.collect_maintained,
    CheckName.MAINTAINER_RESPONSE: activity.collect_maintainer_response,
    CheckName.PACKAGING: workflows.collect_packaging,
    CheckName.PINNED_DEPENDENCIES: workflows.collect_pinned_dependencies,
    CheckName.SAST: workflows.collect_sast,
    CheckName.SBOM: security.collect_sbom,
    CheckName.SECRET_SCANNING: security.collect_secret_scanning,
    CheckName.SECURITY_POLICY: repository.collect_security_policy,
    CheckName.SIGNED_RELEASES: platform.collect_signed_releases,
    CheckName.TAG_PROTECTION: platform.collect_tag_protection,
    CheckName.TOKEN_PERMISSIONS: workflows.collect_token_permissions,
    CheckName.VULNERABILITIES: platform.collect_vulnerabilities,
    CheckName.WEBHOOKS: platform.collect_webhooks,
}
