"""The built-in probe catalog."""

from __future__ import annotations

from repo_vigil.models import CheckName
from repo_vigil.probes import (
    binary_artifacts,
    branch_protection,
    ci_tests,
    cii_best_practices,
    code_review,
    contributors,
    dangerous_workflow,
    dependency_update_tool,
    fuzzing,
    license,
    maintained,
    maintainer_response,
    packaging,
    pinned_dependencies,
    sast,
    sbom,
    secret_scanning,
    security_policy,
    signed_releases,
    tag_protection,
    token_permissions,
    vulnerabilities,
    webhooks,
)
from repo_vigil.probes.base import IndependentProbe, RawDataProbe, RawProbeImpl
from repo_vigil.probes.registry import ProbeRegistry

# check -> [(probe name, implementation)]
RAW_PROBES: dict[CheckName, list[tuple[str, RawProbeImpl]]] = {
    CheckName.BINARY_ARTIFACTS: [
        (binary_artifacts.HAS_BINARY_ARTIFACTS, binary_artifacts.has_binary_artifacts),
    ],
    CheckName.BRANCH_PROTECTION: [
        (branch_protection.BRANCHES_ARE_PROTECTED, branch_protection.branches_are_protected),
        (branch_protection.BLOCKS_DELETE_ON_BRANCHES, branch_protection.blocks_delete_on_branches),
        (
            branch_protection.BLOCKS_FORCE_PUSH_ON_BRANCHES,
            branch_protection.blocks_force_push_on_branches,
        ),
        (
            branch_protection.BRANCH_PROTECTION_APPLIES_TO_ADMINS,
            branch_protection.branch_protection_applies_to_admins,
        ),
        (branch_protection.DISMISSES_STALE_REVIEWS, branch_protection.dismisses_stale_reviews),
        (
            branch_protection.REQUIRES_APPROVERS_FOR_PULL_REQUESTS,
            branch_protection.requires_approvers_for_pull_requests,
        ),
        (
            branch_protection.REQUIRES_CODE_OWNERS_REVIEW,
            branch_protection.requires_code_owners_review,
        ),
        (
            branch_protection.REQUIRES_LAST_PUSH_APPROVAL,
            branch_protection.requires_last_push_approval,
        ),
        (
            branch_protection.REQUIRES_UP_TO_DATE_BRANCHES,
            branch_protection.requires_up_to_date_branches,
        ),
        (
            branch_protection.RUNS_STATUS_CHECKS_BEFORE_MERGING,
            branch_protection.runs_status_checks_before_merging,
        ),
        (
            branch_protection.REQUIRES_PRS_TO_CHANGE_CODE,
            branch_protection.requires_prs_to_change_code,
        ),
    ],
    CheckName.CI_TESTS: [(ci_tests.TESTS_RUN_IN_CI, ci_tests.tests_run_in_ci)],
    CheckName.CODE_REVIEW: [
        (code_review.CODE_REVIEWED, code_review.code_reviewed),
        (code_review.CODE_APPROVED, code_review.code_approved),
        (code_review.CODE_REVIEW_TWO_REVIEWERS, code_review.code_review_two_reviewers),
    ],
    CheckName.CONTRIBUTORS: [
        (
            contributors.CONTRIBUTORS_FROM_ORG_OR_COMPANY,
            contributors.contributors_from_org_or_company,
        ),
    ],
    CheckName.DANGEROUS_WORKFLOW: [
        (
            dangerous_workflow.HAS_DANGEROUS_WORKFLOW_SCRIPT_INJECTION,
            dangerous_workflow.has_dangerous_workflow_script_injection,
        ),
        (
            dangerous_workflow.HAS_DANGEROUS_WORKFLOW_UNTRUSTED_CHECKOUT,
            dangerous_workflow.has_dangerous_workflow_untrusted_checkout,
        ),
    ],
    CheckName.DEPENDENCY_UPDATE_TOOL: [
        (
            dependency_update_tool.DEPENDENCY_UPDATE_TOOL_CONFIGURED,
            dependency_update_tool.dependency_update_tool_configured,
        ),
    ],
    CheckName.FUZZING: [
        (fuzzing.FUZZED_WITH_OSS_FUZZ, fuzzing.fuzzed_with_oss_fuzz),
        (fuzzing.FUZZED_WITH_CLUSTERFUZZLITE, fuzzing.fuzzed_with_clusterfuzzlite),
        (fuzzing.FUZZED_WITH_ONEFUZZ, fuzzing.fuzzed_with_onefuzz),
        (fuzzing.FUZZED_WITH_GO_NATIVE, fuzzing.fuzzed_with_go_native),
        (fuzzing.FUZZED_WITH_PYTHON_ATHERIS, fuzzing.fuzzed_with_python_atheris),
        (fuzzing.FUZZED_WITH_C_LIBFUZZER, fuzzing.fuzzed_with_c_libfuzzer),
        (fuzzing.FUZZED_WITH_CPP_LIBFUZZER, fuzzing.fuzzed_with_cpp_libfuzzer),
        (fuzzing.FUZZED_WITH_RUST_CARGOFUZZ, fuzzing.fuzzed_with_rust_cargofuzz),
        (fuzzing.FUZZED_WITH_JAVA_JAZZER, fuzzing.fuzzed_with_java_jazzer),
        (fuzzing.FUZZED_WITH_SWIFT_LIBFUZZER, fuzzing.fuzzed_with_swift_libfuzzer),
        (
            fuzzing.FUZZED_WITH_PROPERTY_BASED_HASKELL,
            fuzzing.fuzzed_with_property_based_haskell,
        ),
        (
            fuzzing.FUZZED_WITH_PROPERTY_BASED_JAVASCRIPT,
            fuzzing.fuzzed_with_property_based_javascript,
        ),
        (
            fuzzing.FUZZED_WITH_PROPERTY_BASED_TYPESCRIPT,
            fuzzing.fuzzed_with_property_based_typescript,
        ),
        (fuzzing.FUZZED_PROMINENT_LANGUAGES, fuzzing.fuzzed_prominent_languages),
    ],
    CheckName.LICENSE: [
        (license.HAS_LICENSE_FILE, license.has_license_file),
        (license.HAS_FSF_OR_OSI_APPROVED_LICENSE, license.has_fsf_or_osi_approved_license),
        (license.HAS_LICENSE_FILE_AT_TOP_DIR, license.has_license_file_at_top_dir),
    ],
    CheckName.MAINTAINED: [
        (maintained.ARCHIVED, maintained.archived),
        (maintained.HAS_RECENT_COMMITS, maintained.has_recent_commits),
        (
            maintained.ISSUE_ACTIVITY_BY_PROJECT_MEMBER,
            maintained.issue_activity_by_project_member,
        ),
        (maintained.CREATED_RECENTLY, maintained.created_recently),
    ],
    CheckName.MAINTAINER_RESPONSE: [
        (
            maintainer_response.MAINTAINERS_RESPOND_TO_BUG_ISSUES,
            maintainer_response.maintainers_respond_to_bug_issues,
        ),
    ],
    CheckName.PACKAGING: [
        (
            packaging.PACKAGED_WITH_AUTOMATED_WORKFLOW,
            packaging.packaged_with_automated_workflow,
        ),
    ],
    CheckName.PINNED_DEPENDENCIES: [
        (pinned_dependencies.PINS_DEPENDENCIES, pinned_dependencies.pins_dependencies),
    ],
    CheckName.SAST: [
        (sast.SAST_TOOL_CONFIGURED, sast.sast_tool_configured),
        (sast.SAST_TOOL_RUNS_ON_ALL_COMMITS, sast.sast_tool_runs_on_all_commits),
    ],
    CheckName.SBOM: [
        (sbom.SBOM_EXISTS, sbom.sbom_exists),
        (sbom.SBOM_RELEASE_ASSET_EXISTS, sbom.sbom_release_asset_exists),
        (sbom.SBOM_STANDARDS_FILE_USED, sbom.sbom_standards_file_used),
        (sbom.SBOM_CICD_ARTIFACT_EXISTS, sbom.sbom_cicd_artifact_exists),
    ],
    CheckName.SECRET_SCANNING: [
        (
            secret_scanning.HAS_GITHUB_SECRET_SCANNING_ENABLED,
            secret_scanning.has_github_secret_scanning_enabled,
        ),
        (
            secret_scanning.HAS_GITHUB_PUSH_PROTECTION_ENABLED,
            secret_scanning.has_github_push_protection_enabled,
        ),
        (secret_scanning.HAS_THIRD_PARTY_GITLEAKS, secret_scanning.has_third_party_gitleaks),
        (secret_scanning.HAS_THIRD_PARTY_TRUFFLEHOG, secret_scanning.has_third_party_trufflehog),
        (
            secret_scanning.HAS_THIRD_PARTY_DETECT_SECRETS,
            secret_scanning.has_third_party_detect_secrets,
        ),
        (
            secret_scanning.HAS_THIRD_PARTY_GIT_SECRETS,
            secret_scanning.has_third_party_git_secrets,
        ),
        (secret_scanning.HAS_THIRD_PARTY_GGSHIELD, secret_scanning.has_third_party_ggshield),
        (secret_scanning.HAS_THIRD_PARTY_SHHGIT, secret_scanning.has_third_party_shhgit),
        (
            secret_scanning.HAS_THIRD_PARTY_REPO_SUPERVISOR,
            secret_scanning.has_third_party_repo_supervisor,
        ),
    ],
    CheckName.SECURITY_POLICY: [
        (security_policy.SECURITY_POLICY_PRESENT, security_policy.security_policy_present),
        (
            security_policy.SECURITY_POLICY_CONTAINS_LINKS,
            security_policy.security_policy_contains_links,
        ),
        (
            security_policy.SECURITY_POLICY_CONTAINS_VULNERABILITY_DISCLOSURE,
            security_policy.security_policy_contains_vulnerability_disclosure,
        ),
        (
            security_policy.SECURITY_POLICY_CONTAINS_TEXT,
            security_policy.security_policy_contains_text,
        ),
    ],
    CheckName.SIGNED_RELEASES: [
        (signed_releases.RELEASES_ARE_SIGNED, signed_releases.releases_are_signed),
        (signed_releases.RELEASES_HAVE_PROVENANCE, signed_releases.releases_have_provenance),
    ],
    CheckName.TAG_PROTECTION: [
        (tag_protection.TAGS_ARE_PROTECTED, tag_protection.tags_are_protected),
        (tag_protection.BLOCKS_DELETE_ON_TAGS, tag_protection.blocks_delete_on_tags),
        (tag_protection.BLOCKS_FORCE_PUSH_ON_TAGS, tag_protection.blocks_force_push_on_tags),
        (tag_protection.BLOCKS_UPDATE_ON_TAGS, tag_protection.blocks_update_on_tags),
        (
            tag_protection.TAG_PROTECTION_APPLIES_TO_ADMINS,
            tag_protection.tag_protection_applies_to_admins,
        ),
        (tag_protection.RESTRICTS_TAG_CREATION, tag_protection.restricts_tag_creation),
        (tag_protection.REQUIRES_SIGNED_TAGS, tag_protection.requires_signed_tags),
    ],
    CheckName.TOKEN_PERMISSIONS: [
        (
            token_permissions.HAS_GITHUB_WORKFLOW_PERMISSION_UNDECLARED,
            token_permissions.has_github_workflow_permission_undeclared,
        ),
        (
            token_permissions.HAS_GITHUB_WORKFLOW_PERMISSION_NONE,
            token_permissions.has_github_workflow_permission_none,
        ),
        (
            token_permissions.HAS_GITHUB_WORKFLOW_PERMISSION_READ,
            token_permissions.has_github_workflow_permission_read,
        ),
        (
            token_permissions.HAS_GITHUB_WORKFLOW_PERMISSION_UNKNOWN,
            token_permissions.has_github_workflow_permission_unknown,
        ),
        (
            token_permissions.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_TOP,
            token_permissions.has_no_github_workflow_permission_write_all_top,
        ),
        (
            token_permissions.HAS_NO_GITHUB_WORKFLOW_PERMISSION_WRITE_ALL_JOB,
            token_permissions.has_no_github_workflow_permission_write_all_job,
        ),
        (token_permissions.TOP_LEVEL_PERMISSIONS, token_permissions.top_level_permissions),
        (token_permissions.JOB_LEVEL_PERMISSIONS, token_permissions.job_level_permissions),
    ],
    CheckName.VULNERABILITIES: [
        (vulnerabilities.HAS_OSV_VULNERABILITIES, vulnerabilities.has_osv_vulnerabilities),
    ],
    CheckName.WEBHOOKS: [
        (webhooks.WEBHOOKS_USE_SECRETS, webhooks.webhooks_use_secrets),
    ],
}

INDEPENDENT_PROBES: dict[CheckName, list[IndependentProbe]] = {
    CheckName.CII_BEST_PRACTICES: [
        IndependentProbe(cii_best_practices.HAS_OPENSSF_BADGE, cii_best_practices.has_openssf_badge),
    ],
}


def probes_for_check(check: CheckName) -> list[str]:
    """Names of the probes whose findings feed ``check``, in catalog order."""
    raw = [name for name, _ in RAW_PROBES.get(check, [])]
    independent = [probe.name for probe in INDEPENDENT_PROBES.get(check, [])]
    return raw + independent


def check_for_probe(probe: str) -> CheckName | None:
    for check in CheckName:
        if probe in probes_for_check(check):
            return check
    return None


def build_default_registry() -> ProbeRegistry:
    """A fresh registry holding every built-in probe."""
    registry = ProbeRegistry()
    for check, entries in RAW_PROBES.items():
        for name, implementation in entries:
            registry.register(RawDataProbe(name, implementation, (check,)))
    for probes in INDEPENDENT_PROBES.values():
        for probe in probes:
            registry.register(probe)
    return registry
