"""Domain models for repo-vigil. All frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from repo_vigil.finding import FileType, Finding, Location

# ─── Enumerations ─────────────────────────────────────────────


class CheckName(StrEnum):
    BINARY_ARTIFACTS = "Binary-Artifacts"
    BRANCH_PROTECTION = "Branch-Protection"
    CI_TESTS = "CI-Tests"
    CII_BEST_PRACTICES = "CII-Best-Practices"
    CODE_REVIEW = "Code-Review"
    CONTRIBUTORS = "Contributors"
    DANGEROUS_WORKFLOW = "Dangerous-Workflow"
    DEPENDENCY_UPDATE_TOOL = "Dependency-Update-Tool"
    FUZZING = "Fuzzing"
    LICENSE = "License"
    MAINTAINED = "Maintained"
    MAINTAINER_RESPONSE = "Maintainer-Response"
    PACKAGING = "Packaging"
    PINNED_DEPENDENCIES = "Pinned-Dependencies"
    SAST = "SAST"
    SBOM = "SBOM"
    SECRET_SCANNING = "Secret-Scanning"
    SECURITY_POLICY = "Security-Policy"
    SIGNED_RELEASES = "Signed-Releases"
    TAG_PROTECTION = "Tag-Protection"
    TOKEN_PERMISSIONS = "Token-Permissions"
    VULNERABILITIES = "Vulnerabilities"
    WEBHOOKS = "Webhooks"


class Risk(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class DetailType(StrEnum):
    INFO = "info"
    WARN = "warn"
    DEBUG = "debug"


class ReviewPlatform(StrEnum):
    GITHUB = "GitHub"
    GERRIT = "Gerrit"
    PHABRICATOR = "Phabricator"
    PIPER = "Piper"
    UNKNOWN = ""


class BadgeLevel(StrEnum):
    UNKNOWN = "unknown"
    NOT_FOUND = "not_found"
    IN_PROGRESS = "in_progress"
    PASSING = "passing"
    SILVER = "silver"
    GOLD = "gold"


class DangerousWorkflowType(StrEnum):
    SCRIPT_INJECTION = "scriptInjection"
    UNTRUSTED_CHECKOUT = "untrustedCheckout"


class DependencyUseType(StrEnum):
    GITHUB_ACTION = "GitHubAction"
    DOCKERFILE_CONTAINER_IMAGE = "containerImage"
    DOWNLOAD_THEN_RUN = "downloadThenRun"
    GO_COMMAND = "goCommand"
    PIP_COMMAND = "pipCommand"
    NPM_COMMAND = "npmCommand"


class SASTTool(StrEnum):
    CODEQL = "CodeQL"
    SONAR = "Sonar"
    SNYK = "Snyk"
    PYSA = "Pysa"
    QODANA = "Qodana"


class PolicyInformationType(StrEnum):
    EMAIL = "emailAddress"
    LINK = "httpLink"
    TEXT = "vulnDisclosureText"


class PermissionLevel(StrEnum):
    UNDECLARED = "undeclared"
    NONE = "none"
    READ = "read"
    WRITE = "write"
    UNKNOWN = "unknown"


class PermissionLocation(StrEnum):
    TOP = "topLevel"
    JOB = "jobLevel"


class SecretScanningTool(StrEnum):
    GITLEAKS = "gitleaks"
    TRUFFLEHOG = "trufflehog"
    DETECT_SECRETS = "detect-secrets"
    GIT_SECRETS = "git-secrets"
    GGSHIELD = "ggshield"
    SHHGIT = "shhgit"
    REPO_SUPERVISOR = "repo-supervisor"


class ExecutionPattern(StrEnum):
    """How a third-party scanner is expected to run."""

    COMMIT_BASED = "commit-based"
    PERIODIC = "periodic"


class SbomOrigin(StrEnum):
    RELEASE_ASSET = "releaseAsset"
    CI_ARTIFACT = "ciArtifact"
    STANDARDS_FILE = "standardsFile"
    SOURCE = "source"


# ─── Hosting API Models ───────────────────────────────────────


@dataclass(frozen=True, slots=True)
class User:
    """A hosting-platform account."""

    login: str
    is_bot: bool = False
    companies: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    num_contributions: int = 0


@dataclass(frozen=True, slots=True)
class Review:
    author: User | None = None
    state: str = ""


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    head_sha: str = ""
    merged_at: datetime | None = None
    merged_by: User | None = None
    author: User | None = None
    reviews: list[Review] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    committed_date: datetime | None = None
    message: str = ""
    committer: User | None = None
    associated_merge_request: PullRequest | None = None


@dataclass(frozen=True, slots=True)
class IssueComment:
    created_at: datetime
    author: User | None = None
    is_maintainer: bool = False


@dataclass(frozen=True, slots=True)
class LabelEvent:
    """A label being added to or removed from an issue."""

    label: str
    added: bool
    created_at: datetime
    actor: str = ""
    is_maintainer: bool = False


@dataclass(frozen=True, slots=True)
class StateChangeEvent:
    """An issue being closed (``closed=True``) or reopened."""

    closed: bool
    created_at: datetime
    actor: str = ""


@dataclass(frozen=True, slots=True)
class Issue:
    number: int
    url: str = ""
    created_at: datetime | None = None
    closed_at: datetime | None = None
    author: User | None = None
    author_is_maintainer: bool = False
    comments: list[IssueComment] = field(default_factory=list)
    label_events: list[LabelEvent] = field(default_factory=list)
    state_change_events: list[StateChangeEvent] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    name: str
    url: str = ""


@dataclass(frozen=True, slots=True)
class Release:
    tag_name: str
    url: str = ""
    target_commitish: str = ""
    assets: list[ReleaseAsset] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Language:
    name: str
    num_lines: int = 0


@dataclass(frozen=True, slots=True)
class PullRequestReviewRule:
    required: bool | None = None
    required_approving_review_count: int | None = None
    dismiss_stale_reviews: bool | None = None
    require_code_owner_reviews: bool | None = None
    require_last_push_approval: bool | None = None


@dataclass(frozen=True, slots=True)
class StatusChecksRule:
    requires_status_checks: bool | None = None
    up_to_date_before_merge: bool | None = None
    contexts: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BranchProtectionRule:
    """Protection settings of one branch. ``None`` means not observable."""

    allow_deletions: bool | None = None
    allow_force_pushes: bool | None = None
    enforce_admins: bool | None = None
    require_linear_history: bool | None = None
    pull_request_reviews: PullRequestReviewRule = field(default_factory=PullRequestReviewRule)
    status_checks: StatusChecksRule = field(default_factory=StatusChecksRule)


@dataclass(frozen=True, slots=True)
class BranchRef:
    name: str
    protected: bool | None = None
    protection_rule: BranchProtectionRule = field(default_factory=BranchProtectionRule)


@dataclass(frozen=True, slots=True)
class TagRef:
    """A tag and the protection settings that apply to it."""

    name: str
    protected: bool | None = None
    allow_deletions: bool | None = None
    allow_force_pushes: bool | None = None
    allow_updates: bool | None = None
    enforce_admins: bool | None = None
    restricts_creation: bool | None = None
    require_signatures: bool | None = None


@dataclass(frozen=True, slots=True)
class Webhook:
    id: int
    url: str = ""
    uses_auth_secret: bool = False


@dataclass(frozen=True, slots=True)
class CheckRun:
    status: str = ""
    conclusion: str = ""
    url: str = ""
    app_slug: str = ""


@dataclass(frozen=True, slots=True)
class Status:
    state: str = ""
    context: str = ""
    url: str = ""
    target_url: str = ""


@dataclass(frozen=True, slots=True)
class Vulnerability:
    id: str
    aliases: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    url: str
    head_sha: str = ""


@dataclass(frozen=True, slots=True)
class WorkflowArtifact:
    """A file uploaded by a CI run."""

    name: str
    url: str = ""


@dataclass(frozen=True, slots=True)
class SecretScanningSettings:
    """Native secret scanning switches. ``None`` means the token cannot see them."""

    enabled: bool | None = None
    push_protection: bool | None = None


@dataclass(frozen=True, slots=True)
class RepoMetadata:
    full_name: str
    default_branch: str = "main"
    archived: bool = False
    created_at: datetime | None = None
    head_sha: str = ""
    license_spdx_id: str = ""


# ─── Raw Data Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class File:
    """A file (or part of one) relevant to a check."""

    path: str
    type: FileType = FileType.NONE
    offset: int | None = None
    end_offset: int | None = None
    snippet: str = ""
    file_size: int = 0

    def location(self) -> Location:
        return Location(
            path=self.path,
            type=self.type,
            line_start=self.offset,
            line_end=self.end_offset,
            snippet=self.snippet,
        )


@dataclass(frozen=True, slots=True)
class Tool:
    """A tool (fuzzer, updater, ...) detected in the repository."""

    name: str
    url: str = ""
    desc: str = ""
    files: list[File] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BinaryArtifactData:
    files: list[File] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BranchProtectionData:
    branches: list[BranchRef] = field(default_factory=list)
    codeowners_files: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RevisionCIInfo:
    """CI signals attached to the head commit of one merged pull request."""

    head_sha: str
    pull_request_number: int = 0
    check_runs: list[CheckRun] = field(default_factory=list)
    statuses: list[Status] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CITestData:
    ci_info: list[RevisionCIInfo] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Changeset:
    """A set of commits merged to the default branch as one unit."""

    revision_id: str
    review_platform: ReviewPlatform = ReviewPlatform.UNKNOWN
    commits: list[Commit] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    author: User | None = None


@dataclass(frozen=True, slots=True)
class CodeReviewData:
    default_branch_changesets: list[Changeset] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ContributorsData:
    users: list[User] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DangerousWorkflow:
    type: DangerousWorkflowType
    file: File
    job_name: str = ""


@dataclass(frozen=True, slots=True)
class DangerousWorkflowData:
    workflows: list[DangerousWorkflow] = field(default_factory=list)
    num_workflows: int = 0


@dataclass(frozen=True, slots=True)
class DependencyUpdateToolData:
    tools: list[Tool] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class FuzzingData:
    fuzzers: list[Tool] = field(default_factory=list)
    prominent_languages: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LicenseFile:
    file: File
    name: str = ""
    spdx_id: str = ""
    approved: bool = False


@dataclass(frozen=True, slots=True)
class LicenseData:
    license_files: list[LicenseFile] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MaintainedData:
    collected_at: datetime
    created_at: datetime | None = None
    archived: bool = False
    default_branch_commits: list[Commit] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MaintainerResponseData:
    """Issues carrying tracked labels, with their label/state/comment history."""

    collected_at: datetime
    issues: list[Issue] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Package:
    name: str
    file: File | None = None
    runs: list[WorkflowRun] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PackagingData:
    packages: list[Package] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Dependency:
    name: str
    type: DependencyUseType
    location: File
    pinned_at: str = ""
    pinned: bool | None = None


@dataclass(frozen=True, slots=True)
class PinningDependenciesData:
    dependencies: list[Dependency] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SASTWorkflow:
    tool: SASTTool
    file: File


@dataclass(frozen=True, slots=True)
class SASTCommit:
    """A merged change and whether a SAST tool analysed it."""

    sha: str
    pull_request_number: int = 0
    compliant: bool = False


@dataclass(frozen=True, slots=True)
class SASTData:
    workflows: list[SASTWorkflow] = field(default_factory=list)
    commits: list[SASTCommit] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SbomFile:
    file: File
    name: str = ""
    origin: SbomOrigin = SbomOrigin.SOURCE
    schema: str = ""


@dataclass(frozen=True, slots=True)
class SbomData:
    sbom_files: list[SbomFile] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ToolCIStats:
    """How often one third-party secret scanner ran on recent merged changes."""

    tool: SecretScanningTool
    execution_pattern: ExecutionPattern = ExecutionPattern.COMMIT_BASED
    commits_analyzed: int = 0
    commits_with_tool_run: int = 0
    has_recent_runs: bool = False


@dataclass(frozen=True, slots=True)
class ThirdPartyScanner:
    tool: SecretScanningTool
    files: list[File] = field(default_factory=list)
    ci_stats: ToolCIStats | None = None


@dataclass(frozen=True, slots=True)
class SecretScanningData:
    native: SecretScanningSettings = field(default_factory=SecretScanningSettings)
    third_party: list[ThirdPartyScanner] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SecurityPolicyInformation:
    type: PolicyInformationType
    match: str
    line_number: int = 0
    offset: int = 0


@dataclass(frozen=True, slots=True)
class SecurityPolicyFile:
    file: File
    information: list[SecurityPolicyInformation] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SecurityPolicyData:
    policy_files: list[SecurityPolicyFile] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SignedReleasesData:
    releases: list[Release] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TagProtectionData:
    tags: list[TagRef] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TokenPermission:
    """One permission declaration (or its absence) in a workflow.

    ``name`` is empty when the declaration covers every scope, e.g. ``write-all``.
    """

    location_type: PermissionLocation
    type: PermissionLevel
    file: File
    job_name: str = ""
    name: str = ""
    value: str = ""


@dataclass(frozen=True, slots=True)
class TokenPermissionsData:
    token_permissions: list[TokenPermission] = field(default_factory=list)
    num_workflows: int = 0


@dataclass(frozen=True, slots=True)
class VulnerabilitiesData:
    vulnerabilities: list[Vulnerability] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WebhooksData:
    webhooks: list[Webhook] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RawResults:
    """Snapshot of everything collected for one run.

    A field left as None means that category was not collected.
    """

    binary_artifacts: BinaryArtifactData | None = None
    branch_protection: BranchProtectionData | None = None
    ci_tests: CITestData | None = None
    code_review: CodeReviewData | None = None
    contributors: ContributorsData | None = None
    dangerous_workflow: DangerousWorkflowData | None = None
    dependency_update_tool: DependencyUpdateToolData | None = None
    fuzzing: FuzzingData | None = None
    license: LicenseData | None = None
    maintained: MaintainedData | None = None
    maintainer_response: MaintainerResponseData | None = None
    packaging: PackagingData | None = None
    pinned_dependencies: PinningDependenciesData | None = None
    sast: SASTData | None = None
    sbom: SbomData | None = None
    secret_scanning: SecretScanningData | None = None
    security_policy: SecurityPolicyData | None = None
    signed_releases: SignedReleasesData | None = None
    tag_protection: TagProtectionData | None = None
    token_permissions: TokenPermissionsData | None = None
    vulnerabilities: VulnerabilitiesData | None = None
    webhooks: WebhooksData | None = None


# Which RawResults field each check's collector fills.
RAW_FIELD_BY_CHECK: dict[CheckName, str] = {
    CheckName.BINARY_ARTIFACTS: "binary_artifacts",
    CheckName.BRANCH_PROTECTION: "branch_protection",
    CheckName.CI_TESTS: "ci_tests",
    CheckName.CODE_REVIEW: "code_review",
    CheckName.CONTRIBUTORS: "contributors",
    CheckName.DANGEROUS_WORKFLOW: "dangerous_workflow",
    CheckName.DEPENDENCY_UPDATE_TOOL: "dependency_update_tool",
    CheckName.FUZZING: "fuzzing",
    CheckName.LICENSE: "license",
    CheckName.MAINTAINED: "maintained",
    CheckName.MAINTAINER_RESPONSE: "maintainer_response",
    CheckName.PACKAGING: "packaging",
    CheckName.PINNED_DEPENDENCIES: "pinned_dependencies",
    CheckName.SAST: "sast",
    CheckName.SBOM: "sbom",
    CheckName.SECRET_SCANNING: "secret_scanning",
    CheckName.SECURITY_POLICY: "security_policy",
    CheckName.SIGNED_RELEASES: "signed_releases",
    CheckName.TAG_PROTECTION: "tag_protection",
    CheckName.TOKEN_PERMISSIONS: "token_permissions",
    CheckName.VULNERABILITIES: "vulnerabilities",
    CheckName.WEBHOOKS: "webhooks",
}


def collected_checks(raw: RawResults) -> frozenset[CheckName]:
    """Checks whose raw data is present in ``raw``."""
    return frozenset(
        check for check, attr in RAW_FIELD_BY_CHECK.items() if getattr(raw, attr) is not None
    )


# ─── Maintainer Response Models ───────────────────────────────


@dataclass(frozen=True, slots=True)
class LabelInterval:
    """One continuous span during which a tracked label was applied."""

    label: str
    start: datetime
    end: datetime
    maintainer_responded: bool = False
    response_at: datetime | None = None
    duration_days: int = 0


# ─── Result Models ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class LogMessage:
    text: str
    finding: Finding | None = None
    path: str = ""
    type: FileType = FileType.NONE
    offset: int | None = None
    end_offset: int | None = None
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class CheckDetail:
    type: DetailType
    msg: LogMessage

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {"type": self.type.value, "text": self.msg.text}
        if self.msg.path:
            result["path"] = self.msg.path
            if self.msg.offset is not None:
                result["line"] = self.msg.offset
        return result


@dataclass(frozen=True, slots=True)
class CheckResult:
    """The outcome of evaluating one check."""

    name: str
    score: int
    reason: str
    confidence: int = 10
    details: list[CheckDetail] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    error: Exception | None = None
    annotations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "name": self.name,
            "score": self.score,
            "confidence": self.confidence,
            "reason": self.reason,
            "details": [d.to_dict() for d in self.details],
            "findings": [f.to_dict() for f in self.findings],
        }
        if self.error is not None:
            result["error"] = str(self.error)
        if self.annotations:
            result["annotations"] = list(self.annotations)
        return result


@dataclass(frozen=True, slots=True)
class ScorecardResult:
    """Everything produced by one run against one repository."""

    repository: str
    commit: str
    date: datetime
    checks: list[CheckResult] = field(default_factory=list)
    raw_results: RawResults = field(default_factory=RawResults)
    aggregate_score: float = -1.0

    @property
    def findings(self) -> list[Finding]:
        return [f for check in self.checks for f in check.findings]

    def to_dict(self) -> dict[str, object]:
        return {
            "repository": self.repository,
            "commit": self.commit,
            "date": self.date.isoformat(),
            "aggregate_score": self.aggregate_score,
            "checks": [c.to_dict() for c in self.checks],
        }
