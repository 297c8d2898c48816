"""Tests for the raw-data probes."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from repo_vigil.errors import NilInputError
from repo_vigil.finding import FileType, Outcome
from repo_vigil.models import (
    BinaryArtifactData,
    BranchProtectionData,
    BranchRef,
    Changeset,
    CITestData,
    CodeReviewData,
    Commit,
    ContributorsData,
    DangerousWorkflowData,
    DependencyUpdateToolData,
    ExecutionPattern,
    File,
    FuzzingData,
    Issue,
    IssueComment,
    LabelEvent,
    LicenseData,
    MaintainedData,
    MaintainerResponseData,
    PackagingData,
    PermissionLevel,
    PermissionLocation,
    PinningDependenciesData,
    RawResults,
    Release,
    ReleaseAsset,
    Review,
    ReviewPlatform,
    SASTData,
    SbomData,
    SbomFile,
    SbomOrigin,
    SecretScanningData,
    SecretScanningSettings,
    SecretScanningTool,
    SecurityPolicyData,
    SignedReleasesData,
    StateChangeEvent,
    TagProtectionData,
    TagRef,
    ThirdPartyScanner,
    TokenPermission,
    TokenPermissionsData,
    ToolCIStats,
    User,
    VulnerabilitiesData,
    Vulnerability,
    Webhook,
    WebhooksData,
)
from repo_vigil.probes import (
    binary_artifacts,
    code_review,
    contributors,
    maintained,
    maintainer_response,
    sbom,
    secret_scanning,
    signed_releases,
    tag_protection,
    token_permissions,
    vulnerabilities,
    webhooks,
)
from repo_vigil.probes.catalog import RAW_PROBES

T0 = datetime(2025, 1, 1, tzinfo=UTC)
NOW = datetime(2025, 6, 1, tzinfo=UTC)

ALL_RAW_PROBES = [entry for entries in RAW_PROBES.values() for entry in entries]


def _full_raw() -> RawResults:
    """A snapshot with every category collected and nothing found."""
    return RawResults(
        binary_artifacts=BinaryArtifactData(),
        branch_protection=BranchProtectionData(),
        ci_tests=CITestData(),
        code_review=CodeReviewData(),
        contributors=ContributorsData(),
        dangerous_workflow=DangerousWorkflowData(),
        dependency_update_tool=DependencyUpdateToolData(),
        fuzzing=FuzzingData(),
        license=LicenseData(),
        maintained=MaintainedData(collected_at=NOW),
        maintainer_response=MaintainerResponseData(collected_at=NOW),
        packaging=PackagingData(),
        pinned_dependencies=PinningDependenciesData(),
        sast=SASTData(),
        sbom=SbomData(),
        secret_scanning=SecretScanningData(),
        security_policy=SecurityPolicyData(),
        signed_releases=SignedReleasesData(),
        tag_protection=TagProtectionData(),
        token_permissions=TokenPermissionsData(),
        vulnerabilities=VulnerabilitiesData(),
        webhooks=WebhooksData(),
    )


def _populated_raw() -> RawResults:
    """A snapshot with evidence in every category that takes it."""
    issue = Issue(
        number=7,
        url="https://github.com/acme/widget/issues/7",
        created_at=T0,
        author_is_maintainer=True,
        label_events=[
            LabelEvent(label="bug", added=True, created_at=T0),
            LabelEvent(label="security", added=True, created_at=T0 + timedelta(days=3)),
        ],
        comments=[IssueComment(created_at=T0 + timedelta(days=2), is_maintainer=True)],
        state_change_events=[StateChangeEvent(closed=True, created_at=T0 + timedelta(days=9))],
    )
    commits = [
        Commit(sha=str(i), committed_date=NOW - timedelta(days=i), committer=User(login="dev"))
        for i in range(5)
    ]
    return replace(
        _full_raw(),
        branch_protection=BranchProtectionData(
            branches=[BranchRef(name="main", protected=True), BranchRef(name="release/1.x")]
        ),
        code_review=CodeReviewData(
            default_branch_changesets=[
                _changeset("dev", ["lead", "peer"]),
                _changeset("dev", []),
                _changeset("dependabot[bot]", [], bot=True),
            ]
        ),
        contributors=ContributorsData(
            users=[User(login="a", companies=["@acme"], num_contributions=20)]
        ),
        maintained=MaintainedData(
            collected_at=NOW,
            created_at=T0 - timedelta(days=400),
            default_branch_commits=commits,
            issues=[issue],
        ),
        maintainer_response=MaintainerResponseData(collected_at=NOW, issues=[issue]),
        sbom=SbomData(
            sbom_files=[
                SbomFile(file=File(path="widget.spdx.json"), name="widget.spdx.json"),
                SbomFile(
                    file=File(path="https://dl/widget.cdx.json", type=FileType.URL),
                    name="widget.cdx.json",
                    origin=SbomOrigin.RELEASE_ASSET,
                ),
            ]
        ),
        secret_scanning=SecretScanningData(
            native=SecretScanningSettings(enabled=False, push_protection=True),
            third_party=[
                ThirdPartyScanner(
                    tool=SecretScanningTool.GITLEAKS,
                    files=[File(path=".github/workflows/leaks.yml")],
                    ci_stats=ToolCIStats(
                        tool=SecretScanningTool.GITLEAKS,
                        commits_analyzed=4,
                        commits_with_tool_run=3,
                        has_recent_runs=True,
                    ),
                )
            ],
        ),
        signed_releases=SignedReleasesData(
            releases=[Release(tag_name="v1", assets=[ReleaseAsset(name="widget.sig")])]
        ),
        tag_protection=TagProtectionData(
            tags=[TagRef(name="v1", protected=True, allow_deletions=False), TagRef(name="v2")]
        ),
        token_permissions=TokenPermissionsData(
            token_permissions=[
                _permission(PermissionLocation.TOP, PermissionLevel.READ, value="read-all"),
                _permission(PermissionLocation.JOB, PermissionLevel.WRITE, "contents", "write"),
                _permission(PermissionLocation.JOB, PermissionLevel.UNDECLARED),
            ],
            num_workflows=1,
        ),
        vulnerabilities=VulnerabilitiesData(vulnerabilities=[Vulnerability(id="GHSA-1")]),
        webhooks=WebhooksData(webhooks=[Webhook(id=1, uses_auth_secret=True), Webhook(id=2)]),
    )


def _permission(
    location: PermissionLocation,
    level: PermissionLevel,
    name: str = "",
    value: str = "",
    path: str = ".github/workflows/ci.yml",
) -> TokenPermission:
    return TokenPermission(
        location_type=location,
        type=level,
        file=File(path=path, type=FileType.SOURCE, offset=3),
        job_name="build" if location is PermissionLocation.JOB else "",
        name=name,
        value=value,
    )


def _bot(login: str = "dependabot[bot]") -> User:
    return User(login=login, is_bot=True)


def _changeset(author: str, reviewers: list[str], bot: bool = False) -> Changeset:
    return Changeset(
        revision_id=author,
        review_platform=ReviewPlatform.GITHUB,
        author=User(login=author, is_bot=bot),
        reviews=[Review(author=User(login=r), state="APPROVED") for r in reviewers],
    )


# ─── Properties shared by every probe ─────────────────────────


class TestAllProbes:
    @pytest.mark.parametrize(("name", "impl"), ALL_RAW_PROBES, ids=[n for n, _ in ALL_RAW_PROBES])
    def test_missing_raw_results_raise_nil_input(self, name, impl) -> None:
        with pytest.raises(NilInputError) as exc_info:
            impl(None)
        assert exc_info.value.probe == name

    @pytest.mark.parametrize(("name", "impl"), ALL_RAW_PROBES, ids=[n for n, _ in ALL_RAW_PROBES])
    def test_missing_category_raises_nil_input(self, name, impl) -> None:
        with pytest.raises(NilInputError) as exc_info:
            impl(RawResults())
        assert exc_info.value.probe == name

    @pytest.mark.parametrize(("name", "impl"), ALL_RAW_PROBES, ids=[n for n, _ in ALL_RAW_PROBES])
    def test_returns_own_name(self, name, impl) -> None:
        findings, returned = impl(_full_raw())
        assert returned == name
        assert findings
        assert all(f.probe == name for f in findings)

    @pytest.mark.parametrize(("name", "impl"), ALL_RAW_PROBES, ids=[n for n, _ in ALL_RAW_PROBES])
    def test_rerun_is_identical(self, name, impl) -> None:
        raw = _full_raw()
        assert impl(raw) == impl(raw)

    @pytest.mark.parametrize(("name", "impl"), ALL_RAW_PROBES, ids=[n for n, _ in ALL_RAW_PROBES])
    def test_rerun_on_populated_data_is_identical(self, name, impl) -> None:
        raw = _populated_raw()
        first, second = impl(raw), impl(raw)
        assert first == second
        assert [f.to_dict() for f in first[0]] == [f.to_dict() for f in second[0]]


# ─── Tag-Protection ───────────────────────────────────────────


class TestTagsAreProtected:
    def test_no_tags_is_not_applicable(self) -> None:
        raw = RawResults(tag_protection=TagProtectionData())
        findings, _ = tag_protection.tags_are_protected(raw)
        assert len(findings) == 1
        assert findings[0].outcome is Outcome.NOT_APPLICABLE

    def test_one_finding_per_tag_in_order(self) -> None:
        tags = [
            TagRef(name="v1", protected=True),
            TagRef(name="v2", protected=False),
            TagRef(name="v3", protected=None),
            TagRef(name="v4", protected=True),
        ]
        raw = RawResults(tag_protection=TagProtectionData(tags=tags))
        findings, _ = tag_protection.tags_are_protected(raw)
        assert [f.outcome for f in findings] == [
            Outcome.TRUE,
            Outcome.FALSE,
            Outcome.FALSE,
            Outcome.TRUE,
        ]
        assert [f.values[tag_protection.TAG_NAME_KEY] for f in findings] == [
            "v1",
            "v2",
            "v3",
            "v4",
        ]

    def test_blocks_delete_requires_explicit_false(self) -> None:
        tags = [TagRef(name="v1", allow_deletions=False), TagRef(name="v2", allow_deletions=None)]
        raw = RawResults(tag_protection=TagProtectionData(tags=tags))
        findings, _ = tag_protection.blocks_delete_on_tags(raw)
        assert [f.outcome for f in findings] == [Outcome.TRUE, Outcome.FALSE]


# ─── Code-Review ──────────────────────────────────────────────


class TestCodeReviewed:
    def test_all_bot_changesets_not_available(self) -> None:
        data = CodeReviewData(
            default_branch_changesets=[_changeset("dependabot[bot]", [], bot=True)] * 3
        )
        findings, _ = code_review.code_reviewed(RawResults(code_review=data))
        assert len(findings) == 1
        assert findings[0].outcome is Outcome.NOT_AVAILABLE

    def test_all_reviewed_positive(self) -> None:
        data = CodeReviewData(
            default_branch_changesets=[_changeset("alice", ["bob"]) for _ in range(4)]
        )
        findings, _ = code_review.code_reviewed(RawResults(code_review=data))
        assert len(findings) == 1
        assert findings[0].outcome is Outcome.POSITIVE
        assert "4 out of 4" in findings[0].message

    def test_some_unreviewed_negative(self) -> None:
        changesets = [
            _changeset("alice", ["bob"]),
            _changeset("alice", []),
            _changeset("carol", ["alice"]),
            _changeset("carol", ["carol"]),
            _changeset("dave", []),
        ]
        data = CodeReviewData(default_branch_changesets=changesets)
        findings, _ = code_review.code_reviewed(RawResults(code_review=data))
        assert len(findings) == 1
        assert findings[0].outcome is Outcome.NEGATIVE
        assert "2 reviews among 5 changesets" in findings[0].message
        assert findings[0].values[code_review.REVIEWED_KEY] == 2
        assert findings[0].values[code_review.TOTAL_KEY] == 5

    def test_bot_changesets_excluded_from_total(self) -> None:
        changesets = [_changeset("alice", ["bob"]), _changeset("renovate[bot]", [], bot=True)]
        data = CodeReviewData(default_branch_changesets=changesets)
        findings, _ = code_review.code_reviewed(RawResults(code_review=data))
        assert findings[0].outcome is Outcome.POSITIVE
        assert findings[0].values[code_review.UNREVIEWED_BOT_KEY] == 1

    def test_gerrit_changes_count_as_reviewed(self) -> None:
        changeset = Changeset(
            revision_id="https://review.example/c/1",
            review_platform=ReviewPlatform.GERRIT,
            author=User(login="alice"),
        )
        data = CodeReviewData(default_branch_changesets=[changeset])
        findings, _ = code_review.code_reviewed(RawResults(code_review=data))
        assert findings[0].outcome is Outcome.POSITIVE

    def test_two_reviewers(self) -> None:
        changesets = [_changeset("alice", ["bob", "carol"]), _changeset("bob", ["alice"])]
        data = CodeReviewData(default_branch_changesets=changesets)
        findings, _ = code_review.code_review_two_reviewers(RawResults(code_review=data))
        assert findings[0].outcome is Outcome.NEGATIVE


# ─── Maintainer-Response ──────────────────────────────────────


class TestLabelIntervals:
    def test_comment_then_label_removed(self) -> None:
        issue = Issue(
            number=7,
            label_events=[
                LabelEvent(label="bug", added=True, created_at=T0),
                LabelEvent(label="bug", added=False, created_at=T0 + timedelta(days=10)),
            ],
            comments=[IssueComment(created_at=T0 + timedelta(days=5), is_maintainer=True)],
        )
        intervals = maintainer_response.build_label_intervals(issue, "bug", NOW)
        assert len(intervals) == 1
        interval = intervals[0]
        assert interval.start == T0
        assert interval.end == T0 + timedelta(days=10)
        assert interval.maintainer_responded is True
        assert interval.response_at == T0 + timedelta(days=5)

    def test_ongoing_label_without_response(self) -> None:
        start = NOW - timedelta(days=200)
        issue = Issue(
            number=1, label_events=[LabelEvent(label="bug", added=True, created_at=start)]
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", NOW)
        assert interval.end == NOW
        assert interval.duration_days == 200
        assert interval.maintainer_responded is False
        assert interval.response_at is None
        assert maintainer_response.is_violation(interval)

    def test_non_maintainer_comment_ignored(self) -> None:
        issue = Issue(
            number=1,
            label_events=[LabelEvent(label="bug", added=True, created_at=T0)],
            comments=[IssueComment(created_at=T0 + timedelta(days=1), is_maintainer=False)],
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", NOW)
        assert interval.response_at is None

    def test_relabel_creates_two_intervals(self) -> None:
        issue = Issue(
            number=1,
            label_events=[
                LabelEvent(label="security", added=True, created_at=T0),
                LabelEvent(label="security", added=False, created_at=T0 + timedelta(days=2)),
                LabelEvent(label="security", added=True, created_at=T0 + timedelta(days=20)),
            ],
        )
        intervals = maintainer_response.build_label_intervals(issue, "security", NOW)
        assert [i.start for i in intervals] == [T0, T0 + timedelta(days=20)]

    def test_close_reopen_accumulates_open_days(self) -> None:
        end = T0 + timedelta(days=30)
        issue = Issue(
            number=1,
            label_events=[
                LabelEvent(label="bug", added=True, created_at=T0),
                LabelEvent(label="bug", added=False, created_at=end),
            ],
            state_change_events=[
                StateChangeEvent(closed=True, created_at=T0 + timedelta(days=5)),
                StateChangeEvent(closed=False, created_at=T0 + timedelta(days=15)),
            ],
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", NOW)
        # Open 0-5 and 15-30.
        assert interval.duration_days == 20

    def test_final_close_after_reopen_is_the_reaction(self) -> None:
        issue = Issue(
            number=1,
            label_events=[LabelEvent(label="bug", added=True, created_at=T0)],
            state_change_events=[
                StateChangeEvent(closed=True, created_at=T0 + timedelta(days=10)),
                StateChangeEvent(closed=False, created_at=T0 + timedelta(days=20)),
                StateChangeEvent(closed=True, created_at=T0 + timedelta(days=30)),
            ],
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", NOW)
        assert interval.maintainer_responded
        assert interval.response_at == T0 + timedelta(days=30)

    def test_close_then_reopen_is_not_a_reaction(self) -> None:
        issue = Issue(
            number=1,
            label_events=[LabelEvent(label="bug", added=True, created_at=T0)],
            state_change_events=[
                StateChangeEvent(closed=True, created_at=T0 + timedelta(days=10)),
                StateChangeEvent(closed=False, created_at=T0 + timedelta(days=20)),
            ],
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", NOW)
        assert not interval.maintainer_responded
        assert interval.response_at is None

    def test_final_close_past_threshold_is_not_a_reaction(self) -> None:
        now = T0 + timedelta(days=300)
        late_close = T0 + timedelta(days=maintainer_response.RESPONSE_THRESHOLD_DAYS + 20)
        issue = Issue(
            number=1,
            label_events=[LabelEvent(label="bug", added=True, created_at=T0)],
            state_change_events=[StateChangeEvent(closed=True, created_at=late_close)],
        )
        (interval,) = maintainer_response.build_label_intervals(issue, "bug", now)
        assert interval.response_at is None
        assert maintainer_response.is_violation(interval)


class TestMaintainersRespond:
    def test_no_issues_not_applicable(self) -> None:
        raw = RawResults(maintainer_response=MaintainerResponseData(collected_at=NOW))
        findings, _ = maintainer_response.maintainers_respond_to_bug_issues(raw)
        assert [f.outcome for f in findings] == [Outcome.NOT_APPLICABLE]

    def test_violation_and_response(self) -> None:
        late = Issue(
            number=1,
            url="https://github.com/acme/widget/issues/1",
            label_events=[LabelEvent(label="bug", added=True, created_at=NOW - timedelta(days=200))],
        )
        quick = Issue(
            number=2,
            label_events=[LabelEvent(label="bug", added=True, created_at=NOW - timedelta(days=20))],
            comments=[IssueComment(created_at=NOW - timedelta(days=18), is_maintainer=True)],
        )
        raw = RawResults(
            maintainer_response=MaintainerResponseData(collected_at=NOW, issues=[late, quick])
        )
        findings, _ = maintainer_response.maintainers_respond_to_bug_issues(raw)
        assert [f.outcome for f in findings] == [Outcome.FALSE, Outcome.TRUE]
        assert findings[0].values[maintainer_response.LAG_DAYS_KEY] == 200
        assert findings[0].location is not None
        assert findings[0].location.type is FileType.URL
        assert findings[1].values[maintainer_response.LAG_DAYS_KEY] == 2


# ─── Other probes ─────────────────────────────────────────────


class TestMaintained:
    def test_counts_recent_commits(self) -> None:
        data = MaintainedData(
            collected_at=NOW,
            default_branch_commits=[
                Commit(sha="1", committed_date=NOW - timedelta(days=1)),
                Commit(sha="2", committed_date=NOW - timedelta(days=100)),
                Commit(sha="3"),
            ],
        )
        findings, _ = maintained.has_recent_commits(RawResults(maintained=data))
        assert findings[0].outcome is Outcome.TRUE
        assert findings[0].values[maintained.COMMITS_KEY] == 1

    def test_created_recently(self) -> None:
        data = MaintainedData(collected_at=NOW, created_at=NOW - timedelta(days=10))
        findings, _ = maintained.created_recently(RawResults(maintained=data))
        assert findings[0].outcome is Outcome.TRUE

    def test_unknown_creation_date_not_available(self) -> None:
        findings, _ = maintained.created_recently(
            RawResults(maintained=MaintainedData(collected_at=NOW))
        )
        assert findings[0].outcome is Outcome.NOT_AVAILABLE


class TestBinaryArtifacts:
    def test_verified_binaries_ignored(self) -> None:
        data = BinaryArtifactData(
            files=[
                File(path="gradle/wrapper/gradle-wrapper.jar", type=FileType.BINARY_VERIFIED),
                File(path="tools/a.exe", type=FileType.BINARY),
            ]
        )
        findings, _ = binary_artifacts.has_binary_artifacts(RawResults(binary_artifacts=data))
        assert len(findings) == 1
        assert findings[0].location is not None
        assert findings[0].location.path == "tools/a.exe"


class TestContributors:
    def test_distinct_entities_from_frequent_humans(self) -> None:
        users = [
            User(login="a", organizations=["acme"], companies=["acme"], num_contributions=10),
            User(login="b", companies=["globex"], num_contributions=5),
            User(login="c", companies=["initech"], num_contributions=4),
            User(login="d[bot]", is_bot=True, companies=["botco"], num_contributions=50),
        ]
        findings, _ = contributors.contributors_from_org_or_company(
            RawResults(contributors=ContributorsData(users=users))
        )
        assert [f.values[contributors.ENTITY_KEY] for f in findings] == ["acme", "globex"]


class TestSignedReleases:
    def test_only_recent_releases_considered(self) -> None:
        releases = [
            Release(tag_name=f"v{i}", assets=[ReleaseAsset(name=f"pkg-{i}.tar.gz.asc")])
            for i in range(7)
        ]
        findings, _ = signed_releases.releases_are_signed(
            RawResults(signed_releases=SignedReleasesData(releases=releases))
        )
        assert len(findings) == signed_releases.RELEASE_LOOK_BACK
        assert all(f.outcome is Outcome.TRUE for f in findings)

    def test_missing_provenance(self) -> None:
        releases = [Release(tag_name="v1", assets=[ReleaseAsset(name="pkg.tar.gz")])]
        findings, _ = signed_releases.releases_have_provenance(
            RawResults(signed_releases=SignedReleasesData(releases=releases))
        )
        assert findings[0].outcome is Outcome.FALSE


class TestWebhooks:
    def test_per_hook_outcome(self) -> None:
        hooks = [Webhook(id=1, url="https://ci.example", uses_auth_secret=True), Webhook(id=2)]
        findings, _ = webhooks.webhooks_use_secrets(
            RawResults(webhooks=WebhooksData(webhooks=hooks))
        )
        assert [f.outcome for f in findings] == [Outcome.TRUE, Outcome.FALSE]
        assert findings[1].location is None


class TestVulnerabilities:
    def test_one_finding_per_vulnerability(self) -> None:
        vulns = [Vulnerability(id="GHSA-1", aliases=["CVE-2024-1"]), Vulnerability(id="OSV-2")]
        findings, _ = vulnerabilities.has_osv_vulnerabilities(
            RawResults(vulnerabilities=VulnerabilitiesData(vulnerabilities=vulns))
        )
        assert [f.outcome for f in findings] == [Outcome.TRUE, Outcome.TRUE]
        assert "GHSA-1 / CVE-2024-1" in findings[0].message


# ─── Token-Permissions ────────────────────────────────────────


def _permissions_raw(*entries: TokenPermission) -> RawResults:
    return RawResults(
        token_permissions=TokenPermissionsData(token_permissions=list(entries), num_workflows=1)
    )


class TestTokenPermissions:
    def test_no_workflows_not_available(self) -> None:
        findings, _ = token_permissions.top_level_permissions(
            RawResults(token_permissions=TokenPermissionsData())
        )
        assert [f.outcome for f in findings] == [Outcome.NOT_AVAILABLE]

    def test_scoped_top_level_write(self) -> None:
        raw = _permissions_raw(
            _permission(PermissionLocation.TOP, PermissionLevel.WRITE, "contents", "write"),
            _permission(PermissionLocation.JOB, PermissionLevel.WRITE, "packages", "write"),
        )
        findings, _ = token_permissions.top_level_permissions(raw)
        assert [f.outcome for f in findings] == [Outcome.FALSE]
        assert findings[0].values[token_permissions.TOKEN_NAME_KEY] == "contents"
        assert findings[0].values[token_permissions.PERMISSION_LOCATION_KEY] == "topLevel"
        assert findings[0].message == "topLevel 'contents' permission set to 'write'"
        assert findings[0].location is not None
        assert findings[0].location.path == ".github/workflows/ci.yml"

    def test_write_all_is_not_a_scoped_write(self) -> None:
        raw = _permissions_raw(
            _permission(PermissionLocation.TOP, PermissionLevel.WRITE, value="write-all")
        )
        scoped, _ = token_permissions.top_level_permissions(raw)
        write_all, _ = token_permissions.has_no_github_workflow_permission_write_all_top(raw)
        job_all, _ = token_permissions.has_no_github_workflow_permission_write_all_job(raw)
        assert [f.outcome for f in scoped] == [Outcome.TRUE]
        assert [f.outcome for f in write_all] == [Outcome.FALSE]
        assert write_all[0].message == "topLevel permissions set to 'write-all'"
        assert [f.outcome for f in job_all] == [Outcome.TRUE]

    def test_level_probes(self) -> None:
        raw = _permissions_raw(
            _permission(PermissionLocation.TOP, PermissionLevel.UNDECLARED),
            _permission(PermissionLocation.JOB, PermissionLevel.READ, "contents", "read"),
            _permission(PermissionLocation.JOB, PermissionLevel.READ, "issues", "read"),
        )
        undeclared, _ = token_permissions.has_github_workflow_permission_undeclared(raw)
        read, _ = token_permissions.has_github_workflow_permission_read(raw)
        none, _ = token_permissions.has_github_workflow_permission_none(raw)
        assert [f.outcome for f in undeclared] == [Outcome.TRUE]
        assert undeclared[0].message == "no topLevel permission defined"
        assert [f.outcome for f in read] == [Outcome.TRUE, Outcome.TRUE]
        assert read[0].values[token_permissions.JOB_NAME_KEY] == "build"
        assert [f.outcome for f in none] == [Outcome.FALSE]


# ─── Secret-Scanning ──────────────────────────────────────────


class TestSecretScanning:
    @pytest.mark.parametrize(
        ("state", "outcome"),
        [(True, Outcome.TRUE), (False, Outcome.FALSE), (None, Outcome.NOT_AVAILABLE)],
    )
    def test_native_states(self, state: bool | None, outcome: Outcome) -> None:
        raw = RawResults(
            secret_scanning=SecretScanningData(native=SecretScanningSettings(enabled=state))
        )
        findings, _ = secret_scanning.has_github_secret_scanning_enabled(raw)
        assert [f.outcome for f in findings] == [outcome]

    def test_third_party_carries_ci_stats(self) -> None:
        scanner = ThirdPartyScanner(
            tool=SecretScanningTool.SHHGIT,
            files=[File(path=".github/workflows/scan.yml", type=FileType.SOURCE)],
            ci_stats=ToolCIStats(
                tool=SecretScanningTool.SHHGIT,
                execution_pattern=ExecutionPattern.PERIODIC,
                commits_analyzed=10,
                commits_with_tool_run=2,
                has_recent_runs=True,
            ),
        )
        raw = RawResults(secret_scanning=SecretScanningData(third_party=[scanner]))
        findings, _ = secret_scanning.has_third_party_shhgit(raw)
        assert findings[0].outcome is Outcome.TRUE
        assert findings[0].values[secret_scanning.EXECUTION_PATTERN_KEY] == "periodic"
        assert findings[0].values[secret_scanning.COMMITS_WITH_TOOL_RUN_KEY] == 2
        assert findings[0].values[secret_scanning.HAS_RECENT_RUNS_KEY] == 1
        assert findings[0].location is not None

        other, _ = secret_scanning.has_third_party_gitleaks(raw)
        assert [f.outcome for f in other] == [Outcome.FALSE]

    def test_third_party_without_ci_stats(self) -> None:
        scanner = ThirdPartyScanner(tool=SecretScanningTool.GGSHIELD)
        raw = RawResults(secret_scanning=SecretScanningData(third_party=[scanner]))
        findings, _ = secret_scanning.has_third_party_ggshield(raw)
        assert findings[0].outcome is Outcome.TRUE
        assert secret_scanning.COMMITS_ANALYZED_KEY not in findings[0].values
        assert findings[0].location is None


# ─── SBOM ─────────────────────────────────────────────────────


class TestSbom:
    def test_origin_specific_probes(self) -> None:
        data = SbomData(
            sbom_files=[
                SbomFile(file=File(path="bom.cdx.json"), name="bom.cdx.json"),
                SbomFile(
                    file=File(path="https://dl/bom.spdx", type=FileType.URL),
                    name="bom.spdx",
                    origin=SbomOrigin.CI_ARTIFACT,
                ),
            ]
        )
        raw = RawResults(sbom=data)
        exists, _ = sbom.sbom_exists(raw)
        artifact, _ = sbom.sbom_cicd_artifact_exists(raw)
        release, _ = sbom.sbom_release_asset_exists(raw)
        assert [f.outcome for f in exists] == [Outcome.TRUE, Outcome.TRUE]
        assert [f.outcome for f in artifact] == [Outcome.TRUE]
        assert artifact[0].values[sbom.SBOM_ORIGIN_KEY] == "ciArtifact"
        assert [f.outcome for f in release] == [Outcome.FALSE]

    def test_nothing_found(self) -> None:
        findings, _ = sbom.sbom_standards_file_used(RawResults(sbom=SbomData()))
        assert [f.outcome for f in findings] == [Outcome.FALSE]
