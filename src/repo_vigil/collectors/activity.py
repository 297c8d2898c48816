"""Collectors for project activity: commits, reviews, CI, issues, contributors."""

from __future__ import annotations

import asyncio
import logging
import re

from repo_vigil.clients.base import CheckRequest
from repo_vigil.models import (
    Changeset,
    CITestData,
    CodeReviewData,
    Commit,
    ContributorsData,
    MaintainedData,
    MaintainerResponseData,
    PullRequest,
    ReviewPlatform,
    RevisionCIInfo,
)
from repo_vigil.probes.maintainer_response import TRACKED_LABELS

logger = logging.getLogger(__name__)

# ─── Code-Review ─────────────────────────────────────────────

# Trailers left by review systems that land changes outside pull requests.
REVIEW_TRAILERS: tuple[tuple[ReviewPlatform, re.Pattern[str]], ...] = (
    (ReviewPlatform.GERRIT, re.compile(r"^Reviewed-on:\s*(\S+)", re.MULTILINE)),
    (ReviewPlatform.PHABRICATOR, re.compile(r"^Differential Revision:\s*(\S+)", re.MULTILINE)),
    (ReviewPlatform.PIPER, re.compile(r"^PiperOrigin-RevId:\s*(\S+)", re.MULTILINE)),
)


def detect_review_platform(message: str) -> tuple[ReviewPlatform, str]:
    """Platform and revision id named by a commit message trailer, if any."""
    for platform, pattern in REVIEW_TRAILERS:
        m = pattern.search(message)
        if m:
            return platform, m.group(1)
    return ReviewPlatform.UNKNOWN, ""


def group_changesets(commits: list[Commit]) -> list[Changeset]:
    """Group default-branch commits into changesets, one per merged pull request.

    Commits that did not arrive through a pull request form their own
    changeset, tagged with the review platform their message names.
    """
    # Keyed by pull request number, or by sha for commits without one.
    groups: dict[int | str, list[Commit]] = {}
    for commit in commits:
        pr = commit.associated_merge_request
        key: int | str = pr.number if pr is not None else commit.sha
        groups.setdefault(key, []).append(commit)

    changesets: list[Changeset] = []
    for group in groups.values():
        first = group[0]
        pr = first.associated_merge_request
        if pr is not None:
            changesets.append(
                Changeset(
                    revision_id=str(pr.number),
                    review_platform=ReviewPlatform.GITHUB,
                    commits=group,
                    reviews=list(pr.reviews),
                    author=pr.author or first.committer,
                )
            )
            continue
        platform, revision = detect_review_platform(first.message)
        changesets.append(
            Changeset(
                revision_id=revision or first.sha,
                review_platform=platform,
                commits=group,
                author=first.committer,
            )
        )
    return changesets


async def collect_code_review(request: CheckRequest) -> CodeReviewData:
    commits = await request.repo.list_commits()
    return CodeReviewData(default_branch_changesets=group_changesets(commits))


# ─── CI-Tests ────────────────────────────────────────────────


async def _ci_info(request: CheckRequest, pr: PullRequest) -> RevisionCIInfo:
    check_runs, statuses = await asyncio.gather(
        request.repo.list_check_runs(pr.head_sha),
        request.repo.list_statuses(pr.head_sha),
    )
    return RevisionCIInfo(
        head_sha=pr.head_sha,
        pull_request_number=pr.number,
        check_runs=check_runs,
        statuses=statuses,
    )


async def collect_ci_tests(request: CheckRequest) -> CITestData:
    pulls = [p for p in await request.repo.list_merged_pull_requests() if p.head_sha]
    infos = await asyncio.gather(*(_ci_info(request, p) for p in pulls))
    return CITestData(ci_info=list(infos))


# ─── Maintained / Maintainer-Response ────────────────────────


async def collect_maintained(request: CheckRequest) -> MaintainedData:
    meta, commits, issues = await asyncio.gather(
        request.repo.get_metadata(),
        request.repo.list_commits(),
        request.repo.list_issues_with_history(),
    )
    return MaintainedData(
        collected_at=request.now,
        created_at=meta.created_at,
        archived=meta.archived,
        default_branch_commits=commits,
        issues=issues,
    )


async def collect_maintainer_response(request: CheckRequest) -> MaintainerResponseData:
    tracked = set(TRACKED_LABELS)
    issues = [
        issue
        for issue in await request.repo.list_issues_with_history()
        if any(event.label in tracked for event in issue.label_events)
    ]
    logger.debug("%d issues carry tracked labels in %s", len(issues), request.repo.uri)
    return MaintainerResponseData(collected_at=request.now, issues=issues)


# ─── Contributors ────────────────────────────────────────────


async def collect_contributors(request: CheckRequest) -> ContributorsData:
    return ContributorsData(users=await request.repo.list_contributors())
