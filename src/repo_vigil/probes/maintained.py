"""Maintained probes: archival, age and recent activity of the project."""

from __future__ import annotations

from datetime import datetime, timedelta

from repo_vigil.finding import Finding, Outcome, new_false, new_true, new_with
from repo_vigil.models import Issue, MaintainedData, RawResults
from repo_vigil.probes._helpers import plural, require

ARCHIVED = "archived"
HAS_RECENT_COMMITS = "hasRecentCommits"
ISSUE_ACTIVITY_BY_PROJECT_MEMBER = "issueActivityByProjectMember"
CREATED_RECENTLY = "createdRecently"

LOOK_BACK_DAYS = 90

COMMITS_KEY = "commitsWithinThreshold"
ISSUES_KEY = "numberOfIssuesUpdatedWithinThreshold"
LOOK_BACK_KEY = "lookBackDays"


def archived(raw: RawResults | None) -> tuple[list[Finding], str]:
    data: MaintainedData = require(raw, "maintained", ARCHIVED)
    if data.archived:
        return [new_true(ARCHIVED, "repository is archived")], ARCHIVED
    return [new_false(ARCHIVED, "repository is not archived")], ARCHIVED


def created_recently(raw: RawResults | None) -> tuple[list[Finding], str]:
    data: MaintainedData = require(raw, "maintained", CREATED_RECENTLY)
    threshold = data.collected_at - timedelta(days=LOOK_BACK_DAYS)
    values: dict[str, str | int] = {LOOK_BACK_KEY: LOOK_BACK_DAYS}
    if data.created_at is None:
        message = "unable to determine when the repository was created"
        finding = new_with(CREATED_RECENTLY, Outcome.NOT_AVAILABLE, message, values=values)
        return [finding], CREATED_RECENTLY
    if data.created_at > threshold:
        message = f"repository was created in the last {LOOK_BACK_DAYS} days"
        return [new_with(CREATED_RECENTLY, Outcome.TRUE, message, values=values)], CREATED_RECENTLY
    message = f"repository was not created in the last {LOOK_BACK_DAYS} days"
    return [new_with(CREATED_RECENTLY, Outcome.FALSE, message, values=values)], CREATED_RECENTLY


def has_recent_commits(raw: RawResults | None) -> tuple[list[Finding], str]:
    data: MaintainedData = require(raw, "maintained", HAS_RECENT_COMMITS)
    threshold = data.collected_at - timedelta(days=LOOK_BACK_DAYS)
    recent = sum(
        1
        for commit in data.default_branch_commits
        if commit.committed_date is not None and commit.committed_date > threshold
    )
    values: dict[str, str | int] = {COMMITS_KEY: recent, LOOK_BACK_KEY: LOOK_BACK_DAYS}
    if recent:
        message = f"found {plural(recent, 'commit')} in the last {LOOK_BACK_DAYS} days"
        outcome = Outcome.TRUE
    else:
        message = f"no commits found in the last {LOOK_BACK_DAYS} days"
        outcome = Outcome.FALSE
    return [new_with(HAS_RECENT_COMMITS, outcome, message, values=values)], HAS_RECENT_COMMITS


def _has_member_activity(issue: Issue, threshold: datetime) -> bool:
    if issue.author_is_maintainer and issue.created_at is not None and issue.created_at > threshold:
        return True
    return any(c.is_maintainer and c.created_at > threshold for c in issue.comments)


def issue_activity_by_project_member(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = ISSUE_ACTIVITY_BY_PROJECT_MEMBER
    data: MaintainedData = require(raw, "maintained", probe)
    threshold = data.collected_at - timedelta(days=LOOK_BACK_DAYS)
    active = sum(1 for issue in data.issues if _has_member_activity(issue, threshold))
    values: dict[str, str | int] = {ISSUES_KEY: active, LOOK_BACK_KEY: LOOK_BACK_DAYS}
    if active:
        message = (
            f"found {plural(active, 'issue')} with activity from a project member "
            f"in the last {LOOK_BACK_DAYS} days"
        )
        outcome = Outcome.TRUE
    else:
        message = f"no issue activity from project members in the last {LOOK_BACK_DAYS} days"
        outcome = Outcome.FALSE
    return [new_with(probe, outcome, message, values=values)], probe
