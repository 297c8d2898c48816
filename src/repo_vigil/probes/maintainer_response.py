"""Maintainer-Response: how quickly maintainers react to bug/security labelled issues.

The interval builder turns an issue's label history into ``LabelInterval``s,
one per continuous span a tracked label was applied. For each span the
earliest maintainer reaction is one of:

- a maintainer comment at or after the label was added
- any maintainer label action inside the span
- the issue's final close (no later reopen) within the threshold
- the label removal itself, when within the threshold or the issue never
  changed state during the span

Open time inside a span is accumulated by walking close/reopen events
through a two-state machine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from repo_vigil.finding import FileType, Finding, Location, Outcome, new_with
from repo_vigil.models import (
    Issue,
    IssueComment,
    LabelEvent,
    LabelInterval,
    MaintainerResponseData,
    RawResults,
    StateChangeEvent,
)
from repo_vigil.probes._helpers import require

MAINTAINERS_RESPOND_TO_BUG_ISSUES = "maintainersRespondToBugIssues"

TRACKED_LABELS: tuple[str, ...] = (
    "bug",
    "security",
    "kind/bug",
    "area/security",
    "area/product security",
)

RESPONSE_THRESHOLD_DAYS = 180

ISSUE_NUMBER_KEY = "issueNumber"
LAG_DAYS_KEY = "lagDays"
LABEL_KEY = "label"


def days_between(a: datetime, b: datetime) -> int:
    """Whole days from ``a`` to ``b``; 0 when ``b`` precedes ``a``."""
    if b < a:
        return 0
    return int((b - a).total_seconds() // 86400)


# ─── Open/closed state machine ────────────────────────────────


class IssueState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(slots=True)
class _OpenTimeTracker:
    """Accumulates whole open days across close/reopen transitions."""

    opened_at: datetime
    state: IssueState = IssueState.OPEN
    open_days: int = 0

    def close(self, at: datetime) -> None:
        if self.state is IssueState.OPEN:
            self.open_days += days_between(self.opened_at, at)
        self.state = IssueState.CLOSED

    def reopen(self, at: datetime) -> None:
        self.opened_at = at
        self.state = IssueState.OPEN

    def finish(self, at: datetime) -> int:
        if self.state is IssueState.OPEN:
            self.open_days += days_between(self.opened_at, at)
            self.state = IssueState.CLOSED
        return self.open_days


# ─── Interval builder ─────────────────────────────────────────


def _earliest(*candidates: datetime | None) -> datetime | None:
    present = [c for c in candidates if c is not None]
    return min(present) if present else None


def _first_maintainer_comment(comments: list[IssueComment], start: datetime) -> datetime | None:
    return _earliest(*(c.created_at for c in comments if c.is_maintainer and c.created_at >= start))


def _first_maintainer_label_action(
    events: list[LabelEvent], start: datetime, end: datetime, ongoing: bool
) -> datetime | None:
    return _earliest(
        *(
            e.created_at
            for e in events
            if e.is_maintainer and e.created_at >= start and (ongoing or e.created_at <= end)
        )
    )


def _state_changes_within(
    events: list[StateChangeEvent], start: datetime, end: datetime, ongoing: bool
) -> list[StateChangeEvent]:
    inside = [e for e in events if e.created_at >= start and (ongoing or e.created_at <= end)]
    return sorted(inside, key=lambda e: e.created_at)


def _build_interval(
    issue: Issue, label: str, start: datetime, end: datetime, ongoing: bool
) -> LabelInterval:
    reaction = _earliest(
        _first_maintainer_comment(issue.comments, start),
        _first_maintainer_label_action(issue.label_events, start, end, ongoing),
    )

    changes = _state_changes_within(issue.state_change_events, start, end, ongoing)
    tracker = _OpenTimeTracker(opened_at=start)
    for index, change in enumerate(changes):
        if not change.closed:
            tracker.reopen(change.created_at)
            continue
        tracker.close(change.created_at)
        final_close = all(later.closed for later in changes[index + 1 :])
        if final_close and days_between(start, change.created_at) <= RESPONSE_THRESHOLD_DAYS:
            reaction = _earliest(reaction, change.created_at)
    open_days = tracker.finish(end)

    if not ongoing:
        if not changes or days_between(start, end) <= RESPONSE_THRESHOLD_DAYS:
            reaction = _earliest(reaction, end)

    return LabelInterval(
        label=label,
        start=start,
        end=end,
        maintainer_responded=reaction is not None,
        response_at=reaction,
        duration_days=open_days or days_between(start, end),
    )


def build_label_intervals(issue: Issue, label: str, now: datetime) -> list[LabelInterval]:
    """Intervals during which ``label`` was applied to ``issue``, oldest first.

    A label still applied at ``now`` yields an ongoing interval ending at ``now``.
    """
    events = sorted(
        (e for e in issue.label_events if e.label == label), key=lambda e: e.created_at
    )
    intervals: list[LabelInterval] = []
    start: datetime | None = None
    for event in events:
        if event.added:
            start = event.created_at
        elif start is not None:
            intervals.append(_build_interval(issue, label, start, event.created_at, ongoing=False))
            start = None
    if start is not None:
        intervals.append(_build_interval(issue, label, start, now, ongoing=True))
    return intervals


def issue_intervals(issue: Issue, now: datetime) -> list[LabelInterval]:
    return [
        interval for label in TRACKED_LABELS for interval in build_label_intervals(issue, label, now)
    ]


def interval_lag_days(interval: LabelInterval) -> int:
    """Days the label waited for a reaction (or has waited so far)."""
    if interval.response_at is not None:
        return days_between(interval.start, interval.response_at)
    return interval.duration_days


def is_violation(interval: LabelInterval) -> bool:
    return interval_lag_days(interval) >= RESPONSE_THRESHOLD_DAYS


# ─── Probe ────────────────────────────────────────────────────


def _issue_location(issue: Issue) -> Location | None:
    if not issue.url:
        return None
    return Location(path=issue.url, type=FileType.URL)


def maintainers_respond_to_bug_issues(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One finding per issue: False if any tracked label went unanswered too long."""
    probe = MAINTAINERS_RESPOND_TO_BUG_ISSUES
    data: MaintainerResponseData = require(raw, "maintainer_response", probe)
    if not data.issues:
        return [new_with(probe, Outcome.NOT_APPLICABLE, "no issues found in repository")], probe

    findings: list[Finding] = []
    for issue in data.issues:
        intervals = issue_intervals(issue, data.collected_at)
        location = _issue_location(issue)
        if not intervals:
            findings.append(
                new_with(
                    probe,
                    Outcome.NOT_APPLICABLE,
                    f"issue #{issue.number} never had a bug/security label",
                    location,
                    values={ISSUE_NUMBER_KEY: issue.number},
                )
            )
            continue

        worst = max(intervals, key=interval_lag_days)
        lag = interval_lag_days(worst)
        values: dict[str, str | int] = {
            ISSUE_NUMBER_KEY: issue.number,
            LAG_DAYS_KEY: lag,
            LABEL_KEY: worst.label,
        }
        if is_violation(worst):
            message = (
                f"issue #{issue.number}: label '{worst.label}' went {lag} days "
                "without maintainer response"
            )
            findings.append(new_with(probe, Outcome.FALSE, message, location, values))
        else:
            message = (
                f"issue #{issue.number}: maintainers responded within {lag} days "
                f"on label '{worst.label}'"
            )
            findings.append(new_with(probe, Outcome.TRUE, message, location, values))
    return findings, probe
