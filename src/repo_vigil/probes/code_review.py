"""Code-Review probes over the default branch's recent changesets."""

from __future__ import annotations

from repo_vigil.finding import (
    Finding,
    Outcome,
    new_negative,
    new_not_applicable,
    new_not_available,
    new_positive,
    new_with,
    with_values,
)
from repo_vigil.models import Changeset, CodeReviewData, RawResults, ReviewPlatform
from repo_vigil.probes._helpers import require

CODE_REVIEWED = "codeReviewed"
CODE_APPROVED = "codeApproved"
CODE_REVIEW_TWO_REVIEWERS = "codeReviewTwoReviewers"

REVIEWED_KEY = "reviewedChangesets"
TOTAL_KEY = "totalChangesets"
UNREVIEWED_BOT_KEY = "unreviewedBotChangesets"
APPROVED_KEY = "approvedChangesets"

MINIMUM_REVIEWERS = 2

# Platforms where landing a change implies it went through review.
_IMPLICIT_REVIEW_PLATFORMS = frozenset(
    {ReviewPlatform.GERRIT, ReviewPlatform.PHABRICATOR, ReviewPlatform.PIPER}
)


def _is_bot(changeset: Changeset) -> bool:
    return changeset.author is not None and changeset.author.is_bot


def _author_login(changeset: Changeset) -> str:
    return changeset.author.login if changeset.author is not None else ""


def is_reviewed(changeset: Changeset) -> bool:
    """A changeset counts as reviewed if anyone other than its author reviewed it."""
    if changeset.review_platform in _IMPLICIT_REVIEW_PLATFORMS:
        return True
    author = _author_login(changeset)
    return any(
        review.author is None or not review.author.login or review.author.login != author
        for review in changeset.reviews
    )


def _is_approved(changeset: Changeset) -> bool:
    if changeset.review_platform in _IMPLICIT_REVIEW_PLATFORMS:
        return True
    author = _author_login(changeset)
    return any(
        review.state == "APPROVED"
        and (review.author is None or review.author.login != author)
        for review in changeset.reviews
    )


def _unique_reviewers(changeset: Changeset) -> int:
    author = _author_login(changeset)
    return len(
        {
            review.author.login
            for review in changeset.reviews
            if review.author is not None and review.author.login and review.author.login != author
        }
    )


def code_reviewed(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One finding summarising review coverage of human-authored changesets."""
    data: CodeReviewData = require(raw, "code_review", CODE_REVIEWED)
    changesets = data.default_branch_changesets
    if not changesets:
        return [new_not_applicable(CODE_REVIEWED, "no changesets detected")], CODE_REVIEWED

    human = [c for c in changesets if not _is_bot(c)]
    if not human:
        finding = new_not_available(
            CODE_REVIEWED, f"all {len(changesets)} changesets authored by bot(s)"
        )
        return [finding], CODE_REVIEWED

    total = len(human)
    reviewed = sum(1 for c in human if is_reviewed(c))
    unreviewed_bots = sum(1 for c in changesets if _is_bot(c) and not is_reviewed(c))

    if reviewed == total:
        finding = new_positive(
            CODE_REVIEWED, f"all human changesets reviewed: {reviewed} out of {total}"
        )
    else:
        finding = new_negative(
            CODE_REVIEWED, f"found {reviewed} reviews among {total} changesets"
        )
    finding = with_values(
        finding,
        **{REVIEWED_KEY: reviewed, TOTAL_KEY: total, UNREVIEWED_BOT_KEY: unreviewed_bots},
    )
    return [finding], CODE_REVIEWED


def code_approved(raw: RawResults | None) -> tuple[list[Finding], str]:
    data: CodeReviewData = require(raw, "code_review", CODE_APPROVED)
    changesets = data.default_branch_changesets
    if not changesets:
        return [new_not_applicable(CODE_APPROVED, "no changesets detected")], CODE_APPROVED

    found_human = False
    counted = 0
    approved = 0
    for changeset in changesets:
        ok = _is_approved(changeset)
        # Approved bot changes would inflate single-maintainer projects.
        if ok and _is_bot(changeset):
            continue
        counted += 1
        found_human = found_human or not _is_bot(changeset)
        approved += int(ok)

    if approved != counted:
        outcome, message = Outcome.FALSE, f"found {approved}/{counted} approved changesets"
    elif not found_human:
        outcome = Outcome.NOT_APPLICABLE
        message = f"found no human activity in the last {len(changesets)} changesets"
    else:
        outcome, message = Outcome.TRUE, "all changesets approved"
    finding = new_with(
        CODE_APPROVED,
        outcome,
        message,
        values={APPROVED_KEY: approved, TOTAL_KEY: counted},
    )
    return [finding], CODE_APPROVED


def code_review_two_reviewers(raw: RawResults | None) -> tuple[list[Finding], str]:
    data: CodeReviewData = require(raw, "code_review", CODE_REVIEW_TWO_REVIEWERS)
    changesets = data.default_branch_changesets
    if not changesets:
        finding = new_not_applicable(CODE_REVIEW_TWO_REVIEWERS, "no changesets detected")
        return [finding], CODE_REVIEW_TWO_REVIEWERS

    if all(_is_bot(c) for c in changesets):
        finding = new_not_available(CODE_REVIEW_TWO_REVIEWERS, "all changesets authored by bot(s)")
        return [finding], CODE_REVIEW_TWO_REVIEWERS

    least = min(_unique_reviewers(c) for c in changesets)
    if least < MINIMUM_REVIEWERS:
        finding = new_negative(
            CODE_REVIEW_TWO_REVIEWERS, f"some changesets had <{MINIMUM_REVIEWERS} reviewers"
        )
    else:
        finding = new_positive(
            CODE_REVIEW_TWO_REVIEWERS,
            f">={MINIMUM_REVIEWERS} reviewers found for all changesets",
        )
    return [finding], CODE_REVIEW_TWO_REVIEWERS
