"""Branch-Protection probes. Every finding carries the branch it describes."""

from __future__ import annotations

from collections.abc import Callable

from repo_vigil.finding import Finding, Outcome, new_not_applicable, new_with
from repo_vigil.models import BranchProtectionData, BranchRef, RawResults
from repo_vigil.probes._helpers import require

BRANCHES_ARE_PROTECTED = "branchesAreProtected"
BLOCKS_DELETE_ON_BRANCHES = "blocksDeleteOnBranches"
BLOCKS_FORCE_PUSH_ON_BRANCHES = "blocksForcePushOnBranches"
BRANCH_PROTECTION_APPLIES_TO_ADMINS = "branchProtectionAppliesToAdmins"
DISMISSES_STALE_REVIEWS = "dismissesStaleReviews"
REQUIRES_APPROVERS_FOR_PULL_REQUESTS = "requiresApproversForPullRequests"
REQUIRES_CODE_OWNERS_REVIEW = "requiresCodeOwnersReview"
REQUIRES_LAST_PUSH_APPROVAL = "requiresLastPushApproval"
REQUIRES_UP_TO_DATE_BRANCHES = "requiresUpToDateBranches"
RUNS_STATUS_CHECKS_BEFORE_MERGING = "runsStatusChecksBeforeMerging"
REQUIRES_PRS_TO_CHANGE_CODE = "requiresPRsToChangeCode"

BRANCH_NAME_KEY = "branchName"
REQUIRED_REVIEWERS_KEY = "requiredReviewers"

# (outcome, message) for one branch
Verdict = tuple[Outcome, str]


def _per_branch(
    raw: RawResults | None,
    probe: str,
    judge: Callable[[BranchRef, BranchProtectionData], Verdict],
    extra: Callable[[BranchRef], dict[str, str | int]] | None = None,
) -> tuple[list[Finding], str]:
    data: BranchProtectionData = require(raw, "branch_protection", probe)
    if not data.branches:
        return [new_not_applicable(probe, "no development or release branches found")], probe

    findings = []
    for branch in data.branches:
        outcome, message = judge(branch, data)
        values: dict[str, str | int] = {BRANCH_NAME_KEY: branch.name}
        if extra is not None:
            values.update(extra(branch))
        findings.append(new_with(probe, outcome, message, values=values))
    return findings, probe


def _tristate(value: bool | None, branch: str, on: str, off: str, unknown: str) -> Verdict:
    if value is None:
        return Outcome.NOT_AVAILABLE, unknown.format(branch=branch)
    if value:
        return Outcome.TRUE, on.format(branch=branch)
    return Outcome.FALSE, off.format(branch=branch)


def branches_are_protected(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        if branch.protected:
            return Outcome.TRUE, f"branch '{branch.name}' is protected"
        return Outcome.FALSE, f"branch '{branch.name}' is not protected"

    return _per_branch(raw, BRANCHES_ARE_PROTECTED, judge)


def blocks_delete_on_branches(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        allowed = branch.protection_rule.allow_deletions
        if allowed is None:
            return Outcome.NOT_AVAILABLE, f"unable to retrieve whether '{branch.name}' blocks deletion"
        if allowed:
            return Outcome.FALSE, f"'allow deletion' enabled on branch '{branch.name}'"
        return Outcome.TRUE, f"'allow deletion' disabled on branch '{branch.name}'"

    return _per_branch(raw, BLOCKS_DELETE_ON_BRANCHES, judge)


def blocks_force_push_on_branches(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        allowed = branch.protection_rule.allow_force_pushes
        if allowed is None:
            return (
                Outcome.NOT_AVAILABLE,
                f"unable to retrieve whether '{branch.name}' blocks force pushes",
            )
        if allowed:
            return Outcome.FALSE, f"'force pushes' enabled on branch '{branch.name}'"
        return Outcome.TRUE, f"'force pushes' disabled on branch '{branch.name}'"

    return _per_branch(raw, BLOCKS_FORCE_PUSH_ON_BRANCHES, judge)


def branch_protection_applies_to_admins(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        return _tristate(
            branch.protection_rule.enforce_admins,
            branch.name,
            "settings apply to administrators on branch '{branch}'",
            "settings do not apply to administrators on branch '{branch}'",
            "unable to retrieve whether settings apply to administrators on branch '{branch}'",
        )

    return _per_branch(raw, BRANCH_PROTECTION_APPLIES_TO_ADMINS, judge)


def dismisses_stale_reviews(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        return _tristate(
            branch.protection_rule.pull_request_reviews.dismiss_stale_reviews,
            branch.name,
            "stale review dismissal enabled on branch '{branch}'",
            "stale review dismissal disabled on branch '{branch}'",
            "unable to retrieve review dismissal settings on branch '{branch}'",
        )

    return _per_branch(raw, DISMISSES_STALE_REVIEWS, judge)


def requires_approvers_for_pull_requests(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        count = branch.protection_rule.pull_request_reviews.required_approving_review_count
        if count is None:
            return (
                Outcome.NOT_AVAILABLE,
                f"unable to retrieve required approving review count on branch '{branch.name}'",
            )
        if count > 0:
            return (
                Outcome.TRUE,
                f"required approving review count is {count} on branch '{branch.name}'",
            )
        return Outcome.FALSE, f"branch '{branch.name}' does not require approvers"

    def extra(branch: BranchRef) -> dict[str, str | int]:
        count = branch.protection_rule.pull_request_reviews.required_approving_review_count
        return {REQUIRED_REVIEWERS_KEY: count or 0}

    return _per_branch(raw, REQUIRES_APPROVERS_FOR_PULL_REQUESTS, judge, extra)


def requires_code_owners_review(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, data: BranchProtectionData) -> Verdict:
        required = branch.protection_rule.pull_request_reviews.require_code_owner_reviews
        if required is None:
            return (
                Outcome.NOT_AVAILABLE,
                f"unable to retrieve codeowner review settings on branch '{branch.name}'",
            )
        if not required:
            return Outcome.FALSE, f"codeowners review is not required on branch '{branch.name}'"
        if not data.codeowners_files:
            return (
                Outcome.FALSE,
                f"codeowners review is required on branch '{branch.name}' "
                "but no CODEOWNERS file found in repo",
            )
        return Outcome.TRUE, f"codeowner review is required on branch '{branch.name}'"

    return _per_branch(raw, REQUIRES_CODE_OWNERS_REVIEW, judge)


def requires_last_push_approval(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        return _tristate(
            branch.protection_rule.pull_request_reviews.require_last_push_approval,
            branch.name,
            "last push approval enabled on branch '{branch}'",
            "last push approval disabled on branch '{branch}'",
            "unable to retrieve last push approval settings on branch '{branch}'",
        )

    return _per_branch(raw, REQUIRES_LAST_PUSH_APPROVAL, judge)


def requires_up_to_date_branches(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        return _tristate(
            branch.protection_rule.status_checks.up_to_date_before_merge,
            branch.name,
            "status checks require up-to-date branches for '{branch}'",
            "status checks do not require up-to-date branches for '{branch}'",
            "unable to retrieve up-to-date settings on branch '{branch}'",
        )

    return _per_branch(raw, REQUIRES_UP_TO_DATE_BRANCHES, judge)


def runs_status_checks_before_merging(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        checks = branch.protection_rule.status_checks
        if checks.requires_status_checks and checks.contexts:
            return (
                Outcome.TRUE,
                f"status check found to merge onto on branch '{branch.name}'",
            )
        return Outcome.FALSE, f"no status checks found to merge onto branch '{branch.name}'"

    return _per_branch(raw, RUNS_STATUS_CHECKS_BEFORE_MERGING, judge)


def requires_prs_to_change_code(raw: RawResults | None) -> tuple[list[Finding], str]:
    def judge(branch: BranchRef, _: BranchProtectionData) -> Verdict:
        return _tristate(
            branch.protection_rule.pull_request_reviews.required,
            branch.name,
            "PRs are required in order to make changes on branch '{branch}'",
            "PRs are not required to make changes on branch '{branch}'; "
            "or we don't have data to detect it",
            "unable to retrieve whether PRs are required on branch '{branch}'",
        )

    return _per_branch(raw, REQUIRES_PRS_TO_CHANGE_CODE, judge)
