"""Branch-Protection scoring.

Each protected branch accumulates points in five tiers. A tier only counts
once every earlier tier is fully satisfied across all branches:

1. basic (3): deletion and force pushes blocked
2. review (3): approvers required, PRs required, up-to-date and last-push rules
3. context (2): status checks before merging
4. thorough review (1): two or more approvers and code owner review
5. admin thorough review (1): stale review dismissal and enforcement on admins
"""

from __future__ import annotations

from dataclasses import dataclass

from repo_vigil.evaluation.base import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    DetailLogger,
    ScoreError,
    create_inconclusive_result,
    create_max_score_result,
    create_min_score_result,
    create_result_with_score,
    create_runtime_error_result,
    evidence_confidence,
    invalid_probe_results,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, LogMessage
from repo_vigil.probes import branch_protection as bp

EXPECTED_PROBES = (
    bp.BLOCKS_DELETE_ON_BRANCHES,
    bp.BLOCKS_FORCE_PUSH_ON_BRANCHES,
    bp.BRANCHES_ARE_PROTECTED,
    bp.BRANCH_PROTECTION_APPLIES_TO_ADMINS,
    bp.DISMISSES_STALE_REVIEWS,
    bp.REQUIRES_APPROVERS_FOR_PULL_REQUESTS,
    bp.REQUIRES_CODE_OWNERS_REVIEW,
    bp.REQUIRES_LAST_PUSH_APPROVAL,
    bp.REQUIRES_UP_TO_DATE_BRANCHES,
    bp.RUNS_STATUS_CHECKS_BEFORE_MERGING,
    bp.REQUIRES_PRS_TO_CHANGE_CODE,
)

MIN_REVIEWS = 2
REVIEWER_WEIGHT = 2

BASIC_LEVEL = 3
REVIEW_LEVEL = 3
CONTEXT_LEVEL = 2
THOROUGH_REVIEW_LEVEL = 1
ADMIN_THOROUGH_REVIEW_LEVEL = 1

NO_BRANCHES = "unable to detect any development/release branches"


@dataclass(slots=True)
class _TierPoints:
    basic: int = 0
    review: int = 0
    admin_review: int = 0
    context: int = 0
    thorough_review: int = 0
    codeowner_review: int = 0
    admin_thorough_review: int = 0


@dataclass(slots=True)
class _BranchScore:
    scores: _TierPoints
    maxes: _TierPoints


class _BranchLog:
    """Forwards to the detail logger only for protected branches."""

    def __init__(self, dl: DetailLogger, enabled: bool) -> None:
        self._dl = dl
        self._enabled = enabled

    def info(self, text: str) -> None:
        if self._enabled:
            self._dl.info(LogMessage(text=text))

    def warn(self, text: str) -> None:
        if self._enabled:
            self._dl.warn(LogMessage(text=text))

    def debug(self, text: str) -> None:
        if self._enabled:
            self._dl.debug(LogMessage(text=text))

    def outcome(self, f: Finding, with_debug: bool = False) -> None:
        if f.outcome is Outcome.TRUE:
            self.info(f.message)
        elif f.outcome is Outcome.FALSE:
            self.warn(f.message)
        elif with_debug and f.outcome is Outcome.NOT_AVAILABLE:
            self.debug(f.message)


def _branch_name(f: Finding) -> str:
    name = f.values.get(bp.BRANCH_NAME_KEY)
    if not name:
        raise ScoreError(f"Finding from {f.probe} is missing its branch name.")
    return str(name)


def _reviewer_count(f: Finding) -> int:
    if f.outcome is Outcome.NOT_AVAILABLE:
        return 0
    try:
        return int(f.values[bp.REQUIRED_REVIEWERS_KEY])
    except (KeyError, ValueError) as exc:
        raise ScoreError("Unable to read the required reviewer count.") from exc


def _score_finding(f: Finding, branch: _BranchScore, log: _BranchLog) -> None:
    """Add one finding's points (and the points it could have earned) to its branch."""
    true = f.outcome is Outcome.TRUE
    available = f.outcome is not Outcome.NOT_AVAILABLE
    s, m = branch.scores, branch.maxes
    match f.probe:
        case bp.BLOCKS_DELETE_ON_BRANCHES | bp.BLOCKS_FORCE_PUSH_ON_BRANCHES:
            log.outcome(f)
            s.basic += int(true)
            m.basic += 1
        case bp.DISMISSES_STALE_REVIEWS | bp.BRANCH_PROTECTION_APPLIES_TO_ADMINS:
            log.outcome(f, with_debug=True)
            s.admin_thorough_review += int(true)
            m.admin_thorough_review += int(available)
        case bp.REQUIRES_APPROVERS_FOR_PULL_REQUESTS:
            reviewers = _reviewer_count(f)
            if true and reviewers >= MIN_REVIEWS:
                log.info(f.message)
                s.thorough_review += 1
            elif f.outcome in (Outcome.TRUE, Outcome.FALSE):
                log.warn(f.message)
            m.thorough_review += 1
            if true and reviewers > 0:
                s.review += REVIEWER_WEIGHT
            m.review += REVIEWER_WEIGHT
        case bp.REQUIRES_CODE_OWNERS_REVIEW:
            if true:
                log.info(f.message)
            else:
                log.warn(f.message)
            s.codeowner_review += int(true)
            m.codeowner_review += 1
        case (
            bp.REQUIRES_UP_TO_DATE_BRANCHES
            | bp.REQUIRES_LAST_PUSH_APPROVAL
            | bp.REQUIRES_PRS_TO_CHANGE_CODE
        ):
            log.outcome(f, with_debug=True)
            s.admin_review += int(true)
            m.admin_review += int(available)
        case bp.RUNS_STATUS_CHECKS_BEFORE_MERGING:
            if true:
                log.info(f.message)
            else:
                log.warn(f.message)
            s.context += int(true)
            m.context += 1


def _normalize(score: int, max_score: int, level: int) -> float:
    if max_score == 0:
        return float(level)
    return score * level / max_score


def _compute_final_score(branches: list[_BranchScore]) -> int:
    if not branches:
        raise ScoreError("No branch scores to combine.")

    def total(attr: str, which: str) -> int:
        return sum(getattr(getattr(b, which), attr) for b in branches)

    tiers = (
        (("basic",), BASIC_LEVEL),
        (("review", "admin_review"), REVIEW_LEVEL),
        (("context",), CONTEXT_LEVEL),
        (("thorough_review", "codeowner_review"), THOROUGH_REVIEW_LEVEL),
        (("admin_thorough_review",), ADMIN_THOROUGH_REVIEW_LEVEL),
    )
    score = 0.0
    for attrs, level in tiers:
        earned = sum(total(a, "scores") for a in attrs)
        possible = sum(total(a, "maxes") for a in attrs)
        score += _normalize(earned, possible, level)
        if earned < possible:
            break
    return int(score)


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)
    if any(f.outcome is Outcome.NOT_APPLICABLE for f in findings):
        return create_inconclusive_result(name, NO_BRANCHES)

    try:
        protected: dict[str, bool] = {}
        for f in findings:
            if f.probe != bp.BRANCHES_ARE_PROTECTED:
                continue
            branch_name = _branch_name(f)
            if f.outcome is Outcome.FALSE:
                protected[branch_name] = False
                dl.warn(LogMessage(text=f"branch protection not enabled for branch '{branch_name}'"))
            elif f.outcome is Outcome.TRUE:
                protected[branch_name] = True

        branches: dict[str, _BranchScore] = {}
        for f in findings:
            branch_name = _branch_name(f)
            branch = branches.setdefault(branch_name, _BranchScore(_TierPoints(), _TierPoints()))
            _score_finding(f, branch, _BranchLog(dl, protected.get(branch_name, False)))

        if not branches:
            return create_inconclusive_result(name, NO_BRANCHES)
        score = _compute_final_score(list(branches.values()))
    except ScoreError as exc:
        return create_runtime_error_result(name, exc)

    # Settings the token could not read lower the confidence.
    confidence = evidence_confidence(findings)
    if score == MIN_RESULT_SCORE:
        return create_min_score_result(
            name, "branch protection not enabled on development/release branches", confidence
        )
    if score == MAX_RESULT_SCORE:
        return create_max_score_result(
            name,
            "branch protection is fully enabled on development and all release branches",
            confidence,
        )
    return create_result_with_score(
        name,
        "branch protection is not maximal on development and all release branches",
        score,
        confidence,
    )
