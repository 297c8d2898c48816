"""Score arithmetic and result constructors shared by every check evaluator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from repo_vigil.errors import RepoVigilError
from repo_vigil.finding import Finding, Outcome
from repo_vigil.models import CheckDetail, CheckResult, DetailType, LogMessage

logger = logging.getLogger(__name__)

MAX_RESULT_SCORE = 10
MIN_RESULT_SCORE = 0
INCONCLUSIVE_RESULT_SCORE = -1

MAX_RESULT_CONFIDENCE = 10
MIN_RESULT_CONFIDENCE = 0


class ScoreError(RepoVigilError):
    """Score arithmetic was asked to do something impossible."""


# ─── Detail Logging ───────────────────────────────────────────


class DetailLogger:
    """Collects the human-facing details of one check evaluation."""

    def __init__(self) -> None:
        self._details: list[CheckDetail] = []

    def info(self, msg: LogMessage) -> None:
        self._details.append(CheckDetail(DetailType.INFO, msg))

    def warn(self, msg: LogMessage) -> None:
        self._details.append(CheckDetail(DetailType.WARN, msg))

    def debug(self, msg: LogMessage) -> None:
        self._details.append(CheckDetail(DetailType.DEBUG, msg))

    def flush(self) -> list[CheckDetail]:
        """Return everything logged so far and start over."""
        details, self._details = self._details, []
        return details


def log_finding(dl: DetailLogger, finding: Finding, level: DetailType) -> None:
    msg = message_from_finding(finding)
    match level:
        case DetailType.INFO:
            dl.info(msg)
        case DetailType.WARN:
            dl.warn(msg)
        case DetailType.DEBUG:
            dl.debug(msg)


def message_from_finding(finding: Finding, text: str | None = None) -> LogMessage:
    """A LogMessage pointing at the finding's location."""
    loc = finding.location
    if loc is None:
        return LogMessage(text=text if text is not None else finding.message, finding=finding)
    return LogMessage(
        text=text if text is not None else finding.message,
        finding=finding,
        path=loc.path,
        type=loc.type,
        offset=loc.line_start,
        end_offset=loc.line_end,
        snippet=loc.snippet,
    )


# ─── Score Arithmetic ─────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ProportionalScore:
    success: int
    total: int
    weight: int


def create_proportional_score(success: int, total: int) -> int:
    """Scale ``success/total`` onto 0..10, rounding down."""
    if total == 0:
        return MIN_RESULT_SCORE
    return min(MAX_RESULT_SCORE * success // total, MAX_RESULT_SCORE)


def create_proportional_score_weighted(scores: Iterable[ProportionalScore]) -> int:
    """Pool several weighted success/total groups and scale onto 0..10.

    Groups with nothing to count are skipped. Returns the inconclusive score
    when no group has anything to count, and the maximum when every remaining
    weight is zero.
    """
    weighted_success = 0
    weighted_total = 0
    counted = 0
    for score in scores:
        if score.success > score.total:
            raise ScoreError(
                f"Invalid proportional score: {score.success} successes out of {score.total}."
            )
        if score.total == 0:
            continue
        counted += 1
        weighted_success += score.success * score.weight
        weighted_total += score.total * score.weight
    if counted == 0:
        return INCONCLUSIVE_RESULT_SCORE
    if weighted_total == 0:
        return MAX_RESULT_SCORE
    return min(MAX_RESULT_SCORE * weighted_success // weighted_total, MAX_RESULT_SCORE)


def aggregate_scores(*scores: int) -> int:
    """Floored mean of equally weighted scores."""
    if not scores:
        return MIN_RESULT_SCORE
    return sum(scores) // len(scores)


def aggregate_scores_with_weight(scores: dict[int, int]) -> int:
    """Floored weighted mean; ``scores`` maps score -> weight."""
    total_weight = sum(scores.values())
    if total_weight == 0:
        return INCONCLUSIVE_RESULT_SCORE
    return sum(score * weight for score, weight in scores.items()) // total_weight


def normalize_reason(reason: str, score: int) -> str:
    return f"{reason} -- score normalized to {score}"


# ─── Result Constructors ──────────────────────────────────────


def evidence_confidence(findings: Iterable[Finding]) -> int:
    """Confidence scaled by the share of findings whose evidence was observable.

    Every NotAvailable finding lowers confidence proportionally. A result that
    was scored at all keeps a confidence of at least 1.
    """
    outcomes = [f.outcome for f in findings]
    if not outcomes:
        return MAX_RESULT_CONFIDENCE
    available = sum(1 for o in outcomes if o is not Outcome.NOT_AVAILABLE)
    return max(MAX_RESULT_CONFIDENCE * available // len(outcomes), MIN_RESULT_CONFIDENCE + 1)


def create_result_with_score(
    name: str, reason: str, score: int, confidence: int = MAX_RESULT_CONFIDENCE
) -> CheckResult:
    if not MIN_RESULT_SCORE <= score <= MAX_RESULT_SCORE:
        return create_runtime_error_result(
            name, ScoreError(f"Score {score} for {name} is outside the 0-10 range.")
        )
    if not MIN_RESULT_CONFIDENCE <= confidence <= MAX_RESULT_CONFIDENCE:
        return create_runtime_error_result(
            name, ScoreError(f"Confidence {confidence} for {name} is outside the 0-10 range.")
        )
    return CheckResult(name=name, score=score, reason=reason, confidence=confidence)


def create_max_score_result(
    name: str, reason: str, confidence: int = MAX_RESULT_CONFIDENCE
) -> CheckResult:
    return create_result_with_score(name, reason, MAX_RESULT_SCORE, confidence)


def create_min_score_result(
    name: str, reason: str, confidence: int = MAX_RESULT_CONFIDENCE
) -> CheckResult:
    return create_result_with_score(name, reason, MIN_RESULT_SCORE, confidence)


def create_inconclusive_result(name: str, reason: str) -> CheckResult:
    return CheckResult(
        name=name,
        score=INCONCLUSIVE_RESULT_SCORE,
        reason=reason,
        confidence=MIN_RESULT_CONFIDENCE,
    )


def create_runtime_error_result(name: str, error: Exception) -> CheckResult:
    return CheckResult(
        name=name,
        score=INCONCLUSIVE_RESULT_SCORE,
        reason=str(error),
        confidence=MIN_RESULT_CONFIDENCE,
        error=error,
    )


# ─── Finding Helpers ──────────────────────────────────────────


def invalid_probe_results(name: str, findings: list[Finding], expected: Iterable[str]) -> CheckResult:
    expected = sorted(set(expected))
    got = sorted({f.probe for f in findings})
    logger.warning("%s received findings from %s, expected %s", name, got, expected)
    return create_runtime_error_result(
        name,
        ScoreError(f"Invalid probe results for {name}: expected probes {expected}, got {got}."),
    )


Evaluator = Callable[[str, list[Finding], DetailLogger], CheckResult]
"""Turns one check's findings into a CheckResult, logging details as it goes."""
