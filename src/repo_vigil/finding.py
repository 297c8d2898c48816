"""Findings: the immutable unit of evidence emitted by probes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from repo_vigil.errors import FindingValidationError

# ─── Enumerations ─────────────────────────────────────────────


class Outcome(StrEnum):
    """Closed set of probe outcomes."""

    TRUE = "True"
    FALSE = "False"
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NOT_APPLICABLE = "NotApplicable"
    NOT_AVAILABLE = "NotAvailable"
    NOT_SUPPORTED = "NotSupported"
    ERROR = "Error"


class FileType(StrEnum):
    NONE = ""
    SOURCE = "source"
    BINARY = "binary"
    BINARY_VERIFIED = "binary_verified"
    TEXT = "text"
    URL = "url"


# ─── Models ───────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Location:
    """Where a finding's evidence lives."""

    path: str
    type: FileType = FileType.NONE
    line_start: int | None = None
    line_end: int | None = None
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class Finding:
    """One observation made by one probe.

    ``values`` is copied into a read-only mapping on construction.
    """

    probe: str
    outcome: Outcome
    message: str = ""
    location: Location | None = None
    values: Mapping[str, str | int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "probe": self.probe,
            "outcome": self.outcome.value,
            "message": self.message,
        }
        if self.location is not None:
            result["location"] = {
                "path": self.location.path,
                "type": self.location.type.value,
                "line_start": self.location.line_start,
                "line_end": self.location.line_end,
                "snippet": self.location.snippet,
            }
        if self.values:
            result["values"] = dict(self.values)
        return result


# ─── Construction ─────────────────────────────────────────────


def new_with(
    probe: str,
    outcome: Outcome | str,
    message: str,
    location: Location | None = None,
    values: Mapping[str, str | int] | None = None,
) -> Finding:
    """Build a validated Finding.

    Raises FindingValidationError when the probe name is empty, the outcome is
    not a member of Outcome, or the location has no path.
    """
    if not probe:
        raise FindingValidationError("Finding requires a non-empty probe name.")
    try:
        resolved = Outcome(outcome)
    except ValueError as exc:
        raise FindingValidationError(
            f"Invalid outcome {outcome!r} for probe {probe}. "
            f"Expected one of: {', '.join(o.value for o in Outcome)}."
        ) from exc
    if location is not None and not location.path:
        raise FindingValidationError(f"Finding location for probe {probe} has an empty path.")
    return Finding(
        probe=probe,
        outcome=resolved,
        message=message,
        location=location,
        values=dict(values or {}),
    )


def new_true(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.TRUE, message, location)


def new_false(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.FALSE, message, location)


def new_positive(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.POSITIVE, message, location)


def new_negative(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.NEGATIVE, message, location)


def new_not_applicable(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.NOT_APPLICABLE, message, location)


def new_not_available(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.NOT_AVAILABLE, message, location)


def new_not_supported(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.NOT_SUPPORTED, message, location)


def new_error(probe: str, message: str, location: Location | None = None) -> Finding:
    return new_with(probe, Outcome.ERROR, message, location)


def unique_probes_equal(findings: Iterable[Finding], probes: Iterable[str]) -> bool:
    """True when findings come from exactly the given set of probes."""
    return {f.probe for f in findings} == set(probes)


def with_values(finding: Finding, **values: str | int) -> Finding:
    """Return a copy of ``finding`` with extra values merged in."""
    return Finding(
        probe=finding.probe,
        outcome=finding.outcome,
        message=finding.message,
        location=finding.location,
        values={**finding.values, **values},
    )
