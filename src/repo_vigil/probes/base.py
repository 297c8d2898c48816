"""Probe definitions: the two registration variants and their callables."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_vigil.finding import Finding
from repo_vigil.models import CheckName, RawResults

if TYPE_CHECKING:
    from repo_vigil.clients.base import CheckRequest

ProbeOutput = tuple[list[Finding], str]
"""Findings in input order, plus the probe's own name."""

RawProbeImpl = Callable[[RawResults | None], ProbeOutput]
IndependentProbeImpl = Callable[["CheckRequest"], Awaitable[ProbeOutput]]


@dataclass(frozen=True, slots=True)
class RawDataProbe:
    """A probe that reads an already-collected RawResults snapshot."""

    name: str
    implementation: RawProbeImpl
    required_raw_data: tuple[CheckName, ...]


@dataclass(frozen=True, slots=True)
class IndependentProbe:
    """A probe that fetches its own data through the request's clients."""

    name: str
    implementation: IndependentProbeImpl


Probe = RawDataProbe | IndependentProbe
