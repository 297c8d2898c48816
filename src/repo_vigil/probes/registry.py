"""Probe registry -- an explicit, injectable name -> probe map."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from repo_vigil.errors import ProbeNotFoundError, ProbeRegistrationError
from repo_vigil.models import CheckName
from repo_vigil.probes.base import IndependentProbe, Probe, RawDataProbe

logger = logging.getLogger(__name__)


class ProbeRegistry:
    """Holds probe definitions by name.

    Populate it before concurrent readers see it; lookups never mutate state.
    """

    def __init__(self) -> None:
        self._probes: dict[str, Probe] = {}

    def register(self, probe: Probe) -> None:
        """Validate and insert a probe. A later registration replaces an earlier one."""
        _validate(probe)
        if probe.name in self._probes:
            logger.debug("Replacing registered probe %s", probe.name)
        self._probes[probe.name] = probe

    def get(self, name: str) -> Probe:
        try:
            return self._probes[name]
        except KeyError:
            raise ProbeNotFoundError(f"Probe not found: {name}") from None

    def names(self) -> list[str]:
        return sorted(self._probes)

    def applicable(self, collected: Iterable[CheckName]) -> list[RawDataProbe]:
        """Raw-data probes whose required categories were all collected."""
        available = set(collected)
        return [
            probe
            for probe in self._probes.values()
            if isinstance(probe, RawDataProbe) and set(probe.required_raw_data) <= available
        ]

    def independent(self) -> list[IndependentProbe]:
        return [p for p in self._probes.values() if isinstance(p, IndependentProbe)]

    def __contains__(self, name: object) -> bool:
        return name in self._probes

    def __len__(self) -> int:
        return len(self._probes)

    def __iter__(self) -> Iterator[Probe]:
        return iter(list(self._probes.values()))


def _validate(probe: Probe) -> None:
    if not probe.name:
        raise ProbeRegistrationError("Probe name must not be empty.")
    if not callable(probe.implementation):
        raise ProbeRegistrationError(f"Probe {probe.name} has no callable implementation.")
    match probe:
        case RawDataProbe(required_raw_data=required):
            if not required:
                raise ProbeRegistrationError(
                    f"Raw-data probe {probe.name} must declare the raw data it requires."
                )
            unknown = [r for r in required if not isinstance(r, CheckName)]
            if unknown:
                raise ProbeRegistrationError(
                    f"Probe {probe.name} requires unknown raw data: {unknown}."
                )
        case IndependentProbe():
            pass
        case _:
            raise ProbeRegistrationError(
                f"Unsupported probe definition {type(probe).__name__} for {probe.name}."
            )
