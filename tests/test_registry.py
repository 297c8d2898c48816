"""Tests for the probe registry and the built-in catalog."""

from __future__ import annotations

import pytest

from repo_vigil.errors import ProbeNotFoundError, ProbeRegistrationError
from repo_vigil.finding import Finding, new_true
from repo_vigil.models import CheckName, RawResults
from repo_vigil.probes.base import IndependentProbe, RawDataProbe
from repo_vigil.probes.catalog import (
    INDEPENDENT_PROBES,
    RAW_PROBES,
    build_default_registry,
    check_for_probe,
    probes_for_check,
)
from repo_vigil.probes.registry import ProbeRegistry


def _first(raw: RawResults | None) -> tuple[list[Finding], str]:
    return [new_true("sample", "first")], "sample"


def _second(raw: RawResults | None) -> tuple[list[Finding], str]:
    return [new_true("sample", "second")], "sample"


async def _fetching(request: object) -> tuple[list[Finding], str]:
    return [new_true("fetching", "ok")], "fetching"


class TestProbeRegistry:
    def test_register_then_get_returns_same_name(self) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("sample", _first, (CheckName.LICENSE,)))
        probe = registry.get("sample")
        assert probe.name == "sample"

    def test_last_registration_wins(self) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("sample", _first, (CheckName.LICENSE,)))
        registry.register(RawDataProbe("sample", _second, (CheckName.LICENSE,)))

        probe = registry.get("sample")
        assert isinstance(probe, RawDataProbe)
        findings, _ = probe.implementation(None)
        assert findings[0].message == "second"
        assert len(registry) == 1

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ProbeNotFoundError, match="missing"):
            ProbeRegistry().get("missing")

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ProbeRegistrationError):
            ProbeRegistry().register(RawDataProbe("", _first, (CheckName.LICENSE,)))

    def test_raw_probe_requires_raw_data(self) -> None:
        with pytest.raises(ProbeRegistrationError, match="must declare"):
            ProbeRegistry().register(RawDataProbe("sample", _first, ()))

    def test_raw_probe_rejects_unknown_category(self) -> None:
        with pytest.raises(ProbeRegistrationError, match="unknown raw data"):
            ProbeRegistry().register(RawDataProbe("sample", _first, ("Nope",)))  # type: ignore[arg-type]

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(ProbeRegistrationError, match="callable"):
            ProbeRegistry().register(IndependentProbe("fetching", None))  # type: ignore[arg-type]

    def test_registries_are_isolated(self) -> None:
        a = ProbeRegistry()
        b = ProbeRegistry()
        a.register(IndependentProbe("fetching", _fetching))
        assert "fetching" in a
        assert "fetching" not in b

    def test_applicable_filters_by_collected_data(self) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("license", _first, (CheckName.LICENSE,)))
        registry.register(RawDataProbe("both", _first, (CheckName.LICENSE, CheckName.FUZZING)))
        registry.register(IndependentProbe("fetching", _fetching))

        names = [p.name for p in registry.applicable([CheckName.LICENSE])]
        assert names == ["license"]
        assert [p.name for p in registry.independent()] == ["fetching"]


class TestCatalog:
    def test_default_registry_holds_every_probe(self) -> None:
        registry = build_default_registry()
        expected = {name for entries in RAW_PROBES.values() for name, _ in entries}
        expected |= {p.name for probes in INDEPENDENT_PROBES.values() for p in probes}
        assert set(registry.names()) == expected

    def test_every_check_has_probes(self) -> None:
        for check in CheckName:
            assert probes_for_check(check), check

    def test_probe_names_are_unique_across_checks(self) -> None:
        names = [n for check in CheckName for n in probes_for_check(check)]
        assert len(names) == len(set(names))

    def test_check_for_probe(self) -> None:
        assert check_for_probe("hasOpenSSFBadge") is CheckName.CII_BEST_PRACTICES
        assert check_for_probe("tagsAreProtected") is CheckName.TAG_PROTECTION
        assert check_for_probe("nope") is None

    def test_default_registries_are_fresh(self) -> None:
        assert build_default_registry() is not build_default_registry()
