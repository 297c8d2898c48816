"""Tests for checks/runner.py -- collection, probe execution, scoring and annotations."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from repo_vigil.checks import runner
from repo_vigil.checks.runner import (
    aggregate_score,
    collect_raw_results,
    max_concurrency,
    run_checks,
    run_raw_probes,
    score_raw_results,
)
from repo_vigil.clients.base import CheckRequest
from repo_vigil.config.annotations import AnnotationReason
from repo_vigil.errors import (
    CheckNotFoundError,
    FindingValidationError,
    ProbeError,
    UpstreamUnavailableError,
)
from repo_vigil.finding import Finding
from repo_vigil.models import (
    BinaryArtifactData,
    CheckName,
    CheckResult,
    File,
    LicenseData,
    LicenseFile,
    RawResults,
    WebhooksData,
)
from repo_vigil.probes.base import IndependentProbe, RawDataProbe
from repo_vigil.probes.catalog import build_default_registry
from repo_vigil.probes.registry import ProbeRegistry

LICENSE = LicenseData(
    license_files=[
        LicenseFile(file=File(path="LICENSE"), name="MIT License", spdx_id="MIT", approved=True)
    ]
)


def _down(*_: object) -> None:
    raise UpstreamUnavailableError("GitHub API is unavailable")


def _collectors(**overrides: object) -> dict[CheckName, AsyncMock]:
    mapping = {
        CheckName.LICENSE: AsyncMock(return_value=LICENSE),
        CheckName.WEBHOOKS: AsyncMock(return_value=WebhooksData()),
        CheckName.BINARY_ARTIFACTS: AsyncMock(return_value=BinaryArtifactData()),
    }
    for key, value in overrides.items():
        mapping[CheckName[key]] = value  # type: ignore[assignment]
    return mapping


def _badge_response(level: str) -> httpx.Response:
    request = httpx.Request("GET", "https://www.bestpractices.dev/projects.json")
    return httpx.Response(200, json=[{"badge_level": level}], request=request)


# ─── Collection ───────────────────────────────────────────────


class TestCollectRawResults:
    async def test_collects_each_category(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        collectors = _collectors()
        raw, failures = await collect_raw_results(
            request_factory(), [CheckName.LICENSE, CheckName.WEBHOOKS], collectors
        )
        assert raw.license == LICENSE
        assert raw.webhooks == WebhooksData()
        assert raw.binary_artifacts is None
        assert failures == {}
        collectors[CheckName.BINARY_ARTIFACTS].assert_not_awaited()

    async def test_failed_collector_leaves_category_empty(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        collectors = _collectors(WEBHOOKS=AsyncMock(side_effect=_down))
        raw, failures = await collect_raw_results(
            request_factory(), [CheckName.LICENSE, CheckName.WEBHOOKS], collectors
        )
        assert raw.license == LICENSE
        assert raw.webhooks is None
        assert isinstance(failures[CheckName.WEBHOOKS], UpstreamUnavailableError)

    async def test_missing_collector_is_upstream_failure(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        _, failures = await collect_raw_results(request_factory(), [CheckName.SAST], {})
        assert isinstance(failures[CheckName.SAST], UpstreamUnavailableError)

    async def test_independent_only_checks_collect_nothing(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        raw, failures = await collect_raw_results(
            request_factory(), [CheckName.CII_BEST_PRACTICES], {}
        )
        assert raw == RawResults()
        assert failures == {}


class TestMaxConcurrency:
    def test_default(self) -> None:
        assert max_concurrency() == runner.DEFAULT_MAX_CONCURRENCY

    @pytest.mark.parametrize(("value", "expected"), [("3", 3), ("0", 1), ("lots", 5)])
    def test_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, value: str, expected: int
    ) -> None:
        monkeypatch.setenv("REPO_VIGIL_MAX_CONCURRENCY", value)
        assert max_concurrency() == expected


# ─── Probe execution ──────────────────────────────────────────


def _invalid(raw: RawResults | None) -> tuple[list[Finding], str]:
    raise FindingValidationError("probe built a finding without a name")


def _broken(raw: RawResults | None) -> tuple[list[Finding], str]:
    raise KeyError("boom")


async def _never_called(request: CheckRequest) -> tuple[list[Finding], str]:
    raise AssertionError("independent probes are not run from raw data")


class TestRunRawProbes:
    def test_runs_in_order(self) -> None:
        runs = run_raw_probes(
            RawResults(license=LICENSE),
            ["hasLicenseFileAtTopDir", "hasLicenseFile"],
            build_default_registry(),
        )
        assert [r.probe for r in runs] == ["hasLicenseFileAtTopDir", "hasLicenseFile"]
        assert all(r.error is None and r.findings for r in runs)

    def test_missing_raw_data_is_recorded(self) -> None:
        (run,) = run_raw_probes(RawResults(), ["hasLicenseFile"], build_default_registry())
        assert isinstance(run.error, ProbeError)
        assert run.findings == []
        assert run.to_dict()["error"].startswith("hasLicenseFile")

    def test_unexpected_exception_is_wrapped(self) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("broken", _broken, (CheckName.LICENSE,)))
        (run,) = run_raw_probes(RawResults(license=LICENSE), ["broken"], registry)
        assert isinstance(run.error, ProbeError)
        assert "KeyError" in str(run.error)

    def test_finding_validation_error_propagates(self) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("invalid", _invalid, (CheckName.LICENSE,)))
        with pytest.raises(FindingValidationError):
            run_raw_probes(RawResults(license=LICENSE), ["invalid"], registry)

    def test_independent_probe_is_not_run(self) -> None:
        registry = ProbeRegistry()
        registry.register(IndependentProbe("fetching", _never_called))
        (run,) = run_raw_probes(RawResults(), ["fetching"], registry)
        assert "was not run" in str(run.error)


# ─── Scoring ──────────────────────────────────────────────────


class TestScoreRawResults:
    def test_scores_in_requested_order(self) -> None:
        raw = RawResults(license=LICENSE, webhooks=WebhooksData())
        results = score_raw_results(raw, ["webhooks", "License"], build_default_registry())
        assert [r.name for r in results] == ["Webhooks", "License"]
        assert [r.score for r in results] == [10, 10]
        assert results[1].findings

    def test_uncollected_data_is_inconclusive(self) -> None:
        (result,) = score_raw_results(RawResults(), ["License"], build_default_registry())
        assert result.score == -1
        assert result.error is None
        assert result.details[0].type.value == "warn"

    def test_independent_probe_without_run_is_runtime_error(self) -> None:
        (result,) = score_raw_results(
            RawResults(), ["CII-Best-Practices"], build_default_registry()
        )
        assert result.score == -1
        assert isinstance(result.error, ProbeError)

    def test_unknown_check(self) -> None:
        with pytest.raises(CheckNotFoundError, match="Available checks"):
            score_raw_results(RawResults(), ["Nope"], build_default_registry())

    def test_same_snapshot_same_result(self) -> None:
        raw = RawResults(license=LICENSE)
        first = score_raw_results(raw, ["License"], build_default_registry())
        second = score_raw_results(raw, ["License"], build_default_registry())
        assert first[0].to_dict() == second[0].to_dict()


class TestAggregateScore:
    def test_risk_weighted_mean(self) -> None:
        results = [
            CheckResult(name="Webhooks", score=10, reason=""),  # critical, 10
            CheckResult(name="License", score=0, reason=""),  # low, 2.5
        ]
        assert aggregate_score(results) == 8.0

    def test_inconclusive_and_unknown_checks_ignored(self) -> None:
        results = [
            CheckResult(name="License", score=6, reason=""),
            CheckResult(name="Webhooks", score=-1, reason=""),
            CheckResult(name="Custom", score=0, reason=""),
        ]
        assert aggregate_score(results) == 6.0

    def test_nothing_conclusive(self) -> None:
        assert aggregate_score([CheckResult(name="License", score=-1, reason="")]) == -1.0


# ─── run_checks ───────────────────────────────────────────────


class TestRunChecks:
    async def test_partial_failure(self, request_factory: Callable[..., CheckRequest]) -> None:
        collectors = _collectors(
            WEBHOOKS=AsyncMock(side_effect=_down),
            VULNERABILITIES=AsyncMock(side_effect=_down),
        )
        result = await run_checks(
            request_factory(),
            ["License", "Webhooks", "Vulnerabilities"],
            collectors=collectors,
        )

        by_name = {c.name: c for c in result.checks}
        assert result.repository == "github.com/acme/widget"
        assert result.commit == "a" * 40
        assert by_name["License"].score == 10
        # Webhooks degrades to inconclusive; Vulnerabilities must not hide the outage.
        assert by_name["Webhooks"].score == -1
        assert by_name["Webhooks"].error is None
        assert by_name["Vulnerabilities"].score == -1
        assert isinstance(by_name["Vulnerabilities"].error, UpstreamUnavailableError)
        assert result.aggregate_score == 10.0

    async def test_head_commit_failure_is_tolerated(
        self,
        request_factory: Callable[..., CheckRequest],
        repo_factory: Callable[..., MagicMock],
    ) -> None:
        repo = repo_factory()
        repo.get_metadata.side_effect = _down
        result = await run_checks(request_factory(repo), ["License"], collectors=_collectors())
        assert result.commit == ""
        assert result.checks[0].score == 10

    async def test_independent_probe_runs(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        request = request_factory()
        request.http_client.get.return_value = _badge_response("gold")

        result = await run_checks(request, ["CII-Best-Practices"], collectors={})

        (check,) = result.checks
        assert check.score == 10
        assert check.findings[0].probe == "hasOpenSSFBadge"
        call = request.http_client.get.call_args
        assert call.kwargs["params"] == {"url": "https://github.com/acme/widget"}

    async def test_independent_probe_outage_is_inconclusive(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        request = request_factory()
        request.http_client.get.side_effect = httpx.ConnectError("refused")

        result = await run_checks(request, ["CII-Best-Practices"], collectors={})
        assert result.checks[0].score == -1
        assert result.checks[0].error is None

    async def test_annotations_only_on_imperfect_scores(
        self,
        request_factory: Callable[..., CheckRequest],
        repo_factory: Callable[..., MagicMock],
    ) -> None:
        repo = repo_factory(
            {
                "repo-vigil.yml": (
                    "annotations:\n"
                    "  - checks: [binary-artifacts, license]\n"
                    "    reasons:\n"
                    "      - reason: test-data\n"
                )
            }
        )
        collectors = _collectors(
            BINARY_ARTIFACTS=AsyncMock(
                return_value=BinaryArtifactData(files=[File(path="fixtures/tool.exe")])
            )
        )
        result = await run_checks(
            request_factory(repo), ["Binary-Artifacts", "License"], collectors=collectors
        )

        by_name = {c.name: c for c in result.checks}
        assert by_name["Binary-Artifacts"].score == 9
        assert by_name["Binary-Artifacts"].annotations == [AnnotationReason.TEST_DATA.doc]
        assert by_name["License"].annotations == []

    async def test_malformed_annotations_are_ignored(
        self,
        request_factory: Callable[..., CheckRequest],
        repo_factory: Callable[..., MagicMock],
    ) -> None:
        repo = repo_factory({".repo-vigil.yml": "annotations: [\n"})
        result = await run_checks(request_factory(repo), ["License"], collectors=_collectors())
        assert result.checks[0].annotations == []

    async def test_unknown_check_raises(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        with pytest.raises(CheckNotFoundError):
            await run_checks(request_factory(), ["Nope"], collectors=_collectors())


class TestRunProbes:
    async def test_collects_only_what_probes_need(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        collectors = _collectors(WEBHOOKS=AsyncMock(side_effect=_down))
        runs = await runner.run_probes(
            request_factory(), ["hasLicenseFile", "webhooksUseSecrets"], collectors=collectors
        )

        assert [r.probe for r in runs] == ["hasLicenseFile", "webhooksUseSecrets"]
        assert runs[0].findings[0].outcome.value == "True"
        assert isinstance(runs[1].error, UpstreamUnavailableError)
        collectors[CheckName.BINARY_ARTIFACTS].assert_not_awaited()

    async def test_independent_probe(self, request_factory: Callable[..., CheckRequest]) -> None:
        request = request_factory()
        request.http_client.get.return_value = _badge_response("passing")
        (run,) = await runner.run_probes(request, ["hasOpenSSFBadge"], collectors={})
        assert run.findings[0].values == {"badgeLevel": "passing"}

    async def test_finding_validation_error_propagates(
        self, request_factory: Callable[..., CheckRequest]
    ) -> None:
        registry = ProbeRegistry()
        registry.register(RawDataProbe("invalid", _invalid, (CheckName.LICENSE,)))
        with pytest.raises(FindingValidationError):
            await runner.run_probes(
                request_factory(), ["invalid"], registry=registry, collectors=_collectors()
            )
