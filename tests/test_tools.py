"""Tests for the MCP tools (tools/checks.py, tools/score.py, tools/probes.py)."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from repo_vigil.checks.runner import ProbeRun
from repo_vigil.clients.github import GitHubRepoClient
from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.finding import Finding, Outcome
from repo_vigil.models import CheckResult, ScorecardResult
from repo_vigil.probes.catalog import build_default_registry
from repo_vigil.server import AppContext
from repo_vigil.tools._helpers import build_request, get_context
from repo_vigil.tools.checks import list_checks
from repo_vigil.tools.probes import run_probes
from repo_vigil.tools.score import score_repository

# --- Helpers ---------------------------------------------------------------


def _app(token: str | None = None) -> AppContext:
    return AppContext(
        http_client=AsyncMock(spec=httpx.AsyncClient),
        registry=build_default_registry(),
        vulnerabilities=AsyncMock(),
        github_token=token,
    )


def _make_ctx(app: object | None = None) -> MagicMock:
    """Build a mock Context whose lifespan context is ``app``."""
    ctx = MagicMock()
    ctx.request_context.lifespan_context = app if app is not None else _app()
    ctx.info = AsyncMock()
    ctx.error = AsyncMock()
    return ctx


def _scorecard() -> ScorecardResult:
    return ScorecardResult(
        repository="github.com/acme/widget",
        commit="a" * 40,
        date=datetime(2025, 6, 1, tzinfo=UTC),
        checks=[CheckResult(name="License", score=10, reason="license file detected")],
        aggregate_score=10.0,
    )


# === Helpers ================================================================


class TestHelpers:
    def test_get_context(self) -> None:
        app = _app()
        assert get_context(_make_ctx(app)) is app

    def test_get_context_rejects_foreign_lifespan(self) -> None:
        ctx = MagicMock()
        ctx.request_context.lifespan_context = {"not": "an AppContext"}
        try:
            get_context(ctx)
        except TypeError as exc:
            assert "Expected AppContext" in str(exc)
        else:
            raise AssertionError("TypeError not raised")

    def test_build_request(self) -> None:
        app = _app(token="ghp_abc")
        request = build_request(app, "https://github.com/acme/widget")
        assert isinstance(request.repo, GitHubRepoClient)
        assert request.repo.uri == "github.com/acme/widget"
        assert request.http_client is app.http_client
        assert request.vulnerabilities is app.vulnerabilities
        assert request.now.tzinfo is UTC


# === list_checks ============================================================


class TestListChecks:
    async def test_lists_every_check(self) -> None:
        result = await list_checks()
        assert result["success"] is True
        assert result["total"] == 23
        names = [c["name"] for c in result["checks"]]
        assert names[0] == "Binary-Artifacts"
        assert "CII-Best-Practices" in names
        vulns = next(c for c in result["checks"] if c["name"] == "Vulnerabilities")
        assert vulns["risk"] == "High"
        assert vulns["probes"] == ["hasOSVVulnerabilities"]


# === score_repository =======================================================


class TestScoreRepository:
    async def test_success(self) -> None:
        ctx = _make_ctx()
        with patch(
            "repo_vigil.tools.score.run_checks", AsyncMock(return_value=_scorecard())
        ) as run:
            result = await score_repository("acme/widget", ctx, checks=["License"])

        assert result["success"] is True
        assert result["repository"] == "github.com/acme/widget"
        assert result["aggregate_score"] == 10.0
        assert result["checks"][0]["score"] == 10
        request, names = run.await_args.args
        assert request.repo.uri == "github.com/acme/widget"
        assert names == ["License"]
        assert run.await_args.kwargs["registry"] is ctx.request_context.lifespan_context.registry

    async def test_invalid_repository(self) -> None:
        result = await score_repository("not a repo", _make_ctx())
        assert result["success"] is False
        assert "Not a GitHub repository" in result["error"]

    async def test_unknown_check(self) -> None:
        result = await score_repository("acme/widget", _make_ctx(), checks=["Nope"])
        assert result["success"] is False
        assert "Check not found: Nope" in result["error"]

    async def test_domain_error(self) -> None:
        with patch(
            "repo_vigil.tools.score.run_checks",
            AsyncMock(side_effect=UpstreamUnavailableError("GitHub API returned HTTP 502.")),
        ):
            result = await score_repository("acme/widget", _make_ctx())
        assert result == {"success": False, "error": "GitHub API returned HTTP 502."}

    async def test_unexpected_error(self) -> None:
        ctx = _make_ctx()
        with patch("repo_vigil.tools.score.run_checks", AsyncMock(side_effect=KeyError("x"))):
            result = await score_repository("acme/widget", ctx)
        assert result == {"success": False, "error": "Internal error: KeyError"}
        ctx.error.assert_awaited_once()


# === run_probes =============================================================


class TestRunProbes:
    async def test_success(self) -> None:
        runs = [
            ProbeRun(
                probe="hasLicenseFile",
                findings=[Finding(probe="hasLicenseFile", outcome=Outcome.TRUE)],
            ),
            ProbeRun(probe="webhooksUseSecrets", error=UpstreamUnavailableError("forbidden")),
        ]
        with patch(
            "repo_vigil.checks.runner.run_probes", AsyncMock(return_value=runs)
        ) as run:
            result = await run_probes(
                "acme/widget", ["hasLicenseFile", "webhooksUseSecrets"], _make_ctx()
            )

        assert result["success"] is True
        assert result["repository"] == "github.com/acme/widget"
        assert result["probes"][0]["findings"][0]["outcome"] == "True"
        assert result["probes"][1] == {
            "probe": "webhooksUseSecrets",
            "findings": [],
            "error": "forbidden",
        }
        assert run.await_args.args[1] == ["hasLicenseFile", "webhooksUseSecrets"]

    async def test_no_probes(self) -> None:
        result = await run_probes("acme/widget", [], _make_ctx())
        assert result == {"success": False, "error": "No probes given."}

    async def test_unknown_probe(self) -> None:
        result = await run_probes("acme/widget", ["noSuchProbe"], _make_ctx())
        assert result == {"success": False, "error": "Probe not found: noSuchProbe"}

    async def test_unexpected_error(self) -> None:
        ctx = _make_ctx({"not": "an AppContext"})
        result = await run_probes("acme/widget", ["hasLicenseFile"], ctx)
        assert result == {"success": False, "error": "Internal error: TypeError"}
        ctx.error.assert_awaited_once()
