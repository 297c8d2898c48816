"""Tests for server.py -- composition root and lifespan."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx

from repo_vigil.clients.osv import OSVClient
from repo_vigil.probes.registry import ProbeRegistry
from repo_vigil.server import app_lifespan, mcp


def _no_token():
    return patch("repo_vigil.server.resolve_github_token", return_value=(None, ""))


class TestAppLifespan:
    """Tests for the app_lifespan context manager."""

    async def test_creates_http_client_with_retries_transport(self) -> None:
        with _no_token():
            async with app_lifespan(MagicMock()) as ctx:
                client = ctx.http_client
                assert isinstance(client, httpx.AsyncClient)
                transport = client._transport
                assert isinstance(transport, httpx.AsyncHTTPTransport)
                assert transport._pool._retries == 3

    async def test_creates_http_client_with_timeout(self) -> None:
        with _no_token():
            async with app_lifespan(MagicMock()) as ctx:
                assert ctx.http_client.timeout.read == 30.0
                assert ctx.http_client.timeout.connect == 10.0
                assert ctx.http_client.follow_redirects is True

    async def test_creates_http_client_with_pool_limits(self) -> None:
        """limits= is passed alongside the explicit transport."""
        original_init = httpx.AsyncClient.__init__
        captured_kwargs: dict[str, object] = {}

        def capture_init(self, **kwargs):
            captured_kwargs.update(kwargs)
            return original_init(self, **kwargs)

        with _no_token(), patch.object(httpx.AsyncClient, "__init__", capture_init):
            async with app_lifespan(MagicMock()) as ctx:
                assert ctx.http_client is not None

        limits = captured_kwargs["limits"]
        assert isinstance(limits, httpx.Limits)
        assert limits.max_connections == 10
        assert limits.max_keepalive_connections == 5

    async def test_builds_registry_and_vulnerability_client(self) -> None:
        with _no_token():
            async with app_lifespan(MagicMock()) as ctx:
                assert isinstance(ctx.registry, ProbeRegistry)
                assert "hasOpenSSFBadge" in ctx.registry.names()
                assert isinstance(ctx.vulnerabilities, OSVClient)
                assert ctx.github_token is None

    async def test_carries_resolved_token(self) -> None:
        with patch(
            "repo_vigil.server.resolve_github_token", return_value=("ghp_abc", "GITHUB_TOKEN")
        ):
            async with app_lifespan(MagicMock()) as ctx:
                assert ctx.github_token == "ghp_abc"

    async def test_client_closed_after_lifespan(self) -> None:
        with _no_token():
            async with app_lifespan(MagicMock()) as ctx:
                client = ctx.http_client
                assert not client.is_closed
        assert client.is_closed


class TestToolRegistration:
    async def test_tools_registered(self) -> None:
        tools = {t.name for t in await mcp.list_tools()}
        assert tools == {"list_checks", "score_repository", "run_probes"}
