"""Tests for the OSV vulnerability client (clients/osv.py)."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from repo_vigil.clients import osv
from repo_vigil.clients.osv import OSV_QUERY_URL, OSVClient
from repo_vigil.errors import UpstreamUnavailableError

COMMIT = "a" * 40


def _response(status: int = 200, json: Any = None, content: bytes | None = None) -> httpx.Response:
    request = httpx.Request("POST", OSV_QUERY_URL)
    if content is not None:
        return httpx.Response(status, content=content, request=request)
    return httpx.Response(status, json=json, request=request)


def _client(*responses: httpx.Response) -> tuple[OSVClient, AsyncMock]:
    http = AsyncMock(spec=httpx.AsyncClient)
    http.post = AsyncMock(side_effect=list(responses))
    return OSVClient(http), http.post


class TestQueryCommit:
    async def test_no_vulnerabilities(self) -> None:
        client, post = _client(_response(json={}))
        assert await client.query_commit(COMMIT) == []
        post.assert_awaited_once_with(OSV_QUERY_URL, json={"commit": COMMIT})

    async def test_parses_ids_and_aliases(self) -> None:
        client, _ = _client(
            _response(
                json={
                    "vulns": [
                        {"id": "GHSA-xxxx-yyyy-zzzz", "aliases": ["CVE-2024-0001"]},
                        {"id": "PYSEC-2024-1"},
                    ]
                }
            )
        )
        vulns = await client.query_commit(COMMIT)
        assert [(v.id, v.aliases) for v in vulns] == [
            ("GHSA-xxxx-yyyy-zzzz", ["CVE-2024-0001"]),
            ("PYSEC-2024-1", []),
        ]

    async def test_follows_page_tokens_and_deduplicates(self) -> None:
        client, post = _client(
            _response(json={"vulns": [{"id": "OSV-1"}], "next_page_token": "p2"}),
            _response(json={"vulns": [{"id": "OSV-1"}, {"id": "OSV-2"}, {"id": ""}]}),
        )
        vulns = await client.query_commit(COMMIT)

        assert [v.id for v in vulns] == ["OSV-1", "OSV-2"]
        assert post.await_args_list[1].kwargs["json"] == {"commit": COMMIT, "page_token": "p2"}

    async def test_stops_after_max_pages(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(osv, "MAX_PAGES", 2)
        client, post = _client(
            _response(json={"vulns": [{"id": "OSV-1"}], "next_page_token": "p2"}),
            _response(json={"vulns": [{"id": "OSV-2"}], "next_page_token": "p3"}),
        )
        vulns = await client.query_commit(COMMIT)
        assert len(vulns) == 2
        assert post.await_count == 2


class TestErrors:
    async def test_http_status(self) -> None:
        client, _ = _client(_response(503, json={}))
        with pytest.raises(UpstreamUnavailableError, match="HTTP 503"):
            await client.query_commit(COMMIT)

    async def test_network_failure(self) -> None:
        http = AsyncMock(spec=httpx.AsyncClient)
        http.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(UpstreamUnavailableError, match="Could not reach the OSV API"):
            await OSVClient(http).query_commit(COMMIT)

    async def test_invalid_json(self) -> None:
        client, _ = _client(_response(content=b"<html>oops</html>"))
        with pytest.raises(UpstreamUnavailableError, match="invalid JSON"):
            await client.query_commit(COMMIT)
