"""OSV adapter for VulnerabilityClientPort."""

from __future__ import annotations

import logging

import httpx

from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.models import Vulnerability

logger = logging.getLogger(__name__)

OSV_QUERY_URL = "https://api.osv.dev/v1/query"

MAX_PAGES = 10


class OSVClient:
    """Looks up vulnerabilities affecting a commit in the OSV database."""

    def __init__(self, http_client: httpx.AsyncClient, api_url: str = OSV_QUERY_URL) -> None:
        self._http = http_client
        self._url = api_url

    async def query_commit(self, commit: str) -> list[Vulnerability]:
        vulns: list[Vulnerability] = []
        seen: set[str] = set()
        body: dict[str, str] = {"commit": commit}
        for _ in range(MAX_PAGES):
            data = await self._post(body)
            for item in data.get("vulns") or []:
                vuln_id = str(item.get("id", ""))
                if not vuln_id or vuln_id in seen:
                    continue
                seen.add(vuln_id)
                vulns.append(
                    Vulnerability(id=vuln_id, aliases=[str(a) for a in item.get("aliases") or []])
                )
            token = data.get("next_page_token")
            if not token:
                break
            body = {"commit": commit, "page_token": str(token)}
        else:
            logger.warning("OSV results for %s truncated after %d pages", commit, MAX_PAGES)
        return vulns

    async def _post(self, body: dict[str, str]) -> dict:
        try:
            resp = await self._http.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Could not reach the OSV API: {exc}") from exc
        if resp.status_code != 200:
            raise UpstreamUnavailableError(f"OSV API returned HTTP {resp.status_code}.")
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamUnavailableError("OSV API returned invalid JSON.") from exc
        return data if isinstance(data, dict) else {}
