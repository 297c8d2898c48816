"""CII-Best-Practices probe -- fetches the OpenSSF Best Practices badge itself."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.finding import Finding, Outcome, new_with
from repo_vigil.models import BadgeLevel

if TYPE_CHECKING:
    from repo_vigil.clients.base import CheckRequest

logger = logging.getLogger(__name__)

HAS_OPENSSF_BADGE = "hasOpenSSFBadge"

LEVEL_KEY = "badgeLevel"

BEST_PRACTICES_API = "https://www.bestpractices.dev/projects.json"

_LEVELS = {level.value: level for level in BadgeLevel}


async def fetch_badge_level(http_client: httpx.AsyncClient, repo_url: str) -> BadgeLevel:
    """Look up the highest badge level recorded for ``repo_url``."""
    try:
        resp = await http_client.get(BEST_PRACTICES_API, params={"url": repo_url})
        resp.raise_for_status()
        projects = resp.json()
    except httpx.HTTPStatusError as exc:
        raise UpstreamUnavailableError(
            f"OpenSSF Best Practices API returned HTTP {exc.response.status_code}."
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise UpstreamUnavailableError(
            f"Could not reach the OpenSSF Best Practices API: {exc}"
        ) from exc

    if not isinstance(projects, list) or not projects:
        return BadgeLevel.NOT_FOUND
    raw_level = str(projects[0].get("badge_level", "")).replace(" ", "_")
    level = _LEVELS.get(raw_level, BadgeLevel.UNKNOWN)
    logger.debug("Best practices badge for %s: %s", repo_url, level)
    return level


async def has_openssf_badge(request: CheckRequest) -> tuple[list[Finding], str]:
    probe = HAS_OPENSSF_BADGE
    level = await fetch_badge_level(request.http_client, f"https://{request.repo.uri}")
    if level in (BadgeLevel.NOT_FOUND, BadgeLevel.UNKNOWN):
        message = "no effort to earn an OpenSSF best practices badge detected"
        return [new_with(probe, Outcome.FALSE, message, values={LEVEL_KEY: level.value})], probe
    finding = new_with(
        probe,
        Outcome.TRUE,
        f"badge detected: {level.value}",
        values={LEVEL_KEY: level.value},
    )
    return [finding], probe
