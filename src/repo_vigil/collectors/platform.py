"""Collectors for hosting-platform settings and external databases."""

from __future__ import annotations

import asyncio
import logging

from repo_vigil.clients.base import CheckRequest
from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.models import (
    BranchProtectionData,
    SignedReleasesData,
    TagProtectionData,
    VulnerabilitiesData,
    WebhooksData,
)

logger = logging.getLogger(__name__)

CODEOWNERS_PATHS = frozenset({"CODEOWNERS", ".github/CODEOWNERS", "docs/CODEOWNERS"})


async def collect_branch_protection(request: CheckRequest) -> BranchProtectionData:
    branches, files = await asyncio.gather(
        request.repo.list_branches(), request.repo.list_files()
    )
    return BranchProtectionData(
        branches=branches,
        codeowners_files=[f for f in files if f in CODEOWNERS_PATHS],
    )


async def collect_tag_protection(request: CheckRequest) -> TagProtectionData:
    """Protection of tags that back a release; other tags are ignored."""
    tags, releases = await asyncio.gather(request.repo.list_tags(), request.repo.list_releases())
    release_tags = {r.tag_name for r in releases}
    return TagProtectionData(tags=[t for t in tags if t.name in release_tags])


async def collect_signed_releases(request: CheckRequest) -> SignedReleasesData:
    return SignedReleasesData(releases=await request.repo.list_releases())


async def collect_webhooks(request: CheckRequest) -> WebhooksData:
    return WebhooksData(webhooks=await request.repo.list_webhooks())


async def collect_vulnerabilities(request: CheckRequest) -> VulnerabilitiesData:
    if request.vulnerabilities is None:
        raise UpstreamUnavailableError("No vulnerability database is configured.")
    meta = await request.repo.get_metadata()
    if not meta.head_sha:
        raise UpstreamUnavailableError(f"Could not resolve the head commit of {request.repo.uri}.")
    vulns = await request.vulnerabilities.query_commit(meta.head_sha)
    logger.debug("OSV reports %d vulnerabilities for %s", len(vulns), meta.head_sha)
    return VulnerabilitiesData(vulnerabilities=vulns)
