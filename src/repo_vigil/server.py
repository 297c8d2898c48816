"""MCP server that scores the security health of source repositories."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from repo_vigil.clients.base import VulnerabilityClientPort
from repo_vigil.clients.github import resolve_github_token
from repo_vigil.clients.osv import OSVClient
from repo_vigil.probes.catalog import build_default_registry
from repo_vigil.probes.registry import ProbeRegistry
from repo_vigil.tools.checks import list_checks
from repo_vigil.tools.probes import run_probes
from repo_vigil.tools.score import score_repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations.

    Repository clients are per-request and built by the tools; everything
    here lives for the whole server session.
    """

    http_client: httpx.AsyncClient
    registry: ProbeRegistry
    vulnerabilities: VulnerabilityClientPort
    github_token: str | None = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Composition root: owns the shared HTTP client for the whole session."""
    token, source = resolve_github_token()
    if token is None:
        logger.warning("No GitHub token found; unauthenticated API limits apply")
    else:
        logger.info("Using GitHub token from %s", source)

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=10.0),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        transport=httpx.AsyncHTTPTransport(retries=3),
    ) as http_client:
        yield AppContext(
            http_client=http_client,
            registry=build_default_registry(),
            vulnerabilities=OSVClient(http_client),
            github_token=token,
        )


mcp = FastMCP(
    "repo-vigil",
    instructions=(
        "repo-vigil scores the security health of GitHub repositories.\n\n"
        "## When to use repo-vigil\n\n"
        "Use it whenever the user asks whether a dependency or project is "
        "well maintained, safe to adopt, or follows supply-chain security practices.\n\n"
        "### Recommended workflow\n"
        "1. **list_checks** -- See the available checks, their risk level and probes.\n"
        "2. **score_repository** -- Run all checks (or a subset) and get a 0-10 score "
        "per check plus a risk-weighted aggregate. A score of -1 means the check "
        "could not be evaluated; explain why using its reason, never treat it as zero.\n"
        "3. **run_probes** -- Drill into individual probes when a check's score needs "
        "explaining. Returns raw findings without scoring.\n\n"
        "### Key principles\n"
        "- Lead with the lowest-scoring high-risk checks.\n"
        "- Quote the check's reason and relevant details rather than guessing.\n"
        "- Mention maintainer annotations when a result carries them.\n"
        "- Set GITHUB_TOKEN for higher rate limits and access to protection settings."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(list_checks)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))(score_repository)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))(run_probes)
