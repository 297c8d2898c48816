"""Helpers shared by the MCP tools."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context

from repo_vigil.checks.runner import max_concurrency
from repo_vigil.clients.base import CheckRequest
from repo_vigil.clients.github import GitHubRepoClient

if TYPE_CHECKING:
    from repo_vigil.server import AppContext


def get_context(ctx: Context) -> AppContext:
    """Extract AppContext from FastMCP's lifespan context.

    Raises TypeError if the lifespan context is not an AppContext instance.
    """
    from repo_vigil.server import AppContext

    app = ctx.request_context.lifespan_context
    if not isinstance(app, AppContext):
        msg = (
            f"Expected AppContext in lifespan_context, got {type(app).__name__}. "
            "Is the server configured with app_lifespan?"
        )
        raise TypeError(msg)
    return app


def build_request(app: AppContext, repository: str) -> CheckRequest:
    """A CheckRequest for one repository. Raises InvalidRepositoryError."""
    repo = GitHubRepoClient.from_url(
        repository, app.http_client, token=app.github_token, max_concurrency=max_concurrency()
    )
    return CheckRequest(
        repo=repo,
        http_client=app.http_client,
        now=datetime.now(UTC),
        vulnerabilities=app.vulnerabilities,
    )
