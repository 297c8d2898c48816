"""score_repository tool -- run checks against a repository and score them."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from repo_vigil.checks.runner import run_checks
from repo_vigil.errors import RepoVigilError
from repo_vigil.tools._helpers import build_request, get_context


async def score_repository(
    repository: str,
    ctx: Context,
    checks: list[str] | None = None,
) -> dict[str, object]:
    """Score the security health of a GitHub repository.

    Collects data from the GitHub API and the OSV vulnerability database,
    runs every probe of the selected checks and scores each check 0-10.

    Args:
        repository: ``https://github.com/<owner>/<repo>``, ``github.com/<owner>/<repo>``
            or ``<owner>/<repo>``.
        checks: Check names to run, e.g. ``["Code-Review", "Maintained"]``.
            All checks run when omitted. Use list_checks for the names.

    Returns:
        Per-check score, reason, details and findings, plus a risk-weighted
        ``aggregate_score``. A score of -1 means the check was inconclusive.
    """
    try:
        app = get_context(ctx)
        request = build_request(app, repository)
        result = await run_checks(request, checks, registry=app.registry)
        output = result.to_dict()
        output["success"] = True
        return output

    except RepoVigilError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in score_repository: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}
