"""run_probes tool -- run individual probes and return raw findings."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from repo_vigil.checks import runner
from repo_vigil.errors import RepoVigilError
from repo_vigil.tools._helpers import build_request, get_context


async def run_probes(
    repository: str,
    probes: list[str],
    ctx: Context,
) -> dict[str, object]:
    """Run individual probes against a GitHub repository without scoring.

    Only the data the named probes need is collected. Use this to explain
    a check's score in detail.

    Args:
        repository: ``https://github.com/<owner>/<repo>`` or ``<owner>/<repo>``.
        probes: Probe names, e.g. ``["hasRecentCommits", "codeApproved"]``.
            list_checks shows which probes each check uses.

    Returns:
        One entry per probe with its findings, or the error that kept it
        from running.
    """
    try:
        if not probes:
            return {"success": False, "error": "No probes given."}
        app = get_context(ctx)
        request = build_request(app, repository)
        runs = await runner.run_probes(request, probes, registry=app.registry)
        return {
            "success": True,
            "repository": request.repo.uri,
            "probes": [run.to_dict() for run in runs],
        }

    except RepoVigilError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in run_probes: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}
