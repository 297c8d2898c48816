"""list_checks tool -- describe the available checks."""

from __future__ import annotations

from repo_vigil.checks.definitions import CHECKS


async def list_checks() -> dict[str, object]:
    """List every check with its risk level, description and probes.

    Returns:
        ``checks``: one entry per check, in the order score_repository runs them.
    """
    return {
        "success": True,
        "total": len(CHECKS),
        "checks": [definition.to_dict() for definition in CHECKS.values()],
    }
