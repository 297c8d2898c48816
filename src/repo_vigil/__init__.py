"""repo-vigil: security health scoring for source repositories."""

from __future__ import annotations

import logging
import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _distribution_version

_LOCAL_VERSION_FALLBACK = "0.0.0+local"


def _resolve_version() -> str:
    """Installed distribution version, or a fixed local marker when not installed."""
    try:
        return _distribution_version("repo-vigil")
    except PackageNotFoundError:
        return _LOCAL_VERSION_FALLBACK


__version__ = _resolve_version()


def main() -> None:
    """Run the MCP server over stdio.

    Logs go to stderr since stdout carries the protocol.
    """
    logging.basicConfig(
        level=os.environ.get("REPO_VIGIL_LOG_LEVEL", "WARNING").upper(),
        format="%(name)s: %(message)s",
    )
    from repo_vigil.server import mcp

    mcp.run(transport="stdio")
