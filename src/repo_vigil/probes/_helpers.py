"""Helpers shared by probe implementations."""

from __future__ import annotations

from typing import Any

from repo_vigil.errors import NilInputError
from repo_vigil.models import RawResults


def require(raw: RawResults | None, attr: str, probe: str) -> Any:
    """Return ``raw.<attr>`` or raise NilInputError if either side is missing."""
    if raw is None:
        raise NilInputError(probe)
    data = getattr(raw, attr)
    if data is None:
        raise NilInputError(probe, f"raw data '{attr}' was not collected")
    return data


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
