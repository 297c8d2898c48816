"""Tests for the package entry point and version resolution."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from unittest.mock import patch

import pytest

import repo_vigil


class TestVersion:
    def test_uses_installed_metadata(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(repo_vigil, "_distribution_version", lambda name: f"{name}==1.2.3")
        assert repo_vigil._resolve_version() == "repo-vigil==1.2.3"

    def test_falls_back_when_not_installed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _missing(_: str) -> str:
            raise PackageNotFoundError

        monkeypatch.setattr(repo_vigil, "_distribution_version", _missing)
        assert repo_vigil._resolve_version() == repo_vigil._LOCAL_VERSION_FALLBACK


class TestMain:
    def test_runs_server_over_stdio(self) -> None:
        with patch("repo_vigil.server.mcp.run") as run:
            repo_vigil.main()
        run.assert_called_once_with(transport="stdio")
