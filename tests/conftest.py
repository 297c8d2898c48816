"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from repo_vigil.clients.base import CheckRequest
from repo_vigil.models import RepoMetadata, SecretScanningSettings

NOW = datetime(2025, 6, 1, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host settings from leaking into tests."""
    monkeypatch.delenv("REPO_VIGIL_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def make_repo(
    files: dict[str, str] | None = None,
    metadata: RepoMetadata | None = None,
) -> MagicMock:
    """A RepoClientPort double serving ``files`` (path -> text) and empty lists elsewhere."""
    files = files or {}
    repo = MagicMock()
    repo.uri = "github.com/acme/widget"
    repo.get_metadata = AsyncMock(
        return_value=metadata
        or RepoMetadata(full_name="acme/widget", default_branch="main", head_sha="a" * 40)
    )
    repo.list_files = AsyncMock(return_value=list(files))
    repo.get_file_content = AsyncMock(
        side_effect=lambda path: files[path].encode() if path in files else None
    )
    for method in (
        "list_commits",
        "list_issues_with_history",
        "list_releases",
        "list_contributors",
        "list_programming_languages",
        "list_branches",
        "list_tags",
        "list_webhooks",
        "list_check_runs",
        "list_statuses",
        "list_merged_pull_requests",
        "list_successful_workflow_runs",
        "list_workflow_artifacts",
    ):
        setattr(repo, method, AsyncMock(return_value=[]))
    repo.get_secret_scanning = AsyncMock(return_value=SecretScanningSettings())
    return repo


@pytest.fixture
def repo_factory() -> Callable[..., MagicMock]:
    return make_repo


@pytest.fixture
def request_factory() -> Callable[..., CheckRequest]:
    def _build(repo: MagicMock | None = None, **kwargs: object) -> CheckRequest:
        return CheckRequest(
            repo=repo if repo is not None else make_repo(),
            http_client=kwargs.pop("http_client", AsyncMock(spec=httpx.AsyncClient)),
            now=kwargs.pop("now", NOW),
            vulnerabilities=kwargs.pop("vulnerabilities", None),
        )

    return _build
