"""Ports: repository hosting and vulnerability database access."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import httpx

from repo_vigil.models import (
    BranchRef,
    CheckRun,
    Commit,
    Issue,
    Language,
    PullRequest,
    Release,
    RepoMetadata,
    SecretScanningSettings,
    Status,
    TagRef,
    User,
    Vulnerability,
    Webhook,
    WorkflowArtifact,
    WorkflowRun,
)


class RepoClientPort(Protocol):
    """Port for reading facts about one repository from its hosting platform.

    Methods raise UpstreamUnavailableError when the platform cannot answer.
    """

    @property
    def uri(self) -> str:
        """Host-qualified repository name, e.g. ``github.com/owner/repo``."""
        ...

    async def get_metadata(self) -> RepoMetadata: ...

    async def list_files(self) -> list[str]:
        """Every file path at the default branch head."""
        ...

    async def get_file_content(self, path: str) -> bytes | None:
        """Raw file content, or None if the file does not exist."""
        ...

    async def list_commits(self) -> list[Commit]:
        """Recent default-branch commits with their merge requests and reviews."""
        ...

    async def list_issues_with_history(self) -> list[Issue]: ...

    async def list_releases(self) -> list[Release]: ...

    async def list_contributors(self) -> list[User]: ...

    async def list_programming_languages(self) -> list[Language]: ...

    async def list_branches(self) -> list[BranchRef]:
        """The default branch plus branches targeted by recent releases."""
        ...

    async def list_tags(self) -> list[TagRef]: ...

    async def list_webhooks(self) -> list[Webhook]: ...

    async def list_check_runs(self, ref: str) -> list[CheckRun]: ...

    async def list_statuses(self, ref: str) -> list[Status]: ...

    async def list_merged_pull_requests(self) -> list[PullRequest]: ...

    async def list_successful_workflow_runs(self, path: str) -> list[WorkflowRun]: ...

    async def list_workflow_artifacts(self) -> list[WorkflowArtifact]: ...

    async def get_secret_scanning(self) -> SecretScanningSettings:
        """Native secret scanning settings; fields the token cannot read stay None."""
        ...


class VulnerabilityClientPort(Protocol):
    """Port for looking up known vulnerabilities affecting a revision."""

    async def query_commit(self, commit: str) -> list[Vulnerability]: ...


@dataclass(frozen=True, slots=True)
class CheckRequest:
    """Everything a collector or independent probe may use for one run."""

    repo: RepoClientPort
    http_client: httpx.AsyncClient
    now: datetime
    vulnerabilities: VulnerabilityClientPort | None = None
