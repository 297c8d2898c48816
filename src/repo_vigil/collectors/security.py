"""Collectors for secret scanning and software bill of materials publication."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import timedelta
from typing import Any

import yaml

from repo_vigil.clients.base import CheckRequest
from repo_vigil.collectors._files import Workflow, decode, load_workflows
from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.finding import FileType
from repo_vigil.models import (
    CheckRun,
    Commit,
    ExecutionPattern,
    File,
    SbomData,
    SbomFile,
    SbomOrigin,
    SecretScanningData,
    SecretScanningTool,
    ThirdPartyScanner,
    ToolCIStats,
)

logger = logging.getLogger(__name__)

# ─── Secret-Scanning ─────────────────────────────────────────

PRE_COMMIT_CONFIG = ".pre-commit-config.yaml"

# Lower-case text that marks a tool in a workflow or pre-commit config.
SCANNER_MARKERS: dict[SecretScanningTool, tuple[str, ...]] = {
    SecretScanningTool.GITLEAKS: ("gitleaks",),
    SecretScanningTool.TRUFFLEHOG: ("trufflehog", "trufflesecurity/trufflehog"),
    SecretScanningTool.DETECT_SECRETS: ("detect-secrets",),
    SecretScanningTool.GIT_SECRETS: ("git-secrets",),
    SecretScanningTool.GGSHIELD: ("ggshield", "gitguardian/ggshield"),
    SecretScanningTool.SHHGIT: ("shhgit",),
    SecretScanningTool.REPO_SUPERVISOR: ("repo-supervisor",),
}

# Lower-case text that identifies a tool's check run by app slug or URL.
CHECK_RUN_KEYWORDS: dict[SecretScanningTool, tuple[str, ...]] = {
    SecretScanningTool.GITLEAKS: ("gitleaks",),
    SecretScanningTool.TRUFFLEHOG: ("trufflehog", "trufflesecurity"),
    SecretScanningTool.DETECT_SECRETS: ("detect-secrets", "detect_secrets"),
    SecretScanningTool.GIT_SECRETS: ("git-secrets", "git_secrets"),
    SecretScanningTool.GGSHIELD: ("ggshield", "gitguardian"),
    SecretScanningTool.SHHGIT: ("shhgit",),
    SecretScanningTool.REPO_SUPERVISOR: ("repo-supervisor", "repo_supervisor", "reposupervisor"),
}

PERIODIC_TOOLS = frozenset({SecretScanningTool.SHHGIT, SecretScanningTool.REPO_SUPERVISOR})

RECENT_RUN_WINDOW = timedelta(days=30)
MAX_COMMITS_ANALYZED = 100


def detect_scanners(sources: list[tuple[str, str]]) -> dict[SecretScanningTool, list[File]]:
    """Tools mentioned in ``(path, text)`` sources, with the files that mention them."""
    found: dict[SecretScanningTool, list[File]] = {}
    for path, text in sources:
        lowered = text.lower()
        for tool, markers in SCANNER_MARKERS.items():
            for marker in markers:
                if marker in lowered:
                    found.setdefault(tool, []).append(
                        File(path=path, type=FileType.SOURCE, snippet=marker)
                    )
                    break
    return found


def ran_in(tool: SecretScanningTool, runs: list[CheckRun]) -> bool:
    keywords = CHECK_RUN_KEYWORDS[tool]
    return any(
        keyword in run.app_slug.lower() or keyword in run.url.lower()
        for run in runs
        for keyword in keywords
    )


def tool_ci_stats(
    tool: SecretScanningTool,
    commits: list[Commit],
    runs_by_sha: dict[str, list[CheckRun]],
    request: CheckRequest,
) -> ToolCIStats:
    with_run: list[Commit] = []
    for commit in commits:
        pr = commit.associated_merge_request
        if pr is None or pr.merged_at is None:
            continue
        if ran_in(tool, runs_by_sha.get(pr.head_sha, [])):
            with_run.append(commit)
    cutoff = request.now - RECENT_RUN_WINDOW
    return ToolCIStats(
        tool=tool,
        execution_pattern=(
            ExecutionPattern.PERIODIC if tool in PERIODIC_TOOLS else ExecutionPattern.COMMIT_BASED
        ),
        commits_analyzed=len(commits),
        commits_with_tool_run=len(with_run),
        has_recent_runs=any(
            c.committed_date is not None and c.committed_date > cutoff for c in with_run
        ),
    )


async def _check_runs_by_sha(
    request: CheckRequest, commits: list[Commit]
) -> dict[str, list[CheckRun]]:
    shas = sorted(
        {
            c.associated_merge_request.head_sha
            for c in commits
            if c.associated_merge_request is not None
            and c.associated_merge_request.merged_at is not None
            and c.associated_merge_request.head_sha
        }
    )
    runs = await asyncio.gather(*(request.repo.list_check_runs(sha) for sha in shas))
    return dict(zip(shas, runs, strict=True))


async def _scanner_sources(
    request: CheckRequest, workflows: list[Workflow]
) -> list[tuple[str, str]]:
    sources = [(wf.path, wf.text) for wf in workflows]
    if PRE_COMMIT_CONFIG in await request.repo.list_files():
        text = decode(await request.repo.get_file_content(PRE_COMMIT_CONFIG))
        if text is not None:
            sources.append((PRE_COMMIT_CONFIG, text))
    return sources


async def collect_secret_scanning(request: CheckRequest) -> SecretScanningData:
    native, workflows = await asyncio.gather(
        request.repo.get_secret_scanning(), load_workflows(request.repo)
    )
    detected = detect_scanners(await _scanner_sources(request, workflows))
    if not detected:
        return SecretScanningData(native=native)

    stats: dict[SecretScanningTool, ToolCIStats] = {}
    try:
        commits = (await request.repo.list_commits())[:MAX_COMMITS_ANALYZED]
        runs_by_sha = await _check_runs_by_sha(request, commits)
    except UpstreamUnavailableError as exc:
        # Scanners still count as present, just without run history.
        logger.warning(
            "Could not read CI runs for secret scanners in %s: %s", request.repo.uri, exc
        )
    else:
        if commits:
            stats = {tool: tool_ci_stats(tool, commits, runs_by_sha, request) for tool in detected}

    return SecretScanningData(
        native=native,
        third_party=[
            ThirdPartyScanner(tool=tool, files=files, ci_stats=stats.get(tool))
            for tool, files in detected.items()
        ],
    )


# ─── SBOM ────────────────────────────────────────────────────

SBOM_FILE_RE = re.compile(
    r".+\.(?:cdx\.json|cdx\.xml|spdx|spdx\.json|spdx\.xml|spdx\.ya?ml|spdx\.rdf|spdx\.rdf\.xml)$",
    re.IGNORECASE,
)

SECURITY_INSIGHTS_FILES = ("SECURITY-INSIGHTS.yml", "SECURITY_INSIGHTS.yml")


def is_sbom_file(name: str) -> bool:
    return bool(SBOM_FILE_RE.match(name))


def is_root_file(path: str) -> bool:
    return "/" not in path and not path.startswith(".")


def security_insights_sboms(path: str, text: str) -> list[SbomFile]:
    """SBOMs declared under ``dependencies.sbom`` of a security insights file."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        logger.warning("Malformed security insights YAML at %s", path)
        return []
    if not isinstance(data, dict):
        return []
    dependencies = data.get("dependencies")
    entries: Any = dependencies.get("sbom") if isinstance(dependencies, dict) else None
    if not isinstance(entries, list):
        return []
    found: list[SbomFile] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("sbom-file") or "")
        found.append(
            SbomFile(
                file=File(path=path, type=FileType.SOURCE, snippet=name),
                name=name,
                origin=SbomOrigin.STANDARDS_FILE,
                schema=str(entry.get("sbom-format") or ""),
            )
        )
    return found


async def _standards_sboms(request: CheckRequest, files: list[str]) -> list[SbomFile]:
    found: list[SbomFile] = []
    for path in SECURITY_INSIGHTS_FILES:
        if path not in files:
            continue
        text = decode(await request.repo.get_file_content(path))
        if text is not None:
            found.extend(security_insights_sboms(path, text))
    return found


def _published(name: str, url: str, origin: SbomOrigin) -> SbomFile:
    return SbomFile(file=File(path=url or name, type=FileType.URL), name=name, origin=origin)


async def collect_sbom(request: CheckRequest) -> SbomData:
    files, releases, artifacts = await asyncio.gather(
        request.repo.list_files(),
        request.repo.list_releases(),
        request.repo.list_workflow_artifacts(),
    )
    sboms = [
        _published(a.name, a.url, SbomOrigin.RELEASE_ASSET)
        for release in releases
        for a in release.assets
        if is_sbom_file(a.name)
    ]
    sboms.extend(
        _published(a.name, a.url, SbomOrigin.CI_ARTIFACT)
        for a in artifacts
        # Artifact names are labels, not file names.
        if is_sbom_file(a.name) or "sbom" in a.name.lower()
    )
    sboms.extend(await _standards_sboms(request, files))
    sboms.extend(
        SbomFile(file=File(path=path, type=FileType.SOURCE), name=path, origin=SbomOrigin.SOURCE)
        for path in files
        if is_root_file(path) and is_sbom_file(path)
    )
    logger.debug("Found %d SBOMs for %s", len(sboms), request.repo.uri)
    return SbomData(sbom_files=sboms)
