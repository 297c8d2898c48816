"""Collectors that analyse GitHub Actions workflows and container build files."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from repo_vigil.clients.base import CheckRequest
from repo_vigil.collectors._files import (
    Workflow,
    glob_matcher,
    load_workflows,
    matching,
    read_texts,
    run_commands,
)
from repo_vigil.finding import FileType
from repo_vigil.models import (
    DangerousWorkflow,
    DangerousWorkflowData,
    DangerousWorkflowType,
    Dependency,
    DependencyUseType,
    File,
    Package,
    PackagingData,
    PermissionLevel,
    PermissionLocation,
    PinningDependenciesData,
    SASTCommit,
    SASTData,
    SASTTool,
    SASTWorkflow,
    TokenPermission,
    TokenPermissionsData,
)

logger = logging.getLogger(__name__)

# ─── Dangerous-Workflow ──────────────────────────────────────

UNTRUSTED_TRIGGERS = frozenset({"pull_request_target", "workflow_run"})

UNTRUSTED_REFS = (
    "github.event.pull_request.head",
    "github.event.workflow_run.head",
    "github.head_ref",
)

_EXPRESSION_RE = re.compile(r"\$\{\{\s*([^}]*?)\s*\}\}")

# Attacker-controlled context values; `*` stands for one path segment.
UNTRUSTED_CONTEXTS = tuple(
    re.compile(p)
    for p in (
        r"github\.event\.issue\.title",
        r"github\.event\.issue\.body",
        r"github\.event\.pull_request\.title",
        r"github\.event\.pull_request\.body",
        r"github\.event\.comment\.body",
        r"github\.event\.review\.body",
        r"github\.event\.review_comment\.body",
        r"github\.event\.pages\.[^.]+\.page_name",
        r"github\.event\.commits\.[^.]+\.message",
        r"github\.event\.commits\.[^.]+\.author\.(?:email|name)",
        r"github\.event\.head_commit\.message",
        r"github\.event\.head_commit\.author\.(?:email|name)",
        r"github\.event\.pull_request\.head\.ref",
        r"github\.event\.pull_request\.head\.label",
        r"github\.event\.pull_request\.head\.repo\.default_branch",
        r"github\.event\.workflow_run\.head_branch",
        r"github\.event\.workflow_run\.head_commit\.message",
        r"github\.head_ref",
    )
)


def _is_untrusted(expression: str) -> bool:
    return any(p.search(expression) for p in UNTRUSTED_CONTEXTS)


def _file(workflow: Workflow, snippet: str) -> File:
    return File(
        path=workflow.path,
        type=FileType.SOURCE,
        offset=workflow.line_of(snippet),
        snippet=snippet,
    )


def find_dangerous_patterns(workflow: Workflow) -> list[DangerousWorkflow]:
    found: list[DangerousWorkflow] = []
    untrusted_trigger = bool(workflow.triggers & UNTRUSTED_TRIGGERS)
    for job, step in workflow.steps():
        uses = str(step.get("uses", ""))
        if untrusted_trigger and uses.startswith("actions/checkout"):
            ref = str((step.get("with") or {}).get("ref", ""))
            if any(r in ref for r in UNTRUSTED_REFS):
                found.append(
                    DangerousWorkflow(
                        type=DangerousWorkflowType.UNTRUSTED_CHECKOUT,
                        file=_file(workflow, ref),
                        job_name=job,
                    )
                )
        for line in run_commands(step):
            for expression in _EXPRESSION_RE.findall(line):
                if _is_untrusted(expression):
                    found.append(
                        DangerousWorkflow(
                            type=DangerousWorkflowType.SCRIPT_INJECTION,
                            file=_file(workflow, line),
                            job_name=job,
                        )
                    )
    return found


async def collect_dangerous_workflow(request: CheckRequest) -> DangerousWorkflowData:
    workflows = await load_workflows(request.repo)
    return DangerousWorkflowData(
        workflows=[p for wf in workflows for p in find_dangerous_patterns(wf)],
        num_workflows=len(workflows),
    )


# ─── Pinned-Dependencies ─────────────────────────────────────

_SHA1_RE = re.compile(r"^[0-9a-f]{40}$")
_DOWNLOAD_THEN_RUN_RE = re.compile(r"\b(?:curl|wget)\b[^|]*\|\s*(?:sudo\s+)?(?:ba|z)?sh\b")
_PIP_INSTALL_RE = re.compile(r"\bpip3?\s+install\b|\bpython3?\s+-m\s+pip\s+install\b")
_NPM_INSTALL_RE = re.compile(r"\bnpm\s+(?:install|i)\b")
_GO_INSTALL_RE = re.compile(r"\bgo\s+(?:install|get)\s+(\S+)")

DOCKERFILE = glob_matcher("Dockerfile", "Dockerfile.*", "*.dockerfile")


def _action_dependency(workflow: Workflow, uses: str) -> Dependency | None:
    if uses.startswith("./"):
        return None
    if uses.startswith("docker://"):
        image = uses.removeprefix("docker://")
        return Dependency(
            name=image,
            type=DependencyUseType.DOCKERFILE_CONTAINER_IMAGE,
            location=_file(workflow, uses),
            pinned="@sha256:" in image,
        )
    name, _, ref = uses.partition("@")
    return Dependency(
        name=name,
        type=DependencyUseType.GITHUB_ACTION,
        location=_file(workflow, uses),
        pinned_at=ref,
        pinned=bool(_SHA1_RE.match(ref)),
    )


def command_dependencies(line: str, location: File) -> list[Dependency]:
    """Unpinned installs and piped downloads in one shell line."""
    deps: list[Dependency] = []
    if _DOWNLOAD_THEN_RUN_RE.search(line):
        deps.append(
            Dependency(
                name=line, type=DependencyUseType.DOWNLOAD_THEN_RUN, location=location, pinned=False
            )
        )
    if _PIP_INSTALL_RE.search(line):
        pinned = "--require-hashes" in line or re.search(r"install\s+(?:-e\s+)?\.\s*$", line)
        deps.append(
            Dependency(
                name=line,
                type=DependencyUseType.PIP_COMMAND,
                location=location,
                pinned=bool(pinned),
            )
        )
    if _NPM_INSTALL_RE.search(line):
        deps.append(
            Dependency(name=line, type=DependencyUseType.NPM_COMMAND, location=location, pinned=False)
        )
    m = _GO_INSTALL_RE.search(line)
    if m:
        _, _, version = m.group(1).partition("@")
        deps.append(
            Dependency(
                name=m.group(1),
                type=DependencyUseType.GO_COMMAND,
                location=location,
                pinned_at=version,
                pinned=bool(_SHA1_RE.match(version)),
            )
        )
    return deps


def workflow_dependencies(workflow: Workflow) -> list[Dependency]:
    deps: list[Dependency] = []
    for _, job in workflow.jobs():
        # Reusable workflow call.
        if isinstance(job.get("uses"), str):
            dep = _action_dependency(workflow, job["uses"])
            if dep is not None:
                deps.append(dep)
    for _, step in workflow.steps():
        uses = step.get("uses")
        if isinstance(uses, str):
            dep = _action_dependency(workflow, uses)
            if dep is not None:
                deps.append(dep)
        for line in run_commands(step):
            deps.extend(command_dependencies(line, _file(workflow, line)))
    return deps


def dockerfile_dependencies(path: str, text: str) -> list[Dependency]:
    deps: list[Dependency] = []
    stages: set[str] = set()
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        location = File(path=path, type=FileType.SOURCE, offset=number, snippet=line)
        keyword, _, rest = line.partition(" ")
        match keyword.upper():
            case "FROM":
                parts = [p for p in rest.split() if not p.startswith("--")]
                if not parts:
                    continue
                image = parts[0]
                if len(parts) >= 3 and parts[1].lower() == "as":
                    stages.add(parts[2].lower())
                if image.lower() in stages or image == "scratch":
                    continue
                deps.append(
                    Dependency(
                        name=image,
                        type=DependencyUseType.DOCKERFILE_CONTAINER_IMAGE,
                        location=location,
                        pinned="@sha256:" in image,
                    )
                )
            case "RUN":
                deps.extend(command_dependencies(rest, location))
    return deps


async def collect_pinned_dependencies(request: CheckRequest) -> PinningDependenciesData:
    workflows = await load_workflows(request.repo)
    files = await request.repo.list_files()
    dockerfiles = await read_texts(request.repo, matching(files, DOCKERFILE))
    deps = [d for wf in workflows for d in workflow_dependencies(wf)]
    deps.extend(d for path, text in dockerfiles for d in dockerfile_dependencies(path, text))
    return PinningDependenciesData(dependencies=deps)


# ─── SAST ────────────────────────────────────────────────────

SAST_ACTIONS: dict[str, SASTTool] = {
    "github/codeql-action/analyze": SASTTool.CODEQL,
    "sonarsource/sonarcloud-github-action": SASTTool.SONAR,
    "sonarsource/sonarqube-scan-action": SASTTool.SONAR,
    "snyk/actions": SASTTool.SNYK,
    "facebook/pysa-action": SASTTool.PYSA,
    "jetbrains/qodana-action": SASTTool.QODANA,
}

# Check-run apps that report static analysis results.
SAST_APPS = frozenset({"github-code-scanning", "lgtm-com", "sonarcloud", "sonarqubecloud"})


def _sast_tool(uses: str) -> SASTTool | None:
    lowered = uses.lower()
    for prefix, tool in SAST_ACTIONS.items():
        if lowered.startswith(prefix):
            return tool
    return None


async def _sast_commit(request: CheckRequest, number: int, sha: str) -> SASTCommit:
    runs = await request.repo.list_check_runs(sha)
    compliant = any(
        run.app_slug in SAST_APPS
        and run.status == "completed"
        and run.conclusion in ("success", "neutral")
        for run in runs
    )
    return SASTCommit(sha=sha, pull_request_number=number, compliant=compliant)


async def collect_sast(request: CheckRequest) -> SASTData:
    workflows: list[SASTWorkflow] = []
    for workflow in await load_workflows(request.repo):
        for _, step in workflow.steps():
            uses = str(step.get("uses", ""))
            tool = _sast_tool(uses)
            if tool is not None:
                workflows.append(SASTWorkflow(tool=tool, file=_file(workflow, uses)))

    pulls = [p for p in await request.repo.list_merged_pull_requests() if p.head_sha]
    commits = await asyncio.gather(*(_sast_commit(request, p.number, p.head_sha) for p in pulls))
    return SASTData(workflows=workflows, commits=list(commits))


# ─── Packaging ───────────────────────────────────────────────

# (package manager, pattern over a step's `uses` or `run`)
PUBLISH_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("pypi", re.compile(r"pypa/gh-action-pypi-publish|\btwine\s+upload\b|\b(?:uv|poetry|flit|hatch)\s+publish\b")),
    ("npm", re.compile(r"\bnpm\s+publish\b|\byarn\s+(?:npm\s+)?publish\b|JS-DevTools/npm-publish")),
    ("docker", re.compile(r"docker/build-push-action|\bdocker\s+push\b")),
    ("go", re.compile(r"goreleaser/goreleaser-action")),
    ("maven", re.compile(r"\bmvn\b.*\bdeploy\b|\bgradlew?\b.*\bpublish")),
    ("cargo", re.compile(r"\bcargo\s+publish\b")),
    ("rubygems", re.compile(r"\bgem\s+push\b|rubygems/release-gem")),
    ("nuget", re.compile(r"\bdotnet\s+nuget\s+push\b|\bnuget\s+push\b")),
)  # fmt: skip


def _publish_step(step: dict[str, Any]) -> tuple[str, str] | None:
    """(package manager, matched text) if the step publishes a package."""
    candidates = [str(step.get("uses", "")), *run_commands(step)]
    for manager, pattern in PUBLISH_PATTERNS:
        for text in candidates:
            m = pattern.search(text)
            if m:
                return manager, m.group(0)
    return None


async def _package(request: CheckRequest, workflow: Workflow) -> Package | None:
    for _, step in workflow.steps():
        hit = _publish_step(step)
        if hit is None:
            continue
        manager, snippet = hit
        runs = await request.repo.list_successful_workflow_runs(workflow.path)
        return Package(name=manager, file=_file(workflow, snippet), runs=runs)
    return None


async def collect_packaging(request: CheckRequest) -> PackagingData:
    workflows = await load_workflows(request.repo)
    packages = await asyncio.gather(*(_package(request, wf) for wf in workflows))
    return PackagingData(packages=[p for p in packages if p is not None])


# ─── Token-Permissions ───────────────────────────────────────

# Write access to these scopes lets a compromised workflow tamper with the project.
PERMISSIONS_OF_INTEREST = frozenset(
    {"statuses", "checks", "security-events", "deployments", "contents", "packages", "actions"}
)

RELEASE_ACTIONS = (
    "relekang/python-semantic-release",
    "python-semantic-release/python-semantic-release",
    "goreleaser/goreleaser-action",
    "slsa-framework/slsa-github-generator",
    "softprops/action-gh-release",
    "ncipollo/release-action",
)

PAGES_ACTIONS = ("peaceiris/actions-gh-pages",)

# Actions that upload SARIF results to code scanning.
SARIF_ACTIONS = (
    "github/codeql-action/analyze",
    "github/codeql-action/upload-sarif",
    "ossf/scorecard-action",
)

_MVN_RELEASE_RE = re.compile(r"\bmvn\b.*\brelease:prepare\b")


def _uses_any(workflow: Workflow, prefixes: tuple[str, ...]) -> str | None:
    for _, step in workflow.steps():
        uses = str(step.get("uses", "")).split("@", 1)[0].lower()
        if uses.startswith(prefixes):
            return uses
    return None


def ignored_permissions(workflow: Workflow) -> frozenset[str]:
    """Scopes this workflow legitimately needs to write."""
    ignored: set[str] = set()
    if any(_publish_step(step) for _, step in workflow.steps()):
        logger.debug("%s is a packaging workflow; ignoring 'packages'", workflow.path)
        ignored.add("packages")
    releases = _uses_any(workflow, RELEASE_ACTIONS + PAGES_ACTIONS) or any(
        _MVN_RELEASE_RE.search(line) for _, step in workflow.steps() for line in run_commands(step)
    )
    if releases:
        logger.debug("%s publishes releases or pages; ignoring 'contents'", workflow.path)
        ignored.add("contents")
    if _uses_any(workflow, SARIF_ACTIONS):
        logger.debug("%s uploads SARIF results; ignoring 'security-events'", workflow.path)
        ignored.add("security-events")
    return frozenset(ignored)


def _level_of(value: str) -> PermissionLevel:
    match value:
        case "read" | "read-all":
            return PermissionLevel.READ
        case "none":
            return PermissionLevel.NONE
    return PermissionLevel.UNKNOWN


def _declared_permissions(
    workflow: Workflow,
    permissions: Any,
    location: PermissionLocation,
    job_name: str,
    ignored: frozenset[str],
) -> list[TokenPermission]:
    def entry(
        level: PermissionLevel, snippet: str, name: str = "", value: str = ""
    ) -> TokenPermission:
        return TokenPermission(
            location_type=location,
            type=level,
            file=_file(workflow, snippet) if snippet else File(workflow.path, FileType.SOURCE),
            job_name=job_name,
            name=name,
            value=value,
        )

    if permissions is None or permissions == {} or permissions == "":
        return [entry(PermissionLevel.NONE, "permissions", value="none")]
    if isinstance(permissions, str):
        # The only string forms are read-all and write-all.
        if permissions.lower() != "read-all":
            return [entry(PermissionLevel.WRITE, permissions, value=permissions)]
        return [entry(PermissionLevel.READ, permissions, value=permissions)]
    if not isinstance(permissions, dict):
        return [entry(PermissionLevel.UNKNOWN, "permissions", value=str(permissions))]

    found: list[TokenPermission] = []
    for key, raw_value in permissions.items():
        name, value = str(key), str(raw_value)
        snippet = f"{name}: {value}"
        if value == "write":
            of_interest = name.lower() in PERMISSIONS_OF_INTEREST and name.lower() not in ignored
            # Writes to other scopes are reported but not scored.
            level = PermissionLevel.WRITE if of_interest else PermissionLevel.UNKNOWN
            found.append(entry(level, snippet, name, value))
        else:
            found.append(entry(_level_of(value), snippet, name, value))
    return found


def workflow_permissions(workflow: Workflow) -> list[TokenPermission]:
    """Top-level and per-job token permissions declared by one workflow."""
    found: list[TokenPermission] = []
    if "permissions" not in workflow.data:
        found.append(
            TokenPermission(
                location_type=PermissionLocation.TOP,
                type=PermissionLevel.UNDECLARED,
                file=File(workflow.path, FileType.SOURCE),
            )
        )
    else:
        found.extend(
            _declared_permissions(
                workflow, workflow.data["permissions"], PermissionLocation.TOP, "", frozenset()
            )
        )

    ignored = ignored_permissions(workflow)
    for name, job in workflow.jobs():
        if "permissions" not in job:
            found.append(
                TokenPermission(
                    location_type=PermissionLocation.JOB,
                    type=PermissionLevel.UNDECLARED,
                    file=_file(workflow, f"{name}:"),
                    job_name=name,
                )
            )
            continue
        found.extend(
            _declared_permissions(workflow, job["permissions"], PermissionLocation.JOB, name, ignored)
        )
    return found


async def collect_token_permissions(request: CheckRequest) -> TokenPermissionsData:
    workflows = await load_workflows(request.repo)
    return TokenPermissionsData(
        token_permissions=[p for wf in workflows for p in workflow_permissions(wf)],
        num_workflows=len(workflows),
    )
