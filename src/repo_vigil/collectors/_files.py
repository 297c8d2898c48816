"""Shared helpers for collectors that read repository files."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import yaml

from repo_vigil.clients.base import RepoClientPort

logger = logging.getLogger(__name__)

WORKFLOW_DIR = ".github/workflows/"

MAX_FILES_READ = 100


@dataclass(frozen=True, slots=True)
class Workflow:
    """A parsed GitHub Actions workflow and its source text."""

    path: str
    text: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def triggers(self) -> set[str]:
        # PyYAML reads the bare key `on` as the boolean True.
        on = self.data.get("on", self.data.get(True))
        if isinstance(on, str):
            return {on}
        if isinstance(on, list):
            return {str(t) for t in on}
        if isinstance(on, dict):
            return {str(t) for t in on}
        return set()

    def jobs(self) -> list[tuple[str, dict[str, Any]]]:
        jobs = self.data.get("jobs")
        if not isinstance(jobs, dict):
            return []
        return [(str(name), job) for name, job in jobs.items() if isinstance(job, dict)]

    def steps(self) -> list[tuple[str, dict[str, Any]]]:
        """(job name, step) for every step of every job."""
        return [
            (name, step)
            for name, job in self.jobs()
            for step in job.get("steps") or []
            if isinstance(step, dict)
        ]

    def line_of(self, needle: str) -> int | None:
        return line_of(self.text, needle)


def decode(content: bytes | None) -> str | None:
    if content is None:
        return None
    return content.decode("utf-8", errors="replace")


def line_of(text: str, needle: str) -> int | None:
    """1-based line of the first occurrence of ``needle``."""
    for number, line in enumerate(text.splitlines(), start=1):
        if needle in line:
            return number
    return None


def matching(files: Iterable[str], predicate: Callable[[str], bool]) -> list[str]:
    return [f for f in files if predicate(f)]


def glob_matcher(*patterns: str, case_sensitive: bool = False) -> Callable[[str], bool]:
    """Match a path's basename against shell-style patterns."""

    def _match(path: str) -> bool:
        name = posixpath.basename(path)
        if case_sensitive:
            return any(fnmatch.fnmatchcase(name, p) for p in patterns)
        return any(fnmatch.fnmatchcase(name.lower(), p.lower()) for p in patterns)

    return _match


async def read_texts(repo: RepoClientPort, paths: list[str]) -> list[tuple[str, str]]:
    """(path, text) for every readable file, capped at MAX_FILES_READ."""
    if len(paths) > MAX_FILES_READ:
        logger.warning(
            "Reading only %d of %d matching files in %s", MAX_FILES_READ, len(paths), repo.uri
        )
        paths = paths[:MAX_FILES_READ]
    contents = await asyncio.gather(*(repo.get_file_content(p) for p in paths))
    return [
        (path, text)
        for path, content in zip(paths, contents, strict=True)
        if (text := decode(content)) is not None
    ]


def is_workflow(path: str) -> bool:
    return path.startswith(WORKFLOW_DIR) and path.endswith((".yml", ".yaml"))


async def load_workflows(repo: RepoClientPort) -> list[Workflow]:
    """Parse every GitHub Actions workflow; malformed ones are skipped with a warning."""
    files = await repo.list_files()
    workflows: list[Workflow] = []
    for path, text in await read_texts(repo, matching(files, is_workflow)):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            logger.warning("Malformed workflow YAML at %s", path)
            continue
        if not isinstance(data, dict):
            continue
        workflows.append(Workflow(path=path, text=text, data=data))
    return workflows


def run_commands(step: dict[str, Any]) -> list[str]:
    """Non-empty shell lines of a step's ``run`` block."""
    run = step.get("run")
    if not isinstance(run, str):
        return []
    return [line.strip() for line in run.splitlines() if line.strip()]
