"""GitHub REST adapter for RepoClientPort."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
import re
import subprocess
import time
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from repo_vigil.errors import InvalidRepositoryError, UpstreamUnavailableError
from repo_vigil.models import (
    BranchProtectionRule,
    BranchRef,
    CheckRun,
    Commit,
    Issue,
    IssueComment,
    LabelEvent,
    Language,
    PullRequest,
    PullRequestReviewRule,
    Release,
    ReleaseAsset,
    RepoMetadata,
    Review,
    SecretScanningSettings,
    StateChangeEvent,
    Status,
    StatusChecksRule,
    TagRef,
    User,
    Webhook,
    WorkflowArtifact,
    WorkflowRun,
)

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

MAX_COMMITS = 30
MAX_ISSUES = 100
MAX_PULL_REQUESTS = 30
MAX_RELEASES = 30
MAX_TAGS = 100
MAX_CONTRIBUTORS = 30
MAX_WORKFLOW_RUNS = 30
MAX_ARTIFACTS = 100

MAINTAINER_ASSOCIATIONS = frozenset({"OWNER", "MEMBER", "COLLABORATOR"})

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")


# ─── URL parsing ───────────────────────────────────────────


def parse_github_url(repository: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub URL, ``github.com/o/r`` or ``o/r``.

    Returns None if the reference is not a GitHub repo.
    """
    ref = repository.strip()
    if not ref.startswith(("http://", "https://")):
        ref = ref.removeprefix("github.com/")
        ref = f"https://github.com/{ref}"
    m = re.match(r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/.*)?$", ref)
    if m:
        return m.group(1), m.group(2)
    return None


# ─── Auth resolution ───────────────────────────────────────


def resolve_github_token() -> tuple[str | None, str]:
    """Resolve auth token: env first, then `gh auth token` fallback."""
    env_token = os.environ.get("GITHUB_TOKEN", "").strip()
    if env_token:
        return env_token, "env"
    gh_token = _resolve_gh_cli_token()
    if gh_token:
        logger.info("Using GitHub token from `gh auth token` fallback.")
        return gh_token, "gh_cli"
    logger.info(
        "No GitHub auth token found (checked GITHUB_TOKEN and `gh auth token`). "
        "Some checks need an authenticated client and large repos hit rate limits."
    )
    return None, "none"


def _resolve_gh_cli_token() -> str | None:
    """Try to read a token from local GitHub CLI auth context."""
    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None

    if completed.returncode != 0:
        return None
    token = completed.stdout.strip()
    return token or None


# ─── Parsing helpers ───────────────────────────────────────


def _parse_time(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _user(data: object) -> User | None:
    if not isinstance(data, dict) or not data.get("login"):
        return None
    login = str(data["login"])
    return User(login=login, is_bot=data.get("type") == "Bot" or login.endswith("[bot]"))


def _enabled(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if isinstance(value, dict):
        return bool(value.get("enabled"))
    return None


def _analysis_status(analysis: dict[str, Any], key: str) -> bool | None:
    status = (analysis.get(key) or {}).get("status")
    if not isinstance(status, str):
        return None
    return status == "enabled"


def _pull_request(data: dict[str, Any], reviews: list[Review]) -> PullRequest:
    return PullRequest(
        number=int(data.get("number", 0)),
        head_sha=str((data.get("head") or {}).get("sha", "")),
        merged_at=_parse_time(data.get("merged_at")),
        merged_by=_user(data.get("merged_by")),
        author=_user(data.get("user")),
        reviews=reviews,
    )


def _classic_rule(data: dict[str, Any]) -> BranchProtectionRule:
    """Branch protection settings from the admin-only protection endpoint."""
    reviews = data.get("required_pull_request_reviews")
    checks = data.get("required_status_checks")
    return BranchProtectionRule(
        allow_deletions=_enabled(data, "allow_deletions"),
        allow_force_pushes=_enabled(data, "allow_force_pushes"),
        enforce_admins=_enabled(data, "enforce_admins"),
        require_linear_history=_enabled(data, "required_linear_history"),
        pull_request_reviews=PullRequestReviewRule(
            required=reviews is not None,
            required_approving_review_count=(reviews or {}).get(
                "required_approving_review_count", 0
            ),
            dismiss_stale_reviews=bool((reviews or {}).get("dismiss_stale_reviews")),
            require_code_owner_reviews=bool((reviews or {}).get("require_code_owner_reviews")),
            require_last_push_approval=bool((reviews or {}).get("require_last_push_approval")),
        ),
        status_checks=StatusChecksRule(
            requires_status_checks=checks is not None,
            up_to_date_before_merge=bool((checks or {}).get("strict")),
            contexts=list((checks or {}).get("contexts") or []),
        ),
    )


def _ruleset_rule(rules: list[dict[str, Any]]) -> BranchProtectionRule:
    """Branch protection settings from the rules that apply to one branch."""
    by_type = {r.get("type"): r.get("parameters") or {} for r in rules}
    pr = by_type.get("pull_request")
    checks = by_type.get("required_status_checks")
    return BranchProtectionRule(
        allow_deletions="deletion" not in by_type,
        allow_force_pushes="non_fast_forward" not in by_type,
        enforce_admins=None,
        require_linear_history="required_linear_history" in by_type,
        pull_request_reviews=PullRequestReviewRule(
            required=pr is not None,
            required_approving_review_count=(pr or {}).get("required_approving_review_count", 0),
            dismiss_stale_reviews=bool((pr or {}).get("dismiss_stale_reviews_on_push")),
            require_code_owner_reviews=bool((pr or {}).get("require_code_owner_review")),
            require_last_push_approval=bool((pr or {}).get("require_last_push_approval")),
        ),
        status_checks=StatusChecksRule(
            requires_status_checks=checks is not None,
            up_to_date_before_merge=bool((checks or {}).get("strict_required_status_checks_policy")),
            contexts=[
                str(c.get("context", ""))
                for c in (checks or {}).get("required_status_checks") or []
                if isinstance(c, dict)
            ],
        ),
    )


def _ruleset_matches(ruleset: dict[str, Any], ref: str) -> bool:
    conditions = (ruleset.get("conditions") or {}).get("ref_name") or {}
    include = conditions.get("include") or []
    exclude = conditions.get("exclude") or []

    def _match(pattern: str) -> bool:
        return pattern == "~ALL" or fnmatch.fnmatchcase(ref, pattern)

    return any(_match(p) for p in include) and not any(_match(p) for p in exclude)


def _tag_ref(name: str, rulesets: list[dict[str, Any]]) -> TagRef:
    matching = [rs for rs in rulesets if _ruleset_matches(rs, f"refs/tags/{name}")]
    if not matching:
        return TagRef(
            name=name,
            protected=False,
            allow_deletions=True,
            allow_force_pushes=True,
            allow_updates=True,
            enforce_admins=False,
            restricts_creation=False,
            require_signatures=False,
        )
    types = {rule.get("type") for rs in matching for rule in rs.get("rules") or []}
    bypass = [rs.get("bypass_actors") for rs in matching]
    enforce_admins = None if any(b is None for b in bypass) else not any(bypass)
    return TagRef(
        name=name,
        protected=bool(types),
        allow_deletions="deletion" not in types,
        allow_force_pushes="non_fast_forward" not in types,
        allow_updates="update" not in types,
        enforce_admins=enforce_admins,
        restricts_creation="creation" in types,
        require_signatures="required_signatures" in types,
    )


def _issue_history(issue: Issue, timeline: list[dict[str, Any]]) -> Issue:
    author = issue.author.login.lower() if issue.author else ""
    comments: list[IssueComment] = []
    label_events: list[LabelEvent] = []
    state_events: list[StateChangeEvent] = []
    for item in timeline:
        created = _parse_time(item.get("created_at"))
        if created is None:
            continue
        actor = str((item.get("actor") or item.get("user") or {}).get("login", "")).lower()
        match item.get("event"):
            case "commented":
                association = str(item.get("author_association", "")).upper()
                comments.append(
                    IssueComment(
                        created_at=created,
                        author=_user(item.get("user") or item.get("actor")),
                        is_maintainer=association in MAINTAINER_ASSOCIATIONS,
                    )
                )
            case "labeled" | "unlabeled" as event:
                label = str((item.get("label") or {}).get("name", "")).strip().lower()
                label_events.append(
                    LabelEvent(
                        label=label,
                        added=event == "labeled",
                        created_at=created,
                        actor=actor,
                        is_maintainer=actor != author,
                    )
                )
            case "closed" | "reopened" as event:
                state_events.append(
                    StateChangeEvent(closed=event == "closed", created_at=created, actor=actor)
                )
    return Issue(
        number=issue.number,
        url=issue.url,
        created_at=issue.created_at,
        closed_at=issue.closed_at,
        author=issue.author,
        author_is_maintainer=issue.author_is_maintainer,
        comments=comments,
        label_events=label_events,
        state_change_events=state_events,
    )


# ─── Client ───────────────────────────────────────────────


class GitHubRepoClient:
    """Reads one GitHub repository through the REST API.

    Responses that several collectors share (metadata, file list, commits,
    issues, releases) are fetched once per client and cached. Concurrent
    requests are limited by a semaphore and the X-RateLimit headers are
    tracked so an exhausted quota fails fast.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        http_client: httpx.AsyncClient,
        token: str | None = None,
        max_concurrency: int = 5,
        api_url: str = GITHUB_API,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._http = http_client
        self._token = token
        self._api = api_url.rstrip("/")
        self._sem = asyncio.Semaphore(max_concurrency)
        self._rate_limit_reset = 0.0
        self._cache: dict[str, Any] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_url(
        cls,
        repository: str,
        http_client: httpx.AsyncClient,
        token: str | None = None,
        max_concurrency: int = 5,
    ) -> GitHubRepoClient:
        parsed = parse_github_url(repository)
        if parsed is None:
            raise InvalidRepositoryError(
                f"Not a GitHub repository: {repository}. "
                "Use https://github.com/<owner>/<repo> or <owner>/<repo>."
            )
        return cls(
            parsed[0], parsed[1], http_client, token=token, max_concurrency=max_concurrency
        )

    @property
    def uri(self) -> str:
        return f"github.com/{self._owner}/{self._repo}"

    @property
    def _base(self) -> str:
        return f"/repos/{self._owner}/{self._repo}"

    # ─── Transport ─────────────────────────────────────────

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {"Accept": accept, "X-GitHub-Api-Version": "2022-11-28"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _is_rate_limited(self) -> bool:
        return time.monotonic() < self._rate_limit_reset

    def _check_rate_limit(self, resp: httpx.Response) -> None:
        remaining = resp.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return
        try:
            remaining_value = int(remaining)
        except ValueError:
            return
        if remaining_value != 0:
            return
        reset_epoch = int(resp.headers.get("X-RateLimit-Reset", "0"))
        self._rate_limit_reset = time.monotonic() + max(0, reset_epoch - time.time())
        logger.warning(
            "GitHub API rate limit exhausted for %s (%s).",
            self.uri,
            "authenticated" if self._token else "no auth token",
        )

    async def _request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        accept: str = "application/vnd.github+json",
        missing: tuple[int, ...] = (404,),
    ) -> httpx.Response | None:
        """GET ``path``; None for the statuses in ``missing``."""
        if self._is_rate_limited():
            raise UpstreamUnavailableError(
                "GitHub API rate limit exhausted. Set GITHUB_TOKEN or retry after the reset."
            )
        url = path if path.startswith("http") else f"{self._api}{path}"
        async with self._sem:
            try:
                resp = await self._http.get(url, params=params, headers=self._headers(accept))
            except httpx.HTTPError as exc:
                raise UpstreamUnavailableError(f"Could not reach the GitHub API: {exc}") from exc
        self._check_rate_limit(resp)

        if resp.status_code in missing:
            return None
        if resp.status_code != 200:
            if self._is_rate_limited():
                raise UpstreamUnavailableError(
                    "GitHub API rate limit exhausted. Set GITHUB_TOKEN or retry after the reset."
                )
            raise UpstreamUnavailableError(
                f"GitHub API returned HTTP {resp.status_code} for {path}."
            )
        return resp

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None, missing: tuple[int, ...] = (404,)
    ) -> Any:
        resp = await self._request(path, params, missing=missing)
        if resp is None:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(f"GitHub API returned invalid JSON for {path}.") from exc

    async def _paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        limit: int = 100,
        key: str | None = None,
        missing: tuple[int, ...] = (404,),
    ) -> list[dict[str, Any]]:
        """Follow ``Link: rel=next`` until ``limit`` items are collected."""
        items: list[dict[str, Any]] = []
        url: str | None = path
        query: dict[str, Any] | None = {"per_page": min(limit, 100), **(params or {})}
        while url and len(items) < limit:
            resp = await self._request(url, query, missing=missing)
            if resp is None:
                break
            page = resp.json()
            if key is not None:
                page = page.get(key, []) if isinstance(page, dict) else []
            if not isinstance(page, list):
                raise UpstreamUnavailableError(f"GitHub API returned an unexpected page for {path}.")
            items.extend(p for p in page if isinstance(p, dict))
            url = resp.links.get("next", {}).get("url")
            query = None
        return items[:limit]

    async def _once(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key not in self._cache:
                self._cache[key] = await factory()
            return self._cache[key]

    # ─── RepoClientPort ────────────────────────────────────

    async def get_metadata(self) -> RepoMetadata:
        return await self._once("metadata", self._fetch_metadata)

    async def _repo_json(self) -> dict[str, Any]:
        data = await self._once("repo", lambda: self._get_json(self._base))
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Repository not found: {self.uri}")
        return data

    async def _fetch_metadata(self) -> RepoMetadata:
        data = await self._repo_json()
        default_branch = str(data.get("default_branch") or "main")
        head = await self._get_json(f"{self._base}/commits/{quote(default_branch, safe='')}")
        return RepoMetadata(
            full_name=str(data.get("full_name", f"{self._owner}/{self._repo}")),
            default_branch=default_branch,
            archived=bool(data.get("archived", False)),
            created_at=_parse_time(data.get("created_at")),
            head_sha=str((head or {}).get("sha", "")),
            license_spdx_id=str((data.get("license") or {}).get("spdx_id") or ""),
        )

    async def list_files(self) -> list[str]:
        return await self._once("files", self._fetch_files)

    async def _fetch_files(self) -> list[str]:
        meta = await self.get_metadata()
        ref = meta.head_sha or meta.default_branch
        data = await self._get_json(
            f"{self._base}/git/trees/{quote(ref, safe='')}", {"recursive": "1"}
        )
        if not isinstance(data, dict):
            return []
        if data.get("truncated"):
            logger.warning("File tree of %s is truncated; some files are not scanned", self.uri)
        return [
            str(entry["path"])
            for entry in data.get("tree") or []
            if entry.get("type") == "blob" and entry.get("path")
        ]

    async def get_file_content(self, path: str) -> bytes | None:
        meta = await self.get_metadata()
        resp = await self._request(
            f"{self._base}/contents/{quote(path)}",
            {"ref": meta.head_sha or meta.default_branch},
            accept="application/vnd.github.raw+json",
        )
        return None if resp is None else resp.content

    async def list_commits(self) -> list[Commit]:
        return await self._once("commits", self._fetch_commits)

    async def _fetch_commits(self) -> list[Commit]:
        meta = await self.get_metadata()
        raw_commits = await self._paginate(
            f"{self._base}/commits", {"sha": meta.default_branch}, limit=MAX_COMMITS
        )
        prs = await asyncio.gather(
            *(self._merge_request_for(str(c.get("sha", ""))) for c in raw_commits)
        )
        commits: list[Commit] = []
        for data, pr in zip(raw_commits, prs, strict=True):
            info = data.get("commit") or {}
            commits.append(
                Commit(
                    sha=str(data.get("sha", "")),
                    committed_date=_parse_time((info.get("committer") or {}).get("date")),
                    message=str(info.get("message", "")),
                    committer=_user(data.get("committer")) or _user(data.get("author")),
                    associated_merge_request=pr,
                )
            )
        return commits

    async def _merge_request_for(self, sha: str) -> PullRequest | None:
        pulls = await self._get_json(f"{self._base}/commits/{sha}/pulls")
        merged = [p for p in pulls or [] if isinstance(p, dict) and p.get("merged_at")]
        if not merged:
            return None
        reviews = await self._reviews(int(merged[0].get("number", 0)))
        return _pull_request(merged[0], reviews)

    async def _reviews(self, number: int) -> list[Review]:
        data = await self._paginate(f"{self._base}/pulls/{number}/reviews", limit=100)
        return [Review(author=_user(r.get("user")), state=str(r.get("state", ""))) for r in data]

    async def list_issues_with_history(self) -> list[Issue]:
        return await self._once("issues", self._fetch_issues)

    async def _fetch_issues(self) -> list[Issue]:
        raw = await self._paginate(
            f"{self._base}/issues",
            {"state": "all", "sort": "updated", "direction": "desc"},
            limit=MAX_ISSUES,
        )
        issues = [
            Issue(
                number=int(item.get("number", 0)),
                url=str(item.get("html_url", "")),
                created_at=_parse_time(item.get("created_at")),
                closed_at=_parse_time(item.get("closed_at")),
                author=_user(item.get("user")),
                author_is_maintainer=str(item.get("author_association", "")).upper()
                in MAINTAINER_ASSOCIATIONS,
            )
            for item in raw
            if "pull_request" not in item
        ]
        timelines = await asyncio.gather(
            *(self._paginate(f"{self._base}/issues/{i.number}/timeline") for i in issues)
        )
        return [_issue_history(i, t) for i, t in zip(issues, timelines, strict=True)]

    async def list_releases(self) -> list[Release]:
        return await self._once("releases", self._fetch_releases)

    async def _fetch_releases(self) -> list[Release]:
        data = await self._paginate(f"{self._base}/releases", limit=MAX_RELEASES)
        return [
            Release(
                tag_name=str(r.get("tag_name", "")),
                url=str(r.get("html_url", "")),
                target_commitish=str(r.get("target_commitish", "")),
                assets=[
                    ReleaseAsset(
                        name=str(a.get("name", "")), url=str(a.get("browser_download_url", ""))
                    )
                    for a in r.get("assets") or []
                ],
            )
            for r in data
        ]

    async def list_contributors(self) -> list[User]:
        data = await self._paginate(f"{self._base}/contributors", limit=MAX_CONTRIBUTORS)
        contributors = [c for c in data if c.get("login")]
        profiles = await asyncio.gather(*(self._profile(str(c["login"])) for c in contributors))
        users: list[User] = []
        for contributor, (company, orgs) in zip(contributors, profiles, strict=True):
            base = _user(contributor)
            users.append(
                User(
                    login=str(contributor["login"]),
                    is_bot=base.is_bot if base else False,
                    companies=[company] if company else [],
                    organizations=orgs,
                    num_contributions=int(contributor.get("contributions", 0)),
                )
            )
        return users

    async def _profile(self, login: str) -> tuple[str, list[str]]:
        profile = await self._get_json(f"/users/{login}") or {}
        orgs = await self._get_json(f"/users/{login}/orgs") or []
        company = str(profile.get("company") or "").strip().lstrip("@").strip().lower()
        return company, [str(o["login"]).lower() for o in orgs if o.get("login")]

    async def list_programming_languages(self) -> list[Language]:
        data = await self._get_json(f"{self._base}/languages") or {}
        # Byte counts stand in for line counts; only proportions matter.
        return [Language(name=name, num_lines=int(size)) for name, size in data.items()]

    async def list_branches(self) -> list[BranchRef]:
        meta = await self.get_metadata()
        names = [meta.default_branch]
        for release in await self.list_releases():
            target = release.target_commitish
            if target and not _SHA_RE.match(target) and target not in names:
                names.append(target)
        refs = await asyncio.gather(*(self._branch(name) for name in names))
        return [ref for ref in refs if ref is not None]

    async def _branch(self, name: str) -> BranchRef | None:
        encoded = quote(name, safe="")
        data = await self._get_json(f"{self._base}/branches/{encoded}")
        if not isinstance(data, dict):
            return None
        classic = await self._get_json(
            f"{self._base}/branches/{encoded}/protection", missing=(403, 404)
        )
        if isinstance(classic, dict):
            return BranchRef(name=name, protected=True, protection_rule=_classic_rule(classic))
        rules = await self._paginate(f"{self._base}/rules/branches/{encoded}", missing=(403, 404))
        if rules:
            return BranchRef(name=name, protected=True, protection_rule=_ruleset_rule(rules))
        if data.get("protected"):
            # Protected, but the settings need admin rights to read.
            return BranchRef(name=name, protected=True)
        return BranchRef(name=name, protected=False)

    async def list_tags(self) -> list[TagRef]:
        data = await self._paginate(f"{self._base}/tags", limit=MAX_TAGS)
        rulesets = await self._tag_rulesets()
        return [_tag_ref(str(t["name"]), rulesets) for t in data if t.get("name")]

    async def _tag_rulesets(self) -> list[dict[str, Any]]:
        summaries = await self._paginate(
            f"{self._base}/rulesets", {"includes_parents": "true"}, missing=(403, 404)
        )
        wanted = [
            s for s in summaries if s.get("target") == "tag" and s.get("enforcement") == "active"
        ]
        details = await asyncio.gather(
            *(self._get_json(f"{self._base}/rulesets/{s.get('id')}") for s in wanted)
        )
        return [d for d in details if isinstance(d, dict)]

    async def list_webhooks(self) -> list[Webhook]:
        data = await self._paginate(f"{self._base}/hooks", missing=(403, 404))
        return [
            Webhook(
                id=int(h.get("id", 0)),
                url=str((h.get("config") or {}).get("url", "")),
                uses_auth_secret=bool((h.get("config") or {}).get("secret")),
            )
            for h in data
        ]

    async def list_check_runs(self, ref: str) -> list[CheckRun]:
        data = await self._paginate(
            f"{self._base}/commits/{ref}/check-runs", limit=100, key="check_runs"
        )
        return [
            CheckRun(
                status=str(r.get("status", "")),
                conclusion=str(r.get("conclusion") or ""),
                url=str(r.get("html_url", "")),
                app_slug=str((r.get("app") or {}).get("slug", "")),
            )
            for r in data
        ]

    async def list_statuses(self, ref: str) -> list[Status]:
        data = await self._paginate(f"{self._base}/commits/{ref}/statuses", limit=100)
        return [
            Status(
                state=str(s.get("state", "")),
                context=str(s.get("context", "")),
                url=str(s.get("url", "")),
                target_url=str(s.get("target_url") or ""),
            )
            for s in data
        ]

    async def list_merged_pull_requests(self) -> list[PullRequest]:
        return await self._once("pulls", self._fetch_merged_pull_requests)

    async def _fetch_merged_pull_requests(self) -> list[PullRequest]:
        data = await self._paginate(
            f"{self._base}/pulls",
            {"state": "closed", "sort": "updated", "direction": "desc"},
            limit=MAX_PULL_REQUESTS,
        )
        merged = [p for p in data if p.get("merged_at")]
        reviews = await asyncio.gather(*(self._reviews(int(p["number"])) for p in merged))
        return [_pull_request(p, r) for p, r in zip(merged, reviews, strict=True)]

    async def list_successful_workflow_runs(self, path: str) -> list[WorkflowRun]:
        workflow = quote(path.rsplit("/", 1)[-1], safe="")
        data = await self._paginate(
            f"{self._base}/actions/workflows/{workflow}/runs",
            {"status": "success"},
            limit=MAX_WORKFLOW_RUNS,
            key="workflow_runs",
        )
        return [
            WorkflowRun(url=str(r.get("html_url", "")), head_sha=str(r.get("head_sha", "")))
            for r in data
        ]

    async def list_workflow_artifacts(self) -> list[WorkflowArtifact]:
        data = await self._paginate(
            f"{self._base}/actions/artifacts",
            limit=MAX_ARTIFACTS,
            key="artifacts",
            missing=(403, 404),
        )
        return [
            WorkflowArtifact(
                name=str(a.get("name", "")), url=str(a.get("archive_download_url", ""))
            )
            for a in data
            if not a.get("expired")
        ]

    async def get_secret_scanning(self) -> SecretScanningSettings:
        data = await self._repo_json()
        # Only admins see security_and_analysis.
        analysis = data.get("security_and_analysis")
        if not isinstance(analysis, dict):
            analysis = {}
        enabled = _analysis_status(analysis, "secret_scanning")
        push_protection = _analysis_status(analysis, "secret_scanning_push_protection")
        if enabled is None:
            # The alerts endpoint answers only while scanning is on.
            resp = await self._request(
                f"{self._base}/secret-scanning/alerts", {"per_page": 1}, missing=(403, 404, 422)
            )
            if resp is not None:
                enabled = True
        return SecretScanningSettings(enabled=enabled, push_protection=push_protection)
