"""Collectors that inspect the repository's file tree and file contents."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from urllib.parse import urlsplit

import httpx

from repo_vigil.clients.base import CheckRequest
from repo_vigil.collectors._files import (
    glob_matcher,
    load_workflows,
    matching,
    read_texts,
)
from repo_vigil.errors import UpstreamUnavailableError
from repo_vigil.finding import FileType
from repo_vigil.models import (
    BinaryArtifactData,
    DependencyUpdateToolData,
    File,
    FuzzingData,
    Language,
    LicenseData,
    LicenseFile,
    PolicyInformationType,
    SecurityPolicyData,
    SecurityPolicyFile,
    SecurityPolicyInformation,
    Tool,
)
from repo_vigil.probes import fuzzing as fz

logger = logging.getLogger(__name__)

# ─── Binary-Artifacts ────────────────────────────────────────

BINARY_EXTENSIONS = frozenset(
    {
        "crx", "deb", "dex", "dey", "elf", "o", "a", "so", "macho", "iso", "class",
        "jar", "bundle", "dylib", "lib", "msi", "dll", "drv", "efi", "exe", "ocx",
        "pyc", "pyo", "par", "rpm", "wasm", "whl",
    }
)  # fmt: skip

GRADLE_WRAPPER = "gradle-wrapper.jar"
GRADLE_VALIDATION_ACTIONS = (
    "gradle/wrapper-validation-action",
    "gradle/actions/wrapper-validation",
)


def _extension(path: str) -> str:
    return posixpath.splitext(path)[1].lstrip(".").lower()


async def _gradle_wrapper_validated(request: CheckRequest) -> bool:
    for workflow in await load_workflows(request.repo):
        for _, step in workflow.steps():
            uses = str(step.get("uses", ""))
            if uses.startswith(GRADLE_VALIDATION_ACTIONS):
                return True
    return False


async def collect_binary_artifacts(request: CheckRequest) -> BinaryArtifactData:
    files = await request.repo.list_files()
    binaries = [path for path in files if _extension(path) in BINARY_EXTENSIONS]
    validated = False
    if any(posixpath.basename(p) == GRADLE_WRAPPER for p in binaries):
        validated = await _gradle_wrapper_validated(request)
    return BinaryArtifactData(
        files=[
            File(
                path=path,
                type=(
                    FileType.BINARY_VERIFIED
                    if validated and posixpath.basename(path) == GRADLE_WRAPPER
                    else FileType.BINARY
                ),
            )
            for path in binaries
        ]
    )


# ─── License ─────────────────────────────────────────────────

_LICENSE_NAME_RE = re.compile(
    r"^(?:[0-9a-z.\-_]+[-_])?(?:patents?|copying|copyright|licen[sc]es?)"
    r"(?:[-_.][0-9a-z.\-_]+)?$",
    re.IGNORECASE,
)
_LICENSE_EXTENSIONS = frozenset(
    {"", "adoc", "asc", "doc", "docx", "ext", "html", "markdown", "md", "rst", "txt", "xml"}
)
_LICENSE_DIRS = ("licenses/", "license/", "copyright/")

# FSF or OSI approved SPDX identifiers, lower-cased.
APPROVED_LICENSES = frozenset(
    {
        "0bsd", "afl-3.0", "agpl-3.0", "agpl-3.0-only", "agpl-3.0-or-later", "apache-1.1",
        "apache-2.0", "apsl-2.0", "artistic-2.0", "bsd-2-clause", "bsd-3-clause",
        "bsd-3-clause-clear", "bsl-1.0", "cddl-1.0", "cecill-2.1", "cpal-1.0", "ecl-2.0",
        "epl-1.0", "epl-2.0", "eupl-1.1", "eupl-1.2", "gpl-2.0", "gpl-2.0-only",
        "gpl-2.0-or-later", "gpl-3.0", "gpl-3.0-only", "gpl-3.0-or-later", "isc",
        "lgpl-2.1", "lgpl-2.1-only", "lgpl-2.1-or-later", "lgpl-3.0", "lgpl-3.0-only",
        "lgpl-3.0-or-later", "lppl-1.3c", "mit", "mit-0", "mpl-1.1", "mpl-2.0", "ms-pl",
        "ms-rl", "ncsa", "ofl-1.1", "osl-3.0", "postgresql", "upl-1.0", "unlicense",
        "vim", "wtfpl", "x11", "zlib", "zpl-2.1",
    }
)  # fmt: skip


def is_license_file(path: str) -> bool:
    lowered = path.lower()
    if any(lowered.startswith(d) and lowered.count("/") == 1 for d in _LICENSE_DIRS):
        return True
    if "/" in path:
        return False
    stem, ext = posixpath.splitext(path)
    ext = ext.lstrip(".").lower()
    if ext in _LICENSE_EXTENSIONS:
        return bool(_LICENSE_NAME_RE.match(stem))
    if ext.isalpha():
        # e.g. license.yaml
        return False
    return bool(_LICENSE_NAME_RE.match(path))


async def collect_license(request: CheckRequest) -> LicenseData:
    files = await request.repo.list_files()
    meta = await request.repo.get_metadata()
    spdx = meta.license_spdx_id if meta.license_spdx_id.upper() != "NOASSERTION" else ""
    license_files: list[LicenseFile] = []
    for path in matching(files, is_license_file):
        # The hosting platform only identifies the top-level license.
        file_spdx = spdx if "/" not in path else posixpath.splitext(posixpath.basename(path))[0]
        license_files.append(
            LicenseFile(
                file=File(path=path, type=FileType.SOURCE),
                name=file_spdx,
                spdx_id=file_spdx,
                approved=file_spdx.lower() in APPROVED_LICENSES,
            )
        )
    return LicenseData(license_files=license_files)


# ─── Security-Policy ─────────────────────────────────────────

_POLICY_NAMES = ("security.md", "security.markdown", "security.adoc", "security.rst", "security")
_POLICY_DIRS = ("", ".github/", "docs/")

_URL_RE = re.compile(r"(?:http|https)://[a-zA-Z0-9./?=_%:-]*")
_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}\b")
# Day counts and "disclos"/"vuln" wording suggest a disclosure process.
_DISCLOSURE_RE = re.compile(r"(?i)(\b[0-9]{1,4}\b|disclos|vuln)")


def is_security_policy(path: str) -> bool:
    lowered = path.lower()
    return any(lowered == f"{d}{name}" for d in _POLICY_DIRS for name in _POLICY_NAMES)


def policy_information(text: str) -> list[SecurityPolicyInformation]:
    info: list[SecurityPolicyInformation] = []
    patterns = (
        (PolicyInformationType.LINK, _URL_RE),
        (PolicyInformationType.EMAIL, _EMAIL_RE),
        (PolicyInformationType.TEXT, _DISCLOSURE_RE),
    )
    for number, line in enumerate(text.splitlines(), start=1):
        for kind, pattern in patterns:
            for m in pattern.finditer(line):
                info.append(
                    SecurityPolicyInformation(
                        type=kind, match=m.group(0), line_number=number, offset=m.start()
                    )
                )
    return info


async def collect_security_policy(request: CheckRequest) -> SecurityPolicyData:
    files = await request.repo.list_files()
    policies = await read_texts(request.repo, matching(files, is_security_policy))
    return SecurityPolicyData(
        policy_files=[
            SecurityPolicyFile(
                file=File(path=path, type=FileType.TEXT, file_size=len(text)),
                information=policy_information(text),
            )
            for path, text in policies
        ]
    )


# ─── Dependency-Update-Tool ──────────────────────────────────

UPDATE_TOOLS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    (
        "Dependabot",
        "https://github.com/dependabot",
        (".github/dependabot.yml", ".github/dependabot.yaml"),
    ),
    (
        "RenovateBot",
        "https://github.com/renovatebot/renovate",
        (
            "renovate.json",
            "renovate.json5",
            ".renovaterc",
            ".renovaterc.json",
            ".renovaterc.json5",
            ".github/renovate.json",
            ".github/renovate.json5",
            ".gitlab/renovate.json",
            ".gitlab/renovate.json5",
        ),
    ),
    ("PyUp", "https://pyup.io/", (".pyup.yml",)),
    ("Sonatype Lift", "https://lift.sonatype.com", (".lift.toml", ".lift/config.toml")),
)


async def collect_dependency_update_tool(request: CheckRequest) -> DependencyUpdateToolData:
    files = set(await request.repo.list_files())
    tools: list[Tool] = []
    for name, url, paths in UPDATE_TOOLS:
        found = [p for p in paths if p in files]
        if found:
            tools.append(
                Tool(
                    name=name,
                    url=url,
                    files=[File(path=p, type=FileType.SOURCE) for p in found],
                )
            )
    return DependencyUpdateToolData(tools=tools)


# ─── Fuzzing ─────────────────────────────────────────────────

OSS_FUZZ_STATUS_URL = "https://oss-fuzz-build-logs.storage.googleapis.com/status.json"

# language -> (tool name, file patterns, function pattern)
LANGUAGE_FUZZ_SPECS: dict[str, tuple[str, tuple[str, ...], re.Pattern[str]]] = {
    "go": (
        fz.GO_BUILTIN_FUZZER,
        ("*_test.go",),
        re.compile(r"func\s+Fuzz\w+\s*\(\w+\s+\*testing\.F\)"),
    ),
    "python": (fz.PYTHON_ATHERIS, ("*.py",), re.compile(r"import atheris")),
    "c": (fz.C_LIBFUZZER, ("*.c",), re.compile(r"LLVMFuzzerTestOneInput")),
    "c++": (
        fz.CPP_LIBFUZZER,
        ("*.cc", "*.cpp", "*.cxx"),
        re.compile(r"LLVMFuzzerTestOneInput"),
    ),
    "rust": (fz.RUST_CARGOFUZZ, ("*.rs",), re.compile(r"libfuzzer_sys")),
    "java": (
        fz.JAVA_JAZZER,
        ("*.java",),
        re.compile(r"import com\.code_intelligence\.jazzer|@FuzzTest"),
    ),
    "swift": (fz.SWIFT_LIBFUZZER, ("*.swift",), re.compile(r"LLVMFuzzerTestOneInput")),
    "haskell": (
        fz.HASKELL_PROPERTY_BASED,
        ("*.hs", "*.lhs"),
        re.compile(r"import\s+(?:qualified\s+)?Test\.(?:QuickCheck|Hspec\.QuickCheck|SmallCheck|Hedgehog)"),
    ),
    "javascript": (
        fz.JAVASCRIPT_PROPERTY_BASED,
        ("*.js",),
        re.compile(r"""(?:from|require\()\s*['"]fast-check['"]"""),
    ),
    "typescript": (
        fz.TYPESCRIPT_PROPERTY_BASED,
        ("*.ts",),
        re.compile(r"""(?:from|require\()\s*['"]fast-check['"]"""),
    ),
}


def prominent_languages(languages: list[Language]) -> list[str]:
    """Lower-cased languages with at least a quarter of the per-language average size."""
    if not languages:
        return []
    sizes: dict[str, int] = {}
    for lang in languages:
        key = lang.name.lower()
        sizes[key] = sizes.get(key, 0) + lang.num_lines
    threshold = sum(sizes.values()) / len(languages) / 4
    return [name for name, size in sizes.items() if size >= threshold]


def normalize_project_repo(raw_url: str) -> str | None:
    """``host/org/repo`` for a project's main repository URL, or None if malformed."""
    parts = urlsplit(raw_url.strip())
    segments = parts.path.strip("/").split("/", 1)
    if not parts.netloc or len(segments) != 2 or not all(segments):
        return None
    org, repo = segments
    repo = repo.removesuffix(".git")
    return f"{parts.netloc}/{org}/{repo}".lower()


async def _oss_fuzz_projects(request: CheckRequest) -> set[str]:
    try:
        resp = await request.http_client.get(OSS_FUZZ_STATUS_URL)
    except httpx.HTTPError as exc:
        raise UpstreamUnavailableError(f"Could not fetch the OSS-Fuzz project list: {exc}") from exc
    if resp.status_code >= 400:
        raise UpstreamUnavailableError(
            f"OSS-Fuzz project list returned HTTP {resp.status_code}."
        )
    try:
        projects = resp.json().get("projects") or []
    except (ValueError, AttributeError) as exc:
        raise UpstreamUnavailableError(f"Could not parse the OSS-Fuzz project list: {exc}") from exc

    normalized: set[str] = set()
    for project in projects:
        main_repo = project.get("main_repo") if isinstance(project, dict) else None
        uri = normalize_project_repo(main_repo) if isinstance(main_repo, str) else None
        if uri is not None:
            normalized.add(uri)
    return normalized


async def _uses_oss_fuzz(request: CheckRequest) -> bool:
    return request.repo.uri.lower() in await _oss_fuzz_projects(request)


async def _language_fuzzer(request: CheckRequest, files: list[str], language: str) -> Tool | None:
    spec = LANGUAGE_FUZZ_SPECS.get(language)
    if spec is None:
        return None
    tool, patterns, func = spec
    found: list[File] = []
    for path, text in await read_texts(request.repo, matching(files, glob_matcher(*patterns))):
        for number, line in enumerate(text.splitlines(), start=1):
            m = func.search(line)
            if m:
                found.append(
                    File(path=path, type=FileType.SOURCE, offset=number, snippet=m.group(0))
                )
    if not found:
        return None
    return Tool(name=tool, files=found)


async def collect_fuzzing(request: CheckRequest) -> FuzzingData:
    files = await request.repo.list_files()
    fuzzers: list[Tool] = []

    cflite = ".clusterfuzzlite/Dockerfile"
    if cflite in files:
        fuzzers.append(
            Tool(
                name=fz.CLUSTERFUZZLITE,
                url="https://github.com/google/clusterfuzzlite",
                files=[File(path=cflite, type=FileType.SOURCE)],
            )
        )
    if ".onefuzz" in files:
        fuzzers.append(
            Tool(
                name=fz.ONEFUZZ,
                url="https://github.com/microsoft/onefuzz",
                files=[File(path=".onefuzz", type=FileType.SOURCE)],
            )
        )
    if await _uses_oss_fuzz(request):
        fuzzers.append(Tool(name=fz.OSS_FUZZ, url="https://github.com/google/oss-fuzz"))

    languages = prominent_languages(await request.repo.list_programming_languages())
    found = await asyncio.gather(*(_language_fuzzer(request, files, lang) for lang in languages))
    fuzzers.extend(tool for tool in found if tool is not None)
    logger.debug("Fuzzers detected in %s: %s", request.repo.uri, [t.name for t in fuzzers])
    return FuzzingData(fuzzers=fuzzers, prominent_languages=languages)
