"""Fuzzing probes: one probe per known fuzzing integration plus language coverage."""

from __future__ import annotations

from collections.abc import Callable

from repo_vigil.finding import (
    Finding,
    Outcome,
    new_negative,
    new_not_applicable,
    new_positive,
    new_with,
)
from repo_vigil.models import FuzzingData, RawResults, Tool
from repo_vigil.probes._helpers import require

FUZZED_WITH_OSS_FUZZ = "fuzzedWithOSSFuzz"
FUZZED_WITH_CLUSTERFUZZLITE = "fuzzedWithClusterFuzzLite"
FUZZED_WITH_ONEFUZZ = "fuzzedWithOneFuzz"
FUZZED_WITH_GO_NATIVE = "fuzzedWithGoNative"
FUZZED_WITH_PYTHON_ATHERIS = "fuzzedWithPythonAtheris"
FUZZED_WITH_C_LIBFUZZER = "fuzzedWithCLibFuzzer"
FUZZED_WITH_CPP_LIBFUZZER = "fuzzedWithCppLibFuzzer"
FUZZED_WITH_RUST_CARGOFUZZ = "fuzzedWithRustCargofuzz"
FUZZED_WITH_JAVA_JAZZER = "fuzzedWithJavaJazzerFuzzer"
FUZZED_WITH_SWIFT_LIBFUZZER = "fuzzedWithSwiftLibFuzzer"
FUZZED_WITH_PROPERTY_BASED_HASKELL = "fuzzedWithPropertyBasedHaskell"
FUZZED_WITH_PROPERTY_BASED_JAVASCRIPT = "fuzzedWithPropertyBasedJavascript"
FUZZED_WITH_PROPERTY_BASED_TYPESCRIPT = "fuzzedWithPropertyBasedTypescript"
FUZZED_PROMINENT_LANGUAGES = "fuzzedProminentLanguages"

# Tool names recorded by the fuzzing collector.
OSS_FUZZ = "OSSFuzz"
CLUSTERFUZZLITE = "ClusterFuzzLite"
ONEFUZZ = "OneFuzz"
GO_BUILTIN_FUZZER = "GoBuiltInFuzzer"
PYTHON_ATHERIS = "PythonAtherisFuzzer"
C_LIBFUZZER = "CLibFuzzer"
CPP_LIBFUZZER = "CppLibFuzzer"
RUST_CARGOFUZZ = "RustCargoFuzzer"
JAVA_JAZZER = "JavaJazzerFuzzer"
SWIFT_LIBFUZZER = "SwiftLibFuzzer"
HASKELL_PROPERTY_BASED = "HaskellPropertyBasedTesting"
JAVASCRIPT_PROPERTY_BASED = "JavaScriptPropertyBasedTesting"
TYPESCRIPT_PROPERTY_BASED = "TypeScriptPropertyBasedTesting"

TOOL_KEY = "tool"
LANGUAGES_KEY = "fuzzedLanguages"
MISSING_KEY = "unfuzzedLanguages"

# Lower-cased language name -> tool that fuzzes it natively.
LANGUAGE_FUZZERS: dict[str, str] = {
    "go": GO_BUILTIN_FUZZER,
    "python": PYTHON_ATHERIS,
    "c": C_LIBFUZZER,
    "c++": CPP_LIBFUZZER,
    "rust": RUST_CARGOFUZZ,
    "java": JAVA_JAZZER,
    "swift": SWIFT_LIBFUZZER,
    "haskell": HASKELL_PROPERTY_BASED,
    "javascript": JAVASCRIPT_PROPERTY_BASED,
    "typescript": TYPESCRIPT_PROPERTY_BASED,
}

# Integrations that fuzz every language of a project they are set up for.
LANGUAGE_AGNOSTIC_FUZZERS = frozenset({OSS_FUZZ, CLUSTERFUZZLITE, ONEFUZZ})


def _tool_probe(probe: str, tool_name: str) -> Callable[[RawResults | None], tuple[list[Finding], str]]:
    def run(raw: RawResults | None) -> tuple[list[Finding], str]:
        data: FuzzingData = require(raw, "fuzzing", probe)
        matches = [tool for tool in data.fuzzers if tool.name == tool_name]
        if not matches:
            return [new_with(probe, Outcome.FALSE, f"no {tool_name} integration found")], probe

        findings: list[Finding] = []
        for tool in matches:
            findings.extend(_tool_findings(probe, tool))
        return findings, probe

    run.__name__ = probe
    return run


def _tool_findings(probe: str, tool: Tool) -> list[Finding]:
    message = f"{tool.name} integration found"
    if not tool.files:
        return [new_with(probe, Outcome.TRUE, message, values={TOOL_KEY: tool.name})]
    return [
        new_with(probe, Outcome.TRUE, message, file.location(), values={TOOL_KEY: tool.name})
        for file in tool.files
    ]


fuzzed_with_oss_fuzz = _tool_probe(FUZZED_WITH_OSS_FUZZ, OSS_FUZZ)
fuzzed_with_clusterfuzzlite = _tool_probe(FUZZED_WITH_CLUSTERFUZZLITE, CLUSTERFUZZLITE)
fuzzed_with_onefuzz = _tool_probe(FUZZED_WITH_ONEFUZZ, ONEFUZZ)
fuzzed_with_go_native = _tool_probe(FUZZED_WITH_GO_NATIVE, GO_BUILTIN_FUZZER)
fuzzed_with_python_atheris = _tool_probe(FUZZED_WITH_PYTHON_ATHERIS, PYTHON_ATHERIS)
fuzzed_with_c_libfuzzer = _tool_probe(FUZZED_WITH_C_LIBFUZZER, C_LIBFUZZER)
fuzzed_with_cpp_libfuzzer = _tool_probe(FUZZED_WITH_CPP_LIBFUZZER, CPP_LIBFUZZER)
fuzzed_with_rust_cargofuzz = _tool_probe(FUZZED_WITH_RUST_CARGOFUZZ, RUST_CARGOFUZZ)
fuzzed_with_java_jazzer = _tool_probe(FUZZED_WITH_JAVA_JAZZER, JAVA_JAZZER)
fuzzed_with_swift_libfuzzer = _tool_probe(FUZZED_WITH_SWIFT_LIBFUZZER, SWIFT_LIBFUZZER)
fuzzed_with_property_based_haskell = _tool_probe(
    FUZZED_WITH_PROPERTY_BASED_HASKELL, HASKELL_PROPERTY_BASED
)
fuzzed_with_property_based_javascript = _tool_probe(
    FUZZED_WITH_PROPERTY_BASED_JAVASCRIPT, JAVASCRIPT_PROPERTY_BASED
)
fuzzed_with_property_based_typescript = _tool_probe(
    FUZZED_WITH_PROPERTY_BASED_TYPESCRIPT, TYPESCRIPT_PROPERTY_BASED
)


def fuzzed_prominent_languages(raw: RawResults | None) -> tuple[list[Finding], str]:
    """Positive when every prominent language has a fuzzer; lists partial matches otherwise."""
    probe = FUZZED_PROMINENT_LANGUAGES
    data: FuzzingData = require(raw, "fuzzing", probe)
    if not data.prominent_languages:
        return [new_not_applicable(probe, "no prominent languages detected")], probe

    tools = {tool.name for tool in data.fuzzers}
    agnostic = bool(tools & LANGUAGE_AGNOSTIC_FUZZERS)
    fuzzed = [
        lang for lang in data.prominent_languages if agnostic or LANGUAGE_FUZZERS.get(lang) in tools
    ]
    missing = [lang for lang in data.prominent_languages if lang not in fuzzed]

    if not missing:
        finding = new_positive(
            probe, f"all prominent languages are fuzzed: {', '.join(fuzzed)}"
        )
    else:
        finding = new_negative(
            probe,
            f"{len(fuzzed)} of {len(data.prominent_languages)} prominent languages fuzzed; "
            f"missing: {', '.join(missing)}",
        )
    values: dict[str, str | int] = {
        LANGUAGES_KEY: ",".join(fuzzed),
        MISSING_KEY: ",".join(missing),
    }
    return [new_with(probe, finding.outcome, finding.message, values=values)], probe
