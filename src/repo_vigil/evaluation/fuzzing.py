"""Fuzzing scoring: any detected fuzzer earns the maximum."""

from __future__ import annotations

from repo_vigil.evaluation.base import (
    DetailLogger,
    create_max_score_result,
    create_min_score_result,
    invalid_probe_results,
    log_finding,
)
from repo_vigil.finding import Finding, Outcome, unique_probes_equal
from repo_vigil.models import CheckResult, DetailType, LogMessage
from repo_vigil.probes import fuzzing as fz

TOOL_PROBES = (
    fz.FUZZED_WITH_OSS_FUZZ,
    fz.FUZZED_WITH_CLUSTERFUZZLITE,
    fz.FUZZED_WITH_ONEFUZZ,
    fz.FUZZED_WITH_GO_NATIVE,
    fz.FUZZED_WITH_PYTHON_ATHERIS,
    fz.FUZZED_WITH_C_LIBFUZZER,
    fz.FUZZED_WITH_CPP_LIBFUZZER,
    fz.FUZZED_WITH_RUST_CARGOFUZZ,
    fz.FUZZED_WITH_JAVA_JAZZER,
    fz.FUZZED_WITH_SWIFT_LIBFUZZER,
    fz.FUZZED_WITH_PROPERTY_BASED_HASKELL,
    fz.FUZZED_WITH_PROPERTY_BASED_JAVASCRIPT,
    fz.FUZZED_WITH_PROPERTY_BASED_TYPESCRIPT,
)
EXPECTED_PROBES = (*TOOL_PROBES, fz.FUZZED_PROMINENT_LANGUAGES)

_LANGUAGE_LEVELS = {
    Outcome.POSITIVE: DetailType.INFO,
    Outcome.NEGATIVE: DetailType.WARN,
}


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    if not unique_probes_equal(findings, EXPECTED_PROBES):
        return invalid_probe_results(name, findings, EXPECTED_PROBES)

    fuzzed = False
    for f in findings:
        if f.probe == fz.FUZZED_PROMINENT_LANGUAGES:
            log_finding(dl, f, _LANGUAGE_LEVELS.get(f.outcome, DetailType.DEBUG))
        elif f.outcome is Outcome.TRUE:
            fuzzed = True
            log_finding(dl, f, DetailType.INFO)

    if fuzzed:
        return create_max_score_result(name, "project is fuzzed")
    dl.warn(LogMessage(text="no fuzzer integrations found"))
    return create_min_score_result(name, "project is not fuzzed")
