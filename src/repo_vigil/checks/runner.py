"""Check runner: collect raw data, run probes, score checks, assemble the report.

Collection and independent probes are I/O-bound and run concurrently under a
semaphore. Raw-data probes and evaluators are pure and run sequentially over
one immutable RawResults snapshot.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field

from repo_vigil.checks.definitions import CHECKS, RISK_WEIGHTS, CheckDefinition, resolve_checks
from repo_vigil.clients.base import CheckRequest
from repo_vigil.collectors.dispatch import COLLECTORS
from repo_vigil.config.annotations import AnnotationConfig, load_annotations
from repo_vigil.errors import (
    ConfigError,
    FindingValidationError,
    NilInputError,
    ProbeError,
    UpstreamUnavailableError,
)
from repo_vigil.evaluation.base import (
    INCONCLUSIVE_RESULT_SCORE,
    MAX_RESULT_SCORE,
    DetailLogger,
    create_inconclusive_result,
    create_runtime_error_result,
)
from repo_vigil.finding import Finding
from repo_vigil.models import (
    RAW_FIELD_BY_CHECK,
    CheckDetail,
    CheckName,
    CheckResult,
    DetailType,
    LogMessage,
    RawResults,
    ScorecardResult,
)
from repo_vigil.probes.base import IndependentProbe, RawDataProbe, RawProbeImpl
from repo_vigil.probes.catalog import build_default_registry
from repo_vigil.probes.registry import ProbeRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5

Collector = Callable[[CheckRequest], Awaitable[object]]

_BY_NAME = {name.value: definition for name, definition in CHECKS.items()}


@dataclass(frozen=True, slots=True)
class ProbeRun:
    """Outcome of invoking one probe: its findings, or the error it raised."""

    probe: str
    findings: list[Finding] = field(default_factory=list)
    error: Exception | None = None

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "probe": self.probe,
            "findings": [f.to_dict() for f in self.findings],
        }
        if self.error is not None:
            result["error"] = str(self.error)
        return result


def max_concurrency() -> int:
    """Collector parallelism, from REPO_VIGIL_MAX_CONCURRENCY."""
    raw = os.environ.get("REPO_VIGIL_MAX_CONCURRENCY", "")
    if not raw:
        return DEFAULT_MAX_CONCURRENCY
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer REPO_VIGIL_MAX_CONCURRENCY=%r", raw)
        return DEFAULT_MAX_CONCURRENCY
    return max(value, 1)


# ─── Probes ───────────────────────────────────────────────────


def run_raw_probes(
    raw: RawResults | None, probe_names: Iterable[str], registry: ProbeRegistry
) -> list[ProbeRun]:
    """Run raw-data probes in the given order.

    A probe that raises is recorded with its error; the others still run.
    FindingValidationError is a programming error and propagates.
    """
    runs: list[ProbeRun] = []
    for name in probe_names:
        probe = registry.get(name)
        match probe:
            case IndependentProbe():
                runs.append(
                    ProbeRun(name, error=ProbeError(name, "independent probe was not run"))
                )
            case RawDataProbe(implementation=impl):
                runs.append(_run_one(name, impl, raw))
    return runs


def _run_one(name: str, impl: RawProbeImpl, raw: RawResults | None) -> ProbeRun:
    try:
        findings, _ = impl(raw)
    except FindingValidationError:
        raise
    except ProbeError as exc:
        logger.debug("Probe %s failed: %s", name, exc)
        return ProbeRun(name, error=exc)
    except Exception as exc:
        logger.warning("Probe %s raised %s: %s", name, type(exc).__name__, exc)
        return ProbeRun(name, error=ProbeError(name, f"{type(exc).__name__}: {exc}"))
    return ProbeRun(name, findings=list(findings))


async def _run_independent(
    request: CheckRequest, probes: list[IndependentProbe]
) -> dict[str, ProbeRun]:
    if not probes:
        return {}
    results = await asyncio.gather(
        *(p.implementation(request) for p in probes), return_exceptions=True
    )

    runs: dict[str, ProbeRun] = {}
    for probe, result in zip(probes, results, strict=True):
        if isinstance(result, FindingValidationError):
            raise result
        if isinstance(result, Exception):
            logger.warning("Probe %s failed: %s", probe.name, result)
            runs[probe.name] = ProbeRun(probe.name, error=result)
        elif isinstance(result, BaseException):
            raise result
        else:
            findings, _ = result
            runs[probe.name] = ProbeRun(probe.name, findings=list(findings))
    return runs


# ─── Collection ───────────────────────────────────────────────


async def collect_raw_results(
    request: CheckRequest,
    checks: Iterable[CheckName],
    collectors: Mapping[CheckName, Collector] | None = None,
) -> tuple[RawResults, dict[CheckName, Exception]]:
    """Run the collectors for ``checks`` concurrently.

    Returns the snapshot plus the error of every collector that failed;
    a failed category is left as None in the snapshot.
    """
    if collectors is None:
        collectors = COLLECTORS

    wanted = [c for c in dict.fromkeys(checks) if c in RAW_FIELD_BY_CHECK]
    sem = asyncio.Semaphore(max_concurrency())

    async def _collect(check: CheckName) -> object:
        collector = collectors.get(check)
        if collector is None:
            raise UpstreamUnavailableError(f"No collector is available for {check.value}.")
        async with sem:
            return await collector(request)

    results = await asyncio.gather(*(_collect(c) for c in wanted), return_exceptions=True)

    fields: dict[str, object] = {}
    failures: dict[CheckName, Exception] = {}
    for check, result in zip(wanted, results, strict=True):
        if isinstance(result, Exception):
            logger.warning("Collecting %s data failed: %s", check.value, result)
            failures[check] = result
        elif isinstance(result, BaseException):
            raise result
        else:
            fields[RAW_FIELD_BY_CHECK[check]] = result
    return RawResults(**fields), failures


# ─── Scoring ──────────────────────────────────────────────────


def score_raw_results(
    raw: RawResults,
    check_names: list[str] | None,
    registry: ProbeRegistry,
    independent_runs: Mapping[str, ProbeRun] | None = None,
    collection_errors: Mapping[CheckName, Exception] | None = None,
) -> list[CheckResult]:
    """Score checks from an already-collected snapshot. Performs no I/O."""
    independent_runs = independent_runs or {}
    collection_errors = collection_errors or {}
    results: list[CheckResult] = []
    for definition in resolve_checks(check_names):
        collection_error = collection_errors.get(definition.name)
        if collection_error is not None:
            results.append(_failed_result(definition, collection_error))
            continue

        runs: list[ProbeRun] = []
        for name in definition.probes:
            probe = registry.get(name)
            if isinstance(probe, IndependentProbe):
                runs.append(
                    independent_runs.get(name)
                    or ProbeRun(name, error=ProbeError(name, "independent probe was not run"))
                )
            else:
                runs.extend(run_raw_probes(raw, [name], registry))
        results.append(_evaluate(definition, runs))
    return results


def _evaluate(definition: CheckDefinition, runs: list[ProbeRun]) -> CheckResult:
    name = definition.name.value
    failed = next((run for run in runs if run.error is not None), None)
    if failed is not None:
        return _failed_result(definition, failed.error)

    findings = [f for run in runs for f in run.findings]
    dl = DetailLogger()
    try:
        result = definition.evaluate(name, findings, dl)
    except FindingValidationError:
        raise
    except Exception as exc:
        logger.warning("Evaluating %s raised %s: %s", name, type(exc).__name__, exc)
        return create_runtime_error_result(name, exc)
    return dataclasses.replace(result, details=dl.flush(), findings=findings)


def _failed_result(definition: CheckDefinition, error: Exception) -> CheckResult:
    name = definition.name.value
    degradable = isinstance(error, NilInputError | UpstreamUnavailableError)
    if degradable and not definition.strict:
        result = create_inconclusive_result(name, f"unable to evaluate: {error}")
        detail = CheckDetail(DetailType.WARN, LogMessage(text=str(error)))
        return dataclasses.replace(result, details=[detail])
    return create_runtime_error_result(name, error)


def aggregate_score(results: Iterable[CheckResult]) -> float:
    """Risk-weighted mean of the conclusive check scores, -1 if there are none."""
    weighted = 0.0
    total_weight = 0.0
    for result in results:
        if result.score == INCONCLUSIVE_RESULT_SCORE:
            continue
        definition = _BY_NAME.get(result.name)
        if definition is None:
            continue
        weight = RISK_WEIGHTS[definition.risk]
        weighted += result.score * weight
        total_weight += weight
    if total_weight == 0:
        return float(INCONCLUSIVE_RESULT_SCORE)
    return round(weighted / total_weight, 1)


def _annotate(results: list[CheckResult], config: AnnotationConfig | None) -> list[CheckResult]:
    if config is None:
        return results
    annotated: list[CheckResult] = []
    for result in results:
        texts = config.for_check(result.name)
        if texts and result.score != MAX_RESULT_SCORE:
            result = dataclasses.replace(result, annotations=texts)
        annotated.append(result)
    return annotated


async def _load_annotations(request: CheckRequest) -> AnnotationConfig | None:
    try:
        return await load_annotations(request.repo)
    except (ConfigError, UpstreamUnavailableError) as exc:
        logger.warning("Ignoring maintainer annotations for %s: %s", request.repo.uri, exc)
        return None


# ─── Entry Points ─────────────────────────────────────────────


async def run_checks(
    request: CheckRequest,
    check_names: list[str] | None = None,
    registry: ProbeRegistry | None = None,
    collectors: Mapping[CheckName, Collector] | None = None,
) -> ScorecardResult:
    """Run the named checks (all when None) against ``request.repo``."""
    definitions = resolve_checks(check_names)
    if registry is None:
        registry = build_default_registry()

    commit = ""
    try:
        commit = (await request.repo.get_metadata()).head_sha
    except UpstreamUnavailableError as exc:
        logger.warning("Could not resolve the head commit of %s: %s", request.repo.uri, exc)

    raw, failures = await collect_raw_results(
        request, (d.name for d in definitions), collectors
    )
    independent = [
        probe
        for name in dict.fromkeys(p for d in definitions for p in d.probes)
        if isinstance(probe := registry.get(name), IndependentProbe)
    ]
    independent_runs = await _run_independent(request, independent)

    results = score_raw_results(
        raw,
        [d.name.value for d in definitions],
        registry,
        independent_runs=independent_runs,
        collection_errors=failures,
    )
    results = _annotate(results, await _load_annotations(request))

    return ScorecardResult(
        repository=request.repo.uri,
        commit=commit,
        date=request.now,
        checks=results,
        raw_results=raw,
        aggregate_score=aggregate_score(results),
    )


async def run_probes(
    request: CheckRequest,
    probe_names: list[str],
    registry: ProbeRegistry | None = None,
    collectors: Mapping[CheckName, Collector] | None = None,
) -> list[ProbeRun]:
    """Run individual probes without scoring, collecting only the data they need."""
    if registry is None:
        registry = build_default_registry()
    probes = [registry.get(name) for name in probe_names]

    needed = [c for p in probes if isinstance(p, RawDataProbe) for c in p.required_raw_data]
    raw, failures = await collect_raw_results(request, needed, collectors)
    independent_runs = await _run_independent(
        request, [p for p in probes if isinstance(p, IndependentProbe)]
    )

    runs: list[ProbeRun] = []
    for probe in probes:
        if isinstance(probe, IndependentProbe):
            runs.append(independent_runs[probe.name])
            continue
        failed = next((failures[c] for c in probe.required_raw_data if c in failures), None)
        if failed is not None:
            runs.append(ProbeRun(probe.name, error=failed))
        else:
            runs.extend(run_raw_probes(raw, [probe.name], registry))
    return runs
