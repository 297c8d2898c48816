"""SBOM probes."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_with
from repo_vigil.models import RawResults, SbomData, SbomOrigin
from repo_vigil.probes._helpers import require

SBOM_EXISTS = "sbomExists"
SBOM_RELEASE_ASSET_EXISTS = "sbomReleaseAssetExists"
SBOM_STANDARDS_FILE_USED = "sbomStandardsFileUsed"
SBOM_CICD_ARTIFACT_EXISTS = "sbomCICDArtifactExists"

SBOM_NAME_KEY = "sbomName"
SBOM_ORIGIN_KEY = "sbomOrigin"


def _sbom_probe(
    raw: RawResults | None, probe: str, origin: SbomOrigin | None, found: str, missing: str
) -> tuple[list[Finding], str]:
    data: SbomData = require(raw, "sbom", probe)
    sboms = [s for s in data.sbom_files if origin is None or s.origin is origin]
    if not sboms:
        return [new_with(probe, Outcome.FALSE, missing)], probe
    findings = [
        new_with(
            probe,
            Outcome.TRUE,
            found,
            s.file.location(),
            {SBOM_NAME_KEY: s.name, SBOM_ORIGIN_KEY: s.origin.value},
        )
        for s in sboms
    ]
    return findings, probe


def sbom_exists(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _sbom_probe(raw, SBOM_EXISTS, None, "SBOM file found", "SBOM file not found")


def sbom_release_asset_exists(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _sbom_probe(
        raw,
        SBOM_RELEASE_ASSET_EXISTS,
        SbomOrigin.RELEASE_ASSET,
        "SBOM published as a release asset",
        "no SBOM among release assets",
    )


def sbom_standards_file_used(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _sbom_probe(
        raw,
        SBOM_STANDARDS_FILE_USED,
        SbomOrigin.STANDARDS_FILE,
        "SBOM declared in a security insights file",
        "no SBOM declared in a security insights file",
    )


def sbom_cicd_artifact_exists(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _sbom_probe(
        raw,
        SBOM_CICD_ARTIFACT_EXISTS,
        SbomOrigin.CI_ARTIFACT,
        "SBOM produced as a CI artifact",
        "no SBOM among CI artifacts",
    )
