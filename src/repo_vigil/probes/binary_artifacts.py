"""Binary-Artifacts probe."""

from __future__ import annotations

from repo_vigil.finding import FileType, Finding, new_false, new_true
from repo_vigil.models import BinaryArtifactData, RawResults
from repo_vigil.probes._helpers import require

HAS_BINARY_ARTIFACTS = "hasBinaryArtifacts"


def has_binary_artifacts(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One True finding per unverified binary checked into the repository."""
    probe = HAS_BINARY_ARTIFACTS
    data: BinaryArtifactData = require(raw, "binary_artifacts", probe)
    binaries = [f for f in data.files if f.type is not FileType.BINARY_VERIFIED]
    if not binaries:
        return [new_false(probe, "repository does not have binary artifacts")], probe
    return [new_true(probe, "binary artifact detected", f.location()) for f in binaries], probe
