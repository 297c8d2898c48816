"""License probes."""

from __future__ import annotations

from repo_vigil.finding import Finding, new_false, new_true
from repo_vigil.models import LicenseData, RawResults
from repo_vigil.probes._helpers import require

HAS_LICENSE_FILE = "hasLicenseFile"
HAS_FSF_OR_OSI_APPROVED_LICENSE = "hasFSFOrOSIApprovedLicense"
HAS_LICENSE_FILE_AT_TOP_DIR = "hasLicenseFileAtTopDir"


def has_license_file(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = HAS_LICENSE_FILE
    data: LicenseData = require(raw, "license", probe)
    if not data.license_files:
        return [new_false(probe, "project does not have a license file")], probe
    findings = [
        new_true(probe, "project has a license file", lic.file.location())
        for lic in data.license_files
    ]
    return findings, probe


def has_license_file_at_top_dir(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = HAS_LICENSE_FILE_AT_TOP_DIR
    data: LicenseData = require(raw, "license", probe)
    top = [lic for lic in data.license_files if "/" not in lic.file.path.strip("/")]
    if not top:
        return [new_false(probe, "project does not have a license file at the top directory")], probe
    findings = [
        new_true(probe, "project has a license file at the top directory", lic.file.location())
        for lic in top
    ]
    return findings, probe


def has_fsf_or_osi_approved_license(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = HAS_FSF_OR_OSI_APPROVED_LICENSE
    data: LicenseData = require(raw, "license", probe)
    approved = [lic for lic in data.license_files if lic.approved]
    if not approved:
        return [new_false(probe, "no FSF or OSI recognized license found")], probe
    findings = [
        new_true(
            probe,
            f"FSF or OSI recognized license: {lic.name or lic.spdx_id}",
            lic.file.location(),
        )
        for lic in approved
    ]
    return findings, probe
