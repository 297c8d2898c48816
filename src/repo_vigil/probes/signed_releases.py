"""Signed-Releases probes over the most recent releases."""

from __future__ import annotations

from repo_vigil.finding import FileType, Finding, Location, Outcome, new_not_available, new_with
from repo_vigil.models import RawResults, Release, ReleaseAsset, SignedReleasesData
from repo_vigil.probes._helpers import require

RELEASES_ARE_SIGNED = "releasesAreSigned"
RELEASES_HAVE_PROVENANCE = "releasesHaveProvenance"

RELEASE_NAME_KEY = "releaseName"
ASSET_NAME_KEY = "assetName"

RELEASE_LOOK_BACK = 5

SIGNATURE_EXTENSIONS: tuple[str, ...] = (
    ".asc",
    ".minisig",
    ".sig",
    ".sign",
    ".sigstore",
    ".sigstore.json",
)
PROVENANCE_EXTENSIONS: tuple[str, ...] = (".intoto.jsonl",)


def _first_asset(release: Release, extensions: tuple[str, ...]) -> ReleaseAsset | None:
    for asset in release.assets:
        if asset.name.lower().endswith(extensions):
            return asset
    return None


def _per_release(
    raw: RawResults | None, probe: str, extensions: tuple[str, ...], what: str
) -> tuple[list[Finding], str]:
    data: SignedReleasesData = require(raw, "signed_releases", probe)
    releases = data.releases[:RELEASE_LOOK_BACK]
    if not releases:
        return [new_not_available(probe, "no GitHub releases found")], probe

    findings = []
    for release in releases:
        asset = _first_asset(release, extensions)
        if asset is not None:
            location = Location(path=asset.url or asset.name, type=FileType.URL)
            findings.append(
                new_with(
                    probe,
                    Outcome.TRUE,
                    f"{what} file found: {asset.name}",
                    location,
                    {RELEASE_NAME_KEY: release.tag_name, ASSET_NAME_KEY: asset.name},
                )
            )
        else:
            findings.append(
                new_with(
                    probe,
                    Outcome.FALSE,
                    f"release artifact {release.tag_name} has no {what}",
                    values={RELEASE_NAME_KEY: release.tag_name},
                )
            )
    return findings, probe


def releases_are_signed(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_release(raw, RELEASES_ARE_SIGNED, SIGNATURE_EXTENSIONS, "signature")


def releases_have_provenance(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_release(raw, RELEASES_HAVE_PROVENANCE, PROVENANCE_EXTENSIONS, "provenance")
