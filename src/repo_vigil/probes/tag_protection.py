"""Tag-Protection probes: one finding per release tag per protection setting."""

from __future__ import annotations

from collections.abc import Callable

from repo_vigil.finding import Finding, Outcome, new_not_applicable, new_with
from repo_vigil.models import RawResults, TagRef
from repo_vigil.probes._helpers import require

TAGS_ARE_PROTECTED = "tagsAreProtected"
BLOCKS_DELETE_ON_TAGS = "blocksDeleteOnTags"
BLOCKS_FORCE_PUSH_ON_TAGS = "blocksForcePushOnTags"
BLOCKS_UPDATE_ON_TAGS = "blocksUpdateOnTags"
TAG_PROTECTION_APPLIES_TO_ADMINS = "tagProtectionAppliesToAdmins"
RESTRICTS_TAG_CREATION = "restrictsTagCreation"
REQUIRES_SIGNED_TAGS = "requiresSignedTags"

TAG_NAME_KEY = "tagName"


def _per_tag(
    raw: RawResults | None,
    probe: str,
    verdict: Callable[[TagRef], bool],
    positive: str,
    negative: str,
) -> tuple[list[Finding], str]:
    data = require(raw, "tag_protection", probe)
    if not data.tags:
        return [new_not_applicable(probe, "no release tags found")], probe

    findings = [
        new_with(
            probe,
            Outcome.TRUE if verdict(tag) else Outcome.FALSE,
            (positive if verdict(tag) else negative).format(tag=tag.name),
            values={TAG_NAME_KEY: tag.name},
        )
        for tag in data.tags
    ]
    return findings, probe


def tags_are_protected(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        TAGS_ARE_PROTECTED,
        lambda tag: tag.protected is True,
        "tag '{tag}' is protected",
        "tag '{tag}' is not protected",
    )


def blocks_delete_on_tags(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        BLOCKS_DELETE_ON_TAGS,
        lambda tag: tag.allow_deletions is False,
        "deletion is blocked for tag '{tag}'",
        "deletion is not blocked for tag '{tag}'",
    )


def blocks_force_push_on_tags(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        BLOCKS_FORCE_PUSH_ON_TAGS,
        lambda tag: tag.allow_force_pushes is False,
        "force push is blocked for tag '{tag}'",
        "force push is not blocked for tag '{tag}'",
    )


def blocks_update_on_tags(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        BLOCKS_UPDATE_ON_TAGS,
        lambda tag: tag.allow_updates is False,
        "updates are blocked for tag '{tag}'",
        "updates are not blocked for tag '{tag}'",
    )


def tag_protection_applies_to_admins(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        TAG_PROTECTION_APPLIES_TO_ADMINS,
        lambda tag: tag.enforce_admins is True,
        "protection of tag '{tag}' applies to administrators",
        "protection of tag '{tag}' does not apply to administrators",
    )


def restricts_tag_creation(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        RESTRICTS_TAG_CREATION,
        lambda tag: tag.restricts_creation is True,
        "creation of tags matching '{tag}' is restricted",
        "creation of tags matching '{tag}' is not restricted",
    )


def requires_signed_tags(raw: RawResults | None) -> tuple[list[Finding], str]:
    return _per_tag(
        raw,
        REQUIRES_SIGNED_TAGS,
        lambda tag: tag.require_signatures is True,
        "tag '{tag}' requires signatures",
        "tag '{tag}' does not require signatures",
    )
