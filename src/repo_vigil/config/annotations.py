"""Maintainer annotations read from a ``repo-vigil.yml`` file in the repository.

Example::

    annotations:
      - checks:
          - Binary-Artifacts
        reasons:
          - reason: test-data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import yaml

from repo_vigil.errors import ConfigError
from repo_vigil.models import CheckName

if TYPE_CHECKING:
    from repo_vigil.clients.base import RepoClientPort

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("repo-vigil.yml", ".repo-vigil.yml")


class AnnotationReason(StrEnum):
    TEST_DATA = "test-data"
    REMEDIATED = "remediated"
    NOT_APPLICABLE = "not-applicable"
    NOT_SUPPORTED = "not-supported"
    NOT_DETECTED = "not-detected"

    @property
    def doc(self) -> str:
        return _REASON_DOCS[self]


_REASON_DOCS: dict[AnnotationReason, str] = {
    AnnotationReason.TEST_DATA: (
        "The files or code snippets are only used for test or example purposes."
    ),
    AnnotationReason.REMEDIATED: (
        "The dangerous files or code snippets are necessary but remediations "
        "were already applied."
    ),
    AnnotationReason.NOT_APPLICABLE: "The check or probe is not applicable in this case.",
    AnnotationReason.NOT_SUPPORTED: (
        "The check or probe is fulfilled but in a way that is not supported by repo-vigil."
    ),
    AnnotationReason.NOT_DETECTED: (
        "The check or probe is fulfilled in a supported way but it was not detected."
    ),
}

_CHECKS_BY_LOWER = {c.value.lower(): c for c in CheckName}


@dataclass(frozen=True, slots=True)
class Annotation:
    checks: list[CheckName] = field(default_factory=list)
    reasons: list[AnnotationReason] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AnnotationConfig:
    annotations: list[Annotation] = field(default_factory=list)

    def for_check(self, check: str) -> list[str]:
        """Reason texts that maintainers attached to ``check``, without duplicates."""
        texts: list[str] = []
        for annotation in self.annotations:
            if not any(c.value == check for c in annotation.checks):
                continue
            for reason in annotation.reasons:
                if reason.doc not in texts:
                    texts.append(reason.doc)
        return texts


def parse_annotations(text: str | bytes, source: str = "") -> AnnotationConfig:
    """Parse and validate an annotations document.

    Raises ConfigError on malformed YAML, unknown checks or unknown reasons.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML in {source or 'annotations file'}: {exc}") from exc

    if data is None:
        return AnnotationConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid format in {source}: expected a YAML mapping.")

    entries = data.get("annotations", [])
    if not isinstance(entries, list):
        raise ConfigError(f"Invalid format in {source}: 'annotations' must be a list.")

    annotations: list[Annotation] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid format in {source}: each annotation must be a mapping.")
        annotations.append(
            Annotation(
                checks=[_parse_check(c, source) for c in entry.get("checks") or []],
                reasons=[_parse_reason(r, source) for r in entry.get("reasons") or []],
            )
        )
    return AnnotationConfig(annotations=annotations)


def _parse_check(value: object, source: str) -> CheckName:
    check = _CHECKS_BY_LOWER.get(str(value).strip().lower())
    if check is None:
        raise ConfigError(f"Check is not valid in {source}: {value}")
    return check


def _parse_reason(value: object, source: str) -> AnnotationReason:
    raw = value.get("reason") if isinstance(value, dict) else value
    try:
        return AnnotationReason(str(raw))
    except ValueError:
        raise ConfigError(f"Reason is not valid in {source}: {raw}") from None


async def load_annotations(repo: RepoClientPort) -> AnnotationConfig | None:
    """Read the first annotations file found at the repository root, if any."""
    for filename in CONFIG_FILENAMES:
        content = await repo.get_file_content(filename)
        if content is None:
            continue
        logger.debug("Loading maintainer annotations from %s", filename)
        return parse_annotations(content, source=filename)
    return None
