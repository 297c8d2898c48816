"""Exception hierarchy for repo-vigil.

All exceptions inherit from RepoVigilError (single catch point).
Messages are written for LLM consumption -- clear, actionable, no stack traces.
"""

from __future__ import annotations


class RepoVigilError(Exception):
    """Base exception for all repo-vigil errors."""


class ProbeRegistrationError(RepoVigilError):
    """A probe was registered with an invalid definition.

    Raised while the registry is being built; treat as a programming error.
    """


class ProbeNotFoundError(RepoVigilError):
    """No probe is registered under the requested name."""


class CheckNotFoundError(RepoVigilError):
    """No check is defined under the requested name."""


class ProbeError(RepoVigilError):
    """A probe could not produce findings."""

    def __init__(self, probe: str, message: str) -> None:
        super().__init__(f"{probe}: {message}")
        self.probe = probe


class NilInputError(ProbeError):
    """A probe was invoked without the raw data it requires."""

    def __init__(self, probe: str, message: str = "required raw data was not collected") -> None:
        super().__init__(probe, message)


class FindingValidationError(RepoVigilError):
    """A finding was constructed with invalid arguments."""


class InvalidRepositoryError(RepoVigilError):
    """The repository reference could not be parsed as a GitHub repository."""


class UpstreamUnavailableError(RepoVigilError):
    """The hosting API or another upstream source could not supply data."""


class ConfigError(RepoVigilError):
    """The repository's repo-vigil configuration file is invalid."""
