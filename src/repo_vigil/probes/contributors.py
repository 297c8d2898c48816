"""Contributors probe: diversity of organizations behind frequent contributors."""

from __future__ import annotations

from repo_vigil.finding import Finding, Outcome, new_false, new_with
from repo_vigil.models import ContributorsData, RawResults
from repo_vigil.probes._helpers import require

CONTRIBUTORS_FROM_ORG_OR_COMPANY = "contributorsFromOrgOrCompany"

MIN_CONTRIBUTIONS_PER_USER = 5

ENTITY_KEY = "entity"


def contributors_from_org_or_company(raw: RawResults | None) -> tuple[list[Finding], str]:
    """One True finding per distinct organization or company, in first-seen order."""
    probe = CONTRIBUTORS_FROM_ORG_OR_COMPANY
    data: ContributorsData = require(raw, "contributors", probe)

    entities: list[str] = []
    for user in data.users:
        if user.is_bot or user.num_contributions < MIN_CONTRIBUTIONS_PER_USER:
            continue
        for entity in [*user.organizations, *user.companies]:
            if entity and entity not in entities:
                entities.append(entity)

    if not entities:
        return [new_false(probe, "no contributors have an org or company")], probe
    findings = [
        new_with(
            probe,
            Outcome.TRUE,
            f"found contributions from: {entity}",
            values={ENTITY_KEY: entity},
        )
        for entity in entities
    ]
    return findings, probe
