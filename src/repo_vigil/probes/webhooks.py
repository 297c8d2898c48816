"""Webhooks probe."""

from __future__ import annotations

from repo_vigil.finding import FileType, Finding, Location, Outcome, new_not_available, new_with
from repo_vigil.models import RawResults, WebhooksData
from repo_vigil.probes._helpers import require

WEBHOOKS_USE_SECRETS = "webhooksUseSecrets"

WEBHOOK_ID_KEY = "webhookID"


def webhooks_use_secrets(raw: RawResults | None) -> tuple[list[Finding], str]:
    probe = WEBHOOKS_USE_SECRETS
    data: WebhooksData = require(raw, "webhooks", probe)
    if not data.webhooks:
        return [new_not_available(probe, "repository does not have webhooks")], probe

    findings = []
    for hook in data.webhooks:
        location = Location(path=hook.url, type=FileType.URL) if hook.url else None
        if hook.uses_auth_secret:
            outcome, message = Outcome.TRUE, "webhook with token authorization found"
        else:
            outcome, message = Outcome.FALSE, "webhook without token authorization found"
        findings.append(new_with(probe, outcome, message, location, {WEBHOOK_ID_KEY: hook.id}))
    return findings, probe
