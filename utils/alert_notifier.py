"""Deliver compliance alerts to operators over email and Slack."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Mapping
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings
from django.core.mail import send_mail


LOGGER = logging.getLogger(__name__)


def _alert_recipients() -> tuple[str, ...]:
    """Return the configured alert recipients as a tuple of addresses."""

    recipients = getattr(settings, "COMPLIANCE_ALERT_EMAIL_RECIPIENTS", ())
    if isinstance(recipients, str):
        recipients = recipients.split(",")
    return tuple(address.strip() for address in recipients if address and address.strip())


@dataclass
class AlertMessage:
    """Structured information describing an operator alert."""

    title: str
    body: str
    severity: str = "critical"
    metadata: Mapping[str, object] = field(default_factory=dict)

    @property
    def email_subject(self) -> str:
        prefix = getattr(settings, "COMPLIANCE_ALERT_EMAIL_SUBJECT_PREFIX", "Compliance")
        return f"[{prefix}][{self.severity.upper()}] {self.title}"

    @property
    def email_body(self) -> str:
        if not self.metadata:
            return self.body
        details = [f"- {key}: {value}" for key, value in sorted(self.metadata.items())]
        return "\n".join([self.body, "", "Details:", *details])

    def slack_payload(self) -> dict[str, object]:
        fields = [
            {"title": str(key).replace("_", " ").title(), "value": str(value), "short": True}
            for key, value in self.metadata.items()
        ]
        return {
            "text": f"[{self.severity.upper()}] {self.title}",
            "attachments": [{"fields": fields}] if fields else [],
        }


def _deliver_slack(alert: AlertMessage) -> bool:
    webhook_url = getattr(settings, "COMPLIANCE_ALERT_SLACK_WEBHOOK", "")
    if not webhook_url:
        LOGGER.debug("Slack webhook not configured for compliance alerts")
        return False

    request = Request(
        webhook_url,
        data=json.dumps(alert.slack_payload()).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:  # pragma: no cover - network
        with urlopen(request, timeout=5) as response:  # noqa: S310 - configured URL
            response.read()
    except (HTTPError, URLError) as exc:  # pragma: no cover - network
        LOGGER.exception("Failed to deliver compliance alert to Slack: %s", exc)
        return False
    return True


def _deliver_email(alert: AlertMessage) -> bool:
    recipients = _alert_recipients()
    if not recipients:
        LOGGER.debug("No email recipients configured for compliance alerts")
        return False

    sender = getattr(
        settings,
        "COMPLIANCE_ALERT_EMAIL_SENDER",
        getattr(settings, "DEFAULT_FROM_EMAIL", "no-reply@example.com"),
    )
    sent = send_mail(alert.email_subject, alert.email_body, sender, list(recipients), fail_silently=True)
    return bool(sent)


def send_security_alert(alert: AlertMessage) -> list[str]:
    """Dispatch ``alert`` to every configured channel.

    Returns the names of the channels that accepted the alert.
    """

    LOGGER.info(
        "Dispatching compliance alert", extra={"severity": alert.severity, "title": alert.title}
    )
    delivered = []
    if _deliver_slack(alert):
        delivered.append("slack")
    if _deliver_email(alert):
        delivered.append("email")
    return delivered


__all__ = ["AlertMessage", "send_security_alert"]
