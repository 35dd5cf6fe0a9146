"""Integration tests for the health summary and audit trail listing."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status

from apps.security.models import AuditLog
from apps.security.utils import log_audit_event


pytestmark = pytest.mark.django_db


@patch("apps.security.signals.send_audit_log_alert.delay")
def test_health_counts_recent_critical_events(mock_delay, api_client, learner):
    log_audit_event(action_code=AuditLog.ActionCode.CERTIFICATE_REVOKED, user=learner, target="Certificate:1")
    log_audit_event(action_code=AuditLog.ActionCode.ACTIVITY_PUBLISHED, user=learner, target="Activity:1")

    response = api_client.get(reverse("api:health-summary"))

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["database"] == "ok"
    assert payload["recent_critical_events"] == 1


def test_audit_log_listing_is_paginated_and_filterable(api_client, admin_user, learner):
    for index in range(3):
        log_audit_event(
            action_code=AuditLog.ActionCode.ACTIVITY_PUBLISHED,
            user=admin_user,
            target=f"Activity:{index}",
        )
    log_audit_event(action_code=AuditLog.ActionCode.ALLOCATIONS_UPDATED, user=learner, target="CreditRecord:9")
    api_client.force_authenticate(user=admin_user)

    everything = api_client.get(reverse("api:audit-logs-list"), {"page_size": 2}).json()
    filtered = api_client.get(
        reverse("api:audit-logs-list"), {"action": AuditLog.ActionCode.ALLOCATIONS_UPDATED}
    ).json()

    assert everything["count"] == 4
    assert len(everything["results"]) == 2
    assert everything["next"] is not None
    assert filtered["count"] == 1
    (entry,) = filtered["results"]
    assert entry["target"] == "CreditRecord:9"
    assert entry["username"] == learner.get_username()
    assert entry["resolved_role"] == "learner"
