"""Integration tests for completion, allocation and credential progress endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework import status

from apps.records.models import CompletionRule
from tests.utils import attach_evidence


pytestmark = pytest.mark.django_db


def _completion_url(record):
    return reverse("api:record-completion", kwargs={"record_id": record.pk})


def _allocations_url(record):
    return reverse("api:record-allocations", kwargs={"record_id": record.pk})


def test_completion_reports_each_rule(api_client, learner, record_factory):
    record = record_factory(learner)
    CompletionRule.objects.create(
        credit_record=record,
        name="Upload certificate of attendance",
        rule_type="evidence_upload",
        config={"min_files": 1},
    )
    api_client.force_authenticate(user=learner)

    response = api_client.get(_completion_url(record))

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["record_id"] == record.pk
    assert payload["all_passed"] is False
    assert payload["eligible_for_certificate"] is False
    assert payload["rules"][0]["rule_name"] == "Upload certificate of attendance"
    assert payload["rules"][0]["passed"] is False


def test_completion_post_issues_once_rules_pass(api_client, learner, record_factory):
    record = record_factory(learner)
    CompletionRule.objects.create(
        credit_record=record,
        name="Evidence",
        rule_type="evidence_upload",
        config={"min_files": 1},
    )
    api_client.force_authenticate(user=learner)

    pending = api_client.post(_completion_url(record))
    assert pending.status_code == status.HTTP_200_OK
    assert pending.json()["certificate"] is None

    attach_evidence(record, "pdf")
    issued = api_client.post(_completion_url(record))
    repeated = api_client.post(_completion_url(record))

    assert issued.status_code == status.HTTP_201_CREATED
    assert issued.json()["created"] is True
    assert repeated.status_code == status.HTTP_200_OK
    assert repeated.json()["certificate"]["code"] == issued.json()["certificate"]["code"]


def test_completion_of_another_learners_record_is_forbidden(api_client, learner, other_learner, record_factory):
    record = record_factory(learner)
    api_client.force_authenticate(user=other_learner)

    response = api_client.get(_completion_url(record))

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_allocations_can_be_read_and_replaced(api_client, learner, record_factory, grant_factory):
    record = record_factory(learner, hours=Decimal("3.00"), status="completed")
    cpa = grant_factory(learner)
    cfp = grant_factory(learner)
    api_client.force_authenticate(user=learner)

    response = api_client.put(
        _allocations_url(record),
        {"allocations": [{"grant_id": cpa.pk, "hours": "2.00"}, {"grant_id": cfp.pk, "hours": 1}]},
        format="json",
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total_allocated"] == "3.00"
    current = api_client.get(_allocations_url(record)).json()
    assert current["unallocated"] == "0.00"
    assert sorted((item["grant_id"], item["hours"]) for item in current["allocations"]) == [
        (cpa.pk, "2.00"),
        (cfp.pk, "1.00"),
    ]


def test_allocation_over_record_hours_is_rejected(api_client, learner, record_factory, grant_factory):
    record = record_factory(learner, hours=Decimal("3.00"))
    grant = grant_factory(learner)
    api_client.force_authenticate(user=learner)

    response = api_client.put(_allocations_url(record), [{"grant_id": grant.pk, "hours": 4}], format="json")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "allocation_exceeds_record",
        "detail": "Total allocated (4.00) exceeds record hours (3.00).",
        "total_allocated": "4.00",
        "record_hours": "3.00",
    }


def test_allocation_to_foreign_grant_is_forbidden(api_client, learner, other_learner, record_factory, grant_factory):
    record = record_factory(learner)
    foreign = grant_factory(other_learner)
    api_client.force_authenticate(user=learner)

    response = api_client.put(
        _allocations_url(record), {"allocations": [{"grant_id": foreign.pk, "hours": 1}]}, format="json"
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["grant_ids"] == [foreign.pk]


def test_grants_report_progress(api_client, learner, credential_factory, grant_factory, record_factory):
    grant = grant_factory(
        learner,
        credential_factory("CPA", hours_required=Decimal("40")),
        baseline_hours=Decimal("8"),
        is_primary=True,
    )
    record = record_factory(learner, hours=Decimal("2.00"), status="completed")
    api_client.force_authenticate(user=learner)
    api_client.put(_allocations_url(record), [{"grant_id": grant.pk, "hours": 2}], format="json")

    response = api_client.get(reverse("api:grant-list"))

    assert response.status_code == status.HTTP_200_OK
    (item,) = response.json()["results"]
    assert item["credential_name"] == "CPA"
    assert item["completed_hours"] == "10.00"
    assert item["remaining_hours"] == "30.00"
    assert item["percent_complete"] == 25


def test_oversized_allocation_hours_are_a_bad_request(api_client, learner, record_factory, grant_factory):
    record = record_factory(learner, hours=Decimal("3.00"))
    grant = grant_factory(learner)
    api_client.force_authenticate(user=learner)

    response = api_client.put(_allocations_url(record), [{"grant_id": grant.pk, "hours": 1e30}], format="json")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "invalid_allocation"
    assert not record.allocations.exists()
