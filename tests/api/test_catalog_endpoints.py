"""Integration tests for credit resolution and activity publishing."""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from apps.catalog.models import Activity
from apps.security.models import AuditLog


pytestmark = pytest.mark.django_db


def _credits_url(activity):
    return reverse("api:activity-credits", kwargs={"activity_id": activity.pk})


def test_credits_for_a_location(api_client, learner, activity_factory):
    activity = activity_factory(
        mappings=[{"country": "US", "state_deny_list": ["TX"]}, {"country": "INTL", "credit_amount": "1.00"}]
    )
    api_client.force_authenticate(user=learner)

    allowed = api_client.get(_credits_url(activity), {"country": "us", "state": "ca"}).json()
    denied = api_client.get(_credits_url(activity), {"country": "US", "state": "TX"}).json()

    assert allowed["country"] == "US"
    assert allowed["state"] == "CA"
    assert allowed["eligible"] is True
    assert sorted(mapping["country"] for mapping in allowed["mappings"]) == ["INTL", "US"]
    assert [mapping["country"] for mapping in denied["mappings"]] == ["INTL"]


def test_credits_for_each_held_credential(api_client, learner, activity_factory, credential_factory, grant_factory):
    cpa = credential_factory("CPA")
    grant_factory(learner, cpa, jurisdiction="CA", is_primary=True)
    activity = activity_factory(
        mappings=[
            {"country": "US", "credit_amount": "2.00", "credit_category": "ethics"},
            {"country": "US", "credit_amount": "1.00", "state_allow_list": ["NY"]},
        ]
    )
    api_client.force_authenticate(user=learner)

    response = api_client.get(_credits_url(activity))

    assert response.status_code == status.HTTP_200_OK
    (view,) = response.json()["credentials"]
    assert view["credential_name"] == "CPA"
    assert view["eligible"] is True
    assert view["total_credits"] == "2.00"
    assert view["categories"] == {"ethics": "2.00"}


def test_credits_reject_non_numeric_credential_filter(api_client, learner, activity_factory):
    activity = activity_factory(mappings=[{"country": "US"}])
    api_client.force_authenticate(user=learner)

    response = api_client.get(_credits_url(activity), {"credential_id": "cpa"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "malformed_submission"


def test_credits_for_retired_activity_are_not_found(api_client, learner, activity_factory):
    activity = activity_factory(mappings=[{"country": "US"}], active=False)
    api_client.force_authenticate(user=learner)

    response = api_client.get(_credits_url(activity), {"country": "US"})

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_publishes_and_retires_an_activity(api_client, admin_user, activity_factory):
    activity = activity_factory(mappings=[{"country": "US"}])
    api_client.force_authenticate(user=admin_user)

    published = api_client.post(reverse("api:activity-publish", kwargs={"activity_id": activity.pk}))
    retired = api_client.post(reverse("api:activity-retire", kwargs={"activity_id": activity.pk}))

    assert published.status_code == status.HTTP_200_OK
    assert published.json()["publish_status"] == Activity.PublishStatus.PUBLISHED
    assert published.json()["approved_by"] == admin_user.pk
    assert retired.status_code == status.HTTP_200_OK
    assert retired.json()["active"] is False
    assert AuditLog.objects.filter(action_code=AuditLog.ActionCode.ACTIVITY_PUBLISHED).count() == 1


def test_publishing_without_mappings_lists_problems(api_client, admin_user, activity_factory):
    activity = activity_factory()
    api_client.force_authenticate(user=admin_user)

    response = api_client.post(reverse("api:activity-publish", kwargs={"activity_id": activity.pk}))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    payload = response.json()
    assert payload["error"] == "activity_not_publishable"
    assert payload["problems"] == ["Activity requires at least one active credit mapping."]
