"""Role checks on the API surface."""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from apps.api.permissions import ROLE_PERMISSION_MAP, IsAdminUserRole, IsLearnerUserRole
from apps.users.constants import UserRole


def test_role_permission_map_covers_every_role():
    assert ROLE_PERMISSION_MAP == {
        UserRole.ADMIN: IsAdminUserRole,
        UserRole.LEARNER: IsLearnerUserRole,
    }


@pytest.mark.django_db
@pytest.mark.parametrize(
    ("method", "url_name", "kwargs"),
    [
        ("get", "api:grant-list", {}),
        ("get", "api:assessment-detail", {"assessment_id": 1}),
        ("post", "api:assessment-attempts", {"assessment_id": 1}),
        ("get", "api:record-completion", {"record_id": 1}),
        ("get", "api:certificates-list", {}),
    ],
)
def test_anonymous_callers_are_rejected(api_client, method, url_name, kwargs):
    response = getattr(api_client, method)(reverse(url_name, kwargs=kwargs), format="json")

    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


@pytest.mark.django_db
@pytest.mark.parametrize(
    ("url_name", "kwargs"),
    [
        ("api:activity-publish", {"activity_id": 1}),
        ("api:activity-retire", {"activity_id": 1}),
        ("api:certificate-verify-batch", {}),
    ],
)
def test_learners_cannot_call_admin_endpoints(api_client, learner, url_name, kwargs):
    api_client.force_authenticate(user=learner)

    response = api_client.post(reverse(url_name, kwargs=kwargs), {}, format="json")

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
@pytest.mark.parametrize("url_name", ["api:audit-logs-list", "api:logs-list"])
def test_learners_cannot_read_audit_trail(api_client, learner, url_name):
    api_client.force_authenticate(user=learner)

    response = api_client.get(reverse(url_name))

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
def test_learner_endpoints_reject_admin_only_accounts(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)

    response = api_client.get(reverse("api:grant-list"))

    assert response.status_code == status.HTTP_403_FORBIDDEN
