"""Activities leave the catalogue by retirement only."""
from __future__ import annotations

import pytest
from django.contrib.admin.sites import AdminSite
from django.test import Client, RequestFactory
from django.urls import reverse

from apps.catalog.admin import ActivityAdmin
from apps.catalog.models import Activity


pytestmark = pytest.mark.django_db


@pytest.fixture
def superuser(user_factory):
    return user_factory("catalog-superuser", role=None, superuser=True)


def test_activity_admin_offers_no_delete(superuser):
    admin_instance = ActivityAdmin(Activity, AdminSite())
    request = RequestFactory().get("/admin/catalog/activity/")
    request.user = superuser

    assert admin_instance.has_delete_permission(request) is False
    assert "delete_selected" not in admin_instance.get_actions(request)
    assert {"action_publish", "action_retire"} <= set(admin_instance.get_actions(request))


def test_delete_view_is_forbidden(superuser, activity_factory):
    activity = activity_factory()
    client = Client()
    client.force_login(superuser)

    response = client.post(reverse("admin:catalog_activity_delete", args=[activity.pk]), {"post": "yes"})

    assert response.status_code == 403
    assert Activity.objects.filter(pk=activity.pk).exists()
