from __future__ import annotations

import pytest

from apps.catalog.models import Activity
from apps.catalog.services import publish_activity, retire_activity, update_activity
from apps.core.errors import ActivityNotPublishable, NotFound
from apps.security.models import AuditLog


pytestmark = pytest.mark.django_db


def test_publish_records_approver_and_timestamp(activity_factory, admin_user):
    activity = activity_factory(mappings=[{"country": "US"}])

    published = publish_activity(activity.pk, admin_user)

    assert published.publish_status == Activity.PublishStatus.PUBLISHED
    assert published.published_at is not None
    assert published.approved_by == admin_user
    assert AuditLog.objects.filter(
        action_code=AuditLog.ActionCode.ACTIVITY_PUBLISHED,
        target=f"Activity:{activity.pk}",
    ).exists()


def test_publish_requires_title_and_active_mapping(activity_factory, admin_user):
    activity = activity_factory(title="", mappings=[{"country": "US", "active": False}])

    with pytest.raises(ActivityNotPublishable) as excinfo:
        publish_activity(activity.pk, admin_user)

    assert excinfo.value.extra["problems"] == [
        "Activity requires a title.",
        "Activity requires at least one active credit mapping.",
    ]
    activity.refresh_from_db()
    assert activity.publish_status == Activity.PublishStatus.DRAFT


def test_publish_refuses_republish(activity_factory, admin_user):
    activity = activity_factory(mappings=[{"country": "US"}])
    publish_activity(activity.pk, admin_user)

    with pytest.raises(ActivityNotPublishable):
        publish_activity(activity.pk, admin_user)


def test_publish_unknown_activity_raises_not_found(admin_user):
    with pytest.raises(NotFound):
        publish_activity(404404, admin_user)


def test_retire_is_idempotent(activity_factory, admin_user):
    activity = activity_factory(mappings=[{"country": "US"}])

    retire_activity(activity.pk, admin_user)
    retired = retire_activity(activity.pk, admin_user)

    assert retired.active is False
    assert AuditLog.objects.filter(action_code=AuditLog.ActionCode.ACTIVITY_RETIRED).count() == 1


def test_update_bumps_version(activity_factory):
    activity = activity_factory()

    updated = update_activity(activity, {"title": "Revised title", "description": "New notes"})

    assert updated.version == activity.version + 1
    assert Activity.objects.get(pk=activity.pk).title == "Revised title"


def test_update_rejects_non_editable_fields(activity_factory):
    activity = activity_factory()

    with pytest.raises(ValueError):
        update_activity(activity, {"publish_status": Activity.PublishStatus.PUBLISHED})
