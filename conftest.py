import os
import uuid
from decimal import Decimal

import pytest


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.test")

import django  # noqa: E402

django.setup()


from django.contrib.auth import get_user_model  # noqa: E402
from django.contrib.auth.models import Group  # noqa: E402
from django.core.cache import cache  # noqa: E402
from rest_framework.test import APIClient  # noqa: E402

from apps.assessments.models import Assessment  # noqa: E402
from apps.catalog.models import Activity, CreditMapping  # noqa: E402
from apps.credentials.models import Credential, CredentialGrant  # noqa: E402
from apps.records.models import CreditRecord  # noqa: E402
from apps.users.constants import ROLE_GROUP_MAP, UserRole as Roles  # noqa: E402
from tests.utils import make_questions  # noqa: E402


User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_factory(db):
    def create_user(username=None, role=Roles.LEARNER, superuser=False, **fields):
        user = User.objects.create_user(
            username=username or f"user-{uuid.uuid4().hex[:8]}",
            password="password123",
            **fields,
        )

        for group_name in ROLE_GROUP_MAP.get(role, set()) if role else ():
            group, _ = Group.objects.get_or_create(name=group_name)
            user.groups.add(group)

        if role == Roles.ADMIN or superuser:
            user.is_staff = True
            user.is_superuser = superuser
            user.save(update_fields=["is_staff", "is_superuser"])

        return user

    return create_user


@pytest.fixture
def learner(user_factory):
    return user_factory("learner", first_name="Lee", last_name="Learner")


@pytest.fixture
def other_learner(user_factory):
    return user_factory("other-learner")


@pytest.fixture
def admin_user(user_factory):
    return user_factory("compliance-admin", role=Roles.ADMIN)


@pytest.fixture
def assessment_factory(db):
    def create_assessment(**overrides):
        values = {
            "title": "Ethics refresher",
            "pass_mark": 70,
            "max_attempts": 3,
            "hours_awarded": Decimal("2.00"),
            "questions": make_questions(),
        }
        values.update(overrides)
        return Assessment.objects.create(**values)

    return create_assessment


@pytest.fixture
def credential_factory(db):
    def create_credential(name=None, **overrides):
        values = {
            "name": name or f"CPA-{uuid.uuid4().hex[:6]}",
            "awarding_body": "State Board",
            "country": "US",
            "hours_required": Decimal("40.00"),
        }
        values.update(overrides)
        return Credential.objects.create(**values)

    return create_credential


@pytest.fixture
def grant_factory(credential_factory):
    def create_grant(learner, credential=None, **overrides):
        values = {"jurisdiction": "CA"}
        values.update(overrides)
        return CredentialGrant.objects.create(
            learner=learner,
            credential=credential or credential_factory(),
            **values,
        )

    return create_grant


@pytest.fixture
def record_factory(db):
    def create_record(learner, **overrides):
        values = {
            "title": "Tax update webinar",
            "provider": "Provider Co",
            "hours": Decimal("4.00"),
            "status": CreditRecord.Status.IN_PROGRESS,
        }
        values.update(overrides)
        return CreditRecord.objects.create(learner=learner, **values)

    return create_record


@pytest.fixture
def activity_factory(db):
    def create_activity(mappings=(), **overrides):
        values = {"title": "Revenue recognition deep dive"}
        values.update(overrides)
        activity = Activity.objects.create(**values)
        for mapping in mappings:
            mapping_values = {"credit_amount": Decimal("1.50")}
            mapping_values.update(mapping)
            CreditMapping.objects.create(activity=activity, **mapping_values)
        return activity

    return create_activity
