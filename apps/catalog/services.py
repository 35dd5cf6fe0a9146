"""Credit resolution and the publish lifecycle for catalogue activities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from django.db import transaction
from django.utils import timezone

from apps.core.errors import ActivityNotPublishable, NotFound
from apps.credentials.models import CredentialGrant
from apps.security.models import AuditLog
from apps.security.utils import log_audit_event

from .models import INTERNATIONAL, Activity, CreditMapping, normalise_region_code

logger = logging.getLogger(__name__)


def mapping_applies(mapping: CreditMapping, country: str, state: str | None = None) -> bool:
    """Return whether ``mapping`` grants credit for a learner in ``country``/``state``.

    International mappings apply everywhere and ignore state filters. A
    learner without a state is excluded by an allow list and admitted by a
    deny list.
    """

    if not mapping.active:
        return False
    if mapping.is_international:
        return True

    country = normalise_region_code(country)
    if mapping.country != country:
        return False

    state_code = normalise_region_code(state) or None
    if mapping.state_allow_list:
        return state_code in mapping.state_allow_list
    if mapping.state_deny_list:
        return state_code not in mapping.state_deny_list
    return True


def _load_active_activity(activity_id: int) -> Activity:
    activity = Activity.objects.active().filter(pk=activity_id).first()
    if activity is None:
        raise NotFound("Activity not found.")
    return activity


def _candidate_mappings(activity: Activity, country: str) -> list[CreditMapping]:
    return list(
        activity.credit_mappings.filter(
            active=True,
            country__in=(normalise_region_code(country), INTERNATIONAL),
        ).order_by("pk")
    )


def resolve_credit(activity_id: int, country: str, state: str | None = None) -> list[CreditMapping]:
    """Return the active mappings of ``activity_id`` that apply to the location.

    An empty list means the activity confers no credit there.
    """

    activity = _load_active_activity(activity_id)
    return [
        mapping
        for mapping in _candidate_mappings(activity, country)
        if mapping_applies(mapping, country, state)
    ]


@dataclass
class CreditView:
    """Credit one of the learner's grants would receive for an activity."""

    grant: CredentialGrant
    mappings: list[CreditMapping] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return bool(self.mappings)

    @property
    def total_credits(self) -> Decimal:
        return sum((mapping.credit_amount for mapping in self.mappings), Decimal("0"))

    @property
    def credit_unit(self) -> str | None:
        return self.mappings[0].credit_unit if self.mappings else None

    @property
    def categories(self) -> dict[str, Decimal]:
        breakdown: dict[str, Decimal] = {}
        for mapping in self.mappings:
            breakdown[mapping.credit_category] = (
                breakdown.get(mapping.credit_category, Decimal("0")) + mapping.credit_amount
            )
        return breakdown


def resolve_credit_views(activity_id: int, learner, credential_id: int | None = None) -> list[CreditView]:
    """Resolve credit for every credential the learner holds.

    Each grant is resolved with its credential's country and the grant's
    jurisdiction; mappings pinned to a different credential are dropped.
    """

    activity = _load_active_activity(activity_id)
    grants = CredentialGrant.objects.for_learner(learner).select_related("credential").primary_first()
    if credential_id is not None:
        grants = grants.filter(credential_id=credential_id)

    views: list[CreditView] = []
    for grant in grants:
        country = grant.credential.country
        mappings = [
            mapping
            for mapping in _candidate_mappings(activity, country)
            if mapping.credential_id in (None, grant.credential_id)
            and mapping_applies(mapping, country, grant.jurisdiction)
        ]
        views.append(CreditView(grant=grant, mappings=mappings))
    return views


_EDITABLE_FIELDS = ("title", "description", "content_type", "assessment")


def update_activity(activity: Activity, changes: Mapping[str, Any]) -> Activity:
    """Apply editable field changes and bump the activity version."""

    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unsupported activity fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        locked = Activity.objects.select_for_update().get(pk=activity.pk)
        for name, value in changes.items():
            setattr(locked, name, value)
        locked.version += 1
        locked.save()
    return locked


def publishing_problems(activity: Activity) -> list[str]:
    problems: list[str] = []
    if not activity.active:
        problems.append("Retired activities cannot be published.")
    if activity.is_published:
        problems.append("Activity is already published.")
    if not (activity.title or "").strip():
        problems.append("Activity requires a title.")
    if not activity.credit_mappings.filter(active=True).exists():
        problems.append("Activity requires at least one active credit mapping.")
    return problems


def publish_activity(activity_id: int, approver) -> Activity:
    """Publish a draft activity, recording who approved it and when."""

    with transaction.atomic():
        activity = Activity.objects.select_for_update().filter(pk=activity_id).first()
        if activity is None:
            raise NotFound("Activity not found.")

        problems = publishing_problems(activity)
        if problems:
            raise ActivityNotPublishable(" ".join(problems), problems=problems)

        activity.publish_status = Activity.PublishStatus.PUBLISHED
        activity.published_at = timezone.now()
        activity.approved_by = approver
        activity.save(update_fields=["publish_status", "published_at", "approved_by", "updated_at"])

    logger.info("Published activity %s (v%s)", activity.pk, activity.version, extra={"user": approver})
    log_audit_event(
        action_code=AuditLog.ActionCode.ACTIVITY_PUBLISHED,
        user=approver,
        target=f"Activity:{activity.pk}",
        context={"version": activity.version},
    )
    return activity


def retire_activity(activity_id: int, actor) -> Activity:
    """Withdraw an activity from the catalogue. Retiring twice is a no-op."""

    activity = Activity.objects.filter(pk=activity_id).first()
    if activity is None:
        raise NotFound("Activity not found.")
    if not activity.active:
        return activity

    activity.active = False
    activity.save(update_fields=["active", "updated_at"])
    logger.info("Retired activity %s", activity.pk, extra={"user": actor})
    log_audit_event(
        action_code=AuditLog.ActionCode.ACTIVITY_RETIRED,
        user=actor,
        target=f"Activity:{activity.pk}",
        context={"version": activity.version},
    )
    return activity


__all__ = [
    "CreditView",
    "mapping_applies",
    "publish_activity",
    "resolve_credit",
    "resolve_credit_views",
    "retire_activity",
    "update_activity",
]
