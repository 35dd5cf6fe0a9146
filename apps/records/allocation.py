"""Split a credit record's hours across the credentials a learner holds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from django.db import transaction

from apps.core.errors import (
    AllocationExceedsRecord,
    InvalidAllocation,
    NotFound,
    Unauthorized,
)
from apps.credentials.models import CredentialGrant
from apps.security.models import AuditLog
from apps.security.utils import log_audit_event

from .models import CreditAllocation, CreditRecord

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class AllocationRequest:
    grant_id: int
    hours: Decimal


@dataclass(frozen=True)
class AllocationSet:
    """The persisted allocations of a record with their totals."""

    record: CreditRecord
    allocations: list[CreditAllocation]

    @property
    def record_hours(self) -> Decimal:
        return self.record.hours

    @property
    def total_allocated(self) -> Decimal:
        return sum((allocation.hours for allocation in self.allocations), Decimal("0"))

    @property
    def unallocated(self) -> Decimal:
        return self.record_hours - self.total_allocated


def _coerce_request(item: AllocationRequest | Mapping[str, Any]) -> AllocationRequest:
    if isinstance(item, AllocationRequest):
        grant_id, raw_hours = item.grant_id, item.hours
    elif isinstance(item, Mapping):
        grant_id = item.get("grant_id", item.get("grant"))
        raw_hours = item.get("hours")
    else:
        raise InvalidAllocation("Each allocation must provide a grant and hours.")

    if isinstance(grant_id, bool) or not isinstance(grant_id, int):
        raise InvalidAllocation("Each allocation must reference a credential grant id.")
    if isinstance(raw_hours, bool) or raw_hours is None:
        raise InvalidAllocation("Allocation hours must be a number.")
    try:
        hours = Decimal(str(raw_hours))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAllocation("Allocation hours must be a number.") from exc
    if not hours.is_finite():
        raise InvalidAllocation("Allocation hours must be a number.")
    if hours < 0:
        raise InvalidAllocation("Allocation hours cannot be negative.", grant_id=grant_id)
    try:
        hours = hours.quantize(_CENT)
    except InvalidOperation as exc:
        raise InvalidAllocation("Allocation hours are too large.", grant_id=grant_id) from exc
    return AllocationRequest(grant_id=grant_id, hours=hours)


def _load_record(record_id: int, learner=None, *, lock: bool = False) -> CreditRecord:
    queryset = CreditRecord.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    record = queryset.filter(pk=record_id).first()
    if record is None:
        raise NotFound("Credit record not found.")
    if learner is not None and record.learner_id != learner.pk:
        raise Unauthorized("Credit record belongs to another learner.")
    return record


def get_allocations(record_id: int, *, learner=None) -> AllocationSet:
    record = _load_record(record_id, learner)
    allocations = list(record.allocations.select_related("grant__credential").order_by("pk"))
    return AllocationSet(record=record, allocations=allocations)


def set_allocations(
    record_id: int,
    allocations: Iterable[AllocationRequest | Mapping[str, Any]],
    *,
    learner=None,
) -> AllocationSet:
    """Replace the allocations of ``record_id`` with ``allocations``.

    The record row is locked for the duration of the replace so concurrent
    writers serialise; readers only ever see the previous set or the new one.
    """

    if isinstance(allocations, (str, bytes, Mapping)) or not isinstance(allocations, Iterable):
        raise InvalidAllocation("Allocations must be a list of grant and hours pairs.")
    requests = [_coerce_request(item) for item in allocations]

    grant_ids = [request.grant_id for request in requests]
    if len(set(grant_ids)) != len(grant_ids):
        raise InvalidAllocation("Each credential may only be allocated once per record.")

    with transaction.atomic():
        record = _load_record(record_id, learner, lock=True)

        grants = CredentialGrant.objects.filter(pk__in=grant_ids, learner_id=record.learner_id)
        owned_ids = set(grants.values_list("pk", flat=True))
        foreign = sorted(set(grant_ids) - owned_ids)
        if foreign:
            raise Unauthorized(
                "One or more credentials do not belong to the record's owner.",
                grant_ids=foreign,
            )

        total = sum((request.hours for request in requests), Decimal("0"))
        if total > record.hours:
            raise AllocationExceedsRecord(total_allocated=total, record_hours=record.hours)

        CreditAllocation.objects.filter(credit_record=record).delete()
        created = CreditAllocation.objects.bulk_create(
            [
                CreditAllocation(credit_record=record, grant_id=request.grant_id, hours=request.hours)
                for request in requests
            ]
        )

    result = AllocationSet(record=record, allocations=list(created))
    logger.info(
        "Replaced allocations for credit record %s",
        record.pk,
        extra={"learner": record.learner, "total_allocated": result.total_allocated},
    )
    log_audit_event(
        action_code=AuditLog.ActionCode.ALLOCATIONS_UPDATED,
        user=learner or record.learner,
        target=f"CreditRecord:{record.pk}",
        context={
            "allocations": {str(request.grant_id): request.hours for request in requests},
            "total_allocated": result.total_allocated,
            "record_hours": record.hours,
        },
    )
    return result


def apply_default_allocation(record: CreditRecord) -> list[CreditAllocation]:
    """Allocate a new record in full when its owner holds exactly one credential.

    With several credentials the split is left to the learner. Existing
    allocations are never touched.
    """

    if record.allocations.exists():
        return []
    grants = list(CredentialGrant.objects.filter(learner_id=record.learner_id)[:2])
    if len(grants) != 1:
        return []
    allocation = CreditAllocation.objects.create(
        credit_record=record,
        grant=grants[0],
        hours=record.hours,
    )
    return [allocation]


__all__ = [
    "AllocationRequest",
    "AllocationSet",
    "apply_default_allocation",
    "get_allocations",
    "set_allocations",
]
