from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import connection

from apps.core.errors import AllocationExceedsRecord, InvalidAllocation, NotFound, Unauthorized
from apps.records.allocation import (
    AllocationRequest,
    apply_default_allocation,
    get_allocations,
    set_allocations,
)
from apps.records.models import CreditAllocation, CreditRecord
from apps.security.models import AuditLog
from tests.utils import capture_locking, statements_after


pytestmark = pytest.mark.django_db


@pytest.fixture
def record(learner, record_factory):
    return record_factory(learner, hours=Decimal("3.00"), status="completed")


def _stored(record):
    return sorted(record.allocations.values_list("grant_id", "hours"))


def test_split_across_two_credentials(record, learner, grant_factory):
    cpa = grant_factory(learner)
    cfp = grant_factory(learner)

    result = set_allocations(
        record.pk,
        [{"grant_id": cpa.pk, "hours": "2"}, AllocationRequest(grant_id=cfp.pk, hours=Decimal("1"))],
        learner=learner,
    )

    assert _stored(record) == [(cpa.pk, Decimal("2.00")), (cfp.pk, Decimal("1.00"))]
    assert result.total_allocated == Decimal("3.00")
    assert result.unallocated == Decimal("0.00")
    assert AuditLog.objects.filter(
        action_code=AuditLog.ActionCode.ALLOCATIONS_UPDATED,
        target=f"CreditRecord:{record.pk}",
    ).exists()


def test_set_replaces_previous_allocations(record, learner, grant_factory):
    first = grant_factory(learner)
    second = grant_factory(learner)
    set_allocations(record.pk, [{"grant_id": first.pk, "hours": 3}])

    set_allocations(record.pk, [{"grant": second.pk, "hours": 1.5}])

    assert _stored(record) == [(second.pk, Decimal("1.50"))]


def test_empty_list_clears_allocations(record, learner, grant_factory):
    grant = grant_factory(learner)
    set_allocations(record.pk, [{"grant_id": grant.pk, "hours": 1}])

    result = set_allocations(record.pk, [])

    assert _stored(record) == []
    assert result.unallocated == Decimal("3.00")


def test_total_above_record_hours_is_rejected_and_nothing_changes(record, learner, grant_factory):
    first = grant_factory(learner)
    second = grant_factory(learner)
    set_allocations(record.pk, [{"grant_id": first.pk, "hours": 1}])

    with pytest.raises(AllocationExceedsRecord) as excinfo:
        set_allocations(
            record.pk,
            [{"grant_id": first.pk, "hours": 2}, {"grant_id": second.pk, "hours": "1.01"}],
        )

    assert excinfo.value.as_dict()["total_allocated"] == "3.01"
    assert excinfo.value.as_dict()["record_hours"] == "3.00"
    assert _stored(record) == [(first.pk, Decimal("1.00"))]


def test_foreign_grant_is_unauthorized(record, learner, other_learner, grant_factory):
    foreign = grant_factory(other_learner)

    with pytest.raises(Unauthorized) as excinfo:
        set_allocations(record.pk, [{"grant_id": foreign.pk, "hours": 1}])

    assert excinfo.value.extra["grant_ids"] == [foreign.pk]
    assert not CreditAllocation.objects.exists()


def test_record_owned_by_someone_else_is_unauthorized(record, other_learner):
    with pytest.raises(Unauthorized):
        set_allocations(record.pk, [], learner=other_learner)
    with pytest.raises(Unauthorized):
        get_allocations(record.pk, learner=other_learner)


def test_missing_record_raises_not_found(learner):
    with pytest.raises(NotFound):
        set_allocations(987654, [], learner=learner)


@pytest.mark.parametrize(
    "allocations",
    [
        [{"grant_id": 1, "hours": -1}],
        [{"grant_id": 1, "hours": "lots"}],
        [{"grant_id": 1, "hours": "NaN"}],
        [{"grant_id": 1, "hours": "1e30"}],
        [{"grant_id": 1, "hours": None}],
        [{"grant_id": "1", "hours": 1}],
        [{"grant_id": True, "hours": 1}],
        [{"grant_id": 1, "hours": 1}, {"grant_id": 1, "hours": 1}],
        ["not-a-mapping"],
        {"grant_id": 1, "hours": 1},
        "grant 1",
        None,
    ],
)
def test_invalid_requests_are_rejected(record, allocations):
    with pytest.raises(InvalidAllocation):
        set_allocations(record.pk, allocations)


def test_default_allocation_with_a_single_grant(record, learner, grant_factory):
    grant = grant_factory(learner)

    created = apply_default_allocation(record)

    assert [(allocation.grant_id, allocation.hours) for allocation in created] == [(grant.pk, Decimal("3.00"))]


def test_default_allocation_skips_learners_with_several_grants(record, learner, grant_factory):
    grant_factory(learner)
    grant_factory(learner)

    assert apply_default_allocation(record) == []


def test_default_allocation_never_touches_existing_allocations(record, learner, grant_factory):
    grant = grant_factory(learner)
    set_allocations(record.pk, [{"grant_id": grant.pk, "hours": 1}])

    assert apply_default_allocation(record) == []
    assert _stored(record) == [(grant.pk, Decimal("1.00"))]


def test_replace_runs_under_the_record_lock(record, learner, grant_factory):
    grant = grant_factory(learner)
    set_allocations(record.pk, [{"grant_id": grant.pk, "hours": 1}])
    allocations_table = CreditAllocation._meta.db_table
    enclosing = list(connection.atomic_blocks)

    with capture_locking() as events:
        set_allocations(record.pk, [{"grant_id": grant.pk, "hours": 2}], learner=learner)

    (lock,) = [event for event in events if event.kind == "lock" and event.text == CreditRecord._meta.db_table]
    assert lock.block is not None
    assert lock.block not in enclosing
    deletes = statements_after(events, lock, "DELETE", allocations_table)
    inserts = statements_after(events, lock, "INSERT", allocations_table)
    assert deletes and inserts
    assert all(lock.block in event.blocks for event in deletes + inserts)
    assert _stored(record) == [(grant.pk, Decimal("2.00"))]
