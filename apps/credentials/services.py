"""Progress reporting for the credentials a learner holds."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Sum

from apps.records.models import CreditAllocation, CreditRecord

from .models import CredentialGrant

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CredentialProgress:
    grant: CredentialGrant
    required_hours: Decimal
    baseline_hours: Decimal
    allocated_hours: Decimal

    @property
    def completed_hours(self) -> Decimal:
        return self.baseline_hours + self.allocated_hours

    @property
    def remaining_hours(self) -> Decimal:
        return max(self.required_hours - self.completed_hours, Decimal("0"))

    @property
    def percent_complete(self) -> int:
        if self.required_hours <= 0:
            return 100
        ratio = self.completed_hours / self.required_hours * _HUNDRED
        return min(int(ratio), 100)


def credential_progress(grant: CredentialGrant) -> CredentialProgress:
    """Return baseline plus allocated completed hours for ``grant``."""

    allocated = (
        CreditAllocation.objects.filter(
            grant=grant,
            credit_record__status=CreditRecord.Status.COMPLETED,
        ).aggregate(total=Sum("hours"))["total"]
        or Decimal("0")
    )
    return CredentialProgress(
        grant=grant,
        required_hours=grant.required_hours,
        baseline_hours=grant.baseline_hours,
        allocated_hours=allocated,
    )


def progress_for_learner(learner) -> list[CredentialProgress]:
    grants = CredentialGrant.objects.for_learner(learner).select_related("credential").primary_first()
    return [credential_progress(grant) for grant in grants]


def primary_credential_name(learner) -> str:
    """Name of the learner's primary credential, falling back to any grant."""

    grant = (
        CredentialGrant.objects.for_learner(learner)
        .select_related("credential")
        .primary_first()
        .first()
    )
    return grant.credential.name if grant else ""
