"""Professional credentials and the grants learners hold against them."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Credential(models.Model):
    """Catalogue entry for a professional designation (e.g. CPA, CFA)."""

    name = models.CharField(max_length=120, unique=True)
    awarding_body = models.CharField(max_length=200, blank=True)
    country = models.CharField(
        max_length=8,
        help_text="ISO country code the credential is regulated in.",
    )
    hours_required = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    cycle_length_years = models.PositiveSmallIntegerField(default=1)
    ethics_hours = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))
    structured_hours = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return self.name

    def save(self, *args, **kwargs):
        self.country = (self.country or "").strip().upper()
        super().save(*args, **kwargs)


class CredentialGrantQuerySet(models.QuerySet):
    def for_learner(self, learner) -> "CredentialGrantQuerySet":
        return self.filter(learner=learner)

    def primary_first(self) -> "CredentialGrantQuerySet":
        return self.order_by("-is_primary", "pk")


class CredentialGrant(models.Model):
    """A learner's held credential, scoped to a jurisdiction."""

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="credential_grants",
    )
    credential = models.ForeignKey(
        Credential,
        on_delete=models.PROTECT,
        related_name="grants",
    )
    jurisdiction = models.CharField(
        max_length=16,
        blank=True,
        help_text="State or province the credential is held in.",
    )
    hours_required = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Overrides the credential's default requirement when set.",
    )
    baseline_hours = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Self-reported hours completed before tracking began.",
    )
    renewal_deadline = models.DateField(null=True, blank=True)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CredentialGrantQuerySet.as_manager()

    class Meta:
        ordering = ("-is_primary", "pk")
        constraints = [
            models.UniqueConstraint(
                fields=("learner", "credential"),
                name="credentials_grant_unique_learner_credential",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.credential} ({self.jurisdiction or self.credential.country})"

    def save(self, *args, **kwargs):
        self.jurisdiction = (self.jurisdiction or "").strip().upper()
        super().save(*args, **kwargs)

    @property
    def required_hours(self) -> Decimal:
        if self.hours_required is not None:
            return self.hours_required
        return self.credential.hours_required
