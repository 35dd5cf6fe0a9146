"""Verifiable certificates issued for completed credit records."""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.choices import CpdActivityType, CpdCategory


class CertificateQuerySet(models.QuerySet):
    """Custom queryset helpers for the :class:`Certificate` model."""

    def active(self) -> "CertificateQuerySet":
        return self.filter(status=Certificate.Status.ACTIVE)

    def for_learner(self, learner) -> "CertificateQuerySet":
        return self.filter(learner=learner)


class CertificateManager(models.Manager["Certificate"]):
    """Manager providing lookups used by issuance and verification."""

    def get_queryset(self) -> CertificateQuerySet:  # type: ignore[override]
        return CertificateQuerySet(self.model, using=self._db)

    def active_for_record(self, credit_record) -> "Certificate | None":
        """Return the most recent active certificate tied to ``credit_record``."""

        return (
            self.get_queryset()
            .filter(credit_record=credit_record)
            .active()
            .order_by("-issued_at", "-pk")
            .first()
        )

    def by_code(self, code: str) -> "Certificate | None":
        return (
            self.get_queryset()
            .select_related("learner")
            .filter(code=(code or "").strip())
            .first()
        )


class Certificate(models.Model):
    """Certificate of completion, verifiable by its public code.

    The certificate holds a denormalised copy of what it certifies, so it
    remains verifiable if the credit record it references is later deleted.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        REVOKED = "revoked", "Revoked"

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="certificates",
    )
    code = models.CharField(max_length=32, unique=True)
    title = models.CharField(max_length=255)
    credential_name = models.CharField(max_length=120, blank=True)
    hours = models.DecimalField(max_digits=7, decimal_places=2)
    category = models.CharField(max_length=32, choices=CpdCategory.choices)
    activity_type = models.CharField(
        max_length=32,
        choices=CpdActivityType.choices,
        default=CpdActivityType.STRUCTURED,
    )
    provider = models.CharField(max_length=255, blank=True)
    completed_date = models.DateField()
    issued_at = models.DateTimeField(default=timezone.now)
    verification_url = models.CharField(max_length=500)
    credit_record = models.ForeignKey(
        "records.CreditRecord",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="certificates",
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    status_set_at = models.DateTimeField(
        default=timezone.now,
        help_text="Timestamp when the current status was applied.",
    )
    revoked_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="Timestamp when the certificate was revoked.",
    )
    status_reason = models.TextField(
        blank=True,
        help_text="Optional reason describing why the status was applied.",
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CertificateManager()

    class Meta:
        ordering = ("-issued_at", "-pk")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"Certificate<{self.code}:{self.get_status_display()}>"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    @property
    def recipient_name(self) -> str:
        learner = self.learner
        return learner.get_full_name() or learner.get_username()

    def mark_status(
        self,
        status: str,
        *,
        reason: str | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """Apply a new status and persist timestamp bookkeeping."""

        now = timestamp or timezone.now()
        self.status = status
        self.status_set_at = now

        if status == self.Status.REVOKED:
            self.revoked_at = now
        else:
            self.revoked_at = None

        if reason is not None:
            self.status_reason = reason

        self.save(
            update_fields=[
                "status",
                "status_set_at",
                "revoked_at",
                "status_reason",
                "updated_at",
            ]
        )
