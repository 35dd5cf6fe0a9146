"""Credit records, supporting evidence, completion rules and allocations."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from apps.core.choices import CpdActivityType, CpdCategory

from .rules import RuleConfig, config_to_dict, parse_rule_config


class CreditRecordQuerySet(models.QuerySet):
    def for_learner(self, learner) -> "CreditRecordQuerySet":
        return self.filter(learner=learner)

    def completed(self) -> "CreditRecordQuerySet":
        return self.filter(status=CreditRecord.Status.COMPLETED)


class CreditRecord(models.Model):
    """Hours a learner earned (or plans to earn) from one activity."""

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"
        IN_PROGRESS = "in_progress", "In progress"
        PLANNED = "planned", "Planned"

    class Provenance(models.TextChoices):
        MANUAL = "manual", "Manual entry"
        PLATFORM = "platform", "Issued by the platform"
        IMPORTED = "imported", "Imported transcript"

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="credit_records",
    )
    title = models.CharField(max_length=255)
    provider = models.CharField(max_length=255, blank=True)
    activity_type = models.CharField(
        max_length=32,
        choices=CpdActivityType.choices,
        default=CpdActivityType.STRUCTURED,
    )
    hours = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.COMPLETED,
        db_index=True,
    )
    category = models.CharField(
        max_length=32,
        choices=CpdCategory.choices,
        default=CpdCategory.GENERAL,
    )
    provenance = models.CharField(
        max_length=16,
        choices=Provenance.choices,
        default=Provenance.MANUAL,
    )
    activity = models.ForeignKey(
        "catalog.Activity",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="credit_records",
    )
    source_attempt = models.OneToOneField(
        "assessments.AssessmentAttempt",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="credit_record",
        help_text="Attempt whose pass produced this record; one record per attempt.",
    )
    progress = models.JSONField(
        default=dict,
        blank=True,
        help_text="Learner progress signals such as watch_percent or attendance_confirmed.",
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CreditRecordQuerySet.as_manager()

    class Meta:
        ordering = ("-date", "-pk")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(hours__gt=0),
                name="records_credit_record_positive_hours",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.title} ({self.hours}h)"

    def allocated_hours(self) -> Decimal:
        if self.pk is None:
            return Decimal("0")
        total = self.allocations.aggregate(total=Sum("hours"))["total"]
        return total or Decimal("0")

    def clean(self) -> None:
        super().clean()
        if self.hours is None:
            return
        allocated = self.allocated_hours()
        if allocated > self.hours:
            raise ValidationError(
                {"hours": f"Hours cannot be lower than the {allocated} already allocated to credentials."}
            )


class Evidence(models.Model):
    """Reference to a file held by the external evidence store."""

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="evidence",
    )
    credit_record = models.ForeignKey(
        CreditRecord,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="evidence",
    )
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=64)
    file_size = models.PositiveIntegerField(default=0)
    storage_key = models.CharField(max_length=512, unique=True)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-uploaded_at", "-pk")
        verbose_name_plural = "evidence"

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return self.file_name

    def save(self, *args, **kwargs):
        self.file_type = (self.file_type or "").strip().lower()
        super().save(*args, **kwargs)


class CompletionRule(models.Model):
    """Criterion a credit record must satisfy before a certificate is issued."""

    class RuleType(models.TextChoices):
        QUIZ_PASS = "quiz_pass", "Quiz pass"
        EVIDENCE_UPLOAD = "evidence_upload", "Evidence upload"
        WATCH_TIME = "watch_time", "Watch time"
        ATTENDANCE = "attendance", "Attendance"

    credit_record = models.ForeignKey(
        CreditRecord,
        on_delete=models.CASCADE,
        related_name="completion_rules",
    )
    name = models.CharField(max_length=255)
    rule_type = models.CharField(max_length=32, choices=RuleType.choices)
    config = models.JSONField(default=dict, blank=True)
    active = models.BooleanField(default=True)
    position = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("position", "pk")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.name} ({self.rule_type})"

    @property
    def typed_config(self) -> RuleConfig:
        return parse_rule_config(self.rule_type, self.config)

    def save(self, *args, **kwargs):
        # Normalise aliases and reject malformed configs before they persist.
        self.config = config_to_dict(parse_rule_config(self.rule_type, self.config))
        super().save(*args, **kwargs)


class CreditAllocation(models.Model):
    """Portion of a credit record's hours counted toward one credential grant."""

    credit_record = models.ForeignKey(
        CreditRecord,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    grant = models.ForeignKey(
        "credentials.CredentialGrant",
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    hours = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("credit_record", "pk")
        constraints = [
            models.UniqueConstraint(
                fields=("credit_record", "grant"),
                name="records_allocation_unique_grant",
            ),
            models.CheckConstraint(
                condition=models.Q(hours__gte=0),
                name="records_allocation_non_negative_hours",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.credit_record_id} -> {self.grant_id}: {self.hours}h"
