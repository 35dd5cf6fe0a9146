"""Learning activities and the jurisdictional credit they confer."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.choices import CpdCategory
from apps.core.errors import AmbiguousMapping

INTERNATIONAL = "INTL"


def normalise_region_code(value: str | None) -> str:
    """Upper-case and strip a country or state code."""

    return (value or "").strip().upper()


def _normalise_codes(values: Iterable[str] | None) -> list[str]:
    codes: list[str] = []
    for value in values or ():
        code = normalise_region_code(str(value))
        if code and code not in codes:
            codes.append(code)
    return codes


class ActivityQuerySet(models.QuerySet):
    def active(self) -> "ActivityQuerySet":
        return self.filter(active=True)

    def published(self) -> "ActivityQuerySet":
        return self.active().filter(publish_status=Activity.PublishStatus.PUBLISHED)


class Activity(models.Model):
    """A catalogue item learners complete for CPD credit."""

    class ContentType(models.TextChoices):
        LIVE_WEBINAR = "live_webinar", "Live webinar"
        ON_DEMAND_VIDEO = "on_demand_video", "On-demand video"
        ARTICLE = "article", "Article"
        PODCAST = "podcast", "Podcast"
        WORKSHOP = "workshop", "Workshop"
        ASSESSMENT_ONLY = "assessment_only", "Assessment only"
        BUNDLE = "bundle", "Bundle"

    class PublishStatus(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"

    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    content_type = models.CharField(
        max_length=32,
        choices=ContentType.choices,
        default=ContentType.ON_DEMAND_VIDEO,
    )
    publish_status = models.CharField(
        max_length=16,
        choices=PublishStatus.choices,
        default=PublishStatus.DRAFT,
        db_index=True,
    )
    version = models.PositiveIntegerField(default=1)
    active = models.BooleanField(default=True, db_index=True)
    published_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_activities",
    )
    assessment = models.ForeignKey(
        "assessments.Assessment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activities",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActivityQuerySet.as_manager()

    class Meta:
        ordering = ("-updated_at", "-pk")
        verbose_name_plural = "activities"

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.title or 'Untitled'} (v{self.version})"

    @property
    def is_published(self) -> bool:
        return self.publish_status == self.PublishStatus.PUBLISHED


class CreditMapping(models.Model):
    """Credit an activity confers in one country, optionally state-filtered.

    A mapping carries at most one state filter: an allow list (only the listed
    states qualify) or a deny list (every state except the listed ones).
    ``INTL`` mappings apply in every country and ignore state filters.
    """

    class CreditUnit(models.TextChoices):
        HOURS = "hours", "Hours"
        POINTS = "points", "Points"

    class ValidationMethod(models.TextChoices):
        QUIZ = "quiz", "Quiz"
        ATTENDANCE = "attendance", "Attendance"
        OTHER = "other", "Other"

    activity = models.ForeignKey(
        Activity,
        on_delete=models.CASCADE,
        related_name="credit_mappings",
    )
    credential = models.ForeignKey(
        "credentials.Credential",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="credit_mappings",
        help_text="Restrict the mapping to holders of one credential.",
    )
    credit_unit = models.CharField(
        max_length=16,
        choices=CreditUnit.choices,
        default=CreditUnit.HOURS,
    )
    credit_amount = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    credit_category = models.CharField(
        max_length=32,
        choices=CpdCategory.choices,
        default=CpdCategory.GENERAL,
    )
    structured = models.BooleanField(default=True)
    country = models.CharField(max_length=8, db_index=True)
    state_allow_list = models.JSONField(default=list, blank=True)
    state_deny_list = models.JSONField(default=list, blank=True)
    validation_method = models.CharField(
        max_length=16,
        choices=ValidationMethod.choices,
        default=ValidationMethod.QUIZ,
    )
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("activity", "country", "pk")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credit_amount__gt=0),
                name="catalog_mapping_positive_amount",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"{self.activity_id}:{self.country} {self.credit_amount} {self.credit_unit}"

    @property
    def is_international(self) -> bool:
        return self.country == INTERNATIONAL

    def normalise(self) -> None:
        self.country = normalise_region_code(self.country)
        self.state_allow_list = _normalise_codes(self.state_allow_list)
        self.state_deny_list = _normalise_codes(self.state_deny_list)

    def check_state_filters(self) -> None:
        """Raise :class:`AmbiguousMapping` for contradictory state filters."""

        if self.state_allow_list and self.state_deny_list:
            raise AmbiguousMapping()
        if self.is_international and (self.state_allow_list or self.state_deny_list):
            raise AmbiguousMapping(
                "International mappings apply everywhere and cannot filter states."
            )

    def clean(self) -> None:
        super().clean()
        self.normalise()
        try:
            self.check_state_filters()
        except AmbiguousMapping as exc:
            raise ValidationError({"state_deny_list": exc.detail}) from exc

    def save(self, *args, **kwargs):
        self.normalise()
        self.check_state_filters()
        super().save(*args, **kwargs)
