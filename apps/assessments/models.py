"""Assessments, their graded attempts and the per-learner attempt lock."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.choices import CpdActivityType, CpdCategory

from .questions import Question, parse_questions


class AssessmentQuerySet(models.QuerySet):
    def active(self) -> "AssessmentQuerySet":
        return self.filter(active=True)


class Assessment(models.Model):
    """Attempt-limited quiz that can award CPD hours on a pass."""

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    pass_mark = models.PositiveSmallIntegerField(
        default=70,
        validators=[MaxValueValidator(100)],
        help_text="Minimum percentage score required to pass.",
    )
    max_attempts = models.PositiveSmallIntegerField(
        default=3,
        validators=[MinValueValidator(1)],
    )
    time_limit_minutes = models.PositiveSmallIntegerField(null=True, blank=True)
    hours_awarded = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    category = models.CharField(
        max_length=32,
        choices=CpdCategory.choices,
        default=CpdCategory.GENERAL,
    )
    activity_type = models.CharField(
        max_length=32,
        choices=CpdActivityType.choices,
        default=CpdActivityType.STRUCTURED,
    )
    questions = models.JSONField(default=list, blank=True)
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AssessmentQuerySet.as_manager()

    class Meta:
        ordering = ("title", "pk")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return self.title

    def clean(self) -> None:
        super().clean()
        parse_questions(self.questions)

    def parsed_questions(self) -> list[Question]:
        return parse_questions(self.questions)

    @property
    def awards_hours(self) -> bool:
        return self.hours_awarded > 0


class AssessmentAttemptQuerySet(models.QuerySet):
    def for_learner(self, learner) -> "AssessmentAttemptQuerySet":
        return self.filter(learner=learner)

    def completed(self) -> "AssessmentAttemptQuerySet":
        return self.filter(completed_at__isnull=False)


class AssessmentAttempt(models.Model):
    """A graded submission. Rows are written once by the grader."""

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="assessment_attempts",
    )
    assessment = models.ForeignKey(
        Assessment,
        on_delete=models.PROTECT,
        related_name="attempts",
    )
    answers = models.JSONField(default=list)
    score = models.PositiveSmallIntegerField()
    passed = models.BooleanField(default=False, db_index=True)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = AssessmentAttemptQuerySet.as_manager()

    class Meta:
        ordering = ("-completed_at", "-pk")
        indexes = [
            models.Index(fields=("learner", "assessment"), name="assessments_attempt_owner_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"Attempt<{self.learner_id}:{self.assessment_id}:{self.score}>"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Completed assessment attempts cannot be modified.")
        super().save(*args, **kwargs)


class AttemptCounter(models.Model):
    """Row locked while an attempt is counted and inserted.

    One row exists per (learner, assessment); holding it with
    ``select_for_update`` serialises concurrent submissions so the ceiling
    cannot be overshot.
    """

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    assessment = models.ForeignKey(
        Assessment,
        on_delete=models.CASCADE,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=("learner", "assessment"),
                name="assessments_counter_unique_owner",
            ),
        ]
