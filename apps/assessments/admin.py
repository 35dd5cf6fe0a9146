"""Admin configuration for assessments and their attempts."""
from __future__ import annotations

from django.contrib import admin

from .models import Assessment, AssessmentAttempt


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ("title", "pass_mark", "max_attempts", "hours_awarded", "category", "active")
    list_filter = ("active", "category", "activity_type")
    search_fields = ("title",)


@admin.register(AssessmentAttempt)
class AssessmentAttemptAdmin(admin.ModelAdmin):
    list_display = ("assessment", "learner", "score", "passed", "completed_at")
    list_filter = ("passed",)
    search_fields = ("assessment__title", "learner__username")

    def has_change_permission(self, request, obj=None):  # type: ignore[override]
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore[override]
        return False
