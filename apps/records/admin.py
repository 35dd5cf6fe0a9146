"""Admin configuration for credit records and their evidence."""
from __future__ import annotations

from django.contrib import admin

from .models import CompletionRule, CreditAllocation, CreditRecord, Evidence


class CompletionRuleInline(admin.TabularInline):
    model = CompletionRule
    extra = 0


class CreditAllocationInline(admin.TabularInline):
    """Allocations are shown for reference; they change only through ``set_allocations``."""

    model = CreditAllocation
    extra = 0
    fields = ("grant", "hours", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CreditRecord)
class CreditRecordAdmin(admin.ModelAdmin):
    list_display = ("title", "learner", "hours", "category", "status", "provenance", "date")
    list_filter = ("status", "provenance", "category")
    search_fields = ("title", "provider", "learner__username")
    raw_id_fields = ("learner", "activity", "source_attempt")
    inlines = [CompletionRuleInline, CreditAllocationInline]


@admin.register(Evidence)
class EvidenceAdmin(admin.ModelAdmin):
    list_display = ("file_name", "file_type", "learner", "credit_record", "uploaded_at")
    search_fields = ("file_name", "learner__username")
