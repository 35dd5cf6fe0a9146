"""Admin configuration for catalogue activities and credit mappings."""
from __future__ import annotations

from django.contrib import admin, messages

from apps.core.errors import ComplianceError

from .models import Activity, CreditMapping
from .services import publish_activity, retire_activity


class CreditMappingInline(admin.TabularInline):
    model = CreditMapping
    extra = 0
    fields = (
        "country",
        "credit_amount",
        "credit_unit",
        "credit_category",
        "credential",
        "state_allow_list",
        "state_deny_list",
        "active",
    )


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("title", "content_type", "publish_status", "version", "active", "updated_at")
    list_filter = ("publish_status", "content_type", "active")
    search_fields = ("title", "description")
    readonly_fields = ("version", "publish_status", "published_at", "approved_by", "created_at", "updated_at")
    inlines = [CreditMappingInline]
    actions = ["action_publish", "action_retire"]

    def has_delete_permission(self, request, obj=None):  # type: ignore[override]
        return False

    def save_model(self, request, obj, form, change):  # type: ignore[override]
        if change and form.changed_data:
            obj.version += 1
        super().save_model(request, obj, form, change)

    @admin.action(description="Publish selected activities")
    def action_publish(self, request, queryset):
        for activity in queryset:
            try:
                publish_activity(activity.pk, request.user)
            except ComplianceError as exc:
                self.message_user(request, f"{activity}: {exc.detail}", level=messages.ERROR)
            else:
                self.message_user(request, f"Published {activity.title}.", level=messages.SUCCESS)

    @admin.action(description="Retire selected activities")
    def action_retire(self, request, queryset):
        for activity in queryset:
            retire_activity(activity.pk, request.user)
        self.message_user(request, "Selected activities retired.", level=messages.SUCCESS)


@admin.register(CreditMapping)
class CreditMappingAdmin(admin.ModelAdmin):
    list_display = ("activity", "country", "credit_amount", "credit_unit", "credit_category", "active")
    list_filter = ("country", "credit_category", "active")
    search_fields = ("activity__title", "country")
