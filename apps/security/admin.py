"""Admin registrations for audit trail and persisted logs."""

from django.contrib import admin

from .models import AuditLog, LogEntry


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "user",
        "resolved_role",
        "action_code",
        "target",
        "endpoint",
    )
    list_filter = ("action_code", "resolved_role", "timestamp")
    search_fields = ("user__username", "user__email", "target", "endpoint")
    readonly_fields = ("timestamp",)


@admin.register(LogEntry)
class LogEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "level", "logger_name", "message", "user")
    list_filter = ("level", "logger_name")
    search_fields = ("message", "logger_name", "user__username")
    readonly_fields = ("timestamp",)
