"""Models backing the audit trail and persisted application logs."""

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """Record of compliance-relevant events triggered by users or systems."""

    class ActionCode(models.TextChoices):
        ATTEMPT_SUBMITTED = "attempt_submitted", "Submitted assessment attempt"
        ATTEMPTS_EXHAUSTED = "attempts_exhausted", "Rejected attempt over ceiling"
        CERTIFICATE_ISSUED = "certificate_issued", "Issued certificate"
        CERTIFICATE_REVOKED = "certificate_revoked", "Revoked certificate"
        ISSUANCE_FAILED = "issuance_failed", "Certificate issuance failed"
        ALLOCATIONS_UPDATED = "allocations_updated", "Updated credit allocations"
        ACTIVITY_PUBLISHED = "activity_published", "Published activity"
        ACTIVITY_RETIRED = "activity_retired", "Retired activity"
        BATCH_VERIFICATION = "batch_verification", "Ran batch certificate verification"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="compliance_audit_logs",
        null=True,
        blank=True,
    )
    resolved_role = models.CharField(max_length=32, blank=True)
    action_code = models.CharField(max_length=64, choices=ActionCode.choices)
    target = models.CharField(max_length=255, blank=True)
    endpoint = models.CharField(max_length=255, blank=True)
    client_ip = models.GenericIPAddressField(blank=True, null=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    context = models.JSONField(blank=True, default=dict)

    class Meta:
        ordering = ("-timestamp", "-id")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        identifier = self.user or "system"
        return f"{self.timestamp:%Y-%m-%d %H:%M:%S} - {identifier} - {self.action_code}"


class LogEntry(models.Model):
    """Application log record persisted by ``DatabaseLogHandler``."""

    class Level(models.TextChoices):
        DEBUG = "DEBUG", "Debug"
        INFO = "INFO", "Info"
        WARNING = "WARNING", "Warning"
        ERROR = "ERROR", "Error"
        CRITICAL = "CRITICAL", "Critical"

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    logger_name = models.CharField(max_length=255, db_index=True)
    level = models.CharField(max_length=16, choices=Level.choices)
    message = models.TextField()
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="compliance_logs",
    )
    context = models.JSONField(blank=True, null=True)

    class Meta:
        ordering = ("-timestamp", "-id")
        verbose_name_plural = "log entries"

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"[{self.level}] {self.logger_name}: {self.message[:75]}"
