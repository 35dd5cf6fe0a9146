"""Admin configuration for issued certificates."""
from __future__ import annotations

from django import forms
from django.contrib import admin, messages
from django.contrib.admin.helpers import ActionForm
from django.utils.translation import ngettext

from apps.core.errors import ComplianceError

from .models import Certificate
from .services import revoke_certificate


class CertificateAdminActionForm(ActionForm):
    """Collect the reason recorded against a revocation."""

    reason = forms.CharField(
        required=False,
        label="Reason for revocation",
        widget=forms.Textarea(attrs={"rows": 2}),
    )


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "learner",
        "title",
        "hours",
        "category",
        "status",
        "issued_at",
    )
    list_filter = ("status", "category", "activity_type")
    search_fields = ("code", "title", "learner__username", "learner__email")
    readonly_fields = (
        "code",
        "verification_url",
        "issued_at",
        "status",
        "status_set_at",
        "revoked_at",
        "status_reason",
        "metadata",
        "created_at",
        "updated_at",
    )
    raw_id_fields = ("learner", "credit_record")
    actions = ["action_revoke_certificates"]
    action_form = CertificateAdminActionForm

    def has_delete_permission(self, request, obj=None):  # type: ignore[override]
        return False

    @admin.action(description="Revoke selected certificates")
    def action_revoke_certificates(self, request, queryset):
        reason = (request.POST.get("reason") or "").strip()
        revoked = 0
        skipped = 0
        for certificate in queryset:
            if not certificate.is_active:
                skipped += 1
                continue
            try:
                revoke_certificate(certificate.pk, actor=request.user, reason=reason)
            except ComplianceError as exc:
                self.message_user(request, f"{certificate.code}: {exc.detail}", level=messages.ERROR)
                continue
            revoked += 1

        if revoked:
            message = ngettext(
                "Revoked %(count)d certificate.",
                "Revoked %(count)d certificates.",
                revoked,
            ) % {"count": revoked}
            self.message_user(request, message, level=messages.SUCCESS)
        if skipped:
            warning_message = ngettext(
                "%(count)d certificate was already revoked.",
                "%(count)d certificates were already revoked.",
                skipped,
            ) % {"count": skipped}
            self.message_user(request, warning_message, level=messages.WARNING)
        return None
