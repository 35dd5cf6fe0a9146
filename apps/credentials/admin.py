"""Admin configuration for credentials and learner grants."""
from __future__ import annotations

from django.contrib import admin

from .models import Credential, CredentialGrant


@admin.register(Credential)
class CredentialAdmin(admin.ModelAdmin):
    list_display = ("name", "awarding_body", "country", "hours_required", "cycle_length_years")
    search_fields = ("name", "awarding_body")


@admin.register(CredentialGrant)
class CredentialGrantAdmin(admin.ModelAdmin):
    list_display = ("learner", "credential", "jurisdiction", "is_primary", "renewal_deadline")
    list_filter = ("credential", "is_primary")
    search_fields = ("learner__username", "credential__name")
