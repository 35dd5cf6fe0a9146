"""Tests for the certificate admin revoke action."""
from __future__ import annotations

import pytest
from django.contrib import messages
from django.contrib.admin.sites import AdminSite
from django.test import Client, RequestFactory
from django.urls import reverse

from apps.certificates.admin import CertificateAdmin
from apps.certificates.models import Certificate
from apps.certificates.services import create_certificate, revoke_certificate


@pytest.fixture
def request_factory():
    return RequestFactory()


def _build_admin():
    admin_instance = CertificateAdmin(Certificate, AdminSite())
    captured_messages: list[tuple[str, int]] = []

    def _capture_message(
        request,
        message,
        level=messages.INFO,
        extra_tags="",
        fail_silently=False,
    ):
        captured_messages.append((message, level))

    admin_instance.message_user = _capture_message  # type: ignore[method-assign]
    return admin_instance, captured_messages


@pytest.mark.django_db
def test_revoke_action_goes_through_revocation_service(
    request_factory, admin_user, learner, record_factory
):
    active = create_certificate(record=record_factory(learner), metadata={})
    already = create_certificate(record=record_factory(learner), metadata={})
    revoke_certificate(already.pk, actor=learner)
    admin_instance, captured = _build_admin()

    request = request_factory.post("/admin/certificates/certificate/", {"reason": " Fraudulent evidence "})
    request.user = admin_user
    admin_instance.action_revoke_certificates(request, Certificate.objects.filter(pk__in=[active.pk, already.pk]))

    active.refresh_from_db()
    assert active.status == Certificate.Status.REVOKED
    assert active.status_reason == "Fraudulent evidence"
    assert ("Revoked 1 certificate.", messages.SUCCESS) in captured
    assert ("1 certificate was already revoked.", messages.WARNING) in captured


@pytest.mark.django_db
def test_certificates_cannot_be_deleted_from_the_admin(request_factory, user_factory):
    superuser = user_factory("certificates-superuser", role=None, superuser=True)
    admin_instance = CertificateAdmin(Certificate, AdminSite())
    request = request_factory.get("/admin/certificates/certificate/")
    request.user = superuser

    assert admin_instance.has_delete_permission(request) is False
    assert "delete_selected" not in admin_instance.get_actions(request)


@pytest.mark.django_db
def test_bulk_delete_post_leaves_certificates_in_place(user_factory, learner, record_factory):
    superuser = user_factory("certificates-superuser", role=None, superuser=True)
    certificate = create_certificate(record=record_factory(learner), metadata={})
    client = Client()
    client.force_login(superuser)

    client.post(
        reverse("admin:certificates_certificate_changelist"),
        {"action": "delete_selected", "_selected_action": [certificate.pk], "post": "yes"},
    )

    assert Certificate.objects.filter(pk=certificate.pk).exists()
