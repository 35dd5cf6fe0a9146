"""Issuance cascade, revocation and public verification of certificates.

A passing attempt that awards hours produces exactly one credit record and
one certificate, created together in a single transaction. The record's
``source_attempt`` column is unique, so replaying the cascade for the same
attempt returns the pair that already exists instead of creating a second.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from apps.assessments.models import AssessmentAttempt
from apps.core.errors import (
    CodeGenerationExhausted,
    IneligibleForIssuance,
    IssuanceFailed,
    MalformedSubmission,
    NotFound,
    Unauthorized,
)
from apps.credentials.services import primary_credential_name
from apps.records.allocation import apply_default_allocation
from apps.records.models import CreditRecord
from apps.security.models import AuditLog
from apps.security.utils import log_audit_event
from apps.users.permissions import is_compliance_admin

from .codes import build_verification_url, generate_certificate_code
from .models import Certificate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Issuance:
    credit_record: CreditRecord
    certificate: Certificate
    created: bool = True


def _setting(name: str, default: Any) -> Any:
    return getattr(settings, name, default)


def create_certificate(
    *,
    record: CreditRecord,
    metadata: Mapping[str, Any],
    code_factory: Callable[[], str] | None = None,
) -> Certificate:
    """Create the certificate for ``record`` under a fresh unique code.

    Each insert runs in its own savepoint; a unique-code violation only rolls
    back that insert and a new code is drawn. After the configured number of
    collisions :class:`CodeGenerationExhausted` is raised and the enclosing
    transaction is expected to roll back. Callers report the exhaustion once
    that transaction has ended so the log entry is not rolled back with it.
    """

    factory = code_factory or generate_certificate_code
    budget = int(_setting("CERTIFICATE_CODE_MAX_RETRIES", 5))
    credential_name = primary_credential_name(record.learner)

    for attempt_number in range(1, budget + 1):
        code = factory()
        try:
            with transaction.atomic():
                return Certificate.objects.create(
                    learner=record.learner,
                    code=code,
                    title=record.title,
                    credential_name=credential_name,
                    hours=record.hours,
                    category=record.category,
                    activity_type=record.activity_type,
                    provider=record.provider,
                    completed_date=record.date,
                    verification_url=build_verification_url(code),
                    credit_record=record,
                    metadata=dict(metadata),
                )
        except IntegrityError:
            if not Certificate.objects.filter(code=code).exists():
                raise
            logger.warning(
                "Certificate code collision (%s/%s); regenerating",
                attempt_number,
                budget,
                extra={"certificate_code": code},
            )

    raise CodeGenerationExhausted(attempts=budget)


def _log_code_exhaustion(exc: CodeGenerationExhausted, *, learner, target: str) -> None:
    logger.error(
        "Certificate code budget exhausted for %s after %s collisions",
        target,
        exc.extra.get("attempts"),
        extra={"learner": learner},
    )


def _attempt_metadata(attempt: AssessmentAttempt) -> dict[str, Any]:
    return {
        "assessment_id": attempt.assessment_id,
        "attempt_id": attempt.pk,
        "score": attempt.score,
    }


def _existing_issuance(attempt: AssessmentAttempt) -> Issuance | None:
    record = (
        CreditRecord.objects.select_related("learner")
        .filter(source_attempt=attempt)
        .first()
    )
    if record is None:
        return None

    certificate = record.certificates.order_by("pk").first()
    if certificate is not None:
        return Issuance(credit_record=record, certificate=certificate, created=False)

    # The certificate row was removed out of band; restore it for the record.
    with transaction.atomic():
        certificate = create_certificate(record=record, metadata=_attempt_metadata(attempt))
    return Issuance(credit_record=record, certificate=certificate, created=True)


def _run_cascade(attempt: AssessmentAttempt) -> Issuance:
    assessment = attempt.assessment
    with transaction.atomic():
        record = CreditRecord.objects.create(
            learner=attempt.learner,
            title=f"Quiz: {assessment.title}",
            provider=_setting("CERTIFICATE_PROVIDER_NAME", "AuditReadyCPD"),
            activity_type=assessment.activity_type,
            hours=assessment.hours_awarded,
            date=timezone.localdate(),
            status=CreditRecord.Status.COMPLETED,
            category=assessment.category,
            provenance=CreditRecord.Provenance.PLATFORM,
            activity=assessment.activities.filter(active=True).order_by("pk").first(),
            source_attempt=attempt,
        )
        certificate = create_certificate(record=record, metadata=_attempt_metadata(attempt))
        apply_default_allocation(record)
    return Issuance(credit_record=record, certificate=certificate, created=True)


def _record_issued(issuance: Issuance, *, source: str, context: Mapping[str, Any] | None = None) -> None:
    certificate = issuance.certificate
    logger.info(
        "Issued certificate %s for credit record %s",
        certificate.code,
        issuance.credit_record.pk,
        extra={"learner": certificate.learner, "source": source},
    )
    log_audit_event(
        action_code=AuditLog.ActionCode.CERTIFICATE_ISSUED,
        user=certificate.learner,
        target=f"Certificate:{certificate.code}",
        context={
            "source": source,
            "credit_record_id": issuance.credit_record.pk,
            "hours": certificate.hours,
            **(context or {}),
        },
    )


def issue_for_attempt(attempt: AssessmentAttempt) -> Issuance | None:
    """Run the issuance cascade for a passing attempt.

    Returns ``None`` when the attempt did not pass or the assessment awards
    no hours. Transient storage failures are retried; once the budget is
    spent :class:`IssuanceFailed` is raised and the attempt can be replayed
    later without re-grading.
    """

    attempt = AssessmentAttempt.objects.select_related("assessment", "learner").get(pk=attempt.pk)
    if not attempt.passed or not attempt.assessment.awards_hours:
        return None

    existing = _existing_issuance(attempt)
    if existing is not None:
        return existing

    retries = int(_setting("ISSUANCE_TRANSACTION_RETRIES", 3))
    last_error: Exception | None = None
    for try_number in range(1, retries + 1):
        try:
            issuance = _run_cascade(attempt)
        except CodeGenerationExhausted as exc:
            _log_code_exhaustion(exc, learner=attempt.learner, target=f"AssessmentAttempt:{attempt.pk}")
            raise
        except IntegrityError:
            # A concurrent cascade for this attempt won the unique source_attempt race.
            existing = _existing_issuance(attempt)
            if existing is None:
                raise
            return existing
        except OperationalError as exc:
            last_error = exc
            logger.warning(
                "Issuance transaction failed for attempt %s (%s/%s): %s",
                attempt.pk,
                try_number,
                retries,
                exc,
            )
            continue

        _record_issued(issuance, source="assessment", context={"attempt_id": attempt.pk})
        return issuance

    log_audit_event(
        action_code=AuditLog.ActionCode.ISSUANCE_FAILED,
        user=attempt.learner,
        target=f"AssessmentAttempt:{attempt.pk}",
        context={"attempt_id": attempt.pk, "error": str(last_error)},
    )
    raise IssuanceFailed(attempt_id=attempt.pk) from last_error


def reissue_for_attempt(attempt_id: int, *, actor) -> Issuance:
    """Replay the cascade for one of the actor's attempts on demand.

    Administrators may replay any attempt.
    """

    attempt = AssessmentAttempt.objects.filter(pk=attempt_id).first()
    if attempt is None:
        raise NotFound("Attempt not found.")
    if attempt.learner_id != actor.pk and not is_compliance_admin(actor):
        raise Unauthorized("Attempt belongs to another learner.")

    issuance = issue_for_attempt(attempt)
    if issuance is None:
        raise IneligibleForIssuance(
            "Only passing attempts on assessments that award hours receive certificates."
        )
    return issuance


def issue_for_completion(
    record: CreditRecord,
    rule_summary: Iterable[Mapping[str, Any]],
) -> tuple[Certificate, bool]:
    """Issue the certificate for a record whose completion rules all passed.

    Returns ``(certificate, created)``; an existing active certificate for the
    record is returned unchanged.
    """

    try:
        with transaction.atomic():
            locked = CreditRecord.objects.select_for_update().select_related("learner").get(pk=record.pk)
            existing = Certificate.objects.active_for_record(locked)
            if existing is not None:
                return existing, False

            certificate = create_certificate(
                record=locked,
                metadata={"completion_rules": list(rule_summary)},
            )
            if locked.status != CreditRecord.Status.COMPLETED:
                locked.status = CreditRecord.Status.COMPLETED
                locked.save(update_fields=["status", "updated_at"])
    except CodeGenerationExhausted as exc:
        _log_code_exhaustion(exc, learner=record.learner, target=f"CreditRecord:{record.pk}")
        raise

    _record_issued(
        Issuance(credit_record=locked, certificate=certificate),
        source="completion_rules",
    )
    return certificate, True


def revoke_certificate(certificate_id: int, *, actor, reason: str = "") -> Certificate:
    """Soft-revoke a certificate. Revoking twice is a no-op."""

    with transaction.atomic():
        certificate = (
            Certificate.objects.select_for_update().filter(pk=certificate_id).first()
        )
        if certificate is None:
            raise NotFound("Certificate not found.")
        if certificate.learner_id != actor.pk and not is_compliance_admin(actor):
            raise Unauthorized("Only the holder or an administrator may revoke a certificate.")
        if not certificate.is_active:
            return certificate
        certificate.mark_status(Certificate.Status.REVOKED, reason=reason)

    logger.info(
        "Revoked certificate %s",
        certificate.code,
        extra={"user": actor, "reason": reason},
    )
    log_audit_event(
        action_code=AuditLog.ActionCode.CERTIFICATE_REVOKED,
        user=actor,
        target=f"Certificate:{certificate.code}",
        context={"certificate_code": certificate.code, "reason": reason},
    )
    return certificate


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of looking up a certificate code."""

    code: str
    status: str
    certificate: Certificate | None = None

    NOT_FOUND = "not_found"

    @property
    def valid(self) -> bool:
        return self.status == Certificate.Status.ACTIVE

    def as_payload(self) -> dict[str, Any]:
        certificate = self.certificate
        if certificate is None:
            return {
                "valid": False,
                "status": self.NOT_FOUND,
                "code": self.code,
                "message": "Certificate not found.",
            }

        payload: dict[str, Any] = {
            "valid": self.valid,
            "status": certificate.status,
            "code": certificate.code,
            "title": certificate.title,
            "recipient_name": certificate.recipient_name,
            "issued_date": certificate.issued_at.isoformat(),
        }
        if not self.valid:
            payload["revoked_at"] = (
                certificate.revoked_at.isoformat() if certificate.revoked_at else None
            )
            payload["message"] = "This certificate has been revoked and is no longer valid."
            return payload

        payload.update(
            {
                "hours": str(certificate.hours),
                "category": certificate.category,
                "activity_type": certificate.activity_type,
                "credential_name": certificate.credential_name or None,
                "provider": certificate.provider,
                "completed_date": certificate.completed_date.isoformat(),
            }
        )
        return payload


def _result_for(code: str, certificate: Certificate | None) -> VerificationResult:
    if certificate is None:
        return VerificationResult(code=code, status=VerificationResult.NOT_FOUND)
    return VerificationResult(code=code, status=certificate.status, certificate=certificate)


def verify_certificate(code: str) -> VerificationResult:
    """Look up ``code`` for public verification; unknown codes are not errors."""

    code = (code or "").strip()
    return _result_for(code, Certificate.objects.by_code(code))


@dataclass(frozen=True)
class BatchVerification:
    results: list[VerificationResult]

    @property
    def total_checked(self) -> int:
        return len(self.results)

    @property
    def valid_count(self) -> int:
        return sum(1 for result in self.results if result.valid)

    @property
    def invalid_count(self) -> int:
        return self.total_checked - self.valid_count


def verify_certificates(codes: Iterable[Any], *, actor=None) -> BatchVerification:
    """Verify up to ``VERIFY_BATCH_MAX_CODES`` codes in one lookup."""

    if isinstance(codes, (str, bytes)) or not isinstance(codes, Iterable):
        raise MalformedSubmission("'codes' must be a list of certificate codes.")

    ordered: list[str] = []
    for raw in codes:
        if not isinstance(raw, str) or not raw.strip():
            raise MalformedSubmission("Every certificate code must be a non-empty string.")
        code = raw.strip()
        if code not in ordered:
            ordered.append(code)

    limit = int(_setting("VERIFY_BATCH_MAX_CODES", 100))
    if not ordered:
        raise MalformedSubmission("Provide at least one certificate code.")
    if len(ordered) > limit:
        raise MalformedSubmission(f"At most {limit} codes can be verified at once.", limit=limit)

    found = {
        certificate.code: certificate
        for certificate in Certificate.objects.select_related("learner").filter(code__in=ordered)
    }
    batch = BatchVerification(results=[_result_for(code, found.get(code)) for code in ordered])

    log_audit_event(
        action_code=AuditLog.ActionCode.BATCH_VERIFICATION,
        user=actor,
        target="Certificates",
        context={
            "total_checked": batch.total_checked,
            "valid": batch.valid_count,
            "invalid": batch.invalid_count,
        },
    )
    return batch


__all__ = [
    "BatchVerification",
    "Issuance",
    "VerificationResult",
    "create_certificate",
    "issue_for_attempt",
    "issue_for_completion",
    "reissue_for_attempt",
    "revoke_certificate",
    "verify_certificate",
    "verify_certificates",
]
