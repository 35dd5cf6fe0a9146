"""Celery tasks replaying certificate issuance for passing attempts."""

from __future__ import annotations

from celery import shared_task
from celery.utils.log import get_task_logger

from apps.assessments.models import AssessmentAttempt
from apps.core.errors import IssuanceFailed

from .services import issue_for_attempt

logger = get_task_logger(__name__)


@shared_task(
    bind=True,
    name="apps.certificates.tasks.retry_issuance_for_attempt",
    autoretry_for=(IssuanceFailed,),
    retry_backoff=True,
    max_retries=5,
)
def retry_issuance_for_attempt(self, attempt_id: int) -> int | None:
    """Replay the issuance cascade for ``attempt_id``.

    The cascade is idempotent on the attempt, so replays never duplicate the
    credit record or certificate. Returns the certificate id, if any.
    """

    attempt = AssessmentAttempt.objects.filter(pk=attempt_id).first()
    if attempt is None:
        logger.warning("Attempt %s no longer exists; skipping issuance retry", attempt_id)
        return None

    issuance = issue_for_attempt(attempt)
    if issuance is None:
        logger.info("Attempt %s does not qualify for issuance", attempt_id)
        return None
    return issuance.certificate.pk


@shared_task(name="apps.certificates.tasks.sweep_pending_issuances")
def sweep_pending_issuances(limit: int = 200) -> int:
    """Queue retries for passing attempts that still lack a credit record."""

    pending = list(
        AssessmentAttempt.objects.filter(
            passed=True,
            assessment__hours_awarded__gt=0,
            credit_record__isnull=True,
        )
        .order_by("pk")
        .values_list("pk", flat=True)[:limit]
    )
    for attempt_id in pending:
        retry_issuance_for_attempt.delay(attempt_id)
    if pending:
        logger.info("Queued issuance retries for %s attempt(s)", len(pending))
    return len(pending)
