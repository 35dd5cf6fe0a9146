"""Domain errors raised by the compliance engine services.

Every error carries a stable ``code`` and the HTTP status the API layer maps
it to. Additional keyword arguments are preserved in ``extra`` and rendered
alongside the message so clients can react programmatically (for example the
remaining attempt budget when a ceiling is reached).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class ComplianceError(Exception):
    """Base class for recoverable compliance engine failures."""

    code = "compliance_error"
    status_code = 400
    default_detail = "The request could not be processed."

    def __init__(self, detail: str | None = None, **extra: Any) -> None:
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "detail": self.detail}
        payload.update(self.extra)
        return payload


class NotFound(ComplianceError):
    code = "not_found"
    status_code = 404
    default_detail = "The requested resource does not exist or is inactive."


class Unauthorized(ComplianceError):
    code = "unauthorized"
    status_code = 403
    default_detail = "You do not own the referenced records."


class MalformedSubmission(ComplianceError):
    code = "malformed_submission"
    status_code = 400
    default_detail = "The submitted answers do not match the assessment."


class AttemptsExhausted(ComplianceError):
    code = "attempts_exhausted"
    status_code = 403
    default_detail = "Maximum attempts reached for this assessment."

    def __init__(self, *, attempts_used: int, max_attempts: int, detail: str | None = None) -> None:
        super().__init__(
            detail,
            attempts_used=attempts_used,
            max_attempts=max_attempts,
        )
        self.attempts_used = attempts_used
        self.max_attempts = max_attempts


class AllocationExceedsRecord(ComplianceError):
    code = "allocation_exceeds_record"
    status_code = 400
    default_detail = "Allocated hours exceed the hours of the credit record."

    def __init__(self, *, total_allocated: Decimal, record_hours: Decimal) -> None:
        super().__init__(
            f"Total allocated ({total_allocated}) exceeds record hours ({record_hours}).",
            total_allocated=str(total_allocated),
            record_hours=str(record_hours),
        )
        self.total_allocated = total_allocated
        self.record_hours = record_hours


class InvalidAllocation(ComplianceError):
    code = "invalid_allocation"
    status_code = 400
    default_detail = "The allocation request is invalid."


class AmbiguousMapping(ComplianceError):
    code = "ambiguous_mapping"
    status_code = 400
    default_detail = "A credit mapping cannot declare both a state allow list and a deny list."


class InvalidCompletionRule(ComplianceError):
    code = "invalid_completion_rule"
    status_code = 400
    default_detail = "The completion rule configuration is invalid."


class ActivityNotPublishable(ComplianceError):
    code = "activity_not_publishable"
    status_code = 400
    default_detail = "The activity cannot be published."


class IneligibleForIssuance(ComplianceError):
    code = "ineligible_for_issuance"
    status_code = 400
    default_detail = "The attempt or record does not qualify for a certificate."


class CodeGenerationExhausted(ComplianceError):
    code = "code_generation_exhausted"
    status_code = 503
    default_detail = "Unable to allocate a unique certificate code."


class IssuanceFailed(ComplianceError):
    code = "issuance_failed"
    status_code = 503
    default_detail = "Certificate issuance failed; it can be retried safely."


__all__ = [
    "ActivityNotPublishable",
    "AllocationExceedsRecord",
    "AmbiguousMapping",
    "AttemptsExhausted",
    "CodeGenerationExhausted",
    "ComplianceError",
    "IneligibleForIssuance",
    "InvalidAllocation",
    "InvalidCompletionRule",
    "IssuanceFailed",
    "MalformedSubmission",
    "NotFound",
    "Unauthorized",
]
