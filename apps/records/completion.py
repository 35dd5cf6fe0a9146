"""Evaluate completion rules for a credit record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from apps.assessments.models import AssessmentAttempt
from apps.certificates.services import issue_for_completion
from apps.core.errors import InvalidCompletionRule, NotFound, Unauthorized

from .models import CompletionRule, CreditRecord
from .rules import AttendanceConfig, EvidenceUploadConfig, QuizPassConfig, WatchTimeConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleEvaluation:
    rule_id: int
    rule_name: str
    rule_type: str
    passed: bool
    detail: str

    def summary(self) -> dict[str, Any]:
        return {"name": self.rule_name, "type": self.rule_type, "passed": self.passed}


@dataclass(frozen=True)
class CompletionResult:
    record: CreditRecord
    rules: list[RuleEvaluation]

    @property
    def all_passed(self) -> bool:
        return all(rule.passed for rule in self.rules)

    @property
    def eligible_for_certificate(self) -> bool:
        return self.all_passed


def _evaluate_quiz_pass(record: CreditRecord, config: QuizPassConfig) -> tuple[bool, str]:
    """A rule with ``min_score`` judges the best completed score against that
    threshold and ignores each attempt's ``passed`` flag, so a rule may ask
    for more (or less) than the assessment's own pass mark. Without it any
    passed attempt satisfies the rule.
    """

    attempts = AssessmentAttempt.objects.completed().filter(
        learner_id=record.learner_id,
        assessment_id=config.quiz_id,
    )
    if config.min_score is not None:
        best = attempts.order_by("-score").values_list("score", flat=True).first()
        if best is not None and best >= config.min_score:
            return True, f"Best score {best}% meets the required {config.min_score}%."
        return False, f"A score of at least {config.min_score}% is required."

    if attempts.filter(passed=True).exists():
        return True, "Assessment passed."
    return False, "The linked assessment has not been passed yet."


def _evaluate_evidence_upload(record: CreditRecord, config: EvidenceUploadConfig) -> tuple[bool, str]:
    evidence_types = list(record.evidence.values_list("file_type", flat=True))
    count = len(evidence_types)
    if count < config.min_files:
        return False, f"{count} of {config.min_files} required file(s) uploaded."

    missing = [file_type for file_type in config.required_types if file_type not in evidence_types]
    if missing:
        return False, f"Missing required file type(s): {', '.join(missing)}."
    return True, f"{count} file(s) uploaded."


def _evaluate_watch_time(record: CreditRecord, config: WatchTimeConfig) -> tuple[bool, str]:
    raw = (record.progress or {}).get("watch_percent", 0)
    try:
        watched = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        watched = Decimal("0")
    if watched >= config.min_watch_percent:
        return True, f"Watched {watched}% of the content."
    return False, f"Watched {watched}% of {config.min_watch_percent}% required."


def _evaluate_attendance(record: CreditRecord, config: AttendanceConfig) -> tuple[bool, str]:
    if not config.confirmation_required:
        return True, "Attendance confirmation not required."
    if (record.progress or {}).get("attendance_confirmed") is True:
        return True, "Attendance confirmed."
    return False, "Attendance has not been confirmed."


_EVALUATORS: dict[type, Callable[[CreditRecord, Any], tuple[bool, str]]] = {
    QuizPassConfig: _evaluate_quiz_pass,
    EvidenceUploadConfig: _evaluate_evidence_upload,
    WatchTimeConfig: _evaluate_watch_time,
    AttendanceConfig: _evaluate_attendance,
}


def evaluate_rule(record: CreditRecord, rule: CompletionRule) -> RuleEvaluation:
    try:
        config = rule.typed_config
    except InvalidCompletionRule as exc:
        logger.warning("Completion rule %s has an invalid config: %s", rule.pk, exc.detail)
        passed, detail = False, f"Invalid rule configuration: {exc.detail}"
    else:
        passed, detail = _EVALUATORS[type(config)](record, config)

    return RuleEvaluation(
        rule_id=rule.pk,
        rule_name=rule.name,
        rule_type=rule.rule_type,
        passed=passed,
        detail=detail,
    )


def load_owned_record(learner, record_id: int) -> CreditRecord:
    record = CreditRecord.objects.filter(pk=record_id).first()
    if record is None:
        raise NotFound("Credit record not found.")
    if record.learner_id != learner.pk:
        raise Unauthorized("Credit record belongs to another learner.")
    return record


def evaluate_record(record: CreditRecord) -> CompletionResult:
    rules = record.completion_rules.filter(active=True).order_by("position", "pk")
    return CompletionResult(record=record, rules=[evaluate_rule(record, rule) for rule in rules])


def evaluate_completion(learner, record_id: int) -> CompletionResult:
    """Evaluate every active rule of ``record_id``.

    A record without rules is trivially complete.
    """

    return evaluate_record(load_owned_record(learner, record_id))


@dataclass(frozen=True)
class CompletionIssuance:
    result: CompletionResult
    certificate: Any = None
    created: bool = False


def issue_for_record(learner, record_id: int) -> CompletionIssuance:
    """Issue a certificate for ``record_id`` once all of its rules pass."""

    result = evaluate_completion(learner, record_id)
    if not result.all_passed:
        return CompletionIssuance(result=result)

    certificate, created = issue_for_completion(
        result.record,
        [evaluation.summary() for evaluation in result.rules],
    )
    return CompletionIssuance(result=result, certificate=certificate, created=created)
