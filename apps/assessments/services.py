"""Grade assessment submissions under an atomic attempt ceiling."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

from django.db import transaction
from django.utils import timezone

from apps.certificates.services import issue_for_attempt
from apps.certificates.tasks import retry_issuance_for_attempt
from apps.core.errors import AttemptsExhausted, IssuanceFailed, MalformedSubmission, NotFound
from apps.security.models import AuditLog
from apps.security.utils import log_audit_event

from .models import Assessment, AssessmentAttempt, AttemptCounter
from .questions import Question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionResult:
    question_index: int
    selected_answer: int
    correct_answer: int
    is_correct: bool
    explanation: str


@dataclass(frozen=True)
class GradeResult:
    score: int
    passed: bool
    correct_count: int
    question_results: list[QuestionResult]


@dataclass
class SubmissionResult:
    attempt: AssessmentAttempt
    question_results: list[QuestionResult]
    attempts_used: int
    attempts_remaining: int
    issuance: Any = None
    issuance_pending: bool = False
    messages: list[str] = field(default_factory=list)


def percentage_score(correct: int, total: int) -> int:
    """Return ``correct / total`` as a whole percentage, rounding halves up."""

    if total <= 0:
        raise ValueError("Cannot score an assessment without questions.")
    ratio = Decimal(correct * 100) / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def grade_answers(questions: Sequence[Question], answers: Sequence[int], pass_mark: int) -> GradeResult:
    """Score ``answers`` against ``questions``; lengths must already match."""

    results = [
        QuestionResult(
            question_index=index,
            selected_answer=answer,
            correct_answer=question.correct_index,
            is_correct=answer == question.correct_index,
            explanation=question.explanation,
        )
        for index, (question, answer) in enumerate(zip(questions, answers))
    ]
    correct = sum(1 for result in results if result.is_correct)
    score = percentage_score(correct, len(questions))
    return GradeResult(
        score=score,
        passed=score >= pass_mark,
        correct_count=correct,
        question_results=results,
    )


def _validate_answers(answers: Any, question_count: int) -> list[int]:
    if question_count == 0:
        raise MalformedSubmission("This assessment has no questions to answer.")
    if not isinstance(answers, (list, tuple)):
        raise MalformedSubmission("Answers must be a list of option indices.")
    if len(answers) != question_count:
        raise MalformedSubmission(
            f"Expected {question_count} answers, got {len(answers)}.",
            expected=question_count,
            received=len(answers),
        )
    if any(isinstance(answer, bool) or not isinstance(answer, int) for answer in answers):
        raise MalformedSubmission("Every answer must be an integer option index.")
    return list(answers)


def load_active_assessment(assessment_id: int) -> Assessment:
    assessment = Assessment.objects.active().filter(pk=assessment_id).first()
    if assessment is None:
        raise NotFound("Assessment not found.")
    return assessment


def _lock_counter(learner, assessment: Assessment) -> AttemptCounter:
    counter, _ = AttemptCounter.objects.get_or_create(learner=learner, assessment=assessment)
    return AttemptCounter.objects.select_for_update().get(pk=counter.pk)


def submit_attempt(learner, assessment_id: int, answers: Any) -> SubmissionResult:
    """Grade a submission and, on a pass, run the issuance cascade.

    Counting prior attempts and inserting the new one happen in a single
    transaction while the learner's counter row is locked, so concurrent
    submissions cannot exceed ``max_attempts``.
    """

    started_at = timezone.now()
    assessment = load_active_assessment(assessment_id)
    questions = assessment.parsed_questions()

    try:
        with transaction.atomic():
            _lock_counter(learner, assessment)
            attempts_used = AssessmentAttempt.objects.filter(
                learner=learner, assessment=assessment
            ).count()
            if attempts_used >= assessment.max_attempts:
                raise AttemptsExhausted(
                    attempts_used=attempts_used,
                    max_attempts=assessment.max_attempts,
                )

            valid_answers = _validate_answers(answers, len(questions))
            grade = grade_answers(questions, valid_answers, assessment.pass_mark)
            attempt = AssessmentAttempt.objects.create(
                learner=learner,
                assessment=assessment,
                answers=valid_answers,
                score=grade.score,
                passed=grade.passed,
                started_at=started_at,
                completed_at=timezone.now(),
            )
    except AttemptsExhausted as exc:
        logger.warning(
            "Attempt ceiling reached for assessment %s",
            assessment.pk,
            extra={"learner": learner, "attempts_used": exc.attempts_used},
        )
        log_audit_event(
            action_code=AuditLog.ActionCode.ATTEMPTS_EXHAUSTED,
            user=learner,
            target=f"Assessment:{assessment.pk}",
            context={"attempts_used": exc.attempts_used, "max_attempts": exc.max_attempts},
        )
        raise

    attempts_used += 1
    logger.info(
        "Graded attempt %s for assessment %s: %s%%",
        attempt.pk,
        assessment.pk,
        grade.score,
        extra={"learner": learner, "passed": grade.passed},
    )
    log_audit_event(
        action_code=AuditLog.ActionCode.ATTEMPT_SUBMITTED,
        user=learner,
        target=f"Assessment:{assessment.pk}",
        context={
            "attempt_id": attempt.pk,
            "score": grade.score,
            "passed": grade.passed,
            "attempts_used": attempts_used,
        },
    )

    result = SubmissionResult(
        attempt=attempt,
        question_results=grade.question_results,
        attempts_used=attempts_used,
        attempts_remaining=max(assessment.max_attempts - attempts_used, 0),
    )

    if grade.passed and assessment.awards_hours:
        try:
            result.issuance = issue_for_attempt(attempt)
        except IssuanceFailed:
            logger.error("Issuance failed for attempt %s; queued for retry", attempt.pk)
            result.issuance_pending = True
            result.messages.append("Your certificate is being issued and will appear shortly.")
            retry_issuance_for_attempt.delay(attempt.pk)

    return result


@dataclass(frozen=True)
class AssessmentOverview:
    assessment: Assessment
    questions: list[dict[str, Any]]
    attempts: list[AssessmentAttempt]

    @property
    def attempts_used(self) -> int:
        return len(self.attempts)

    @property
    def attempts_remaining(self) -> int:
        return max(self.assessment.max_attempts - self.attempts_used, 0)

    @property
    def has_passed(self) -> bool:
        return any(attempt.passed for attempt in self.attempts)


def public_questions(assessment: Assessment) -> list[dict[str, Any]]:
    """Questions with correct indices and explanations withheld."""

    return [question.to_public_dict() for question in assessment.parsed_questions()]


def assessment_overview(learner, assessment_id: int) -> AssessmentOverview:
    """Learner-facing view of an assessment with answers withheld."""

    assessment = load_active_assessment(assessment_id)
    attempts = list(
        AssessmentAttempt.objects.filter(learner=learner, assessment=assessment).order_by("-completed_at", "-pk")
    )
    return AssessmentOverview(
        assessment=assessment,
        questions=public_questions(assessment),
        attempts=attempts,
    )
