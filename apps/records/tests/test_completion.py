from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.assessments.services import submit_attempt
from apps.certificates.models import Certificate
from apps.core.errors import InvalidCompletionRule, NotFound, Unauthorized
from apps.records.completion import evaluate_completion, issue_for_record
from apps.records.models import CompletionRule, CreditRecord
from tests.utils import answers_with_correct, attach_evidence


pytestmark = pytest.mark.django_db


@pytest.fixture
def record(learner, record_factory):
    return record_factory(learner)


def _rule(record, rule_type, config, **fields):
    return CompletionRule.objects.create(
        credit_record=record,
        name=fields.pop("name", rule_type.replace("_", " ").title()),
        rule_type=rule_type,
        config=config,
        **fields,
    )


def _submit(learner, assessment, correct):
    with patch("apps.assessments.services.issue_for_attempt", return_value=None):
        return submit_attempt(learner, assessment.pk, answers_with_correct(correct, 4))


def test_record_without_rules_is_complete(record, learner):
    result = evaluate_completion(learner, record.pk)

    assert result.rules == []
    assert result.all_passed is True
    assert result.eligible_for_certificate is True


def test_quiz_pass_rule_needs_a_passing_attempt(record, learner, assessment_factory):
    assessment = assessment_factory()
    _rule(record, "quiz_pass", {"quizId": assessment.pk})
    _submit(learner, assessment, 1)

    assert evaluate_completion(learner, record.pk).all_passed is False

    _submit(learner, assessment, 4)
    assert evaluate_completion(learner, record.pk).all_passed is True


def test_quiz_pass_rule_with_min_score_uses_best_score(record, learner, assessment_factory):
    assessment = assessment_factory(pass_mark=90)
    _rule(record, "quiz_pass", {"quiz_id": assessment.pk, "min_score": 75})
    _submit(learner, assessment, 2)
    _submit(learner, assessment, 3)

    (evaluation,) = evaluate_completion(learner, record.pk).rules

    assert evaluation.passed is True
    assert evaluation.detail == "Best score 75% meets the required 75%."


def test_quiz_pass_rule_with_min_score_ignores_the_passed_flag(record, learner, assessment_factory):
    assessment = assessment_factory(pass_mark=50)
    _rule(record, "quiz_pass", {"quiz_id": assessment.pk, "min_score": 90})
    attempt = _submit(learner, assessment, 3).attempt

    (evaluation,) = evaluate_completion(learner, record.pk).rules

    assert attempt.passed is True
    assert evaluation.passed is False
    assert evaluation.detail == "A score of at least 90% is required."


def test_quiz_pass_ignores_other_learners_attempts(record, learner, other_learner, assessment_factory):
    assessment = assessment_factory()
    _rule(record, "quiz_pass", {"quiz_id": assessment.pk})
    _submit(other_learner, assessment, 4)

    assert evaluate_completion(learner, record.pk).all_passed is False


def test_evidence_rule_counts_files_and_required_types(record, learner):
    _rule(record, "evidence_upload", {"minFiles": 2, "requiredTypes": ["PDF"]})
    attach_evidence(record, "png")

    assert evaluate_completion(learner, record.pk).rules[0].detail == "1 of 2 required file(s) uploaded."

    attach_evidence(record, "jpg")
    evaluation = evaluate_completion(learner, record.pk).rules[0]
    assert evaluation.passed is False
    assert evaluation.detail == "Missing required file type(s): pdf."

    attach_evidence(record, "pdf")
    assert evaluate_completion(learner, record.pk).all_passed is True


def test_watch_time_and_attendance_read_record_progress(record, learner):
    _rule(record, "watch_time", {"min_watch_percent": 80}, position=1)
    _rule(record, "attendance", {}, position=2)

    record.progress = {"watch_percent": 79.5, "attendance_confirmed": "yes"}
    record.save()
    assert [rule.passed for rule in evaluate_completion(learner, record.pk).rules] == [False, False]

    record.progress = {"watch_percent": 80, "attendance_confirmed": True}
    record.save()
    assert evaluate_completion(learner, record.pk).all_passed is True


def test_attendance_without_confirmation_requirement_passes(record, learner):
    _rule(record, "attendance", {"confirmationRequired": False})

    assert evaluate_completion(learner, record.pk).all_passed is True


def test_inactive_rules_are_skipped(record, learner):
    _rule(record, "attendance", {}, active=False)

    result = evaluate_completion(learner, record.pk)

    assert result.rules == []
    assert result.all_passed is True


def test_rules_are_evaluated_in_position_order(record, learner):
    _rule(record, "attendance", {}, name="Second", position=2)
    _rule(record, "watch_time", {"min_watch_percent": 0}, name="First", position=1)

    names = [rule.rule_name for rule in evaluate_completion(learner, record.pk).rules]

    assert names == ["First", "Second"]


@pytest.mark.parametrize(
    ("rule_type", "config"),
    [
        ("quiz_pass", {}),
        ("quiz_pass", {"quiz_id": 1, "min_score": 101}),
        ("evidence_upload", {"min_files": 0}),
        ("evidence_upload", {"required_types": "pdf"}),
        ("watch_time", {"min_watch_percent": "80"}),
        ("attendance", {"confirmation_required": "yes"}),
        ("video_quiz", {}),
    ],
)
def test_malformed_rule_configs_are_rejected_on_write(record, rule_type, config):
    with pytest.raises(InvalidCompletionRule):
        _rule(record, rule_type, config)


def test_rule_config_aliases_are_normalised_on_write(record):
    rule = _rule(record, "evidence_upload", {"minFiles": 2, "requiredTypes": [" PDF "]})

    rule.refresh_from_db()
    assert rule.config == {"min_files": 2, "required_types": ["pdf"]}


def test_corrupted_stored_config_fails_the_rule(record, learner):
    rule = _rule(record, "watch_time", {"min_watch_percent": 50})
    CompletionRule.objects.filter(pk=rule.pk).update(config={"min_watch_percent": "half"})

    (evaluation,) = evaluate_completion(learner, record.pk).rules

    assert evaluation.passed is False
    assert evaluation.detail.startswith("Invalid rule configuration:")


def test_other_learners_record_is_unauthorized(record, other_learner):
    with pytest.raises(Unauthorized):
        evaluate_completion(other_learner, record.pk)


def test_missing_record_raises_not_found(learner):
    with pytest.raises(NotFound):
        evaluate_completion(learner, 424242)


def test_issue_for_record_waits_for_unmet_rules(record, learner):
    _rule(record, "attendance", {})

    outcome = issue_for_record(learner, record.pk)

    assert outcome.certificate is None
    assert outcome.created is False
    assert not Certificate.objects.filter(credit_record=record).exists()


def test_issue_for_record_issues_once_and_completes_the_record(record, learner):
    _rule(record, "attendance", {})
    record.progress = {"attendance_confirmed": True}
    record.save()

    first = issue_for_record(learner, record.pk)
    second = issue_for_record(learner, record.pk)

    assert first.created is True
    assert second.created is False
    assert second.certificate.pk == first.certificate.pk
    assert first.certificate.hours == Decimal("4.00")
    assert first.certificate.metadata == {
        "completion_rules": [{"name": "Attendance", "type": "attendance", "passed": True}]
    }
    record.refresh_from_db()
    assert record.status == CreditRecord.Status.COMPLETED
