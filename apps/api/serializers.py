"""Serializers for API payloads surfaced through DRF."""

from __future__ import annotations

from rest_framework import serializers

from apps.catalog.models import Activity, CreditMapping
from apps.certificates.models import Certificate
from apps.records.models import CreditAllocation, CreditRecord


class CreditMappingSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditMapping
        fields = [
            "id",
            "country",
            "credential",
            "credit_amount",
            "credit_unit",
            "credit_category",
            "structured",
            "validation_method",
        ]
        read_only_fields = fields


class CreditViewSerializer(serializers.Serializer):
    grant_id = serializers.IntegerField(source="grant.pk")
    credential_id = serializers.IntegerField(source="grant.credential_id")
    credential_name = serializers.CharField(source="grant.credential.name")
    jurisdiction = serializers.CharField(source="grant.jurisdiction")
    eligible = serializers.BooleanField()
    total_credits = serializers.DecimalField(max_digits=9, decimal_places=2)
    credit_unit = serializers.CharField(allow_null=True)
    categories = serializers.DictField(
        child=serializers.DecimalField(max_digits=9, decimal_places=2)
    )
    mappings = CreditMappingSerializer(many=True)


class ActivitySerializer(serializers.ModelSerializer):
    approved_by = serializers.IntegerField(source="approved_by_id", allow_null=True)

    class Meta:
        model = Activity
        fields = [
            "id",
            "title",
            "content_type",
            "publish_status",
            "version",
            "active",
            "published_at",
            "approved_by",
        ]
        read_only_fields = fields


class QuestionResultSerializer(serializers.Serializer):
    question_index = serializers.IntegerField()
    selected_answer = serializers.IntegerField()
    correct_answer = serializers.IntegerField()
    is_correct = serializers.BooleanField()
    explanation = serializers.CharField(allow_blank=True)


class AttemptSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    score = serializers.IntegerField()
    passed = serializers.BooleanField()
    completed_at = serializers.DateTimeField(allow_null=True)


class AssessmentOverviewSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="assessment.pk")
    title = serializers.CharField(source="assessment.title")
    description = serializers.CharField(source="assessment.description")
    pass_mark = serializers.IntegerField(source="assessment.pass_mark")
    max_attempts = serializers.IntegerField(source="assessment.max_attempts")
    time_limit_minutes = serializers.IntegerField(source="assessment.time_limit_minutes", allow_null=True)
    hours_awarded = serializers.DecimalField(
        source="assessment.hours_awarded", max_digits=7, decimal_places=2
    )
    questions = serializers.ListField(child=serializers.DictField())
    attempts = AttemptSummarySerializer(many=True)
    attempts_used = serializers.IntegerField()
    attempts_remaining = serializers.IntegerField()
    has_passed = serializers.BooleanField()


class CreditRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditRecord
        fields = [
            "id",
            "title",
            "provider",
            "activity_type",
            "hours",
            "date",
            "status",
            "category",
            "provenance",
        ]
        read_only_fields = fields


class CertificateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Certificate
        fields = [
            "id",
            "code",
            "title",
            "credential_name",
            "hours",
            "category",
            "activity_type",
            "provider",
            "completed_date",
            "issued_at",
            "verification_url",
            "status",
            "revoked_at",
            "status_reason",
        ]
        read_only_fields = fields


class SubmissionResultSerializer(serializers.Serializer):
    attempt_id = serializers.IntegerField(source="attempt.pk")
    score = serializers.IntegerField(source="attempt.score")
    passed = serializers.BooleanField(source="attempt.passed")
    question_results = QuestionResultSerializer(many=True)
    attempts_used = serializers.IntegerField()
    attempts_remaining = serializers.IntegerField()
    credit_record = CreditRecordSerializer(source="issuance.credit_record", allow_null=True, default=None)
    certificate = CertificateSerializer(source="issuance.certificate", allow_null=True, default=None)
    issuance_pending = serializers.BooleanField()
    messages = serializers.ListField(child=serializers.CharField())


class RuleEvaluationSerializer(serializers.Serializer):
    rule_id = serializers.IntegerField()
    rule_name = serializers.CharField()
    rule_type = serializers.CharField()
    passed = serializers.BooleanField()
    detail = serializers.CharField()


class CompletionResultSerializer(serializers.Serializer):
    record_id = serializers.IntegerField(source="record.pk")
    rules = RuleEvaluationSerializer(many=True)
    all_passed = serializers.BooleanField()
    eligible_for_certificate = serializers.BooleanField()


class CreditAllocationSerializer(serializers.ModelSerializer):
    grant_id = serializers.IntegerField(read_only=True)
    credential_name = serializers.CharField(source="grant.credential.name", read_only=True)

    class Meta:
        model = CreditAllocation
        fields = ["id", "grant_id", "credential_name", "hours"]
        read_only_fields = fields


class AllocationSetSerializer(serializers.Serializer):
    record_id = serializers.IntegerField(source="record.pk")
    record_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    total_allocated = serializers.DecimalField(max_digits=9, decimal_places=2)
    unallocated = serializers.DecimalField(max_digits=9, decimal_places=2)
    allocations = CreditAllocationSerializer(many=True)


class CredentialProgressSerializer(serializers.Serializer):
    grant_id = serializers.IntegerField(source="grant.pk")
    credential_id = serializers.IntegerField(source="grant.credential_id")
    credential_name = serializers.CharField(source="grant.credential.name")
    jurisdiction = serializers.CharField(source="grant.jurisdiction")
    is_primary = serializers.BooleanField(source="grant.is_primary")
    renewal_deadline = serializers.DateField(source="grant.renewal_deadline", allow_null=True)
    required_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    baseline_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    allocated_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    completed_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    remaining_hours = serializers.DecimalField(max_digits=9, decimal_places=2)
    percent_complete = serializers.IntegerField()


class RevokeCertificateSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


class BatchVerificationSerializer(serializers.Serializer):
    total_checked = serializers.IntegerField()
    valid_count = serializers.IntegerField()
    invalid_count = serializers.IntegerField()
    results = serializers.SerializerMethodField()

    def get_results(self, obj) -> list[dict]:
        return [result.as_payload() for result in obj.results]
