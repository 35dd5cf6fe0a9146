"""DRF views providing the public API surface."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import connections
from django.db.models import Q
from django.db.utils import OperationalError
from django.utils import timezone
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.permissions import IsAdminUserRole, IsLearnerUserRole
from apps.api.serializers import (
    ActivitySerializer,
    AllocationSetSerializer,
    AssessmentOverviewSerializer,
    BatchVerificationSerializer,
    CertificateSerializer,
    CompletionResultSerializer,
    CredentialProgressSerializer,
    CreditMappingSerializer,
    CreditRecordSerializer,
    CreditViewSerializer,
    RevokeCertificateSerializer,
    SubmissionResultSerializer,
)
from apps.api.throttling import RoleBasedRateThrottle
from apps.assessments.services import assessment_overview, submit_attempt
from apps.catalog.models import normalise_region_code
from apps.catalog.services import (
    publish_activity,
    resolve_credit,
    resolve_credit_views,
    retire_activity,
)
from apps.certificates.models import Certificate
from apps.certificates.services import (
    reissue_for_attempt,
    revoke_certificate,
    verify_certificate,
    verify_certificates,
)
from apps.core.errors import MalformedSubmission
from apps.credentials.services import progress_for_learner
from apps.records.allocation import get_allocations, set_allocations
from apps.records.completion import evaluate_completion, issue_for_record
from apps.security.models import AuditLog
from apps.users.permissions import is_compliance_admin


def _parse_optional_int(value, name: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedSubmission(f"'{name}' must be an integer.") from exc


class ActivityCreditsView(APIView):
    """Resolve the credit an activity confers.

    With ``country`` the mappings for that location are returned; without it
    the credit is resolved for every credential the caller holds.
    """

    permission_classes = [permissions.IsAuthenticated]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, activity_id: int, *args, **kwargs):  # type: ignore[override]
        country = normalise_region_code(request.query_params.get("country"))
        if country:
            state = normalise_region_code(request.query_params.get("state")) or None
            mappings = resolve_credit(activity_id, country, state)
            return Response(
                {
                    "activity_id": activity_id,
                    "country": country,
                    "state": state,
                    "eligible": bool(mappings),
                    "mappings": CreditMappingSerializer(mappings, many=True).data,
                }
            )

        credential_id = _parse_optional_int(request.query_params.get("credential_id"), "credential_id")
        views = resolve_credit_views(activity_id, request.user, credential_id=credential_id)
        return Response(
            {
                "activity_id": activity_id,
                "credentials": CreditViewSerializer(views, many=True).data,
            }
        )


class ActivityPublishView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, activity_id: int, *args, **kwargs):  # type: ignore[override]
        activity = publish_activity(activity_id, request.user)
        return Response(ActivitySerializer(activity).data)


class ActivityRetireView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, activity_id: int, *args, **kwargs):  # type: ignore[override]
        activity = retire_activity(activity_id, request.user)
        return Response(ActivitySerializer(activity).data)


class AssessmentDetailView(APIView):
    """Questions without answers plus the caller's attempt history."""

    permission_classes = [permissions.IsAuthenticated, IsLearnerUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, assessment_id: int, *args, **kwargs):  # type: ignore[override]
        overview = assessment_overview(request.user, assessment_id)
        return Response(AssessmentOverviewSerializer(overview).data)


class AssessmentAttemptView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLearnerUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, assessment_id: int, *args, **kwargs):  # type: ignore[override]
        if not isinstance(request.data, dict) or "answers" not in request.data:
            raise MalformedSubmission("Provide an 'answers' list.")
        result = submit_attempt(request.user, assessment_id, request.data["answers"])
        return Response(SubmissionResultSerializer(result).data, status=status.HTTP_201_CREATED)


class AttemptIssueView(APIView):
    """Replay the issuance cascade for a passing attempt."""

    permission_classes = [permissions.IsAuthenticated]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, attempt_id: int, *args, **kwargs):  # type: ignore[override]
        issuance = reissue_for_attempt(attempt_id, actor=request.user)
        payload = {
            "attempt_id": attempt_id,
            "created": issuance.created,
            "credit_record": CreditRecordSerializer(issuance.credit_record).data,
            "certificate": CertificateSerializer(issuance.certificate).data,
        }
        return Response(payload, status=status.HTTP_201_CREATED if issuance.created else status.HTTP_200_OK)


class RecordCompletionView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLearnerUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, record_id: int, *args, **kwargs):  # type: ignore[override]
        result = evaluate_completion(request.user, record_id)
        return Response(CompletionResultSerializer(result).data)

    def post(self, request, record_id: int, *args, **kwargs):  # type: ignore[override]
        outcome = issue_for_record(request.user, record_id)
        payload = dict(CompletionResultSerializer(outcome.result).data)
        payload["certificate"] = (
            CertificateSerializer(outcome.certificate).data if outcome.certificate is not None else None
        )
        payload["created"] = outcome.created
        response_status = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
        return Response(payload, status=response_status)


class RecordAllocationsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLearnerUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, record_id: int, *args, **kwargs):  # type: ignore[override]
        allocation_set = get_allocations(record_id, learner=request.user)
        return Response(AllocationSetSerializer(allocation_set).data)

    def put(self, request, record_id: int, *args, **kwargs):  # type: ignore[override]
        data = request.data
        allocations = data.get("allocations") if isinstance(data, dict) else data
        allocation_set = set_allocations(record_id, allocations, learner=request.user)
        return Response(AllocationSetSerializer(allocation_set).data)


class CredentialGrantListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLearnerUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, *args, **kwargs):  # type: ignore[override]
        progress = progress_for_learner(request.user)
        return Response({"results": CredentialProgressSerializer(progress, many=True).data})


class CertificateVerifyView(APIView):
    """Public verification of a certificate code.

    Unknown and revoked codes are answered with ``valid: false`` rather than
    an error status.
    """

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    throttle_classes = [RoleBasedRateThrottle]

    def get(self, request, code: str, *args, **kwargs):  # type: ignore[override]
        return Response(verify_certificate(code).as_payload())


class CertificateBatchVerifyView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminUserRole]
    throttle_classes = [RoleBasedRateThrottle]

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        codes = request.data.get("codes") if isinstance(request.data, dict) else None
        if codes is None:
            raise MalformedSubmission("Provide a 'codes' list.")
        batch = verify_certificates(codes, actor=request.user)
        return Response(BatchVerificationSerializer(batch).data)


class CertificateViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Certificates held by the caller; administrators see every certificate."""

    serializer_class = CertificateSerializer
    permission_classes = [permissions.IsAuthenticated]
    throttle_classes = [RoleBasedRateThrottle]

    def get_queryset(self):
        queryset = Certificate.objects.all()
        if not is_compliance_admin(self.request.user):
            queryset = queryset.for_learner(self.request.user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    @action(detail=True, methods=["post"])
    def revoke(self, request, pk=None):
        serializer = RevokeCertificateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        certificate_id = _parse_optional_int(pk, "id")
        certificate = revoke_certificate(
            certificate_id,
            actor=request.user,
            reason=serializer.validated_data["reason"],
        )
        return Response(CertificateSerializer(certificate).data)


class HealthSummaryView(APIView):
    """Provide a JSON summary of the application's core health signals."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):  # type: ignore[override]
        timestamp = timezone.now()

        database_status = "ok"
        overall_status = "ok"
        connection = connections["default"]
        try:
            if connection.connection is None or not connection.is_usable():
                with connection.cursor():
                    database_status = "ok"
        except OperationalError:
            database_status = "unavailable"
            overall_status = "degraded"

        payload = {
            "status": overall_status,
            "timestamp": timestamp.isoformat(),
            "database": database_status,
            "recent_critical_events": None,
        }
        if database_status != "ok":
            return Response(payload)

        fifteen_minutes_ago = timestamp - timedelta(minutes=15)
        severity_filter = Q(context__severity__iexact="critical") | Q(
            context__severity__iexact="high"
        )
        critical_action_filter = Q(
            action_code__in=getattr(settings, "COMPLIANCE_ALERT_CRITICAL_ACTIONS", set())
        )
        payload["recent_critical_events"] = AuditLog.objects.filter(
            Q(timestamp__gte=fifteen_minutes_ago) & (severity_filter | critical_action_filter)
        ).count()
        return Response(payload)
