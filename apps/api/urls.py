"""URL configuration for the API application."""

from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.api.views import (
    ActivityCreditsView,
    ActivityPublishView,
    ActivityRetireView,
    AssessmentAttemptView,
    AssessmentDetailView,
    AttemptIssueView,
    CertificateBatchVerifyView,
    CertificateVerifyView,
    CertificateViewSet,
    CredentialGrantListView,
    HealthSummaryView,
    RecordAllocationsView,
    RecordCompletionView,
)
from apps.security.views import AuditLogViewSet, LogEntryViewSet

router = DefaultRouter()
router.register('certificates', CertificateViewSet, basename='certificates')
router.register('audit-logs', AuditLogViewSet, basename='audit-logs')
router.register('logs', LogEntryViewSet, basename='logs')

app_name = 'api'

urlpatterns = [
    path('health/', HealthSummaryView.as_view(), name='health-summary'),
    path('activities/<int:activity_id>/credits/', ActivityCreditsView.as_view(), name='activity-credits'),
    path('activities/<int:activity_id>/publish/', ActivityPublishView.as_view(), name='activity-publish'),
    path('activities/<int:activity_id>/retire/', ActivityRetireView.as_view(), name='activity-retire'),
    path('assessments/<int:assessment_id>/', AssessmentDetailView.as_view(), name='assessment-detail'),
    path(
        'assessments/<int:assessment_id>/attempts/',
        AssessmentAttemptView.as_view(),
        name='assessment-attempts',
    ),
    path('attempts/<int:attempt_id>/issue/', AttemptIssueView.as_view(), name='attempt-issue'),
    path('records/<int:record_id>/completion/', RecordCompletionView.as_view(), name='record-completion'),
    path('records/<int:record_id>/allocations/', RecordAllocationsView.as_view(), name='record-allocations'),
    path('grants/', CredentialGrantListView.as_view(), name='grant-list'),
    path(
        'certificates/verify/batch/',
        CertificateBatchVerifyView.as_view(),
        name='certificate-verify-batch',
    ),
    path('certificates/verify/<str:code>/', CertificateVerifyView.as_view(), name='certificate-verify'),
    path('', include(router.urls)),
]
