"""DRF viewsets providing admin access to the audit trail and logs."""

from __future__ import annotations

from rest_framework import mixins, permissions, viewsets
from rest_framework.pagination import PageNumberPagination

from apps.api.permissions import IsAdminUserRole
from apps.api.throttling import RoleBasedRateThrottle
from apps.security.models import AuditLog, LogEntry
from apps.security.serializers import AuditLogSerializer, LogEntrySerializer


class AuditLogPagination(PageNumberPagination):
    """Default pagination settings for audit listings."""

    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 200


class AuditLogViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Paginated, read-only view of the compliance audit trail."""

    serializer_class = AuditLogSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminUserRole]
    throttle_classes = [RoleBasedRateThrottle]
    pagination_class = AuditLogPagination

    def get_queryset(self):
        queryset = AuditLog.objects.select_related("user").all()
        action_code = self.request.query_params.get("action")
        if action_code:
            queryset = queryset.filter(action_code=action_code)
        target = self.request.query_params.get("target")
        if target:
            queryset = queryset.filter(target=target)
        return queryset


class LogEntryViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Paginated view of persisted application log records."""

    serializer_class = LogEntrySerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminUserRole]
    throttle_classes = [RoleBasedRateThrottle]
    pagination_class = AuditLogPagination

    def get_queryset(self):
        queryset = LogEntry.objects.all()
        level = self.request.query_params.get("level")
        if level:
            queryset = queryset.filter(level=level.upper())
        logger_name = self.request.query_params.get("logger")
        if logger_name:
            queryset = queryset.filter(logger_name__startswith=logger_name)
        return queryset
