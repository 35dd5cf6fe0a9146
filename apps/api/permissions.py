"""DRF permission classes aligned with the application's role model."""

from __future__ import annotations

from typing import Type

from rest_framework.permissions import BasePermission

from apps.users.constants import UserRole
from apps.users.permissions import user_has_role


class _RolePermission(BasePermission):
    """Base class delegating permission checks to ``user_has_role``."""

    role: UserRole

    def has_permission(self, request, view):  # type: ignore[override]
        user = request.user
        return user_has_role(user, self.role)


class IsAdminUserRole(_RolePermission):
    """Allow access to users mapped to the Admin role."""

    role = UserRole.ADMIN


class IsLearnerUserRole(_RolePermission):
    """Allow access to users mapped to the Learner role."""

    role = UserRole.LEARNER


ROLE_PERMISSION_MAP: dict[UserRole, Type[_RolePermission]] = {
    UserRole.ADMIN: IsAdminUserRole,
    UserRole.LEARNER: IsLearnerUserRole,
}
"""Convenience mapping of roles to their associated permission classes."""
