"""Helpers for working with user roles and permissions."""

from __future__ import annotations

from typing import Iterable, Union

from .constants import ROLE_GROUP_MAP, UserRole


RoleLike = Union[UserRole, str]


def _normalise_role(role: RoleLike) -> UserRole:
    if isinstance(role, UserRole):
        return role

    if isinstance(role, str):
        try:
            return UserRole(role.lower())
        except ValueError as exc:
            raise KeyError(f"Unknown role: {role}") from exc

    raise TypeError(f"Role must be a UserRole or string, got {type(role)!r}")


def user_has_role(user, role: RoleLike) -> bool:
    """Return ``True`` if the user belongs to any group mapped to ``role``."""

    if not getattr(user, "is_authenticated", False):
        return False

    if getattr(user, "is_superuser", False):
        return True

    normalised_role = _normalise_role(role)
    role_groups = ROLE_GROUP_MAP.get(normalised_role, set())
    if not role_groups:
        return False

    return user.groups.filter(name__in=role_groups).exists()


def user_has_any_role(user, roles: Iterable[RoleLike]) -> bool:
    """Return ``True`` if the user matches any of the provided roles."""

    return any(user_has_role(user, role) for role in roles)


def is_compliance_admin(user) -> bool:
    """Return ``True`` for users allowed to manage catalogue and certificates."""

    return user_has_role(user, UserRole.ADMIN)


def resolve_user_roles(user) -> set[UserRole]:
    """Return every role the user currently maps to."""

    if not getattr(user, "is_authenticated", False):
        return set()
    if getattr(user, "is_superuser", False):
        return set(UserRole)

    group_names = set(user.groups.values_list("name", flat=True))
    return {role for role, groups in ROLE_GROUP_MAP.items() if group_names & groups}
