"""Constants and role/group mappings for the users app."""

from enum import Enum
from typing import Dict, Iterable, Set


LEARNERS_GROUP_NAME = "Learners"
ADMINS_GROUP_NAME = "Admins"
COMPLIANCE_OFFICERS_GROUP_NAME = "ComplianceOfficers"


class UserRole(str, Enum):
    """High-level roles recognised by the compliance engine."""

    LEARNER = "learner"
    ADMIN = "admin"


ROLE_GROUP_MAP: Dict[UserRole, Set[str]] = {
    UserRole.LEARNER: {LEARNERS_GROUP_NAME},
    UserRole.ADMIN: {ADMINS_GROUP_NAME, COMPLIANCE_OFFICERS_GROUP_NAME},
}


def groups_for_roles(roles: Iterable[UserRole]) -> Set[str]:
    """Return the set of concrete group names for the given roles."""

    groups: Set[str] = set()
    for role in roles:
        groups.update(ROLE_GROUP_MAP.get(role, set()))
    return groups
