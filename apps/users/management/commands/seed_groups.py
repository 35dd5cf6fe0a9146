from django.contrib.auth.models import Group, Permission
from django.core.management.base import BaseCommand

from apps.users.constants import ADMINS_GROUP_NAME, COMPLIANCE_OFFICERS_GROUP_NAME, ROLE_GROUP_MAP


_ADMIN_PERMISSIONS = [
    "change_activity",
    "change_creditmapping",
    "change_assessment",
    "change_certificate",
]


def _default_groups() -> dict[str, list[str]]:
    """Return the default groups derived from ``ROLE_GROUP_MAP``."""

    group_names = {
        group_name for groups in ROLE_GROUP_MAP.values() for group_name in groups
    }
    groups: dict[str, list[str]] = {group_name: [] for group_name in sorted(group_names)}
    groups[ADMINS_GROUP_NAME] = list(_ADMIN_PERMISSIONS)
    groups[COMPLIANCE_OFFICERS_GROUP_NAME] = ["change_certificate"]
    return groups


GROUPS = _default_groups()


class Command(BaseCommand):
    help = "Create the learner and admin groups and assign their permissions"

    def handle(self, *args, **kwargs):
        for group_name, perms in GROUPS.items():
            group, created = Group.objects.get_or_create(name=group_name)
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created group: {group_name}"))
            else:
                self.stdout.write(self.style.WARNING(f"Group already exists: {group_name}"))

            for perm_codename in perms:
                perm = Permission.objects.filter(codename=perm_codename).first()
                if perm is None:
                    self.stdout.write(self.style.ERROR(f"  Permission not found: {perm_codename}"))
                    continue
                group.permissions.add(perm)
                self.stdout.write(f"  Added permission: {perm_codename}")

        self.stdout.write(self.style.SUCCESS("All groups processed."))
