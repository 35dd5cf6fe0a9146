"""Per-role throttling for the compliance API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, MutableMapping, Optional, Set

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

from apps.users.constants import UserRole
from apps.users.permissions import resolve_user_roles


@dataclass(frozen=True)
class _RateSelection:
    """Container describing the active rate for a request."""

    rate: str
    roles: Set[UserRole]


class RoleBasedRateThrottle(SimpleRateThrottle):
    """Throttle requests based on the caller's effective application roles.

    Authenticated callers without a mapped group are throttled as learners;
    anonymous callers are throttled by IP under the ``anonymous`` rate when
    one is configured.
    """

    scope = "role"

    #: Roles that are exempt from throttling entirely.
    unlimited_roles = {UserRole.ADMIN}

    def __init__(self) -> None:
        self.role_rates = self._load_role_rates()
        self.anonymous_rate = self._load_anonymous_rate()
        self._active_roles: Set[UserRole] = set()
        super().__init__()

    @staticmethod
    def _throttle_config() -> Mapping[str, str]:
        return (getattr(settings, "REST_FRAMEWORK", {}) or {}).get("ROLE_BASED_THROTTLE_RATES", {})

    @classmethod
    def _load_role_rates(cls) -> Mapping[UserRole, str]:
        """Return the rate configuration declared in Django settings."""

        rates: MutableMapping[UserRole, str] = {}
        for key, rate in cls._throttle_config().items():
            if isinstance(key, UserRole):
                role = key
            else:
                try:
                    role = UserRole(str(key).lower())
                except ValueError:
                    continue
            rates[role] = rate

        if not rates:
            rates = {UserRole.LEARNER: "60/min"}
        return rates

    @classmethod
    def _load_anonymous_rate(cls) -> Optional[str]:
        return cls._throttle_config().get("anonymous")

    def allow_request(self, request, view):  # type: ignore[override]
        rate_selection = self._select_rate(request)
        if rate_selection is None:
            self.rate = None
            self.num_requests, self.duration = None, None
            self._active_roles = set()
            return True

        self.rate = rate_selection.rate
        self.num_requests, self.duration = self.parse_rate(self.rate)
        self._active_roles = rate_selection.roles
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):  # type: ignore[override]
        user = getattr(request, "user", None)
        if getattr(user, "is_authenticated", False) and getattr(user, "pk", None) is not None:
            ident = f"user:{user.pk}"
        else:
            ident = f"ip:{self.get_ident(request)}"

        role_fragment = ",".join(sorted(role.value for role in self._active_roles)) or "anonymous"
        return self.cache_format % {"scope": self.scope, "ident": f"{role_fragment}:{ident}"}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _select_rate(self, request) -> Optional[_RateSelection]:
        user = getattr(request, "user", None)
        if not getattr(user, "is_authenticated", False):
            if self.anonymous_rate:
                return _RateSelection(rate=self.anonymous_rate, roles=set())
            return None

        roles = resolve_user_roles(user) or {UserRole.LEARNER}
        if roles & self.unlimited_roles:
            return None

        applicable_roles = [role for role in roles if role in self.role_rates]
        if not applicable_roles:
            return None

        best_rate: Optional[str] = None
        best_roles: Set[UserRole] = set()
        best_ratio: Optional[float] = None

        for role in applicable_roles:
            rate = self.role_rates[role]
            num_requests, duration = self.parse_rate(rate)
            ratio = num_requests / duration
            if best_ratio is None or ratio < best_ratio:
                best_rate = rate
                best_ratio = ratio
                best_roles = {role}
            elif ratio == best_ratio and best_rate == rate:
                best_roles.add(role)

        if best_rate is None:
            return None

        return _RateSelection(rate=best_rate, roles=best_roles)

    def parse_rate(self, rate):  # type: ignore[override]
        num_requests, duration = super().parse_rate(rate)
        if num_requests is None or duration is None:
            raise ValueError("Role-based throttle requires concrete rate definitions.")
        return num_requests, duration
