from __future__ import annotations

from django.apps import AppConfig


class SecurityConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.security"
    verbose_name = "Audit and logging"

    def ready(self) -> None:  # pragma: no cover - import side effects only
        # Register audit alert signal handlers.
        from . import signals  # noqa: F401

        return None
