"""Logging handler persisting engine log records to the database."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping

from django.contrib.auth import get_user_model

# Attributes every ``LogRecord`` carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

# Keys resolved to the ``user`` foreign key instead of the JSON context.
_USER_KEYS = ("user", "learner", "actor")


class DatabaseLogHandler(logging.Handler):
    """Persist log records to the ``LogEntry`` table.

    Values passed through ``extra=`` become the entry's JSON context. Model
    instances collapse to their primary key, decimals to strings and dates to
    ISO-8601. A ``user``, ``learner`` or ``actor`` value is linked to the
    entry's user column.
    """

    def emit(self, record: logging.LogRecord) -> None:
        from .models import LogEntry

        try:
            LogEntry.objects.create(
                logger_name=record.name,
                level=record.levelname.upper(),
                message=record.getMessage(),
                user=self._resolve_user(record),
                context=self._build_context(record),
            )
        except Exception:  # pragma: no cover - never let logging break the caller
            self.handleError(record)

    def _build_context(self, record: logging.LogRecord) -> Dict[str, Any] | None:
        context: Dict[str, Any] = {}
        provided = getattr(record, "context", None)
        if isinstance(provided, Mapping):
            context.update(self._serialise_mapping(provided))

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key == "context" or key.startswith("_"):
                continue
            context[key] = self._serialise(value)

        return context or None

    def _resolve_user(self, record: logging.LogRecord):
        for key in _USER_KEYS:
            candidate = getattr(record, key, None)
            if candidate is not None and getattr(candidate, "pk", None) and hasattr(
                candidate, "get_username"
            ):
                return candidate

        user_id = getattr(record, "user_id", None)
        if not user_id:
            return None
        return get_user_model()._default_manager.filter(pk=user_id).first()

    def _serialise(self, value: Any) -> Any:
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, Mapping):
            return self._serialise_mapping(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._serialise(item) for item in value]
        if hasattr(value, "pk"):
            return value.pk
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    def _serialise_mapping(self, mapping: Mapping[str, Any]) -> Dict[str, Any]:
        return {str(key): self._serialise(value) for key, value in mapping.items()}


__all__ = ["DatabaseLogHandler"]
