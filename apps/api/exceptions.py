"""Render compliance engine errors through DRF."""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.core.errors import ComplianceError

logger = logging.getLogger(__name__)


def compliance_exception_handler(exc, context):
    """Map :class:`ComplianceError` to its status and ``{"error", "detail"}`` body.

    Anything else falls through to DRF's default handling.
    """

    if isinstance(exc, ComplianceError):
        view = context.get("view")
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s rejected request: %s",
            view.__class__.__name__ if view is not None else "API",
            exc.detail,
            extra={"error_code": exc.code},
        )
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
