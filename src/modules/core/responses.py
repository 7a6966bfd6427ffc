"""Translation of domain errors into DRF responses."""

from __future__ import annotations

import structlog
from rest_framework.response import Response

from modules.core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def domain_error_response(exc: DomainError) -> Response:
    """Render a ``DomainError`` as ``{"detail", "code", ...context}``."""
    logger.info(
        "request.rejected",
        code=exc.code,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return Response(exc.to_dict(), status=exc.status_code)
