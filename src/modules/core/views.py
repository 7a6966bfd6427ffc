"""Operational endpoints: the public health probe and ``/api/v1/me``."""

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.actors import actor_from_user
from modules.core.exceptions import DomainError
from modules.core.responses import domain_error_response

logger = structlog.get_logger(__name__)

HEALTH_CACHE_KEY = "procurement:health"


def _probe_database() -> None:
    connection = connections["default"]
    connection.ensure_connection()
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _probe_cache() -> None:
    cache.set(HEALTH_CACHE_KEY, "ok", 10)
    if cache.get(HEALTH_CACHE_KEY) != "ok":
        raise ConnectionError("cache did not return the probe value")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _probe_database,
    "cache": _probe_cache,
}


def _run_probe(name: str, probe: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        probe()
    except Exception as exc:
        logger.error("health.probe_failed", probe=name, error=str(exc))
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: 200 when every backing service answers, 503 otherwise."""
    services = {name: _run_probe(name, probe) for name, probe in PROBES.items()}
    healthy = all(service["status"] == "up" for service in services.values())
    status = "healthy" if healthy else "unhealthy"

    logger.info("health.checked", status=status)
    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class CurrentActorView(APIView):
    """Echo the actor resolved from the bearer token.

    * No token   -> 401
    * Bad token  -> 401
    * No role    -> 403
    * Valid JWT  -> 200 with ``id``, ``role`` and ``entity_id``
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        try:
            actor = actor_from_user(request.user)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(
            {
                "id": actor.id,
                "role": actor.role,
                "entity_id": str(actor.entity_id) if actor.entity_id else None,
            }
        )
