import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger()


def _timed(check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.monotonic()
    details = check()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        **details,
    }


def _check_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {}


def _check_cache() -> Dict[str, Any]:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def _check_outbox() -> Dict[str, Any]:
    # Informational only: a backlog does not make the service unhealthy.
    return {
        "pending_events": OutboxEvent.objects.filter(
            status=EventStatus.PENDING
        ).count()
    }


_CHECKS: Dict[str, Callable[[], Dict[str, Any]]] = {
    "database": _check_database,
    "cache": _check_cache,
    "outbox": _check_outbox,
}


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, check in _CHECKS.items():
        try:
            services[name] = _timed(check)
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.error("health_check_failure", service=name)

    logger.info(
        "health_check_completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )
