"""Liveness endpoint for load balancers, plus a glance at checker freshness."""

import logging

from django.db import DatabaseError, connection
from django.db.models import Max
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from api.logging_utils import sanitize_log_value

logger = logging.getLogger("api.health")


def _ping_database() -> None:
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def _checker_snapshot() -> dict:
    from monitors.models import CheckRecord, Endpoint

    last_check_at = CheckRecord.objects.aggregate(latest=Max("recorded_at"))["latest"]
    return {
        "active_endpoints": Endpoint.objects.filter(active=True).count(),
        "last_check_at": last_check_at.isoformat() if last_check_at else None,
    }


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """200 with ``{"status": "ok"}`` while the database answers, 503 otherwise.

    The ``checker`` block is informational; a stalled checker does not fail
    the probe.
    """
    body = {"status": "ok", "timestamp": timezone.now().isoformat(), "database": "ok"}

    try:
        _ping_database()
        body["checker"] = _checker_snapshot()
    except DatabaseError as exc:
        logger.error(
            "Health check database failure",
            extra={"error": sanitize_log_value(str(exc)), "error_type": type(exc).__name__},
        )
        body.update(status="error", database="error")

    code = status.HTTP_200_OK if body["status"] == "ok" else status.HTTP_503_SERVICE_UNAVAILABLE
    logger.info(
        "Health check completed",
        extra={
            "status_code": code,
            "remote_addr": request.META.get("REMOTE_ADDR", "unknown"),
            "result": sanitize_log_value(body),
        },
    )
    return Response(body, status=code)
