"""Uptime aggregation over the check history."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from django.db.models import Count, Q
from django.utils import timezone

from .models import CheckRecord, CheckStatus

UPTIME_WINDOW = timedelta(hours=24)


def latest_check(endpoint_id: int) -> CheckRecord | None:
    return (
        CheckRecord.objects.filter(endpoint_id=endpoint_id).order_by("-recorded_at", "-id").first()
    )


def latest_checks(endpoint_ids: Iterable[int]) -> dict[int, CheckRecord | None]:
    return {endpoint_id: latest_check(endpoint_id) for endpoint_id in endpoint_ids}


def uptime_percentage(
    endpoint_ids: Iterable[int],
    *,
    now: datetime | None = None,
    window: timedelta = UPTIME_WINDOW,
) -> float:
    """Share of ``up`` rows within ``window``; 100.0 when there are no rows at all.

    Counts history rows, so a coalesced run of identical checks weighs as one.
    """

    now = now or timezone.now()
    stats = CheckRecord.objects.filter(
        endpoint_id__in=list(endpoint_ids), recorded_at__gte=now - window
    ).aggregate(
        total=Count("id"),
        up=Count("id", filter=Q(status=CheckStatus.UP)),
    )
    if not stats["total"]:
        return 100.0
    return stats["up"] / stats["total"] * 100


def overall_status(latest: Iterable[CheckRecord | None]) -> CheckStatus:
    """Worst status across the latest checks: down, then degraded, else up."""

    statuses = {record.status for record in latest if record is not None}
    if CheckStatus.DOWN in statuses:
        return CheckStatus.DOWN
    if CheckStatus.DEGRADED in statuses:
        return CheckStatus.DEGRADED
    return CheckStatus.UP


__all__ = [
    "UPTIME_WINDOW",
    "latest_check",
    "latest_checks",
    "overall_status",
    "uptime_percentage",
]
