"""Retention sweep for the check history."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from .models import CheckRecord

audit_logger = logging.getLogger("monitors.audit")

DEFAULT_RETENTION_DAYS = 30


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    return now - timedelta(days=retention_days)


def purge_expired_checks(*, now: datetime | None = None, retention_days: int | None = None) -> int:
    """Delete every check record older than the retention horizon and return the count."""

    now = now or timezone.now()
    if retention_days is None:
        retention_days = getattr(settings, "CHECK_RETENTION_DAYS", DEFAULT_RETENTION_DAYS)
    if retention_days < 1:
        raise ValueError(f"retention_days must be positive, got {retention_days}")

    cutoff = retention_cutoff(now, retention_days)
    deleted, _ = CheckRecord.objects.filter(recorded_at__lt=cutoff).delete()

    audit_logger.info(
        "Purged expired check records",
        extra={
            "deleted": deleted,
            "retention_days": retention_days,
            "cutoff": cutoff.isoformat(),
        },
    )
    return deleted


__all__ = ["DEFAULT_RETENTION_DAYS", "purge_expired_checks", "retention_cutoff"]
