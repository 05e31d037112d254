"""Check-history writer implementing the coalesce-or-append protocol.

Every probe outcome ends up as exactly one insert or exactly one in-place
update of the endpoint's most recent ``CheckRecord``:

* no previous row, a status transition, or a previous row older than the
  coalesce threshold -> append a new row;
* same status within the threshold -> refresh the latest row in place.

The read of the latest row, its row lock and the write share a single
``transaction.atomic()`` block. The lock is taken with
``select_for_update(skip_locked=True)`` so a writer never queues behind another
replica probing the same endpoint; it backs off and re-evaluates against the
committed state instead. When the lock is still held after a bounded number
of attempts it raises ``CheckWriteContendedError``; nothing is ever dropped
silently.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from django.conf import settings
from django.db import OperationalError, transaction
from django.utils import timezone

from .dto import CheckResult, WriteOutcome, WriteResult
from .models import CheckRecord, Endpoint

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")

DEFAULT_COALESCE_THRESHOLD_SECONDS = 5
DEFAULT_LOCK_ATTEMPTS = 3
DEFAULT_LOCK_BACKOFF_MS = 100


class CheckWriteContendedError(OperationalError):
    """The endpoint's history stayed locked by another writer for every attempt."""

    def __init__(self, endpoint_id: int, attempts: int) -> None:
        super().__init__(
            f"Check history for endpoint {endpoint_id} stayed locked after {attempts} attempts"
        )
        self.endpoint_id = endpoint_id
        self.attempts = attempts


def decide_write(
    latest: CheckRecord | None,
    status: str,
    now: datetime,
    threshold_seconds: float = DEFAULT_COALESCE_THRESHOLD_SECONDS,
) -> WriteOutcome:
    """Return ``APPENDED`` or ``COALESCED`` for a new ``status`` observed at ``now``."""

    if latest is None:
        return WriteOutcome.APPENDED
    if latest.status != status:
        return WriteOutcome.APPENDED
    if (now - latest.recorded_at).total_seconds() > threshold_seconds:
        return WriteOutcome.APPENDED
    return WriteOutcome.COALESCED


def record_check(
    result: CheckResult,
    *,
    now: datetime | None = None,
    threshold_seconds: float | None = None,
    max_attempts: int | None = None,
    backoff_ms: int | None = None,
) -> WriteResult:
    """Durably reflect ``result`` in the check history.

    Storage errors propagate, including ``CheckWriteContendedError`` once the
    lock attempts run out; the surrounding transaction is rolled back as a
    unit so no partial write is visible.
    """

    if threshold_seconds is None:
        threshold_seconds = getattr(
            settings, "CHECK_COALESCE_THRESHOLD_SECONDS", DEFAULT_COALESCE_THRESHOLD_SECONDS
        )
    if max_attempts is None:
        max_attempts = getattr(settings, "CHECK_WRITE_LOCK_ATTEMPTS", DEFAULT_LOCK_ATTEMPTS)
    if backoff_ms is None:
        backoff_ms = getattr(settings, "CHECK_WRITE_LOCK_BACKOFF_MS", DEFAULT_LOCK_BACKOFF_MS)

    for attempt in range(1, max(1, max_attempts) + 1):
        with transaction.atomic():
            write = _write_locked(result, now or timezone.now(), threshold_seconds)

        if write is not None:
            _log_write(result, write, attempt)
            return write

        audit_logger.debug(
            "Check history is locked by a concurrent writer",
            extra={
                "endpoint_id": result.endpoint_id,
                "attempt": attempt,
                "max_attempts": max_attempts,
            },
        )
        if attempt < max_attempts:
            time.sleep(backoff_ms * attempt / 1000)

    raise CheckWriteContendedError(result.endpoint_id, max_attempts)


def _write_locked(
    result: CheckResult, now: datetime, threshold_seconds: float
) -> WriteResult | None:
    """One attempt inside an open transaction; ``None`` means the lock was contended."""

    latest_id = _latest_record_id(result.endpoint_id)

    if latest_id is None:
        # Nothing to lock in the history yet: serialize first writes on the endpoint row.
        if not _lock_endpoint(result.endpoint_id):
            return None
        latest = None
    else:
        latest = (
            CheckRecord.objects.select_for_update(skip_locked=True).filter(pk=latest_id).first()
        )
        if latest is None:
            return None

    if _latest_record_id(result.endpoint_id) != latest_id:
        # Another writer committed a newer row between the read and the lock.
        return None

    decision = decide_write(latest, result.status, now, threshold_seconds)

    if decision is WriteOutcome.APPENDED:
        record = CheckRecord.objects.create(
            endpoint_id=result.endpoint_id,
            status=result.status,
            response_time=result.response_time_ms,
            status_code=result.status_code,
            error=result.error,
            recorded_at=now,
        )
        return WriteResult(outcome=WriteOutcome.APPENDED, record=record)

    # A replica with a lagging clock must not move the row back in time.
    latest.recorded_at = max(now, latest.recorded_at)
    latest.response_time = result.response_time_ms
    latest.status_code = result.status_code
    latest.error = result.error
    latest.save(update_fields=["recorded_at", "response_time", "status_code", "error"])
    return WriteResult(outcome=WriteOutcome.COALESCED, record=latest)


def _latest_record_id(endpoint_id: int) -> int | None:
    return (
        CheckRecord.objects.filter(endpoint_id=endpoint_id)
        .order_by("-recorded_at", "-id")
        .values_list("id", flat=True)
        .first()
    )


def _lock_endpoint(endpoint_id: int) -> bool:
    locked = (
        Endpoint.objects.select_for_update(skip_locked=True)
        .filter(pk=endpoint_id)
        .only("pk")
        .first()
    )
    if locked is not None:
        return True
    if not Endpoint.objects.filter(pk=endpoint_id).exists():
        raise Endpoint.DoesNotExist(f"Endpoint {endpoint_id} no longer exists")
    return False


def _log_write(result: CheckResult, write: WriteResult, attempt: int) -> None:
    payload = {
        "endpoint_id": result.endpoint_id,
        "status": str(result.status),
        "record_id": write.record_id,
        "outcome": write.outcome.value,
        "attempt": attempt,
    }
    if write.outcome is WriteOutcome.APPENDED:
        audit_logger.info("Check history row appended", extra=payload)
    else:
        audit_logger.debug("Check history row coalesced", extra=payload)


__all__ = [
    "DEFAULT_COALESCE_THRESHOLD_SECONDS",
    "CheckWriteContendedError",
    "decide_write",
    "record_check",
]
