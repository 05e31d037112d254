"""Celery tasks for monitoring, exposed under `monitors.tasks` names."""

from __future__ import annotations

import logging

from celery import shared_task

from .retention import purge_expired_checks
from .scheduler import run_tick

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")


@shared_task(bind=True, name="monitors.tasks.run_check_tick")
def run_check_tick(self) -> dict:
    """Probe every active endpoint once and write the outcomes."""

    summary = run_tick()
    payload = summary.to_dict()

    logger.info(
        "Check tick task completed",
        extra={**payload, "task_id": getattr(self.request, "id", None)},
    )

    if summary.failed:
        audit_logger.warning(
            "Some endpoint checks failed to record",
            extra={
                "failed": summary.failed,
                "endpoints": summary.endpoints,
                "task_id": getattr(self.request, "id", None),
            },
        )

    return payload


@shared_task(bind=True, name="monitors.tasks.purge_expired_checks")
def purge_expired_checks_task(self) -> int | None:
    """Daily retention sweep; a failed sweep is logged and retried at the next firing."""

    try:
        return purge_expired_checks()
    except Exception as exc:  # noqa: BLE001
        audit_logger.error(
            "Retention sweep task failed",
            extra={
                "error": str(exc),
                "error_type": type(exc).__name__,
                "task_id": getattr(self.request, "id", None),
            },
            exc_info=True,
        )
        return None


__all__ = [
    "purge_expired_checks_task",
    "run_check_tick",
]
