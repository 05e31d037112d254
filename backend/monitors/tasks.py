"""Task module re-exporting the modular implementations for Celery autodiscovery."""

from modules.monitoring.tasks import purge_expired_checks_task, run_check_tick  # noqa: F401

__all__ = [
    "purge_expired_checks_task",
    "run_check_tick",
]
