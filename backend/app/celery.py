"""Celery app for the checker worker and beat.

Beat drives ``monitors.tasks.run_check_tick`` every tick interval and the
daily ``purge_expired_checks`` sweep; see ``CELERY_BEAT_SCHEDULE``.
"""

import logging
import os

from celery import Celery
from celery.signals import beat_init
from modules.core.settings import setup_settings_logging

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "app.settings")

setup_settings_logging(logger_name="app.settings_loader.celery")

celery_app = Celery("uptimely")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()

INITIAL_TICK_TASK = "monitors.tasks.run_check_tick"

audit_logger = logging.getLogger("monitors.audit")


@beat_init.connect
def dispatch_initial_tick(sender=None, **kwargs):
    """Enqueue one tick as soon as beat starts instead of one interval later."""

    celery_app.send_task(INITIAL_TICK_TASK)
    audit_logger.info("Initial check tick dispatched", extra={"task": INITIAL_TICK_TASK})
