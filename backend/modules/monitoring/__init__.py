"""Monitoring package.

The checker pipeline lives in ``probe`` (one HTTP request, classified),
``recorder`` (coalesce-or-append history writes), ``retention`` (daily purge)
and ``scheduler`` (tick and sweep timers). ``tasks`` wraps the same entry
points for Celery beat. The read side is ``service``, ``uptime``, ``badge``,
``serializers`` and ``views``. Import concretely from those modules to avoid
circular imports with the ``monitors`` Django app.
"""

__all__ = [
    "badge",
    "dto",
    "models",
    "probe",
    "recorder",
    "retention",
    "scheduler",
    "service",
    "tasks",
    "uptime",
]
