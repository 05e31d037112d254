"""Sentry bootstrap for the web process, the checker and Celery workers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

# Runtime env vars that carry credentials.
_FILTERED_ENV_KEYS = frozenset(
    {"SECRET_KEY", "DATABASE_URL", "REDIS_URL", "CELERY_BROKER_URL", "CELERY_RESULT_BACKEND"}
)
# Probed constantly by load balancers and embedding pages.
_UNSAMPLED_PREFIXES = ("/health", "/healthz", "/badge/")


def _scrub_event(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    runtime_env = event.get("contexts", {}).get("runtime", {}).get("env") or {}
    for key in _FILTERED_ENV_KEYS.intersection(runtime_env):
        runtime_env[key] = "[Filtered]"
    return event


def _make_traces_sampler(rate: float) -> Callable[[dict[str, Any]], float]:
    def sampler(sampling_context: dict[str, Any]) -> float:
        path = sampling_context.get("wsgi_environ", {}).get("PATH_INFO", "")
        return 0.0 if path.startswith(_UNSAMPLED_PREFIXES) else rate

    return sampler


def configure_sentry(env, *, default_environment: str = "production") -> Mapping[str, Any]:
    """Call ``sentry_sdk.init`` when ``SENTRY_DSN`` is set.

    Returns the resolved ``dsn``, ``environment`` and ``traces_sample_rate`` so
    the settings module can expose them; ``dsn`` is empty when Sentry is off.
    """

    dsn = env("SENTRY_DSN", default="")
    environment = env("SENTRY_ENVIRONMENT", default="") or default_environment
    traces_sample_rate = env.float("SENTRY_TRACES_SAMPLE_RATE", default=0.1)
    resolved = {"dsn": dsn, "environment": environment, "traces_sample_rate": traces_sample_rate}
    if not dsn:
        return resolved

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=env("SENTRY_RELEASE", default=None),
        traces_sample_rate=traces_sample_rate,
        traces_sampler=_make_traces_sampler(traces_sample_rate),
        integrations=[
            DjangoIntegration(transaction_style="url"),
            CeleryIntegration(monitor_beat_tasks=True),
            # Probe failures log at WARNING and stay breadcrumbs.
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        attach_stacktrace=True,
        send_default_pii=False,
        before_send=_scrub_event,
    )
    return resolved
