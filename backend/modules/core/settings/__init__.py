"""Settings builders for Uptimely.

``app.settings_base`` assembles its module globals from the ``build_*``
functions here; the environment overlays only patch on top. Everything that
reads the environment goes through the single ``django-environ`` loader
returned by ``get_env()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

import environ
from celery.schedules import crontab

from modules.core.settings.logger import SettingsLoggingContext, setup_settings_logging
from modules.core.settings.security import (
    get_dev_cors_settings,
    get_dev_https_settings,
    get_prod_cors_settings,
    get_prod_https_settings,
)
from modules.core.settings.sentry import configure_sentry

# backend/modules/core/settings/__init__.py -> backend/
BASE_DIR = Path(__file__).resolve().parents[3]
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

_env = environ.Env()
for _candidate in (BASE_DIR / ".env", BASE_DIR.parent / ".env"):
    if _candidate.exists():
        environ.Env.read_env(_candidate)
        break


def get_env() -> environ.Env:
    return _env


# ---------------------------------------------------------------------------
# Apps, middleware, database, DRF
# ---------------------------------------------------------------------------

INSTALLED_APPS: tuple[str, ...] = (
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "monitors",
)

MIDDLEWARE: tuple[str, ...] = (
    "django.middleware.security.SecurityMiddleware",
    "app.middleware_logging.RequestIDMiddleware",
    "app.middleware_logging.RequestLoggingMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
)


def build_installed_apps() -> list[str]:
    return list(INSTALLED_APPS)


def build_middleware() -> list[str]:
    return list(MIDDLEWARE)


def build_default_database_config() -> dict[str, Any]:
    """``DATABASE_URL`` (PostgreSQL in production), SQLite file otherwise."""

    database = get_env().db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
    if database["ENGINE"] == "django.db.backends.sqlite3":
        # Writers take the database lock up front instead of upgrading mid-transaction.
        database.setdefault("OPTIONS", {}).update({"transaction_mode": "IMMEDIATE", "timeout": 20})
    return {"default": database}


def build_rest_framework_config() -> dict[str, Any]:
    # Status pages are public and unauthenticated.
    return {
        "DEFAULT_AUTHENTICATION_CLASSES": (),
        "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.AllowAny",),
        "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
        "EXCEPTION_HANDLER": "api.exception_handler.custom_exception_handler",
        "UNAUTHENTICATED_USER": None,
    }


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------

# name -> (caster, default, (min, max) or None)
_CHECKER_SETTINGS: dict[str, tuple[str, Any, tuple[int, int | None] | None]] = {
    "CHECK_TICK_INTERVAL_SECONDS": ("int", 30, (1, None)),
    "CHECK_RETENTION_DAYS": ("int", 30, (1, None)),
    "CHECK_RETENTION_HOUR": ("int", 2, (0, 23)),
    "CHECK_RETENTION_MINUTE": ("int", 0, (0, 59)),
    "CHECK_COALESCE_THRESHOLD_SECONDS": ("float", 5.0, None),
    "CHECK_MAX_CONCURRENCY": ("int", 32, (1, None)),
    "CHECK_SHUTDOWN_GRACE_SECONDS": ("float", 15.0, None),
    "CHECK_WRITE_LOCK_ATTEMPTS": ("int", 3, (1, None)),
    "CHECK_WRITE_LOCK_BACKOFF_MS": ("int", 100, (0, None)),
}


def build_checker_config(env: environ.Env | None = None) -> Mapping[str, Any]:
    """Tick cadence, retention and write-protocol knobs, validated against their ranges."""

    env = env or get_env()
    config: dict[str, Any] = {}
    for key, (caster, default, bounds) in _CHECKER_SETTINGS.items():
        value = getattr(env, caster)(key, default=default)
        if bounds is not None:
            low, high = bounds
            if value < low or (high is not None and value > high):
                upper = "" if high is None else f" and {high}"
                raise ValueError(f"{key} must be >= {low}{upper}, got {value}")
        config[key] = value
    return config


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

_MB = 1024 * 1024

# handler name -> (file, level, max bytes, cap at WARNING)
_FILE_HANDLERS: dict[str, tuple[str, str, int, bool]] = {
    "file_app": ("uptimely.log", "INFO", 5 * _MB, True),
    "file_error": ("error.log", "ERROR", 5 * _MB, False),
    "file_request": ("request.log", "INFO", 5 * _MB, False),
    "file_audit": ("audit.log", "INFO", 5 * _MB, False),
    "file_performance": ("performance.log", "INFO", 10 * _MB, False),
    "file_health": ("health.log", "INFO", 10 * _MB, False),
}

_APP_HANDLERS = ["console", "file_app", "file_error"]

# logger name -> (handlers, level)
_LOGGER_ROUTES: dict[str, tuple[list[str], str]] = {
    "django": (_APP_HANDLERS, "INFO"),
    "django.request": (_APP_HANDLERS, "ERROR"),
    "celery": (_APP_HANDLERS, "INFO"),
    "api": (_APP_HANDLERS, "INFO"),
    "api.requests": (["file_request"], "INFO"),
    "api.health": (["file_health"], "INFO"),
    "monitors": (_APP_HANDLERS, "INFO"),
    "monitors.audit": (["console", "file_audit", "file_error"], "INFO"),
    "monitors.performance": (["file_performance"], "INFO"),
    "apscheduler": (_APP_HANDLERS, "WARNING"),
}


def build_logging_config(log_dir: Path | None = None) -> dict[str, Any]:
    dir_path = log_dir or LOG_DIR

    handlers: dict[str, dict[str, Any]] = {
        "console": {"level": "INFO", "class": "logging.StreamHandler", "formatter": "verbose"},
    }
    for name, (filename, level, max_bytes, capped) in _FILE_HANDLERS.items():
        handlers[name] = {
            "level": level,
            "class": "logging.handlers.RotatingFileHandler",
            "filename": dir_path / filename,
            "maxBytes": max_bytes,
            "backupCount": 5,
            "formatter": "verbose",
        }
        if capped:
            handlers[name]["filters"] = ["max_warning"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{levelname}] {asctime} {name} {module}.{funcName}:{lineno} - {message}",
                "style": "{",
            },
        },
        "filters": {
            "max_warning": {"()": "app.logging_filters.MaxLevelFilter", "level": "WARNING"},
        },
        "handlers": handlers,
        "loggers": {
            name: {"handlers": list(route), "level": level, "propagate": False}
            for name, (route, level) in _LOGGER_ROUTES.items()
        },
        "root": {"handlers": ["console", "file_app"], "level": "INFO"},
    }


# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------


def build_celery_config(
    env: environ.Env | None = None,
    *,
    timezone: str = "UTC",
    checker: Mapping[str, Any] | None = None,
) -> Mapping[str, Any]:
    """Broker settings plus the beat schedule for ticks and the daily purge."""

    env = env or get_env()
    checker = checker or build_checker_config(env)
    tick_seconds = checker["CHECK_TICK_INTERVAL_SECONDS"]

    redis_url = env("REDIS_URL", default="redis://127.0.0.1:6379/0")
    # Results live next to the broker, one database over.
    results_default = redis_url[:-1] + "1" if redis_url.endswith("/0") else redis_url

    return {
        "REDIS_URL": redis_url,
        "CELERY_BROKER_URL": env("CELERY_BROKER_URL", default=redis_url),
        "CELERY_RESULT_BACKEND": env("CELERY_RESULT_BACKEND", default=results_default),
        "CELERY_TIMEZONE": timezone,
        "CELERY_TASK_TRACK_STARTED": True,
        "CELERY_TASK_ALWAYS_EAGER": env.bool("CELERY_TASK_ALWAYS_EAGER", default=False),
        "CELERY_ACCEPT_CONTENT": ["json"],
        "CELERY_TASK_SERIALIZER": "json",
        "CELERY_RESULT_SERIALIZER": "json",
        "CELERY_BEAT_SCHEDULE": {
            "monitors.run_check_tick": {
                "task": "monitors.tasks.run_check_tick",
                "schedule": timedelta(seconds=tick_seconds),
                # A tick that could not start before the next one is due is dropped.
                "options": {"expires": tick_seconds},
            },
            "monitors.purge_expired_checks": {
                "task": "monitors.tasks.purge_expired_checks",
                "schedule": crontab(
                    hour=checker["CHECK_RETENTION_HOUR"],
                    minute=checker["CHECK_RETENTION_MINUTE"],
                ),
            },
        },
    }


__all__ = [
    "BASE_DIR",
    "LOG_DIR",
    "INSTALLED_APPS",
    "MIDDLEWARE",
    "get_env",
    "build_installed_apps",
    "build_middleware",
    "build_default_database_config",
    "build_rest_framework_config",
    "build_checker_config",
    "build_logging_config",
    "build_celery_config",
    "get_dev_cors_settings",
    "get_prod_cors_settings",
    "get_dev_https_settings",
    "get_prod_https_settings",
    "configure_sentry",
    "setup_settings_logging",
    "SettingsLoggingContext",
]
