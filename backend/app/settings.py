"""Picks the settings overlay for ``DJANGO_ENV`` and logs what was loaded."""

from modules.core.settings import setup_settings_logging

logging_context = setup_settings_logging()
settings_logger = logging_context.logger
environment = logging_context.environment

if environment == "development":
    from app.settings_development import *  # noqa: F403, F401
else:
    from app.settings_production import *  # noqa: F403, F401

_summary = {
    "DEBUG": DEBUG,  # noqa: F405
    "ALLOWED_HOSTS": ALLOWED_HOSTS,  # noqa: F405
    "CORS_ALLOW_ALL_ORIGINS": CORS_ALLOW_ALL_ORIGINS,  # noqa: F405
    "ENFORCE_HTTPS": ENFORCE_HTTPS,  # noqa: F405
    "SENTRY": SENTRY_ENVIRONMENT if SENTRY_DSN else "disabled",  # noqa: F405
}
settings_logger.info("%s settings loaded", environment.capitalize())
for _key, _value in _summary.items():
    settings_logger.info("   - %s: %s", _key, _value)
settings_logger.info(
    "   - Checker: tick=%ss retention=%sd sweep=%02d:%02d %s",
    CHECK_TICK_INTERVAL_SECONDS,  # noqa: F405
    CHECK_RETENTION_DAYS,  # noqa: F405
    CHECK_RETENTION_HOUR,  # noqa: F405
    CHECK_RETENTION_MINUTE,  # noqa: F405
    TIME_ZONE,  # noqa: F405
)
