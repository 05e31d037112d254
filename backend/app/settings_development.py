"""
Development overlay: DEBUG on, any origin may embed pages, HTTPS off and
verbose checker audit logging.
"""

from modules.core.settings import (
    configure_sentry,
    get_dev_cors_settings,
    get_dev_https_settings,
)

from app.settings_base import *  # noqa: F403, F401

DEBUG = True
SECRET_KEY = env("SECRET_KEY", default="django-insecure-uptimely-dev-only")  # noqa: F405
ALLOWED_HOSTS = ["localhost", "127.0.0.1", ".localhost", "[::1]"]

globals().update(get_dev_cors_settings(env))  # noqa: F405
globals().update(get_dev_https_settings())

# Browsable API for poking at pages and endpoints by hand.
REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"] += (  # noqa: F405
    "rest_framework.renderers.BrowsableAPIRenderer",
)

# Coalesce and lock-contention decisions are logged at DEBUG.
LOGGING["loggers"]["monitors.audit"]["level"] = "DEBUG"  # type: ignore  # noqa: F405

_sentry_cfg = configure_sentry(env, default_environment="development")  # noqa: F405
SENTRY_DSN = _sentry_cfg["dsn"]
SENTRY_TRACES_SAMPLE_RATE = _sentry_cfg["traces_sample_rate"]
SENTRY_ENVIRONMENT = _sentry_cfg["environment"]
