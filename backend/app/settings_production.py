"""
Production overlay: strict hosts, HTTPS enforced except on health probes,
and a refusal to start without a real ``SECRET_KEY``.
"""

from modules.core.settings import (
    configure_sentry,
    get_prod_cors_settings,
    get_prod_https_settings,
)

from app.settings_base import *  # noqa: F403, F401

_SECRET_KEY_MIN_LENGTH = 50


def _validated_secret_key(value: str | None) -> str:
    if not value:
        problem = "SECRET_KEY is not set"
    elif value.startswith("django-insecure"):
        problem = "SECRET_KEY is a 'django-insecure' development key"
    elif len(value) < _SECRET_KEY_MIN_LENGTH:
        problem = f"SECRET_KEY is shorter than {_SECRET_KEY_MIN_LENGTH} characters"
    else:
        return value
    raise ValueError(
        f"{problem}. Generate one with: python -c 'from django.core.management.utils "
        "import get_random_secret_key; print(get_random_secret_key())'"
    )


DEBUG = env.bool("DEBUG", default=False)  # noqa: F405
SECRET_KEY = _validated_secret_key(env("SECRET_KEY", default=None))  # noqa: F405
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost"])  # noqa: F405

globals().update(get_prod_cors_settings(env))  # noqa: F405
globals().update(get_prod_https_settings(env))  # noqa: F405

_sentry_cfg = configure_sentry(env)  # noqa: F405
SENTRY_DSN = _sentry_cfg["dsn"]
SENTRY_TRACES_SAMPLE_RATE = _sentry_cfg["traces_sample_rate"]
SENTRY_ENVIRONMENT = _sentry_cfg["environment"]
