"""
Settings shared by every Uptimely environment.

Values come from the ``build_*`` helpers in ``modules.core.settings``; the
development, production and test overlays only patch on top of this module.
"""

from modules.core.settings import (
    BASE_DIR,
    LOG_DIR,
    build_celery_config,
    build_checker_config,
    build_default_database_config,
    build_installed_apps,
    build_logging_config,
    build_middleware,
    build_rest_framework_config,
    get_env,
)

env = get_env()

# -------------------------------------------------------------------
# Django core
# -------------------------------------------------------------------
INSTALLED_APPS = build_installed_apps()
MIDDLEWARE = build_middleware()

ROOT_URLCONF = "app.urls"
WSGI_APPLICATION = "app.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": ["django.template.context_processors.request"]},
    },
]

DATABASES = build_default_database_config()
CONN_MAX_AGE = env.int("DB_CONN_MAX_AGE", default=60)
for _database in DATABASES.values():
    _database.setdefault("CONN_MAX_AGE", CONN_MAX_AGE)

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
USE_I18N = False
USE_TZ = True
# The daily retention sweep fires at CHECK_RETENTION_HOUR in this zone.
TIME_ZONE = env("TIME_ZONE", default="UTC")

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

REST_FRAMEWORK = build_rest_framework_config()

LOGGING = build_logging_config(LOG_DIR)

# -------------------------------------------------------------------
# Checker and Celery
# -------------------------------------------------------------------
# CHECK_TICK_INTERVAL_SECONDS, CHECK_RETENTION_DAYS, CHECK_WRITE_LOCK_* ...
checker_config = build_checker_config(env)
globals().update(checker_config)

# CELERY_BROKER_URL, CELERY_BEAT_SCHEDULE, REDIS_URL ...
celery_config = build_celery_config(env, timezone=TIME_ZONE, checker=checker_config)
globals().update(celery_config)
