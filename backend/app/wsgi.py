"""
WSGI entry point for Uptimely.

Exposes ``application`` for gunicorn/uwsgi. The in-process checker is not
started here; run ``manage.py run_checker`` or Celery beat alongside.
"""

import os

from django.core.wsgi import get_wsgi_application
from modules.core.settings import setup_settings_logging

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "app.settings")

setup_settings_logging(logger_name="app.settings_loader.wsgi")

application = get_wsgi_application()
