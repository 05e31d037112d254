"""
Pytest configuration for the Uptimely test suite.

Provides shared fixtures for status pages, endpoints and log capture. Tests that
exercise worker threads must use ``django_db(transaction=True)`` so the rows they
create are committed and visible to the threads' own connections.
"""

import logging
import uuid
from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure test environment before tests run."""
    from django.conf import settings

    # Worker threads open their own connections; never keep them around between tests.
    if hasattr(settings, "DATABASES"):
        for db_config in settings.DATABASES.values():
            db_config["CONN_MAX_AGE"] = 0
            db_config["CONN_HEALTH_CHECKS"] = False

    static_root = getattr(settings, "STATIC_ROOT", None)
    if static_root:
        Path(static_root).mkdir(parents=True, exist_ok=True)


MONITOR_LOGGERS = ("monitors", "monitors.audit", "monitors.performance")


@pytest.fixture
def monitor_logs(caplog):
    """Capture records from the non-propagating ``monitors*`` loggers."""

    loggers = [logging.getLogger(name) for name in MONITOR_LOGGERS]
    previous_levels = {logger.name: logger.level for logger in loggers}

    caplog.handler.setLevel(logging.DEBUG)
    for logger in loggers:
        logger.addHandler(caplog.handler)
        logger.setLevel(logging.DEBUG)

    caplog.clear()
    yield caplog
    caplog.clear()

    for logger in loggers:
        logger.removeHandler(caplog.handler)
        logger.setLevel(previous_levels[logger.name])


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def page_factory(db):
    """Create status pages with unique slugs."""

    from monitors.models import Page

    def _create(slug: str | None = None, name: str | None = None) -> Page:
        slug = slug or f"page-{uuid.uuid4().hex[:8]}"
        return Page.objects.create(slug=slug, name=name or slug.replace("-", " ").title())

    return _create


@pytest.fixture
def endpoint_factory(db, page_factory):
    """Create endpoints, attaching a fresh page unless one is given."""

    from monitors.models import Endpoint

    def _create(page=None, **overrides) -> Endpoint:
        values = {
            "name": "API",
            "url": "https://status.example.com/health",
            "method": "GET",
            "interval": 30,
            "timeout": 10,
            "active": True,
        }
        values.update(overrides)
        return Endpoint.objects.create(page=page or page_factory(), **values)

    return _create


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Log failing test details to the Django error logger for debugging."""

    outcome = yield
    report = outcome.get_result()

    if not report.failed:
        return

    logger = logging.getLogger("django")
    longrepr = getattr(report, "longreprtext", None)
    detail = longrepr if isinstance(longrepr, str) else str(report.longrepr)
    logger.error(
        "Pytest failure | phase=%s | nodeid=%s\n%s",
        report.when,
        report.nodeid,
        detail,
    )
