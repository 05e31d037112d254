"""Reusable URL helpers shared by the project router."""

from __future__ import annotations

from api.health import health_check
from django.urls import path


def health_urlpatterns():
    return [
        path("healthz", health_check, name="healthz"),
        path("health/", health_check, name="health_check"),
    ]


__all__ = ["health_urlpatterns"]
