"""Monitoring API routes exposed by the modular monitoring package."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import EndpointViewSet, IncidentViewSet, PageViewSet, status_badge

router = DefaultRouter()
router.register("pages", PageViewSet, basename="page")
router.register("endpoints", EndpointViewSet, basename="endpoint")
router.register("incidents", IncidentViewSet, basename="incident")

urlpatterns = router.urls

badge_urlpatterns = [
    path("badge/<slug:slug>/", status_badge, name="status_badge"),
]

__all__ = ["badge_urlpatterns", "router", "urlpatterns"]
