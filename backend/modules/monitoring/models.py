"""Status page, endpoint registry, check history and incident models."""

from __future__ import annotations

from django.db import models
from django.db.models import Q


class CheckStatus(models.TextChoices):
    UP = "up", "Up"
    DOWN = "down", "Down"
    DEGRADED = "degraded", "Degraded"


class HttpMethod(models.TextChoices):
    GET = "GET", "GET"
    HEAD = "HEAD", "HEAD"
    POST = "POST", "POST"
    PUT = "PUT", "PUT"
    PATCH = "PATCH", "PATCH"
    DELETE = "DELETE", "DELETE"
    OPTIONS = "OPTIONS", "OPTIONS"


class IncidentStatus(models.TextChoices):
    INVESTIGATING = "investigating", "Investigating"
    IDENTIFIED = "identified", "Identified"
    MONITORING = "monitoring", "Monitoring"
    RESOLVED = "resolved", "Resolved"


class Page(models.Model):
    """Public status page grouping a set of monitored endpoints."""

    slug = models.SlugField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "monitors"
        ordering = ("id",)

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


class Endpoint(models.Model):
    """Monitored HTTP target. Read-only from the checker's point of view."""

    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name="endpoints")
    name = models.CharField(max_length=255)
    url = models.URLField(max_length=2048)
    method = models.CharField(
        max_length=10, choices=HttpMethod.choices, default=HttpMethod.GET
    )
    # Stored and validated but not used for pacing: every endpoint shares the global tick.
    interval = models.PositiveIntegerField(default=30)
    timeout = models.PositiveIntegerField(default=10)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "monitors"
        ordering = ("id",)
        indexes = [models.Index(fields=["active"], name="monitors_endpoint_active_idx")]
        constraints = [
            models.CheckConstraint(
                condition=Q(interval__gt=0), name="monitors_endpoint_interval_gt_0"
            ),
            models.CheckConstraint(
                condition=Q(timeout__gt=0), name="monitors_endpoint_timeout_gt_0"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.method}] {self.url}"


class CheckRecord(models.Model):
    """One history row describing an endpoint's status at/since ``recorded_at``.

    Rows are append-mostly; only the most recent row of an endpoint is ever
    rewritten in place, and only by ``modules.monitoring.recorder``.
    """

    endpoint = models.ForeignKey(Endpoint, on_delete=models.CASCADE, related_name="checks")
    status = models.CharField(max_length=16, choices=CheckStatus.choices)
    response_time: models.PositiveIntegerField | None = models.PositiveIntegerField(
        null=True, blank=True
    )
    status_code: models.PositiveIntegerField | None = models.PositiveIntegerField(
        null=True, blank=True
    )
    error: models.TextField | None = models.TextField(null=True, blank=True)
    recorded_at = models.DateTimeField()

    class Meta:
        app_label = "monitors"
        ordering = ("-recorded_at", "-id")
        indexes = [
            models.Index(fields=["endpoint", "recorded_at"], name="monitors_check_endpoint_idx"),
            models.Index(fields=["recorded_at"], name="monitors_check_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.endpoint_id}:{self.status}@{self.recorded_at.isoformat()}"


class Incident(models.Model):
    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name="incidents")
    title = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    status = models.CharField(
        max_length=16, choices=IncidentStatus.choices, default=IncidentStatus.INVESTIGATING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at: models.DateTimeField | None = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "monitors"
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"


__all__ = [
    "CheckRecord",
    "CheckStatus",
    "Endpoint",
    "HttpMethod",
    "Incident",
    "IncidentStatus",
    "Page",
]
