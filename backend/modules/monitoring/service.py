"""Monitoring services encapsulating page, endpoint and incident workflows."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from api.exceptions import SlugConflictError

from .dto import EndpointStatusDto, PageDetailDto
from .models import CheckRecord, Endpoint, Incident, IncidentStatus, Page
from .uptime import latest_check, latest_checks, overall_status, uptime_percentage

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")

HISTORY_LIMIT = 100
DEFAULT_TIMELINE_HOURS = 24


class PageService:
    """Status page registry and the aggregated read views built on it."""

    def queryset(self) -> QuerySet[Page]:
        return Page.objects.order_by("id")

    def create_page(self, *, slug: str, name: str) -> Page:
        if Page.objects.filter(slug=slug).exists():
            raise SlugConflictError()

        try:
            with transaction.atomic():
                page = Page.objects.create(slug=slug, name=name)
        except IntegrityError as exc:
            # Lost a race against a concurrent create with the same slug.
            raise SlugConflictError() from exc

        audit_logger.info("Status page created", extra={"page_id": page.pk, "slug": page.slug})
        return page

    def update_page(self, page: Page, *, slug: str | None = None, name: str | None = None) -> Page:
        update_fields = []
        if slug and slug != page.slug:
            if Page.objects.filter(slug=slug).exclude(pk=page.pk).exists():
                raise SlugConflictError()
            page.slug = slug
            update_fields.append("slug")
        if name:
            page.name = name
            update_fields.append("name")

        if update_fields:
            try:
                with transaction.atomic():
                    page.save(update_fields=update_fields)
            except IntegrityError as exc:
                raise SlugConflictError() from exc
            audit_logger.info(
                "Status page updated",
                extra={"page_id": page.pk, "slug": page.slug, "fields": update_fields},
            )
        return page

    def active_endpoints(self, page: Page) -> list[Endpoint]:
        return list(page.endpoints.filter(active=True).order_by("id"))

    def page_detail(self, page: Page, *, now=None) -> PageDetailDto:
        """Page with each active endpoint's latest check and 24h uptime."""

        now = now or timezone.now()
        endpoints = [
            EndpointStatusDto.from_model(
                endpoint,
                latest=latest_check(endpoint.pk),
                uptime=uptime_percentage([endpoint.pk], now=now),
            )
            for endpoint in self.active_endpoints(page)
        ]
        return PageDetailDto.from_model(page, endpoints)

    def timeline(
        self, page: Page, *, hours: int = DEFAULT_TIMELINE_HOURS, now=None
    ) -> QuerySet[CheckRecord]:
        now = now or timezone.now()
        return CheckRecord.objects.filter(
            endpoint__page=page,
            endpoint__active=True,
            recorded_at__gte=now - timedelta(hours=hours),
        ).order_by("-recorded_at", "-id")

    def badge_state(self, page: Page, *, now=None) -> tuple[str, float]:
        """Overall status and combined 24h uptime for the page's active endpoints."""

        endpoint_ids = [endpoint.pk for endpoint in self.active_endpoints(page)]
        if not endpoint_ids:
            return "up", 100.0

        status = overall_status(latest_checks(endpoint_ids).values())
        return status, uptime_percentage(endpoint_ids, now=now)


class EndpointService:
    """Endpoint registry writes and history reads."""

    def queryset(self) -> QuerySet[Endpoint]:
        return Endpoint.objects.select_related("page").order_by("id")

    def create_endpoint(self, *, serializer) -> Endpoint:
        endpoint = serializer.save()
        audit_logger.info("Endpoint created", extra=self._audit_payload(endpoint))
        return endpoint

    def delete_endpoint(self, endpoint: Endpoint) -> None:
        audit_logger.info("Endpoint deleted", extra=self._audit_payload(endpoint))
        endpoint.delete()

    def history(self, endpoint: Endpoint, *, limit: int = HISTORY_LIMIT) -> QuerySet[CheckRecord]:
        return endpoint.checks.order_by("-recorded_at", "-id")[:limit]

    @staticmethod
    def _audit_payload(endpoint: Endpoint) -> dict[str, Any]:
        return {
            "endpoint_id": endpoint.pk,
            "page_id": endpoint.page_id,
            "url": endpoint.url,
            "method": endpoint.method,
        }


class IncidentService:
    """Incident lifecycle with resolved-at bookkeeping."""

    def queryset(self, *, page_id: int | None = None) -> QuerySet[Incident]:
        queryset = Incident.objects.order_by("-created_at", "-id")
        if page_id is not None:
            queryset = queryset.filter(page_id=page_id)
        return queryset

    def create_incident(self, *, serializer) -> Incident:
        status = serializer.validated_data.get("status", IncidentStatus.INVESTIGATING)
        extra = {}
        if status == IncidentStatus.RESOLVED:
            extra["resolved_at"] = timezone.now()
        incident = serializer.save(**extra)

        audit_logger.info(
            "Incident opened",
            extra={"incident_id": incident.pk, "page_id": incident.page_id, "status": status},
        )
        return incident

    def update_incident(self, incident: Incident, *, serializer) -> Incident:
        """Apply a partial update; resolving stamps ``resolved_at`` once, reopening clears it."""

        status = serializer.validated_data.get("status")
        extra = {}
        if status == IncidentStatus.RESOLVED and incident.resolved_at is None:
            extra["resolved_at"] = timezone.now()
        elif status is not None and status != IncidentStatus.RESOLVED:
            extra["resolved_at"] = None
        incident = serializer.save(**extra)

        audit_logger.info(
            "Incident updated",
            extra={
                "incident_id": incident.pk,
                "page_id": incident.page_id,
                "status": incident.status,
                "resolved_at": incident.resolved_at.isoformat() if incident.resolved_at else None,
            },
        )
        return incident

    def delete_incident(self, incident: Incident) -> None:
        audit_logger.info(
            "Incident deleted", extra={"incident_id": incident.pk, "page_id": incident.page_id}
        )
        incident.delete()


page_service = PageService()
endpoint_service = EndpointService()
incident_service = IncidentService()

__all__ = [
    "EndpointService",
    "IncidentService",
    "PageService",
    "endpoint_service",
    "incident_service",
    "page_service",
]
