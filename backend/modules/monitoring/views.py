"""Viewsets and endpoints for status pages, endpoints, incidents and badges."""

import logging

from django.http import HttpResponse
from django.views.decorators.http import require_GET
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from modules.monitoring.badge import render_badge
from modules.monitoring.models import Page
from modules.monitoring.serializers import (
    CheckRecordSerializer,
    EndpointSerializer,
    IncidentSerializer,
    PageSerializer,
)
from modules.monitoring.service import (
    DEFAULT_TIMELINE_HOURS,
    endpoint_service,
    incident_service,
    page_service,
)

logger = logging.getLogger("monitors")


class PageViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """Status pages addressed by slug."""

    serializer_class = PageSerializer
    permission_classes = [AllowAny]
    lookup_field = "slug"
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        return page_service.queryset()

    def retrieve(self, request, *args, **kwargs):
        page = self.get_object()
        return Response(page_service.page_detail(page).to_dict())

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        page = page_service.create_page(**serializer.validated_data)
        return Response(self.get_serializer(page).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        page = self.get_object()
        serializer = self.get_serializer(page, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        page = page_service.update_page(page, **serializer.validated_data)
        return Response(self.get_serializer(page).data)

    @action(detail=True, methods=["get"])
    def timeline(self, request, slug=None):
        page = self.get_object()
        hours = _positive_int(request.query_params.get("hours"), DEFAULT_TIMELINE_HOURS)
        records = page_service.timeline(page, hours=hours)
        return Response(CheckRecordSerializer(records, many=True).data)


class EndpointViewSet(
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Endpoint registry: create, inspect, delete and read check history."""

    serializer_class = EndpointSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return endpoint_service.queryset()

    def perform_create(self, serializer):
        endpoint_service.create_endpoint(serializer=serializer)

    def destroy(self, request, *args, **kwargs):
        endpoint_service.delete_endpoint(self.get_object())
        return Response({"success": True})

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        endpoint = self.get_object()
        records = endpoint_service.history(endpoint)
        return Response(CheckRecordSerializer(records, many=True).data)


class IncidentViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Incidents per status page, newest first."""

    serializer_class = IncidentSerializer
    permission_classes = [AllowAny]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        if self.action == "list":
            page_id = self.request.query_params.get("page_id")
            if page_id is None:
                raise ValidationError({"page_id": ["This query parameter is required."]})
            try:
                return incident_service.queryset(page_id=int(page_id))
            except ValueError:
                raise ValidationError({"page_id": ["A valid integer is required."]}) from None
        return incident_service.queryset()

    def perform_create(self, serializer):
        incident_service.create_incident(serializer=serializer)

    def perform_update(self, serializer):
        incident_service.update_incident(serializer.instance, serializer=serializer)

    def destroy(self, request, *args, **kwargs):
        incident_service.delete_incident(self.get_object())
        return Response({"success": True})


@require_GET
def status_badge(request, slug: str):
    """SVG badge summarising a page's current status and 24h uptime."""

    page = Page.objects.filter(slug=slug).first()
    if page is None:
        return HttpResponse("Not found", status=404, content_type="text/plain")

    badge_status, uptime = page_service.badge_state(page)
    logger.debug(
        "Status badge rendered",
        extra={"slug": slug, "status": str(badge_status), "uptime": round(uptime, 2)},
    )
    response = HttpResponse(render_badge(badge_status, uptime), content_type="image/svg+xml")
    response["Cache-Control"] = "no-cache, max-age=0"
    return response


def _positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


__all__ = ["EndpointViewSet", "IncidentViewSet", "PageViewSet", "status_badge"]
