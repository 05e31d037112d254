"""Monitoring serializers for the page, endpoint, check history and incident APIs."""

from __future__ import annotations

from urllib.parse import urlparse

from rest_framework import serializers

from .models import CheckRecord, Endpoint, HttpMethod, Incident, IncidentStatus, Page

MAX_TIMEOUT_SECONDS = 120
MAX_INTERVAL_SECONDS = 24 * 60 * 60


class PageSerializer(serializers.ModelSerializer):
    # Declared explicitly so slug uniqueness is reported by the service, not a field validator.
    slug = serializers.SlugField(max_length=100)

    class Meta:
        model = Page
        fields = ["id", "slug", "name", "created_at"]
        read_only_fields = ("id", "created_at")


class EndpointSerializer(serializers.ModelSerializer):
    page_id = serializers.PrimaryKeyRelatedField(source="page", queryset=Page.objects.all())
    method = serializers.ChoiceField(choices=HttpMethod.choices, default=HttpMethod.GET)

    class Meta:
        model = Endpoint
        fields = [
            "id",
            "page_id",
            "name",
            "url",
            "method",
            "interval",
            "timeout",
            "active",
            "created_at",
        ]
        read_only_fields = ("id", "created_at")

    def to_internal_value(self, data):
        # Accept lower-case methods ("get") the way HTTP clients usually send them.
        if hasattr(data, "copy") and isinstance(data.get("method"), str):
            data = data.copy()
            data["method"] = data["method"].upper()
        return super().to_internal_value(data)

    def validate_interval(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("Interval must be at least 1 second.")
        if value > MAX_INTERVAL_SECONDS:
            raise serializers.ValidationError("Interval cannot exceed 24 hours.")
        return value

    def validate_timeout(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("Timeout must be at least 1 second.")
        if value > MAX_TIMEOUT_SECONDS:
            raise serializers.ValidationError(
                f"Timeout cannot exceed {MAX_TIMEOUT_SECONDS} seconds."
            )
        return value

    def validate_url(self, value: str) -> str:
        """Only absolute HTTP(S) URLs with a hostname can be probed."""

        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https"):
            raise serializers.ValidationError("Only HTTP and HTTPS protocols are supported.")
        if not parsed.hostname:
            raise serializers.ValidationError("URL must include a hostname.")
        return value


class CheckRecordSerializer(serializers.ModelSerializer):
    endpoint_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = CheckRecord
        fields = [
            "id",
            "endpoint_id",
            "status",
            "response_time",
            "status_code",
            "error",
            "recorded_at",
        ]
        read_only_fields = fields


class IncidentSerializer(serializers.ModelSerializer):
    page_id = serializers.PrimaryKeyRelatedField(source="page", queryset=Page.objects.all())
    status = serializers.ChoiceField(
        choices=IncidentStatus.choices, default=IncidentStatus.INVESTIGATING
    )
    description = serializers.CharField(allow_null=True, allow_blank=True, required=False)

    class Meta:
        model = Incident
        fields = [
            "id",
            "page_id",
            "title",
            "description",
            "status",
            "created_at",
            "updated_at",
            "resolved_at",
        ]
        read_only_fields = ("id", "created_at", "updated_at", "resolved_at")

    def validate_description(self, value: str | None) -> str | None:
        return value or None


__all__ = [
    "CheckRecordSerializer",
    "EndpointSerializer",
    "IncidentSerializer",
    "PageSerializer",
]
