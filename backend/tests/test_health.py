"""Tests for the health check endpoint used by load balancers and probes."""

from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError
from django.utils import timezone
from modules.monitoring.models import CheckRecord, CheckStatus
from rest_framework import status

pytestmark = pytest.mark.django_db


class TestHealthCheck:
    @pytest.mark.parametrize("path", ["/health/", "/healthz"])
    def test_healthy_database_returns_200(self, api_client, path):
        response = api_client.get(path)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert "timestamp" in body

    def test_reports_checker_freshness(self, api_client, endpoint_factory):
        endpoint = endpoint_factory()
        endpoint_factory(page=endpoint.page, name="Paused", active=False)

        assert api_client.get("/health/").json()["checker"] == {
            "active_endpoints": 1,
            "last_check_at": None,
        }

        recorded_at = timezone.now()
        CheckRecord.objects.create(
            endpoint=endpoint, status=CheckStatus.DOWN, recorded_at=recorded_at
        )

        checker = api_client.get("/health/").json()["checker"]
        assert checker["last_check_at"] == recorded_at.isoformat()

    def test_database_failure_returns_503(self, api_client):
        with patch("api.health.connection") as mock_connection:
            cursor = MagicMock()
            cursor.__enter__.return_value.execute.side_effect = OperationalError("gone away")
            mock_connection.cursor.return_value = cursor

            response = api_client.get("/health/")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        body = response.json()
        assert body["status"] == "error"
        assert body["database"] == "error"

    def test_post_is_not_allowed(self, api_client):
        response = api_client.post("/health/")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_home_lists_api_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"service": "uptimely", "api": "/api/"}
