"""
Tests for the sanitizing DRF exception handler.

Client-facing errors keep their message; anything that could leak SQL,
connection strings or internals is replaced by a generic payload.
"""

from unittest.mock import patch

import pytest
from api.exception_handler import (
    DATABASE_ERROR,
    GENERIC_ERROR,
    custom_exception_handler,
    sanitize_error_response,
)
from api.exceptions import ConfigurationError, SlugConflictError
from django.db import DatabaseError, IntegrityError
from django.http import Http404
from django.test import RequestFactory, override_settings
from rest_framework import exceptions, status
from rest_framework.response import Response


@pytest.fixture
def context():
    request = RequestFactory().get("/api/pages/")
    return {"request": request, "view": None}


class TestCustomExceptionHandler:
    def test_slug_conflict_keeps_its_message(self, context):
        response = custom_exception_handler(SlugConflictError(), context)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {"detail": "Slug already exists"}

    def test_validation_errors_pass_through(self, context):
        exc = exceptions.ValidationError({"url": ["Only HTTP and HTTPS protocols are supported."]})

        response = custom_exception_handler(exc, context)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["url"] == ["Only HTTP and HTTPS protocols are supported."]

    def test_not_found_passes_through(self, context):
        response = custom_exception_handler(Http404("No Page matches the given query."), context)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_database_error_is_masked(self, context):
        exc = IntegrityError('UNIQUE constraint failed: monitors_page.slug (SELECT * FROM "x")')

        response = custom_exception_handler(exc, context)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {"error": DATABASE_ERROR}
        assert "SELECT" not in str(response.data)

    def test_unexpected_exception_is_generic(self, context):
        response = custom_exception_handler(RuntimeError("secret internals"), context)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {"error": GENERIC_ERROR}

    def test_configuration_error_message_is_replaced(self, context):
        response = custom_exception_handler(ConfigurationError("REDIS_URL missing"), context)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data == {"error": GENERIC_ERROR}

    @override_settings(DEBUG=True)
    def test_debug_mode_keeps_details(self, context):
        response = custom_exception_handler(ConfigurationError("REDIS_URL missing"), context)

        assert response.data == {"detail": "REDIS_URL missing"}

    def test_errors_are_logged_with_request_context(self, context):
        with patch("api.exception_handler.logger") as mock_logger:
            custom_exception_handler(SlugConflictError(), context)

        level, message = mock_logger.log.call_args.args[:2]
        extra = mock_logger.log.call_args.kwargs["extra"]
        assert message.startswith("SlugConflictError")
        assert extra["request_path"] == "/api/pages/"
        assert extra["status_code"] == 400
        assert level == 30


class TestSanitizeErrorResponse:
    def test_sql_keywords_in_message_are_masked(self):
        response = Response({"detail": "relation monitors_page does not exist"}, status=500)

        sanitized = sanitize_error_response(response, exceptions.APIException("relation x"))

        assert sanitized.data == {"error": DATABASE_ERROR}

    def test_client_error_without_keywords_is_kept(self):
        response = Response({"detail": "Method \"PUT\" not allowed."}, status=405)

        sanitized = sanitize_error_response(response, exceptions.MethodNotAllowed("PUT"))

        assert sanitized.data == {"detail": "Method \"PUT\" not allowed."}

    def test_database_error_instance_is_masked(self):
        response = Response({"error": "boom"}, status=500)

        sanitized = sanitize_error_response(response, DatabaseError("disk I/O error"))

        assert sanitized.data == {"error": DATABASE_ERROR}

    def test_empty_payload_is_untouched(self):
        response = Response(None, status=204)

        assert sanitize_error_response(response, RuntimeError()).data is None
