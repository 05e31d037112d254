"""Request ID propagation and request logging middleware."""

import logging
import uuid

import pytest

pytestmark = pytest.mark.django_db


@pytest.fixture
def request_logs(caplog):
    request_logger = logging.getLogger("api.requests")
    request_logger.addHandler(caplog.handler)
    caplog.handler.setLevel(logging.INFO)
    yield caplog
    request_logger.removeHandler(caplog.handler)


def test_response_carries_generated_request_id(client):
    response = client.get("/api/pages/")

    request_id = response["X-Request-ID"]
    assert str(uuid.UUID(request_id)) == request_id


def test_incoming_request_id_is_reused(client):
    response = client.get("/api/pages/", HTTP_X_REQUEST_ID="lb-1234")

    assert response["X-Request-ID"] == "lb-1234"


def test_api_requests_are_logged_with_timing(client, request_logs):
    client.get("/api/pages/?hours=2", HTTP_X_REQUEST_ID="trace-7")

    completed = [r for r in request_logs.records if r.getMessage() == "Request completed"]
    assert len(completed) == 1
    assert completed[0].request_id == "trace-7"
    assert completed[0].path == "/api/pages/"
    assert completed[0].status_code == 200
    assert completed[0].duration_ms >= 0


def test_client_errors_log_at_warning(client, request_logs):
    client.get("/api/pages/missing/")

    completed = [r for r in request_logs.records if r.getMessage() == "Request completed"]
    assert completed[0].levelno == logging.WARNING
    assert completed[0].status_code == 404


def test_successful_health_probes_are_not_logged(client, request_logs):
    client.get("/healthz")

    assert not [r for r in request_logs.records if r.name == "api.requests"]
