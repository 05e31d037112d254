"""Probe executor: outcome classification, timeouts and transport failures."""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

import pytest
import requests
from modules.monitoring.models import CheckStatus, Endpoint
from modules.monitoring.probe import USER_AGENT, classify_status_code, probe_endpoint


def _endpoint(**overrides) -> Endpoint:
    values = {
        "pk": 7,
        "name": "API",
        "url": "https://status.example.com/health",
        "method": "GET",
        "timeout": 10,
    }
    values.update(overrides)
    return Endpoint(**values)


class _Handler(BaseHTTPRequestHandler):
    delay_seconds = 0.0
    status_code = 200
    drip = None

    def do_GET(self):  # noqa: N802
        time.sleep(self.delay_seconds)
        try:
            if self.drip is not None:
                self.drip(self.wfile)
                return
            self.send_response(self.status_code)
            self.send_header("Content-Length", "2")
            self.end_headers()
            self.wfile.write(b"ok")
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture
def local_server():
    """Start a throwaway HTTP server; yields a factory taking status and delay."""

    servers: list[ThreadingHTTPServer] = []

    def _start(*, status_code: int = 200, delay_seconds: float = 0.0, drip=None) -> str:
        handler = type(
            "Handler",
            (_Handler,),
            {
                "status_code": status_code,
                "delay_seconds": delay_seconds,
                "drip": staticmethod(drip) if drip else None,
            },
        )
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        server.daemon_threads = True
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}/health"

    yield _start

    for server in servers:
        server.shutdown()
        server.server_close()


@pytest.mark.parametrize("status_code", [200, 201, 204, 301, 302, 304, 399])
def test_classify_success_range_is_up(status_code):
    assert classify_status_code(status_code) == CheckStatus.UP


@pytest.mark.parametrize("status_code", [199, 400, 401, 404, 429, 500, 502, 503])
def test_classify_outside_success_range_is_degraded(status_code):
    assert classify_status_code(status_code) == CheckStatus.DEGRADED


@patch("modules.monitoring.probe.requests.request")
def test_probe_success_records_code_and_latency(mock_request, monitor_logs):
    mock_request.return_value = Mock(status_code=200)

    result = probe_endpoint(_endpoint(method="HEAD", timeout=4))

    assert result.status == CheckStatus.UP
    assert result.status_code == 200
    assert result.error is None
    assert result.endpoint_id == 7
    assert isinstance(result.response_time_ms, int)
    assert result.response_time_ms >= 0

    args, kwargs = mock_request.call_args
    assert args == ("HEAD", "https://status.example.com/health")
    assert kwargs["timeout"].total == 4
    assert kwargs["stream"] is True
    assert kwargs["headers"]["User-Agent"] == USER_AGENT

    messages = [r.getMessage() for r in monitor_logs.records if r.name == "monitors.performance"]
    assert "Endpoint probe success" in messages


@patch("modules.monitoring.probe.requests.request")
def test_probe_http_error_is_degraded_not_down(mock_request, monitor_logs):
    mock_request.return_value = Mock(status_code=500)

    result = probe_endpoint(_endpoint())

    assert result.status == CheckStatus.DEGRADED
    assert result.status_code == 500
    assert result.error is None

    warnings = [r for r in monitor_logs.records if r.name == "monitors"]
    assert warnings and warnings[0].levelname == "WARNING"


@pytest.mark.parametrize(
    "exc",
    [
        requests.Timeout("Read timed out. (read timeout=1)"),
        requests.ConnectionError("Connection refused"),
        requests.exceptions.InvalidURL("Invalid URL 'nope'"),
        requests.exceptions.SSLError("certificate verify failed"),
    ],
)
@patch("modules.monitoring.probe.requests.request")
def test_probe_transport_failure_is_down(mock_request, exc):
    mock_request.side_effect = exc

    result = probe_endpoint(_endpoint())

    assert result.status == CheckStatus.DOWN
    assert result.status_code is None
    assert result.error == str(exc)
    assert result.response_time_ms >= 0


@patch("modules.monitoring.probe.requests.request")
def test_probe_failure_without_message_uses_exception_name(mock_request):
    mock_request.side_effect = requests.ConnectionError()

    result = probe_endpoint(_endpoint())

    assert result.status == CheckStatus.DOWN
    assert result.error == "ConnectionError"


def test_probe_against_slow_target_times_out_near_configured_timeout(local_server):
    url = local_server(delay_seconds=2.5)

    result = probe_endpoint(_endpoint(url=url, timeout=1))

    assert result.status == CheckStatus.DOWN
    assert result.status_code is None
    assert result.error
    assert 900 <= result.response_time_ms <= 2400


def test_probe_against_failing_target_is_degraded_with_code(local_server):
    url = local_server(status_code=500)

    result = probe_endpoint(_endpoint(url=url, timeout=5))

    assert result.status == CheckStatus.DEGRADED
    assert result.status_code == 500
    assert result.error is None


def test_probe_against_healthy_target_is_up(local_server):
    url = local_server(status_code=204)

    result = probe_endpoint(_endpoint(url=url, timeout=5))

    assert result.status == CheckStatus.UP
    assert result.status_code == 204


def _slow_body(wfile):
    wfile.write(b"HTTP/1.1 200 OK\r\nContent-Length: 8\r\nConnection: close\r\n\r\n")
    for _ in range(8):
        time.sleep(0.5)
        wfile.write(b"x")


def _slow_headers(wfile):
    wfile.write(b"HTTP/1.1 200 OK\r\n")
    for index in range(6):
        time.sleep(0.4)
        wfile.write(f"X-Pad-{index}: x\r\n".encode())
    wfile.write(b"Content-Length: 0\r\nConnection: close\r\n\r\n")


def test_probe_is_decided_on_headers_without_reading_a_slow_body(local_server):
    url = local_server(drip=_slow_body)

    result = probe_endpoint(_endpoint(url=url, timeout=1))

    assert result.status == CheckStatus.UP
    assert result.status_code == 200
    assert result.response_time_ms < 1000


def test_probe_whose_headers_outlast_the_timeout_is_down(local_server, monitor_logs):
    url = local_server(drip=_slow_headers)

    result = probe_endpoint(_endpoint(url=url, timeout=1))

    assert result.status == CheckStatus.DOWN
    assert result.status_code is None
    assert "1s timeout" in result.error
    assert result.response_time_ms >= 1000

    failures = [r for r in monitor_logs.records if r.getMessage() == "Endpoint probe failed"]
    assert failures[-1].error_type == "DeadlineExceeded"
