"""Request correlation IDs and the ``api.requests`` access log."""

import logging
import time
import uuid

from api.logging_utils import sanitize_log_value
from django.utils.deprecation import MiddlewareMixin

request_logger = logging.getLogger("api.requests")

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_REQUEST_ID_LENGTH = 64

# Successful load balancer probes stay out of request.log.
_QUIET_PATHS = frozenset({"/health/", "/healthz"})


def client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


class RequestIDMiddleware(MiddlewareMixin):
    """Reuse the caller's ``X-Request-ID`` (truncated) or mint a UUID4, and echo it back."""

    def process_request(self, request):
        supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
        request.id = supplied[:_MAX_REQUEST_ID_LENGTH] or str(uuid.uuid4())

    def process_response(self, request, response):
        request_id = getattr(request, "id", None)
        if request_id:
            response[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(MiddlewareMixin):
    """One line when a request arrives, one when it completes (WARNING for 4xx/5xx)."""

    def process_request(self, request):
        request._started_at = time.monotonic()
        if request.path in _QUIET_PATHS:
            return
        request_logger.info(
            "Incoming request",
            extra={
                "request_id": getattr(request, "id", None),
                "method": request.method,
                "path": sanitize_log_value(request.path),
                "query_params": sanitize_log_value(dict(request.GET)),
                "ip_address": client_ip(request),
                "user_agent": request.headers.get("User-Agent", ""),
            },
        )

    def process_response(self, request, response):
        failed = response.status_code >= 400
        if request.path in _QUIET_PATHS and not failed:
            return response

        started_at = getattr(request, "_started_at", None)
        duration_ms = 0.0 if started_at is None else (time.monotonic() - started_at) * 1000
        size = 0 if getattr(response, "streaming", False) else len(response.content)

        request_logger.log(
            logging.WARNING if failed else logging.INFO,
            "Request completed",
            extra={
                "request_id": getattr(request, "id", None),
                "method": request.method,
                "path": sanitize_log_value(request.path),
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "response_size_bytes": size,
            },
        )
        return response
