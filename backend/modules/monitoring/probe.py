"""HTTP probe execution and outcome classification."""

from __future__ import annotations

import logging
import time

import requests
from django.utils import timezone
from urllib3.util import Timeout

from .dto import CheckResult
from .models import CheckStatus, Endpoint

logger = logging.getLogger("monitors")
performance_logger = logging.getLogger("monitors.performance")

USER_AGENT = "uptimely-checker/1.0"


def classify_status_code(status_code: int) -> CheckStatus:
    """2xx/3xx responses are healthy; anything else that completed is degraded."""

    if 200 <= status_code < 400:
        return CheckStatus.UP
    return CheckStatus.DEGRADED


def probe_endpoint(endpoint: Endpoint) -> CheckResult:
    """Issue one request against ``endpoint`` and classify it.

    The outcome is decided once the status line and headers arrive; the body
    is never read. ``endpoint.timeout`` is a single budget shared by connect
    and header read, and a response that only completes after the budget has
    run out is reported ``down`` like any other timeout.

    Down and degraded targets are returned as data. No exception escapes for
    transport failures, and nothing is written to storage here.
    """

    checked_at = timezone.now()
    started = time.monotonic()

    try:
        response = requests.request(
            endpoint.method,
            endpoint.url,
            timeout=Timeout(total=endpoint.timeout),
            headers={"User-Agent": USER_AGENT},
            stream=True,
        )
    except requests.RequestException as exc:
        return _down(endpoint, checked_at, started, str(exc) or type(exc).__name__, exc)

    elapsed_ms = _elapsed_ms(started)
    response.close()
    if elapsed_ms > endpoint.timeout * 1000:
        return _down(
            endpoint,
            checked_at,
            started,
            f"Response took {elapsed_ms} ms, over the {endpoint.timeout}s timeout",
        )

    status = classify_status_code(response.status_code)
    if status is CheckStatus.UP:
        performance_logger.info(
            "Endpoint probe success",
            extra={
                "endpoint_id": endpoint.pk,
                "url": endpoint.url,
                "status_code": response.status_code,
                "response_time_ms": elapsed_ms,
            },
        )
    else:
        logger.warning(
            "Endpoint probe returned HTTP error",
            extra={
                "endpoint_id": endpoint.pk,
                "url": endpoint.url,
                "status_code": response.status_code,
                "response_time_ms": elapsed_ms,
            },
        )

    return CheckResult(
        endpoint_id=endpoint.pk,
        status=status,
        response_time_ms=elapsed_ms,
        status_code=response.status_code,
        error=None,
        checked_at=checked_at,
    )


def _down(
    endpoint: Endpoint,
    checked_at,
    started: float,
    error: str,
    exc: Exception | None = None,
) -> CheckResult:
    elapsed_ms = _elapsed_ms(started)
    logger.warning(
        "Endpoint probe failed",
        extra={
            "endpoint_id": endpoint.pk,
            "url": endpoint.url,
            "method": endpoint.method,
            "error": error,
            "error_type": type(exc).__name__ if exc is not None else "DeadlineExceeded",
            "response_time_ms": elapsed_ms,
        },
    )
    return CheckResult(
        endpoint_id=endpoint.pk,
        status=CheckStatus.DOWN,
        response_time_ms=elapsed_ms,
        status_code=None,
        error=error,
        checked_at=checked_at,
    )


def _elapsed_ms(started: float) -> int:
    return int(round((time.monotonic() - started) * 1000))


__all__ = ["USER_AGENT", "classify_status_code", "probe_endpoint"]
