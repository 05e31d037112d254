"""Check scheduling shared by the in-process runner, Celery tasks and management commands."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from django.conf import settings
from django.db import connections
from django.utils import timezone

from .dto import CheckResult, TickSummary, WriteResult
from .models import Endpoint
from .probe import probe_endpoint
from .recorder import record_check
from .retention import purge_expired_checks

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")
performance_logger = logging.getLogger("monitors.performance")

DEFAULT_TICK_INTERVAL_SECONDS = 30
DEFAULT_MAX_CONCURRENCY = 32
DEFAULT_RETENTION_HOUR = 2
DEFAULT_RETENTION_MINUTE = 0
DEFAULT_SHUTDOWN_GRACE_SECONDS = 15

TICK_JOB_ID = "check-tick"
SWEEP_JOB_ID = "retention-sweep"

PipelineOutcome = tuple[CheckResult | None, WriteResult | None]


def list_active_endpoints() -> list[Endpoint]:
    """Read the active endpoints fresh; nothing is cached between ticks."""

    return list(Endpoint.objects.filter(active=True).order_by("id"))


def check_endpoint(endpoint: Endpoint) -> PipelineOutcome:
    """Probe one endpoint and write the outcome, isolating any failure.

    Down or degraded targets are ordinary results. Only infrastructure errors
    (the writer cannot reach the store) end up here as exceptions; they are
    logged and reported as a missing ``WriteResult`` so the rest of the tick
    carries on.
    """

    result: CheckResult | None = None
    try:
        result = probe_endpoint(endpoint)
        return result, record_check(result)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Endpoint check pipeline failed",
            extra={
                "endpoint_id": endpoint.pk,
                "url": endpoint.url,
                "status": str(result.status) if result is not None else None,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
        return result, None


def _check_endpoint_in_worker(endpoint: Endpoint) -> PipelineOutcome:
    try:
        return check_endpoint(endpoint)
    finally:
        # Worker threads own their connections; release them once the pipeline ends.
        connections.close_all()


def run_tick(*, max_workers: int | None = None) -> TickSummary:
    """Run one synchronous tick: probe every active endpoint and wait for all writes."""

    started_at = timezone.now()
    started = time.monotonic()
    endpoints = list_active_endpoints()
    summary = TickSummary(started_at=started_at, endpoints=len(endpoints))

    if endpoints:
        workers = min(max_workers or _setting("CHECK_MAX_CONCURRENCY"), len(endpoints))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="check-probe") as pool:
            for result, write in pool.map(_check_endpoint_in_worker, endpoints):
                summary.add(result, write)

    duration_ms = (time.monotonic() - started) * 1000
    performance_logger.info(
        "Check tick completed",
        extra={**summary.to_dict(), "duration_ms": round(duration_ms, 2)},
    )
    return summary


class CheckScheduler:
    """Owns the recurring tick, the daily retention sweep and the probe worker pool.

    Timing is delegated to an APScheduler ``BackgroundScheduler``: an interval
    job fires ``tick()`` every ``tick_interval`` seconds at a fixed rate,
    regardless of whether the previous tick's probes have finished, and a cron
    job runs ``sweep()`` daily at the retention hour in ``TIME_ZONE``.
    ``stop()`` shuts the timers down, cancels queued probes and gives running
    ones ``shutdown_grace`` seconds to finish.
    """

    def __init__(
        self,
        *,
        tick_interval: float | None = None,
        max_workers: int | None = None,
        retention_hour: int | None = None,
        retention_minute: int | None = None,
        shutdown_grace: float | None = None,
        sweep_enabled: bool = True,
    ) -> None:
        self.tick_interval = float(tick_interval or _setting("CHECK_TICK_INTERVAL_SECONDS"))
        self.max_workers = int(max_workers or _setting("CHECK_MAX_CONCURRENCY"))
        self.retention_hour = (
            _setting("CHECK_RETENTION_HOUR") if retention_hour is None else retention_hour
        )
        self.retention_minute = (
            _setting("CHECK_RETENTION_MINUTE") if retention_minute is None else retention_minute
        )
        self.shutdown_grace = float(
            _setting("CHECK_SHUTDOWN_GRACE_SECONDS") if shutdown_grace is None else shutdown_grace
        )
        self.sweep_enabled = sweep_enabled

        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._timers: BackgroundScheduler | None = None
        self._in_flight: set[Future] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._executor is not None

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    @property
    def next_tick_at(self) -> datetime | None:
        return self._next_run(TICK_JOB_ID)

    @property
    def next_sweep_at(self) -> datetime | None:
        return self._next_run(SWEEP_JOB_ID)

    def start(self, *, run_immediately: bool = True) -> None:
        with self._lock:
            if self._executor is not None:
                raise RuntimeError("CheckScheduler is already running")

            tz = timezone.get_current_timezone()
            timers = BackgroundScheduler(
                timezone=tz,
                job_defaults={"coalesce": True, "max_instances": 1},
            )
            tick_options = {"next_run_time": timezone.now()} if run_immediately else {}
            timers.add_job(
                self._run_tick,
                IntervalTrigger(seconds=self.tick_interval, timezone=tz),
                id=TICK_JOB_ID,
                name="check tick",
                misfire_grace_time=max(1, int(self.tick_interval)),
                **tick_options,
            )
            if self.sweep_enabled:
                timers.add_job(
                    self._run_sweep,
                    CronTrigger(
                        hour=self.retention_hour, minute=self.retention_minute, timezone=tz
                    ),
                    id=SWEEP_JOB_ID,
                    name="retention sweep",
                )

            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="check-probe"
            )
            self._timers = timers
            timers.start()

        audit_logger.info(
            "Check scheduler started",
            extra={
                "tick_interval_seconds": self.tick_interval,
                "max_workers": self.max_workers,
                "sweep_enabled": self.sweep_enabled,
                "sweep_at": f"{self.retention_hour:02d}:{self.retention_minute:02d}",
            },
        )

    def stop(self, *, grace_seconds: float | None = None) -> int:
        """Stop the timers and drain the pool; return the number of abandoned probes."""

        grace = self.shutdown_grace if grace_seconds is None else grace_seconds

        with self._lock:
            executor, timers = self._executor, self._timers
            if executor is None:
                return 0
            self._timers = None

        # Waits for a tick that is mid-dispatch, so every submitted probe is tracked below.
        timers.shutdown(wait=True)

        with self._lock:
            pending = set(self._in_flight)
        cancelled = sum(1 for future in pending if future.cancel())
        running = {future for future in pending if not future.cancelled()}
        _, not_done = wait_futures(running, timeout=grace) if running else (set(), set())

        executor.shutdown(wait=False, cancel_futures=True)
        with self._lock:
            self._executor = None

        audit_logger.info(
            "Check scheduler stopped",
            extra={
                "cancelled": cancelled,
                "drained": len(running) - len(not_done),
                "abandoned": len(not_done),
                "grace_seconds": grace,
            },
        )
        return len(not_done)

    # ------------------------------------------------------------------
    # Firings
    # ------------------------------------------------------------------
    def tick(self) -> list[Future]:
        """Dispatch one probe pipeline per active endpoint without waiting for them."""

        executor = self._executor
        if executor is None:
            raise RuntimeError("CheckScheduler is not running")

        try:
            endpoints = list_active_endpoints()
        except Exception as exc:  # noqa: BLE001
            audit_logger.error(
                "Failed to list active endpoints for tick",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            return []

        futures: list[Future] = []
        for endpoint in endpoints:
            try:
                future = executor.submit(_check_endpoint_in_worker, endpoint)
            except RuntimeError:
                # Pool shut down while dispatching; stop() is in progress.
                break
            with self._lock:
                self._in_flight.add(future)
            future.add_done_callback(self._discard)
            futures.append(future)

        audit_logger.info(
            "Check tick dispatched",
            extra={
                "endpoints": len(endpoints),
                "dispatched": len(futures),
                "in_flight": self.in_flight,
            },
        )
        return futures

    def sweep(self) -> int | None:
        """Run the retention sweep; failures are logged and never propagate."""

        try:
            return purge_expired_checks()
        except Exception as exc:  # noqa: BLE001
            audit_logger.error(
                "Retention sweep failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            return None

    # ------------------------------------------------------------------
    # Timer jobs
    # ------------------------------------------------------------------
    def _run_tick(self) -> None:
        try:
            self.tick()
        finally:
            connections.close_all()

    def _run_sweep(self) -> None:
        try:
            self.sweep()
        finally:
            connections.close_all()

    def _next_run(self, job_id: str) -> datetime | None:
        timers = self._timers
        job = timers.get_job(job_id) if timers is not None else None
        return job.next_run_time if job is not None else None

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._in_flight.discard(future)


_DEFAULTS = {
    "CHECK_TICK_INTERVAL_SECONDS": DEFAULT_TICK_INTERVAL_SECONDS,
    "CHECK_MAX_CONCURRENCY": DEFAULT_MAX_CONCURRENCY,
    "CHECK_RETENTION_HOUR": DEFAULT_RETENTION_HOUR,
    "CHECK_RETENTION_MINUTE": DEFAULT_RETENTION_MINUTE,
    "CHECK_SHUTDOWN_GRACE_SECONDS": DEFAULT_SHUTDOWN_GRACE_SECONDS,
}


def _setting(name: str):
    return getattr(settings, name, _DEFAULTS[name])


__all__ = [
    "CheckScheduler",
    "check_endpoint",
    "list_active_endpoints",
    "run_tick",
]
