"""Run the uptime checker in-process: recurring ticks plus the daily retention sweep."""

from __future__ import annotations

import logging
import signal
import threading

from django.core.management.base import BaseCommand, CommandError

from modules.monitoring.scheduler import CheckScheduler, run_tick

logger = logging.getLogger("monitors.audit")


class Command(BaseCommand):
    help = (
        "Probe every active endpoint on a fixed tick and purge expired check history daily. "
        "Runs until SIGINT/SIGTERM; use --once for a single synchronous tick."
    )

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run one tick, wait for every probe to be recorded, then exit.",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Tick interval in seconds (defaults to CHECK_TICK_INTERVAL_SECONDS).",
        )
        parser.add_argument(
            "--no-sweep",
            action="store_true",
            help="Do not schedule the daily retention sweep in this process.",
        )
        parser.add_argument(
            "--grace",
            type=float,
            default=None,
            help="Seconds to wait for in-flight probes on shutdown.",
        )

    def handle(self, *args, **options):
        if options["once"]:
            summary = run_tick()
            self.stdout.write(
                self.style.SUCCESS(
                    "run_checker tick complete: "
                    f"endpoints={summary.endpoints}, appended={summary.appended}, "
                    f"coalesced={summary.coalesced}, failed={summary.failed}"
                )
            )
            return

        interval = options["interval"]
        if interval is not None and interval <= 0:
            raise CommandError("--interval must be positive.")

        scheduler = CheckScheduler(
            tick_interval=interval,
            sweep_enabled=not options["no_sweep"],
            shutdown_grace=options["grace"],
        )
        shutdown = threading.Event()

        def _request_shutdown(signum, _frame):
            logger.info("Shutdown signal received", extra={"signal": signal.Signals(signum).name})
            shutdown.set()

        previous = {
            sig: signal.signal(sig, _request_shutdown) for sig in (signal.SIGINT, signal.SIGTERM)
        }

        scheduler.start()
        self.stdout.write(
            self.style.SUCCESS(
                f"Checker running every {scheduler.tick_interval:g}s; Ctrl+C to stop."
            )
        )
        try:
            while not shutdown.wait(timeout=1.0):
                pass
        finally:
            abandoned = scheduler.stop()
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        self.stdout.write(
            self.style.WARNING(f"Checker stopped; {abandoned} in-flight probe(s) abandoned.")
            if abandoned
            else self.style.SUCCESS("Checker stopped cleanly.")
        )
