"""Delete check history older than the retention horizon."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from modules.monitoring.retention import purge_expired_checks


class Command(BaseCommand):
    help = "Delete check records older than CHECK_RETENTION_DAYS (or --days)."

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Retention horizon in days (overrides CHECK_RETENTION_DAYS).",
        )

    def handle(self, *args, **options):
        try:
            deleted = purge_expired_checks(retention_days=options["days"])
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"purge_checks complete: deleted={deleted}"))
