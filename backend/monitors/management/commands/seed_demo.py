"""Create demo status pages and endpoints for local development."""

from __future__ import annotations

import logging

from django.core.management.base import BaseCommand
from django.db import transaction

from monitors.models import Endpoint, Page

audit_logger = logging.getLogger("monitors.audit")

DEMO_PAGES = (
    (
        "demo",
        "Uptimely Demo",
        (
            ("Google", "https://www.google.com"),
            ("GitHub", "https://github.com"),
        ),
    ),
    (
        "production",
        "Production Services",
        (("JSONPlaceholder API", "https://jsonplaceholder.typicode.com/posts/1"),),
    ),
)


class Command(BaseCommand):
    help = "Seed demo status pages and endpoints. Does nothing once any page exists."

    def handle(self, *args, **options):
        if Page.objects.exists():
            self.stdout.write("seed_demo skipped: database already has status pages")
            return

        endpoints = 0
        with transaction.atomic():
            for slug, name, targets in DEMO_PAGES:
                page = Page.objects.create(slug=slug, name=name)
                for endpoint_name, url in targets:
                    Endpoint.objects.create(page=page, name=endpoint_name, url=url)
                    endpoints += 1

        audit_logger.info(
            "Demo data seeded", extra={"pages": len(DEMO_PAGES), "endpoints": endpoints}
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"seed_demo complete: pages={len(DEMO_PAGES)}, endpoints={endpoints}"
            )
        )
