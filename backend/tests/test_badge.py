"""Status badge rendering and the public badge route."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone
from modules.monitoring.badge import BADGE_COLORS, DOWN_COLOR, render_badge
from modules.monitoring.models import CheckRecord, CheckStatus
from modules.monitoring.uptime import overall_status


def _record(endpoint, status_value, minutes_ago=1):
    return CheckRecord.objects.create(
        endpoint=endpoint,
        status=status_value,
        recorded_at=timezone.now() - timedelta(minutes=minutes_ago),
    )


class TestRenderBadge:
    @pytest.mark.parametrize(
        ("status_value", "color", "label"),
        [
            (CheckStatus.UP, "#4ade80", "UP"),
            (CheckStatus.DEGRADED, "#fbbf24", "DEGRADED"),
            (CheckStatus.DOWN, "#f87171", "DOWN"),
        ],
    )
    def test_colour_and_label_follow_status(self, status_value, color, label):
        svg = render_badge(status_value, 99.5)

        assert f'fill="{color}"' in svg
        assert f">{label}</text>" in svg
        assert ">99.5%</text>" in svg
        assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="160" height="20">')

    def test_uptime_is_rounded_to_one_decimal(self):
        assert ">66.7%</text>" in render_badge(CheckStatus.UP, 200 / 3)

    def test_unknown_status_uses_down_colour(self):
        assert f'fill="{DOWN_COLOR}"' in render_badge("unknown", 0.0)
        assert DOWN_COLOR not in BADGE_COLORS.values()


class TestOverallStatus:
    def test_down_beats_degraded(self):
        records = [
            CheckRecord(status=CheckStatus.DEGRADED),
            CheckRecord(status=CheckStatus.DOWN),
            CheckRecord(status=CheckStatus.UP),
        ]

        assert overall_status(records) == CheckStatus.DOWN

    def test_degraded_beats_up(self):
        records = [CheckRecord(status=CheckStatus.UP), CheckRecord(status=CheckStatus.DEGRADED)]

        assert overall_status(records) == CheckStatus.DEGRADED

    def test_no_checks_counts_as_up(self):
        assert overall_status([None, None]) == CheckStatus.UP


@pytest.mark.django_db
class TestBadgeView:
    def test_unknown_slug_is_plain_text_404(self, client):
        response = client.get("/badge/missing/")

        assert response.status_code == 404
        assert response["Content-Type"].startswith("text/plain")
        assert response.content == b"Not found"

    def test_page_without_endpoints_is_up(self, client, page_factory):
        page = page_factory()

        response = client.get(f"/badge/{page.slug}/")

        assert response.status_code == 200
        assert response["Content-Type"] == "image/svg+xml"
        assert response["Cache-Control"] == "no-cache, max-age=0"
        body = response.content.decode()
        assert ">UP</text>" in body
        assert ">100.0%</text>" in body

    def test_any_down_endpoint_makes_the_page_down(self, client, endpoint_factory):
        healthy = endpoint_factory(name="API")
        broken = endpoint_factory(page=healthy.page, name="Web")
        slow = endpoint_factory(page=healthy.page, name="Search")
        _record(healthy, CheckStatus.UP)
        _record(broken, CheckStatus.DOWN)
        _record(slow, CheckStatus.DEGRADED)

        body = client.get(f"/badge/{healthy.page.slug}/").content.decode()

        assert ">DOWN</text>" in body
        assert f'fill="{DOWN_COLOR}"' in body

    def test_degraded_endpoint_without_down_is_degraded(self, client, endpoint_factory):
        healthy = endpoint_factory(name="API")
        slow = endpoint_factory(page=healthy.page, name="Search")
        _record(healthy, CheckStatus.UP)
        _record(slow, CheckStatus.DEGRADED)

        body = client.get(f"/badge/{healthy.page.slug}/").content.decode()

        assert ">DEGRADED</text>" in body
        assert ">50.0%</text>" in body

    def test_only_latest_check_decides_status(self, client, endpoint_factory):
        endpoint = endpoint_factory()
        _record(endpoint, CheckStatus.DOWN, minutes_ago=10)
        _record(endpoint, CheckStatus.UP, minutes_ago=1)

        body = client.get(f"/badge/{endpoint.page.slug}/").content.decode()

        assert ">UP</text>" in body
        assert ">50.0%</text>" in body

    def test_inactive_endpoints_are_ignored(self, client, endpoint_factory):
        healthy = endpoint_factory(name="API")
        paused = endpoint_factory(page=healthy.page, name="Legacy", active=False)
        _record(healthy, CheckStatus.UP)
        _record(paused, CheckStatus.DOWN)

        body = client.get(f"/badge/{healthy.page.slug}/").content.decode()

        assert ">UP</text>" in body
        assert ">100.0%</text>" in body

    def test_post_is_not_allowed(self, client, page_factory):
        page = page_factory()

        assert client.post(f"/badge/{page.slug}/").status_code == 405
