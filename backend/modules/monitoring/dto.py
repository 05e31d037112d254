"""Monitoring DTOs shared between the checker pipeline and the read-side views."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from datetime import timezone as dt_timezone
from enum import Enum
from typing import Any

from django.utils import timezone

from .models import CheckRecord, CheckStatus, Endpoint, Page

DateTimeLike = datetime | None


def _format_datetime(value: DateTimeLike) -> str | None:
    """Serialize datetimes to ISO8601 strings compatible with DRF output."""

    if value is None:
        return None

    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


@dataclass(slots=True, frozen=True)
class CheckResult:
    """Outcome of one probe attempt, before it is written to history."""

    endpoint_id: int
    status: CheckStatus
    response_time_ms: int
    status_code: int | None
    error: str | None
    checked_at: datetime

    @property
    def is_up(self) -> bool:
        return self.status == CheckStatus.UP

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint_id": self.endpoint_id,
            "status": str(self.status),
            "response_time_ms": self.response_time_ms,
            "status_code": self.status_code,
            "error": self.error,
            "checked_at": _format_datetime(self.checked_at),
        }


class WriteOutcome(str, Enum):
    APPENDED = "appended"
    COALESCED = "coalesced"


@dataclass(slots=True, frozen=True)
class WriteResult:
    """What the result writer did with one ``CheckResult``."""

    outcome: WriteOutcome
    record: CheckRecord | None = None

    @property
    def record_id(self) -> int | None:
        return self.record.pk if self.record is not None else None


@dataclass(slots=True)
class TickSummary:
    """Aggregated counters for one synchronous scheduler tick."""

    started_at: datetime
    endpoints: int = 0
    appended: int = 0
    coalesced: int = 0
    failed: int = 0
    statuses: dict[str, int] = field(default_factory=dict)

    def add(self, result: CheckResult | None, write: WriteResult | None) -> None:
        if result is None or write is None:
            self.failed += 1
            return
        self.statuses[str(result.status)] = self.statuses.get(str(result.status), 0) + 1
        if write.outcome is WriteOutcome.APPENDED:
            self.appended += 1
        else:
            self.coalesced += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": _format_datetime(self.started_at),
            "endpoints": self.endpoints,
            "appended": self.appended,
            "coalesced": self.coalesced,
            "failed": self.failed,
            "statuses": dict(self.statuses),
        }


@dataclass(slots=True, frozen=True)
class CheckRecordDto:
    id: int
    endpoint_id: int
    status: str
    response_time: int | None
    status_code: int | None
    error: str | None
    recorded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "endpoint_id": self.endpoint_id,
            "status": self.status,
            "response_time": self.response_time,
            "status_code": self.status_code,
            "error": self.error,
            "recorded_at": _format_datetime(self.recorded_at),
        }

    @classmethod
    def from_model(cls, record: CheckRecord) -> CheckRecordDto:
        return cls(
            id=record.pk,
            endpoint_id=record.endpoint_id,
            status=record.status,
            response_time=record.response_time,
            status_code=record.status_code,
            error=record.error,
            recorded_at=record.recorded_at,
        )


@dataclass(slots=True, frozen=True)
class EndpointStatusDto:
    """Endpoint as shown on a status page: definition, latest check, 24h uptime."""

    id: int
    page_id: int
    name: str
    url: str
    method: str
    interval: int
    timeout: int
    active: bool
    created_at: datetime
    latest: CheckRecordDto | None
    uptime: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "page_id": self.page_id,
            "name": self.name,
            "url": self.url,
            "method": self.method,
            "interval": self.interval,
            "timeout": self.timeout,
            "active": self.active,
            "created_at": _format_datetime(self.created_at),
            "latest": self.latest.to_dict() if self.latest is not None else None,
            "uptime": f"{self.uptime:.2f}",
        }

    @classmethod
    def from_model(
        cls, endpoint: Endpoint, *, latest: CheckRecord | None, uptime: float
    ) -> EndpointStatusDto:
        return cls(
            id=endpoint.pk,
            page_id=endpoint.page_id,
            name=endpoint.name,
            url=endpoint.url,
            method=endpoint.method,
            interval=endpoint.interval,
            timeout=endpoint.timeout,
            active=endpoint.active,
            created_at=endpoint.created_at,
            latest=CheckRecordDto.from_model(latest) if latest is not None else None,
            uptime=uptime,
        )


@dataclass(slots=True, frozen=True)
class PageDetailDto:
    id: int
    slug: str
    name: str
    created_at: datetime
    endpoints: Sequence[EndpointStatusDto]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "created_at": _format_datetime(self.created_at),
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }

    @classmethod
    def from_model(cls, page: Page, endpoints: Sequence[EndpointStatusDto]) -> PageDetailDto:
        return cls(
            id=page.pk,
            slug=page.slug,
            name=page.name,
            created_at=page.created_at,
            endpoints=tuple(endpoints),
        )


__all__ = [
    "CheckRecordDto",
    "CheckResult",
    "EndpointStatusDto",
    "PageDetailDto",
    "TickSummary",
    "WriteOutcome",
    "WriteResult",
]
