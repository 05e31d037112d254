"""Django app model registry; definitions live in ``modules.monitoring.models``."""

from modules.monitoring.models import (  # noqa: F401
    CheckRecord,
    CheckStatus,
    Endpoint,
    HttpMethod,
    Incident,
    IncidentStatus,
    Page,
)

__all__ = [
    "CheckRecord",
    "CheckStatus",
    "Endpoint",
    "HttpMethod",
    "Incident",
    "IncidentStatus",
    "Page",
]
