"""
DRF exception handler for the Uptimely API.

Client mistakes (bad payloads, unknown slugs, wrong verbs, slug conflicts) are
returned as DRF renders them. Server-side failures are replaced with a fixed
payload so stack traces, SQL and connection strings never reach a status page
visitor; the full detail goes to the ``api.exception_handler`` logger instead.
"""

import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import BaseUptimeException
from .logging_utils import sanitize_log_value

logger = logging.getLogger(__name__)

GENERIC_ERROR = {
    "code": "internal_server_error",
    "message": "An unexpected error occurred. Please try again later.",
}
DATABASE_ERROR = {
    "code": "database_error",
    "message": "A database error occurred. Please try again later.",
}

# Rendered verbatim: DRF builds these messages from request data, not internals.
CLIENT_SAFE_EXCEPTIONS = (
    exceptions.ValidationError,
    exceptions.ParseError,
    exceptions.UnsupportedMediaType,
    exceptions.NotFound,
    exceptions.MethodNotAllowed,
    Http404,
)

_STORAGE_HINTS = ("sql", "database", "relation", "sqlite", "psycopg")


def custom_exception_handler(exc, context):
    """Render ``exc`` through DRF, log it, and mask internals outside DEBUG."""

    response = drf_exception_handler(exc, context)
    if response is None:
        response = handle_generic_exception(exc, context)

    log_exception(exc, context, response)

    if settings.DEBUG:
        return response
    return sanitize_error_response(response, exc)


def handle_generic_exception(exc, context):
    """Build a 500 for exceptions DRF does not know how to render."""

    request = context.get("request")
    logger.error(
        sanitize_log_value(f"Unhandled {type(exc).__name__} in {_view_name(context)}: {exc}"),
        exc_info=settings.DEBUG,
        extra={
            "request_path": sanitize_log_value(request.path) if request else None,
            "request_method": request.method if request else None,
            "exception_type": type(exc).__name__,
        },
    )
    return _error_response(DATABASE_ERROR if _is_storage_error(exc) else GENERIC_ERROR)


def sanitize_error_response(response, exc):
    """Return ``response`` unchanged when it is safe to show, else a masked copy."""

    if not response.data:
        return response

    if isinstance(exc, CLIENT_SAFE_EXCEPTIONS):
        return response

    if isinstance(exc, BaseUptimeException) and response.status_code < 500:
        return response

    if _is_storage_error(exc):
        response.data = {"error": dict(DATABASE_ERROR)}
    elif response.status_code >= 500:
        response.data = {"error": dict(GENERIC_ERROR)}
    return response


def log_exception(exc, context, response):
    """5xx responses log at ERROR, everything else at WARNING."""

    request = context.get("request")
    status_code = response.status_code if response is not None else None
    level = logging.ERROR if status_code is not None and status_code >= 500 else logging.WARNING

    logger.log(
        level,
        sanitize_log_value(f"{type(exc).__name__} in {_view_name(context)}: {exc}"),
        exc_info=settings.DEBUG and level == logging.ERROR,
        extra={
            "exception_type": type(exc).__name__,
            "request_path": sanitize_log_value(request.path) if request else "Unknown",
            "request_method": request.method if request else "Unknown",
            "status_code": status_code,
        },
    )


def _is_storage_error(exc) -> bool:
    if isinstance(exc, DatabaseError):
        return True
    text = str(exc).lower()
    return any(hint in text for hint in _STORAGE_HINTS)


def _view_name(context) -> str:
    view = context.get("view")
    return view.__class__.__name__ if view is not None else "Unknown"


def _error_response(payload, status=500):
    return Response({"error": dict(payload)}, status=status)
