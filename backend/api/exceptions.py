"""API exceptions raised by the monitoring services.

Each carries a client-facing ``detail`` and a stable ``code``; the exception
handler renders anything below 500 as-is and masks the rest.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class BaseUptimeException(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "An error occurred. Please try again later."
    default_code = "error"


class SlugConflictError(BaseUptimeException):
    """A status page already owns the requested slug."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Slug already exists"
    default_code = "slug_conflict"


class ConfigurationError(BaseUptimeException):
    """Server misconfiguration; the detail is logged, never shown."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service is temporarily unavailable. Please try again later."
    default_code = "configuration_error"
