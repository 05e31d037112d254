"""CORS and HTTPS settings per environment.

Status pages and badges are public and get embedded from arbitrary sites, so
CORS stays open by default in every environment and never carries
credentials. HTTPS is enforced in production except on the health probes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_CORS_ALLOW_HEADERS = [
    "accept",
    "accept-encoding",
    "content-type",
    "dnt",
    "origin",
    "user-agent",
    "x-requested-with",
]

_DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"]

# Plain-HTTP probes from load balancers.
_HTTPS_EXEMPT_PATHS = [r"^health/$", r"^healthz$"]


def _cors(env, default_origins: list[str]) -> dict[str, Any]:
    return {
        "CORS_ALLOW_ALL_ORIGINS": env.bool("CORS_ALLOW_ALL_ORIGINS", default=True),
        "CORS_ALLOWED_ORIGINS": env.list("CORS_ALLOWED_ORIGINS", default=default_origins),
        "CORS_ALLOW_CREDENTIALS": False,
        "CORS_ALLOW_HEADERS": _CORS_ALLOW_HEADERS,
    }


def _https(
    enforce: bool, *, hsts_seconds: int = 0, subdomains: bool = False, preload: bool = False
) -> dict[str, Any]:
    return {
        "ENFORCE_HTTPS": enforce,
        "SECURE_SSL_REDIRECT": enforce,
        "SECURE_REDIRECT_EXEMPT": list(_HTTPS_EXEMPT_PATHS),
        "SECURE_HSTS_SECONDS": hsts_seconds if enforce else 0,
        "SECURE_HSTS_INCLUDE_SUBDOMAINS": subdomains and enforce,
        "SECURE_HSTS_PRELOAD": preload and enforce,
        "SECURE_PROXY_SSL_HEADER": ("HTTP_X_FORWARDED_PROTO", "https"),
        "SECURE_CONTENT_TYPE_NOSNIFF": True,
    }


def get_dev_cors_settings(env) -> Mapping[str, Any]:
    return _cors(env, _DEV_ORIGINS)


def get_prod_cors_settings(env) -> Mapping[str, Any]:
    return _cors(env, [])


def get_dev_https_settings() -> Mapping[str, Any]:
    return _https(False)


def get_prod_https_settings(env) -> Mapping[str, Any]:
    return _https(
        env.bool("ENFORCE_HTTPS", default=True),
        hsts_seconds=env.int("SECURE_HSTS_SECONDS", default=3600),
        subdomains=env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True),
        preload=env.bool("SECURE_HSTS_PRELOAD", default=False),
    )
