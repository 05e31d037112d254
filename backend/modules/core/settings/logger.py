"""Environment selection for ``app.settings`` and the logger that reports it.

Runs before Django's ``LOGGING`` is configured, so it wires its own console
and ``settings.log`` handlers.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_ENVIRONMENTS = frozenset({"development", "production"})
_BASE_DIR = Path(__file__).resolve().parents[3]


@dataclass(frozen=True, slots=True)
class SettingsLoggingContext:
    logger: logging.Logger
    base_dir: Path
    log_dir: Path
    environment: str
    source: str

    @property
    def settings_module(self) -> str:
        return f"app.settings_{self.environment}"


def resolve_environment(environ: Mapping[str, str]) -> tuple[str, str]:
    """Map ``DJANGO_ENV``/``DEBUG`` to ``(environment, reason)``.

    Anything that is not clearly development loads the production overlay.
    """

    requested = environ.get("DJANGO_ENV", "").strip().lower()
    if requested in _ENVIRONMENTS:
        return requested, f"DJANGO_ENV={requested}"
    if environ.get("DEBUG", "").strip().lower() in _TRUTHY:
        return "development", "DEBUG override"
    reason = f"unknown DJANGO_ENV={requested!r}" if requested else "DJANGO_ENV unset"
    return "production", f"{reason}, fail-safe"


def _attach_handlers(logger: logging.Logger, log_path: Path) -> None:
    # Settings can be imported several times per process (celery, wsgi, manage.py).
    has_file = any(
        getattr(handler, "baseFilename", None) == str(log_path) for handler in logger.handlers
    )
    if not has_file:
        file_handler = RotatingFileHandler(log_path, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(
            logging.Formatter("[%(levelname)s] %(asctime)s %(name)s - %(message)s")
        )
        logger.addHandler(file_handler)

    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("[%(levelname)s] %(name)s - %(message)s"))
        logger.addHandler(console)


def setup_settings_logging(
    *,
    env: Mapping[str, str] | None = None,
    logger_name: str = "app.settings_loader",
    log_filename: str = "settings.log",
) -> SettingsLoggingContext:
    log_dir = _BASE_DIR / "logs"
    log_dir.mkdir(exist_ok=True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    _attach_handlers(logger, log_dir / log_filename)

    environment, source = resolve_environment(os.environ if env is None else env)
    context = SettingsLoggingContext(logger, _BASE_DIR, log_dir, environment, source)
    logger.info(
        "Loading %s (%s), logs in %s", context.settings_module, source, log_dir
    )
    return context
