"""Structured logging configuration using structlog.

Provides JSON logging for production and console logging for development,
with context binding and redaction of secrets. Change record payloads
are never logged in full; recorder events only carry identifiers.
"""

import re
import sys
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

if TYPE_CHECKING:
    from chronicle.config.settings import Settings

SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "credentials",
    "access_token",
    "refresh_token",
    "private_key",
    "data",
    "payload",
})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
BEARER_PATTERN = re.compile(r"(?i)bearer\s+[a-z0-9._\-]+")

LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


class PIIRedactor:
    """Processor that redacts secrets and personal data from log events.

    Known sensitive keys are replaced outright; string values are
    scrubbed for e-mail addresses and bearer tokens.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact(event_dict))

    def _redact(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_KEYS:
                result[key] = "[REDACTED]"
            else:
                result[key] = self._redact_value(value)
        return result

    def _redact_value(self, value: Any) -> Any:
        if isinstance(value, str):
            value = EMAIL_PATTERN.sub("[EMAIL]", value)
            return BEARER_PATTERN.sub("[TOKEN]", value)
        if isinstance(value, dict):
            return self._redact(value)
        if isinstance(value, list | tuple):
            return [self._redact_value(item) for item in value]
        return value


class AppNameStamper:
    """Processor that adds the application name to every event."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
    app_name: str | None = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json" for production, "console" for development
        redact_pii: Whether to redact secrets from log events
        app_name: Stamped on every event as ``app`` when given
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if app_name:
        processors.append(AppNameStamper(app_name))

    if redact_pii:
        processors.append(PIIRedactor())

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            LEVELS.get(level.upper(), 20)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: "Settings") -> None:
    """Apply the logging section of ``settings``."""
    config = settings.observability.logging
    setup_logging(
        level=config.level,
        format=config.format,
        redact_pii=config.redact_pii,
        app_name=settings.app_name,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name.

    Args:
        name: Logger name (typically __name__ of the module)
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
