"""structlog setup for the service.

Upstream reports carry customer emails, phone numbers and contact names,
so every event goes through ``PIIRedactor`` unless redaction is turned off.
"""

import logging
import re
import sys
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

REDACTED = "[REDACTED]"

# Keys whose values are always hidden, compared lower-cased
REDACTED_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "bearer",
        "token",
        "access_token",
        "api_key",
        "secret",
        "jwt_secret",
        "password",
        "credentials",
        "email",
        "emails",
        "phone",
        "mobile_phone",
        "contact_name",
    }
)

_SCRUBBERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}"), "[EMAIL]"),
    # at least ten characters, so report numbers and row counts survive
    (re.compile(r"\+?\d[\d\s()-]{8,}\d"), "[PHONE]"),
)


class PIIRedactor:
    """Hide contact data in log events.

    Values under a known sensitive key are replaced outright. Any other
    string, including inside nested dicts and lists, has email addresses
    and phone numbers masked.
    """

    def __call__(
        self, _logger: WrappedLogger, _method_name: str, event_dict: EventDict
    ) -> EventDict:
        return cast(EventDict, self._scrub(event_dict))

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            for pattern, replacement in _SCRUBBERS:
                value = pattern.sub(replacement, value)
            return value
        if isinstance(value, dict):
            return {
                key: REDACTED if str(key).lower() in REDACTED_KEYS else self._scrub(item)
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [self._scrub(item) for item in value]
        return value


def setup_logging(level: str = "INFO", format: str = "json", redact_pii: bool = True) -> None:
    """Configure structlog to write to stderr.

    Args:
        level: Minimum level name, e.g. "INFO"
        format: "json" for one JSON object per line, "console" for humans
        redact_pii: Mask contact data before rendering
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if redact_pii:
        processors.append(PIIRedactor())

    # Hebrew report labels stay readable in JSON output
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    processors.append(renderer)

    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
