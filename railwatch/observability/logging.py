"""Structured logging for railwatch.

JSON lines on stderr via structlog.  A redaction processor runs before
rendering so a bearer credential can never reach the log stream, even when
it leaks into an error string from the transport layer.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

_BEARER_RE = re.compile(r"(Bearer\s+)[^\s'\"]+", re.IGNORECASE)
_SECRET_KEYS = frozenset({"token", "api_token", "authorization"})
_REDACTED = "[REDACTED]"


def _redact_credentials(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key, value in event_dict.items():
        if key in _SECRET_KEYS:
            event_dict[key] = _REDACTED
        elif isinstance(value, str) and "earer" in value:
            event_dict[key] = _BEARER_RE.sub(rf"\g<1>{_REDACTED}", value)
    return event_dict


def setup_logging(level: str = "info") -> None:
    """Configure structlog once for the process.  *level* is a stdlib level name."""
    log_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            _redact_credentials,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(component=component)  # type: ignore[return-value]
