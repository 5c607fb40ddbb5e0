"""
Structured logging configuration for the Suzi question router.

Python's built-in logging with a JSONFormatter for production and a
colored DevFormatter everywhere else. All modules keep using
`logging.getLogger(__name__)` and pass structured fields via `extra`.

Environments:
- production: JSON to stdout (machine-readable)
- development/staging/test: Colored text to stderr (human-readable)

Usage:
    from suzi.observability.logging_config import configure_logging

    configure_logging()  # auto-detects from SUZI_ENV

    logger = logging.getLogger(__name__)
    logger.info("llm_provider_call", extra={
        "provider": "groq",
        "model": "llama-3.1-8b-instant",
        "outcome": "ok",
    })
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# ─── Request Context ──────────────────────────────────────────────────

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "suzi_request_id", default=None
)


def set_request_id(request_id: str) -> None:
    """
    Set the request id for the current asyncio task.

    Every log record emitted while handling that request carries it, so
    the attempts of one `ask()` can be correlated.
    """
    _request_id.set(request_id)


def get_request_id() -> Optional[str]:
    """Get the current request id, or None outside a request."""
    return _request_id.get()


def clear_request_id() -> None:
    """Clear the request id for the current context."""
    _request_id.set(None)


# ─── Context Filter ───────────────────────────────────────────────────


class ContextFilter(logging.Filter):
    """Injects request_id into every log record from the context var."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        if request_id:
            record.request_id = request_id  # type: ignore[attr-defined]
        return True


# ─── Redaction ────────────────────────────────────────────────────────

_SECRET_FIELD = re.compile(
    r"(api_?key|secret|password|authorization|(?:^|_)token$)", re.IGNORECASE
)
_MAX_VALUE_LENGTH = 500


def sanitize_value(key: str, value: Any) -> Any:
    """
    Redact credential-like fields and truncate long strings.

    A field is credential-like when its name looks like an API key,
    secret, password, authorization header or bearer token. Token
    counters such as `total_tokens` are left alone.
    """
    if _SECRET_FIELD.search(key):
        return "[redacted]"
    if isinstance(value, str) and len(value) > _MAX_VALUE_LENGTH:
        return value[:_MAX_VALUE_LENGTH] + "..."
    if isinstance(value, dict):
        return {k: sanitize_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_value(key, v) for v in value]
    return value


# ─── JSON Formatter (Production) ──────────────────────────────────────

_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    Outputs log records as single-line JSON objects.

    Includes standard fields (timestamp, level, logger, message) plus
    any extra fields passed via `logger.info("msg", extra={...})`.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "suzi.llm.router",
         "message": "llm_router_request", "provider": "gemini", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "request_id"):
            entry["request_id"] = record.request_id

        for key, value in record.__dict__.items():
            if key in _STANDARD_FIELDS or key.startswith("_"):
                continue
            if key == "request_id":
                continue
            value = sanitize_value(key, value)
            try:
                json.dumps(value)
                entry[key] = value
            except (TypeError, ValueError):
                entry[key] = str(value)

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# ─── Dev Formatter (Local Development) ────────────────────────────────


class DevFormatter(logging.Formatter):
    """
    Colorful, human-readable logs for local development.

    Format: [HH:MM:SS] LEVEL logger: message [key=value key=value]
    """

    COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    _EXTRA_KEYS = (
        "request_id", "provider", "model", "purpose", "intent",
        "outcome", "error_type", "status", "latency_ms", "source",
    )

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        timestamp = self.formatTime(record, "%H:%M:%S")

        extras = []
        for key in self._EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                extras.append(f"{key}={value}")

        extra_str = f" [{' '.join(extras)}]" if extras else ""

        formatted = (
            f"{self.RESET}[{timestamp}] "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{record.name}: {record.getMessage()}{extra_str}"
        )

        if record.exc_info and record.exc_info[1]:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


# ─── Configuration ────────────────────────────────────────────────────


def configure_logging(
    env: Optional[str] = None,
    level: Optional[int] = None,
) -> None:
    """
    Configure the root logger based on environment.

    Args:
        env: Override environment. If None, reads from SUZI_ENV
             (defaults to "development").
        level: Log level. If None, reads LOG_LEVEL (default: INFO).

    Behavior:
        - production → JSONFormatter to stdout
        - everything else → DevFormatter to stderr
    """
    env = env or os.environ.get("SUZI_ENV", "development").lower().strip()
    if level is None:
        level_name = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if env == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(DevFormatter())

    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
