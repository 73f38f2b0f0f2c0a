"""
Logging setup for the completion resilience layer.

Every log line of one logical completion request carries the same request
id, across retry attempts and fallback tiers. Retry, cascade and stream
code attach structured fields (model, strategy, attempt, delay,
status_code) with ``extra=``; the JSON formatter emits them as keys and the
text formatter appends them as ``key=value`` pairs.
"""

import json
import logging
import re
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

# Fields callers may attach through ``extra=``, in output order
CONTEXT_FIELDS = ("strategy", "model", "attempt", "max_attempts", "delay", "status_code", "chunks")

request_id_var: ContextVar[Optional[str]] = ContextVar("completion_request_id", default=None)


def _new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set a request ID in context. Generates one if not provided."""
    rid = request_id or _new_request_id()
    request_id_var.set(rid)
    return rid


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """
    Tag every log line inside the block with one request id.

    An id set by an enclosing scope is reused unless ``request_id`` is given,
    so a cascade and the retries inside it share one id.
    """
    current = request_id_var.get()
    if current is not None and request_id is None:
        yield current
        return

    token = request_id_var.set(request_id or _new_request_id())
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)


def context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields attached to a record, in ``CONTEXT_FIELDS`` order."""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class SensitiveDataFilter(logging.Filter):
    """Redact OpenRouter credentials from log records."""

    PATTERNS = [
        # api_key=..., "api_key": "..."
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_-]{20,})', re.I), r'\1[REDACTED]'),
        # Authorization header values
        (re.compile(r'(Bearer\s+)([a-zA-Z0-9_.-]+)', re.I), r'\1[REDACTED]'),
        # Bare OpenRouter keys keep a short prefix for identification
        (re.compile(r'(sk-or-[a-zA-Z0-9_-]{10})[a-zA-Z0-9_-]+', re.I), r'\1...[REDACTED]'),
    ]

    def redact(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )

        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with request id and structured fields as keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        log_data.update(context_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for development, coloured on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        request_id = get_request_id()
        rid = f"[{request_id}] " if request_id else ""

        color = self.COLORS.get(record.levelname, "") if self.use_colors else ""
        reset = self.RESET if self.use_colors else ""

        message = f"{timestamp} {color}{record.levelname:8}{reset} {rid}{record.name}: {record.getMessage()}"

        fields = context_fields(record)
        if fields:
            message += " " + " ".join(f"{key}={value}" for key, value in fields.items())

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[Path] = None,
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "text" for development, "json" for production
        log_file: Optional path to an additional JSON log file
        logger_name: Logger to configure; the root logger by default

    Returns:
        The configured logger
    """
    target = logging.getLogger(logger_name)
    target.setLevel(getattr(logging, level.upper()))
    target.handlers.clear()

    sensitive_filter = SensitiveDataFilter()

    if format_type.lower() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = TextFormatter(use_colors=hasattr(sys.stdout, "isatty") and sys.stdout.isatty())

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sensitive_filter)
    target.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(sensitive_filter)
        target.addHandler(file_handler)

    # Transport libraries log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return target


def setup_logging_from_settings(settings=None) -> logging.Logger:
    """Configure logging from environment-backed settings."""
    if settings is None:
        from .settings import get_settings

        settings = get_settings()
    return setup_logging(settings.log_level, settings.log_format)
