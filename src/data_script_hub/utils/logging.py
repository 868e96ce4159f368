"""Structured logging for Data Script Hub.

structlog is configured once, when this module is first imported. Every
event is rendered as one JSON object with an ISO timestamp, the level and
the logger name. Two processors run before rendering:

- connection details and credentials are replaced with ``[REDACTED]``
- generated SQL text is replaced with its length, so script content
  never reaches a log file

Settings used (no ``DSH_`` prefix): ``LOG_LEVEL``, ``LOG_TO_FILE``,
``LOG_FILE_DIR``. File output rotates at midnight and keeps 30 days.

Usage:
    >>> from data_script_hub.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("script_generation_started", table="Person", rows=12)
"""

import logging
import os
import re
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Tuple

import structlog
from structlog.types import EventDict, Processor

from data_script_hub.config import get_settings

REDACTED_VALUE = "[REDACTED]"

# Keys whose values are secrets or connection details
SENSITIVE_KEYS = re.compile(
    r"(password|pwd|token|secret|api_key|connection_string|^connection$)",
    re.IGNORECASE,
)

# Keys whose values are generated SQL
SQL_TEXT_KEYS = frozenset({"sql", "statement", "statements", "script", "script_text"})


def sanitize_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with sensitive values redacted.

    Nested dicts are sanitised too; the input is never modified.

    Example:
        >>> sanitize_for_logging({"connection": "Server=x;Password=y", "table": "Person"})
        {'connection': '[REDACTED]', 'table': 'Person'}
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if SENSITIVE_KEYS.search(str(key)):
            sanitized[key] = REDACTED_VALUE
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_logging(value)
        else:
            sanitized[key] = value
    return sanitized


def sanitization_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    return sanitize_for_logging(dict(event_dict))


def sql_text_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    """Replace generated SQL with ``<N chars>``."""
    for key in SQL_TEXT_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, (list, tuple)):
            value = "\n".join(map(str, value))
        event_dict[key] = f"<{len(str(value))} chars>"
    return event_dict


def _logging_options() -> Tuple[int, bool, Path]:
    """Resolve (level, log to file, log directory)."""
    try:
        settings = get_settings()
        level_name = settings.LOG_LEVEL
        to_file = settings.LOG_TO_FILE
        log_dir = Path(settings.LOG_FILE_DIR)
    except Exception:
        # Invalid settings must not prevent logging from coming up
        level_name = os.getenv("LOG_LEVEL", "INFO")
        to_file = os.getenv("LOG_TO_FILE", "").lower() in ("1", "true", "yes")
        log_dir = Path(os.getenv("LOG_FILE_DIR", "logs"))
    return getattr(logging, level_name.upper(), logging.INFO), to_file, log_dir


def _build_handlers(level: int, to_file: bool, log_dir: Path) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        # datascripthub-YYYYMMDD.log
        path = log_dir / f"datascripthub-{datetime.now():%Y%m%d}.log"
        handlers.append(
            TimedRotatingFileHandler(
                filename=str(path),
                when="midnight",
                backupCount=30,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _configure_structlog() -> None:
    level, to_file, log_dir = _logging_options()

    logging.basicConfig(format="%(message)s", level=level, handlers=[])
    for handler in _build_handlers(level, to_file, log_dir):
        logging.root.addHandler(handler)

    processors: List[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitization_processor,
        sql_text_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_configure_structlog()


def get_logger(name: str) -> Any:
    """Return a structlog logger named ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> Any:
    """Return a logger with ``kwargs`` bound to every event.

    Example:
        >>> log = bind_context(table="Person", script_type="Insert")
        >>> log.info("row_scripted", row_index=4)
    """
    return structlog.get_logger().bind(**kwargs)


__all__ = [
    "REDACTED_VALUE",
    "get_logger",
    "bind_context",
    "sanitize_for_logging",
]
