"""Logging configuration for jiratrack.

Structured logging through structlog. The terminal is owned by the TUI, so
records go to a dated log file (human-readable by default, JSON on request).
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path

import structlog

LOG_DIR = Path.home() / ".local" / "share" / "jiratrack" / "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Keys whose string values never reach the log file
SENSITIVE_KEYS = re.compile(
    r"token|password|secret|api[_-]?key|credential|(?:^|[_-])auth(?:orization)?(?:$|[_-])",
    re.IGNORECASE,
)

MASK = "***REDACTED***"


def ensure_log_dir() -> None:
    """Create log directory if it doesn't exist."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_file_path() -> Path:
    """Return today's log file, creating the directory on first use.

    Returns:
        Path to log file named jiratrack_YYYY-MM-DD.log
    """
    ensure_log_dir()
    return LOG_DIR / f"jiratrack_{datetime.now():%Y-%m-%d}.log"


def filter_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Mask values of log keys that look like credentials.

    Only non-empty strings are replaced, so counters such as
    ``token_count=3`` pass through.

    Returns:
        The event dict with sensitive string values replaced by MASK
    """
    for key, value in event_dict.items():
        if isinstance(key, str) and isinstance(value, str) and value and SENSITIVE_KEYS.search(key):
            event_dict[key] = MASK
    return event_dict


def _resolve_level(debug: bool) -> int:
    if debug:
        return logging.DEBUG
    name = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _renderer() -> structlog.types.Processor:
    if os.environ.get("LOG_FORMAT") == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(debug: bool = False) -> None:
    """Send structlog records to the dated log file.

    Args:
        debug: If True, log at DEBUG. Otherwise the LOG_LEVEL env var
               is used, defaulting to INFO.
    """
    logging.basicConfig(
        format="%(message)s",
        level=_resolve_level(debug),
        handlers=[logging.FileHandler(get_log_file_path(), encoding="utf-8")],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            filter_sensitive_data,
            _renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Worklog submitted", issue_key="PROJ-1", minutes=30)
    """
    return structlog.get_logger(name)
