"""Logging configuration for the SEO auditor."""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

QUIET_THIRD_PARTY_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'openai', 'anthropic', 'playwright')

# Per-row SQLite writes would drown a DEBUG crawl log; override with LOG_MODULE_LEVELS.
PIPELINE_LOGGER_LEVELS = {
    'seoaudit.database': 'INFO',
}


def _to_level(name: str, default: int = logging.INFO) -> int:
    level = getattr(logging, str(name).strip().upper(), None)
    return level if isinstance(level, int) else default


def parse_module_levels(spec: Optional[str]) -> dict[str, str]:
    """Parse ``"logger=LEVEL,logger=LEVEL"`` into a mapping.

    Entries without ``=`` or with an empty logger name are ignored.
    """
    levels = {}
    for entry in (spec or "").split(","):
        name, sep, level = entry.partition("=")
        if sep and name.strip() and level.strip():
            levels[name.strip()] = level.strip().upper()
    return levels


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    module_levels: Optional[dict[str, str]] = None,
) -> None:
    """Configure logging for the SEO auditor.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        format_string: Optional custom format string
        module_levels: Per-logger overrides applied on top of the pipeline defaults,
            e.g. ``{"seoaudit.async_site_crawler": "DEBUG"}``
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=_to_level(level),
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    for name in QUIET_THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    overrides = {**PIPELINE_LOGGER_LEVELS, **(module_levels or {})}
    for name, module_level in overrides.items():
        logging.getLogger(name).setLevel(_to_level(module_level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
