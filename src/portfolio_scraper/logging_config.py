"""Logging setup for crawl runs.

Console output goes to stderr so that machine-readable output on stdout
(``--output json``) can be piped. An optional log file records call sites
as well, which helps when reading back a long crawl.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

PACKAGE_LOGGER = "portfolio_scraper"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] %(message)s"

# Chatty during browser automation
NOISY_LOGGERS = ("asyncio", "playwright")


def resolve_level(level: Union[str, int, None]) -> int:
    """Turn a level name or number into a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level or "INFO").upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """Configure root logging for a crawl run.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR) or number
        log_file: Optional log file path; parent directories are created
        format_string: Overrides both console and file formats
        quiet: Third-party loggers held at WARNING or above

    Returns:
        The package logger
    """
    numeric_level = resolve_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
    handlers = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return logging.getLogger(PACKAGE_LOGGER)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (usually ``get_logger(__name__)``)."""
    return logging.getLogger(name)
