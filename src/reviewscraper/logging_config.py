"""Logging configuration for the review scraper.

Scrape progress (page numbers, record counts, image statistics, non-fatal
faults) is written to stderr so that JSON results printed on stdout can be
piped straight into other tools.
"""

import logging
import sys
from pathlib import Path
from typing import IO, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Chatty at INFO/DEBUG; only their warnings are interesting during a scrape
NOISY_LOGGERS = ('asyncio', 'playwright')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure logging for a scrape run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        format_string: Optional custom format string
        stream: Console stream (default: sys.stderr)

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger("reviewscraper")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return logging.getLogger(name)
