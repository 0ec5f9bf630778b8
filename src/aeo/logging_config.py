"""Logging setup for the aeo command line."""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# SDK and HTTP loggers that are chatty at INFO
QUIET_LOGGERS = ('urllib3', 'openai', 'anthropic', 'httpx', 'readability')


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """Route aeo logs to stderr and, optionally, a file.

    stdout is left to command output (feature documents, reports).

    Args:
        level: Log level name; unknown names fall back to WARNING
        log_file: Optional log file path, parent directories are created
        format_string: Optional custom format string
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
