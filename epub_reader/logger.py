"""Logging setup for epub_reader.

Library modules only call logging.getLogger(__name__), which places them under
the "epub_reader" logger. Nothing is printed until an application installs
handlers with setup_logging(); the CLI does so once and then adjusts the
level for --verbose/--quiet.
"""

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "epub_reader"

SIMPLE_FORMAT = "%(levelname)s: %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Silent until configured
logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def _package_logger() -> logging.Logger:
    return logging.getLogger(ROOT_LOGGER_NAME)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    simple: bool = True,
) -> logging.Logger:
    """Send epub_reader log records to stderr and optionally a file.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Logging level (default: INFO)
        log_file: Also write records here, always in the detailed format
        simple: "LEVEL: message" on stderr instead of the detailed format

    Returns:
        The package logger
    """
    package_logger = _package_logger()
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT if simple else DETAILED_FORMAT))
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        package_logger.addHandler(file_handler)

    set_level(level)
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for name, placed under the epub_reader namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_level(level: int) -> None:
    """Set the level of the package logger and every handler it owns."""
    package_logger = _package_logger()
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        handler.setLevel(level)


def enable_debug() -> None:
    """Show DEBUG records: cover strategy, skipped references, fallbacks."""
    set_level(logging.DEBUG)


def enable_quiet() -> None:
    """Only warnings (skipped chapters) and errors."""
    set_level(logging.WARNING)
