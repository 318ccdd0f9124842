"""
Logging utilities for the CWE toolkit.
"""

import logging
import sys
from pathlib import Path

try:
    from rich.console import Console
    from rich.logging import RichHandler

    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

PACKAGE_LOGGER = "cwe_toolkit"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO", log_file: Path | None = None, use_rich: bool = True
) -> logging.Logger:
    """Set up logging configuration for the toolkit.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        use_rich: Whether to use Rich formatting for console output

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if use_rich and RICH_AVAILABLE:
        console = Console(stderr=True)
        console_handler: logging.Handler = RichHandler(
            console=console, show_time=True, show_path=False, markup=False
        )
        formatter = logging.Formatter(fmt="%(message)s", datefmt="[%X]")
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
