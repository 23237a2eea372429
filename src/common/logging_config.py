"""Centralized logging configuration for the dump tool."""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from common.config import get_settings


def setup_logging(
    service_name: str,
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging for a service with consistent formatting.

    Console output goes to stderr by default: stdout is reserved for the
    list of dumped file paths.

    Args:
        service_name: Name of the logger to configure (e.g., 'dump_queue')
        log_file: Optional log file path. If None, logs only to console
        log_level: Optional log level override. If None, uses settings.log_level
        stream: Optional console stream override. If None, uses sys.stderr

    Returns:
        Configured logger instance
    """
    # Determine log level
    level = log_level or get_settings().log_level
    log_level_value = getattr(logging, level.upper(), logging.WARNING)

    # Create logger
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level_value)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    simple_formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(log_level_value)
    console_handler.setFormatter(simple_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(log_level_value)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def configure_third_party_loggers(level: str = "WARNING") -> None:
    """
    Configure logging levels for third-party libraries to reduce noise.

    Args:
        level: Log level for third-party libraries
    """
    third_party_loggers = [
        "aio_pika",
        "aiormq",
        "pamqp",
        "asyncio",
    ]

    log_level = getattr(logging, level.upper(), logging.WARNING)

    for logger_name in third_party_loggers:
        logging.getLogger(logger_name).setLevel(log_level)


def setup_service_logging(service_name: str, verbose: bool = False) -> logging.Logger:
    """
    Convenience function to set up logging for the command-line tool.

    Args:
        service_name: Name of the logger to configure
        verbose: Trace progress at DEBUG level regardless of settings.log_level

    Returns:
        Configured logger instance
    """
    configure_third_party_loggers()

    return setup_logging(
        service_name,
        log_file=get_settings().log_file,
        log_level="DEBUG" if verbose else None,
    )
