"""
Logging configuration module for the low-code platform server.

This module provides functions to configure logging with UTC timestamp formatting
and proper file/console handlers.
"""

import logging
import os
import sys

from lowcode_server.config import config
from lowcode_server.utils.logging_formatter import UTCTimestampFormatter
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.startup.logging")


def configure_logging():
    """Configure logging with UTC timestamp formatter and file/console handlers."""
    logger.info("=== CONFIGURING LOGGING ===")

    handlers = [logging.StreamHandler()]

    # An explicit log file wins over the log directory environment variable
    log_file = config.get_log_file()
    if not log_file:
        logs_dir = os.environ.get("LOWCODE_LOG_DIR", "logs")
        log_file = os.path.join(logs_dir, "server.log")

    try:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        logger.info("Logging to file %s", log_file)
    except PermissionError as e:
        logger.error("Permission denied for log file: %s", e)
        print(
            f"WARNING: Cannot write to {log_file} due to permissions. "
            "Logging to console only.",
            file=sys.stderr,
        )
    except OSError as e:
        logger.error("Failed to create file handler: %s", e)

    logging.basicConfig(level=logging.INFO, handlers=handlers)

    utc_formatter = UTCTimestampFormatter(config.get_log_format())
    for handler in logging.root.handlers:
        handler.setFormatter(utc_formatter)
    logger.info("Logging configuration complete with %d handlers", len(handlers))
