"""
Logging helpers for the low-code platform server.

The configured level is a pipe-separated list ("INFO|ERROR") rather than a
threshold, so any combination of levels can be switched on. Every module gets
its logger from get_logger().
"""

import logging
import re
from typing import Iterable, Optional, Set

from lowcode_server.config.config import get_log_format, get_log_levels
from lowcode_server.utils.logging_formatter import UTCTimestampFormatter

# CR and LF in user supplied values can forge log lines (CWE-117)
_LINE_BREAKS = re.compile(r"[\r\n]")

DEFAULT_LEVELS = frozenset(
    {logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL}
)

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


def sanitize_log(value) -> str:
    """Render a value for a log message with line breaks removed."""
    return _LINE_BREAKS.sub("", str(value))


def parse_levels(level_config: Optional[str]) -> Set[int]:
    """
    Turn "INFO|ERROR" into {logging.INFO, logging.ERROR}.

    Unknown names are skipped. An unusable setting enables the default
    operational levels.
    """
    if not isinstance(level_config, str):
        return set(DEFAULT_LEVELS)
    levels = set()
    for part in level_config.split("|"):
        level = logging.getLevelName(part.strip().upper())
        if isinstance(level, int) and level in _LEVEL_NAMES:
            levels.add(level)
    return levels


class FlexibleLogger:
    """
    Wrapper around logging.Logger that only emits the configured levels.

    Examples of level settings:
    - "DEBUG": debug messages only
    - "INFO|ERROR": info and error messages, no warnings
    - "INFO|WARNING|ERROR|CRITICAL": normal operation
    """

    def __init__(self, name: str, levels: Optional[Iterable[int]] = None):
        self.name = name
        self.logger = logging.getLogger(name)
        if levels is None:
            try:
                levels = parse_levels(get_log_levels())
            except KeyError:
                levels = DEFAULT_LEVELS
        self.enabled_levels = set(levels)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(UTCTimestampFormatter(get_log_format()))
            self.logger.addHandler(handler)
            # filtering happens in _emit
            self.logger.setLevel(logging.DEBUG)

    def is_enabled(self, level: int) -> bool:
        return level in self.enabled_levels

    def _emit(self, level: int, msg: str, args, kwargs):
        if self.is_enabled(level):
            getattr(self.logger, _LEVEL_NAMES[level])(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._emit(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._emit(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._emit(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._emit(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._emit(logging.CRITICAL, msg, args, kwargs)


def get_logger(name: str) -> FlexibleLogger:
    """Get the logger for a module, honouring the configured levels."""
    return FlexibleLogger(name)
