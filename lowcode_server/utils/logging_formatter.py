"""
Log formatter that renders record timestamps in UTC.
"""

import logging
from datetime import datetime, timezone


class UTCTimestampFormatter(logging.Formatter):
    """
    Formatter that always emits ISO-8601 UTC timestamps with a 'Z' suffix,
    regardless of the host's local timezone.
    """

    def formatTime(self, record, datefmt=None):  # noqa: N802 - logging API name
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return timestamp.strftime(datefmt)
        return timestamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}Z"

    def format(self, record):
        # asctime is only populated when the format string asks for it
        if "%(asctime)" not in (self._fmt or ""):
            return f"{self.formatTime(record)} {super().format(record)}"
        return super().format(record)
