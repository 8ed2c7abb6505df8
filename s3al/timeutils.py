"""Formatting of timestamps in local time."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

__all__ = ["TimeFormat", "format_time", "now"]


class TimeFormat(Enum):
    """Output formats for timestamps."""

    DATETIME_SECONDS = "seconds"  # YYYY-MM-DD HH:MM:SS
    DATETIME_MILLISECONDS = "milliseconds"  # YYYY-MM-DD HH:MM:SS.mmm


def format_time(moment: datetime, fmt: TimeFormat = TimeFormat.DATETIME_SECONDS) -> str:
    """Format a moment in local time.

    Aware datetimes are converted to local time; naive ones are taken as local.
    """
    local = moment.astimezone() if moment.tzinfo is not None else moment
    text = local.strftime("%Y-%m-%d %H:%M:%S")
    if fmt is TimeFormat.DATETIME_MILLISECONDS:
        text += f".{local.microsecond // 1000:03d}"
    return text


def now(fmt: TimeFormat = TimeFormat.DATETIME_SECONDS) -> str:
    """Return the current local time formatted."""
    return format_time(datetime.now(), fmt)