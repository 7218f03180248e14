"""Comma-separated transaction log."""

from __future__ import annotations

import math
import os
import sys
from datetime import datetime

HEADER = (
    "      Date & Time,  Trans,  Elap Time,  Data Trans,  "
    "Resp Time,  Trans Rate,  Throughput,  Concurrent,    OKAY,   Failed\n"
)
_ENTRY_LIMIT = 511


class LogError(OSError):
    """Raised when the log file cannot be created or written."""


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def file_exists(path: str) -> bool:
    """Return True if ``path`` can be opened for reading."""
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False


def create_logfile(path: str) -> None:
    """Create ``path`` and write the column header at its start."""
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY, 0o644)
    except OSError as exc:
        raise LogError(f"unable to create log file: {path}") from exc
    try:
        os.write(fd, HEADER.encode("ascii"))
    except OSError as exc:
        raise LogError(f"Unable to create log file: {path}") from exc
    finally:
        os.close(fd)


def format_entry(count, elapsed, bytes_, ttime, code, failed, when=None) -> str:
    """Return one log line for a finished run."""
    when = when or datetime.now()
    date = when.strftime("%Y-%m-%d %H:%M:%S")
    entry = (
        f"{date},{count:7d},{elapsed:11.2f},{bytes_ & 0xFFFFFFFF:12d},"
        f"{_ratio(ttime, count):11.2f},{_ratio(count, elapsed):12.2f},"
        f"{_ratio(bytes_, elapsed):12.2f},{_ratio(ttime, elapsed):12.2f},"
        f"{code:8d},{failed:8d}\n"
    )
    return entry[:_ENTRY_LIMIT]


def _ensure_logfile(path: str) -> None:
    if not file_exists(path):
        create_logfile(path)


def _append(path: str, entry: str) -> None:
    try:
        fd = os.open(path, os.O_WRONLY | os.O_APPEND, 0o644)
    except OSError as exc:
        raise LogError(f"Unable to open file: {path}") from exc
    try:
        os.write(fd, entry.encode("utf-8"))
    except OSError as exc:
        raise LogError(f"Unable to write to log file: {path}") from exc
    finally:
        os.close(fd)


def write_to_log(path, count, elapsed, bytes_, ttime, code, failed, show_notice=False) -> str:
    """Append a run's statistics to ``path``, creating it if needed.

    Returns the line that was written.
    """
    if show_notice:
        home = os.environ.get("HOME", "")
        sys.stderr.write(f"LOG FILE: {path}\n")
        sys.stderr.write("You can disable this log file notification by editing\n")
        sys.stderr.write(f"{home}/.siege/siege.conf ")
        sys.stderr.write("and changing 'show-logfile' to false.\n")
    _ensure_logfile(path)
    entry = format_entry(count, elapsed, bytes_, ttime, code, failed)
    _append(path, entry)
    return entry


def mark_log_file(path: str, message: str) -> str:
    """Append a marker line carrying ``message`` to ``path``."""
    _ensure_logfile(path)
    entry = f"**** {message} ****\n"[:_ENTRY_LIMIT]
    _append(path, entry)
    return entry