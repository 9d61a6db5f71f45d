"""
Logging setup for the ``provisioner`` command.

main.py calls ``setup_logging`` once, before any subcommand runs; modules
only ever do ``logger = logging.getLogger(__name__)``.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  PROVISIONER_LOG_LEVEL  >  WARNING

A second, independently levelled copy can go to a file
(PROVISIONER_LOG_FILE, PROVISIONER_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import sys

# Console (format, datefmt) by the most verbose level it applies to.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_PLAIN = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# The console report already prints one line per outcome.
REPORT_LOGGER = "provisioner.report"


class ReportEchoFilter(logging.Filter):
    """Drops records from the outcome-report logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not record.name.startswith(REPORT_LOGGER)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    console_report: bool = True,
) -> None:
    """Install the process-wide handlers on the root logger.

    Args:
        level: Console level name.
        log_file: Also write to this file when set.
        log_file_level: File level name; defaults to ``level``.
        console_report: True when outcomes are already rendered on the
            terminal; report log lines are then kept off stderr except
            at DEBUG.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level, hide_report=console_report)]

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    logging.raiseExceptions = False


def _console_handler(level: int, hide_report: bool) -> logging.Handler:
    fmt, datefmt = _CONSOLE_PLAIN, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    if hide_report and level > logging.DEBUG:
        handler.addFilter(ReportEchoFilter())
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown or empty names mean WARNING."""
    value = logging.getLevelName(level.upper()) if level else None
    return value if isinstance(value, int) else logging.WARNING
