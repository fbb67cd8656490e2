"""
Logging configuration — set up once by the CLI entrypoint.

Library code only ever does ``logging.getLogger(__name__)``; handlers
are attached here. Level precedence:

    CLI flag  >  IVYTRIGGER_LOG_LEVEL  >  WARNING

A log file can be added with IVYTRIGGER_LOG_FILE (its own level via
IVYTRIGGER_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import sys

_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_QUIET = "%(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for a CLI run.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to also log into.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = parse_level(level)

    fmt, datefmt = _FMT_QUIET, None
    for threshold in sorted(_CONSOLE_FORMATS):
        if console_level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
            break

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)

    # A broken handler must not take an evaluation down with it
    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Convert a level name to its numeric value (WARNING when unknown)."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
