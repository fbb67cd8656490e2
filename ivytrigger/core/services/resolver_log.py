"""
Resolver log adapter — forwards resolve engine messages to the log sink.

Engines call one method per Ivy message level. Without debug only
warnings and errors get through. Forwarding is best effort: a failing
sink never interrupts a resolve.
"""

from __future__ import annotations

import logging
from enum import IntEnum


class MessageLevel(IntEnum):
    """Ivy message levels, most severe first."""

    ERROR = 0
    WARN = 1
    INFO = 2
    VERBOSE = 3
    DEBUG = 4


_SINK_LEVELS = {
    MessageLevel.ERROR: logging.ERROR,
    MessageLevel.WARN: logging.WARNING,
    MessageLevel.INFO: logging.INFO,
    MessageLevel.VERBOSE: logging.DEBUG,
    MessageLevel.DEBUG: logging.DEBUG,
}


class ResolverLogAdapter:
    """Bridges engine log callbacks onto a ``logging.Logger``."""

    def __init__(self, sink: logging.Logger, debug: bool = False):
        self._sink = sink
        self._debug = debug

    @property
    def debug_enabled(self) -> bool:
        return self._debug

    def accepts(self, level: MessageLevel) -> bool:
        """Whether a message at ``level`` is forwarded."""
        return self._debug or level <= MessageLevel.WARN

    def log(self, message: str, level: MessageLevel) -> None:
        if not self.accepts(level):
            return
        try:
            self._sink.log(_SINK_LEVELS[level], "%s", message)
        except Exception:
            pass  # logging is best effort

    def debug(self, message: str) -> None:
        self.log(message, MessageLevel.DEBUG)

    def verbose(self, message: str) -> None:
        self.log(message, MessageLevel.VERBOSE)

    def info(self, message: str) -> None:
        self.log(message, MessageLevel.INFO)

    def warn(self, message: str) -> None:
        self.log(message, MessageLevel.WARN)

    def error(self, message: str) -> None:
        self.log(message, MessageLevel.ERROR)
