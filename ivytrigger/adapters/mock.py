"""
Mock engine — test double for resolve engines.

Returns canned reports without starting a JVM. Can be told to raise,
and replays scripted log messages through the attached logger so log
filtering can be observed end to end.
"""

from __future__ import annotations

from pathlib import Path

from ivytrigger.adapters.base import ResolveEngine, ResolveOptions
from ivytrigger.core.models.report import ResolutionReport
from ivytrigger.core.services.resolver_log import MessageLevel, ResolverLogAdapter
from ivytrigger.core.services.settings_loader import ResolverSettings


class MockResolveEngine(ResolveEngine):
    """Canned-report engine.

    By default every resolve returns an empty report.
    """

    def __init__(
        self,
        report: ResolutionReport | None = None,
        settings: ResolverSettings | None = None,
        available: bool = True,
    ):
        self._report = report or ResolutionReport()
        self._available = available
        self._error: Exception | None = None
        self._messages: list[tuple[str, MessageLevel]] = []
        self.settings = settings
        self.logger: ResolverLogAdapter | None = None
        self.call_log: list[tuple[Path, ResolveOptions]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def is_available(self) -> bool:
        return self._available

    def attach_logger(self, log: ResolverLogAdapter) -> None:
        self.logger = log

    def set_report(self, report: ResolutionReport) -> None:
        self._report = report

    def set_failure(self, error: Exception) -> None:
        """Make the next resolves raise ``error``."""
        self._error = error

    def emit(self, message: str, level: MessageLevel = MessageLevel.INFO) -> None:
        """Queue a message to send to the attached logger during resolve."""
        self._messages.append((message, level))

    def resolve(self, descriptor: Path, options: ResolveOptions) -> ResolutionReport:
        self.call_log.append((descriptor, options))

        if self.logger is not None:
            for message, level in self._messages:
                self.logger.log(message, level)

        if self._error is not None:
            raise self._error
        return self._report

    def factory(self, settings: ResolverSettings) -> MockResolveEngine:
        """Use as an engine factory: record the settings, return self."""
        self.settings = settings
        return self
