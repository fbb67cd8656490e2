"""
Resolve engine base — the contract between the evaluator and Ivy.

The evaluator only talks to a resolve engine through this interface,
never to Ivy directly. An engine is created per evaluation from that
evaluation's ResolverSettings and discarded afterwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, Field

from ivytrigger.core.models.report import ResolutionReport
from ivytrigger.core.services.resolver_log import ResolverLogAdapter
from ivytrigger.core.services.settings_loader import ResolverSettings


class ResolveOptions(BaseModel):
    """Options of a single resolve pass."""

    download: bool = True
    confs: list[str] = Field(default_factory=lambda: ["*"])
    refresh: bool = False


class ResolveEngine(ABC):
    """Abstract base class for resolve engines.

    ``resolve`` raises only for failures where no report exists at all
    (see ``ivytrigger.core.errors``). Problems with individual modules
    belong in the returned report's problem messages.

    To add an engine:
        1. Subclass ResolveEngine
        2. Implement name, is_available, attach_logger, resolve
        3. Pass a factory for it to ``evaluate``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The engine identifier (e.g., 'ivy-cli', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check that the engine's backend can be run. Never raises."""

    @abstractmethod
    def attach_logger(self, log: ResolverLogAdapter) -> None:
        """Route the engine's messages to ``log`` from now on."""

    @abstractmethod
    def resolve(self, descriptor: Path, options: ResolveOptions) -> ResolutionReport:
        """Resolve ``descriptor`` and return the report.

        Raises:
            DescriptorError: If the descriptor cannot be read.
            ResolveError: If the engine produced no report.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


EngineFactory = Callable[[ResolverSettings], ResolveEngine]
