"""
Evaluate use case — resolve a descriptor and snapshot the result.

One evaluation, start to finish, on the calling thread:

    variables → settings → engine → resolve → extract

Fatal errors (bad configuration, unreadable settings, properties or
descriptor, an engine that produced no report) are logged and turn
into a ``None`` result. ``None`` means the dependency state is
unknown; a mapping, even an empty one, is authoritative. Problems the
resolver reports are logged and do not stop extraction.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ivytrigger.adapters.base import EngineFactory, ResolveEngine, ResolveOptions
from ivytrigger.core.errors import (
    DescriptorError,
    ResolveError,
    SettingsError,
    TriggerError,
    VariablesError,
)
from ivytrigger.core.models.dependency import EvaluationResult
from ivytrigger.core.models.report import ResolutionReport
from ivytrigger.core.models.trigger import EvaluationRequest
from ivytrigger.core.services.extractor import extract_dependencies
from ivytrigger.core.services.resolver_log import ResolverLogAdapter
from ivytrigger.core.services.settings_loader import ResolverSettings, load_settings
from ivytrigger.core.services.variables import assemble_variables

logger = logging.getLogger(__name__)

EVALUATION_LOGGER = "ivytrigger.evaluation"

_ERROR_LABELS: tuple[tuple[type[Exception], str], ...] = (
    (SettingsError, "Settings error"),
    (VariablesError, "Properties error"),
    (DescriptorError, "Descriptor error"),
    (ResolveError, "Resolve error"),
)


def evaluate(
    request: EvaluationRequest,
    log: logging.Logger | None = None,
    engine_factory: EngineFactory | None = None,
) -> EvaluationResult | None:
    """Resolve ``request.ivy_file`` and return its dependency snapshot.

    Args:
        request: What to resolve and how.
        log: Sink for evaluation messages (default: ``ivytrigger.evaluation``).
        engine_factory: Builds the resolve engine from the settings
            (default: the Ivy command-line engine).

    Returns:
        Dependency id → DependencyValue, or None on a fatal error.
    """
    log = log or logging.getLogger(EVALUATION_LOGGER)
    if engine_factory is None:
        from ivytrigger.adapters.ivy.cli import IvyCliEngine

        engine_factory = IvyCliEngine.factory()

    try:
        variables = assemble_variables(
            env_vars=request.env_vars,
            properties_file=request.properties_file,
            properties_content=request.properties_content,
            base_dir=request.base_dir,
        )
        settings = load_settings(
            variables,
            execution_root=request.execution_root,
            namespace=request.namespace,
            settings_file=request.settings_file,
            settings_url=request.settings_url,
            log=log,
        )
        engine = build_engine(settings, engine_factory, log, debug=request.debug)

        log.info("\nResolving Ivy dependencies.")
        report = run_resolve(engine, request.ivy_file, request.download_artifacts, log)

        return extract_dependencies(report, log)

    except TriggerError as e:
        log.error("%s: %s", _label(e), e)
        return None
    except OSError as e:
        log.error("I/O error: %s", e)
        return None


def build_engine(
    settings: ResolverSettings,
    engine_factory: EngineFactory,
    log: logging.Logger,
    debug: bool = False,
) -> ResolveEngine:
    """Create a fresh engine and attach the resolver log before any resolve."""
    engine = engine_factory(settings)
    engine.attach_logger(ResolverLogAdapter(log, debug=debug))
    logger.debug("Using resolve engine %r", engine)
    return engine


def run_resolve(
    engine: ResolveEngine,
    descriptor: Path,
    download: bool,
    log: logging.Logger,
) -> ResolutionReport:
    """Run exactly one resolve pass; problems are logged, not raised.

    Raises:
        DescriptorError: If the descriptor file does not exist.
        ResolveError: If the engine produced no report.
    """
    if not descriptor.is_file():
        raise DescriptorError(f"Ivy descriptor not found: {descriptor}")

    report = engine.resolve(descriptor, ResolveOptions(download=download))
    if report.has_error and report.problem_messages:
        log.error(format_problems(report.problem_messages))
    return report


def format_problems(problems: list[str]) -> str:
    """One block listing every problem message."""
    return "Errors:\n" + "".join(f"{problem}\n" for problem in problems)


def _label(error: Exception) -> str:
    for error_type, label in _ERROR_LABELS:
        if isinstance(error, error_type):
            return label
    return "Evaluation error"
