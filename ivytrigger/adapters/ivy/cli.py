"""
Ivy command-line engine — resolve by running the Apache Ivy jar.

Runs ``java -jar ivy.jar`` against a staged copy of the settings and
variables, streams its output to the attached logger line by line,
then reads the XML reports Ivy leaves in the cache directory.

The Ivy command line always fetches artifacts while resolving. For a
metadata-only resolve (``download=False``) the download statuses are
cleared from the parsed report, so nothing counts as fetched.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
import threading
import xml.etree.ElementTree as ET
from pathlib import Path

from ivytrigger.adapters.base import EngineFactory, ResolveEngine, ResolveOptions
from ivytrigger.adapters.ivy.report_parser import (
    DescriptorInfo,
    parse_reports,
    read_descriptor,
    report_path,
)
from ivytrigger.core.errors import ResolveError
from ivytrigger.core.models.report import DownloadStatus, ResolutionReport
from ivytrigger.core.models.trigger import IvyEngineConfig
from ivytrigger.core.services.resolver_log import MessageLevel, ResolverLogAdapter
from ivytrigger.core.services.settings_loader import ResolverSettings
from ivytrigger.core.services.variables import dump_properties

logger = logging.getLogger(__name__)

IVY_JAR_ENV = "IVYTRIGGER_IVY_JAR"
DEFAULT_TIMEOUT_S = 600

# Prefixes Ivy's console logger puts in front of warnings and errors
_LEVEL_PREFIXES = (
    ("ERROR:", MessageLevel.ERROR),
    ("WARN:", MessageLevel.WARN),
)


def find_java(java: str | None = None) -> str | None:
    """Locate the java executable: explicit, then JAVA_HOME, then PATH."""
    if java:
        return java
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidate = Path(java_home) / "bin" / "java"
        if candidate.is_file():
            return str(candidate)
    return shutil.which("java")


def classify_line(line: str, debug: bool = False) -> MessageLevel:
    """Guess the Ivy message level of one console line."""
    stripped = line.strip()
    for prefix, level in _LEVEL_PREFIXES:
        if stripped.startswith(prefix):
            return level
    return MessageLevel.DEBUG if debug else MessageLevel.INFO


class IvyCliEngine(ResolveEngine):
    """Resolve engine backed by the Ivy standalone jar.

    Args:
        settings: Settings of the current evaluation.
        jar: Path to ivy.jar (default: $IVYTRIGGER_IVY_JAR).
        java: java executable (default: JAVA_HOME, then PATH).
        timeout: Seconds one resolve may run before it is killed.
    """

    def __init__(
        self,
        settings: ResolverSettings,
        jar: str | None = None,
        java: str | None = None,
        timeout: int = DEFAULT_TIMEOUT_S,
    ):
        if settings.cache_dir is None:
            raise ValueError("ResolverSettings must be bound to a cache directory")
        self._settings = settings
        self._jar = jar or os.environ.get(IVY_JAR_ENV)
        self._java = find_java(java)
        self._timeout = timeout
        self._log: ResolverLogAdapter | None = None

    @property
    def name(self) -> str:
        return "ivy-cli"

    @classmethod
    def factory(cls, config: IvyEngineConfig | None = None) -> EngineFactory:
        """An engine factory bound to one engine configuration."""
        config = config or IvyEngineConfig()

        def _create(settings: ResolverSettings) -> IvyCliEngine:
            return cls(settings, jar=config.jar, java=config.java, timeout=config.timeout)

        return _create

    def is_available(self) -> bool:
        return bool(self._java and self._jar and Path(self._jar).is_file())

    def attach_logger(self, log: ResolverLogAdapter) -> None:
        self._log = log

    # ── Resolve ─────────────────────────────────────────────────

    def resolve(self, descriptor: Path, options: ResolveOptions) -> ResolutionReport:
        if not self.is_available():
            raise ResolveError(
                f"Ivy is not available (java={self._java!r}, jar={self._jar!r}); "
                f"set ivy.jar in the config or {IVY_JAR_ENV}"
            )

        info = read_descriptor(descriptor)
        confs = info.confs if options.confs == ["*"] else options.confs
        cache_dir = self._settings.cache_dir
        assert cache_dir is not None

        reports = {conf: report_path(cache_dir, info.resolve_id, conf) for conf in confs}
        for path in reports.values():
            path.unlink(missing_ok=True)  # stale from an earlier run

        with tempfile.TemporaryDirectory(prefix="ivytrigger-") as work:
            work_dir = Path(work)
            command = self.build_command(descriptor, work_dir, confs, options)
            returncode, problems = self._run(command, work_dir)

        report = self._read_reports(info, reports, returncode)
        for problem in problems:
            if problem not in report.problem_messages:
                report.problem_messages.append(problem)

        if not options.download:
            _clear_download_statuses(report)
        return report

    def build_command(
        self,
        descriptor: Path,
        work_dir: Path,
        confs: list[str],
        options: ResolveOptions,
    ) -> list[str]:
        """Stage settings and variables in ``work_dir`` and build the java command."""
        settings_file = self._settings.write(work_dir / "ivysettings.xml")
        properties_file = work_dir / "variables.properties"
        properties_file.write_text(dump_properties(self._settings.variables), encoding="latin-1")

        debug = self._log is not None and self._log.debug_enabled
        command = [
            str(self._java), "-jar", str(self._jar),
            "-settings", str(settings_file),
            "-properties", str(properties_file),
            "-cache", str(self._settings.cache_dir),
            "-ivy", str(descriptor),
            "-confs", *confs,
            "-debug" if debug else "-warn",
        ]
        if options.refresh:
            command.append("-refresh")
        return command

    def _run(self, command: list[str], cwd: Path) -> tuple[int, list[str]]:
        logger.debug("Executing: %s", " ".join(command))
        debug = self._log is not None and self._log.debug_enabled
        problems: list[str] = []
        timed_out = threading.Event()

        try:
            proc = subprocess.Popen(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ResolveError(f"Cannot start Ivy: {e}") from e

        def _kill() -> None:
            timed_out.set()
            proc.kill()

        with proc:
            timer = threading.Timer(self._timeout, _kill)
            timer.start()
            try:
                assert proc.stdout is not None
                for raw in proc.stdout:
                    line = raw.rstrip()
                    if not line:
                        continue
                    level = classify_line(line, debug)
                    if level <= MessageLevel.WARN and line.strip() not in problems:
                        problems.append(line.strip())
                    if self._log is not None:
                        self._log.log(line, level)
                returncode = proc.wait()
            finally:
                timer.cancel()
                if proc.poll() is None:
                    proc.kill()

        if timed_out.is_set():
            raise ResolveError(f"Ivy resolve timed out after {self._timeout}s")
        return returncode, problems

    def _read_reports(
        self,
        info: DescriptorInfo,
        reports: dict[str, Path],
        returncode: int,
    ) -> ResolutionReport:
        present = {conf: path for conf, path in reports.items() if path.is_file()}
        if not present:
            raise ResolveError(f"Ivy exited with code {returncode} without writing a resolve report")

        try:
            report = parse_reports(present, module_id=info.module_id)
        except (OSError, ET.ParseError) as e:
            raise ResolveError(f"Cannot read Ivy resolve report: {e}") from e

        for conf in (c for c in reports if c not in present):
            report.has_error = True
            report.problem_messages.append(f"no resolve report for configuration '{conf}'")
        if returncode != 0:
            report.has_error = True
        return report


def _clear_download_statuses(report: ResolutionReport) -> None:
    for conf_report in report.configurations.values():
        for download_reports in conf_report.download_reports.values():
            for dr in download_reports:
                if dr.status == DownloadStatus.SUCCESSFUL:
                    dr.status = DownloadStatus.NO
