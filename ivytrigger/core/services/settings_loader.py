"""
Settings loading — turn configured Ivy settings into ResolverSettings.

The settings text comes from a local file or from a URL. It is
written to a transient file, loaded from there, and the file is
removed again whatever happens. The loaded settings are bound to the
assembled variables and to a cache directory scoped by namespace:

    <execution_root>/ivy-trigger-cache/<namespace>

The same namespace always maps to the same directory, so successive
evaluations of one trigger share a resolver cache. Nothing here locks
that directory; callers run at most one evaluation per namespace.
"""

from __future__ import annotations

import logging
import os
import tempfile
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from ivytrigger import __version__
from ivytrigger.core.errors import SettingsError

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = "ivy-trigger-cache"
URL_TIMEOUT_S = 60

# Root elements Ivy accepts for a settings document
_SETTINGS_ROOTS = ("ivysettings", "ivyconf")


@dataclass
class ResolverSettings:
    """Ivy settings ready to hand to an engine. Built fresh per evaluation."""

    text: str
    variables: dict[str, str] = field(default_factory=dict)
    cache_dir: Path | None = None
    source: str = ""

    @classmethod
    def load(cls, path: Path, variables: dict[str, str], source: str = "") -> ResolverSettings:
        """Load a settings document from disk.

        Raises:
            SettingsError: If the document is not well-formed Ivy settings.
        """
        text = path.read_text(encoding="utf-8", errors="replace")
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise SettingsError(f"Parsing error in settings {source or path}: {e}") from e

        if root.tag not in _SETTINGS_ROOTS:
            raise SettingsError(
                f"Parsing error in settings {source or path}: "
                f"expected <ivysettings>, found <{root.tag}>"
            )
        return cls(text=text, variables=dict(variables), source=source or str(path))

    def write(self, path: Path) -> Path:
        """Write the settings document where an engine can read it."""
        path.write_text(self.text, encoding="utf-8")
        return path


def read_settings_text(
    settings_file: Path | None,
    settings_url: str | None,
    log: logging.Logger = logger,
) -> tuple[str, str]:
    """Fetch the raw settings text.

    The local file wins when both are configured. Bytes that are not
    valid UTF-8 are replaced rather than rejected.

    Returns:
        (text, source) where source names where the text came from.

    Raises:
        SettingsError: If no source is configured or it cannot be read.
    """
    if settings_file is not None:
        log.info("Getting settings from file %s", settings_file)
        try:
            return settings_file.read_text(encoding="utf-8", errors="replace"), str(settings_file)
        except OSError as e:
            raise SettingsError(f"Cannot read settings file {settings_file}: {e}") from e

    if settings_url:
        log.info("Getting settings from URL %s", settings_url)
        try:
            req = urllib.request.Request(
                settings_url,
                headers={"User-Agent": f"ivytrigger/{__version__}"},
            )
            with urllib.request.urlopen(req, timeout=URL_TIMEOUT_S) as resp:
                return resp.read().decode("utf-8", errors="replace"), settings_url
        except (OSError, ValueError) as e:
            raise SettingsError(f"Cannot read settings from URL {settings_url}: {e}") from e

    raise SettingsError("No Ivy settings configured: set a settings file or a settings URL")


def cache_dir_for(execution_root: Path, namespace: str) -> Path:
    """Create (if needed) and return the cache directory for a namespace."""
    cache_dir = execution_root / CACHE_DIR_NAME / namespace
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SettingsError(f"Cannot create cache directory {cache_dir}: {e}") from e
    return cache_dir


def load_settings(
    variables: dict[str, str],
    execution_root: Path,
    namespace: str,
    settings_file: Path | None = None,
    settings_url: str | None = None,
    log: logging.Logger = logger,
) -> ResolverSettings:
    """Build the ResolverSettings for one evaluation.

    Raises:
        SettingsError: On a missing, unreadable or malformed settings source.
    """
    text, source = read_settings_text(settings_file, settings_url, log)

    tmp: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix="file", suffix=".tmp")
        tmp = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)

        settings = ResolverSettings.load(tmp, variables, source=source)
    except OSError as e:
        raise SettingsError(f"Cannot stage settings from {source}: {e}") from e
    finally:
        if tmp is not None:
            _remove_quietly(tmp, log)

    settings.cache_dir = cache_dir_for(execution_root, namespace)
    logger.debug("Settings from %s bound to cache %s", source, settings.cache_dir)
    return settings


def _remove_quietly(path: Path, log: logging.Logger) -> None:
    try:
        path.unlink()
    except OSError:
        log.error("Can't delete temporary file: %s", path)
