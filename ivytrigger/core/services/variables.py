"""
Variable assembly — the variables Ivy settings are expanded with.

Three sources are merged, later ones overriding earlier ones:

1. environment variables
2. properties files (one or more paths, ``;``-delimited)
3. inline properties content

Properties use the Java ``.properties`` syntax and files are decoded
as Latin-1. The merged mapping is sorted by key.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from string import Template

from ivytrigger.core.errors import VariablesError

logger = logging.getLogger(__name__)

PATH_DELIMITER = ";"
PROPERTIES_ENCODING = "latin-1"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_WHITESPACE = " \t\f"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_ESCAPES_OUT = {char: "\\" + letter for letter, char in _ESCAPES.items()}


# ═══════════════════════════════════════════════════════════════════
#  Paths
# ═══════════════════════════════════════════════════════════════════


def split_file_paths(spec: str) -> list[str]:
    """Split a ``;``-delimited path list, trimming each segment.

    >>> split_file_paths(" /a/ ; /b")
    ['/a/', '/b']
    """
    return [part.strip() for part in spec.split(PATH_DELIMITER) if part.strip()]


def expand_vars(raw: str, env_vars: Mapping[str, str] | None = None) -> str:
    """Expand ``$VAR`` and ``${VAR}`` references; unknown ones stay as-is."""
    if not env_vars or "$" not in raw:
        return raw
    return Template(raw).safe_substitute(env_vars)


def resolve_path(
    raw: str,
    base_dir: Path | None = None,
    env_vars: Mapping[str, str] | None = None,
) -> Path:
    """Turn a configured path into a filesystem path.

    Variables are expanded first; relative results are taken relative
    to ``base_dir`` (the cwd when unset).
    """
    path = Path(expand_vars(raw, env_vars)).expanduser()
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path


class PropertiesFileContentExtractor:
    """Reads the properties files named by a ``;``-delimited path list."""

    def __init__(
        self,
        base_dir: Path | None = None,
        env_vars: Mapping[str, str] | None = None,
    ):
        self._base_dir = base_dir
        self._env_vars = dict(env_vars or {})

    def extract_properties_file_contents(self, spec: str | None) -> str:
        """Concatenate every listed file, each followed by a newline.

        Returns an empty string for an empty or missing path list.

        Raises:
            VariablesError: If one of the files cannot be read.
        """
        if not spec or not spec.strip():
            return ""

        chunks: list[str] = []
        for raw in split_file_paths(spec):
            path = resolve_path(raw, self._base_dir, self._env_vars)
            logger.debug("Reading properties file %s", path)
            try:
                chunks.append(path.read_bytes().decode(PROPERTIES_ENCODING))
            except OSError as e:
                raise VariablesError(f"Cannot read properties file {path}: {e}") from e
            chunks.append("\n")
        return "".join(chunks)


# ═══════════════════════════════════════════════════════════════════
#  Properties syntax
# ═══════════════════════════════════════════════════════════════════


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java ``.properties`` content into an ordered dict.

    Handles:
    - ``key=value``, ``key: value`` and ``key value``
    - ``#`` and ``!`` comment lines
    - lines continued with a trailing backslash
    - ``\\t \\n \\r \\f \\uXXXX`` escapes

    Raises:
        VariablesError: On a malformed ``\\uXXXX`` escape.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_pair(line)
        result[key] = value
    return result


def dump_properties(variables: Mapping[str, str]) -> str:
    """Render a mapping as ``.properties`` text that parses back unchanged.

    Characters outside Latin-1 are written as ``\\uXXXX`` escapes.
    """
    lines = [f"{_escape(key, is_key=True)}={_escape(value)}" for key, value in variables.items()]
    return "\n".join(lines) + "\n" if lines else ""


def _escape(raw: str, is_key: bool = False) -> str:
    out: list[str] = []
    for i, c in enumerate(raw):
        if c == "\\":
            out.append("\\\\")
        elif c in _ESCAPES_OUT:
            out.append(_ESCAPES_OUT[c])
        elif c in "=:#!" or (c == " " and (is_key or i == 0)):
            out.append("\\" + c)
        elif ord(c) > 0xFF:
            out.append("".join(f"\\u{unit:04x}" for unit in _utf16_units(c)))
        else:
            out.append(c)
    return "".join(out)


def _utf16_units(c: str) -> list[int]:
    data = c.encode("utf-16-be", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "big") for i in range(0, len(data), 2)]


def _logical_lines(text: str):
    pending: str | None = None
    for natural in _LINE_BREAK.split(text):
        line = natural.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue

        backslashes = len(line) - len(line.rstrip("\\"))
        if backslashes % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield (pending or "") + line
        pending = None

    if pending is not None:
        yield pending


def _split_pair(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in "=:" or c in _WHITESPACE:
            break
        i += 1

    key, rest = line[:i], line[i:].lstrip(_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(key), _unescape(rest)


def _unescape(raw: str) -> str:
    if "\\" not in raw:
        return raw

    out: list[str] = []
    i = 0
    while i < len(raw):
        c = raw[i]
        i += 1
        if c != "\\":
            out.append(c)
            continue
        if i >= len(raw):
            break
        c = raw[i]
        i += 1
        if c == "u":
            digits = raw[i:i + 4]
            if len(digits) != 4 or any(d not in "0123456789abcdefABCDEF" for d in digits):
                raise VariablesError(f"Malformed \\uxxxx encoding in properties: {raw!r}")
            out.append(chr(int(digits, 16)))
            i += 4
        else:
            out.append(_ESCAPES.get(c, c))
    # Pairs of \uXXXX surrogates stand for one character
    return "".join(out).encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


# ═══════════════════════════════════════════════════════════════════
#  Assembly
# ═══════════════════════════════════════════════════════════════════


def assemble_variables(
    env_vars: Mapping[str, str] | None = None,
    properties_file: str | None = None,
    properties_content: str | None = None,
    base_dir: Path | None = None,
) -> dict[str, str]:
    """Merge all variable sources into one key-sorted mapping.

    Precedence, lowest first: environment, properties files, inline
    content.

    Raises:
        VariablesError: If a properties file cannot be read or parsed.
    """
    variables: dict[str, str] = {}

    if env_vars:
        variables.update({str(k): str(v) for k, v in env_vars.items()})

    extractor = PropertiesFileContentExtractor(base_dir=base_dir, env_vars=env_vars)
    file_content = extractor.extract_properties_file_contents(properties_file)
    if file_content:
        variables.update(parse_properties(file_content))

    if properties_content:
        variables.update(parse_properties(properties_content))

    logger.debug("Assembled %d variables", len(variables))
    return dict(sorted(variables.items()))
