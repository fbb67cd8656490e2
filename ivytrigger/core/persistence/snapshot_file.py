"""
Snapshot persistence — atomic read/write of evaluation snapshots.

A snapshot is stored as JSON. Writes go to a temp file in the target
directory and are renamed into place, so a reader never sees half a
snapshot.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ivytrigger.core.models.dependency import Snapshot

logger = logging.getLogger(__name__)


def load_snapshot(path: Path) -> Snapshot | None:
    """Load a snapshot from a JSON file.

    Returns:
        The snapshot, or None if the file is missing or unreadable.
    """
    if not path.is_file():
        logger.info("No snapshot at %s", path)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Snapshot.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Cannot load snapshot from %s: %s", path, e)
        return None


def save_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Write a snapshot to ``path`` atomically.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(snapshot.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".snapshot_", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Snapshot saved to %s", path)
