"""
Dependency snapshot models — what an evaluation hands back.

A snapshot maps each dependency's identity string to the revision it
resolved to and the artifacts fetched for it. Polling cycles compare
snapshots by key.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ArtifactDescriptor(BaseModel):
    """One artifact fetched for a dependency."""

    model_config = ConfigDict(frozen=True)

    name: str
    extension: str
    last_modified: int   # epoch milliseconds of the local file


class DependencyValue(BaseModel):
    """Resolved revision plus the artifacts fetched for it.

    An empty artifact list means the module resolved but nothing was
    fetched in this pass.
    """

    model_config = ConfigDict(frozen=True)

    revision: str
    artifacts: tuple[ArtifactDescriptor, ...] = ()


EvaluationResult = dict[str, DependencyValue]


class Snapshot(BaseModel):
    """A persisted evaluation result."""

    schema_version: int = 1
    namespace: str = ""
    evaluated_at: str = Field(default_factory=_now_iso)
    dependencies: dict[str, DependencyValue] = Field(default_factory=dict)
