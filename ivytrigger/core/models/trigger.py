"""
Trigger models — how an evaluation is configured.

``TriggerConfig`` is what trigger.yml declares. ``EvaluationRequest``
is the fully resolved input of a single evaluation: absolute paths,
the environment to expand variables from, and the run flags.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class IvyEngineConfig(BaseModel):
    """Where to find the Ivy jar and how to run it."""

    jar: str | None = None
    java: str | None = None
    timeout: int = 600


class TriggerConfig(BaseModel):
    """Root configuration — loaded from trigger.yml."""

    version: int = 1

    namespace: str
    ivy_file: str = "ivy.xml"
    settings_file: str | None = None
    settings_url: str | None = None
    properties_file: str | None = None
    properties_content: str | None = None

    debug: bool = False
    download_artifacts: bool = True
    execution_root: str | None = None
    inherit_environment: bool = True

    ivy: IvyEngineConfig = Field(default_factory=IvyEngineConfig)

    def to_request(
        self,
        base_dir: Path,
        env_vars: dict[str, str] | None = None,
    ) -> EvaluationRequest:
        """Build an evaluation request, resolving paths against ``base_dir``."""
        base_dir = base_dir.resolve()
        execution_root = _resolve(base_dir, self.execution_root) if self.execution_root else base_dir
        return EvaluationRequest(
            namespace=self.namespace,
            ivy_file=_resolve(base_dir, self.ivy_file),
            settings_file=_resolve(base_dir, self.settings_file) if self.settings_file else None,
            settings_url=self.settings_url,
            properties_file=self.properties_file,
            properties_content=self.properties_content,
            env_vars=dict(env_vars or {}),
            debug=self.debug,
            download_artifacts=self.download_artifacts,
            execution_root=execution_root,
            base_dir=base_dir,
        )


class EvaluationRequest(BaseModel):
    """Everything one evaluation needs."""

    namespace: str
    ivy_file: Path
    settings_file: Path | None = None
    settings_url: str | None = None
    properties_file: str | None = None   # may hold several paths, ';'-delimited
    properties_content: str | None = None
    env_vars: dict[str, str] = Field(default_factory=dict)
    debug: bool = False
    download_artifacts: bool = True
    execution_root: Path = Path(".")
    base_dir: Path | None = None


def _resolve(base_dir: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else base_dir / path
