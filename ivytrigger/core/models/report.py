"""
Resolution report models — the typed result of one resolve pass.

Engines translate whatever their backend produces into these models,
so the extractor never has to guess at shapes or cast elements.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ModuleRevisionId(BaseModel):
    """Identity of one module revision: organisation, name, revision."""

    model_config = ConfigDict(frozen=True)

    organisation: str
    name: str
    revision: str = ""
    branch: str | None = None

    def __str__(self) -> str:
        branch = f"#{self.branch}" if self.branch else ""
        return f"{self.organisation}#{self.name}{branch};{self.revision}"


class DownloadStatus(str, Enum):
    """Outcome of fetching one artifact during a resolve."""

    SUCCESSFUL = "successful"   # fetched in this pass
    NO = "no"                   # already in cache, nothing fetched
    FAILED = "failed"


class Artifact(BaseModel):
    """An artifact published by a module."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "jar"
    ext: str = "jar"


class ArtifactDownloadReport(BaseModel):
    """What happened to one artifact of one module in one configuration."""

    artifact: Artifact
    status: DownloadStatus = DownloadStatus.NO
    local_file: Path | None = None
    details: str = ""

    @property
    def is_downloaded(self) -> bool:
        return self.status == DownloadStatus.SUCCESSFUL


class ConfigurationReport(BaseModel):
    """Download reports for a single root-module configuration.

    Reports are keyed by the string form of the resolved module id.
    """

    name: str
    download_reports: dict[str, list[ArtifactDownloadReport]] = Field(default_factory=dict)

    def get_download_reports(self, mrid: ModuleRevisionId) -> list[ArtifactDownloadReport]:
        return self.download_reports.get(str(mrid), [])

    def add_download_report(self, mrid: ModuleRevisionId, report: ArtifactDownloadReport) -> None:
        self.download_reports.setdefault(str(mrid), []).append(report)


class DependencyNode(BaseModel):
    """One module in the resolved dependency graph.

    ``id`` is the revision as requested by the caller (it may be a
    dynamic revision such as ``latest.integration``); ``resolved_id``
    carries the concrete revision the resolver settled on.
    """

    id: ModuleRevisionId
    resolved_id: ModuleRevisionId
    root_module_configurations: list[str] = Field(default_factory=list)
    evicted: bool = False


class ResolutionReport(BaseModel):
    """Result of one resolve call. Read-only once returned by an engine."""

    module_id: ModuleRevisionId | None = None
    dependencies: list[DependencyNode] = Field(default_factory=list)
    configurations: dict[str, ConfigurationReport] = Field(default_factory=dict)
    # Warnings and errors alike; has_error is set only for unresolved
    # modules or failed downloads.
    problem_messages: list[str] = Field(default_factory=list)
    has_error: bool = False

    def get_configuration_report(self, name: str) -> ConfigurationReport:
        """Look up a configuration report.

        Raises:
            KeyError: If the report holds no such configuration.
        """
        return self.configurations[name]
