"""
Builders for resolution reports used across the test suite.
"""

import textwrap
from pathlib import Path

from ivytrigger.core.models.report import (
    Artifact,
    ArtifactDownloadReport,
    ConfigurationReport,
    DependencyNode,
    DownloadStatus,
    ModuleRevisionId,
    ResolutionReport,
)

SETTINGS_XML = textwrap.dedent("""\
    <ivysettings>
      <settings defaultResolver="main"/>
      <resolvers>
        <ibiblio name="main" m2compatible="true" root="${repo.url}"/>
      </resolvers>
    </ivysettings>
""")

IVY_XML = textwrap.dedent("""\
    <ivy-module version="2.0">
      <info organisation="org.example" module="app" revision="1.0"/>
      <configurations>
        <conf name="compile"/>
        <conf name="runtime" extends="compile"/>
        <conf name="internal" visibility="private"/>
      </configurations>
      <dependencies>
        <dependency org="org.example" name="lib" rev="latest.integration" conf="compile->default"/>
      </dependencies>
    </ivy-module>
""")


def make_node(
    org: str,
    name: str,
    revision: str,
    requested: str | None = None,
    confs: list[str] | None = None,
) -> DependencyNode:
    """Build a dependency node; ``requested`` defaults to the revision."""
    resolved = ModuleRevisionId(organisation=org, name=name, revision=revision)
    return DependencyNode(
        id=resolved.model_copy(update={"revision": requested or revision}),
        resolved_id=resolved,
        root_module_configurations=confs if confs is not None else ["default"],
    )


def make_download(
    name: str,
    ext: str = "jar",
    status: DownloadStatus = DownloadStatus.NO,
    local_file: Path | None = None,
) -> ArtifactDownloadReport:
    return ArtifactDownloadReport(
        artifact=Artifact(name=name, type=ext, ext=ext),
        status=status,
        local_file=local_file,
    )


def make_report(
    entries: list[tuple[DependencyNode, list[ArtifactDownloadReport]]],
    conf: str = "default",
    problems: list[str] | None = None,
    has_error: bool = False,
) -> ResolutionReport:
    """Build a single-configuration report from (node, downloads) pairs."""
    conf_report = ConfigurationReport(name=conf)
    for node, downloads in entries:
        for download in downloads:
            conf_report.add_download_report(node.resolved_id, download)
    return ResolutionReport(
        dependencies=[node for node, _ in entries],
        configurations={conf: conf_report},
        problem_messages=problems or [],
        has_error=has_error,
    )
