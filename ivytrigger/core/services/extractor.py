"""
Dependency map extraction — reduce a resolution report to a snapshot.

For every dependency node the extractor records the resolved revision
and, when anything was fetched for it in this pass, one artifact
descriptor per download report of the node's first root configuration.
Once a single artifact of that configuration was downloaded, all of
its reports are recorded, not only the downloaded ones. Nodes where
nothing was fetched keep an empty artifact list.

A node that cannot be read is logged and left out; the remaining nodes
are still extracted.
"""

from __future__ import annotations

import logging

from ivytrigger.core.models.dependency import ArtifactDescriptor, DependencyValue, EvaluationResult
from ivytrigger.core.models.report import ArtifactDownloadReport, DependencyNode, ResolutionReport

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """A single dependency node could not be turned into a value."""


def extract_dependencies(
    report: ResolutionReport,
    log: logging.Logger = logger,
) -> EvaluationResult:
    """Build the dependency-id → DependencyValue map for a report."""
    result: EvaluationResult = {}

    for node in report.dependencies:
        try:
            result[str(node.id)] = dependency_value(report, node)
        except Exception as e:
            log.error("Can't retrieve artifacts for dependency %s: %s", node.id, e)

    log.debug("Extracted %d of %d dependencies", len(result), len(report.dependencies))
    return result


def dependency_value(report: ResolutionReport, node: DependencyNode) -> DependencyValue:
    """Compute the snapshot value for one node.

    Raises:
        ExtractionError: If the node has no root configuration or one of
            its downloaded artifacts has no readable local file.
    """
    download_reports = _download_reports(report, node)

    artifacts: list[ArtifactDescriptor] = []
    if any(dr.is_downloaded for dr in download_reports):
        artifacts = [_describe(dr) for dr in download_reports]

    return DependencyValue(revision=node.resolved_id.revision, artifacts=tuple(artifacts))


def _download_reports(report: ResolutionReport, node: DependencyNode) -> list[ArtifactDownloadReport]:
    if not node.root_module_configurations:
        raise ExtractionError("no root module configuration")

    conf = node.root_module_configurations[0]
    try:
        conf_report = report.get_configuration_report(conf)
    except KeyError:
        raise ExtractionError(f"no report for configuration '{conf}'") from None

    return conf_report.get_download_reports(node.resolved_id)


def _describe(download_report: ArtifactDownloadReport) -> ArtifactDescriptor:
    artifact = download_report.artifact
    local_file = download_report.local_file
    if local_file is None:
        raise ExtractionError(f"artifact {artifact.name}.{artifact.ext} has no local file")

    try:
        mtime = local_file.stat().st_mtime
    except OSError as e:
        raise ExtractionError(f"cannot stat {local_file}: {e}") from e

    return ArtifactDescriptor(
        name=artifact.name,
        extension=artifact.ext,
        last_modified=int(mtime * 1000),
    )
