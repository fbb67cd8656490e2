"""
Ivy XML readers — descriptors in, typed resolution reports out.

Ivy's command line writes one XML report per resolved configuration
into the cache, named ``<organisation>-<module>-<conf>.xml``. Each
report lists every module revision reached in that configuration,
with its callers and, per artifact, a download status and the local
file it was stored to. The reports of all configurations are merged
here into a single ResolutionReport.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from ivytrigger.core.errors import DescriptorError
from ivytrigger.core.models.report import (
    Artifact,
    ArtifactDownloadReport,
    ConfigurationReport,
    DependencyNode,
    DownloadStatus,
    ModuleRevisionId,
    ResolutionReport,
)

logger = logging.getLogger(__name__)

DEFAULT_CONF = "default"


@dataclass
class DescriptorInfo:
    """What the evaluator needs to know about an ivy.xml."""

    module_id: ModuleRevisionId
    confs: list[str] = field(default_factory=list)
    private_confs: list[str] = field(default_factory=list)

    @property
    def resolve_id(self) -> str:
        """Ivy's default resolve id: ``<organisation>-<module>``."""
        return f"{self.module_id.organisation}-{self.module_id.name}"


def _local(tag: str) -> str:
    """Strip an XML namespace from a tag name."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _children(elem: ET.Element | None, name: str) -> list[ET.Element]:
    if elem is None:
        return []
    return [child for child in elem if _local(child.tag) == name]


# ═══════════════════════════════════════════════════════════════════
#  Descriptor
# ═══════════════════════════════════════════════════════════════════


def read_descriptor(path: Path) -> DescriptorInfo:
    """Read module identity and configurations from an ivy.xml.

    Raises:
        DescriptorError: If the file is missing or not a valid descriptor.
    """
    try:
        root = ET.parse(path).getroot()
    except OSError as e:
        raise DescriptorError(f"Cannot read descriptor {path}: {e}") from e
    except ET.ParseError as e:
        raise DescriptorError(f"Parsing error in descriptor {path}: {e}") from e

    if _local(root.tag) != "ivy-module":
        raise DescriptorError(f"{path} is not an Ivy descriptor (root <{_local(root.tag)}>)")

    info = _child(root, "info")
    if info is None or not info.get("organisation") or not info.get("module"):
        raise DescriptorError(f"{path}: <info> must declare organisation and module")

    module_id = ModuleRevisionId(
        organisation=info.get("organisation", ""),
        name=info.get("module", ""),
        revision=info.get("revision", ""),
        branch=info.get("branch"),
    )

    public: list[str] = []
    private: list[str] = []
    for conf in _children(_child(root, "configurations"), "conf"):
        name = conf.get("name")
        if not name:
            continue
        (private if conf.get("visibility") == "private" else public).append(name)

    if not public and not private:
        public = [DEFAULT_CONF]

    return DescriptorInfo(module_id=module_id, confs=public, private_confs=private)


def report_path(cache_dir: Path, resolve_id: str, conf: str) -> Path:
    """Where Ivy stores the resolve report of one configuration."""
    return cache_dir / f"{resolve_id}-{conf}.xml"


# ═══════════════════════════════════════════════════════════════════
#  Resolve reports
# ═══════════════════════════════════════════════════════════════════


def parse_reports(
    reports: dict[str, Path],
    module_id: ModuleRevisionId | None = None,
) -> ResolutionReport:
    """Merge per-configuration report files into one ResolutionReport.

    Args:
        reports: Configuration name → report file, in configuration order.
        module_id: The root module, when known.

    Raises:
        OSError / ET.ParseError: If a report file cannot be read.
    """
    result = ResolutionReport(module_id=module_id)
    nodes: dict[str, DependencyNode] = {}

    for conf, path in reports.items():
        conf_report = ConfigurationReport(name=conf)
        result.configurations[conf] = conf_report

        root = ET.parse(path).getroot()
        for module in _children(_child(root, "dependencies"), "module"):
            for revision in _children(module, "revision"):
                node = _revision_node(module, revision)
                key = str(node.resolved_id)

                if key in nodes:
                    node = nodes[key]
                else:
                    nodes[key] = node
                    result.dependencies.append(node)
                if conf not in node.root_module_configurations:
                    node.root_module_configurations.append(conf)

                error = revision.get("error") or module.get("error")
                if error:
                    result.has_error = True
                    _add_problem(result, f"{node.id}: {error}")

                for artifact in _children(_child(revision, "artifacts"), "artifact"):
                    download = _download_report(artifact)
                    conf_report.add_download_report(node.resolved_id, download)
                    if download.status == DownloadStatus.FAILED:
                        result.has_error = True
                        _add_problem(
                            result,
                            f"download failed: {node.resolved_id}!{download.artifact.name}"
                            f".{download.artifact.ext}",
                        )

    logger.debug(
        "Parsed %d configuration report(s), %d dependencies",
        len(reports), len(result.dependencies),
    )
    return result


def _revision_node(module: ET.Element, revision: ET.Element) -> DependencyNode:
    organisation = module.get("organisation", "")
    name = module.get("name", "")
    branch = revision.get("branch") or None

    resolved_id = ModuleRevisionId(
        organisation=organisation,
        name=name,
        revision=revision.get("name", ""),
        branch=branch,
    )

    # The node is known by the revision its first caller asked for
    caller = _child(revision, "caller")
    requested = caller.get("rev") if caller is not None else None
    node_id = resolved_id.model_copy(update={"revision": requested}) if requested else resolved_id

    return DependencyNode(
        id=node_id,
        resolved_id=resolved_id,
        evicted=bool(revision.get("evicted")),
    )


def _download_report(artifact: ET.Element) -> ArtifactDownloadReport:
    try:
        status = DownloadStatus(artifact.get("status", "no"))
    except ValueError:
        status = DownloadStatus.NO

    location = artifact.get("location")
    return ArtifactDownloadReport(
        artifact=Artifact(
            name=artifact.get("name", ""),
            type=artifact.get("type", "jar"),
            ext=artifact.get("ext", "jar"),
        ),
        status=status,
        local_file=Path(location) if location else None,
        details=artifact.get("details", ""),
    )


def _add_problem(report: ResolutionReport, message: str) -> None:
    if message not in report.problem_messages:
        report.problem_messages.append(message)
