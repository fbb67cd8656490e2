"""
Tests for the Ivy XML readers.
"""

import textwrap
from pathlib import Path

import pytest

from ivytrigger.adapters.ivy.report_parser import parse_reports, read_descriptor, report_path
from ivytrigger.core.errors import DescriptorError
from ivytrigger.core.models.report import DownloadStatus, ModuleRevisionId


def report_xml(conf: str, modules: str) -> str:
    """Wrap module entries the way Ivy's XML report writer does."""
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <ivy-report version="1.0">
          <info organisation="org.example" module="app" revision="1.0" conf="{conf}"/>
          <dependencies>
        {modules}
          </dependencies>
        </ivy-report>
    """).format(conf=conf, modules=modules)


LIB_MODULE = """\
    <module organisation="org.example" name="lib">
      <revision name="3.1" status="integration">
        <caller organisation="org.example" name="app" conf="compile" rev="latest.integration"/>
        <artifacts>
          <artifact name="lib" type="jar" ext="jar" status="successful" location="/cache/lib-3.1.jar"/>
          <artifact name="lib" type="source" ext="zip" status="no" location="/cache/lib-3.1-sources.zip"/>
        </artifacts>
      </revision>
    </module>"""

COMMONS_MODULE = """\
    <module organisation="org.apache" name="commons">
      <revision name="2.0" branch="stable">
        <caller organisation="org.example" name="app" conf="runtime" rev="2.0"/>
        <artifacts>
          <artifact name="commons" type="jar" ext="jar" status="failed"/>
        </artifacts>
      </revision>
    </module>"""


def write_report(tmp_path: Path, conf: str, modules: str) -> Path:
    path = tmp_path / f"org.example-app-{conf}.xml"
    path.write_text(report_xml(conf, modules), encoding="utf-8")
    return path


class TestReadDescriptor:
    def test_module_and_confs(self, ivy_file: Path):
        info = read_descriptor(ivy_file)
        assert info.module_id == ModuleRevisionId(organisation="org.example", name="app", revision="1.0")
        assert info.confs == ["compile", "runtime"]
        assert info.private_confs == ["internal"]
        assert info.resolve_id == "org.example-app"

    def test_no_configurations_means_default(self, tmp_path: Path):
        path = tmp_path / "ivy.xml"
        path.write_text('<ivy-module version="2.0"><info organisation="o" module="m"/></ivy-module>')
        assert read_descriptor(path).confs == ["default"]

    def test_missing(self, tmp_path: Path):
        with pytest.raises(DescriptorError, match="Cannot read descriptor"):
            read_descriptor(tmp_path / "ivy.xml")

    def test_malformed(self, tmp_path: Path):
        path = tmp_path / "ivy.xml"
        path.write_text("<ivy-module>")
        with pytest.raises(DescriptorError, match="Parsing error"):
            read_descriptor(path)

    def test_wrong_root(self, tmp_path: Path):
        path = tmp_path / "pom.xml"
        path.write_text("<project/>")
        with pytest.raises(DescriptorError, match="not an Ivy descriptor"):
            read_descriptor(path)

    def test_info_without_module(self, tmp_path: Path):
        path = tmp_path / "ivy.xml"
        path.write_text('<ivy-module version="2.0"><info organisation="o"/></ivy-module>')
        with pytest.raises(DescriptorError, match="organisation and module"):
            read_descriptor(path)


class TestReportPath:
    def test_layout(self, tmp_path: Path):
        assert report_path(tmp_path, "org-app", "compile") == tmp_path / "org-app-compile.xml"


class TestParseReports:
    def test_node_identity(self, tmp_path: Path):
        report = parse_reports({"compile": write_report(tmp_path, "compile", LIB_MODULE)})

        [node] = report.dependencies
        assert str(node.id) == "org.example#lib;latest.integration"
        assert str(node.resolved_id) == "org.example#lib;3.1"
        assert node.root_module_configurations == ["compile"]

    def test_download_reports(self, tmp_path: Path):
        report = parse_reports({"compile": write_report(tmp_path, "compile", LIB_MODULE)})

        node = report.dependencies[0]
        downloads = report.get_configuration_report("compile").get_download_reports(node.resolved_id)
        assert [(d.artifact.ext, d.status) for d in downloads] == [
            ("jar", DownloadStatus.SUCCESSFUL),
            ("zip", DownloadStatus.NO),
        ]
        assert downloads[0].local_file == Path("/cache/lib-3.1.jar")
        assert downloads[0].is_downloaded
        assert not downloads[1].is_downloaded
        assert not report.has_error

    def test_configurations_merged(self, tmp_path: Path):
        compile_path = write_report(tmp_path, "compile", LIB_MODULE)
        runtime_path = write_report(tmp_path, "runtime", LIB_MODULE + "\n" + COMMONS_MODULE)

        report = parse_reports({"compile": compile_path, "runtime": runtime_path})

        assert list(report.configurations) == ["compile", "runtime"]
        assert [str(n.id) for n in report.dependencies] == [
            "org.example#lib;latest.integration",
            "org.apache#commons#stable;2.0",
        ]
        assert report.dependencies[0].root_module_configurations == ["compile", "runtime"]
        assert report.dependencies[1].root_module_configurations == ["runtime"]

    def test_failed_download_is_error(self, tmp_path: Path):
        report = parse_reports({"runtime": write_report(tmp_path, "runtime", COMMONS_MODULE)})

        assert report.has_error
        assert report.problem_messages == ["download failed: org.apache#commons#stable;2.0!commons.jar"]

    def test_unresolved_module_is_error(self, tmp_path: Path):
        modules = """\
    <module organisation="org.gone" name="missing">
      <revision name="1.0" error="not found">
        <caller organisation="org.example" name="app" conf="compile" rev="1.0"/>
      </revision>
    </module>"""
        report = parse_reports({"compile": write_report(tmp_path, "compile", modules)})

        assert report.has_error
        assert report.problem_messages == ["org.gone#missing;1.0: not found"]

    def test_module_id_carried(self, tmp_path: Path):
        root = ModuleRevisionId(organisation="org.example", name="app", revision="1.0")
        report = parse_reports({"compile": write_report(tmp_path, "compile", "")}, module_id=root)
        assert report.module_id == root
        assert report.dependencies == []
