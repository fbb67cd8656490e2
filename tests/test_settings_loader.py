"""
Tests for settings loading — sources, temp file handling, cache directory.
"""

import logging
import tempfile
from pathlib import Path

import pytest

from ivytrigger.core.errors import SettingsError
from ivytrigger.core.services import settings_loader
from ivytrigger.core.services.settings_loader import (
    CACHE_DIR_NAME,
    ResolverSettings,
    cache_dir_for,
    load_settings,
    read_settings_text,
)
from tests.factories import SETTINGS_XML


class TestReadSettingsText:
    def test_from_file(self, settings_file: Path):
        text, source = read_settings_text(settings_file, None)
        assert text == SETTINGS_XML
        assert source == str(settings_file)

    def test_from_url(self, settings_file: Path):
        url = settings_file.as_uri()
        text, source = read_settings_text(None, url)
        assert text == SETTINGS_XML
        assert source == url

    def test_file_wins_over_url(self, settings_file: Path):
        text, _ = read_settings_text(settings_file, "http://unused.invalid/ivysettings.xml")
        assert text == SETTINGS_XML

    def test_no_source_is_config_error(self):
        with pytest.raises(SettingsError, match="No Ivy settings configured"):
            read_settings_text(None, None)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SettingsError, match="Cannot read settings file"):
            read_settings_text(tmp_path / "nope.xml", None)

    def test_unreadable_url(self, tmp_path: Path):
        with pytest.raises(SettingsError, match="Cannot read settings from URL"):
            read_settings_text(None, (tmp_path / "nope.xml").as_uri())

    def test_malformed_url(self):
        with pytest.raises(SettingsError):
            read_settings_text(None, "not a url")


class TestCacheDir:
    def test_layout(self, tmp_path: Path):
        cache = cache_dir_for(tmp_path, "my-job")
        assert cache == tmp_path / CACHE_DIR_NAME / "my-job"
        assert cache.is_dir()

    def test_idempotent(self, tmp_path: Path):
        first = cache_dir_for(tmp_path, "ns")
        (first / "marker").write_text("kept")
        second = cache_dir_for(tmp_path, "ns")
        assert first == second
        assert (second / "marker").read_text() == "kept"


class TestResolverSettings:
    def test_load_valid(self, settings_file: Path):
        settings = ResolverSettings.load(settings_file, {"repo.url": "http://repo"})
        assert settings.text == SETTINGS_XML
        assert settings.variables == {"repo.url": "http://repo"}

    def test_malformed_xml(self, tmp_path: Path):
        path = tmp_path / "bad.xml"
        path.write_text("<ivysettings><resolvers></ivysettings>")
        with pytest.raises(SettingsError, match="Parsing error"):
            ResolverSettings.load(path, {})

    def test_wrong_root(self, tmp_path: Path):
        path = tmp_path / "pom.xml"
        path.write_text("<project/>")
        with pytest.raises(SettingsError, match="expected <ivysettings>"):
            ResolverSettings.load(path, {})

    def test_write(self, settings_file: Path, tmp_path: Path):
        settings = ResolverSettings.load(settings_file, {})
        target = settings.write(tmp_path / "copy.xml")
        assert target.read_text() == SETTINGS_XML


class TestLoadSettings:
    def test_binds_variables_and_cache(self, settings_file: Path, tmp_path: Path):
        settings = load_settings(
            {"repo.url": "http://repo"},
            execution_root=tmp_path / "root",
            namespace="job-a",
            settings_file=settings_file,
        )
        assert settings.cache_dir == tmp_path / "root" / CACHE_DIR_NAME / "job-a"
        assert settings.cache_dir.is_dir()
        assert settings.variables["repo.url"] == "http://repo"
        assert settings.source == str(settings_file)

    def test_temp_file_removed_on_success(self, settings_file: Path, tmp_path: Path, monkeypatch):
        staged: list[Path] = []
        real_mkstemp = tempfile.mkstemp

        def _tracking_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, **kwargs)
            staged.append(Path(name))
            return fd, name

        monkeypatch.setattr(settings_loader.tempfile, "mkstemp", _tracking_mkstemp)
        load_settings({}, tmp_path, "ns", settings_file=settings_file)

        assert len(staged) == 1
        assert not staged[0].exists()

    def test_temp_file_removed_on_parse_error(self, tmp_path: Path, monkeypatch):
        bad = tmp_path / "bad.xml"
        bad.write_text("<<<")
        staged: list[Path] = []
        real_mkstemp = tempfile.mkstemp

        def _tracking_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, **kwargs)
            staged.append(Path(name))
            return fd, name

        monkeypatch.setattr(settings_loader.tempfile, "mkstemp", _tracking_mkstemp)
        with pytest.raises(SettingsError):
            load_settings({}, tmp_path, "ns", settings_file=bad)

        assert staged and not staged[0].exists()

    def test_cleanup_failure_is_logged_not_raised(self, settings_file: Path, tmp_path: Path, monkeypatch, caplog):
        def _failing_unlink(self, missing_ok=False):
            raise PermissionError("read-only")

        monkeypatch.setattr(Path, "unlink", _failing_unlink)
        log = logging.getLogger("test.settings")
        with caplog.at_level(logging.ERROR, logger="test.settings"):
            settings = load_settings({}, tmp_path, "ns", settings_file=settings_file, log=log)

        assert settings.cache_dir is not None
        assert "Can't delete temporary file" in caplog.text

    def test_no_source(self, tmp_path: Path):
        with pytest.raises(SettingsError):
            load_settings({}, tmp_path, "ns")


class TestSettingsEncoding:
    BAD_BYTES = b"<ivysettings><!-- caf\xe9 --></ivysettings>"

    def test_invalid_utf8_file_replaced(self, tmp_path: Path):
        path = tmp_path / "ivysettings.xml"
        path.write_bytes(self.BAD_BYTES)

        text, _ = read_settings_text(path, None)

        assert text == "<ivysettings><!-- caf\ufffd --></ivysettings>"

    def test_invalid_utf8_url_replaced(self, tmp_path: Path):
        path = tmp_path / "ivysettings.xml"
        path.write_bytes(self.BAD_BYTES)

        text, _ = read_settings_text(None, path.as_uri())

        assert "\ufffd" in text

    def test_invalid_utf8_loads(self, tmp_path: Path):
        path = tmp_path / "ivysettings.xml"
        path.write_bytes(self.BAD_BYTES)

        settings = load_settings({}, tmp_path, "ns", settings_file=path)

        assert settings.text.startswith("<ivysettings>")
