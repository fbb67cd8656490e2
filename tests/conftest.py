"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from tests.factories import IVY_XML, SETTINGS_XML


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Write a valid ivysettings.xml."""
    path = tmp_path / "ivysettings.xml"
    path.write_text(SETTINGS_XML, encoding="utf-8")
    return path


@pytest.fixture
def ivy_file(tmp_path: Path) -> Path:
    """Write a valid ivy.xml descriptor."""
    path = tmp_path / "ivy.xml"
    path.write_text(IVY_XML, encoding="utf-8")
    return path
